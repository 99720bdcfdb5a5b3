"""
=============================================================================
CONNECTION HANDLER
=============================================================================

A Handler owns AT MOST ONE live source session and enforces its lifecycle:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                    connect() ok                                      │
    │   DISCONNECTED ─────────────────────────► CONNECTED(Session)        │
    │        ▲   │                                   │                     │
    │        │   │ connect() fails                   │ close()             │
    │        │   └──► stays DISCONNECTED             │ send() fails        │
    │        │                                       │                     │
    │        └───────────────────────────────────────┘                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    connect()   while CONNECTED     → BusyError
    send()      while DISCONNECTED  → NotConnectedError
    close()     while DISCONNECTED  → NotConnectedError (not a no-op!)

A failed send() tears the session down BEFORE the error reaches the caller,
so after any I/O error the handler is consistently DISCONNECTED. Nothing is
retried; reconnecting is the caller's decision.

=============================================================================
THREADING
=============================================================================

There is no internal lock. A handler is meant to be driven by one thread;
run one handler per thread/task when streaming several mounts.
manual_update_metadata() is the way to update metadata from another thread.

=============================================================================
USAGE
=============================================================================

    handler = Handler()
    conn = connection(mount="/live", content_type=MPEG, port=8000)

    handler.connect(conn)
    handler.update_metadata({"song": "Artist - Title"})
    for chunk in encoder:
        handler.send(chunk)          # pacing is up to you
    handler.close()

=============================================================================
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import HandlerConfig
from ..errors import BusyError, CloseError, NotConnectedError, WriteError
from ..protocol.source import SourceConnection
from .handshake import Capabilities, handshake
from .metadata import Metadata, update_metadata
from .transport import Transport


logger = logging.getLogger(__name__)


class Status(Enum):
    """Handler status."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass(frozen=True)
class Session:
    """
    The live side of a connected handler.

    Exclusively owned by one Handler; it is dropped on close or on any
    transport error.
    """

    connection: SourceConnection
    transport: Transport
    capabilities: Capabilities


class Handler:
    """
    Source connection handler.

    Args:
        config: Network settings (IP version, bind address, timeouts).
            Defaults to HandlerConfig().

    Raises:
        InvalidUsageError: If the configuration is invalid.
    """

    def __init__(self, config: Optional[HandlerConfig] = None):
        self.config = config or HandlerConfig()
        self.config.validate()
        self._session: Optional[Session] = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def status(self) -> Status:
        return Status.CONNECTED if self._session is not None else Status.DISCONNECTED

    def get_status(self) -> Status:
        """Get the handler's status."""
        return self.status

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    @property
    def icy_capable(self) -> bool:
        """
        Whether the server accepts metadata updates.

        Always True for HTTP sessions; detected during the handshake for
        ICY. False while disconnected.
        """
        if self._session is None:
            return False
        return self._session.capabilities.icy_metadata

    def get_icy_capability(self) -> bool:
        return self.icy_capable

    @property
    def session(self) -> Session:
        """
        The live session. Use it only if you know what you are doing.

        Raises:
            NotConnectedError: If not connected.
        """
        if self._session is None:
            raise NotConnectedError()
        return self._session

    def get_connection_data(self) -> Session:
        return self.session

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def connect(self, conn: SourceConnection) -> None:
        """
        Connect to the server described by `conn` and run the handshake.

        On failure the handler stays DISCONNECTED, the socket is closed, and
        the error propagates unchanged.

        Raises:
            BusyError: If already connected.
            CreateError, ConnectError: The socket could not be opened.
            HttpAnswerError, BadAnswerError: The server refused.
            WriteError, ReadError: The connection broke mid-handshake.
        """
        if self._session is not None:
            raise BusyError()

        port = conn.source_port
        logger.info(
            f"Connecting {conn.protocol.value} source to {conn.host}:{port}{conn.mount}"
        )

        transport = Transport.open(
            conn.host,
            port,
            ipv6=self.config.ipv6,
            bind=self.config.bind,
            connection_timeout=self.config.connection_timeout,
            timeout=self.config.timeout,
            max_line_length=self.config.max_line_length,
        )
        capabilities = handshake(transport, conn)  # closes transport on failure

        self._session = Session(connection=conn, transport=transport, capabilities=capabilities)
        logger.info(
            f"[{transport.id}] Connected to {conn.host}:{port}{conn.mount} "
            f"(metadata updates: {'yes' if capabilities.icy_metadata else 'no'})"
        )

    def send(self, data: bytes) -> None:
        """
        Send stream data. Blocks until the OS accepted all of it.

        Raises:
            NotConnectedError: If not connected.
            WriteError: If the write failed; the handler is DISCONNECTED
                when this is raised.
        """
        session = self.session
        if not data:
            return

        try:
            session.transport.send(data)
        except WriteError as e:
            logger.warning(f"[{session.transport.id}] Write failed, disconnecting: {e}")
            self._teardown()
            raise

    def close(self) -> None:
        """
        Close the session.

        The handler is DISCONNECTED afterwards even if closing failed.

        Raises:
            NotConnectedError: If not connected (closing twice is an error).
            CloseError: If the socket could not be closed cleanly.
        """
        session = self.session
        self._session = None
        session.transport.close()
        logger.info(f"[{session.transport.id}] Disconnected from {session.connection.host}")

    def _teardown(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            session.transport.close()
        except CloseError as e:
            logger.debug(f"[{session.transport.id}] Error closing broken session: {e}")

    # =========================================================================
    # METADATA
    # =========================================================================

    def update_metadata(self, metadata: Metadata, charset: Optional[str] = None) -> None:
        """
        Update metadata for the connected stream.

        Useful only for non-Ogg formats, and for ICY only when the server
        announced metadata support. For ICY the relevant keys are "song"
        and "url".

        Raises:
            NotConnectedError: If not connected.
            HttpAnswerError: If the server refused the update.
        """
        update_metadata(self, metadata, charset)

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self) -> "Handler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._session is not None:
            self.close()
        return False

    def __repr__(self) -> str:
        if self._session is None:
            return "Handler(status=disconnected)"
        return f"Handler(status=connected, connection={self._session.connection!r})"
