r"""
=============================================================================
SOCKET TRANSPORT
=============================================================================

This module wraps one outgoing TCP connection to a streaming server with a
small blocking API: open, send, read a line, read the rest, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A LINE PROTOCOL!
=============================================================================

Both source protocols are line based during the handshake, but TCP does
not preserve line boundaries. A server answering

        send("OK2\r\nicy-caps:11\r\n\r\n")

might be received as ANY of:

        recv() → "OK2\r\nicy-caps:11\r\n\r\n"    (all at once)
        recv() → "OK"                          (partial)
        recv() → "2\r\nicy-caps:11\r\n\r\n"      (the rest)

So reads go through a buffer and lines are cut out of it. Lines the server
sent together with its answer stay in the buffer and can be collected
without blocking (buffered_lines()).

=============================================================================
ERROR MAPPING
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Phase              OS failure                    Raised as         │
    ├─────────────────────────────────────────────────────────────────────┤
    │  socket() / bind()  EMFILE, EADDRNOTAVAIL...      CreateError       │
    │  getaddrinfo()      unknown host                  ConnectError      │
    │  connect()          refused, unreachable, timeout ConnectError      │
    │  sendall()          EPIPE, ECONNRESET, timeout    WriteError        │
    │  recv()             ECONNRESET, timeout           ReadError         │
    │  close()            EBADF...                      CloseError        │
    └─────────────────────────────────────────────────────────────────────┘

Every failure inside open() closes the half-built socket before raising,
so a caller never holds a descriptor it did not get a Transport for.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    OPEN ──────► CLOSING ──────► CLOSED

=============================================================================
"""

import logging
import socket
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..errors import CloseError, ConnectError, CreateError, ReadError, WriteError


logger = logging.getLogger(__name__)


class TransportState(Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Transport:
    """
    A connected TCP socket with buffered line reading.

    Create with Transport.open(); the constructor expects a socket that is
    already connected.

    Attributes:
        socket: The connected socket.
        address: Remote (host, port) as requested by the caller.
        id: Short identifier used in log lines.
        state: Current transport state.
        timeout: Read/write timeout in seconds.
        max_line_length: Longest line read_line() accepts.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: TransportState = TransportState.OPEN
    bytes_sent: int = 0

    buffer_size: int = 4096
    timeout: Optional[float] = 30.0
    max_line_length: int = 8192

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # OPENING
    # =========================================================================

    @classmethod
    def open(
        cls,
        host: str,
        port: int,
        *,
        ipv6: bool = False,
        bind: Optional[str] = None,
        connection_timeout: float = 30.0,
        timeout: float = 30.0,
        max_line_length: int = 8192,
    ) -> "Transport":
        """
        Open a TCP connection.

        ┌─────────────────────────────────────────────────────────────────┐
        │                      open() Flow                                 │
        ├─────────────────────────────────────────────────────────────────┤
        │   getaddrinfo(host, port, AF_INET or AF_INET6)   → ConnectError │
        │   socket(family, SOCK_STREAM)                    → CreateError  │
        │   bind((bind, 0))            [optional]          → CreateError  │
        │   settimeout(connection_timeout)                                 │
        │   connect(address)                               → ConnectError │
        │   settimeout(timeout)                                            │
        └─────────────────────────────────────────────────────────────────┘

        Raises:
            CreateError: If the local socket could not be set up.
            ConnectError: If the host could not be resolved or reached.
        """
        family = socket.AF_INET6 if ipv6 else socket.AF_INET

        try:
            infos = socket.getaddrinfo(host, port, family, socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise ConnectError(f"could not resolve {host}:{port}", cause=e) from e

        # getaddrinfo never returns an empty list without raising
        family, socktype, proto, _, sockaddr = infos[0]

        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as e:
            raise CreateError(cause=e) from e

        try:
            if bind is not None:
                try:
                    sock.bind((bind, 0))
                except OSError as e:
                    raise CreateError(f"could not bind to {bind}", cause=e) from e

            sock.settimeout(connection_timeout)
            try:
                sock.connect(sockaddr)
            except OSError as e:
                raise ConnectError(f"could not connect to {host}:{port}", cause=e) from e
        except BaseException:
            sock.close()
            raise

        transport = cls(
            socket=sock,
            address=(host, port),
            timeout=timeout,
            max_line_length=max_line_length,
        )
        logger.debug(f"[{transport.id}] Connected to {host}:{port}")
        return transport

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> None:
        """
        Send all of `data`, blocking until the kernel accepted it.

        Raises:
            WriteError: On timeout, reset, broken pipe or a closed transport.
        """
        if self.state is not TransportState.OPEN:
            raise WriteError("transport is closed")

        try:
            self.socket.sendall(data)
        except OSError as e:
            raise WriteError(cause=e) from e

        self.bytes_sent += len(data)

    # =========================================================================
    # READING
    # =========================================================================

    def _recv(self) -> bytes:
        if self.state is not TransportState.OPEN:
            raise ReadError("transport is closed")
        try:
            return self.socket.recv(self.buffer_size)
        except OSError as e:
            raise ReadError(cause=e) from e

    def _cut_line(self) -> Optional[str]:
        index = self._buffer.find(b"\n")
        if index == -1:
            return None
        raw = self._buffer[:index]
        self._buffer = self._buffer[index + 1:]
        return raw.rstrip(b"\r").decode("latin-1")

    def read_line(self) -> Optional[str]:
        """
        Read one line, without its terminator.

        Returns:
            The line, or None if the peer closed before sending anything.
            A final unterminated line before EOF is returned as is.

        Raises:
            ReadError: On timeout, reset, or a line longer than
                max_line_length.
        """
        while True:
            line = self._cut_line()
            if line is not None:
                return line

            if len(self._buffer) > self.max_line_length:
                raise ReadError(
                    f"line longer than {self.max_line_length} bytes",
                    cause=ValueError(self._buffer[:64]),
                )

            chunk = self._recv()
            if not chunk:
                if not self._buffer:
                    return None
                rest, self._buffer = self._buffer, b""
                return rest.rstrip(b"\r").decode("latin-1")

            self._buffer += chunk

    def buffered_lines(self) -> list[str]:
        """Complete lines already received. Never blocks."""
        lines = []
        while True:
            line = self._cut_line()
            if line is None:
                return lines
            lines.append(line)

    def read_exact(self, size: int) -> bytes:
        """
        Read `size` bytes, fewer only if the peer closes first.

        Raises:
            ReadError: On timeout or reset.
        """
        while len(self._buffer) < size:
            chunk = self._recv()
            if not chunk:
                break
            self._buffer += chunk

        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    def read_remaining(self) -> bytes:
        """
        Read until the peer closes.

        A timeout or a reset ends the read; whatever was collected so far is
        returned. Used to capture error pages after a refusal.
        """
        data, self._buffer = self._buffer, b""
        while True:
            try:
                chunk = self._recv()
            except ReadError as e:
                logger.debug(f"[{self.id}] Stopped reading response: {e}")
                return data
            if not chunk:
                return data
            data += chunk

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """
        Close the connection.

        shutdown() failures are expected on a broken socket and ignored;
        a failing close() is reported.

        Raises:
            CloseError: If the descriptor could not be released.
        """
        if self.state is TransportState.CLOSED:
            return

        self.state = TransportState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError as e:
            raise CloseError(cause=e) from e
        finally:
            self.state = TransportState.CLOSED
            self._buffer = b""
            logger.debug(f"[{self.id}] Closed after sending {self.bytes_sent} bytes")

    @property
    def is_open(self) -> bool:
        return self.state is TransportState.OPEN

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
