"""
=============================================================================
METADATA UPDATES
=============================================================================

For headerless formats (MP3, AAC) the "now playing" title is not part of
the audio bytes. It is pushed to the server out of band, with a short HTTP
request on a SEPARATE socket:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   source socket  ══════ audio ════════════════════════════►  server │
    │                                                                      │
    │   fresh socket   ── GET /admin/metadata?...&song=... ──────►  server │
    │                  ◄─ HTTP/1.0 200 OK ─────────────────────────        │
    │                  (closed)                                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Two entry points:

    update_metadata(handler, meta)
        Uses the host, port, credentials, mount and User-Agent of the
        handler's live session. Fails with NotConnectedError otherwise.

    manual_update_metadata(host=..., port=..., ...)
        Needs no handler at all. Everything is passed explicitly, so it can
        run from another thread than the one streaming.

Neither touches the streaming socket.

=============================================================================
CHARACTER SETS
=============================================================================

Values are converted to a byte charset before percent-encoding. The default
is ISO-8859-1, what Shoutcast and Icecast MP3 mounts assume. Pass
charset="UTF-8" for UTF-8 titles; for Icecast the charset is then also sent
as a query parameter so the server converts correctly.

=============================================================================
"""

import logging
from typing import TYPE_CHECKING, Mapping, Optional

from ..config import DEFAULT_TIMEOUT, HandlerConfig
from ..errors import HttpAnswerError
from ..protocol.request import DEFAULT_CHARSET, SourceRequest, build_metadata_request, encode_metadata
from ..protocol.response import parse_status_line
from ..protocol.source import Protocol, normalize_mount, validate_port
from .handshake import read_refusal_body
from .transport import Transport

if TYPE_CHECKING:
    from .handler import Handler


logger = logging.getLogger(__name__)

Metadata = Mapping[str, str]

__all__ = [
    "DEFAULT_CHARSET",
    "Metadata",
    "encode_metadata",
    "manual_update_metadata",
    "update_metadata",
]


def update_metadata(
    handler: "Handler",
    metadata: Metadata,
    charset: Optional[str] = None,
) -> None:
    """
    Update metadata for the stream a handler is connected to.

    Raises:
        NotConnectedError: If the handler has no live session.
        HttpAnswerError: If the server refused the update.
        TransportError: If the update connection failed.
    """
    session = handler.session  # NotConnectedError when disconnected
    conn = session.connection

    if conn.protocol is Protocol.ICY and not session.capabilities.icy_metadata:
        logger.warning(
            f"Server at {conn.host}:{conn.port} did not announce metadata support "
            f"(answered {session.capabilities.answer!r}), sending update anyway"
        )

    request = build_metadata_request(
        protocol=conn.protocol,
        mount=conn.mount,
        user=conn.user,
        password=conn.password,
        metadata=metadata,
        charset=charset,
        user_agent=conn.user_agent,
    )
    _perform(request, conn.host, conn.port, handler.config)


def manual_update_metadata(
    *,
    host: str,
    port: int,
    protocol: Protocol,
    user: str,
    password: str,
    mount: Optional[str],
    metadata: Metadata,
    charset: Optional[str] = None,
    connection_timeout: float = DEFAULT_TIMEOUT,
    timeout: float = DEFAULT_TIMEOUT,
    headers: Optional[Mapping[str, str]] = None,
    ipv6: bool = False,
    bind: Optional[str] = None,
) -> None:
    """
    Update metadata on any source without being connected to it.

    `port` is the server's public port for both protocols (Shoutcast
    serves admin.cgi there, not on the source port).

    Raises:
        InvalidUsageError: If the mount, port, timeouts or bind address
            are invalid.
        HttpAnswerError: If the server refused the update.
        TransportError: If the update connection failed.
    """
    config = HandlerConfig(
        ipv6=ipv6,
        bind=bind,
        connection_timeout=connection_timeout,
        timeout=timeout,
    )
    config.validate()

    mount = normalize_mount(mount, protocol)
    validate_port(port)

    request = build_metadata_request(
        protocol=protocol,
        mount=mount,
        user=user,
        password=password,
        metadata=metadata,
        charset=charset,
        user_agent=(headers or {}).get("User-Agent"),
    )
    _perform(request, host, port, config)


def _perform(request: SourceRequest, host: str, port: int, config: HandlerConfig) -> None:
    """Send one request on a fresh transport and check the status line."""
    transport = Transport.open(
        host,
        port,
        ipv6=config.ipv6,
        bind=config.bind,
        connection_timeout=config.connection_timeout,
        timeout=config.timeout,
        max_line_length=config.max_line_length,
    )
    with transport:
        # The target carries the password for ICY, keep it out of the logs
        logger.debug(f"[{transport.id}] >> {request.method} {request.target.split('?')[0]}")
        transport.send(request.to_bytes())

        line = transport.read_line()
        logger.debug(f"[{transport.id}] << {line}")
        status = parse_status_line(line)

        if not status.is_success:
            body = read_refusal_body(transport)
            raise HttpAnswerError(status.code, status.reason, body)

    logger.info(f"Metadata updated on {host}:{port}")
