"""
=============================================================================
HANDSHAKE ENGINE
=============================================================================

Negotiates a source session over an open Transport. Two dialects:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP (Icecast2)                                                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   client                                   server                    │
    │     │  SOURCE /stream HTTP/1.0 + headers     │                       │
    │     │ ─────────────────────────────────────► │                       │
    │     │                     HTTP/1.0 200 OK    │                       │
    │     │ ◄───────────────────────────────────── │                       │
    │     │  audio bytes ...                       │                       │
    │                                                                      │
    │   2xx          → connected, metadata always supported               │
    │   other code   → HttpAnswerError(code, reason, body)                │
    │   garbage      → BadAnswerError(line)                               │
    │                                                                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │  ICY (Shoutcast v1)                                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   client                                   server                    │
    │     │  <password>                            │                       │
    │     │ ─────────────────────────────────────► │                       │
    │     │                    OK2 / icy-caps:11   │                       │
    │     │ ◄───────────────────────────────────── │                       │
    │     │  content-type:... icy-name:...         │                       │
    │     │ ─────────────────────────────────────► │                       │
    │     │  audio bytes ...                       │                       │
    │                                                                      │
    │   OK2          → connected, metadata supported                      │
    │   OK...        → connected, no metadata                             │
    │   anything else→ BadAnswerError(line)                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

OWNERSHIP RULE: the transport handed to handshake() is closed on EVERY
failure path before the error propagates. A caller that gets an exception
must not touch the transport again.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from ..errors import CloseError, HttpAnswerError, ReadError
from ..protocol.request import build_icy_headers, build_icy_password, build_source_request
from ..protocol.response import (
    HEADER_PATTERN,
    content_length,
    icy_answer_supports_metadata,
    parse_header_lines,
    parse_status_line,
)
from ..protocol.source import Protocol, SourceConnection
from .transport import Transport


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capabilities:
    """
    What the server told us during the handshake.

    Attributes:
        icy_metadata: Server accepts out-of-band metadata updates.
        answer: The accepting status/token line, as received.
        headers: Header or capability lines sent along with the answer
            (lowercased names), e.g. {"icy-caps": "11"}.
    """

    icy_metadata: bool
    answer: str
    headers: Dict[str, str] = field(default_factory=dict, hash=False)


def handshake(transport: Transport, conn: SourceConnection) -> Capabilities:
    """
    Run the protocol handshake for `conn` over `transport`.

    Returns:
        The negotiated capabilities; the transport is ready for audio data.

    Raises:
        HttpAnswerError, BadAnswerError: The server refused or answered
            nonsense.
        WriteError, ReadError: The connection failed mid-handshake.
        InvalidUsageError: A header or password cannot be sent safely.
    """
    try:
        if conn.protocol is Protocol.HTTP:
            return _http_handshake(transport, conn)
        return _icy_handshake(transport, conn)
    except BaseException:
        _discard(transport)
        raise


def _discard(transport: Transport) -> None:
    try:
        transport.close()
    except CloseError as e:
        # The handshake error is the one worth reporting
        logger.debug(f"[{transport.id}] Error closing after failed handshake: {e}")


def read_refusal_body(transport: Transport) -> str:
    """
    Read what follows the status line of a refused request.

    With a Content-Length, exactly that many bytes are read, so a server
    that keeps the socket open does not stall the caller. Without one the
    body runs until the server closes. A read failure ends the body.
    """
    header_lines: List[str] = []
    try:
        while True:
            line = transport.read_line()
            if not line:
                break
            if not HEADER_PATTERN.match(line):
                # No header block, the body starts right after the status line
                raw = line.encode("latin-1") + b"\n" + transport.read_remaining()
                return raw.decode("utf-8", errors="replace")
            header_lines.append(line)

        if line is None:
            return ""

        length = content_length(parse_header_lines(header_lines))
        if length is None:
            raw = transport.read_remaining()
        else:
            raw = transport.read_exact(length)
    except ReadError as e:
        logger.debug(f"[{transport.id}] Stopped reading refusal body: {e}")
        return ""

    return raw.decode("utf-8", errors="replace")


def _http_handshake(transport: Transport, conn: SourceConnection) -> Capabilities:
    request = build_source_request(conn)
    logger.debug(f"[{transport.id}] >> {request.request_line}")
    transport.send(request.to_bytes())

    line = transport.read_line()
    logger.debug(f"[{transport.id}] << {line}")
    status = parse_status_line(line)

    if not status.is_success:
        body = read_refusal_body(transport)
        raise HttpAnswerError(status.code, status.reason, body)

    headers = parse_header_lines(transport.buffered_lines())
    return Capabilities(icy_metadata=True, answer=line, headers=headers)


def _icy_handshake(transport: Transport, conn: SourceConnection) -> Capabilities:
    logger.debug(f"[{transport.id}] >> <password>")
    transport.send(build_icy_password(conn))

    line = transport.read_line()
    logger.debug(f"[{transport.id}] << {line}")
    icy_metadata = icy_answer_supports_metadata(line)

    headers = parse_header_lines(transport.buffered_lines())

    transport.send(build_icy_headers(conn))
    return Capabilities(icy_metadata=icy_metadata, answer=line.strip(), headers=headers)
