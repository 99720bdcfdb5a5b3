"""
=============================================================================
SHOUTSOURCE - Source Client for Icecast2 and Shoutcast Streaming Servers
=============================================================================

This package is the "source" side of internet radio: it connects to a
streaming server, authenticates, announces a stream, and then pushes an
already-encoded audio/video byte stream that the server relays to
listeners. Everything is done over plain blocking sockets.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SOURCE CLIENT ARCHITECTURE                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   encoder ──► Handler.send() ──► Transport ══ TCP ══► server        │
    │                   │                                     │            │
    │                   └─ update_metadata() ── fresh TCP ────┘            │
    │                                                                      │
    │   1. TWO SOURCE DIALECTS                                             │
    │      - HTTP: Icecast2 "SOURCE /mount" with Basic auth               │
    │      - ICY: Shoutcast v1 password line, source port = port + 1      │
    │                                                                      │
    │   2. ONE SESSION PER HANDLER                                         │
    │      - DISCONNECTED ⇄ CONNECTED state machine                       │
    │      - Any I/O failure tears the session down                       │
    │                                                                      │
    │   3. OUT-OF-BAND METADATA                                            │
    │      - /admin/metadata (Icecast2) or /admin.cgi (Shoutcast)         │
    │      - Charset-aware percent-encoding                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Pacing is NOT done here. send() writes as fast as the socket accepts; the
caller feeds data at the stream's real-time rate.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    shoutsource/
    ├── __init__.py            # This file - package exports
    ├── __main__.py            # CLI entry point (python -m shoutsource)
    ├── config.py              # HandlerConfig dataclass
    ├── errors.py              # SourceError taxonomy, describe_error()
    ├── protocol/              # Wire formats, no sockets
    │   ├── content_types.py   # ContentType values and extension lookup
    │   ├── source.py          # SourceConnection, connection() builder
    │   ├── request.py         # Handshake and metadata requests
    │   ├── response.py        # Status lines, ICY answers
    │   └── status_codes.py    # HTTP status enum
    └── core/                  # Sockets and state
        ├── transport.py       # TCP wrapper with line reading
        ├── handshake.py       # HTTP and ICY negotiation
        ├── handler.py         # Handler state machine
        └── metadata.py        # Metadata update requests

=============================================================================
QUICK START
=============================================================================

    from shoutsource import Handler, MPEG, audio_info, connection

    conn = connection(
        mount="/live",
        content_type=MPEG,
        name="My Radio",
        audio_info=audio_info(samplerate=44100, channels=2, bitrate=128),
        password="hackme",
    )

    with Handler() as handler:
        handler.connect(conn)
        handler.update_metadata({"song": "Artist - Title"})
        for chunk in encoded_chunks:
            handler.send(chunk)

=============================================================================
"""

__version__ = "1.0.0"

from .config import HandlerConfig
from .core import Capabilities, Handler, Session, Status, manual_update_metadata, update_metadata
from .errors import (
    BadAnswerError,
    BusyError,
    CloseError,
    ConnectError,
    CreateError,
    ErrorKind,
    HttpAnswerError,
    InvalidUsageError,
    NotConnectedError,
    ReadError,
    SourceError,
    TransportError,
    WriteError,
    describe_error,
)
from .protocol import (
    AAC,
    AACP,
    FLAC,
    MPEG,
    OGG_APPLICATION,
    OGG_AUDIO,
    OGG_VIDEO,
    WEBM_AUDIO,
    ContentType,
    Protocol,
    SourceConnection,
    audio_info,
    connection,
    content_type_of_string,
    guess_content_type,
    string_of_content_type,
)

__all__ = [
    # Handler
    "Handler",
    "HandlerConfig",
    "Session",
    "Status",
    "Capabilities",
    "update_metadata",
    "manual_update_metadata",
    # Connections
    "Protocol",
    "SourceConnection",
    "connection",
    "audio_info",
    # Content types
    "ContentType",
    "OGG_APPLICATION",
    "OGG_AUDIO",
    "OGG_VIDEO",
    "MPEG",
    "AAC",
    "AACP",
    "FLAC",
    "WEBM_AUDIO",
    "content_type_of_string",
    "string_of_content_type",
    "guess_content_type",
    # Errors
    "ErrorKind",
    "SourceError",
    "TransportError",
    "CreateError",
    "ConnectError",
    "CloseError",
    "WriteError",
    "ReadError",
    "BusyError",
    "NotConnectedError",
    "InvalidUsageError",
    "BadAnswerError",
    "HttpAnswerError",
    "describe_error",
    "__version__",
]
