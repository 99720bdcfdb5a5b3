"""
=============================================================================
STREAM CONTENT TYPES
=============================================================================

The Content-Type a source announces tells the server (and, through it,
every listener) how to interpret the bytes that follow the handshake.

=============================================================================
WHICH TYPE FOR WHICH PROTOCOL?
=============================================================================

    ┌────────────────────────────────────────────────────────────────────┐
    │                    COMMON SOURCE TYPES                             │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │  OGG CONTAINERS (Icecast HTTP protocol only):                      │
    │  ──────────────────────────────────────────────────────────────── │
    │  application/ogg   → generic Ogg stream                            │
    │  audio/ogg         → Vorbis / Opus / FLAC in Ogg                   │
    │  video/ogg         → Theora in Ogg                                 │
    │                                                                     │
    │  HEADERLESS FORMATS (ICY and HTTP):                                │
    │  ──────────────────────────────────────────────────────────────── │
    │  audio/mpeg        → MP3                                           │
    │  audio/aac         → AAC (ADTS)                                    │
    │  audio/aacp        → HE-AAC (Shoutcast naming)                     │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

Ogg carries its own in-band metadata, so out-of-band metadata updates only
make sense for the headerless formats.

=============================================================================
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import InvalidUsageError


@dataclass(frozen=True)
class ContentType:
    """
    Opaque wrapper over a MIME string.

    Two content types are equal when their strings are equal:

        >>> ContentType("audio/mpeg") == MPEG
        True
    """

    mime: str

    def __str__(self) -> str:
        return self.mime


# =============================================================================
# WELL-KNOWN TYPES
# =============================================================================

OGG_APPLICATION = ContentType("application/ogg")
OGG_AUDIO = ContentType("audio/ogg")
OGG_VIDEO = ContentType("video/ogg")
MPEG = ContentType("audio/mpeg")
AAC = ContentType("audio/aac")
AACP = ContentType("audio/aacp")
FLAC = ContentType("audio/flac")
WEBM_AUDIO = ContentType("audio/webm")


# =============================================================================
# EXTENSION DATABASE
# =============================================================================
#
# Maps file extensions (lowercase, with dot) to stream content types.
# Only formats that can actually be pushed to a streaming server are here.
#
# =============================================================================

EXTENSION_TYPES = {
    ".mp3": MPEG,
    ".mp2": MPEG,
    ".mpga": MPEG,
    ".ogg": OGG_AUDIO,
    ".oga": OGG_AUDIO,
    ".opus": OGG_AUDIO,
    ".spx": OGG_AUDIO,
    ".ogv": OGG_VIDEO,
    ".ogx": OGG_APPLICATION,
    ".aac": AAC,
    ".adts": AAC,
    ".aacp": AACP,
    ".flac": FLAC,
    ".webm": WEBM_AUDIO,
}


def content_type_of_string(value: str) -> ContentType:
    """
    Create a content type from its MIME string (e.g. "audio/aacp").

    Raises:
        InvalidUsageError: If the string is empty.
    """
    value = value.strip()
    if not value:
        raise InvalidUsageError("content type must not be empty")
    return ContentType(value)


def string_of_content_type(content_type: ContentType) -> str:
    """Get the MIME string of a content type."""
    return content_type.mime


def guess_content_type(path: str | Path, default: Optional[ContentType] = None) -> ContentType:
    """
    Guess the content type of a file from its extension.

    Examples:
        >>> guess_content_type("show.ogg")
        ContentType(mime='audio/ogg')

        >>> guess_content_type("/music/track.MP3")
        ContentType(mime='audio/mpeg')

        >>> guess_content_type("unknown.xyz")
        ContentType(mime='audio/mpeg')
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix.lower()
    return EXTENSION_TYPES.get(extension, default or MPEG)
