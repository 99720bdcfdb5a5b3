"""
Wire formats of the source protocols.

Nothing in this subpackage opens a socket: it builds the bytes a source
sends and interprets the lines a server answers.
"""

from .content_types import (
    AAC,
    AACP,
    FLAC,
    MPEG,
    OGG_APPLICATION,
    OGG_AUDIO,
    OGG_VIDEO,
    WEBM_AUDIO,
    ContentType,
    content_type_of_string,
    guess_content_type,
    string_of_content_type,
)
from .source import AudioInfo, Protocol, SourceConnection, audio_info, connection
from .request import SourceRequest, build_metadata_request, build_source_request, encode_metadata
from .response import StatusLine, parse_status_line
from .status_codes import HTTPStatus

__all__ = [
    "AAC",
    "AACP",
    "FLAC",
    "MPEG",
    "OGG_APPLICATION",
    "OGG_AUDIO",
    "OGG_VIDEO",
    "WEBM_AUDIO",
    "ContentType",
    "content_type_of_string",
    "guess_content_type",
    "string_of_content_type",
    "AudioInfo",
    "Protocol",
    "SourceConnection",
    "audio_info",
    "connection",
    "SourceRequest",
    "build_metadata_request",
    "build_source_request",
    "encode_metadata",
    "StatusLine",
    "parse_status_line",
    "HTTPStatus",
]
