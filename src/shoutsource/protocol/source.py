"""
=============================================================================
SOURCE CONNECTION DESCRIPTION
=============================================================================

Everything a Handler needs to know about ONE stream before it can open a
socket: where the server is, which mount to feed, how to authenticate,
which protocol dialect to speak, and which headers describe the stream.

=============================================================================
TWO DIALECTS, TWO HEADER VOCABULARIES
=============================================================================

    ┌──────────────────────────────────┬──────────────────────────────────┐
    │  HTTP (Icecast2)                 │  ICY (Shoutcast v1)              │
    ├──────────────────────────────────┼──────────────────────────────────┤
    │  User-Agent                      │  User-Agent                      │
    │  ice-name                        │  icy-name                        │
    │  ice-genre                       │  icy-url                         │
    │  ice-url                         │  icy-pub                         │
    │  ice-public                      │  icy-genre                       │
    │  ice-audio-info                  │  icy-br                          │
    │  ice-description                 │                                  │
    └──────────────────────────────────┴──────────────────────────────────┘

ICY callers may add icy-irc, icy-icq and icy-aim themselves through the
`headers` argument; they are never preset.

Headers are kept in insertion order, which is the order they go on the
wire. The record is frozen, and so are its headers: they are stored as a
read-only mapping over a private copy.

=============================================================================
SHOUTCAST PORT CONVENTION
=============================================================================

A Shoutcast v1 server listens for listeners on its base port and for the
source on base port + 1:

    listeners ──►  :8000   (also admin.cgi, used for metadata updates)
    source    ──►  :8001

So for ICY, `port` is the server's public port and `source_port` is where
the source handshake actually goes.

=============================================================================
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional
from urllib.parse import quote

from .. import __version__
from ..errors import InvalidUsageError
from .content_types import ContentType


DEFAULT_USER_AGENT = f"shoutsource/{__version__}"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8000
DEFAULT_USER = "source"
DEFAULT_PASSWORD = "hackme"

SOURCE_METHODS = ("SOURCE", "PUT")


class Protocol(Enum):
    """Source protocol dialect."""
    ICY = "icy"      # Shoutcast v1, undocumented line protocol
    HTTP = "http"    # Icecast2 HTTP source protocol

    @classmethod
    def parse(cls, value: str) -> "Protocol":
        """Parse "icy" or "http" (any case)."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidUsageError(f"unknown protocol: {value!r}") from None


# =============================================================================
# AUDIO INFO
# =============================================================================

AudioInfo = Dict[str, str]

AUDIO_INFO_KEYS = ("samplerate", "channels", "quality", "bitrate")


def audio_info(
    samplerate: Optional[int] = None,
    channels: Optional[int] = None,
    quality: Optional[float] = None,
    bitrate: Optional[int] = None,
) -> AudioInfo:
    """
    Build an audio info mapping, only with the values that were given.

        >>> audio_info(samplerate=44100, channels=2, bitrate=128)
        {'samplerate': '44100', 'channels': '2', 'bitrate': '128'}
    """
    info: AudioInfo = {}
    if samplerate is not None:
        info["samplerate"] = str(samplerate)
    if channels is not None:
        info["channels"] = str(channels)
    if quality is not None:
        info["quality"] = f"{quality:.2f}"
    if bitrate is not None:
        info["bitrate"] = str(bitrate)
    return info


def format_audio_info(info: AudioInfo) -> str:
    """
    Render audio info as the value of the ice-audio-info header.

    Pairs are separated by ';', values are percent-encoded:

        >>> format_audio_info({"samplerate": "44100", "channels": "2"})
        'samplerate=44100;channels=2'
    """
    return ";".join(f"{key}={quote(value, safe='')}" for key, value in info.items())


# =============================================================================
# CONNECTION RECORD
# =============================================================================

@dataclass(frozen=True)
class SourceConnection:
    """
    Immutable description of one source stream.

    Build it with connection() to get protocol-appropriate default headers.
    Use dataclasses.replace() or with_headers() to derive variants:

        conn = connection(mount="/live", content_type=MPEG)
        conn = replace(conn, port=8005)
    """

    mount: str
    content_type: ContentType
    user: str = DEFAULT_USER
    password: str = DEFAULT_PASSWORD
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    protocol: Protocol = Protocol.HTTP
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    method: str = "SOURCE"

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def source_port(self) -> int:
        """Port the source handshake connects to."""
        if self.protocol is Protocol.ICY:
            return self.port + 1
        return self.port

    @property
    def user_agent(self) -> str:
        return self.headers.get("User-Agent", DEFAULT_USER_AGENT)

    def with_headers(self, **extra: str) -> "SourceConnection":
        """
        Return a copy with headers added or overridden.

        Keyword names use underscores for dashes: icy_irc="#chan" sets
        the "icy-irc" header.
        """
        headers = dict(self.headers)
        for name, value in extra.items():
            headers[name.replace("_", "-")] = value
        return replace(self, headers=headers)

    def __repr__(self) -> str:
        return (
            f"SourceConnection(protocol={self.protocol.value}, "
            f"host={self.host!r}, port={self.port}, mount={self.mount!r}, "
            f"content_type={self.content_type.mime!r})"
        )


def validate_port(port: int) -> None:
    """Raise InvalidUsageError unless `port` is a usable TCP port."""
    if not isinstance(port, int) or not 0 < port < 65536:
        raise InvalidUsageError(f"invalid port: {port}")


def normalize_mount(mount: Optional[str], protocol: Protocol) -> str:
    """
    Check a mount point and add the leading "/" if missing.

    Raises:
        InvalidUsageError: If the mount is None, or only "/" for HTTP.
    """
    if mount is None:
        raise InvalidUsageError("mount is required")

    mount = mount.strip()
    if not mount.startswith("/"):
        mount = "/" + mount

    # Shoutcast v1 has no mount points, anything is accepted there
    if protocol is Protocol.HTTP and mount == "/":
        raise InvalidUsageError("mount must name a mount point, e.g. /stream")

    return mount


def connection(
    *,
    mount: Optional[str],
    content_type: Optional[ContentType],
    user_agent: Optional[str] = None,
    name: Optional[str] = None,
    genre: Optional[str] = None,
    url: Optional[str] = None,
    public: Optional[bool] = None,
    audio_info: Optional[AudioInfo] = None,
    description: Optional[str] = None,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    password: str = DEFAULT_PASSWORD,
    protocol: Protocol = Protocol.HTTP,
    user: str = DEFAULT_USER,
    method: str = "SOURCE",
    headers: Optional[Mapping[str, str]] = None,
) -> SourceConnection:
    """
    Create a SourceConnection with the preset headers for its protocol.

    Args:
        mount: Mount point, e.g. "/stream" (a missing leading "/" is added).
        content_type: Stream content type, e.g. MPEG.
        user_agent: User-Agent header (default: shoutsource/<version>).
        name, genre, url, description: Stream directory information.
        public: List the stream in public directories.
        audio_info: Built with audio_info(); HTTP sends it as
            ice-audio-info, ICY uses its bitrate for icy-br.
        host, port: Server address. For ICY, port is the public port.
        password, user: Source credentials. Change user only if your
            server is configured for it.
        protocol: Protocol.HTTP (Icecast2) or Protocol.ICY (Shoutcast v1).
        method: "SOURCE" or "PUT" (Icecast >= 2.4), HTTP only.
        headers: Extra headers, applied after the presets.

    Raises:
        InvalidUsageError: If a mandatory field is missing or invalid.
    """
    if content_type is None:
        raise InvalidUsageError("content_type is required")

    mount = normalize_mount(mount, protocol)
    validate_port(port)

    method = method.upper()
    if method not in SOURCE_METHODS:
        raise InvalidUsageError(f"invalid source method: {method}")

    preset: Dict[str, str] = {"User-Agent": user_agent or DEFAULT_USER_AGENT}
    public_flag = "1" if public else "0"

    if protocol is Protocol.HTTP:
        _add(preset, "ice-name", name)
        _add(preset, "ice-genre", genre)
        _add(preset, "ice-url", url)
        preset["ice-public"] = public_flag
        if audio_info:
            preset["ice-audio-info"] = format_audio_info(audio_info)
        _add(preset, "ice-description", description)
    else:
        _add(preset, "icy-name", name)
        _add(preset, "icy-url", url)
        preset["icy-pub"] = public_flag
        _add(preset, "icy-genre", genre)
        if audio_info and "bitrate" in audio_info:
            preset["icy-br"] = audio_info["bitrate"]

    if headers:
        preset.update(headers)

    return SourceConnection(
        mount=mount,
        content_type=content_type,
        user=user,
        password=password,
        host=host,
        port=port,
        protocol=protocol,
        headers=preset,
        method=method,
    )


def _add(headers: Dict[str, str], name: str, value: Optional[str]) -> None:
    if value is not None:
        headers[name] = value
