"""
Unit tests for source connection records.
"""

from dataclasses import replace

import pytest

from shoutsource import __version__
from shoutsource.errors import InvalidUsageError
from shoutsource.protocol.content_types import MPEG, OGG_AUDIO
from shoutsource.protocol.source import (
    DEFAULT_USER_AGENT,
    Protocol,
    SourceConnection,
    audio_info,
    connection,
    format_audio_info,
    normalize_mount,
    validate_port,
)


class TestAudioInfo:
    """Tests for audio info helpers."""

    def test_only_given_values(self):
        """Test that omitted values are left out."""
        info = audio_info(samplerate=44100, channels=2, bitrate=128)
        assert info == {"samplerate": "44100", "channels": "2", "bitrate": "128"}
        assert audio_info() == {}

    def test_quality_formatting(self):
        """Test quality is rendered with two decimals."""
        assert audio_info(quality=5)["quality"] == "5.00"
        assert audio_info(quality=0.5)["quality"] == "0.50"

    def test_format_audio_info(self):
        """Test ice-audio-info rendering."""
        info = audio_info(samplerate=44100, channels=2)
        assert format_audio_info(info) == "samplerate=44100;channels=2"


class TestProtocol:
    """Tests for Protocol parsing."""

    def test_parse(self):
        """Test parsing protocol names in any case."""
        assert Protocol.parse("http") is Protocol.HTTP
        assert Protocol.parse(" ICY ") is Protocol.ICY

    def test_parse_unknown(self):
        """Test that an unknown protocol is invalid usage."""
        with pytest.raises(InvalidUsageError):
            Protocol.parse("rtmp")


class TestConnection:
    """Tests for the connection() builder."""

    def test_defaults(self):
        """Test default server address and credentials."""
        conn = connection(mount="/live", content_type=MPEG)

        assert conn.host == "localhost"
        assert conn.port == 8000
        assert conn.user == "source"
        assert conn.password == "hackme"
        assert conn.protocol is Protocol.HTTP
        assert conn.method == "SOURCE"
        assert conn.headers["User-Agent"] == DEFAULT_USER_AGENT
        assert __version__ in DEFAULT_USER_AGENT

    def test_http_presets(self):
        """Test that HTTP connections get ice-* headers."""
        conn = connection(
            mount="/live",
            content_type=MPEG,
            name="My Radio",
            genre="Jazz",
            url="http://radio.example",
            public=True,
            audio_info=audio_info(samplerate=44100, channels=2),
            description="Late night",
        )

        assert conn.headers["ice-name"] == "My Radio"
        assert conn.headers["ice-genre"] == "Jazz"
        assert conn.headers["ice-url"] == "http://radio.example"
        assert conn.headers["ice-public"] == "1"
        assert conn.headers["ice-audio-info"] == "samplerate=44100;channels=2"
        assert conn.headers["ice-description"] == "Late night"
        assert not any(name.startswith("icy-") for name in conn.headers)

    def test_http_public_defaults_to_zero(self):
        """Test that ice-public is always sent."""
        conn = connection(mount="/live", content_type=MPEG)
        assert conn.headers["ice-public"] == "0"
        assert "ice-name" not in conn.headers

    def test_icy_presets(self):
        """Test that ICY connections get icy-* headers."""
        conn = connection(
            mount="/",
            content_type=MPEG,
            protocol=Protocol.ICY,
            name="My Radio",
            genre="Jazz",
            url="http://radio.example",
            public=False,
            audio_info=audio_info(bitrate=128, samplerate=44100),
        )

        assert conn.headers["icy-name"] == "My Radio"
        assert conn.headers["icy-genre"] == "Jazz"
        assert conn.headers["icy-url"] == "http://radio.example"
        assert conn.headers["icy-pub"] == "0"
        assert conn.headers["icy-br"] == "128"
        assert not any(name.startswith("ice-") for name in conn.headers)

    def test_caller_headers_override_presets(self):
        """Test that explicit headers win over presets."""
        conn = connection(
            mount="/live",
            content_type=MPEG,
            name="Preset",
            headers={"ice-name": "Override", "X-Extra": "1"},
        )
        assert conn.headers["ice-name"] == "Override"
        assert conn.headers["X-Extra"] == "1"

    def test_custom_user_agent(self):
        """Test overriding the user agent."""
        conn = connection(mount="/live", content_type=MPEG, user_agent="myapp/2.0")
        assert conn.user_agent == "myapp/2.0"

    def test_mount_gets_leading_slash(self):
        """Test that a missing leading slash is added."""
        conn = connection(mount="live", content_type=MPEG)
        assert conn.mount == "/live"

    def test_icy_accepts_empty_mount(self):
        """Test that Shoutcast sources need no mount point."""
        conn = connection(mount="", content_type=MPEG, protocol=Protocol.ICY)
        assert conn.mount == "/"

    def test_http_rejects_root_mount(self):
        """Test that HTTP sources need a named mount."""
        with pytest.raises(InvalidUsageError):
            connection(mount="/", content_type=MPEG)

    def test_missing_fields_rejected(self):
        """Test that mount and content type are mandatory."""
        with pytest.raises(InvalidUsageError):
            connection(mount=None, content_type=MPEG)
        with pytest.raises(InvalidUsageError):
            connection(mount="/live", content_type=None)

    def test_invalid_port_rejected(self):
        """Test port range validation."""
        with pytest.raises(InvalidUsageError):
            connection(mount="/live", content_type=MPEG, port=0)
        with pytest.raises(InvalidUsageError):
            connection(mount="/live", content_type=MPEG, port=70000)

    def test_method(self):
        """Test SOURCE/PUT selection."""
        assert connection(mount="/live", content_type=MPEG, method="put").method == "PUT"
        with pytest.raises(InvalidUsageError):
            connection(mount="/live", content_type=MPEG, method="POST")


class TestSourceConnection:
    """Tests for SourceConnection behaviour."""

    def test_source_port(self):
        """Test that ICY sources connect to port + 1."""
        http = connection(mount="/live", content_type=MPEG, port=8000)
        icy = connection(mount="/", content_type=MPEG, port=8000, protocol=Protocol.ICY)

        assert http.source_port == 8000
        assert icy.source_port == 8001

    def test_replace(self):
        """Test deriving a variant with dataclasses.replace."""
        conn = connection(mount="/live", content_type=MPEG)
        other = replace(conn, port=8005, content_type=OGG_AUDIO)

        assert other.port == 8005
        assert other.content_type == OGG_AUDIO
        assert conn.port == 8000

    def test_with_headers(self):
        """Test that with_headers converts underscores and copies."""
        conn = connection(mount="/live", content_type=MPEG)
        other = conn.with_headers(icy_irc="#radio")

        assert other.headers["icy-irc"] == "#radio"
        assert "icy-irc" not in conn.headers

    def test_repr_hides_password(self):
        """Test that the password never shows up in repr."""
        conn = connection(mount="/live", content_type=MPEG, password="s3cret")
        assert "s3cret" not in repr(conn)
        assert "/live" in repr(conn)

    def test_headers_are_read_only(self):
        """Test that a built record cannot be changed through its headers."""
        conn = connection(mount="/live", content_type=MPEG)
        with pytest.raises(TypeError):
            conn.headers["X-Extra"] = "1"
        assert "X-Extra" not in conn.headers

    def test_headers_are_copied(self):
        """Test that the caller's dict is not shared with the record."""
        extra = {"X-Extra": "1"}
        conn = SourceConnection(mount="/live", content_type=MPEG, headers=extra)
        extra["X-Extra"] = "2"
        assert conn.headers["X-Extra"] == "1"


class TestValidation:
    """Tests for the shared mount and port checks."""

    def test_normalize_mount(self):
        """Test leading slash handling."""
        assert normalize_mount("live", Protocol.HTTP) == "/live"
        assert normalize_mount(" /live ", Protocol.HTTP) == "/live"
        assert normalize_mount("", Protocol.ICY) == "/"

    def test_normalize_mount_rejects(self):
        """Test missing and empty HTTP mounts."""
        with pytest.raises(InvalidUsageError):
            normalize_mount(None, Protocol.ICY)
        with pytest.raises(InvalidUsageError):
            normalize_mount("/", Protocol.HTTP)

    @pytest.mark.parametrize("port", [0, -1, 65536, 70000])
    def test_validate_port_rejects(self, port):
        """Test out-of-range ports."""
        with pytest.raises(InvalidUsageError):
            validate_port(port)

    def test_validate_port_accepts(self):
        """Test the valid range bounds."""
        validate_port(1)
        validate_port(65535)
