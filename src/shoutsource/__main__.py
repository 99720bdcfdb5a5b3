"""
=============================================================================
SHOUTSOURCE CLI ENTRY POINT
=============================================================================

Command-line source client: connect to a server, optionally set metadata,
push a file, disconnect.

=============================================================================
USAGE
=============================================================================

    # Stream an MP3 to a local Icecast2 server
    python -m shoutsource --mount /live --file show.mp3

    # Shoutcast v1 (connects to port 8001 for the source)
    python -m shoutsource --protocol icy --port 8000 --file show.mp3

    # Pipe from an encoder
    ffmpeg -i in.wav -f mp3 - | python -m shoutsource --mount /live --file -

    # Only update the title of a running stream
    python -m shoutsource --mount /live --metadata-only \\
        --metadata "song=Artist - Title"

=============================================================================
NO PACING!
=============================================================================

The file is pushed as fast as the server accepts it. That is fine when
reading from a real-time encoder on stdin, but a plain file will be sent
far faster than real time and most servers will drop listeners or the
source. Use an encoder pipe for live streaming.

=============================================================================
"""

import argparse
import logging
import sys
from typing import BinaryIO, Dict, List, Optional

from . import __version__
from .config import HandlerConfig
from .core import Handler, manual_update_metadata
from .errors import InvalidUsageError, SourceError, describe_error
from .protocol import MPEG, Protocol, audio_info, connection, content_type_of_string, guess_content_type


logger = logging.getLogger("shoutsource")


def _setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.setLevel(level.upper())


def _parse_pairs(values: Optional[List[str]], option: str) -> Dict[str, str]:
    """Turn repeated KEY=VALUE options into a dict."""
    pairs: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"{option} expects KEY=VALUE, got {item!r}")
        pairs[key] = value
    return pairs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shoutsource",
        description="Source client for Icecast2 and Shoutcast servers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m shoutsource --mount /live --file show.mp3
  python -m shoutsource --protocol icy --port 8000 --file show.mp3
  python -m shoutsource --mount /live --metadata-only --metadata "song=Title"
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # SERVER ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", default="localhost",
                        help="Server host (default: localhost)")
    parser.add_argument("--port", "-p", type=int, default=8000,
                        help="Server port; ICY sources connect to port+1 (default: 8000)")
    parser.add_argument("--mount", "-m", default="/stream",
                        help="Mount point (default: /stream)")
    parser.add_argument("--protocol", choices=["http", "icy"], default="http",
                        help="http = Icecast2, icy = Shoutcast v1 (default: http)")
    parser.add_argument("--user", "-u", default="source",
                        help="Source user, HTTP only (default: source)")
    parser.add_argument("--password", "-P", default="hackme",
                        help="Source password (default: hackme)")
    parser.add_argument("--method", choices=["SOURCE", "PUT"], default="SOURCE",
                        help="HTTP source method; PUT needs Icecast >= 2.4 (default: SOURCE)")

    # ─────────────────────────────────────────────────────────────────────
    # STREAM ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--content-type", "-t", default=None,
                        help="MIME type (default: guessed from --file, else audio/mpeg)")
    parser.add_argument("--name", help="Stream name")
    parser.add_argument("--genre", help="Stream genre")
    parser.add_argument("--url", help="Stream homepage URL")
    parser.add_argument("--description", help="Stream description (HTTP only)")
    parser.add_argument("--public", action="store_true",
                        help="List the stream in public directories")
    parser.add_argument("--bitrate", type=int, help="Bitrate in kbps")
    parser.add_argument("--samplerate", type=int, help="Sample rate in Hz")
    parser.add_argument("--channels", type=int, help="Number of channels")
    parser.add_argument("--header", action="append", metavar="KEY=VALUE",
                        help="Extra source header (repeatable)")

    # ─────────────────────────────────────────────────────────────────────
    # DATA ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--file", "-f", metavar="PATH",
                        help="File to stream, '-' for stdin")
    parser.add_argument("--chunk-size", type=int, default=4096,
                        help="Bytes per send (default: 4096)")
    parser.add_argument("--metadata", action="append", metavar="KEY=VALUE",
                        help="Metadata pair, e.g. song=Title (repeatable)")
    parser.add_argument("--charset", default=None,
                        help="Metadata charset (default: ISO-8859-1)")
    parser.add_argument("--metadata-only", action="store_true",
                        help="Only update metadata, without a source connection")

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--ipv6", action="store_true", default=None,
                        help="Connect over IPv6")
    parser.add_argument("--bind", default=None,
                        help="Local address to bind")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Read/write timeout in seconds (default: 30)")
    parser.add_argument("--connection-timeout", type=float, default=None,
                        help="Connect timeout in seconds (default: 30)")

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--log-level", "-l",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        default="INFO",
                        help="Logging level (default: INFO)")
    parser.add_argument("--version", "-v", action="version",
                        version=f"shoutsource {__version__}")

    return parser


def _handler_config(args: argparse.Namespace) -> HandlerConfig:
    """Environment settings, overridden by explicit CLI options."""
    config = HandlerConfig.from_env()
    if args.ipv6 is not None:
        config.ipv6 = args.ipv6
    if args.bind is not None:
        config.bind = args.bind
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.connection_timeout is not None:
        config.connection_timeout = args.connection_timeout
    config.validate()
    return config


def _stream(handler: Handler, source: BinaryIO, chunk_size: int) -> int:
    total = 0
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            return total
        handler.send(chunk)
        total += len(chunk)


def run(args: argparse.Namespace) -> None:
    """Execute the CLI flow. Raises SourceError on failure."""
    config = _handler_config(args)
    protocol = Protocol.parse(args.protocol)
    metadata = _parse_pairs(args.metadata, "--metadata")
    headers = _parse_pairs(args.header, "--header")

    if args.chunk_size <= 0:
        raise InvalidUsageError("--chunk-size must be > 0")

    if args.metadata_only:
        if not metadata:
            raise InvalidUsageError("--metadata-only needs at least one --metadata")
        manual_update_metadata(
            host=args.host,
            port=args.port,
            protocol=protocol,
            user=args.user,
            password=args.password,
            mount=args.mount,
            metadata=metadata,
            charset=args.charset,
            connection_timeout=config.connection_timeout,
            timeout=config.timeout,
            headers=headers,
            ipv6=config.ipv6,
            bind=config.bind,
        )
        return

    if args.content_type:
        content_type = content_type_of_string(args.content_type)
    elif args.file and args.file != "-":
        content_type = guess_content_type(args.file)
    else:
        content_type = MPEG

    info = audio_info(samplerate=args.samplerate, channels=args.channels, bitrate=args.bitrate)
    conn = connection(
        mount=args.mount,
        content_type=content_type,
        name=args.name,
        genre=args.genre,
        url=args.url,
        public=args.public,
        audio_info=info,
        description=args.description,
        host=args.host,
        port=args.port,
        password=args.password,
        protocol=protocol,
        user=args.user,
        method=args.method,
        headers=headers,
    )

    with Handler(config) as handler:
        handler.connect(conn)
        if handler.get_icy_capability():
            print("Metadata updates enabled")

        if metadata:
            handler.update_metadata(metadata, args.charset)

        if args.file == "-":
            sent = _stream(handler, sys.stdin.buffer, args.chunk_size)
        elif args.file:
            try:
                source = open(args.file, "rb")
            except OSError as e:
                raise InvalidUsageError(f"cannot open {args.file}: {e.strerror}", cause=e) from e
            with source:
                sent = _stream(handler, source, args.chunk_size)
        else:
            sent = 0

        logger.info(f"Sent {sent} bytes to {conn.host}:{conn.source_port}{conn.mount}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    _setup_logging(args.log_level)

    try:
        run(args)
    except SourceError as e:
        print(f"Error: {describe_error(e)}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    sys.exit(main())
