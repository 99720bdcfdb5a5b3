r"""
=============================================================================
RESPONSE PARSING
=============================================================================

Parses what streaming servers send back during a handshake or a metadata
update. Servers are old and inconsistent, so parsing is lenient wherever it
can be and strict only where a decision depends on it.

=============================================================================
HTTP ANSWERS
=============================================================================

    HTTP/1.0 200 OK\r\n                    ← status line (the only thing
    Server: Icecast 2.4.4\r\n                that decides success)
    \r\n

    HTTP/1.0 403 Forbidden\r\n
    Content-Type: text/html\r\n
    \r\n
    <html>Mountpoint in use</html>         ← body, kept for the error

    STATUS_LINE_PATTERN: ^(HTTP/\d\.\d|ICY)\s+(\d{3})(?:\s+(.*))?$

        (HTTP/\d\.\d|ICY)  - Version (some Shoutcast builds answer "ICY")
        (\d{3})            - Status code
        (.*)               - Optional reason phrase

=============================================================================
ICY ANSWERS
=============================================================================

    OK2\r\n                  ← accepted, server takes metadata updates
    icy-caps:11\r\n          ← capability lines (informational)
    \r\n

    OK\r\n                   ← accepted, legacy server, no metadata
    invalid password\r\n     ← anything else is a refusal

The exact token set differs between Shoutcast versions, so the accepted
tokens are module constants rather than literals inside the logic.

=============================================================================
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

from ..errors import BadAnswerError
from .status_codes import is_success, phrase_for


# Tokens meaning "accepted, metadata updates supported"
ICY_METADATA_TOKENS = ("OK2",)

# Any other line starting with this prefix means "accepted, no metadata"
ICY_ACCEPT_PREFIX = "OK"

STATUS_LINE_PATTERN = re.compile(r"^(HTTP/\d\.\d|ICY)\s+(\d{3})(?:\s+(.*))?$")
HEADER_PATTERN = re.compile(r"^([^:\s][^:]*):\s*(.*)$")


@dataclass(frozen=True)
class StatusLine:
    """A parsed response status line."""

    version: str
    code: int
    reason: str

    @property
    def is_success(self) -> bool:
        return is_success(self.code)


def parse_status_line(line: Optional[str]) -> StatusLine:
    """
    Parse an HTTP status line.

    A missing reason phrase is filled in from the status table.

    Raises:
        BadAnswerError: If the line is missing (server hung up) or is not a
            status line. The offending line is the error's reason.
    """
    if line is None:
        raise BadAnswerError(None)

    line = line.strip()
    match = STATUS_LINE_PATTERN.match(line)
    if not match:
        raise BadAnswerError(line or None)

    version, code, reason = match.groups()
    code = int(code)
    reason = (reason or "").strip() or phrase_for(code)
    return StatusLine(version=version, code=code, reason=reason)


def parse_header_lines(lines: Iterable[str]) -> Dict[str, str]:
    """
    Parse "Name: value" (or ICY style "name:value") lines into a dict.

    Names are normalized to lowercase; a repeated header keeps every value,
    comma separated. Lines that are not headers are skipped.
    """
    headers: Dict[str, str] = {}
    for line in lines:
        match = HEADER_PATTERN.match(line.strip())
        if not match:
            continue

        name, value = match.groups()
        name = name.strip().lower()
        value = value.strip()

        if name in headers:
            headers[name] += ", " + value
        else:
            headers[name] = value
    return headers


def content_length(headers: Mapping[str, str]) -> Optional[int]:
    """
    Get the announced body length from parsed headers.

    Returns None when the header is missing or not a plain number; the
    body then runs until the server closes.

        >>> content_length({"content-length": "6"})
        6
    """
    value = headers.get("content-length")
    if value is None:
        return None

    # Repeated headers were comma joined, the first one wins
    value = value.split(",")[0].strip()
    if not value.isdigit():
        return None
    return int(value)


def icy_answer_supports_metadata(line: Optional[str]) -> bool:
    """
    Classify the first line of an ICY answer.

    Returns:
        True for a metadata-capable accept ("OK2"), False for a legacy
        accept ("OK", "OK1"...).

    Raises:
        BadAnswerError: For anything else, carrying the line as reason,
            or None if the server closed without answering.
    """
    if line is None:
        raise BadAnswerError(None)

    answer = line.strip()
    if answer in ICY_METADATA_TOKENS:
        return True
    if answer.startswith(ICY_ACCEPT_PREFIX):
        return False
    raise BadAnswerError(answer or None)
