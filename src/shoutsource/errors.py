"""
=============================================================================
SOURCE CLIENT ERRORS
=============================================================================

Every failure this package reports is a SourceError. The concrete subclass
tells you WHAT went wrong; `kind` gives the same answer as an enum.
When a lower-level exception triggered the error, it is kept in `cause`.

=============================================================================
ERROR TAXONOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          SourceError                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   TransportError (socket level, always wraps an OSError-ish cause)  │
    │   ├── CreateError       socket / option / local bind setup failed   │
    │   ├── ConnectError      TCP connect failed (refused, timeout, DNS)  │
    │   ├── CloseError        closing an already-broken socket failed     │
    │   ├── WriteError        mid-session send failed                     │
    │   └── ReadError         mid-session receive failed                  │
    │                                                                      │
    │   BusyError             connect() on a connected handler            │
    │   NotConnectedError     operation needs a live session              │
    │   InvalidUsageError     malformed configuration                     │
    │   BadAnswerError        server answer did not match the protocol    │
    │   HttpAnswerError       server answered with a non-2xx status       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Nothing in this package retries. The error is surfaced as-is and the
caller decides whether to reconnect.

    try:
        handler.connect(conn)
    except HttpAnswerError as e:
        print(e.code, e.reason)      # 403 Forbidden
    except SourceError as e:
        print(describe_error(e))

=============================================================================
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Discriminator shared by all source errors."""
    CREATE = "create"
    CONNECT = "connect"
    CLOSE = "close"
    WRITE = "write"
    READ = "read"
    BUSY = "busy"
    NOT_CONNECTED = "not_connected"
    INVALID_USAGE = "invalid_usage"
    BAD_ANSWER = "bad_answer"
    HTTP_ANSWER = "http_answer"


class SourceError(Exception):
    """
    Base class for every error raised by shoutsource.

    Attributes:
        kind: Which branch of the taxonomy this error belongs to.
        cause: Underlying exception (socket error, timeout...) or None.
    """

    kind: ErrorKind = ErrorKind.INVALID_USAGE
    default_message = "source error"

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message or self.default_message)
        self.cause = cause

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message


# =============================================================================
# TRANSPORT ERRORS
# =============================================================================

class TransportError(SourceError):
    """A socket-level failure. `cause` holds the OS error."""

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class CreateError(TransportError):
    kind = ErrorKind.CREATE
    default_message = "could not create socket"


class ConnectError(TransportError):
    kind = ErrorKind.CONNECT
    default_message = "could not connect to host"


class CloseError(TransportError):
    kind = ErrorKind.CLOSE
    default_message = "could not close connection"


class WriteError(TransportError):
    kind = ErrorKind.WRITE
    default_message = "could not write data to host"


class ReadError(TransportError):
    kind = ErrorKind.READ
    default_message = "could not read data from host"


# =============================================================================
# STATE AND USAGE ERRORS
# =============================================================================

class BusyError(SourceError):
    kind = ErrorKind.BUSY
    default_message = "handler is already connected"


class NotConnectedError(SourceError):
    kind = ErrorKind.NOT_CONNECTED
    default_message = "handler is not connected"


class InvalidUsageError(SourceError):
    kind = ErrorKind.INVALID_USAGE
    default_message = "invalid usage"


# =============================================================================
# PROTOCOL ERRORS
# =============================================================================

class BadAnswerError(SourceError):
    """
    The server answered something this client cannot interpret.

    `reason` is the offending line (e.g. "invalid password" from a
    Shoutcast server), or None when the server closed without answering.
    """

    kind = ErrorKind.BAD_ANSWER
    default_message = "bad answer from server"

    def __init__(self, reason: Optional[str] = None, cause: Optional[BaseException] = None):
        message = self.default_message
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, cause)
        self.reason = reason


class HttpAnswerError(SourceError):
    """
    The server answered with a structured, non-2xx HTTP status.

    Attributes:
        code: Numeric status code (e.g. 403).
        reason: Reason phrase from the status line (e.g. "Forbidden").
        body: Whatever followed the headers, often an HTML error page.
    """

    kind = ErrorKind.HTTP_ANSWER
    default_message = "server refused the request"

    def __init__(self, code: int, reason: str = "", body: str = ""):
        super().__init__(f"{self.default_message}: {code} {reason}".rstrip())
        self.code = code
        self.reason = reason
        self.body = body


# =============================================================================
# DESCRIPTIONS
# =============================================================================

_DESCRIPTIONS = {
    ErrorKind.CREATE: "could not create socket",
    ErrorKind.CONNECT: "could not connect to host",
    ErrorKind.CLOSE: "could not close connection",
    ErrorKind.WRITE: "could not write data to host",
    ErrorKind.READ: "could not read data from host",
    ErrorKind.BUSY: "busy",
    ErrorKind.NOT_CONNECTED: "not connected",
    ErrorKind.INVALID_USAGE: "invalid usage",
}


def describe_error(exc: BaseException) -> str:
    """
    Get a human readable explanation for an error.

    Works on any exception; source errors get a kind-specific text that
    includes the underlying cause, the server's reason or the HTTP status.

    Examples:
        >>> describe_error(BusyError())
        'busy'
        >>> describe_error(HttpAnswerError(403, "Forbidden"))
        'http answer: 403 Forbidden'
    """
    if not isinstance(exc, SourceError):
        return f"unknown error: {exc}"

    if isinstance(exc, HttpAnswerError):
        return f"http answer: {exc.code} {exc.reason}".rstrip()

    if isinstance(exc, BadAnswerError):
        if exc.reason:
            return f"bad answer: {exc.reason}"
        return "bad answer"

    text = _DESCRIPTIONS[exc.kind]
    if exc.kind is ErrorKind.INVALID_USAGE and exc.message != exc.default_message:
        return f"{text}: {exc.message}"
    if exc.cause is not None:
        return f"{text}: {exc.cause}"
    return text
