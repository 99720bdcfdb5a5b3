"""
=============================================================================
STATUS CODES SEEN FROM STREAMING SERVERS
=============================================================================

Only a handful of codes show up in practice when a source talks to
Icecast or Shoutcast:

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ OK - source accepted / metadata updated                  │
    │  400   │ Bad Request - malformed handshake, missing Content-Type  │
    │  401   │ Unauthorized - wrong user/password                       │
    │  403   │ Forbidden - mount in use, content type not allowed,      │
    │        │             too many sources                             │
    │  404   │ Not Found - metadata update for an unknown mount         │
    │  500   │ Internal Server Error                                    │
    └────────┴───────────────────────────────────────────────────────────┘

Success is ANY 2xx code, not just 200.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes relevant to source clients.

        >>> HTTPStatus.FORBIDDEN == 403
        True
        >>> HTTPStatus.FORBIDDEN.phrase
        'Forbidden'
    """

    CONTINUE = 100
    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204
    MOVED_PERMANENTLY = 301
    FOUND = 302
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    CONFLICT = 409
    UNSUPPORTED_MEDIA_TYPE = 415
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """Reason phrase used in status lines."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return is_success(self)


_STATUS_PHRASES = {
    HTTPStatus.CONTINUE: "Continue",
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.ACCEPTED: "Accepted",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.FOUND: "Found",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.CONFLICT: "Conflict",
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: "Unsupported Media Type",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}


def is_success(code: int) -> bool:
    """True for any 2xx status code."""
    return 200 <= code < 300


def phrase_for(code: int) -> str:
    """
    Get a reason phrase for an arbitrary numeric code.

    Used when a server sends a bare status line such as "HTTP/1.0 403".
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""
