"""
=============================================================================
HANDLER CONFIGURATION
=============================================================================

Settings that belong to a Handler rather than to one particular stream:
which IP version to use, which local address to bind, and how long to wait
on the network.

=============================================================================
TWO TIMEOUTS, TWO JOBS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   connect()  ───────────────►  connection_timeout                   │
    │      How long the TCP 3-way handshake may take.                     │
    │      A dead host fails here.                                        │
    │                                                                      │
    │   send() / recv() ──────────►  timeout                              │
    │      How long one blocking read or write may stall once the         │
    │      socket is up. A stuck server fails here.                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Both default to 30 seconds. They are the ONLY cancellation mechanism: there
is no background thread and no cancellation token.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    1. Code:         HandlerConfig(ipv6=True, timeout=10.0)
    2. Environment:  SHOUT_TIMEOUT=10 python -m shoutsource ...
    3. Defaults in this dataclass

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidUsageError


DEFAULT_TIMEOUT = 30.0


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class HandlerConfig:
    """
    Configuration for a source Handler.

    Attributes:
        ipv6: Connect over IPv6 instead of IPv4.
        bind: Local address to bind before connecting (None = system default).
        connection_timeout: Seconds allowed for the TCP connect.
        timeout: Seconds allowed for each blocking read/write afterwards.
        max_line_length: Longest response line accepted from a server.
    """

    ipv6: bool = False
    bind: Optional[str] = None
    connection_timeout: float = DEFAULT_TIMEOUT
    timeout: float = DEFAULT_TIMEOUT
    max_line_length: int = 8192

    @classmethod
    def from_env(cls) -> "HandlerConfig":
        """
        Create configuration from environment variables.

        SHOUT_IPV6                 "1"/"true" to use IPv6 (default: off)
        SHOUT_BIND                 Local bind address (default: none)
        SHOUT_CONNECTION_TIMEOUT   Connect timeout in seconds (default: 30)
        SHOUT_TIMEOUT              Read/write timeout in seconds (default: 30)
        """
        try:
            return cls(
                ipv6=_env_flag("SHOUT_IPV6"),
                bind=os.getenv("SHOUT_BIND") or None,
                connection_timeout=float(
                    os.getenv("SHOUT_CONNECTION_TIMEOUT", str(DEFAULT_TIMEOUT))
                ),
                timeout=float(os.getenv("SHOUT_TIMEOUT", str(DEFAULT_TIMEOUT))),
            )
        except ValueError as e:
            raise InvalidUsageError(f"invalid environment configuration: {e}", cause=e) from e

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by Handler at construction so a bad value fails immediately,
        not on the first connect.
        """
        if self.connection_timeout is None or self.connection_timeout <= 0:
            raise InvalidUsageError("connection_timeout must be > 0")

        if self.timeout is None or self.timeout <= 0:
            raise InvalidUsageError("timeout must be > 0")

        if self.bind is not None and not self.bind.strip():
            raise InvalidUsageError("bind must be a non-empty address or None")

        if self.max_line_length < 256:
            raise InvalidUsageError("max_line_length must be >= 256")
