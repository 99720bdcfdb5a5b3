"""
Socket-level components: transport, handshake, handler and metadata.
"""

from .transport import Transport, TransportState
from .handshake import Capabilities, handshake
from .metadata import manual_update_metadata, update_metadata
from .handler import Handler, Session, Status

__all__ = [
    "Transport",
    "TransportState",
    "Capabilities",
    "handshake",
    "Handler",
    "Session",
    "Status",
    "update_metadata",
    "manual_update_metadata",
]
