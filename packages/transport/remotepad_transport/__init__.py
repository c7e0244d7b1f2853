"""Socket transport package for the remote-control client."""

from .models import DEFAULT_PORT, EndpointEvent, EndpointState, PeerAddress, SendResult, TransportMode
from .listener import PeerListener
from .transport import TransportEndpoint

__all__ = [
    "DEFAULT_PORT",
    "EndpointEvent",
    "EndpointState",
    "PeerAddress",
    "PeerListener",
    "SendResult",
    "TransportEndpoint",
    "TransportMode",
]
