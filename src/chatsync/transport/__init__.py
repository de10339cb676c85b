"""Transport module for chatsync.

Carries exchanges between the session core and the remote agent
as typed event streams.
"""

from .base import AgentTransport, NotifyError, TransportError
from .factory import create_transport
from .models import DeltaEvent, DoneEvent, ErrorEvent, EventStream, StreamEvent, parse_event

__all__ = [
    "AgentTransport",
    "DeltaEvent",
    "DoneEvent",
    "ErrorEvent",
    "EventStream",
    "NotifyError",
    "StreamEvent",
    "TransportError",
    "create_transport",
    "parse_event",
]
