"""Chat session core.

Keeps the ordered transcript of one session in sync with a remote agent:
optimistic sends, streamed replies, cancellation and clearing.
"""

from .models import (
    Message,
    MessageMetadata,
    MessageSource,
    OpaquePart,
    Part,
    Role,
    SessionStatus,
    TextPart,
)
from .errors import (
    AlreadyStreamingError,
    ChatSessionError,
    DuplicateIdError,
    MessageValidationError,
    NoOpenTargetError,
    SessionBusyError,
    TranscriptError,
)
from .transcript import TranscriptStore
from .merger import ExchangeOutcome, StreamMerger
from .controller import SessionController

__all__ = [
    "AlreadyStreamingError",
    "ChatSessionError",
    "DuplicateIdError",
    "ExchangeOutcome",
    "Message",
    "MessageMetadata",
    "MessageSource",
    "MessageValidationError",
    "NoOpenTargetError",
    "OpaquePart",
    "Part",
    "Role",
    "SessionBusyError",
    "SessionController",
    "SessionStatus",
    "StreamMerger",
    "TextPart",
    "TranscriptError",
    "TranscriptStore",
]
