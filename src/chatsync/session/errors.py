"""Exceptions raised by the session core.

Validation and busy errors are returned to the caller of ``send``.
Transcript errors signal a broken contract and are never caught by the core.
"""


class ChatSessionError(Exception):
    """Base class for session errors."""


class MessageValidationError(ChatSessionError):
    """Message text is empty or whitespace-only."""

    def __init__(self, message: str = "Message text must not be empty"):
        super().__init__(message)


class SessionBusyError(ChatSessionError):
    """An exchange is already in flight."""

    def __init__(self, status: str):
        super().__init__(f"Session is busy ({status}); stop the current exchange first")
        self.status = status


class TranscriptError(ChatSessionError):
    """Transcript contract violation."""


class DuplicateIdError(TranscriptError):
    """A message with the same id is already in the transcript."""

    def __init__(self, message_id: str):
        super().__init__(f"Duplicate message id: {message_id}")
        self.message_id = message_id


class AlreadyStreamingError(TranscriptError):
    """A stream target is already open."""

    def __init__(self, open_id: str):
        super().__init__(f"Message {open_id} is already open for streaming")
        self.open_id = open_id


class NoOpenTargetError(TranscriptError):
    """No stream target is open to receive deltas."""

    def __init__(self) -> None:
        super().__init__("No message is open for streaming")
