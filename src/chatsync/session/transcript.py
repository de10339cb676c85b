"""Ordered message store for one chat session.

Hides how messages are held and which one is open for streaming.
"""

from collections.abc import Callable

from .errors import AlreadyStreamingError, DuplicateIdError, NoOpenTargetError, TranscriptError
from .models import Message, Role, TextPart


class TranscriptStore:
    """Ordered, id-unique sequence of messages.

    At most one message is open for streaming and it is always the last one.
    Only the session controller writes here; everyone else reads snapshots.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._ids: set[str] = set()
        self._open_id: str | None = None
        # copies of closed messages, reused across snapshots
        self._copies: dict[str, Message] = {}
        self._clear_listeners: list[Callable[[], None]] = []

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def open_target_id(self) -> str | None:
        """Id of the message currently receiving deltas, if any."""
        return self._open_id

    def get(self, message_id: str) -> Message | None:
        """Return a copy of the message with ``message_id``, or None."""
        for message in self._messages:
            if message.id == message_id:
                return message.model_copy(deep=True)
        return None

    def add_clear_listener(self, callback: Callable[[], None]) -> None:
        """Register a callable invoked after every ``clear()``."""
        self._clear_listeners.append(callback)

    def append(self, message: Message) -> None:
        """Add a message to the end of the transcript.

        Raises:
            DuplicateIdError: If the id is already present
            AlreadyStreamingError: If a stream target is open
        """
        if message.id in self._ids:
            raise DuplicateIdError(message.id)
        if self._open_id is not None:
            raise AlreadyStreamingError(self._open_id)
        self._messages.append(message)
        self._ids.add(message.id)

    def open_stream_target(self, message: Message) -> None:
        """Append an assistant message and mark it open for streaming."""
        if self._open_id is not None:
            raise AlreadyStreamingError(self._open_id)
        if message.role is not Role.ASSISTANT:
            raise ValueError(f"Stream target must be an assistant message, got {message.role.value}")
        self.append(message)
        self._open_id = message.id

    def merge_delta(self, part_index: int, fragment: str) -> None:
        """Append ``fragment`` to ``parts[part_index]`` of the open target.

        A new index creates the part; skipped indexes are padded with empty
        text parts.
        """
        if self._open_id is None:
            raise NoOpenTargetError()
        if part_index < 0:
            raise ValueError(f"part_index must be >= 0, got {part_index}")

        target = self._messages[-1]
        while len(target.parts) <= part_index:
            target.parts.append(TextPart())

        part = target.parts[part_index]
        if not isinstance(part, TextPart):
            raise TranscriptError(f"Part {part_index} of {target.id} is '{part.type}', not text")
        part.text += fragment

    def close_stream_target(self, *, interrupted: bool = False) -> None:
        """Close the open target. Idempotent.

        Args:
            interrupted: Mark the message as cut short by the user
        """
        if self._open_id is None:
            return
        if interrupted:
            self._messages[-1].metadata.interrupted = True
        self._open_id = None

    def clear(self) -> None:
        """Drop every message and the open marker, then notify listeners."""
        self._messages = []
        self._ids = set()
        self._open_id = None
        self._copies = {}
        for listener in self._clear_listeners:
            listener()

    def snapshot(self) -> tuple[Message, ...]:
        """Ordered read-only view of the transcript.

        Returns copies, so changing them never affects the store. Closed
        messages never change again, so their copy is made once and shared
        by later snapshots; only the open target is copied on every call.
        """
        return tuple(self._copy_of(message) for message in self._messages)

    def _copy_of(self, message: Message) -> Message:
        if message.id == self._open_id:
            return message.model_copy(deep=True)
        copy = self._copies.get(message.id)
        if copy is None:
            copy = self._copies[message.id] = message.model_copy(deep=True)
        return copy
