"""In-memory echo transport.

Streams the user's own words back as the agent reply.
Useful offline and for demos; nothing leaves the process.
"""

import asyncio
from collections import deque
from collections.abc import AsyncIterator

from uuid_extensions import uuid7

from ..session.models import Message, MessageSource
from .base import AgentTransport
from .models import DeltaEvent, DoneEvent, EventStream


class EchoTransport(AgentTransport):
    """Echo transport (session-only).

    Replies are streamed word by word with a small delay. Messages queued
    with ``push`` are delivered on the next ``connect_session``.
    """

    def __init__(self, delay: float = 0.03, prefix: str = "You said: "):
        self._delay = delay
        self._prefix = prefix
        self._pending: dict[str, deque[tuple[str, MessageSource]]] = {}
        self._streams: dict[str, EventStream] = {}
        self.cleared: list[str] = []

    @property
    def transport_type(self) -> str:
        return "echo"

    def push(self, session_id: str, text: str, source: MessageSource = MessageSource.EMAIL) -> None:
        """Queue an agent-initiated message for ``session_id``."""
        self._pending.setdefault(session_id, deque()).append((text, source))

    async def connect_session(self, session_id: str) -> EventStream:
        pending = self._pending.get(session_id)
        if pending:
            text, source = pending.popleft()
        else:
            text, source = "", MessageSource.CHAT
        return self._open(text, source)

    async def send_message(self, session_id: str, message: Message) -> EventStream:
        return self._open(self._prefix + message.text, MessageSource.CHAT)

    def _open(self, text: str, source: MessageSource) -> EventStream:
        handle = str(uuid7())
        stream = EventStream(self._events(handle, text), handle=handle, source=source)
        self._streams[handle] = stream
        return stream

    async def _events(self, handle: str, text: str) -> AsyncIterator[DeltaEvent | DoneEvent]:
        try:
            for word in _chunks(text):
                if self._delay:
                    await asyncio.sleep(self._delay)
                yield DeltaEvent(part_index=0, text=word)
            yield DoneEvent(usage={"completion_tokens": len(text.split())})
        finally:
            self._streams.pop(handle, None)

    def abort(self, handle: str) -> None:
        stream = self._streams.pop(handle, None)
        if stream is not None:
            stream.abort()

    async def notify_clear(self, session_id: str) -> None:
        self._pending.pop(session_id, None)
        self.cleared.append(session_id)


def _chunks(text: str) -> list[str]:
    """Split text into words, keeping the whitespace that follows each."""
    words: list[str] = []
    current = ""
    for char in text:
        if current and not char.isspace() and current[-1].isspace():
            words.append(current)
            current = ""
        current += char
    if current:
        words.append(current)
    return words
