"""Pytest configuration and shared fixtures."""
import asyncio
from collections.abc import AsyncIterator

import pytest

from chatsync.llm import ChatMessage, LLMProvider, StreamingResponse
from chatsync.session import Message, MessageSource, SessionController
from chatsync.transport import AgentTransport, EventStream

_END = object()


class ScriptedTransport(AgentTransport):
    """Transport whose streams are fed by the test, one event at a time."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, Message]] = []
        self.connected: list[str] = []
        self.aborted: list[str] = []
        self.cleared: list[str] = []
        self.open_error: Exception | None = None
        self.abort_error: Exception | None = None
        self.clear_error: Exception | None = None
        self.source = MessageSource.CHAT
        self.closed = False
        self._queues: list[asyncio.Queue] = []

    @property
    def transport_type(self) -> str:
        return "scripted"

    async def connect_session(self, session_id: str) -> EventStream:
        self.connected.append(session_id)
        return self._open()

    async def send_message(self, session_id: str, message: Message) -> EventStream:
        self.sent.append((session_id, message))
        return self._open()

    def _open(self) -> EventStream:
        if self.open_error is not None:
            raise self.open_error
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        return EventStream(_drain(queue), handle=f"h{len(self._queues)}", source=self.source)

    def emit(self, *events, stream: int = -1) -> None:
        """Queue events (or exceptions to raise) on a stream, the latest by default."""
        for event in events:
            self._queues[stream].put_nowait(event)

    def end(self, stream: int = -1) -> None:
        """End a stream without a terminal event."""
        self._queues[stream].put_nowait(_END)

    @property
    def stream_count(self) -> int:
        return len(self._queues)

    def abort(self, handle: str) -> None:
        self.aborted.append(handle)
        if self.abort_error is not None:
            raise self.abort_error

    async def notify_clear(self, session_id: str) -> None:
        self.cleared.append(session_id)
        if self.clear_error is not None:
            raise self.clear_error

    async def close(self) -> None:
        self.closed = True


async def _drain(queue: asyncio.Queue) -> AsyncIterator:
    while True:
        item = await queue.get()
        if item is _END:
            return
        if isinstance(item, Exception):
            raise item
        yield item


class FakeLLM(LLMProvider):
    """LLM provider that streams canned chunks and records prompts."""

    def __init__(self, chunks: list[str], usage: dict | None = None, fail_after: int | None = None):
        self.chunks = chunks
        self.usage = usage
        self.fail_after = fail_after
        self.prompts: list[list[ChatMessage]] = []
        self.closed = False

    @property
    def model(self) -> str:
        return "fake-model"

    async def chat_completion_stream(self, messages, model=None, temperature=0.7, max_tokens=None, **kwargs):
        self.prompts.append(list(messages))

        async def _generate():
            for i, chunk in enumerate(self.chunks):
                if self.fail_after is not None and i == self.fail_after:
                    raise RuntimeError("connection reset")
                yield chunk
            if self.usage is not None:
                response.set_usage(self.usage)

        response = StreamingResponse(_generate())
        return response

    async def close(self) -> None:
        self.closed = True


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def transport():
    """Return a scripted transport."""
    return ScriptedTransport()


@pytest.fixture
def controller(transport):
    """Return a controller on the scripted transport, recording debug output."""
    ctrl = SessionController(transport, session_id="session-1")
    ctrl.debug_records = []
    ctrl.set_debug_callback(lambda level, component, message: ctrl.debug_records.append((level, component, message)))
    return ctrl
