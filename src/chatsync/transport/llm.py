"""Transport that talks to an LLM provider directly.

Hides the mapping from provider text chunks to session events and
keeps the per-session conversation history the provider needs.
"""

from collections.abc import AsyncIterator

from uuid_extensions import uuid7

from ..llm import ChatMessage, LLMProvider, StreamingResponse
from ..session.models import Message, MessageSource
from .base import AgentTransport
from .models import DeltaEvent, DoneEvent, ErrorEvent, EventStream


class LLMAgentTransport(AgentTransport):
    """Agent transport backed by an ``LLMProvider``.

    Each reply is streamed as text deltas into part 0 of the assistant
    message. Partial replies (stopped or failed) are kept in the history
    so the model sees what the user saw.
    """

    def __init__(
        self,
        llm: LLMProvider,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ):
        """Initialize the transport.

        Args:
            llm: Provider used to generate replies
            system_prompt: Optional system prompt prepended to every request
            temperature: Sampling temperature
            max_tokens: Maximum tokens per reply
        """
        self._llm = llm
        self._system_prompt = system_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._histories: dict[str, list[ChatMessage]] = {}
        self._streams: dict[str, EventStream] = {}

    @property
    def transport_type(self) -> str:
        return "llm"

    @property
    def model(self) -> str:
        return self._llm.model

    def history(self, session_id: str) -> list[ChatMessage]:
        """Conversation history sent to the provider for ``session_id``."""
        return list(self._histories.get(session_id, []))

    async def connect_session(self, session_id: str) -> EventStream:
        """Register the session; a direct LLM never pushes messages."""
        self._histories.setdefault(session_id, [])
        return EventStream(_finished(), handle=str(uuid7()), source=MessageSource.CHAT)

    async def send_message(self, session_id: str, message: Message) -> EventStream:
        history = self._histories.setdefault(session_id, [])
        history.append(ChatMessage(role="user", content=message.text))

        prompt = list(history)
        if self._system_prompt:
            prompt.insert(0, ChatMessage(role="system", content=self._system_prompt))

        response = await self._llm.chat_completion_stream(
            prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        handle = str(uuid7())
        stream = EventStream(
            self._events(session_id, handle, response),
            handle=handle,
            source=MessageSource.CHAT,
        )
        self._streams[handle] = stream
        return stream

    async def _events(
        self,
        session_id: str,
        handle: str,
        response: StreamingResponse,
    ) -> AsyncIterator[DeltaEvent | DoneEvent | ErrorEvent]:
        chunks: list[str] = []
        failure: str | None = None
        try:
            async for chunk in response:
                chunks.append(chunk)
                yield DeltaEvent(part_index=0, text=chunk)
        except Exception as e:
            failure = str(e) or type(e).__name__
        finally:
            self._streams.pop(handle, None)
            history = self._histories.get(session_id)
            if chunks and history is not None:
                history.append(ChatMessage(role="assistant", content="".join(chunks)))

        if failure is not None:
            yield ErrorEvent(reason=failure)
        else:
            yield DoneEvent(usage=response.usage)

    def abort(self, handle: str) -> None:
        stream = self._streams.pop(handle, None)
        if stream is not None:
            stream.abort()

    async def notify_clear(self, session_id: str) -> None:
        """Forget the provider-side history of ``session_id``."""
        self._histories[session_id] = []

    async def close(self) -> None:
        for stream in self._streams.values():
            stream.abort()
        self._streams.clear()
        await self._llm.close()


async def _finished() -> AsyncIterator[DoneEvent]:
    yield DoneEvent()
