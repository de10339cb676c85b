from collections.abc import AsyncIterator
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ..session.models import MessageSource


class DeltaEvent(BaseModel):
    """A fragment of assistant text for one message part."""

    model_config = ConfigDict(frozen=True)

    type: Literal["delta"] = "delta"
    part_index: int = Field(default=0, ge=0, description="Index of the part the text belongs to")
    text: str = Field(description="Text fragment to append")


class DoneEvent(BaseModel):
    """The exchange finished normally."""

    model_config = ConfigDict(frozen=True)

    type: Literal["done"] = "done"
    usage: dict[str, int] | None = Field(default=None, description="Token usage information")


class ErrorEvent(BaseModel):
    """The exchange failed on the remote side."""

    model_config = ConfigDict(frozen=True)

    type: Literal["error"] = "error"
    reason: str = Field(description="Human readable failure reason")


StreamEvent = Annotated[Union[DeltaEvent, DoneEvent, ErrorEvent], Field(discriminator="type")]

_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def parse_event(data: dict[str, Any] | str | bytes) -> DeltaEvent | DoneEvent | ErrorEvent:
    """Validate a wire payload (dict or JSON) into a typed event.

    Raises:
        pydantic.ValidationError: If the payload is not a known event
    """
    if isinstance(data, (str, bytes)):
        return _event_adapter.validate_json(data)
    return _event_adapter.validate_python(data)


class EventStream:
    """Lazy, finite sequence of events for one exchange.

    Acts as an async iterator over typed events. Once ``abort()`` has been
    called, iteration stops and any event still pending is discarded.

    Usage:
        stream = await transport.send_message(session_id, message)
        async for event in stream:
            ...
    """

    def __init__(
        self,
        events: AsyncIterator[DeltaEvent | DoneEvent | ErrorEvent],
        handle: str,
        source: MessageSource = MessageSource.CHAT,
    ):
        """Initialize with an async iterator of events.

        Args:
            events: Async iterator yielding events
            handle: Opaque id used to abort the exchange
            source: Source stamped on the assistant message this stream produces
        """
        self._events = events
        self._handle = handle
        self._source = source
        self._aborted = False

    @property
    def handle(self) -> str:
        return self._handle

    @property
    def source(self) -> MessageSource:
        return self._source

    @property
    def aborted(self) -> bool:
        return self._aborted

    def abort(self) -> None:
        """Stop delivering events."""
        self._aborted = True

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> DeltaEvent | DoneEvent | ErrorEvent:
        if self._aborted:
            raise StopAsyncIteration
        event = await self._events.__anext__()
        if self._aborted:
            raise StopAsyncIteration
        return event
