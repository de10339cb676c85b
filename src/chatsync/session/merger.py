"""Folds remote stream events into the transcript.

Hides how deltas, completion, failure and cancellation map onto
transcript mutations for one exchange.
"""

from dataclasses import dataclass

from ..transport.models import DeltaEvent, DoneEvent, ErrorEvent
from .models import SessionStatus
from .transcript import TranscriptStore


@dataclass(frozen=True)
class ExchangeOutcome:
    """How an exchange ended, reported back to the controller."""

    status: SessionStatus
    reason: str | None = None
    usage: dict[str, int] | None = None


class StreamMerger:
    """Applies the events of one exchange to the open stream target.

    Events are applied strictly in arrival order. Once the exchange has
    finished or been cancelled, every further event is discarded.
    """

    def __init__(self, store: TranscriptStore) -> None:
        self._store = store
        self._target_id: str | None = None
        self._cancelled = False
        self._finished = False
        self._delta_count = 0

    @property
    def target_id(self) -> str | None:
        """Id of the assistant message this exchange writes to."""
        return self._target_id

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while events are still being accepted."""
        return not (self._cancelled or self._finished)

    @property
    def delta_count(self) -> int:
        return self._delta_count

    def bind(self, target_id: str) -> None:
        """Attach the merger to the stream target opened by the controller."""
        self._target_id = target_id

    def apply(self, event: DeltaEvent | DoneEvent | ErrorEvent) -> ExchangeOutcome | None:
        """Fold one event into the transcript.

        Returns:
            The outcome when the event ends the exchange, otherwise None
        """
        if not self.active:
            return None

        if isinstance(event, DeltaEvent):
            self._store.merge_delta(event.part_index, event.text)
            self._delta_count += 1
            return None

        if isinstance(event, DoneEvent):
            return self._finish(ExchangeOutcome(SessionStatus.IDLE, usage=event.usage))

        if isinstance(event, ErrorEvent):
            return self._finish(ExchangeOutcome(SessionStatus.ERROR, reason=event.reason))

        raise TypeError(f"Unexpected stream event: {type(event).__name__}")

    def fail(self, reason: str) -> ExchangeOutcome | None:
        """End the exchange after a transport failure, keeping partial text."""
        if not self.active:
            return None
        return self._finish(ExchangeOutcome(SessionStatus.ERROR, reason=reason))

    def complete(self) -> ExchangeOutcome | None:
        """End the exchange when the stream ran out without a done event."""
        if not self.active:
            return None
        return self._finish(ExchangeOutcome(SessionStatus.IDLE))

    def cancel(self) -> None:
        """Stop accepting events and close the target as interrupted."""
        if not self.active:
            return
        self._cancelled = True
        if self._target_id is not None and self._store.open_target_id == self._target_id:
            self._store.close_stream_target(interrupted=True)

    def _finish(self, outcome: ExchangeOutcome) -> ExchangeOutcome:
        self._finished = True
        if self._target_id is not None and self._store.open_target_id == self._target_id:
            self._store.close_stream_target()
        return outcome
