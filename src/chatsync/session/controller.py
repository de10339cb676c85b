"""Session controller: the single coordinator of a chat session.

Hidden design decisions:
- Status state machine (idle, sending, streaming, error)
- How an exchange task consumes the remote event stream
- Cancellation order for stop and clear
- Fire-and-forget clear notification
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from uuid_extensions import uuid7

from ..transport.base import AgentTransport, TransportError
from ..transport.models import DeltaEvent, EventStream
from .errors import MessageValidationError, SessionBusyError, TranscriptError
from .merger import ExchangeOutcome, StreamMerger
from .models import Message, MessageSource, SessionStatus
from .transcript import TranscriptStore

_BUSY = (SessionStatus.SENDING, SessionStatus.STREAMING)


class SessionController:
    """Owns the transcript and the status of one chat session.

    Every mutation runs on the event loop thread. Exactly one exchange may be
    in flight; ``stop`` and ``clear_history`` take effect synchronously, so no
    event of an aborted stream is applied after they return.
    """

    def __init__(
        self,
        transport: AgentTransport,
        store: TranscriptStore | None = None,
        session_id: str | None = None,
    ):
        """Initialize the controller.

        Args:
            transport: Transport used to reach the remote agent
            store: Transcript to write into (a new one by default)
            session_id: Session identifier (a uuid7 by default)
        """
        self._transport = transport
        self._store = store or TranscriptStore()
        self._session_id = session_id or str(uuid7())
        self._status = SessionStatus.IDLE
        self._error_reason: str | None = None
        self._last_usage: dict[str, int] | None = None
        self._merger: StreamMerger | None = None
        self._stream: EventStream | None = None
        self._task: asyncio.Task | None = None
        self._background_tasks: set[asyncio.Task] = set()
        self._update_callback: Callable[[], None] | None = None
        self._debug_callback: Callable[[str, str, str], None] | None = None

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def error_reason(self) -> str | None:
        """Failure reason while in the error state."""
        return self._error_reason

    @property
    def last_usage(self) -> dict[str, int] | None:
        """Token usage reported by the last completed exchange."""
        return self._last_usage

    @property
    def transcript(self) -> TranscriptStore:
        return self._store

    @property
    def is_busy(self) -> bool:
        return self._status in _BUSY

    def set_update_callback(self, callback: Callable[[], None] | None) -> None:
        """Set the callable invoked after every status or transcript change."""
        self._update_callback = callback

    def set_debug_callback(self, callback: Callable[[str, str, str], None] | None) -> None:
        """Set the debug callback for execution logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
                      level: 'debug', 'info', 'warning', 'error'
        """
        self._debug_callback = callback

    def _debug(self, level: str, message: str, component: str = "Session") -> None:
        if self._debug_callback:
            self._debug_callback(level, component, message)

    def _notify(self) -> None:
        if self._update_callback:
            self._update_callback()

    def _set_status(self, status: SessionStatus, reason: str | None = None) -> None:
        if status is self._status and reason == self._error_reason:
            return
        self._debug("debug", f"{self._status.value} -> {status.value}")
        self._status = status
        self._error_reason = reason if status is SessionStatus.ERROR else None
        self._notify()

    def send(self, text: str, source: MessageSource = MessageSource.CHAT) -> asyncio.Task:
        """Append a user message and start an exchange for it.

        Must be called from a running event loop.

        Returns:
            The exchange task; awaiting it waits for the exchange to end

        Raises:
            MessageValidationError: If ``text`` is empty or whitespace-only
            SessionBusyError: If an exchange is already in flight
        """
        if not text or not text.strip():
            raise MessageValidationError()
        if self.is_busy:
            raise SessionBusyError(self._status.value)

        message = Message.user(text, source=source)
        self._store.append(message)
        self._debug("info", f"Sending message {message.id} ({len(text)} chars)")
        self._set_status(SessionStatus.SENDING)
        return self._start_exchange(
            lambda: self._transport.send_message(self._session_id, message)
        )

    def connect(self) -> asyncio.Task:
        """Open the session stream to receive agent-initiated messages.

        Runs as an ordinary exchange, so ``send`` is rejected until the
        transport ends the stream; ``stop`` releases a stream that stays open.

        Raises:
            SessionBusyError: If an exchange is already in flight
        """
        if self.is_busy:
            raise SessionBusyError(self._status.value)

        self._debug("info", f"Connecting session {self._session_id}")
        self._set_status(SessionStatus.SENDING)
        return self._start_exchange(lambda: self._transport.connect_session(self._session_id))

    def stop(self) -> None:
        """Abort the in-flight exchange, keeping any text already received.

        No-op unless the session is sending or streaming.
        """
        if not self.is_busy:
            return

        merger, stream, task = self._merger, self._stream, self._task
        self._merger = self._stream = self._task = None

        if merger is not None:
            merger.cancel()
        if stream is not None:
            stream.abort()
            try:
                self._transport.abort(stream.handle)
            except Exception as e:
                self._debug("warning", f"Abort failed for {stream.handle}: {e}")
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

        self._debug("info", "Exchange stopped")
        self._set_status(SessionStatus.IDLE)

    def clear_history(self) -> None:
        """Empty the transcript and tell the remote side.

        Stops any in-flight exchange first. The remote notification is
        fire-and-forget; its failure is only logged.
        """
        if self.is_busy:
            self.stop()

        self._store.clear()
        self._last_usage = None
        self._debug("info", "History cleared")
        if self._status is SessionStatus.ERROR:
            self._set_status(SessionStatus.IDLE)
        else:
            self._notify()
        self._schedule_notify_clear()

    def _schedule_notify_clear(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._debug("warning", "No running event loop; clear notification skipped")
            return
        task = loop.create_task(self._notify_clear())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _notify_clear(self) -> None:
        try:
            await self._transport.notify_clear(self._session_id)
        except Exception as e:
            self._debug("warning", f"Clear notification failed: {e}", component="Transport")

    def _start_exchange(self, open_stream: Callable[[], Awaitable[EventStream]]) -> asyncio.Task:
        merger = StreamMerger(self._store)
        self._merger = merger
        self._stream = None
        task = asyncio.get_running_loop().create_task(self._run_exchange(merger, open_stream))
        self._task = task
        return task

    async def _run_exchange(
        self,
        merger: StreamMerger,
        open_stream: Callable[[], Awaitable[EventStream]],
    ) -> None:
        """Consume one exchange's stream until it ends or is cancelled."""
        try:
            try:
                stream = await open_stream()
            except TransportError as e:
                self._debug("error", f"Connection failed: {e}", component="Transport")
                self._finish(merger, merger.fail(str(e)))
                return
            except Exception as e:
                reason = str(e) or type(e).__name__
                self._debug("error", f"Connection failed: {reason}", component="Transport")
                self._finish(merger, merger.fail(reason))
                return

            if merger.cancelled:
                stream.abort()
                return
            self._stream = stream

            try:
                async for event in stream:
                    if merger is not self._merger or not merger.active:
                        break
                    outcome = self._handle_event(merger, stream, event)
                    if outcome is not None:
                        self._finish(merger, outcome)
                        return
            except TranscriptError:
                raise
            except Exception as e:
                reason = str(e) or type(e).__name__
                self._debug("error", f"Stream failed: {reason}", component="Transport")
                self._finish(merger, merger.fail(reason))
                return

            self._finish(merger, merger.complete())
        except asyncio.CancelledError:
            if merger.cancelled:
                return
            raise

    def _handle_event(self, merger: StreamMerger, stream: EventStream, event: Any) -> ExchangeOutcome | None:
        if self._status is SessionStatus.SENDING:
            self._set_status(SessionStatus.STREAMING)

        if isinstance(event, DeltaEvent) and merger.target_id is None:
            target = Message.assistant(source=stream.source)
            self._store.open_stream_target(target)
            merger.bind(target.id)
            self._debug("debug", f"Opened stream target {target.id}", component="Merger")

        outcome = merger.apply(event)
        if outcome is None:
            self._notify()
        return outcome

    def _finish(self, merger: StreamMerger, outcome: ExchangeOutcome | None) -> None:
        if outcome is None or merger is not self._merger:
            return
        self._merger = self._stream = self._task = None

        if outcome.status is SessionStatus.ERROR:
            self._debug("error", f"Exchange failed: {outcome.reason}", component="Merger")
        else:
            self._last_usage = outcome.usage or self._last_usage
            self._debug("info", f"Exchange complete ({merger.delta_count} deltas)", component="Merger")

        self._set_status(outcome.status, outcome.reason)
