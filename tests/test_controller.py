"""Unit tests for the session controller."""
import asyncio

import pytest

from chatsync.session import (
    MessageSource,
    MessageValidationError,
    Role,
    SessionBusyError,
    SessionController,
    SessionStatus,
)
from chatsync.transport import DeltaEvent, DoneEvent, ErrorEvent, TransportError

from conftest import settle


class TestSend:
    """Tests for sending messages."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_rejected(self, controller, transport, text):
        """Test that blank text never reaches the transcript or transport."""
        with pytest.raises(MessageValidationError):
            controller.send(text)

        assert len(controller.transcript) == 0
        assert controller.status == SessionStatus.IDLE
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_user_message_appended_before_reply(self, controller, transport):
        """Test that the user message is visible immediately."""
        controller.send("hello")

        snapshot = controller.transcript.snapshot()
        assert [m.role for m in snapshot] == [Role.USER]
        assert snapshot[0].text == "hello"
        assert controller.status == SessionStatus.SENDING

        await settle()
        assert transport.sent[0][0] == "session-1"
        assert transport.sent[0][1].id == snapshot[0].id

    @pytest.mark.asyncio
    async def test_full_exchange(self, controller, transport):
        """Test deltas merging into one assistant message."""
        task = controller.send("hi")
        await settle()

        transport.emit(DeltaEvent(text="Hel"))
        await settle()
        assert controller.status == SessionStatus.STREAMING
        assert controller.transcript.snapshot()[-1].text == "Hel"

        transport.emit(DeltaEvent(text="lo"), DoneEvent(usage={"total_tokens": 12}))
        await task

        user, reply = controller.transcript.snapshot()
        assert reply.role == Role.ASSISTANT
        assert reply.text == "Hello"
        assert reply.metadata.source == MessageSource.CHAT
        assert controller.status == SessionStatus.IDLE
        assert controller.last_usage == {"total_tokens": 12}
        assert controller.transcript.open_target_id is None

    @pytest.mark.asyncio
    async def test_send_while_busy_rejected(self, controller, transport):
        """Test that one exchange at a time is allowed."""
        controller.send("first")

        with pytest.raises(SessionBusyError) as exc_info:
            controller.send("second")

        assert exc_info.value.status == "sending"
        assert len(controller.transcript) == 1
        controller.stop()

    @pytest.mark.asyncio
    async def test_multiple_parts(self, controller, transport):
        """Test deltas addressed to different parts."""
        task = controller.send("hi")
        await settle()
        transport.emit(
            DeltaEvent(part_index=0, text="a"),
            DeltaEvent(part_index=1, text="b"),
            DeltaEvent(part_index=0, text="c"),
            DoneEvent(),
        )
        await task

        reply = controller.transcript.snapshot()[-1]
        assert [p.text for p in reply.parts] == ["ac", "b"]

    @pytest.mark.asyncio
    async def test_done_without_deltas_adds_no_reply(self, controller, transport):
        """Test that an empty reply leaves no assistant message."""
        task = controller.send("hi")
        await settle()
        transport.emit(DoneEvent())
        await task

        assert [m.role for m in controller.transcript.snapshot()] == [Role.USER]
        assert controller.status == SessionStatus.IDLE

    @pytest.mark.asyncio
    async def test_stream_end_without_done_is_success(self, controller, transport):
        """Test that an exhausted stream completes the exchange."""
        task = controller.send("hi")
        await settle()
        transport.emit(DeltaEvent(text="ok"))
        transport.end()
        await task

        assert controller.status == SessionStatus.IDLE
        assert controller.transcript.open_target_id is None

    @pytest.mark.asyncio
    async def test_update_callback_called(self, controller, transport):
        """Test that observers hear about every change."""
        calls = []
        controller.set_update_callback(lambda: calls.append(controller.status))
        task = controller.send("hi")
        await settle()
        transport.emit(DeltaEvent(text="a"), DoneEvent())
        await task

        assert calls[0] == SessionStatus.SENDING
        assert SessionStatus.STREAMING in calls
        assert calls[-1] == SessionStatus.IDLE


class TestFailures:
    """Tests for failed exchanges."""

    @pytest.mark.asyncio
    async def test_error_event(self, controller, transport):
        """Test that an error event keeps partial text and records the reason."""
        task = controller.send("hi")
        await settle()
        transport.emit(DeltaEvent(text="half"), ErrorEvent(reason="agent crashed"))
        await task

        assert controller.status == SessionStatus.ERROR
        assert controller.error_reason == "agent crashed"
        assert controller.transcript.snapshot()[-1].text == "half"
        assert controller.transcript.open_target_id is None

    @pytest.mark.asyncio
    async def test_send_allowed_after_error(self, controller, transport):
        """Test that the error state does not block the next send."""
        task = controller.send("hi")
        await settle()
        transport.emit(ErrorEvent(reason="boom"))
        await task

        controller.send("again")
        assert controller.status == SessionStatus.SENDING
        assert controller.error_reason is None
        controller.stop()

    @pytest.mark.asyncio
    async def test_connection_failure(self, controller, transport):
        """Test that a stream that cannot be opened fails the exchange."""
        transport.open_error = TransportError("unreachable")
        await controller.send("hi")

        assert controller.status == SessionStatus.ERROR
        assert controller.error_reason == "unreachable"
        assert [m.role for m in controller.transcript.snapshot()] == [Role.USER]
        assert any(level == "error" for level, _, _ in controller.debug_records)

    @pytest.mark.asyncio
    async def test_unexpected_open_error(self, controller, transport):
        """Test that any failure to open the stream ends in the error state."""
        transport.open_error = ConnectionRefusedError("refused")
        await controller.send("hi")

        assert controller.status == SessionStatus.ERROR
        assert controller.error_reason == "refused"

        transport.open_error = None
        task = controller.send("again")
        assert controller.status == SessionStatus.SENDING
        await settle()
        transport.emit(DoneEvent())
        await task
        assert controller.status == SessionStatus.IDLE

    @pytest.mark.asyncio
    async def test_open_error_without_message(self, controller, transport):
        """Test that the exception type is the reason when it has no text."""
        transport.open_error = OSError()
        await controller.send("hi")

        assert controller.error_reason == "OSError"

    @pytest.mark.asyncio
    async def test_stream_raises_mid_way(self, controller, transport):
        """Test that a transport exception becomes the error status."""
        task = controller.send("hi")
        await settle()
        transport.emit(DeltaEvent(text="par"), ConnectionResetError("reset by peer"))
        await task

        assert controller.status == SessionStatus.ERROR
        assert controller.error_reason == "reset by peer"
        assert controller.transcript.snapshot()[-1].text == "par"


class TestStop:
    """Tests for stopping an exchange."""

    def test_stop_when_idle_is_noop(self, controller, transport):
        """Test that stop without an exchange changes nothing."""
        controller.stop()
        assert controller.status == SessionStatus.IDLE
        assert transport.aborted == []

    @pytest.mark.asyncio
    async def test_stop_mid_stream(self, controller, transport):
        """Test that stop keeps partial text and discards late events."""
        controller.send("hi")
        await settle()
        transport.emit(DeltaEvent(text="par"))
        await settle()

        controller.stop()

        assert controller.status == SessionStatus.IDLE
        assert transport.aborted == ["h1"]
        reply = controller.transcript.snapshot()[-1]
        assert reply.text == "par"
        assert reply.metadata.interrupted is True
        assert controller.transcript.open_target_id is None

        transport.emit(DeltaEvent(text="tial"), DoneEvent(usage={"total_tokens": 1}))
        await settle()

        assert controller.transcript.snapshot()[-1].text == "par"
        assert controller.status == SessionStatus.IDLE
        assert controller.last_usage is None

    @pytest.mark.asyncio
    async def test_stop_before_stream_opens(self, controller, transport):
        """Test stopping while still sending."""
        controller.send("hi")
        controller.stop()
        await settle()

        assert controller.status == SessionStatus.IDLE
        assert [m.role for m in controller.transcript.snapshot()] == [Role.USER]

    @pytest.mark.asyncio
    async def test_abort_failure_is_logged(self, controller, transport):
        """Test that a failing transport abort does not break stop."""
        transport.abort_error = RuntimeError("gone")
        controller.send("hi")
        await settle()
        transport.emit(DeltaEvent(text="x"))
        await settle()

        controller.stop()

        assert controller.status == SessionStatus.IDLE
        assert any(level == "warning" and "gone" in msg for level, _, msg in controller.debug_records)

    @pytest.mark.asyncio
    async def test_new_send_after_stop(self, controller, transport):
        """Test that the old stream cannot leak into the next exchange."""
        controller.send("first")
        await settle()
        transport.emit(DeltaEvent(text="old"))
        await settle()
        controller.stop()

        task = controller.send("second")
        await settle()
        transport.emit(DeltaEvent(text="stale"), stream=0)
        transport.emit(DeltaEvent(text="new"), DoneEvent())
        await task

        texts = [m.text for m in controller.transcript.snapshot()]
        assert texts == ["first", "old", "second", "new"]
        assert controller.status == SessionStatus.IDLE


class TestClearHistory:
    """Tests for clearing the transcript."""

    @pytest.mark.asyncio
    async def test_clear_mid_stream(self, controller, transport):
        """Test that clear stops the exchange and empties the transcript."""
        controller.send("hi")
        await settle()
        transport.emit(DeltaEvent(text="par"))
        await settle()

        controller.clear_history()

        assert len(controller.transcript) == 0
        assert controller.status == SessionStatus.IDLE
        assert transport.aborted == ["h1"]

        transport.emit(DeltaEvent(text="late"))
        await settle()
        assert len(controller.transcript) == 0
        assert transport.cleared == ["session-1"]

    @pytest.mark.asyncio
    async def test_clear_resets_error(self, controller, transport):
        """Test that clear leaves the error state."""
        task = controller.send("hi")
        await settle()
        transport.emit(ErrorEvent(reason="x"))
        await task

        controller.clear_history()

        assert controller.status == SessionStatus.IDLE
        assert controller.error_reason is None

    @pytest.mark.asyncio
    async def test_clear_notification_failure_logged(self, controller, transport):
        """Test that a failed remote clear is only logged."""
        transport.clear_error = TransportError("clear rejected")
        controller.clear_history()
        await settle()

        assert len(controller.transcript) == 0
        assert controller.status == SessionStatus.IDLE
        assert ("warning", "Transport", "Clear notification failed: clear rejected") in controller.debug_records

    def test_clear_without_loop(self, controller, transport):
        """Test clearing outside an event loop skips the notification."""
        controller.clear_history()

        assert transport.cleared == []
        assert any(level == "warning" for level, _, _ in controller.debug_records)


class TestConnect:
    """Tests for agent-initiated messages."""

    @pytest.mark.asyncio
    async def test_connect_receives_email_message(self, controller, transport):
        """Test that a pushed message arrives without a user message."""
        transport.source = MessageSource.EMAIL
        task = controller.connect()
        await settle()
        transport.emit(DeltaEvent(text="New mail from Lisa"), DoneEvent())
        await task

        (message,) = controller.transcript.snapshot()
        assert message.role == Role.ASSISTANT
        assert message.metadata.source == MessageSource.EMAIL
        assert transport.connected == ["session-1"]

    @pytest.mark.asyncio
    async def test_connect_while_busy_rejected(self, controller, transport):
        """Test that connect respects the single exchange rule."""
        controller.send("hi")
        with pytest.raises(SessionBusyError):
            controller.connect()
        controller.stop()

    @pytest.mark.asyncio
    async def test_open_connect_stream_blocks_until_stopped(self, controller, transport):
        """Test that a connect stream that never ends can be released with stop."""
        controller.connect()
        await settle()

        with pytest.raises(SessionBusyError):
            controller.send("hi")

        controller.stop()
        assert transport.aborted == ["h1"]

        task = controller.send("hi")
        await settle()
        transport.emit(DeltaEvent(text="ok"), DoneEvent())
        await task
        assert [m.text for m in controller.transcript.snapshot()] == ["hi", "ok"]

    @pytest.mark.asyncio
    async def test_session_id_generated(self, transport):
        """Test that a session id is generated when not given."""
        first = SessionController(transport)
        second = SessionController(transport)
        assert first.session_id != second.session_id
        await asyncio.sleep(0)
