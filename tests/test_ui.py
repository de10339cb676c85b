"""Tests for the TUI helpers and a headless run of the app."""
import asyncio
from datetime import datetime, timezone

import pytest
from rich.markdown import Markdown
from textual.widgets import TextArea

from chatsync.session import Message, MessageSource, SessionController, SessionStatus
from chatsync.transport.in_memory import EchoTransport
from chatsync.ui import ChatApp, LogLevel, MessageCard, ViewOptions
from chatsync.ui.formatting import clean_latex, format_time, message_to_debug_json, render_markdown
from chatsync.ui.themes import DARK_THEME, LIGHT_THEME, next_theme
from chatsync.ui.widgets import WelcomeCard


class TestFormatting:
    """Tests for formatting helpers."""

    def test_clean_latex(self):
        assert clean_latex(r"\(x \times y\)") == "x x y"
        assert clean_latex(r"$\frac{a}{b}$") == "(a)/(b)"

    def test_render_markdown(self):
        assert isinstance(render_markdown("# Title"), Markdown)

    def test_format_time(self):
        """Test that timestamps show hours and minutes in local time."""
        message = Message.user("x")
        message.metadata.created_at = datetime(2024, 5, 1, 13, 7, tzinfo=timezone.utc)
        expected = message.metadata.created_at.astimezone().strftime("%H:%M")
        assert format_time(message) == expected

    def test_debug_json(self):
        message = Message.user("hello")
        dumped = message_to_debug_json(message)
        assert '"role": "user"' in dumped
        assert message.id in dumped


class TestViewOptions:
    """Tests for ViewOptions and themes."""

    def test_toggles(self):
        options = ViewOptions()
        assert options.toggled_debug().show_debug is True
        assert options.with_theme(LIGHT_THEME.name).theme == LIGHT_THEME.name
        assert options.show_debug is False

    def test_next_theme_cycles(self):
        assert next_theme(DARK_THEME.name) == LIGHT_THEME.name
        assert next_theme(LIGHT_THEME.name) == DARK_THEME.name

    def test_log_level_from_string(self):
        assert LogLevel.from_string("WARNING") == LogLevel.WARNING
        assert LogLevel.from_string("nonsense") == LogLevel.DEBUG


async def _wait_idle(pilot, controller: SessionController, count: int) -> None:
    for _ in range(100):
        if controller.status is SessionStatus.IDLE and len(controller.transcript) == count:
            break
        await asyncio.sleep(0.01)
    await pilot.pause()


class TestChatApp:
    """Headless tests for ChatApp."""

    @pytest.mark.asyncio
    async def test_send_and_clear(self):
        """Test that a reply shows up as cards and clear brings back the welcome card."""
        transport = EchoTransport(delay=0)
        controller = SessionController(transport)
        app = ChatApp(controller)

        async with app.run_test() as pilot:
            await _wait_idle(pilot, controller, 0)
            assert len(app.query(WelcomeCard)) == 1

            app.query_one("#chat-input", TextArea).text = "ping"
            await pilot.press("ctrl+j")
            await _wait_idle(pilot, controller, 2)

            cards = list(app.query(MessageCard))
            assert [card.text for card in cards] == ["ping", "You said: ping"]
            assert len(app.query(WelcomeCard)) == 0

            await pilot.press("ctrl+k")
            await pilot.pause()
            assert len(app.query(MessageCard)) == 0
            assert len(app.query(WelcomeCard)) == 1

    @pytest.mark.asyncio
    async def test_pushed_mail_arrives_on_mount(self):
        """Test that agent-initiated messages are fetched when the app starts."""
        transport = EchoTransport(delay=0)
        controller = SessionController(transport, session_id="s")
        transport.push("s", "Summary of new mail")
        app = ChatApp(controller)

        async with app.run_test() as pilot:
            await _wait_idle(pilot, controller, 1)
            (message,) = controller.transcript.snapshot()
            assert message.metadata.source == MessageSource.EMAIL
            card = app.query_one(MessageCard)
            assert card.has_class("email-message")

    @pytest.mark.asyncio
    async def test_shortcuts_reach_app_while_typing(self):
        """Test that clear and debug view work with the input focused."""
        transport = EchoTransport(delay=0)
        controller = SessionController(transport)
        app = ChatApp(controller)

        async with app.run_test() as pilot:
            await _wait_idle(pilot, controller, 0)
            text_area = app.query_one("#chat-input", TextArea)
            text_area.text = "hello"
            await pilot.press("ctrl+j")
            await _wait_idle(pilot, controller, 2)

            text_area.text = "draft"
            assert app.focused is text_area
            await pilot.press("ctrl+d")
            assert app.options.show_debug is True
            assert text_area.text == "draft"

            await pilot.press("ctrl+k")
            await pilot.pause()
            assert len(controller.transcript) == 0
            assert text_area.text == "draft"

    @pytest.mark.asyncio
    async def test_theme_toggle(self):
        controller = SessionController(EchoTransport(delay=0))
        app = ChatApp(controller)

        async with app.run_test() as pilot:
            assert app.theme == DARK_THEME.name
            await pilot.press("ctrl+t")
            assert app.theme == LIGHT_THEME.name
