"""Main Textual TUI application.

Orchestrates the UI components and routes user interaction to the
SessionController. Every session update re-syncs the view from a fresh
transcript snapshot; the render cache keeps that cheap.
"""

import asyncio
import contextlib

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header

from ..render import DEFAULT_MAX_ENTRIES, MarkdownRenderCache
from ..session import MessageValidationError, SessionBusyError, SessionController
from ..transport import AgentTransport
from .config import APP_TITLE, LogLevel
from .formatting import render_markdown
from .models import ViewOptions
from .styles import APP_CSS
from .themes import THEMES, next_theme
from .widgets import ChatInputBar, DebugPanel, StatusBar, TranscriptView


class ChatApp(App):
    """Textual TUI for one chat session."""

    CSS = APP_CSS
    TITLE = APP_TITLE

    # priority: the chat TextArea keeps focus and binds ctrl+k / ctrl+d itself
    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("escape", "stop_exchange", "Stop", priority=True),
        Binding("ctrl+k", "clear_chat", "Clear Chat", priority=True),
        Binding("ctrl+r", "copy_last_response", "Copy Response", priority=True),
        Binding("ctrl+t", "toggle_theme", "Theme", priority=True),
        Binding("ctrl+d", "toggle_debug_view", "Debug View", priority=True),
        Binding("ctrl+l", "toggle_log", "Log", priority=True),
    ]

    def __init__(
        self,
        controller: SessionController,
        render_cache: MarkdownRenderCache | None = None,
        log_level: str | None = None,
        options: ViewOptions | None = None,
        subtitle: str = "",
    ) -> None:
        super().__init__()
        self._controller = controller
        self._cache = render_cache or MarkdownRenderCache(render_markdown)
        self._cache.attach(controller.transcript)
        self._log_level = log_level
        self._options = options or ViewOptions()
        self._subtitle = subtitle

    @property
    def options(self) -> ViewOptions:
        return self._options

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield TranscriptView(id="transcript")
        yield DebugPanel(id="debug-panel")
        with Vertical(id="bottom-bar"):
            yield StatusBar(id="status-bar")
            yield ChatInputBar(id="chat-input-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        for theme in THEMES:
            self.register_theme(theme)
        self.theme = self._options.theme
        self.sub_title = " | ".join(filter(None, [self._controller.session_id, self._subtitle]))

        if self._log_level is not None:
            log_panel = self.query_one("#debug-panel", DebugPanel)
            log_panel.log_level = LogLevel.from_string(self._log_level)
            log_panel.show()
            log_panel.log("TUI", f"Log panel enabled with level: {self._log_level.upper()}", LogLevel.INFO)

        self._controller.set_debug_callback(self._on_debug)
        self._controller.set_update_callback(self._refresh_view)
        self._refresh_view()
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

        # Picks up anything the agent queued while we were away
        self._controller.connect()

    def on_unmount(self) -> None:
        """Detach from the session so late updates do not touch dead widgets."""
        self._controller.stop()
        self._controller.set_update_callback(None)
        self._controller.set_debug_callback(None)

    def _on_debug(self, level: str, component: str, message: str) -> None:
        """Route session debug messages to the log panel."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        log_panel.log(component, message, LogLevel.from_string(level))

    def _refresh_view(self) -> None:
        controller = self._controller
        snapshot = controller.transcript.snapshot()
        self.query_one("#transcript", TranscriptView).sync(snapshot, self._cache, self._options)
        self.query_one("#status-bar", StatusBar).update_status(
            controller.status,
            controller.error_reason,
            len(snapshot),
            self._cache,
            controller.last_usage,
        )
        self.query_one("#chat-input-bar", ChatInputBar).set_busy(controller.is_busy)

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        """Handle user input submission."""
        try:
            self._controller.send(event.value)
        except SessionBusyError:
            self.notify("Still answering. Press Esc to stop.", severity="warning", timeout=3)
        except MessageValidationError as e:
            self.notify(str(e), severity="warning", timeout=2)

    def on_chat_input_bar_stop_requested(self, event: ChatInputBar.StopRequested) -> None:
        self.action_stop_exchange()

    def action_stop_exchange(self) -> None:
        """Stop the reply currently being generated."""
        if self._controller.is_busy:
            self._controller.stop()
            self.notify("Stopped", severity="warning", timeout=2)

    def action_clear_chat(self) -> None:
        """Clear the chat history."""
        self._controller.clear_history()
        self.notify("Chat cleared", timeout=2)

    def action_toggle_theme(self) -> None:
        self._options = self._options.with_theme(next_theme(self._options.theme))
        self.theme = self._options.theme

    def action_toggle_debug_view(self) -> None:
        """Show or hide the raw JSON of every message."""
        self._options = self._options.toggled_debug()
        self._refresh_view()
        self.notify(f"Debug view {'on' if self._options.show_debug else 'off'}", timeout=2)

    def action_toggle_log(self) -> None:
        """Toggle the log panel visibility."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)

    def action_copy_last_response(self) -> None:
        """Copy last assistant response to clipboard."""
        transcript = self.query_one("#transcript", TranscriptView)
        response = transcript.get_last_response()
        if response:
            self.copy_to_clipboard(response)
            self.notify("Response copied")
        else:
            self.notify("No response to copy", severity="warning")


async def run_textual_tui(
    transport: AgentTransport,
    session_id: str | None = None,
    log_level: str | None = None,
    cache_size: int = DEFAULT_MAX_ENTRIES,
    subtitle: str = "",
) -> None:
    """Run the Textual TUI.

    Args:
        transport: Agent transport; closed when the app exits
        session_id: Session to attach to, a fresh one if None
        log_level: Log level for panel (debug/info/warning/error), None to hide
        cache_size: Maximum rendered parts kept in memory
        subtitle: Text shown under the title, typically the model name
    """
    controller = SessionController(transport, session_id=session_id)
    cache = MarkdownRenderCache(render_markdown, max_entries=cache_size)
    app = ChatApp(controller, render_cache=cache, log_level=log_level, subtitle=subtitle)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        with contextlib.suppress(Exception):
            await transport.close()
