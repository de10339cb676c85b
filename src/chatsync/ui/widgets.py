"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Transcript rendering and reuse of cached part renderables
- Input history and the send/stop button
- Status line formatting
- Log rendering and level filtering
"""

from datetime import datetime

from rich.console import Group, RenderableType
from rich.markup import escape
from rich.text import Text
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click
from textual.message import Message as TextualMessage
from textual.widgets import Button, RichLog, Static, TextArea

from ..render import MarkdownRenderCache
from ..session.models import Message, MessageSource, Role, SessionStatus
from .config import (
    INPUT_HISTORY_MAX_SIZE,
    LOG_TIMESTAMP_FORMAT,
    WELCOME_BODY,
    WELCOME_EXAMPLES,
    WELCOME_TITLE,
    LogLevel,
)
from .formatting import format_time, message_to_debug_json
from .models import ViewOptions


class WelcomeCard(Static):
    """Shown while the transcript is empty."""

    def __init__(self, *args, **kwargs) -> None:
        lines = [f"[bold]{WELCOME_TITLE}[/]", "", WELCOME_BODY, ""]
        lines.extend(f"[b]•[/b] \"{escape(example)}\"" for example in WELCOME_EXAMPLES)
        super().__init__("\n".join(lines), *args, **kwargs)


class MessageCard(Vertical):
    """One message of the transcript.

    Text parts are rendered through the shared render cache; the body is
    only updated when the cache hands back a different renderable.
    """

    def __init__(self, message: Message, *args, **kwargs) -> None:
        classes = "chat-message user-message" if message.role is Role.USER else "chat-message assistant-message"
        if message.metadata.source is MessageSource.EMAIL:
            classes += " email-message"
        super().__init__(*args, classes=classes, **kwargs)
        self.message_id = message.id
        self.role = message.role
        self._debug_view = Static("", classes="message-debug")
        self._header = Static(self._header_text(message), classes="message-header")
        self._body = Static("", classes="message-content")
        self._rendered: list[RenderableType] = []
        self._footer = ""
        self._text = message.text
        self._synced: tuple[Message, bool, ViewOptions] | None = None

    @property
    def text(self) -> str:
        """Raw text of the message as last synced."""
        return self._text

    def compose(self):
        yield self._debug_view
        yield self._header
        yield self._body

    @staticmethod
    def _header_text(message: Message) -> str:
        if message.role is Role.USER:
            return "You"
        if message.metadata.source is MessageSource.EMAIL:
            return "Assistant · e-mail"
        return "Assistant"

    def sync(
        self,
        message: Message,
        cache: MarkdownRenderCache,
        show_header: bool,
        options: ViewOptions,
    ) -> None:
        """Bring the card in line with ``message``."""
        # closed messages arrive as the same object on every snapshot
        state = (message, show_header, options)
        if self._synced is not None and all(new is old for new, old in zip(state, self._synced)):
            return
        self._synced = state
        self._text = message.text
        self._header.display = show_header
        self._debug_view.display = options.show_debug
        if options.show_debug:
            self._debug_view.update(Text(message_to_debug_json(message), style="dim"))

        rendered = [cache.render(message.id, index, part.text) for index, part in message.text_parts()]
        footer = format_time(message)
        if message.metadata.interrupted:
            footer += " · stopped"

        unchanged = (
            footer == self._footer
            and len(rendered) == len(self._rendered)
            and all(new is old for new, old in zip(rendered, self._rendered))
        )
        if unchanged:
            return

        self._rendered = rendered
        self._footer = footer
        self._body.update(Group(*rendered, Text(footer, style="dim")))


class TranscriptView(VerticalScroll):
    """Scrollable transcript that mirrors session snapshots."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation history"
    ALLOW_MAXIMIZE = True
    ALLOW_SELECT = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._cards: dict[str, MessageCard] = {}
        self._welcome: WelcomeCard | None = None

    def on_mount(self) -> None:
        self._show_welcome()

    def _show_welcome(self) -> None:
        if self._welcome is None:
            self._welcome = WelcomeCard(classes="welcome-card")
            self.mount(self._welcome)

    def _hide_welcome(self) -> None:
        if self._welcome is not None:
            self._welcome.remove()
            self._welcome = None

    def sync(
        self,
        snapshot: tuple[Message, ...],
        cache: MarkdownRenderCache,
        options: ViewOptions,
    ) -> None:
        """Update cards from a transcript snapshot."""
        live_ids = {message.id for message in snapshot}
        for message_id in [mid for mid in self._cards if mid not in live_ids]:
            self._cards.pop(message_id).remove()

        if not snapshot:
            self._show_welcome()
            self.border_subtitle = "Conversation history"
            return
        self._hide_welcome()

        added = False
        previous_role: Role | None = None
        for message in snapshot:
            card = self._cards.get(message.id)
            if card is None:
                card = MessageCard(message)
                self._cards[message.id] = card
                self.mount(card)
                added = True
            card.sync(message, cache, show_header=message.role is not previous_role, options=options)
            previous_role = message.role

        self.border_subtitle = f"{len(snapshot)} messages"
        if added or snapshot[-1].role is Role.ASSISTANT:
            self.scroll_end(animate=False)

    def get_last_response(self) -> str | None:
        """Get the last assistant response."""
        for card in reversed(list(self._cards.values())):
            if card.role is Role.ASSISTANT and card.text:
                return card.text
        return None


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea and a Send/Stop button."""

    class Submitted(TextualMessage):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    class StopRequested(TextualMessage):
        """Message sent when user presses Stop."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1
        self._busy = False

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success", disabled=True).with_tooltip(
            "Submit message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.focus()
        text_area.highlight_cursor_line = False

    def set_busy(self, busy: bool) -> None:
        """Switch the button between Send and Stop."""
        if busy == self._busy:
            return
        self._busy = busy
        button = self.query_one("#send-btn", Button)
        if busy:
            button.label = "Stop"
            button.variant = "error"
            button.tooltip = "Stop generating (Esc)"
        else:
            button.label = "Send"
            button.variant = "success"
            button.tooltip = "Submit message (Ctrl+J)"
        self._update_button()

    def _update_button(self) -> None:
        button = self.query_one("#send-btn", Button)
        text = self.query_one("#chat-input", TextArea).text
        button.disabled = not self._busy and not text.strip()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            if self._busy:
                self.post_message(self.StopRequested())
            else:
                self._submit()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        self._update_button()

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Note: ctrl+enter cannot work in terminals (terminal doesn't pass
        ctrl/shift modifiers with Enter). Use ctrl+j as the submit shortcut.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._is_cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._is_cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def _is_cursor_at_start(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        return text_area.cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#chat-input", TextArea)
        lines = text_area.text.split("\n")
        return text_area.cursor_location == (len(lines) - 1, len(lines[-1]))

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if direction < 0:
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text
        if not value.strip():
            return
        if not self._history or self._history[-1] != value:
            self._history.append(value)
            del self._history[:-INPUT_HISTORY_MAX_SIZE]
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#chat-input", TextArea).focus()


class StatusBar(Static):
    """One-line session status: state, transcript size, cache and tokens."""

    _STATUS_STYLES = {
        SessionStatus.IDLE: "green",
        SessionStatus.SENDING: "yellow",
        SessionStatus.STREAMING: "cyan",
        SessionStatus.ERROR: "red",
    }

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._plain = ""

    def update_status(
        self,
        status: SessionStatus,
        error_reason: str | None,
        message_count: int,
        cache: MarkdownRenderCache,
        usage: dict[str, int] | None,
    ) -> None:
        style = self._STATUS_STYLES[status]
        tokens = (usage or {}).get("total_tokens") or (usage or {}).get("completion_tokens", 0)
        parts = [
            f"[bold {style}]{status.value}[/]",
            f"[bold cyan]Messages:[/] {message_count}",
            f"[bold yellow]Cache:[/] {len(cache)}/{cache.max_entries} [dim]({cache.hits} hits)[/]",
            f"[bold magenta]Tokens:[/] {tokens:,}",
        ]
        if error_reason:
            parts.append(f"[bold red]Error:[/] {escape(error_reason)}")
        self.update("  ".join(parts))
        self._plain = (
            f"Status: {status.value}  Messages: {message_count}  "
            f"Cache: {len(cache)}/{cache.max_entries}  Tokens: {tokens}"
        )
        if error_reason:
            self._plain += f"  Error: {error_reason}"

    def get_plain_text(self) -> str:
        return self._plain


class DebugPanel(RichLog):
    """Log panel for real-time session tracing with level filtering.

    Shows timestamped log messages from all components.
    Supports standard log levels: DEBUG < INFO < WARNING < ERROR.
    Hidden by default, shown with --log-level flag or toggled with Ctrl+L.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    _LEVEL_COLORS = {
        LogLevel.DEBUG: "dim white",
        LogLevel.INFO: "cyan",
        LogLevel.WARNING: "yellow",
        LogLevel.ERROR: "red",
    }

    _COMPONENT_COLORS = {
        "TUI": "cyan",
        "Session": "green",
        "Merger": "bright_yellow",
        "Transport": "magenta",
    }

    def __init__(self, *args, log_level: int = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        """Current log level threshold."""
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {LogLevel.name(self._log_level)}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        """Hide by default."""
        self.display = False

    def log(self, component: str, message: str, level: int = LogLevel.DEBUG) -> None:
        """Add a log entry if it meets the current level threshold."""
        if level < self._log_level:
            return

        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        level_color = self._LEVEL_COLORS.get(level, "white")
        comp_color = self._COMPONENT_COLORS.get(component, "white")

        line = Text.from_markup(
            f"[dim]{timestamp}[/] [{level_color}]{LogLevel.name(level):<5}[/] [{comp_color}]\\[{component}][/] "
        )
        line.append(message)
        self.write(line)

    def show(self) -> None:
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True

    def get_plain_text(self) -> str:
        """Get plain text content of the log for copying."""
        return "\n".join(line.text for line in self.lines)

    def on_click(self, event: Click) -> None:
        """Copy log content to clipboard when clicked."""
        event.stop()
        text = self.get_plain_text()
        if not text.strip():
            self.app.notify("Log is empty", timeout=2)
            return
        self.app.copy_to_clipboard(text)
        self.app.notify("Log copied", timeout=2)
