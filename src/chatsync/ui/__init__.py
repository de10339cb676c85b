"""Terminal UI module for chatsync.

Provides a Textual-based TUI for one chat session.

Module structure (Parnas principle - each module hides a design decision):
- models.py: View options (presentation-only state)
- widgets.py: Custom widgets (transcript cards, input history, status, log rendering)
- formatting.py: Markdown conversion and message text helpers
- styles.py: CSS styling (layout decisions)
- themes.py: Color palettes and theme configuration
- app.py: Application orchestration (user interaction flow)
"""

from .app import ChatApp, run_textual_tui
from .config import LogLevel
from .formatting import render_markdown
from .models import ViewOptions
from .widgets import ChatInputBar, DebugPanel, MessageCard, StatusBar, TranscriptView

__all__ = [
    "ChatApp",
    "ChatInputBar",
    "DebugPanel",
    "LogLevel",
    "MessageCard",
    "StatusBar",
    "TranscriptView",
    "ViewOptions",
    "render_markdown",
    "run_textual_tui",
]
