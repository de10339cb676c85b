"""Data models for the TUI.

Presentation-only state. The session core never reads or writes these.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class ViewOptions:
    """How the transcript is presented."""

    theme: str = "chatsync-dark"
    show_debug: bool = False

    def toggled_debug(self) -> "ViewOptions":
        return replace(self, show_debug=not self.show_debug)

    def with_theme(self, theme: str) -> "ViewOptions":
        return replace(self, theme=theme)
