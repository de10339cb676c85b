"""Theme definitions for the TUI.

This module hides the design decisions about:
- Color palettes and visual appearance
- Dark/light mode configuration

Both themes are registered on mount; the app toggles between them.
"""

from textual.theme import Theme

DARK_THEME = Theme(
    name="chatsync-dark",
    primary="#f48120",      # Orange - brand accent
    secondary="#cba6f7",    # Mauve - assistant messages
    accent="#89b4fa",       # Blue - e-mail messages
    foreground="#cdd6f4",
    background="#11111b",
    success="#a6e3a1",
    warning="#fab387",
    error="#f38ba8",
    surface="#1e1e2e",
    panel="#181825",
    dark=True,
    variables={
        "block-cursor-foreground": "#11111b",
        "block-cursor-background": "#f5e0dc",
        "input-selection-background": "#f48120 30%",
        "border": "#45475a",
        "border-blurred": "#313244",
        "scrollbar": "#313244",
        "scrollbar-hover": "#45475a",
        "scrollbar-active": "#f48120",
        "scrollbar-background": "#181825",
        "footer-background": "#11111b",
        "footer-key-foreground": "#f48120",
        "text-muted": "#6c7086",
        "link-color": "#89b4fa",
        "link-style": "underline",
    },
)

LIGHT_THEME = Theme(
    name="chatsync-light",
    primary="#d35f00",
    secondary="#8839ef",
    accent="#1e66f5",
    foreground="#4c4f69",
    background="#eff1f5",
    success="#40a02b",
    warning="#df8e1d",
    error="#d20f39",
    surface="#e6e9ef",
    panel="#dce0e8",
    dark=False,
    variables={
        "block-cursor-foreground": "#eff1f5",
        "block-cursor-background": "#dc8a78",
        "input-selection-background": "#d35f00 25%",
        "border": "#bcc0cc",
        "border-blurred": "#ccd0da",
        "scrollbar": "#ccd0da",
        "scrollbar-hover": "#bcc0cc",
        "scrollbar-active": "#d35f00",
        "scrollbar-background": "#dce0e8",
        "footer-background": "#e6e9ef",
        "footer-key-foreground": "#d35f00",
        "text-muted": "#8c8fa1",
        "link-color": "#1e66f5",
        "link-style": "underline",
    },
)

THEMES = (DARK_THEME, LIGHT_THEME)


def next_theme(current: str) -> str:
    """Name of the theme to switch to from ``current``."""
    return LIGHT_THEME.name if current == DARK_THEME.name else DARK_THEME.name
