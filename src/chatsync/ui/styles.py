"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Colors come from the active theme, so switching between dark and
light needs no CSS changes.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

/* Transcript fills whatever the bottom bar and log leave over */
#transcript {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;

    &:focus-within {
        border: round $primary;
    }
}

.welcome-card {
    height: auto;
    margin: 1 2;
    padding: 1 2;
    border: round $primary;
    background: $primary 8%;
}

.chat-message {
    height: auto;
    margin-bottom: 1;
    padding: 0 2;

    &.user-message {
        border-left: tall $success;
        background: $success 8%;
        & .message-header { color: $success; }
    }

    &.assistant-message {
        border-left: tall $secondary;
        background: $secondary 8%;
        & .message-header { color: $secondary; }
    }

    /* mail summaries pushed by the agent */
    &.email-message {
        border-left: tall $accent;
        background: $accent 8%;
        & .message-header { color: $accent; }
    }
}

.message-header {
    text-style: bold;
}

.message-content, .message-header, .message-debug {
    height: auto;
}

.message-debug {
    padding: 0 1;
    margin-bottom: 1;
    background: $surface;
    border: dashed $border;
}

#debug-panel {
    height: auto;
    max-height: 14;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
}

#bottom-bar {
    height: auto;
    padding: 0 1 1 1;
    background: $panel;
}

#status-bar {
    height: 1;
    padding: 0 2;
    margin-bottom: 1;
    background: $surface;
}

ChatInputBar {
    height: 5;
    border: round $primary 60%;

    &:focus-within {
        border: round $primary;
    }
}

#chat-input {
    width: 1fr;
    height: 100%;
    border: none;
    background: transparent;
}

#send-btn {
    width: 10;
    height: 100%;
    margin-left: 1;
    text-style: bold;
}
"""
