"""
Chatsync: a terminal chat client for remote conversational agents.

Keeps a live, ordered transcript in sync with a streaming agent and
renders it through a cached markdown pipeline.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

# session must load before transport: transport models import session models
from .session import (
    Message,
    MessageSource,
    Role,
    SessionController,
    SessionStatus,
    TextPart,
    TranscriptStore,
)
from .render import MarkdownRenderCache
from .transport import AgentTransport, EventStream, create_transport

__all__ = [
    "AgentTransport",
    "EventStream",
    "MarkdownRenderCache",
    "Message",
    "MessageSource",
    "Role",
    "SessionController",
    "SessionStatus",
    "TextPart",
    "TranscriptStore",
    "create_transport",
]
