"""Data models for a chat session.

These models define the shape of messages and their parts,
independent of the transport that produced them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from uuid_extensions import uuid7


class Role(str, Enum):
    """Sender of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class MessageSource(str, Enum):
    """Channel a message originated from."""

    CHAT = "chat"
    EMAIL = "email"
    UNSET = "unset"


class SessionStatus(str, Enum):
    """Exchange state of a session."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    ERROR = "error"


class TextPart(BaseModel):
    """A text fragment of a message."""

    type: Literal["text"] = "text"
    text: str = ""


class OpaquePart(BaseModel):
    """Any non-text part (tool call, attachment, ...).

    Passed through untouched; never merged or rendered.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str


def _part_kind(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return "text" if kind == "text" else "opaque"


Part = Annotated[
    Union[Annotated[TextPart, Tag("text")], Annotated[OpaquePart, Tag("opaque")]],
    Discriminator(_part_kind),
]


def _new_id() -> str:
    return str(uuid7())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MessageMetadata(BaseModel):
    """Metadata attached to every message."""

    created_at: datetime = Field(default_factory=_now)
    source: MessageSource = MessageSource.UNSET
    interrupted: bool = Field(
        default=False,
        description="True when the stream feeding this message was stopped by the user",
    )


class Message(BaseModel):
    """A single message in the transcript."""

    id: str = Field(default_factory=_new_id, frozen=True)
    role: Role
    parts: list[Part] = Field(default_factory=list)
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)

    @classmethod
    def user(cls, text: str, source: MessageSource = MessageSource.CHAT) -> "Message":
        """Create a user message holding a single text part."""
        return cls(
            role=Role.USER,
            parts=[TextPart(text=text)],
            metadata=MessageMetadata(source=source),
        )

    @classmethod
    def assistant(cls, source: MessageSource = MessageSource.CHAT) -> "Message":
        """Create an empty assistant message, ready to receive deltas."""
        return cls(role=Role.ASSISTANT, metadata=MessageMetadata(source=source))

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(part.text for part in self.parts if isinstance(part, TextPart))

    def text_parts(self) -> list[tuple[int, TextPart]]:
        """Text parts paired with their index in ``parts``."""
        return [(i, part) for i, part in enumerate(self.parts) if isinstance(part, TextPart)]
