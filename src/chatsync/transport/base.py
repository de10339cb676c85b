"""Abstract base class for remote agent transports.

This module defines how the session core reaches the remote agent.
The abstraction hides:
- Wire protocol and framing (HTTP, websocket, SDK streaming)
- Conversation state kept on the remote side
- How an in-flight exchange is cancelled
"""

from abc import ABC, abstractmethod
from typing import Any

from ..session.models import Message
from .models import EventStream


class TransportError(Exception):
    """Connection or stream failure reported by a transport."""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self._retryable = retryable

    def is_retryable(self) -> bool:
        return self._retryable


class NotifyError(TransportError):
    """A best-effort notification could not be delivered."""

    def __init__(self, message: str):
        super().__init__(f"Notification failed: {message}", retryable=False)


class AgentTransport(ABC):
    """Abstract transport to a remote conversational agent.

    Supports async context manager protocol for resource cleanup:
        async with transport:
            stream = await transport.send_message(session_id, message)
    """

    @abstractmethod
    async def connect_session(self, session_id: str) -> EventStream:
        """Open the session and return its stream of agent-initiated events.

        The stream must be finite: it delivers what the agent queued and then
        ends, immediately when there is nothing to push. The session counts
        as busy until it does.
        """

    @abstractmethod
    async def send_message(self, session_id: str, message: Message) -> EventStream:
        """Start one exchange for ``message``.

        Raises:
            TransportError: If the request cannot be issued
        """

    @abstractmethod
    def abort(self, handle: str) -> None:
        """Best-effort cancellation of the exchange identified by ``handle``."""

    @abstractmethod
    async def notify_clear(self, session_id: str) -> None:
        """Tell the remote side that the session history was reset.

        Raises:
            NotifyError: If the notification could not be delivered
        """

    async def close(self) -> None:
        """Release any open connections."""

    @property
    @abstractmethod
    def transport_type(self) -> str:
        """Get the transport type identifier."""

    async def __aenter__(self) -> "AgentTransport":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
