"""Factory for creating agent transports."""

from typing import Any

from .base import AgentTransport


def create_transport(kind: str = "echo", **kwargs: Any) -> AgentTransport:
    """Create an agent transport.

    Args:
        kind: Transport type ("llm" or "echo")
        **kwargs: Transport-specific configuration
            For llm:
                - llm: LLMProvider (required)
                - system_prompt: str | None
                - temperature: float
                - max_tokens: int | None
            For echo:
                - delay: float
                - prefix: str

    Returns:
        AgentTransport instance

    Raises:
        ValueError: If transport type is not supported
        TypeError: If required configuration is missing
    """
    if kind == "echo":
        from .in_memory import EchoTransport
        return EchoTransport(**kwargs)

    elif kind == "llm":
        if "llm" not in kwargs:
            raise TypeError("LLM transport requires 'llm' in config")
        from .llm import LLMAgentTransport
        return LLMAgentTransport(**kwargs)

    raise ValueError(
        f"Unsupported transport: {kind}. "
        f"Supported transports: llm, echo"
    )
