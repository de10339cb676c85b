"""Anthropic Claude LLM provider implementation.

Uses the official Anthropic Python SDK for async streaming.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

from collections.abc import AsyncIterator
from typing import Any

from anthropic import AsyncAnthropic

from ..base import LLMProvider
from ..models import ChatMessage, StreamingResponse


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (system message handling)
    - Usage capture from stream events
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Default model to use (default: claude-sonnet-4-20250514)
            base_url: Optional custom API base URL
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        return self._model

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Generate a streaming chat completion using Anthropic Claude.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (default: 4096)
            **kwargs: Additional Anthropic-specific parameters

        Returns:
            StreamingResponse that yields text chunks and captures usage info
        """
        system_message = None
        anthropic_messages = []

        for msg in messages:
            if msg.role == "system":
                system_message = msg.content
            else:
                anthropic_messages.append({"role": msg.role, "content": msg.content})

        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": anthropic_messages,
            "temperature": temperature,
            "max_tokens": max_tokens or 4096,
            **kwargs
        }
        if system_message:
            request_params["system"] = system_message

        response: StreamingResponse | None = None

        async def _generate() -> AsyncIterator[str]:
            input_tokens = 0
            output_tokens = 0

            async with self._client.messages.stream(**request_params) as stream:
                async for event in stream:
                    event_type = getattr(event, "type", None)
                    if event_type == "message_start":
                        input_tokens = event.message.usage.input_tokens
                    elif event_type == "message_delta":
                        output_tokens = event.usage.output_tokens
                    elif event_type == "content_block_delta" and hasattr(event.delta, "text"):
                        yield event.delta.text

            if response is not None:
                response.set_usage({
                    "prompt_tokens": input_tokens,
                    "completion_tokens": output_tokens,
                    "total_tokens": input_tokens + output_tokens,
                })

        response = StreamingResponse(_generate())
        return response

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
