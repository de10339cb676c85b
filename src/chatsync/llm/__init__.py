from .base import LLMProvider
from .factory import create_llm_provider
from .models import ChatMessage, StreamingResponse
from .providers import AnthropicProvider, DeepSeekProvider, OpenAIProvider

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "ChatMessage",
    "StreamingResponse",
    "AnthropicProvider",
    "DeepSeekProvider",
    "OpenAIProvider",
]
