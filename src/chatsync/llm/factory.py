from typing import Any

from .base import LLMProvider
from .providers import AnthropicProvider, DeepSeekProvider, OpenAIProvider

_PROVIDERS: dict[str, tuple[str, type[LLMProvider]]] = {
    "openai": ("OpenAI", OpenAIProvider),
    "deepseek": ("DeepSeek", DeepSeekProvider),
    "anthropic": ("Anthropic", AnthropicProvider),
    "claude": ("Anthropic", AnthropicProvider),
}


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create the streaming chat provider named ``provider``.

    Args:
        provider: 'openai', 'deepseek' or 'anthropic' (alias 'claude')
        **config: Passed to the provider; ``api_key`` is required,
            ``model`` and ``base_url`` are optional

    Raises:
        ValueError: If provider type is not supported
        TypeError: If ``api_key`` is missing
    """
    entry = _PROVIDERS.get(provider.lower())
    if entry is None:
        raise ValueError(
            f"Unsupported provider: {provider}. "
            f"Supported providers: 'openai', 'deepseek', 'anthropic'"
        )

    label, cls = entry
    if "api_key" not in config:
        raise TypeError(f"{label} provider requires 'api_key' in config")
    return cls(**config)
