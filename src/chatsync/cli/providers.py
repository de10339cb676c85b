"""Provider factory functions for CLI.

Centralizes creation of LLM providers and transports from environment variables.
Hides configuration details from command implementations.
"""

import os

from rich.console import Console

from ..llm import LLMProvider, create_llm_provider
from ..render import DEFAULT_MAX_ENTRIES
from ..transport import AgentTransport, create_transport

# Default console for output
_console = Console()


def get_llm(console: Console | None = None) -> LLMProvider | None:
    """Create LLM provider from environment variables.

    Args:
        console: Optional Rich console for output

    Returns:
        LLM provider instance, or None if not configured

    Environment variables:
        LLM_PROVIDER: Provider type (openai, deepseek, anthropic; default: openai)
        OPENAI_API_KEY: OpenAI API key (for openai provider)
        OPENAI_CHAT_MODEL: OpenAI model (default: gpt-4o-mini)
        DEEPSEEK_API_KEY: DeepSeek API key (for deepseek provider)
        ANTHROPIC_API_KEY: Anthropic API key (for anthropic provider)
        ANTHROPIC_MODEL: Anthropic model (default: claude-sonnet-4-20250514)
    """
    con = console or _console
    llm_provider = os.getenv("LLM_PROVIDER", "openai").lower()

    if llm_provider == "openai":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            con.print("[yellow]Warning: OPENAI_API_KEY not set[/yellow]")
            return None
        model = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
        return create_llm_provider("openai", api_key=api_key, model=model)

    elif llm_provider == "deepseek":
        api_key = os.getenv("DEEPSEEK_API_KEY")
        if not api_key:
            con.print("[yellow]Warning: DEEPSEEK_API_KEY not set[/yellow]")
            return None
        return create_llm_provider("deepseek", api_key=api_key)

    elif llm_provider in ("anthropic", "claude"):
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            con.print("[yellow]Warning: ANTHROPIC_API_KEY not set[/yellow]")
            return None
        model = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
        return create_llm_provider("anthropic", api_key=api_key, model=model)

    else:
        con.print(f"[red]Error: Unknown LLM provider: {llm_provider}[/red]")
        return None


def get_transport(kind: str | None = None, console: Console | None = None) -> AgentTransport:
    """Create the agent transport.

    Args:
        kind: "llm" or "echo"; falls back to CHATSYNC_TRANSPORT (default: llm)
        console: Optional Rich console for output

    Raises:
        SystemExit: If the transport kind is unknown or the LLM is not configured

    Environment variables:
        CHATSYNC_TRANSPORT: Transport type when kind is None
        CHATSYNC_SYSTEM_PROMPT: Optional system prompt for the llm transport
    """
    import typer

    con = console or _console
    kind = (kind or os.getenv("CHATSYNC_TRANSPORT", "llm")).lower()

    if kind == "echo":
        return create_transport("echo")

    if kind == "llm":
        llm = get_llm(con)
        if not llm:
            con.print("[red]Error: LLM provider not configured[/red]")
            raise typer.Exit(code=1)
        return create_transport(
            "llm",
            llm=llm,
            system_prompt=os.getenv("CHATSYNC_SYSTEM_PROMPT") or None,
        )

    con.print(f"[red]Error: Unknown transport: {kind}[/red]")
    raise typer.Exit(code=1)


def get_cache_size(console: Console | None = None) -> int:
    """Render cache capacity from CHATSYNC_RENDER_CACHE_SIZE."""
    import typer

    con = console or _console
    raw = os.getenv("CHATSYNC_RENDER_CACHE_SIZE")
    if not raw:
        return DEFAULT_MAX_ENTRIES
    try:
        size = int(raw)
    except ValueError:
        size = 0
    if size < 1:
        con.print(f"[red]Error: CHATSYNC_RENDER_CACHE_SIZE must be a positive integer, got {raw!r}[/red]")
        raise typer.Exit(code=1)
    return size
