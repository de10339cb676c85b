"""Main CLI application using Typer."""
import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console

from ..session import ChatSessionError, Role, SessionController, SessionStatus
from .providers import get_cache_size, get_transport

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="chatsync",
    help="Terminal chat client that keeps a live transcript in sync with a streaming agent",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Message to send"),
    transport_kind: str | None = typer.Option(
        None,
        "--transport",
        "-t",
        help="Agent transport: llm or echo (default: CHATSYNC_TRANSPORT or llm)"
    ),
):
    """Send one message and stream the reply to the terminal."""
    async def _ask() -> SessionController:
        transport = get_transport(transport_kind, console)
        controller = SessionController(transport)
        printed: dict[str, int] = {}

        def on_update() -> None:
            for message in controller.transcript.snapshot():
                if message.role is not Role.ASSISTANT:
                    continue
                text = message.text
                console.print(text[printed.get(message.id, 0):], end="", markup=False, highlight=False)
                printed[message.id] = len(text)

        def on_debug(level: str, component: str, message: str) -> None:
            if level in ("warning", "error"):
                color = "yellow" if level == "warning" else "red"
                console.print(f"[{color}]\\[{component}] {message}[/{color}]")

        controller.set_update_callback(on_update)
        controller.set_debug_callback(on_debug)
        try:
            await controller.send(prompt)
        finally:
            await transport.close()
        console.print()
        return controller

    try:
        controller = asyncio.run(_ask())
    except ChatSessionError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if controller.status is SessionStatus.ERROR:
        console.print(f"[red]Error: {controller.error_reason}[/red]")
        raise typer.Exit(code=1)
    usage = controller.last_usage
    if usage:
        console.print(f"[dim]Tokens: {usage}[/dim]")


@app.command()
def chat(
    transport_kind: str | None = typer.Option(
        None,
        "--transport",
        "-t",
        help="Agent transport: llm or echo (default: CHATSYNC_TRANSPORT or llm)"
    ),
    session_id: str | None = typer.Option(
        None,
        "--session-id",
        "-s",
        help="Attach to an existing session instead of starting a new one"
    ),
    cache_size: int | None = typer.Option(
        None,
        "--cache-size",
        min=1,
        help="Rendered parts kept in memory (default: CHATSYNC_RENDER_CACHE_SIZE or 256)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch interactive TUI chat interface."""
    async def _chat():
        from ..ui import run_textual_tui

        transport = get_transport(transport_kind, console)
        model = getattr(transport, "model", transport.transport_type)
        try:
            await run_textual_tui(
                transport,
                session_id=session_id,
                log_level=log_level,
                cache_size=cache_size or get_cache_size(console),
                subtitle=model,
            )
        finally:
            console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_chat())
    except KeyboardInterrupt:
        pass


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
