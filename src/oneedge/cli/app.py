"""Main CLI application using Typer."""
import asyncio
import os
import signal

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ..chat import ChatOptions, ChatSession, ChatState
from ..config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    ENV_LOG_LEVEL,
)
from ..logging_config import configure_logging
from .providers import default_model, get_backend

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="oneedge",
    help="Chat with OpenAI-compatible models through a OneEdge gateway",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

EXIT_COMMANDS = {"/exit", "/quit"}
CLEAR_COMMAND = "/clear"


@app.callback()
def main(
    log_level: str = typer.Option(
        os.getenv(ENV_LOG_LEVEL, "WARNING"),
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
):
    """Configure logging before any command runs."""
    configure_logging(log_level)


def _render(state: ChatState) -> Markdown | Panel:
    if state.is_thinking:
        return Panel(state.thinking_content or "...", title="thinking", border_style="dim")
    return Markdown(state.streaming_message or "")


async def _send_live(session: ChatSession, content: str) -> bool:
    """Send one message, rendering the reply as it streams.

    Ctrl+C while a reply is streaming stops it instead of exiting.

    Returns:
        True if an assistant reply was committed
    """
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, session.stop_streaming)
        handles_sigint = True
    except (NotImplementedError, RuntimeError):
        handles_sigint = False

    try:
        with Live(Markdown(""), console=console, refresh_per_second=12, transient=True) as live:
            unsubscribe = session.subscribe(lambda state: live.update(_render(state)))
            try:
                reply = await session.send_message(content)
            finally:
                unsubscribe()
    finally:
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)

    state = session.state
    if reply is not None:
        console.print(Markdown(reply.content))
        return True
    if state.error:
        console.print(f"[red]Error: {state.error}[/red]")
    else:
        if state.streaming_message:
            console.print(Markdown(state.streaming_message))
        console.print("[dim]Stopped.[/dim]")
    return False


def _options(
    model: str | None,
    system: str | None,
    temperature: float,
    max_tokens: int,
    top_p: float,
) -> ChatOptions:
    return ChatOptions(
        model=model or default_model(),
        system_prompt=system,
        temperature=temperature,
        max_tokens=max_tokens,
        top_p=top_p,
    )


@app.command()
def chat(
    model: str | None = typer.Option(None, "--model", "-m", help="Model to chat with"),
    system: str | None = typer.Option(None, "--system", "-s", help="System prompt"),
    temperature: float = typer.Option(DEFAULT_TEMPERATURE, "--temperature", "-t", help="Sampling temperature"),
    max_tokens: int = typer.Option(DEFAULT_MAX_TOKENS, "--max-tokens", help="Maximum tokens per reply"),
    top_p: float = typer.Option(DEFAULT_TOP_P, "--top-p", help="Nucleus sampling"),
):
    """Start an interactive chat session."""
    options = _options(model, system, temperature, max_tokens, top_p)

    async def _chat():
        backend = get_backend(options.model, console)
        session = ChatSession(backend, options)

        console.print(Panel(
            f"Model: [cyan]{options.model}[/cyan]\n"
            f"[dim]{CLEAR_COMMAND} clears the conversation, /exit quits, "
            f"Ctrl+C stops a streaming reply[/dim]",
            title="oneedge chat",
        ))

        async with backend:
            while True:
                try:
                    text = await asyncio.to_thread(console.input, "[bold green]you>[/bold green] ")
                except (EOFError, KeyboardInterrupt):
                    break

                command = text.strip().lower()
                if command in EXIT_COMMANDS:
                    break
                if command == CLEAR_COMMAND:
                    session.clear_messages()
                    console.print("[dim]Conversation cleared.[/dim]")
                    continue
                if not command:
                    continue

                await _send_live(session, text)

    asyncio.run(_chat())


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Question to ask"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model to ask"),
    system: str | None = typer.Option(None, "--system", "-s", help="System prompt"),
    temperature: float = typer.Option(DEFAULT_TEMPERATURE, "--temperature", "-t", help="Sampling temperature"),
    max_tokens: int = typer.Option(DEFAULT_MAX_TOKENS, "--max-tokens", help="Maximum tokens in the reply"),
    top_p: float = typer.Option(DEFAULT_TOP_P, "--top-p", help="Nucleus sampling"),
):
    """Ask a single question and stream the answer."""
    options = _options(model, system, temperature, max_tokens, top_p)

    async def _ask() -> bool:
        backend = get_backend(options.model, console)
        async with backend:
            return await _send_live(ChatSession(backend, options), prompt)

    if not asyncio.run(_ask()):
        raise typer.Exit(code=1)


@app.command()
def models():
    """List the models available through the gateway."""
    async def _models():
        backend = get_backend(console=console)
        async with backend:
            try:
                available = await backend.list_models()
            except Exception as e:
                console.print(f"[red]Error: {e}[/red]")
                raise typer.Exit(code=1)

        if not available:
            console.print("[yellow]No models available[/yellow]")
            return

        table = Table(title="Models")
        table.add_column("ID", style="cyan")
        table.add_column("Owned by", style="green")
        table.add_column("Created", justify="right")
        for info in available:
            table.add_row(info.id, info.owned_by or "-", str(info.created or "-"))
        console.print(table)

    asyncio.run(_models())


@app.command()
def health():
    """Check that the gateway is reachable."""
    async def _health() -> bool:
        backend = get_backend(console=console)
        async with backend:
            return await backend.health_check()

    if asyncio.run(_health()):
        console.print("[green]Gateway is healthy[/green]")
    else:
        console.print("[red]Gateway is unreachable[/red]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
