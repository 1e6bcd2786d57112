"""Calibration questionnaire command."""

import asyncio
import json
from collections.abc import Awaitable
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from src.calibration import DialogueEngine, DialogueListener
from src.cli.utils import console

EXIT_WORDS = ("exit", "quit", "q")


class LiveListener(DialogueListener):
    """Shows the question text as it streams in."""

    def __init__(self) -> None:
        self.live: Live | None = None

    def on_text(self, text: str) -> None:
        if self.live is not None:
            self.live.update(Text(text))


def calibrate(
    delay: Annotated[
        Optional[float],  # noqa: UP007
        typer.Option("--delay", "-d", help="Pause in seconds after each streamed delta"),
    ] = None,
    save_profile: Annotated[
        Optional[Path],  # noqa: UP007
        typer.Option("--save-profile", "-s", help="Write the final profile as JSON"),
    ] = None,
) -> None:
    """Run the neuro-profile calibration questionnaire.

    Answer each question by option letter or in your own words. The
    dialogue ends when the backend reports your calibrated profile.

    Examples:
        margati calibrate
        margati calibrate --save-profile profile.json
    """
    from src.exceptions import ConfigurationError

    try:
        asyncio.run(_calibrate_interactive(delay, save_profile))
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None


async def _calibrate_interactive(delay: float | None, save_profile: Path | None) -> None:
    """Run the interactive dialogue loop."""
    from src.client import MargatiClient, MargatiClientConfig
    from src.settings import get_settings

    settings = get_settings()
    client = MargatiClient(MargatiClientConfig.from_settings(settings))
    listener = LiveListener()
    engine = DialogueEngine(
        client,
        listener=listener,
        render_delay=settings.stream_render_delay if delay is None else delay,
    )

    console.print(
        Panel(
            "[bold blue]Neuro Profile Calibration[/bold blue]\n\n"
            "Answer with an option letter or your own words.\n"
            "Type [cyan]'exit'[/cyan] or [cyan]'quit'[/cyan] to stop.",
            title="🧭 Calibration",
            border_style="blue",
        )
    )
    console.print(f"[dim]Backend: {client.base_url}[/dim]\n")

    shown = len(engine.transcript)
    await _stream_turn(listener, engine.start())
    _show_turn(engine, since=shown)

    while not engine.state.finalized:
        try:
            user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
        except (KeyboardInterrupt, EOFError):
            break

        if not user_input.strip():
            continue
        if user_input.strip().lower() in EXIT_WORDS:
            console.print("[dim]Ending calibration.[/dim]")
            break

        shown = len(engine.transcript)
        choice = user_input.strip().upper()
        if any(option.key == choice for option in engine.state.options):
            await _stream_turn(listener, engine.select_option(choice))
        else:
            await _stream_turn(listener, engine.submit(user_input))
        _show_turn(engine, since=shown)

    metrics = engine.state.metrics
    if engine.state.finalized and metrics is None and save_profile is not None:
        console.print("[yellow]The profile was incomplete, nothing was saved.[/yellow]")
    if metrics is not None and save_profile is not None:
        save_profile.write_text(json.dumps(metrics.model_dump(), indent=2), encoding="utf-8")
        console.print(f"[green]Profile saved to {save_profile}[/green]")
        console.print(f"[dim]Use 'margati microtasks --profile {save_profile}' to apply it.[/dim]")


async def _stream_turn(listener: LiveListener, turn: Awaitable[None]) -> None:
    with Live(console=console, refresh_per_second=15, transient=True) as live:
        listener.live = live
        try:
            await turn
        finally:
            listener.live = None


def _show_turn(engine: DialogueEngine, *, since: int) -> None:
    """Print what the turn that appended ``transcript[since:]`` left behind."""
    new_messages = engine.transcript[since:]
    last = new_messages[-1] if new_messages else None

    if last is not None and last.role == "system":
        console.print(f"[red]{last.content}[/red]")
        return

    if engine.state.finalized and last is not None:
        console.print(Panel(last.content, title="✅ Profile", border_style="green"))
        return

    if any(message.role == "assistant" for message in new_messages):
        console.print("[bold green]Coach:[/bold green]", engine.state.display_text)
    else:
        console.print("[dim]No new question arrived. Answer in your own words to continue.[/dim]")
    for option in engine.state.options:
        console.print(f"  [cyan]{option.key}[/cyan]  {option.label}")
