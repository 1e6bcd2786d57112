"""CLI entry point and base commands.

Provides the main CLI application with commands for:
- calibrate: Interactive neuro-profile calibration questionnaire
- microtasks: Generate and export a microtask breakdown
- export: Re-render the report of a saved export bundle
"""

import typer
from rich.panel import Panel

from src import __version__
from src.cli.commands.calibrate import calibrate
from src.cli.commands.microtasks import export, microtasks
from src.cli.utils import console
from src.logging_config import configure_logging

app = typer.Typer(
    name="margati",
    help="Margati calibration and microtasks sandbox",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging before any command runs."""
    configure_logging("DEBUG" if verbose else None)


app.command()(calibrate)
app.command()(microtasks)
app.command()(export)


@app.command()
def version() -> None:
    """Show Margati version information."""
    console.print(
        Panel(
            f"[bold]Margati[/bold] v{__version__}\n"
            "Calibration and microtasks sandbox",
            title="🧭 Version",
            border_style="blue",
        )
    )


# Entry point for: python -m src.cli.main
if __name__ == "__main__":
    app()
