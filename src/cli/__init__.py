"""CLI application setup using Typer.

Provides the command-line interface for the Margati sandbox.
"""

from src.cli.main import app

__all__ = ["app"]
