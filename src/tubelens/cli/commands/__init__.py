"""Command registration utilities for the tubelens CLI."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from tubelens.cli.commands import transcript
from tubelens.cli.commands.transcript import ServiceFactory


def register_commands(app: typer.Typer, console: Console, *, service_factory: Optional[ServiceFactory] = None) -> None:
    """Attach command groups to the provided Typer application."""

    transcript.register(app, console, service_factory=service_factory)

    @app.callback(invoke_without_command=True)
    def main_callback(ctx: typer.Context) -> None:
        """Display a default message when no subcommand is provided."""

        if ctx.invoked_subcommand is None:
            console.print("[bold green]tubelens CLI ready for commands.[/bold green]")


__all__ = ["ServiceFactory", "register_commands"]
