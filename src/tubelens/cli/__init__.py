"""Command-line interface package for tubelens."""

from rich.console import Console

from tubelens.cli.main import CLIApplication, create_app

console = Console()

__all__ = ["CLIApplication", "console", "create_app"]
