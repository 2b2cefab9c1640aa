"""
Main CLI application using Typer

Entry point for the stackport command.
"""

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from stackport.cli import export
from stackport.cli import restore
from stackport.helpers.logging import setup_logging

# Create Typer app
app = typer.Typer(
    name="stackport",
    help="Stackport - export a Docker stack into a portable backup folder",
    add_completion=False,
)

console = Console()

# Register commands
export.register_to_main_app(app)
restore.register_to_main_app(app)


@app.callback()
def main_callback(
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write log records to this file",
    ),
):
    """
    Stackport - Docker stack export and restore

    Run 'stackport export' from the project root to create a backup.
    """
    # Rich output is the console channel; log records go to stderr only with --debug
    setup_logging("DEBUG" if debug else "INFO", log_file=log_file, console=debug)
    if debug:
        console.print("[dim]Debug mode enabled[/dim]")


@app.command()
def version():
    """Show version information"""
    from stackport.helpers.constants import VERSION
    console.print(f"[cyan]Stackport[/cyan] v{VERSION}")


def cli_main():
    """
    Entry point for CLI

    This function is called by the console script entry point.
    """
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        if "--debug" in sys.argv:
            raise
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
