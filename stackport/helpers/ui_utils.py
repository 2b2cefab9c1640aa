"""
CLI Utilities for Stackport

Rich-based helpers for console output and a tracked subprocess runner.
Every status line carries one of the severity prefixes STEP, OK, WARN, ERROR.
"""

import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .logging import get_logger

console = Console()
logger = get_logger(__name__)


class SubprocessError(Exception):
    """An external command failed, timed out, or could not be started."""

    def __init__(self, cmd: Sequence[str], returncode: int, stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"Command {' '.join(self.cmd)!r} failed with exit code {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


def run_command(
    cmd: List[str],
    description: str = "",
    timeout: Optional[float] = None,
    check: bool = True,
    cwd: Optional[Union[str, Path]] = None,
) -> subprocess.CompletedProcess:
    """
    Run an external command and capture its output as text.

    Args:
        cmd: Command and arguments (no shell)
        description: Human readable purpose, used for logging
        timeout: Seconds before the command is killed (None = unbounded)
        check: Raise SubprocessError on non-zero exit
        cwd: Working directory

    Returns:
        CompletedProcess with text stdout/stderr

    Raises:
        SubprocessError: non-zero exit (with check), timeout (124),
            executable not found (127)
    """
    logger.debug(f"Running: {' '.join(cmd)}", extra={"operation": description or cmd[0]})
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
        )
    except FileNotFoundError as e:
        raise SubprocessError(cmd, 127, str(e)) from e
    except subprocess.TimeoutExpired as e:
        raise SubprocessError(cmd, 124, f"timed out after {timeout}s") from e

    if check and result.returncode != 0:
        raise SubprocessError(cmd, result.returncode, result.stderr)
    return result


def format_bytes(size: Optional[int]) -> str:
    """Format a byte count for humans (1536 -> '1.5 KB')."""
    if size is None:
        return "-"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if value < 1024 or unit == "TB":
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"


def print_header(title: str, subtitle: str = ""):
    """Print styled header with optional subtitle"""
    content = f"[bold cyan]{escape(title)}[/bold cyan]"
    if subtitle:
        content += f"\n[dim]{escape(subtitle)}[/dim]"

    panel = Panel(content, border_style="cyan")
    console.print(panel)


def print_step(message: str):
    """Print the start of a pipeline stage"""
    console.print(f"[bold cyan]STEP[/bold cyan]  {escape(message)}")


def print_success(message: str):
    """Print success message"""
    console.print(f"[green]OK[/green]    {escape(message)}")


def print_warning(message: str):
    """Print warning message"""
    console.print(f"[yellow]WARN[/yellow]  {escape(message)}")


def print_error(message: str):
    """Print error message"""
    console.print(f"[red]ERROR[/red] {escape(message)}")


def print_separator():
    """Print a visual separator line"""
    console.print("\n" + "─" * 60 + "\n")


def create_table(title: str, columns: List[tuple]) -> Table:
    """
    Create a styled Rich table

    Args:
        title: Table title
        columns: List of (name, style, width) tuples

    Returns:
        Rich Table instance
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    for name, style, width in columns:
        table.add_column(name, style=style, width=width)
    return table
