"""
Restore command for Stackport

The single restore implementation; import_linux.sh and import_windows.ps1
both call ``python -m stackport restore <backup folder> --target <root>``.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from stackport.helpers import ui_utils as utils
from stackport.helpers.exceptions import ManifestError, RestoreError

console = Console()


def restore_run(
    backup_dir: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        dir_okay=True,
        help="Backup folder created by 'stackport export'",
    ),
    target: Optional[Path] = typer.Option(
        None,
        "--target", "-t",
        help="Project root to restore into (default: recorded location relative to the backup)",
    ),
    no_start: bool = typer.Option(False, "--no-start", help="Do not bring the stack up afterwards"),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=1,
        help="Timeout in seconds for each docker load / compose call",
    ),
):
    """
    Restore images, volumes and config files from a backup folder

    Stops at the first hard failure with exit status 1.
    """
    from stackport.cores.restore_manager import RestoreManager

    try:
        manager = RestoreManager(backup_dir, target_root=target, command_timeout=timeout)
    except ManifestError as e:
        utils.print_error(str(e))
        raise typer.Exit(1)

    utils.print_header("Stackport Restore", f"{manager.backup_dir} -> {manager.target_root}")

    try:
        report = manager.run(start=not no_start)
    except RestoreError as e:
        utils.print_error(str(e))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n")
        utils.print_warning("Restore cancelled by user")
        raise typer.Exit(1)

    for outcome in report.outcomes:
        utils.print_success(f"{outcome.stage}: {outcome.name} ({outcome.message})")
    if report.stack_started:
        utils.print_success("Stack started")
    utils.print_success(f"Restore completed into {report.target_root}")


def register_to_main_app(main_app: typer.Typer):
    """Register restore command to main CLI app"""
    main_app.command(name="restore")(restore_run)
