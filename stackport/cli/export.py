"""
Export commands for Stackport

Creates a backup folder with images, volumes, config files and restore
scripts, and lists existing backups.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from stackport.helpers import ui_utils as utils
from stackport.helpers.exceptions import ConfigError, ProjectRootError
from stackport.types import OutcomeStatus

console = Console()

STATUS_STYLES = {
    OutcomeStatus.OK: "[green]OK[/green]",
    OutcomeStatus.SKIPPED: "[yellow]SKIPPED[/yellow]",
    OutcomeStatus.FAILED: "[red]FAILED[/red]",
}


def _load(config_file: Optional[Path], require_root: bool, overrides: Optional[dict] = None):
    """
    Locate the project root and load the configuration (fatal on error).

    The marker is taken from ``--config`` or a ``stackport.json`` in the
    working directory, so a project can name a different compose file.
    """
    from stackport.helpers.config import load_config
    from stackport.cores.root_locator import find_project_root, require_project_root

    try:
        marker = load_config(config_file, project_root=Path.cwd()).marker_file
        root = require_project_root(marker) if require_root else find_project_root(marker)
        config = load_config(config_file, project_root=root, overrides=overrides)
    except (ProjectRootError, ConfigError) as e:
        utils.print_error(str(e))
        raise typer.Exit(1)
    return root, config


def export_run(
    no_stop: bool = typer.Option(
        False,
        "--no-stop",
        help="Do not stop running containers (exported volume data may be inconsistent)",
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a stackport.json"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Backup folder, relative to the project root"),
    keep: Optional[int] = typer.Option(None, "--keep", min=1, help="Number of backups to keep"),
):
    """
    Export images, volumes and config files into a new backup folder

    Must be run from the project root (the folder with docker-compose.yml).
    Exits with status 1 if any item failed.
    """
    from stackport.cores.export_manager import ExportManager

    overrides = {
        "stop_containers": False if no_stop else None,
        "output_dir": output_dir,
        "retention": keep,
    }
    root, config = _load(config_file, require_root=True, overrides=overrides)

    utils.print_header("Stackport Export", f"Project root: {root}")

    manager = ExportManager(config, root)
    try:
        report = manager.run()
    except KeyboardInterrupt:
        console.print("\n")
        utils.print_warning("Export cancelled by user; the backup folder is incomplete")
        raise typer.Exit(1)

    utils.print_separator()
    table = utils.create_table(
        "Export Summary",
        [
            ("Stage", "cyan", 12),
            ("Item", "white", 40),
            ("Status", "white", 9),
            ("Size", "white", 10),
        ],
    )
    for outcome in report.outcomes:
        table.add_row(
            outcome.stage,
            outcome.name,
            STATUS_STYLES[outcome.status],
            utils.format_bytes(outcome.size_bytes),
        )
    console.print(table)

    if report.restarted_containers:
        utils.print_success(f"Restarted containers: {', '.join(report.restarted_containers)}")
    for old in report.deleted_backups:
        utils.print_success(f"Removed old backup: {old.name}")
    utils.print_success(f"Backup folder: {report.backup_dir}")
    utils.print_success(f"Total size: {utils.format_bytes(report.total_size_bytes)}")

    if report.success:
        utils.print_success("Export completed")
    else:
        utils.print_error(f"Export completed with {len(report.failures)} failed item(s)")
        raise typer.Exit(1)


def export_list(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a stackport.json"),
):
    """
    List existing backups, newest first
    """
    from stackport.cores.retention import list_backups
    from stackport.helpers.system_utils import SystemUtils

    root, config = _load(config_file, require_root=False)
    backups = list_backups(config.output_path(root), config.backup_name)
    if not backups:
        utils.print_warning(f"No backups found in {config.output_path(root)}")
        return

    table = utils.create_table(
        "Backups",
        [
            ("Name", "cyan", 36),
            ("Modified", "white", 20),
            ("Size", "yellow", 10),
        ],
    )
    for path in backups:
        modified = datetime.fromtimestamp(path.stat().st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(path.name, modified, utils.format_bytes(SystemUtils.directory_size(path)))
    console.print(table)
    utils.print_success(f"Total: {len(backups)} backup(s)")


def register_to_main_app(main_app: typer.Typer):
    """Register export commands to main CLI app"""
    main_app.command(name="export")(export_run)
    main_app.command(name="list")(export_list)
