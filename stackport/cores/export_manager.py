################################################################################
# STACKPORT
#
# @file:        export_manager.py
# @module:      stackport.cores.export_manager
# @description: Orchestrates one export run into a timestamped backup folder.
# @author:      Stackport Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
################################################################################

"""
Export management module for Stackport.

This module runs the export pipeline: stopping containers, saving images,
archiving volumes, copying config files, writing the manifest and restore
scripts, restarting containers and pruning old backups.
"""

import json
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..helpers.config import StackportConfig
from ..helpers.constants import CONFIG_DIR, IMAGES_DIR, REPORT_FILE, VOLUMES_DIR
from ..helpers.exceptions import ManifestError
from ..helpers.logging import get_logger
from ..helpers.system_utils import SystemUtils
from ..helpers import ui_utils
from ..helpers.ui_utils import run_command, format_bytes
from ..types import ExportReport, ItemOutcome, OutcomeStatus, STAGE_CONTAINERS, STAGE_SCRIPTS
from .config_exporter import ConfigExporter
from .container_controller import ContainerController
from .image_exporter import ImageExporter
from .manifest import build_manifest, write_manifest
from .retention import apply_retention
from .script_generator import generate_scripts
from .volume_exporter import VolumeExporter

logger = get_logger(__name__)


class ExportManager:
    """
    Runs one export.

    Stages run strictly in sequence. Per-item problems become outcomes in the
    returned ExportReport; only unexpected exceptions propagate, and even then
    containers stopped by this run are started again.

    Args:
        config: Run configuration
        project_root: Directory all configured paths are relative to
        runner: Command runner, ``run_command`` compatible
        sleep: Delay function used after stopping containers
        now: Clock, replaced in tests
        verbose: Print STEP/OK/WARN/ERROR lines to the console
    """

    def __init__(
        self,
        config: StackportConfig,
        project_root: Path,
        runner: Callable = run_command,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = datetime.now,
        verbose: bool = True,
    ):
        self.config = config
        self.project_root = Path(project_root).resolve()
        self.runner = runner
        self.sleep = sleep
        self.now = now
        self.verbose = verbose

        self.containers = ContainerController(config, runner=runner, sleep=sleep)
        self.images = ImageExporter(config, runner=runner)
        self.volumes = VolumeExporter(config, self.project_root, runner=runner)
        self.config_files = ConfigExporter(config, self.project_root)

    @property
    def output_dir(self) -> Path:
        return self.config.output_path(self.project_root)

    def create_backup_dir(self) -> Path:
        """Create ``<output_dir>/<backup_name>_<timestamp>`` (suffixed if the name is taken)."""
        stamp = self.now().strftime(self.config.timestamp_format)
        base = self.output_dir / f"{self.config.backup_name}_{stamp}"
        candidate = base
        counter = 1
        while candidate.exists():
            candidate = base.with_name(f"{base.name}_{counter}")
            counter += 1
        candidate.mkdir(parents=True)
        return candidate

    def run(self) -> ExportReport:
        report = ExportReport(started_at=self.now())
        backup_dir = self.create_backup_dir()
        report.backup_dir = backup_dir
        logger.info(f"Starting export into {backup_dir}", extra={'backup': backup_dir.name})

        self._preflight()

        try:
            if self.config.stop_containers:
                self._step("Stopping running containers")
                self._record(report, self.containers.stop_running())
                report.stopped_containers = list(self.containers.stopped)
            else:
                self._warn("Containers are not stopped; exported volume data may be inconsistent")

            self._step("Exporting images")
            self._record(report, self.images.export_all(backup_dir / IMAGES_DIR))

            self._step("Exporting volumes")
            volume_outcomes = self.volumes.export_all(backup_dir / VOLUMES_DIR)
            self._record(report, volume_outcomes)

            self._step("Exporting config files")
            self._record(report, self.config_files.export_all(backup_dir / CONFIG_DIR))

            self._step("Writing manifest and import scripts")
            manifest = build_manifest(
                self.config,
                backup_dir,
                self.project_root,
                volume_outcomes=volume_outcomes,
                archive_roots=self.volumes.archive_roots,
                created_at=report.started_at,
            )
            try:
                manifest_path = write_manifest(backup_dir, manifest)
            except (OSError, ManifestError) as e:
                logger.error(f"Failed to write manifest: {e}")
                self._record(report, [ItemOutcome(STAGE_SCRIPTS, "manifest.json", OutcomeStatus.FAILED, str(e))])
            else:
                self._record(report, [ItemOutcome(STAGE_SCRIPTS, manifest_path.name, OutcomeStatus.OK, "written", manifest_path)])
                self._record(report, generate_scripts(backup_dir, manifest))
        finally:
            if self.containers.stopped:
                self._step("Restarting stopped containers")
                restarted, outcomes = self.containers.restart_stopped()
                report.restarted_containers = restarted
                self._record(report, outcomes)

        self._step(f"Applying retention (keep {self.config.retention})")
        deleted, outcomes = apply_retention(
            self.output_dir, self.config.backup_name, self.config.retention, current=backup_dir
        )
        report.deleted_backups = deleted
        self._record(report, outcomes)

        report.total_size_bytes = SystemUtils.directory_size(backup_dir)
        report.finished_at = self.now()
        self._write_report(report)

        logger.info(
            f"Export finished: {backup_dir} ({format_bytes(report.total_size_bytes)})",
            extra={'backup': backup_dir.name, 'failures': len(report.failures)},
        )
        return report

    # --------------- helpers ---------------

    def _preflight(self) -> None:
        if not SystemUtils.check_docker(self.runner):
            self._warn("Docker is not available; container and image stages will fail")
        self._check_disk_space()

    def _check_disk_space(self) -> None:
        free_gb = SystemUtils.get_available_disk_space(self.output_dir)
        if free_gb < self.config.min_free_gb:
            self._warn(f"Only {free_gb:.1f} GB free at {self.output_dir} (minimum {self.config.min_free_gb} GB)")

    def _write_report(self, report: ExportReport) -> Optional[Path]:
        path = report.backup_dir / REPORT_FILE
        try:
            path.write_text(json.dumps(report.to_dict(), indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            logger.error(f"Could not write export report: {e}")
            return None
        return path

    def _record(self, report: ExportReport, outcomes) -> None:
        for outcome in outcomes:
            report.add(outcome)
            if not self.verbose:
                continue
            label = f"{outcome.stage}: {outcome.name}"
            if outcome.message:
                label += f" ({outcome.message}"
                if outcome.size_bytes is not None:
                    label += f", {format_bytes(outcome.size_bytes)}"
                label += ")"
            # a container that is not running needs no action
            if outcome.status == OutcomeStatus.OK or (
                outcome.status == OutcomeStatus.SKIPPED and outcome.stage == STAGE_CONTAINERS
            ):
                ui_utils.print_success(label)
            elif outcome.status == OutcomeStatus.SKIPPED:
                ui_utils.print_warning(label)
            else:
                ui_utils.print_error(label)

    def _step(self, message: str) -> None:
        logger.debug(message)
        if self.verbose:
            ui_utils.print_step(message)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        if self.verbose:
            ui_utils.print_warning(message)
