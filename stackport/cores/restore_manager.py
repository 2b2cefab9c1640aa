################################################################################
# STACKPORT
#
# @file:        restore_manager.py
# @module:      stackport.cores.restore_manager
# @description: Restores images, volumes and config files from a backup folder.
# @author:      Stackport Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Single restore implementation behind import_linux.sh and import_windows.ps1
# - Volume targets come from manifest.json only
# - First hard failure raises RestoreError; nothing is rolled back
################################################################################

"""
Restore management module for Stackport.

Order of operations:
1. ``docker load`` every image archive in images/
2. Restore every known entry of volumes/ (zip or plain copy)
3. Copy config/ files to the project root, overwriting
4. Bring the stack up with the recorded compose command
"""

from __future__ import annotations

import os
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..helpers.constants import CONFIG_DIR, IMAGES_DIR, VOLUMES_DIR
from ..helpers.exceptions import RestoreError
from ..helpers.logging import get_logger
from ..helpers.ui_utils import run_command, SubprocessError
from ..types import (
    ItemOutcome,
    OutcomeStatus,
    RestoreReport,
    STAGE_CONFIG,
    STAGE_IMAGES,
    STAGE_VOLUMES,
)
from .manifest import load_manifest, volume_table

logger = get_logger(__name__)

TARGET_ROOT_ENV = "STACKPORT_TARGET_ROOT"


def resolve_target_root(backup_dir: Path, manifest: Dict, explicit: Optional[Path] = None) -> Path:
    """Explicit path, else $STACKPORT_TARGET_ROOT, else the root recorded relative to the backup."""
    if explicit is not None:
        return Path(explicit).expanduser().resolve()
    env_root = os.environ.get(TARGET_ROOT_ENV)
    if env_root:
        return Path(env_root).expanduser().resolve()
    return (Path(backup_dir) / manifest["project_root_relpath"]).resolve()


def _safe_extract(archive: zipfile.ZipFile, destination: Path) -> None:
    """Extract all members, refusing any that would land outside ``destination``."""
    destination = destination.resolve()
    for member in archive.namelist():
        target = (destination / member).resolve()
        if target != destination and destination not in target.parents:
            raise zipfile.BadZipFile(f"Unsafe path in archive: {member}")
    archive.extractall(destination)


class RestoreManager:
    """
    Restores a backup folder into a project root.

    Args:
        backup_dir: Folder produced by ``stackport export``
        target_root: Project root to restore into (see ``resolve_target_root``)
        runner: Command runner, ``run_command`` compatible
        command_timeout: Timeout for docker load / compose (None = unbounded)

    Raises:
        ManifestError: manifest.json missing or invalid
    """

    def __init__(
        self,
        backup_dir: Path,
        target_root: Optional[Path] = None,
        runner: Callable = run_command,
        command_timeout: Optional[float] = None,
    ):
        self.backup_dir = Path(backup_dir).resolve()
        self.manifest = load_manifest(self.backup_dir)
        self.target_root = resolve_target_root(self.backup_dir, self.manifest, target_root)
        self.runner = runner
        self.command_timeout = command_timeout
        self.volumes = volume_table(self.manifest)

    def run(self, start: bool = True) -> RestoreReport:
        report = RestoreReport(backup_dir=self.backup_dir, target_root=self.target_root)
        logger.info(f"Restoring {self.backup_dir} into {self.target_root}")
        self.target_root.mkdir(parents=True, exist_ok=True)

        report.outcomes.extend(self.load_images())
        report.outcomes.extend(self.restore_volumes())
        report.outcomes.extend(self.restore_config())
        if start:
            self.start_stack()
            report.stack_started = True
        return report

    # --------------- Images ---------------

    def load_images(self) -> List[ItemOutcome]:
        images_dir = self.backup_dir / IMAGES_DIR
        if not images_dir.is_dir():
            return []

        outcomes = []
        for archive in sorted(images_dir.glob("*.tar")):
            try:
                self.runner(
                    ['docker', 'load', '-i', str(archive)],
                    f"Loading image {archive.name}",
                    timeout=self.command_timeout,
                )
            except SubprocessError as e:
                raise RestoreError("docker load", archive.name, str(e)) from e
            logger.info(f"Loaded image archive {archive.name}", extra={'image': archive.name})
            outcomes.append(ItemOutcome(STAGE_IMAGES, archive.name, OutcomeStatus.OK, "loaded", archive))
        return outcomes

    # --------------- Volumes ---------------

    def restore_volumes(self) -> List[ItemOutcome]:
        volumes_dir = self.backup_dir / VOLUMES_DIR
        if not volumes_dir.is_dir():
            return []

        outcomes = []
        for entry in sorted(volumes_dir.iterdir()):
            if entry.is_file() and entry.suffix == ".zip":
                name = entry.stem
            elif entry.is_dir():
                name = entry.name
            else:
                continue

            volume = self.volumes.get(name)
            if volume is None:
                logger.debug(f"Ignoring unknown volume entry: {entry.name}")
                continue

            target = self._target_path(name, volume["target"])
            try:
                if entry.is_dir():
                    self._restore_copy(entry, target)
                else:
                    self._restore_zip(entry, target, volume["archive_root"])
            except (OSError, zipfile.BadZipFile, shutil.Error) as e:
                raise RestoreError("volume restore", name, str(e)) from e

            logger.info(f"Restored volume {name} -> {volume['target']}", extra={'volume': name})
            outcomes.append(ItemOutcome(STAGE_VOLUMES, name, OutcomeStatus.OK, f"restored to {volume['target']}", target))
        return outcomes

    def _target_path(self, name: str, relative: str) -> Path:
        """Absolute target for a volume; must lie strictly inside the target root."""
        target = self.target_root / relative
        resolved = target.resolve()
        if resolved == self.target_root or self.target_root not in resolved.parents:
            raise RestoreError("volume restore", name, f"target {relative!r} is outside {self.target_root}")
        return target

    def _restore_zip(self, archive: Path, target: Path, archive_root: Optional[str]) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        scratch = Path(tempfile.mkdtemp(prefix=f".stackport-{archive.stem}-", dir=target.parent))
        try:
            with zipfile.ZipFile(archive) as zf:
                _safe_extract(zf, scratch)
            content = self._strip_nesting(scratch, archive_root, target.name)
            self._clear(target)
            for item in content.iterdir():
                shutil.move(str(item), str(target / item.name))
        finally:
            shutil.rmtree(scratch, ignore_errors=True)

    @staticmethod
    def _strip_nesting(scratch: Path, archive_root: Optional[str], target_name: str) -> Path:
        """
        Folder inside ``scratch`` that holds the volume contents.

        A recorded ``archive_root`` is stripped when present. Without a record,
        a lone top-level folder named like the target directory is taken to
        be the archiver's nesting folder.
        """
        entries = list(scratch.iterdir())
        if archive_root:
            nested = scratch / archive_root
            if nested.is_dir() and len(entries) == 1:
                return nested
            return scratch
        if archive_root is None and len(entries) == 1 and entries[0].is_dir() and entries[0].name == target_name:
            return entries[0]
        return scratch

    def _restore_copy(self, source: Path, target: Path) -> None:
        self._clear(target)
        shutil.copytree(source, target, symlinks=True, dirs_exist_ok=True)

    @staticmethod
    def _clear(target: Path) -> None:
        """Empty ``target`` (creating it if needed) so restored state matches the backup."""
        if target.is_symlink() or target.is_file():
            target.unlink()
        elif target.is_dir():
            shutil.rmtree(target)
        target.mkdir(parents=True, exist_ok=True)

    # --------------- Config ---------------

    def restore_config(self) -> List[ItemOutcome]:
        config_dir = self.backup_dir / CONFIG_DIR
        if not config_dir.is_dir():
            return []

        outcomes = []
        for source in sorted(config_dir.iterdir()):
            if not source.is_file():
                continue
            try:
                target = Path(shutil.copy2(source, self.target_root / source.name))
            except OSError as e:
                raise RestoreError("config restore", source.name, str(e)) from e
            logger.info(f"Restored config file {source.name}", extra={'file': source.name})
            outcomes.append(ItemOutcome(STAGE_CONFIG, source.name, OutcomeStatus.OK, "copied", target))
        return outcomes

    # --------------- Stack ---------------

    def start_stack(self) -> None:
        command = list(self.manifest["compose_command"])
        try:
            self.runner(command, "Starting stack", timeout=self.command_timeout, cwd=self.target_root)
        except SubprocessError as e:
            raise RestoreError("stack start", " ".join(command), str(e)) from e
        logger.info("Stack started", extra={'command': " ".join(command)})
