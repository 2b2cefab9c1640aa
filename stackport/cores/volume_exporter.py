"""
Volume export: bind-mounted directories to zip archives.

Each configured directory ends up as exactly one of ``volumes/<name>.zip`` or,
when zipping fails, an uncompressed copy in ``volumes/<name>/``. Missing or
empty directories are skipped with a warning.
"""

import shutil
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..helpers.config import StackportConfig, VolumeMapping
from ..helpers.constants import COMPRESSOR_7Z, COMPRESSOR_BUILTIN
from ..helpers.logging import get_logger
from ..helpers.system_utils import SystemUtils
from ..helpers.ui_utils import run_command, SubprocessError, format_bytes
from ..types import ItemOutcome, OutcomeStatus, STAGE_VOLUMES

logger = get_logger(__name__)


class VolumeExporter:
    """
    Archives the configured volume directories.

    After ``export_all`` the attribute ``archive_roots`` maps every zipped
    volume to the folder the archiver nested its contents under ("" when the
    contents sit at the top of the zip). The restore side strips that folder.
    """

    def __init__(self, config: StackportConfig, project_root: Path, runner: Callable = run_command):
        self.config = config
        self.project_root = Path(project_root)
        self.runner = runner
        self.archive_roots: Dict[str, str] = {}

    def export_all(self, volumes_dir: Path) -> List[ItemOutcome]:
        volumes_dir.mkdir(parents=True, exist_ok=True)
        return [self.export_volume(mapping, volumes_dir) for mapping in self.config.volumes]

    def export_volume(self, mapping: VolumeMapping, volumes_dir: Path) -> ItemOutcome:
        name = mapping.archive_name
        source = self.project_root / mapping.local_path

        if not source.is_dir():
            logger.warning(f"Volume directory not found: {source}", extra={'volume': name})
            return ItemOutcome(STAGE_VOLUMES, name, OutcomeStatus.SKIPPED, f"directory not found: {mapping.local_path}")

        if not any(source.iterdir()):
            logger.warning(f"Volume directory is empty: {source}", extra={'volume': name})
            return ItemOutcome(STAGE_VOLUMES, name, OutcomeStatus.SKIPPED, f"directory is empty: {mapping.local_path}")

        zip_path = volumes_dir / f"{name}.zip"
        for compressor in self.config.compressor_choices:
            if compressor == COMPRESSOR_7Z:
                archive_root = self._zip_with_seven_zip(source, zip_path)
            else:
                archive_root = self._zip_builtin_safe(source, zip_path)
            if archive_root is not None:
                self.archive_roots[name] = archive_root
                size = zip_path.stat().st_size
                logger.info(
                    f"Archived {mapping.local_path} -> {zip_path.name} ({format_bytes(size)})",
                    extra={'volume': name, 'compressor': compressor, 'size_bytes': size},
                )
                return ItemOutcome(STAGE_VOLUMES, name, OutcomeStatus.OK, f"zipped ({compressor})", zip_path, size)

        return self._copy_fallback(source, volumes_dir / name, name)

    # --------------- Compressors ---------------

    def _zip_with_seven_zip(self, source: Path, zip_path: Path) -> Optional[str]:
        """
        Zip with 7-Zip at maximum compression.

        7-Zip stores the directory itself, so the contents are nested under
        ``source.name`` inside the archive.

        Returns:
            The nesting folder name, or None if 7-Zip is missing or failed
        """
        binary = SystemUtils.find_seven_zip()
        if binary is None:
            logger.debug("7-Zip not available, using built-in zip")
            return None

        zip_path.unlink(missing_ok=True)
        try:
            self.runner(
                [binary, 'a', '-tzip', '-mx=9', '-y', str(zip_path), str(source)],
                f"Compressing {source.name} with 7-Zip",
                timeout=self.config.command_timeout,
            )
        except SubprocessError as e:
            zip_path.unlink(missing_ok=True)
            logger.warning(f"7-Zip failed for {source}, falling back: {e}", extra={'volume': zip_path.stem})
            return None
        return source.name

    def _zip_builtin_safe(self, source: Path, zip_path: Path) -> Optional[str]:
        try:
            self._zip_builtin(source, zip_path)
        except Exception as e:
            zip_path.unlink(missing_ok=True)
            logger.warning(
                f"Built-in zip failed for {source}, copying uncompressed: {e}",
                extra={'volume': zip_path.stem},
            )
            return None
        return ""

    def _zip_builtin(self, source: Path, zip_path: Path) -> None:
        """Zip the contents of ``source`` with no enclosing folder."""
        zip_path.unlink(missing_ok=True)
        shutil.make_archive(str(zip_path.with_suffix('')), 'zip', root_dir=str(source))

    # --------------- Fallback ---------------

    def _copy_fallback(self, source: Path, copy_dir: Path, name: str) -> ItemOutcome:
        if copy_dir.exists():
            shutil.rmtree(copy_dir)
        try:
            shutil.copytree(source, copy_dir, symlinks=True)
        except (OSError, shutil.Error) as e:
            shutil.rmtree(copy_dir, ignore_errors=True)
            logger.error(f"Failed to copy volume {name}: {e}", extra={'volume': name})
            return ItemOutcome(STAGE_VOLUMES, name, OutcomeStatus.FAILED, f"zip and copy failed: {e}")

        size = SystemUtils.directory_size(copy_dir)
        logger.info(f"Copied {source} -> {copy_dir.name}/ ({format_bytes(size)})", extra={'volume': name, 'size_bytes': size})
        return ItemOutcome(STAGE_VOLUMES, name, OutcomeStatus.OK, "copied (uncompressed)", copy_dir, size)
