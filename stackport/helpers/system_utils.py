"""
System utilities module for Stackport.

Pre-flight checks for the export host: Docker availability, external
compressors and free disk space.
"""

import shutil
from pathlib import Path
from typing import Callable, Optional, Union

import psutil

from .constants import SEVEN_ZIP_BINARIES
from .logging import get_logger
from .ui_utils import run_command, SubprocessError


logger = get_logger(__name__)


class SystemUtils:
    """
    System utilities for resource and dependency checks.
    """

    @staticmethod
    def check_docker(runner: Callable = run_command) -> bool:
        """
        Check if Docker is installed and the daemon answers.

        Args:
            runner: Command runner, ``run_command`` compatible

        Returns:
            True if Docker is available
        """
        try:
            runner(['docker', 'version'], "Checking Docker", timeout=5)
            return True
        except SubprocessError:
            return False

    @staticmethod
    def find_seven_zip() -> Optional[str]:
        """
        Locate a 7-Zip binary on PATH.

        Returns:
            Path of the first 7z/7za/7zz found, or None
        """
        for name in SEVEN_ZIP_BINARIES:
            path = shutil.which(name)
            if path:
                return path
        return None

    @staticmethod
    def get_available_disk_space(path: Union[str, Path] = '/') -> float:
        """
        Get available disk space in gigabytes.

        The nearest existing ancestor of ``path`` is measured, so the check
        works before the output directory has been created.

        Args:
            path: Path to check disk space for

        Returns:
            Available disk space in GB
        """
        existing = Path(path).absolute()
        while not existing.exists() and existing != existing.parent:
            existing = existing.parent
        try:
            usage = psutil.disk_usage(str(existing))
            return usage.free / (1024 ** 3)  # Convert to GB
        except Exception as e:
            logger.error(f"Failed to get disk space: {e}")
            return 0.0

    @staticmethod
    def directory_size(path: Union[str, Path]) -> int:
        """Sum of the sizes of all regular files below ``path`` (0 if missing)."""
        root = Path(path)
        if root.is_file():
            return root.stat().st_size
        if not root.is_dir():
            return 0
        total = 0
        for entry in root.rglob('*'):
            if entry.is_file() and not entry.is_symlink():
                total += entry.stat().st_size
        return total
