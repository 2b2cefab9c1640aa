"""
Image export via ``docker save``.

Each configured image reference becomes one tar file under ``images/``.
Missing images are skipped with a warning; a failed save never stops the
remaining images from being exported.
"""

from pathlib import Path
from typing import Callable, List

from ..helpers.config import StackportConfig
from ..helpers.logging import get_logger
from ..helpers.ui_utils import run_command, SubprocessError, format_bytes
from ..types import ItemOutcome, OutcomeStatus, STAGE_IMAGES

logger = get_logger(__name__)


def image_archive_name(reference: str) -> str:
    """Tar file name for an image reference ('a/b:c' -> 'a_b_c.tar')."""
    return reference.replace('/', '_').replace(':', '_') + '.tar'


class ImageExporter:
    def __init__(self, config: StackportConfig, runner: Callable = run_command):
        self.config = config
        self.runner = runner

    def image_exists(self, reference: str) -> bool:
        result = self.runner(
            ['docker', 'image', 'inspect', reference],
            f"Checking image {reference}",
            timeout=self.config.query_timeout,
            check=False,
        )
        return result.returncode == 0

    def export_all(self, images_dir: Path) -> List[ItemOutcome]:
        images_dir.mkdir(parents=True, exist_ok=True)
        return [self.export_image(reference, images_dir) for reference in self.config.images]

    def export_image(self, reference: str, images_dir: Path) -> ItemOutcome:
        """
        Save one image to ``images_dir``.

        Returns:
            OK with path and size, SKIPPED when the image is not present
            locally, FAILED when inspect or save fails
        """
        target = images_dir / image_archive_name(reference)

        try:
            present = self.image_exists(reference)
        except SubprocessError as e:
            logger.error(f"Could not inspect image {reference}: {e}", extra={'image': reference})
            return ItemOutcome(STAGE_IMAGES, reference, OutcomeStatus.FAILED, f"inspect failed: {e}")

        if not present:
            logger.warning(f"Image not found locally: {reference}", extra={'image': reference})
            return ItemOutcome(STAGE_IMAGES, reference, OutcomeStatus.SKIPPED, "image not found locally")

        try:
            self.runner(
                ['docker', 'save', '-o', str(target), reference],
                f"Saving image {reference}",
                timeout=self.config.command_timeout,
            )
        except SubprocessError as e:
            target.unlink(missing_ok=True)
            logger.error(f"Failed to save image {reference}: {e}", extra={'image': reference})
            return ItemOutcome(STAGE_IMAGES, reference, OutcomeStatus.FAILED, f"save failed: {e}")

        size = target.stat().st_size if target.exists() else 0
        if size == 0:
            target.unlink(missing_ok=True)
            logger.error(f"docker save produced no data for {reference}", extra={'image': reference})
            return ItemOutcome(STAGE_IMAGES, reference, OutcomeStatus.FAILED, "save produced an empty file")

        logger.info(f"Saved image {reference} ({format_bytes(size)})", extra={'image': reference, 'size_bytes': size})
        return ItemOutcome(STAGE_IMAGES, reference, OutcomeStatus.OK, "saved", path=target, size_bytes=size)
