"""Copies the stack's configuration files (.env, compose file) into config/."""

import shutil
from pathlib import Path
from typing import List

from ..helpers.config import StackportConfig
from ..helpers.logging import get_logger
from ..types import ItemOutcome, OutcomeStatus, STAGE_CONFIG

logger = get_logger(__name__)


class ConfigExporter:
    def __init__(self, config: StackportConfig, project_root: Path):
        self.config = config
        self.project_root = Path(project_root)

    def export_all(self, config_dir: Path) -> List[ItemOutcome]:
        config_dir.mkdir(parents=True, exist_ok=True)
        outcomes = []
        for relative in self.config.config_files:
            source = self.project_root / relative
            if not source.is_file():
                logger.warning(f"Config file not found: {relative}", extra={'file': relative})
                outcomes.append(ItemOutcome(STAGE_CONFIG, relative, OutcomeStatus.SKIPPED, "file not found"))
                continue
            try:
                target = Path(shutil.copy2(source, config_dir / source.name))
            except OSError as e:
                logger.error(f"Failed to copy {relative}: {e}", extra={'file': relative})
                outcomes.append(ItemOutcome(STAGE_CONFIG, relative, OutcomeStatus.FAILED, f"copy failed: {e}"))
                continue
            logger.info(f"Copied config file {relative}", extra={'file': relative})
            outcomes.append(
                ItemOutcome(STAGE_CONFIG, relative, OutcomeStatus.OK, "copied", target, target.stat().st_size)
            )
        return outcomes
