"""
Backup retention.

Keeps the newest ``keep`` backup directories (by modification time) that
share the backup name prefix and removes the rest. Deletion is best-effort:
a directory that cannot be removed is reported and the next one is tried.
"""

import re
import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from ..helpers.logging import get_logger
from ..types import ItemOutcome, OutcomeStatus, STAGE_RETENTION

logger = get_logger(__name__)


def list_backups(output_dir: Path, backup_name: str) -> List[Path]:
    """
    Backup directories below ``output_dir`` named ``<backup_name>_<timestamp>``,
    newest first.
    """
    output_dir = Path(output_dir)
    if not output_dir.is_dir():
        return []
    pattern = re.compile(rf"^{re.escape(backup_name)}_\d")
    candidates = [p for p in output_dir.iterdir() if p.is_dir() and pattern.match(p.name)]
    return sorted(candidates, key=lambda p: (p.stat().st_mtime, p.name), reverse=True)


def apply_retention(
    output_dir: Path,
    backup_name: str,
    keep: int,
    current: Optional[Path] = None,
) -> Tuple[List[Path], List[ItemOutcome]]:
    """
    Delete all but the ``keep`` most recent backups.

    ``current`` (the backup just written) is always kept and counts towards
    ``keep``.

    Returns:
        (deleted directories, outcomes for each deletion attempt)
    """
    backups = list_backups(output_dir, backup_name)
    if current is not None:
        current = Path(current).resolve()
        others = [p for p in backups if p.resolve() != current]
        keep_others = max(keep - 1, 0)
        stale = others[keep_others:]
    else:
        stale = backups[keep:]

    deleted: List[Path] = []
    outcomes: List[ItemOutcome] = []
    for old in stale:
        try:
            shutil.rmtree(old)
        except OSError as e:
            logger.warning(f"Could not remove old backup {old}: {e}", extra={'backup': old.name})
            outcomes.append(ItemOutcome(STAGE_RETENTION, old.name, OutcomeStatus.FAILED, f"delete failed: {e}", old))
            continue
        logger.info(f"Removed old backup: {old.name}", extra={'backup': old.name})
        deleted.append(old)
        outcomes.append(ItemOutcome(STAGE_RETENTION, old.name, OutcomeStatus.OK, "deleted", old))
    return deleted, outcomes
