################################################################################
# STACKPORT
#
# @file:        types.py
# @module:      stackport.types
# @description: Per-item outcomes and the run reports built from them.
# @author:      Stackport Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Every export/restore stage returns ItemOutcome values instead of printing
# - ExportReport aggregates them so callers can detect partial failure
################################################################################

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Dict, Any, Optional


class OutcomeStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


# Stage names used in outcomes
STAGE_CONTAINERS = "containers"
STAGE_IMAGES = "images"
STAGE_VOLUMES = "volumes"
STAGE_CONFIG = "config"
STAGE_SCRIPTS = "scripts"
STAGE_RETENTION = "retention"


@dataclass
class ItemOutcome:
    stage: str
    name: str
    status: OutcomeStatus
    message: str = ""
    path: Optional[Path] = None
    size_bytes: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "path": str(self.path) if self.path else None,
            "size_bytes": self.size_bytes,
        }


@dataclass
class _OutcomeList:
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def add(self, outcome: ItemOutcome) -> ItemOutcome:
        self.outcomes.append(outcome)
        return outcome

    def by_stage(self, stage: str) -> List[ItemOutcome]:
        return [o for o in self.outcomes if o.stage == stage]

    @property
    def failures(self) -> List[ItemOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def skipped(self) -> List[ItemOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.SKIPPED]

    @property
    def success(self) -> bool:
        return not self.failures


@dataclass
class ExportReport(_OutcomeList):
    backup_dir: Optional[Path] = None
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    stopped_containers: List[str] = field(default_factory=list)
    restarted_containers: List[str] = field(default_factory=list)
    deleted_backups: List[Path] = field(default_factory=list)
    total_size_bytes: int = 0

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backup_dir": str(self.backup_dir) if self.backup_dir else None,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "stopped_containers": self.stopped_containers,
            "restarted_containers": self.restarted_containers,
            "deleted_backups": [str(p) for p in self.deleted_backups],
            "total_size_bytes": self.total_size_bytes,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


@dataclass
class RestoreReport(_OutcomeList):
    backup_dir: Optional[Path] = None
    target_root: Optional[Path] = None
    stack_started: bool = False
