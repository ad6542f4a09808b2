"""
Result models for clone batches.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from .repository import RepositoryIdentifier


class CloneStatus(Enum):
    """Per-repository outcome of a clone batch."""
    CLONED = "cloned"
    SKIPPED_EXISTING = "skipped_existing"
    FAILED_CLONE = "failed_clone"
    FAILED_LFS = "failed_lfs"


@dataclass
class CloneOutcome:
    """
    Outcome of running the clone pipeline for a single repository.

    Warnings collect non-fatal problems (missing LFS extension, failed
    post-clone steps); they never change the status.
    """

    identifier: RepositoryIdentifier
    status: CloneStatus
    message: Optional[str] = None
    local_path: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == CloneStatus.CLONED

    @property
    def failed(self) -> bool:
        return self.status in (CloneStatus.FAILED_CLONE, CloneStatus.FAILED_LFS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repository": self.identifier.to_dict(),
            "status": self.status.value,
            "message": self.message,
            "local_path": self.local_path,
            "warnings": list(self.warnings),
        }


@dataclass
class BatchResult:
    """Aggregate result of one clone batch, outcomes in input order."""

    target_directory: str
    outcomes: List[CloneOutcome] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def count(self, status: CloneStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def cloned(self) -> List[CloneOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failures(self) -> List[CloneOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def summary(self) -> Dict[str, int]:
        return {status.value: self.count(status) for status in CloneStatus}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_directory": self.target_directory,
            "summary": self.summary(),
            "outcomes": [o.to_dict() for o in self.outcomes],
            "duration_seconds": self.duration_seconds,
        }
