"""
Dataclasses for tracking queue statistics and relocation outcomes.
"""

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class QueueStats:
    """Tracks statistics for one run of the download queue."""

    jobs_completed: int = 0
    jobs_failed: int = 0
    jobs_skipped: int = 0
    manifests_written: int = 0
    queries: list[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic, repr=False)

    @property
    def jobs_total(self) -> int:
        return self.jobs_completed + self.jobs_failed + self.jobs_skipped

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started_at

    def as_history_entry(self) -> dict[str, Any]:
        return {
            "timestamp": int(time.time()),
            "queries": self.queries,
            "jobs_completed": self.jobs_completed,
            "jobs_failed": self.jobs_failed,
            "jobs_skipped": self.jobs_skipped,
            "manifests_written": self.manifests_written,
            "duration_seconds": round(self.elapsed, 2),
        }


@dataclass
class RelocationReport:
    """
    Outcome of moving one item from the staging root into the library.

    Per-child failures inside a directory move are collected in ``failed``
    rather than raised.
    """

    source: str
    target: str
    target_relative: str
    moved: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)
    vanished: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "targetPath": self.target_relative,
            "moved": len(self.moved),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }
