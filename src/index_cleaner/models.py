"""Run-time records produced and consumed by the retention engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class IndexRef:
    """One remote index as seen when the service was listed."""

    name: str
    size_bytes: int


@dataclass(frozen=True)
class DeletionOutcome:
    index_name: str
    size_bytes: int
    succeeded: bool


class EventKind(Enum):
    matched = "matched"
    skipped_duplicate = "skipped_duplicate"
    skipped_protected = "skipped_protected"
    date_parse_failed = "date_parse_failed"
    deleted = "deleted"
    dry_run_deleted = "dry_run_deleted"
    delete_failed = "delete_failed"


@dataclass(frozen=True)
class RetentionEvent:
    kind: EventKind
    service: str
    index_name: str
    size_bytes: int = 0
    detail: Optional[str] = None


@dataclass
class ServiceRunResult:
    service: str
    deletions: List[DeletionOutcome] = field(default_factory=list)
    total_deleted_bytes: int = 0
    total_remaining_bytes: int = 0
    summary_message: str = ""
    failure_count: int = 0
    report_rows: List[Tuple[str, str]] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    events: List[RetentionEvent] = field(default_factory=list)

    @property
    def deleted_names(self) -> List[str]:
        return [d.index_name for d in self.deletions]

    def to_dict(self) -> dict[str, object]:
        return {
            "service": self.service,
            "deletions": [
                {"index_name": d.index_name, "size_bytes": d.size_bytes, "succeeded": d.succeeded}
                for d in self.deletions
            ],
            "total_deleted_bytes": self.total_deleted_bytes,
            "total_remaining_bytes": self.total_remaining_bytes,
            "summary_message": self.summary_message,
            "failure_count": self.failure_count,
            "report_rows": [list(row) for row in self.report_rows],
            "skipped": [{"index_name": name, "reason": reason} for name, reason in self.skipped],
        }
