"""Archival pipeline data models."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from ..services.exceptions import ErrorCode


class OperationStatus(Enum):
    """Lifecycle of a single archival attempt."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    OperationStatus.PENDING: {OperationStatus.IN_PROGRESS, OperationStatus.FAILED},
    OperationStatus.IN_PROGRESS: {OperationStatus.COMPLETED, OperationStatus.FAILED},
    OperationStatus.COMPLETED: set(),
    OperationStatus.FAILED: set(),
}


@dataclass
class SafetyCheck:
    """Pre-flight verdict gating a filesystem mutation."""
    issues: List[str] = field(default_factory=list)
    codes: List[ErrorCode] = field(default_factory=list)  # Parallel to issues

    def add(self, code: ErrorCode, message: str) -> None:
        self.issues.append(message)
        self.codes.append(code)

    @property
    def is_safe(self) -> bool:
        return not self.issues

    @property
    def can_proceed(self) -> bool:
        return not self.issues

    @property
    def primary_code(self) -> Optional[ErrorCode]:
        return self.codes[0] if self.codes else None


@dataclass
class ArchivalDecision:
    """Whether a spec should be archived now, and why not."""
    should_archive: bool
    reason: Optional[str] = None
    code: Optional[ErrorCode] = None

    @classmethod
    def archive(cls) -> "ArchivalDecision":
        return cls(should_archive=True)

    @classmethod
    def skip(cls, code: ErrorCode, reason: str) -> "ArchivalDecision":
        return cls(should_archive=False, reason=reason, code=code)


@dataclass
class ArchivalResult:
    """Outcome of one archival attempt."""
    success: bool
    original_path: str
    archive_path: str
    timestamp: datetime
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None


@dataclass
class ArchivalOperation:
    """State machine record for one archival attempt."""
    spec_path: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: OperationStatus = OperationStatus.PENDING
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    error: Optional[str] = None

    def _move_to(self, status: OperationStatus) -> None:
        if status not in _TRANSITIONS[self.status]:
            raise ValueError(
                f"Invalid archival state transition: {self.status.value} -> {status.value}"
            )
        self.status = status
        if status in (OperationStatus.COMPLETED, OperationStatus.FAILED):
            self.end_time = datetime.now()

    def start(self) -> None:
        self._move_to(OperationStatus.IN_PROGRESS)

    def complete(self) -> None:
        self._move_to(OperationStatus.COMPLETED)

    def fail(self, error: str) -> None:
        self._move_to(OperationStatus.FAILED)
        self.error = error

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.status]


@dataclass
class SkippedSpec:
    """A spec the batch run looked at but did not archive."""
    spec_path: str
    reason: str
    code: Optional[ErrorCode] = None


@dataclass
class BatchReport:
    """Per-item outcome of an automatic archival run."""
    results: List[ArchivalResult] = field(default_factory=list)
    skipped: List[SkippedSpec] = field(default_factory=list)
    planned: List[str] = field(default_factory=list)  # Dry-run only

    @property
    def succeeded(self) -> List[ArchivalResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[ArchivalResult]:
        return [r for r in self.results if not r.success]


@dataclass
class ArchiveStats:
    """Summary statistics over the archive index."""
    total_archives: int
    total_tasks: int
    oldest_archive: Optional[datetime] = None
    newest_archive: Optional[datetime] = None


@dataclass
class IndexRepairReport:
    """Outcome of reconciling the index with the archive tree."""
    is_valid: bool
    repaired: bool
    issues: List[str] = field(default_factory=list)
