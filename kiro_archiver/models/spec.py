"""Spec scanning and completion data models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List


@dataclass
class TaskCounts:
    """Task totals parsed from a tasks.md document."""
    total: int
    completed: int

    @property
    def is_complete(self) -> bool:
        # An empty task list is never complete
        return self.total > 0 and self.completed == self.total


@dataclass
class CompletionStatus:
    """Completion state of a spec, computed on demand."""
    total_tasks: int
    completed_tasks: int
    last_modified: datetime  # mtime of tasks.md

    @property
    def is_complete(self) -> bool:
        return TaskCounts(self.total_tasks, self.completed_tasks).is_complete


@dataclass
class FormatValidation:
    """Result of checking tasks.md formatting."""
    issues: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues


@dataclass
class SpecValidationResult:
    """Structural validation of one spec directory."""
    issues: List[str] = field(default_factory=list)  # Blocking problems
    warnings: List[str] = field(default_factory=list)  # Advisory only

    @property
    def is_valid(self) -> bool:
        return not self.issues


@dataclass
class ScanReport:
    """Validation results for every spec under the specs root."""
    total_specs: int
    valid_specs: List[str] = field(default_factory=list)
    invalid_specs: List[str] = field(default_factory=list)
    issues_by_path: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class SpecStats:
    """Summary counts over the active specs."""
    total: int
    completed: int
    incomplete: int
    valid: int
    invalid: int
    ready_for_archival: int
