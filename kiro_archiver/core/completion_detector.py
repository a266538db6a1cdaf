"""Completion detection for spec task lists."""
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import List, Tuple, Union

from ..models.spec import CompletionStatus, FormatValidation, TaskCounts
from ..services.exceptions import TasksFileNotFoundError, TasksFileReadError
from .constants import TASKS_FILE

# "- [x] text" / "- [ ] text", one task per line
TASK_PATTERN = re.compile(r"^[ \t]*-[ \t]+\[([x ])\][ \t]+(\S.*)$", re.MULTILINE)
MALFORMED_MARKER_PATTERN = re.compile(r"^[ \t]*-[ \t]+\[[^x \n]\]", re.MULTILINE)
UNLISTED_MARKER_PATTERN = re.compile(r"^[ \t]*\[[x ]\]", re.MULTILINE)

COMPLETED_MARKER = "x"


class CompletionDetector:
    """Parses tasks.md documents and reports how far a spec has progressed."""

    def check_completion(self, spec_path: Union[str, Path]) -> CompletionStatus:
        """Read a spec's tasks.md and compute its completion status.

        Args:
            spec_path: Path to the spec directory

        Returns:
            CompletionStatus for the spec

        Raises:
            TasksFileNotFoundError: tasks.md does not exist
            TasksFileReadError: tasks.md could not be read or decoded
        """
        tasks_file = Path(spec_path) / TASKS_FILE
        try:
            stats = tasks_file.stat()
            content = tasks_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise TasksFileNotFoundError(f"Tasks file not found: {tasks_file}", str(spec_path))
        except (OSError, UnicodeDecodeError) as e:
            raise TasksFileReadError(f"Failed to read tasks file: {e}", str(spec_path))

        counts = self.parse_task_counts(content)
        return CompletionStatus(
            total_tasks=counts.total,
            completed_tasks=counts.completed,
            last_modified=datetime.fromtimestamp(stats.st_mtime),
        )

    def parse_task_counts(self, content: str) -> TaskCounts:
        """Count total and completed tasks in tasks.md content."""
        tasks = self.extract_tasks(content)
        completed = sum(1 for _, done in tasks if done)
        return TaskCounts(total=len(tasks), completed=completed)

    def extract_tasks(self, content: str) -> List[Tuple[str, bool]]:
        """Return (text, completed) for every well-formed task line."""
        return [
            (match.group(2).strip(), match.group(1) == COMPLETED_MARKER)
            for match in TASK_PATTERN.finditer(content)
        ]

    def is_tasks_content_complete(self, content: str) -> bool:
        """Check whether tasks.md content has every task ticked."""
        return self.parse_task_counts(content).is_complete

    def validate_format(self, content: str) -> FormatValidation:
        """Check that tasks.md content uses the expected checkbox format."""
        result = FormatValidation()

        if not content.strip():
            result.issues.append("Tasks file is empty")
            return result

        if not TASK_PATTERN.search(content):
            result.issues.append("No valid task markers found (expected format: - [x] or - [ ])")

        malformed = [m.group(0).strip() for m in MALFORMED_MARKER_PATTERN.finditer(content)]
        if malformed:
            result.issues.append(f"Found malformed task markers: {', '.join(malformed)}")

        if UNLISTED_MARKER_PATTERN.search(content):
            result.issues.append(
                'Found task markers without proper list formatting (missing "- " prefix)'
            )

        return result

    def completion_percentage(self, spec_path: Union[str, Path]) -> int:
        """Completion percentage (0-100) of a spec, 0 when it has no tasks."""
        status = self.check_completion(spec_path)
        if status.total_tasks == 0:
            return 0
        ratio = Decimal(status.completed_tasks) * 100 / Decimal(status.total_tasks)
        return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
