"""Discovery and structural validation of spec directories."""
import logging
from pathlib import Path
from typing import List, Optional, Union

from ..models.spec import ScanReport, SpecStats, SpecValidationResult
from ..services.exceptions import ArchivalError, ValidationError
from .completion_detector import CompletionDetector
from .constants import (
    ARCHIVE_DIR_NAME,
    ARCHIVE_METADATA_FILE,
    DESIGN_FILE,
    MAX_RECOMMENDED_TASKS,
    MIN_DOCUMENT_LENGTH,
    OPTIONAL_SPEC_FILES,
    REQUIRED_SPEC_FILES,
    REQUIREMENTS_FILE,
    TASKS_FILE,
)

logger = logging.getLogger(__name__)


class SpecScanner:
    """Scans the specs root for spec directories and validates them."""

    def __init__(self, specs_root: Path, archive_root: Optional[Path] = None,
                 detector: Optional[CompletionDetector] = None):
        """Initialize the scanner.

        Args:
            specs_root: Directory holding one subdirectory per spec
            archive_root: Archive directory to skip when it lives under specs_root
            detector: Completion detector to use for task parsing
        """
        self.specs_root = Path(specs_root)
        self.archive_root = Path(archive_root) if archive_root else None
        self.detector = detector or CompletionDetector()

    def _is_archive_dir(self, path: Path) -> bool:
        if path.name == ARCHIVE_DIR_NAME:
            return True
        return self.archive_root is not None and path.resolve() == self.archive_root.resolve()

    def _is_spec_dir(self, path: Path) -> bool:
        # A spec has a tasks.md; archived copies also carry a metadata file
        return (path / TASKS_FILE).is_file() and not (path / ARCHIVE_METADATA_FILE).exists()

    def list_specs(self) -> List[str]:
        """List spec directories under the specs root, sorted by path."""
        if not self.specs_root.exists():
            logger.debug("Specs root %s does not exist", self.specs_root)
            return []

        try:
            entries = list(self.specs_root.iterdir())
        except OSError as e:
            raise ValidationError(f"Failed to scan specs directory: {e}", str(self.specs_root))

        specs = [
            str(entry) for entry in entries
            if entry.is_dir() and not self._is_archive_dir(entry) and self._is_spec_dir(entry)
        ]
        return sorted(specs)

    def list_completed(self) -> List[str]:
        """List specs whose tasks are all done."""
        completed = []
        for spec_path in self.list_specs():
            try:
                if self.detector.check_completion(spec_path).is_complete:
                    completed.append(spec_path)
            except ArchivalError as e:
                logger.debug("Skipping %s, completion check failed: %s", spec_path, e)
        return completed

    def list_incomplete(self) -> List[str]:
        """List specs that are not (or cannot be shown to be) complete."""
        completed = set(self.list_completed())
        return [spec for spec in self.list_specs() if spec not in completed]

    def validate_spec(self, spec_path: Union[str, Path]) -> SpecValidationResult:
        """Validate the structure and content of one spec directory."""
        spec_dir = Path(spec_path)
        result = SpecValidationResult()

        if not spec_dir.is_dir():
            result.issues.append(f"Spec path is not a directory: {spec_dir}")
            return result

        for required_file in REQUIRED_SPEC_FILES:
            file_path = spec_dir / required_file
            if not file_path.exists():
                result.issues.append(f"Missing required file: {required_file}")
            elif not file_path.is_file():
                result.issues.append(f"Required file is not a regular file: {required_file}")
            elif file_path.stat().st_size == 0:
                result.issues.append(f"Required file is empty: {required_file}")

        if not any(TASKS_FILE in issue for issue in result.issues):
            self._validate_tasks_file(spec_dir, result)

        self._check_unexpected_entries(spec_dir, result)
        self._check_document_content(spec_dir, result)
        return result

    def _validate_tasks_file(self, spec_dir: Path, result: SpecValidationResult) -> None:
        try:
            content = (spec_dir / TASKS_FILE).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.issues.append(f"Failed to validate {TASKS_FILE}: {e}")
            return

        format_check = self.detector.validate_format(content)
        result.issues.extend(f"{TASKS_FILE}: {issue}" for issue in format_check.issues)

        counts = self.detector.parse_task_counts(content)
        if counts.total == 0:
            result.warnings.append(f"{TASKS_FILE} contains no tasks")
        elif counts.total > MAX_RECOMMENDED_TASKS:
            result.warnings.append(
                f"{TASKS_FILE} contains many tasks ({counts.total}) - consider breaking into smaller specs"
            )
        if counts.is_complete:
            result.warnings.append("All tasks completed - spec may be ready for archival")

    def _check_unexpected_entries(self, spec_dir: Path, result: SpecValidationResult) -> None:
        known = set(REQUIRED_SPEC_FILES) | set(OPTIONAL_SPEC_FILES)
        try:
            entries = sorted(spec_dir.iterdir())
        except OSError as e:
            logger.debug("Could not list %s: %s", spec_dir, e)
            return

        for entry in entries:
            if entry.is_dir():
                result.warnings.append(f"Unexpected subdirectory found: {entry.name}")
            elif entry.name not in known and not entry.name.startswith("."):
                result.warnings.append(f"Unexpected file found: {entry.name}")

    def _check_document_content(self, spec_dir: Path, result: SpecValidationResult) -> None:
        for name in (REQUIREMENTS_FILE, DESIGN_FILE):
            try:
                content = (spec_dir / name).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                # Reported by the required file checks
                continue
            if len(content.strip()) < MIN_DOCUMENT_LENGTH:
                result.warnings.append(f"{name} is very short - may need more detail")
            if name == REQUIREMENTS_FILE and "requirement" not in content.lower():
                result.warnings.append(f"{name} may not contain actual requirements")

    def scan_and_validate_all(self) -> ScanReport:
        """Validate every spec and aggregate the results."""
        specs = self.list_specs()
        report = ScanReport(total_specs=len(specs))

        for spec_path in specs:
            try:
                validation = self.validate_spec(spec_path)
            except Exception as e:
                report.invalid_specs.append(spec_path)
                report.issues_by_path[spec_path] = [f"Validation failed: {e}"]
                continue

            if validation.is_valid:
                report.valid_specs.append(spec_path)
            else:
                report.invalid_specs.append(spec_path)

            messages = validation.issues + [f"WARNING: {w}" for w in validation.warnings]
            if messages:
                report.issues_by_path[spec_path] = messages

        return report

    def ready_for_archival(self) -> List[str]:
        """Completed specs that also pass structural validation."""
        ready = []
        for spec_path in self.list_completed():
            try:
                if self.validate_spec(spec_path).is_valid:
                    ready.append(spec_path)
            except OSError as e:
                logger.debug("Skipping %s, validation failed: %s", spec_path, e)
        return ready

    def get_spec_stats(self) -> SpecStats:
        """Summary counts over all active specs."""
        specs = self.list_specs()
        completed = self.list_completed()
        report = self.scan_and_validate_all()
        return SpecStats(
            total=len(specs),
            completed=len(completed),
            incomplete=len(specs) - len(completed),
            valid=len(report.valid_specs),
            invalid=len(report.invalid_specs),
            ready_for_archival=len(self.ready_for_archival()),
        )
