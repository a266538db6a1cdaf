"""Archival engine: moves completed specs into the archive safely."""
import logging
import math
import os
import shutil
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional, Set, Union

from ..models.archival import (
    ArchivalDecision,
    ArchivalOperation,
    ArchivalResult,
    ArchiveStats,
    BatchReport,
    IndexRepairReport,
    SafetyCheck,
    SkippedSpec,
)
from ..models.archive import ArchiveIndexEntry, ArchiveMetadata
from ..models.config import ArchivalConfig
from ..models.spec import CompletionStatus, ScanReport
from ..services.exceptions import (
    ERRORS_BY_CODE,
    ArchivalError,
    ArchiveExistsError,
    ArchiveIndexError,
    CleanupError,
    CopyError,
    ErrorCode,
    PermissionDeniedError,
    ValidationError,
)
from ..utils.config_manager import ConfigurationManager
from .archive_index import ArchiveIndexManager, read_archive_metadata
from .completion_detector import CompletionDetector
from .constants import (
    ARCHIVE_DATE_FORMAT,
    ARCHIVE_METADATA_FILE,
    ARCHIVE_TIME_FORMAT,
    KIRO_DIR_NAME,
    RECENT_MODIFICATION_MINUTES,
    REQUIRED_SPEC_FILES,
    SPECS_DIR,
    TASKS_FILE,
    WRITE_PROBE_FILE,
)
from .notifications import Notifier, get_notifier
from .spec_scanner import SpecScanner

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ArchivalEngine:
    """Archives completed specs with a copy, verify, index, delete pipeline.

    The original spec directory is only removed after the archive copy has
    been verified and indexed. Any failure before that point rolls back the
    partially written archive and leaves the original untouched.
    """

    def __init__(self, project_root: Path,
                 config_manager: Optional[ConfigurationManager] = None,
                 index_manager: Optional[ArchiveIndexManager] = None,
                 scanner: Optional[SpecScanner] = None,
                 detector: Optional[CompletionDetector] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 notifier: Optional[Notifier] = None):
        """Initialize the archival engine.

        Args:
            project_root: Directory containing the .kiro folder
            config_manager: Shared configuration manager
            index_manager: Archive index manager (defaults to one for the archive root)
            scanner: Spec scanner (defaults to one for .kiro/specs)
            detector: Completion detector
            clock: Returns the current time; used for naming and timing checks
            notifier: Overrides the notifier chosen from notificationLevel
        """
        self.project_root = Path(project_root)
        self.config_manager = config_manager or ConfigurationManager(self.project_root / KIRO_DIR_NAME)
        self.archive_root = self.project_root / self.config_manager.load().archive_location
        self.specs_root = self.project_root / SPECS_DIR
        self.detector = detector or CompletionDetector()
        self.index_manager = index_manager or ArchiveIndexManager(self.archive_root)
        self.scanner = scanner or SpecScanner(self.specs_root, self.archive_root, self.detector)
        self._clock = clock or datetime.now
        self._notifier = notifier
        self._issued_paths: Set[str] = set()
        self.history: List[ArchivalOperation] = []

    # ------------------------------------------------------------------
    # Archival pipeline
    # ------------------------------------------------------------------

    def archive_spec(self, spec_path: PathLike) -> ArchivalResult:
        """Archive one spec directory.

        Args:
            spec_path: Path to the spec directory to archive

        Returns:
            ArchivalResult describing the outcome; failures never raise
        """
        spec_dir = Path(spec_path)
        operation = ArchivalOperation(spec_path=str(spec_dir))
        self.history.append(operation)
        timestamp = self._clock()
        operation.start()

        safety = self.validate_archival_safety(spec_dir)
        if not safety.can_proceed:
            error_class = ERRORS_BY_CODE.get(safety.primary_code, ValidationError)
            error = error_class(
                f"Archival safety validation failed: {', '.join(safety.issues)}", str(spec_dir)
            )
            return self._fail(operation, spec_dir, None, timestamp, error)

        archive_path: Optional[Path] = None
        created = False
        try:
            archive_path = self.generate_archive_path(spec_dir.name, timestamp)
            status = self.detector.check_completion(spec_dir)

            self._create_archive_dir(archive_path)
            created = True
            logger.debug("Copying %s to %s", spec_dir, archive_path)
            self._copy_tree(spec_dir, archive_path)

            metadata = self.create_archive_metadata(spec_dir, archive_path, status, timestamp)
            self._write_metadata(archive_path, metadata)
            self._verify_integrity(spec_dir, archive_path)
            self.index_manager.add_entry(metadata)
        except Exception as e:
            if created:
                self._rollback(archive_path)
            error = e if isinstance(e, ArchivalError) else CopyError(f"Archival failed: {e}", str(spec_dir))
            return self._fail(operation, spec_dir, archive_path, timestamp, error)

        result = ArchivalResult(
            success=True,
            original_path=str(spec_dir),
            archive_path=str(archive_path),
            timestamp=timestamp,
        )
        try:
            shutil.rmtree(spec_dir)
        except OSError as e:
            # The archive is complete and indexed; only the original lingers
            cleanup = CleanupError(
                f"Archived to {archive_path} but failed to remove original spec: {e}", str(spec_dir)
            )
            logger.warning(cleanup.message)
            result.error = cleanup.message
            result.error_code = cleanup.code

        operation.complete()
        logger.info("Archived %s to %s", spec_dir, archive_path)
        return result

    def _fail(self, operation: ArchivalOperation, spec_dir: Path, archive_path: Optional[Path],
              timestamp: datetime, error: ArchivalError) -> ArchivalResult:
        operation.fail(error.message)
        logger.debug("Archival of %s failed: %s", spec_dir, error.message)
        return ArchivalResult(
            success=False,
            original_path=str(spec_dir),
            archive_path=str(archive_path) if archive_path else "",
            timestamp=timestamp,
            error=error.message,
            error_code=error.code,
        )

    def validate_archival_safety(self, spec_path: PathLike,
                                 archive_path: Optional[PathLike] = None) -> SafetyCheck:
        """Check that a spec can be archived without risking data.

        Args:
            spec_path: Path to the spec directory
            archive_path: Planned destination; defaults to the next free archive path

        Returns:
            SafetyCheck listing every blocking issue
        """
        spec_dir = Path(spec_path)
        check = SafetyCheck()

        try:
            if not spec_dir.is_dir():
                check.add(ErrorCode.VALIDATION_FAILED, f"Spec path is not a directory: {spec_dir}")

            for required_file in REQUIRED_SPEC_FILES:
                file_path = spec_dir / required_file
                if not file_path.exists():
                    check.add(ErrorCode.VALIDATION_FAILED, f"Missing required file: {required_file}")
                elif not file_path.is_file():
                    check.add(ErrorCode.VALIDATION_FAILED,
                              f"Required file is not a regular file: {required_file}")
                elif file_path.stat().st_size == 0:
                    check.add(ErrorCode.VALIDATION_FAILED, f"Required file is empty: {required_file}")

            destination = Path(archive_path) if archive_path else \
                self._next_archive_path(spec_dir.name, self._clock())
            if destination.exists() or destination.is_symlink():
                check.add(ErrorCode.ARCHIVE_EXISTS, f"Archive destination already exists: {destination}")

            if not self._archive_root_writable():
                check.add(ErrorCode.PERMISSION_DENIED,
                          f"No write permission for archive location: {self.archive_root}")

            tasks_file = spec_dir / TASKS_FILE
            if tasks_file.is_file():
                modified = datetime.fromtimestamp(tasks_file.stat().st_mtime)
                threshold = self._clock() - timedelta(minutes=RECENT_MODIFICATION_MINUTES)
                if modified > threshold:
                    check.add(ErrorCode.CONCURRENT_ACCESS,
                              "Spec was recently modified - wait before archiving to avoid conflicts")
        except OSError as e:
            check.add(ErrorCode.VALIDATION_FAILED, f"Failed to validate spec: {e}")

        return check

    def _archive_root_writable(self) -> bool:
        # Probe without creating the archive root itself
        if self.archive_root.exists():
            if not self.archive_root.is_dir():
                return False
            probe = self.archive_root / WRITE_PROBE_FILE
            try:
                probe.write_text("test")
                probe.unlink()
            except OSError:
                return False
            return True

        ancestor = self.archive_root
        while not ancestor.exists():
            if ancestor.parent == ancestor:
                return False
            ancestor = ancestor.parent
        return ancestor.is_dir() and os.access(ancestor, os.W_OK | os.X_OK)

    def generate_archive_path(self, spec_name: str, timestamp: Optional[datetime] = None) -> Path:
        """Reserve a unique archive directory path for a spec.

        The path is <archive_root>/<YYYY-MM-DD>_<name>, suffixed with the time
        and then a counter on collision. Paths handed out by this engine are
        never handed out again.
        """
        path = self._next_archive_path(spec_name, timestamp or self._clock())
        self._issued_paths.add(str(path))
        return path

    def _next_archive_path(self, spec_name: str, timestamp: datetime) -> Path:
        base = f"{timestamp.strftime(ARCHIVE_DATE_FORMAT)}_{spec_name}"
        candidate = self.archive_root / base
        if self._path_free(candidate):
            return candidate

        time_str = timestamp.strftime(ARCHIVE_TIME_FORMAT)
        candidate = self.archive_root / f"{base}_{time_str}"
        counter = 2
        while not self._path_free(candidate):
            candidate = self.archive_root / f"{base}_{time_str}_{counter}"
            counter += 1
        return candidate

    def _path_free(self, path: Path) -> bool:
        return not (path.exists() or path.is_symlink() or str(path) in self._issued_paths)

    def _create_archive_dir(self, archive_path: Path) -> None:
        try:
            self.archive_root.mkdir(parents=True, exist_ok=True)
            archive_path.mkdir()
        except FileExistsError:
            raise ArchiveExistsError(f"Archive destination already exists: {archive_path}", str(archive_path))
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot create archive directory: {e}", str(archive_path))
        except OSError as e:
            raise CopyError(f"Failed to create archive directory: {e}", str(archive_path))

    def _copy_tree(self, source: Path, target: Path) -> None:
        """Copy a directory tree, preserving file modes and modification times."""
        pending = [(source, target)]
        try:
            while pending:
                source_dir, target_dir = pending.pop()
                for entry in sorted(source_dir.iterdir()):
                    destination = target_dir / entry.name
                    if entry.is_dir() and not entry.is_symlink():
                        destination.mkdir()
                        pending.append((entry, destination))
                    elif entry.is_file():
                        shutil.copy2(entry, destination)
        except OSError as e:
            raise CopyError(f"Failed to copy spec to archive: {e}", str(source))

    @staticmethod
    def _list_files(root: Path) -> List[Path]:
        """Relative paths of every regular file below root."""
        files = []
        pending = [root]
        while pending:
            directory = pending.pop()
            for entry in directory.iterdir():
                if entry.is_dir() and not entry.is_symlink():
                    pending.append(entry)
                elif entry.is_file():
                    files.append(entry.relative_to(root))
        return files

    def create_archive_metadata(self, spec_path: PathLike, archive_path: PathLike,
                                status: CompletionStatus,
                                archival_date: Optional[datetime] = None) -> ArchiveMetadata:
        """Build the metadata record for a new archive."""
        return ArchiveMetadata(
            spec_name=Path(spec_path).name,
            original_path=str(spec_path),
            archive_path=str(archive_path),
            completion_date=status.last_modified,
            archival_date=archival_date or self._clock(),
            total_tasks=status.total_tasks,
            completed_tasks=status.completed_tasks,
        )

    def _write_metadata(self, archive_path: Path, metadata: ArchiveMetadata) -> None:
        try:
            (archive_path / ARCHIVE_METADATA_FILE).write_text(metadata.to_json(), encoding="utf-8")
        except OSError as e:
            raise CopyError(f"Failed to write archive metadata: {e}", str(archive_path))

    def _verify_integrity(self, original_path: Path, archive_path: Path) -> None:
        try:
            original_files = self._list_files(original_path)
            archive_files = [
                f for f in self._list_files(archive_path) if f != Path(ARCHIVE_METADATA_FILE)
            ]
        except OSError as e:
            raise CopyError(f"Archive integrity verification failed: {e}", str(archive_path))

        if len(original_files) != len(archive_files):
            raise CopyError(
                "Archive integrity verification failed: file count mismatch "
                f"(original {len(original_files)}, archive {len(archive_files)})",
                str(archive_path),
            )
        for required_file in REQUIRED_SPEC_FILES:
            if not (archive_path / required_file).is_file():
                raise CopyError(
                    f"Archive integrity verification failed: required file missing in archive: {required_file}",
                    str(archive_path),
                )

    def _rollback(self, archive_path: Optional[Path]) -> None:
        """Best-effort removal of a partial archive; failures are only logged."""
        if archive_path is None:
            return
        try:
            shutil.rmtree(archive_path)
            logger.info("Rolled back partial archive %s", archive_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Rollback of partial archive %s failed: %s", archive_path, e)

    # ------------------------------------------------------------------
    # Configuration-aware archival
    # ------------------------------------------------------------------

    def get_config(self) -> ArchivalConfig:
        return self.config_manager.load()

    def update_config(self, config: ArchivalConfig) -> None:
        self.config_manager.save(config)

    def is_archival_enabled(self) -> bool:
        return self.get_config().enabled

    def get_archival_delay(self) -> int:
        return self.get_config().delay_minutes

    def should_archive_spec(self, spec_path: PathLike) -> ArchivalDecision:
        """Decide whether a spec may be archived right now.

        Checks, in order: archival enabled, archival delay elapsed since the
        last tasks.md edit, and the safety checks.
        """
        spec_dir = Path(spec_path)
        config = self.get_config()

        if not config.enabled:
            return ArchivalDecision.skip(ErrorCode.ARCHIVAL_DISABLED, "Archival is disabled in configuration")

        if config.delay_minutes > 0:
            try:
                mtime = (spec_dir / TASKS_FILE).stat().st_mtime
            except OSError:
                return ArchivalDecision.skip(
                    ErrorCode.VALIDATION_FAILED, "Unable to check file modification time"
                )
            delay_seconds = config.delay_minutes * 60
            elapsed = (self._clock() - datetime.fromtimestamp(mtime)).total_seconds()
            if elapsed < delay_seconds:
                remaining = math.ceil((delay_seconds - elapsed) / 60)
                return ArchivalDecision.skip(
                    ErrorCode.DELAY_PENDING,
                    f"Waiting for archival delay period ({remaining} minutes remaining)",
                )

        safety = self.validate_archival_safety(spec_dir)
        if not safety.can_proceed:
            return ArchivalDecision.skip(
                safety.primary_code, f"Safety validation failed: {', '.join(safety.issues)}"
            )

        return ArchivalDecision.archive()

    def archive_spec_with_config(self, spec_path: PathLike) -> ArchivalResult:
        """Archive a spec only if the configuration gate allows it."""
        decision = self.should_archive_spec(spec_path)
        if not decision.should_archive:
            return ArchivalResult(
                success=False,
                original_path=str(spec_path),
                archive_path="",
                timestamp=self._clock(),
                error=decision.reason or "Archival was skipped",
                error_code=decision.code,
            )
        return self.archive_spec(spec_path)

    def auto_archive_completed_specs(self, dry_run: bool = False) -> BatchReport:
        """Archive every completed, valid spec that passes the gate.

        Specs are processed one at a time; a failure on one spec is recorded
        and the run continues with the next.
        """
        report = BatchReport()
        config = self.get_config()
        if not config.enabled:
            logger.info("Archival is disabled in configuration")
            return report

        notifier = self._notifier or get_notifier(config.notification_level)

        for spec_path in self.scanner.ready_for_archival():
            try:
                decision = self.should_archive_spec(spec_path)
                if not decision.should_archive:
                    report.skipped.append(SkippedSpec(spec_path, decision.reason, decision.code))
                    notifier.skipped(spec_path, decision.reason)
                    continue
                if dry_run:
                    report.planned.append(spec_path)
                    notifier.planned(spec_path)
                    continue
                result = self.archive_spec(spec_path)
            except Exception as e:
                logger.debug("Unexpected error archiving %s", spec_path, exc_info=True)
                result = ArchivalResult(
                    success=False,
                    original_path=spec_path,
                    archive_path="",
                    timestamp=self._clock(),
                    error=str(e) or "Unknown archival error",
                    error_code=getattr(e, "code", ErrorCode.COPY_FAILED),
                )

            report.results.append(result)
            if result.success:
                notifier.archived(result)
            else:
                notifier.failed(result)

        return report

    # ------------------------------------------------------------------
    # Archive maintenance
    # ------------------------------------------------------------------

    def remove_archived_spec(self, archive_path: PathLike) -> bool:
        """Delete an archive and its index entry.

        Returns:
            True if an index entry or directory was removed

        Raises:
            ValidationError: archive_path is not a direct child of the archive location
            CleanupError: the directory could not be deleted
        """
        archive_dir = Path(archive_path)
        archive_root = self.archive_root.resolve()
        resolved = archive_dir.resolve()
        # Only whole archives; nothing nested inside one
        if resolved.parent != archive_root:
            raise ValidationError(
                f"Refusing to remove {archive_dir}: not an archive directory in {self.archive_root}",
                str(archive_dir),
            )

        was_in_index = self.index_manager.remove_entry(archive_dir)
        if not archive_dir.exists():
            return was_in_index

        try:
            shutil.rmtree(archive_dir)
        except OSError as e:
            if was_in_index:
                self._restore_index_entry(archive_dir)
            raise CleanupError(
                f"Failed to remove archived spec from filesystem: {e}", str(archive_dir)
            )

        logger.info("Removed archived spec %s", archive_dir)
        return True

    def _restore_index_entry(self, archive_dir: Path) -> None:
        metadata = read_archive_metadata(archive_dir)
        if metadata is None:
            logger.warning("Could not restore index entry for %s: metadata unreadable", archive_dir)
            return
        try:
            self.index_manager.add_entry(metadata.model_copy(update={"archive_path": str(archive_dir)}))
        except ArchiveIndexError as e:
            logger.warning("Could not restore index entry for %s: %s", archive_dir, e)

    def get_archived_specs(self) -> List[ArchiveIndexEntry]:
        return self.index_manager.get_all()

    def search_archived_specs(self, term: str) -> List[ArchiveIndexEntry]:
        return self.index_manager.search(term)

    def get_archive_stats(self) -> ArchiveStats:
        return self.index_manager.get_stats()

    def validate_and_repair_archive_index(self) -> IndexRepairReport:
        return self.index_manager.validate_and_repair()

    # ------------------------------------------------------------------
    # Spec discovery
    # ------------------------------------------------------------------

    def get_all_specs(self) -> List[str]:
        return self.scanner.list_specs()

    def get_completed_specs(self) -> List[str]:
        return self.scanner.list_completed()

    def get_specs_ready_for_archival(self) -> List[str]:
        return self.scanner.ready_for_archival()

    def scan_and_validate_specs(self) -> ScanReport:
        return self.scanner.scan_and_validate_all()
