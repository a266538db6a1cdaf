"""Custom exceptions for the archival service layer."""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Machine-readable failure and skip codes."""
    VALIDATION_FAILED = "VALIDATION_FAILED"
    COPY_FAILED = "COPY_FAILED"
    CLEANUP_FAILED = "CLEANUP_FAILED"
    CONFIG_ERROR = "CONFIG_ERROR"
    INDEX_FAILED = "INDEX_FAILED"
    SPEC_NOT_FOUND = "SPEC_NOT_FOUND"
    READ_FAILED = "READ_FAILED"
    ARCHIVE_EXISTS = "ARCHIVE_EXISTS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INCOMPLETE_SPEC = "INCOMPLETE_SPEC"
    CONCURRENT_ACCESS = "CONCURRENT_ACCESS"
    ARCHIVAL_DISABLED = "ARCHIVAL_DISABLED"
    DELAY_PENDING = "DELAY_PENDING"


class ArchivalError(Exception):
    """Base exception for all archival errors."""

    code = ErrorCode.COPY_FAILED
    default_recovery = "Check the spec directory and retry the archival"

    def __init__(self, message: str, spec_path: str = "",
                 recovery_action: Optional[str] = None,
                 code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        self.spec_path = str(spec_path)
        self.recovery_action = recovery_action or self.default_recovery
        if code is not None:
            self.code = code


class ValidationError(ArchivalError):
    """Spec structure or format defect, raised before any mutation."""

    code = ErrorCode.VALIDATION_FAILED
    default_recovery = "Fix the reported spec issues and retry"


class TasksFileNotFoundError(ValidationError):
    """The spec has no tasks.md."""

    code = ErrorCode.SPEC_NOT_FOUND
    default_recovery = "Create tasks.md in the spec directory"


class TasksFileReadError(ValidationError):
    """tasks.md exists but could not be read."""

    code = ErrorCode.READ_FAILED
    default_recovery = "Check file permissions and encoding of tasks.md"


class CopyError(ArchivalError):
    """Copy or integrity verification failed mid-pipeline."""

    code = ErrorCode.COPY_FAILED
    default_recovery = "Check free disk space and permissions, then retry"


class CleanupError(ArchivalError):
    """Removing the original spec or an archive directory failed."""

    code = ErrorCode.CLEANUP_FAILED
    default_recovery = "Remove the leftover directory manually"


class ConfigurationError(ArchivalError):
    """Archival configuration could not be loaded, validated or saved."""

    code = ErrorCode.CONFIG_ERROR
    default_recovery = "Fix or delete the configuration file to restore defaults"


class ArchiveIndexError(ArchivalError):
    """The archive index file could not be written."""

    code = ErrorCode.INDEX_FAILED
    default_recovery = "Run 'kiro-archiver archive repair'"


class ArchiveExistsError(ArchivalError):
    """The archive destination is already occupied."""

    code = ErrorCode.ARCHIVE_EXISTS
    default_recovery = "Retry later or remove the existing archive"


class PermissionDeniedError(ArchivalError):
    """The archive location is not writable."""

    code = ErrorCode.PERMISSION_DENIED
    default_recovery = "Grant write access to the archive location"


class IncompleteSpecError(ArchivalError):
    """A manual archival was requested for a spec with open tasks."""

    code = ErrorCode.INCOMPLETE_SPEC
    default_recovery = "Finish the remaining tasks or pass --force"


class ConcurrentAccessError(ArchivalError):
    """The spec appears to be under active editing."""

    code = ErrorCode.CONCURRENT_ACCESS
    default_recovery = "Wait a few minutes after the last edit and retry"


ERRORS_BY_CODE = {
    ErrorCode.VALIDATION_FAILED: ValidationError,
    ErrorCode.ARCHIVE_EXISTS: ArchiveExistsError,
    ErrorCode.PERMISSION_DENIED: PermissionDeniedError,
    ErrorCode.CONCURRENT_ACCESS: ConcurrentAccessError,
}
