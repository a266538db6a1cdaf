"""Service layer errors shared by the archiver components."""

from .exceptions import (
    ArchivalError,
    ArchiveExistsError,
    ArchiveIndexError,
    CleanupError,
    ConcurrentAccessError,
    ConfigurationError,
    CopyError,
    IncompleteSpecError,
    ErrorCode,
    PermissionDeniedError,
    TasksFileNotFoundError,
    TasksFileReadError,
    ValidationError,
)

__all__ = [
    "ArchivalError",
    "ArchiveExistsError",
    "ArchiveIndexError",
    "CleanupError",
    "ConcurrentAccessError",
    "ConfigurationError",
    "CopyError",
    "IncompleteSpecError",
    "ErrorCode",
    "PermissionDeniedError",
    "TasksFileNotFoundError",
    "TasksFileReadError",
    "ValidationError",
]
