"""Models for the Kiro archiver."""

from .archival import (
    ArchivalDecision,
    ArchivalOperation,
    ArchivalResult,
    ArchiveStats,
    BatchReport,
    IndexRepairReport,
    OperationStatus,
    SafetyCheck,
    SkippedSpec,
)
from .archive import ArchiveIndex, ArchiveIndexEntry, ArchiveMetadata
from .config import ArchivalConfig, LegacyArchivalConfig, NotificationLevel
from .spec import CompletionStatus, FormatValidation, ScanReport, SpecStats, SpecValidationResult, TaskCounts

__all__ = [
    'ArchivalConfig',
    'ArchivalDecision',
    'ArchivalOperation',
    'ArchivalResult',
    'ArchiveIndex',
    'ArchiveIndexEntry',
    'ArchiveMetadata',
    'ArchiveStats',
    'BatchReport',
    'CompletionStatus',
    'FormatValidation',
    'IndexRepairReport',
    'LegacyArchivalConfig',
    'NotificationLevel',
    'OperationStatus',
    'SafetyCheck',
    'ScanReport',
    'SkippedSpec',
    'SpecStats',
    'SpecValidationResult',
    'TaskCounts',
]
