"""Notification strategies selected by the configured notification level."""
import logging
from typing import Dict, Optional, Type

from ..models.archival import ArchivalResult
from ..models.config import NotificationLevel
from .constants import NOTIFICATION_LOGGER


class Notifier:
    """Reports per-spec archival outcomes; the base class stays silent."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(NOTIFICATION_LOGGER)

    def archived(self, result: ArchivalResult) -> None:
        pass

    def failed(self, result: ArchivalResult) -> None:
        pass

    def skipped(self, spec_path: str, reason: str) -> None:
        pass

    def planned(self, spec_path: str) -> None:
        pass


class SilentNotifier(Notifier):
    """notificationLevel "none"."""


class MinimalNotifier(Notifier):
    """Reports archived and failed specs."""

    def archived(self, result: ArchivalResult) -> None:
        self.logger.info("Archived spec: %s -> %s", result.original_path, result.archive_path)
        if result.error:
            self.logger.warning("Archived %s with a warning: %s", result.original_path, result.error)

    def failed(self, result: ArchivalResult) -> None:
        self.logger.error("Failed to archive spec: %s - %s", result.original_path, result.error)


class VerboseNotifier(MinimalNotifier):
    """Also reports skipped specs and dry-run plans."""

    def skipped(self, spec_path: str, reason: str) -> None:
        self.logger.info("Skipped spec: %s - %s", spec_path, reason)

    def planned(self, spec_path: str) -> None:
        self.logger.info("Would archive: %s", spec_path)


NOTIFIERS: Dict[NotificationLevel, Type[Notifier]] = {
    NotificationLevel.NONE: SilentNotifier,
    NotificationLevel.MINIMAL: MinimalNotifier,
    NotificationLevel.VERBOSE: VerboseNotifier,
}


def get_notifier(level: NotificationLevel, logger: Optional[logging.Logger] = None) -> Notifier:
    """Build the notifier registered for a notification level."""
    return NOTIFIERS[NotificationLevel(level)](logger)
