"""Archival configuration management utilities."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..core.constants import BACKUP_META_FIELDS, CONFIG_FILE_NAME, CONFIG_META_FIELDS, CONFIG_VERSION
from ..models.config import ArchivalConfig, LegacyArchivalConfig, NotificationLevel
from ..services.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ConfigurationManager:
    """Loads, validates, migrates and persists the archival configuration.

    A loaded configuration is cached on the instance for the rest of the run;
    only ``save`` replaces the cached value. Components that need the same
    settings should share one instance.
    """

    def __init__(self, config_dir: Path):
        """Initialize config manager.

        Args:
            config_dir: Directory holding the configuration file (usually .kiro)
        """
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / CONFIG_FILE_NAME
        self._cache: Optional[ArchivalConfig] = None

    @staticmethod
    def default_config() -> ArchivalConfig:
        """Hard-coded defaults used on first run."""
        return ArchivalConfig()

    def config_file_exists(self) -> bool:
        """Check whether the configuration file exists."""
        return self.config_file.is_file()

    def load(self) -> ArchivalConfig:
        """Load configuration, writing defaults when no file exists yet.

        Raises:
            ConfigurationError: The file exists but cannot be read or parsed
        """
        if self._cache is not None:
            return self._cache.model_copy()

        try:
            with open(self.config_file, encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            logger.info("No archival configuration at %s, writing defaults", self.config_file)
            config = self.default_config()
            self.save(config)
            return config.model_copy()
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load archival configuration: {e}", str(self.config_file)
            )

        if not isinstance(raw, dict):
            raise ConfigurationError(
                "Failed to load archival configuration: expected a JSON object",
                str(self.config_file),
            )

        config = self.migrate(raw)
        if not self.validate(config):
            raise ConfigurationError(
                "Invalid configuration after migration", str(self.config_file)
            )
        self._cache = config
        return config.model_copy()

    def save(self, config: ArchivalConfig) -> None:
        """Validate and persist configuration, then refresh the cache.

        Raises:
            ConfigurationError: The configuration is invalid or cannot be written
        """
        if not self.validate(config):
            raise ConfigurationError(
                "Invalid configuration - cannot save", str(self.config_file)
            )

        data = config.to_file_dict()
        data["_version"] = CONFIG_VERSION
        data["_lastUpdated"] = datetime.now().isoformat()

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise ConfigurationError(
                f"Failed to save archival configuration: {e}", str(self.config_file)
            )

        self._cache = config.model_copy()

    def validate(self, config: Union[ArchivalConfig, Mapping[str, Any]]) -> bool:
        """Check every field's type and range; never raises."""
        if isinstance(config, ArchivalConfig):
            data = config.model_dump(by_alias=True)
        elif isinstance(config, Mapping):
            data = dict(config)
        else:
            return False

        for name, field in ArchivalConfig.model_fields.items():
            if name not in data and field.alias not in data:
                return False
        try:
            ArchivalConfig.model_validate(data)
        except PydanticValidationError:
            return False
        return True

    def migrate(self, raw: Any) -> ArchivalConfig:
        """Build a valid configuration from any stored document.

        Valid current-schema fields are kept, invalid ones fall back to the
        defaults, and legacy fields only fill in modern fields that are absent.
        """
        config = self.default_config()
        if not isinstance(raw, Mapping):
            return config

        for name, field in ArchivalConfig.model_fields.items():
            if field.alias not in raw:
                continue
            try:
                setattr(config, name, raw[field.alias])
            except PydanticValidationError:
                logger.warning(
                    "Ignoring invalid configuration value %s=%r", field.alias, raw[field.alias]
                )

        legacy = LegacyArchivalConfig.decode(raw)
        if legacy.auto_archive is not None and "enabled" not in raw:
            config.enabled = legacy.auto_archive
        if legacy.wait_minutes is not None and "delayMinutes" not in raw:
            config.delay_minutes = legacy.wait_minutes
        if legacy.verbose_mode is not None and "notificationLevel" not in raw:
            config.notification_level = (
                NotificationLevel.VERBOSE if legacy.verbose_mode else NotificationLevel.MINIMAL
            )
        if legacy.archive_path is not None and "archiveLocation" not in raw:
            config.archive_location = legacy.archive_path

        return config

    def update_setting(self, key: str, value: Any) -> ArchivalConfig:
        """Validate and persist a single setting.

        Args:
            key: Field name, snake_case or camelCase
            value: New value for the field

        Returns:
            The saved configuration
        """
        name = ArchivalConfig.field_for_key(key)
        if name is None:
            raise ConfigurationError(f"Unknown configuration setting '{key}'", str(self.config_file))

        config = self.load()
        try:
            setattr(config, name, value)
        except PydanticValidationError:
            raise ConfigurationError(
                f"Invalid value for configuration setting '{key}': {value!r}",
                str(self.config_file),
            )
        self.save(config)
        return config

    def reset_to_defaults(self) -> ArchivalConfig:
        """Overwrite the stored configuration with the defaults."""
        config = self.default_config()
        self.save(config)
        return config

    def backup(self) -> Path:
        """Write a timestamped snapshot of the current configuration.

        Returns:
            Path to the backup file
        """
        config = self.load()
        timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
        backup_path = self.config_file.with_name(
            f"{self.config_file.stem}.backup-{timestamp}{self.config_file.suffix}"
        )

        data = config.to_file_dict()
        data["_backupCreated"] = datetime.now().isoformat()
        data["_originalPath"] = str(self.config_file)

        try:
            with open(backup_path, 'w', encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Failed to backup configuration: {e}", str(self.config_file))

        logger.info("Backed up archival configuration to %s", backup_path)
        return backup_path

    def restore_from_backup(self, backup_path: Union[str, Path]) -> ArchivalConfig:
        """Replace the configuration with the contents of a backup file."""
        backup_path = Path(backup_path)
        try:
            with open(backup_path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to restore from backup: {e}", str(backup_path))

        if not isinstance(raw, dict):
            raise ConfigurationError(
                "Failed to restore from backup: expected a JSON object", str(backup_path)
            )

        for key in BACKUP_META_FIELDS + CONFIG_META_FIELDS:
            raw.pop(key, None)

        config = self.migrate(raw)
        if not self.validate(config):
            raise ConfigurationError("Invalid configuration in backup file", str(backup_path))

        self.save(config)
        return config
