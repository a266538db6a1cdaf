"""Archival configuration models."""

import logging
import re
from enum import Enum
from pathlib import PurePosixPath, PureWindowsPath
from typing import Annotated, Any, Mapping, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..core.constants import DEFAULT_ARCHIVE_LOCATION, DEFAULT_DELAY_MINUTES, MAX_DELAY_MINUTES

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    """How much the archiver reports per spec."""
    NONE = "none"
    MINIMAL = "minimal"
    VERBOSE = "verbose"


def check_archive_location(value: str) -> str:
    """Accept only non-empty relative paths without parent traversal."""
    value = value.strip()
    if not value:
        raise ValueError("archive location must not be empty")
    if PurePosixPath(value).is_absolute() or PureWindowsPath(value).anchor:
        raise ValueError(f"archive location must be relative: {value}")
    if ".." in re.split(r"[\\/]", value):
        raise ValueError(f"archive location must not contain '..': {value}")
    return value


DelayMinutes = Annotated[StrictInt, Field(ge=0, le=MAX_DELAY_MINUTES)]
ArchiveLocation = Annotated[StrictStr, AfterValidator(check_archive_location)]


class ArchivalConfig(BaseModel):
    """User-facing archival settings.

    Persisted with camelCase keys; every assignment is re-validated so the
    model can only ever hold a valid configuration.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    enabled: StrictBool = True
    delay_minutes: DelayMinutes = DEFAULT_DELAY_MINUTES
    archive_location: ArchiveLocation = DEFAULT_ARCHIVE_LOCATION
    notification_level: NotificationLevel = NotificationLevel.MINIMAL
    backup_enabled: StrictBool = True

    def to_file_dict(self) -> dict:
        """Serialize with the on-disk camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def field_for_key(cls, key: str) -> Optional[str]:
        """Map a snake_case or camelCase key to the model field name."""
        for name, field in cls.model_fields.items():
            if key in (name, field.alias):
                return name
        return None


class LegacyArchivalConfig(BaseModel):
    """Field names used by configuration files before schema 1.0."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    auto_archive: Optional[StrictBool] = None
    wait_minutes: Optional[DelayMinutes] = None
    verbose_mode: Optional[StrictBool] = None
    archive_path: Optional[ArchiveLocation] = None

    @classmethod
    def decode(cls, raw: Mapping[str, Any]) -> "LegacyArchivalConfig":
        """Decode legacy keys one by one, dropping values that do not validate."""
        legacy = cls()
        for name, field in cls.model_fields.items():
            if field.alias not in raw:
                continue
            try:
                setattr(legacy, name, raw[field.alias])
            except PydanticValidationError:
                logger.debug("Dropping invalid legacy config value %s=%r", field.alias, raw[field.alias])
        return legacy
