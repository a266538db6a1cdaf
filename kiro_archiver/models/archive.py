"""Persisted archive metadata and index models."""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.constants import INDEX_VERSION, METADATA_VERSION


def _as_local_naive(value: datetime) -> datetime:
    # Files written by older tools carry UTC "Z" timestamps
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


LocalDateTime = Annotated[datetime, AfterValidator(_as_local_naive)]


class ArchiveMetadata(BaseModel):
    """Record written once into every archive directory."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    spec_name: str
    original_path: str
    archive_path: str
    completion_date: LocalDateTime
    archival_date: LocalDateTime
    total_tasks: int = 0
    completed_tasks: int = 0
    schema_version: str = Field(
        METADATA_VERSION,
        validation_alias=AliasChoices("schemaVersion", "schema_version", "version"),
    )

    def to_json(self) -> str:
        """Serialize with the on-disk camelCase keys."""
        return self.model_dump_json(by_alias=True, indent=2)


class ArchiveIndexEntry(BaseModel):
    """One row of the archive index."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    spec_name: str
    archive_path: str
    completion_date: LocalDateTime
    archival_date: LocalDateTime
    total_tasks: int = 0

    @classmethod
    def from_metadata(cls, metadata: ArchiveMetadata,
                      archive_path: Optional[str] = None) -> "ArchiveIndexEntry":
        """Build an entry from an archive's metadata record."""
        return cls(
            spec_name=metadata.spec_name,
            archive_path=archive_path or metadata.archive_path,
            completion_date=metadata.completion_date,
            archival_date=metadata.archival_date,
            total_tasks=metadata.total_tasks,
        )


class ArchiveIndex(BaseModel):
    """Catalog of all archived specs."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: str = INDEX_VERSION
    last_updated: LocalDateTime = Field(default_factory=datetime.now)
    archives: List[ArchiveIndexEntry] = Field(default_factory=list)

    def to_file_dict(self) -> dict:
        """Serialize with the on-disk camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
