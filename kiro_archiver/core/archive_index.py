"""Persistent index of archived specs."""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from ..models.archival import ArchiveStats, IndexRepairReport
from ..models.archive import ArchiveIndex, ArchiveIndexEntry, ArchiveMetadata
from ..services.exceptions import ArchiveIndexError
from .constants import ARCHIVE_METADATA_FILE, INDEX_FILE_NAME, INDEX_VERSION

logger = logging.getLogger(__name__)


def _path_key(path: Union[str, Path]) -> str:
    return str(Path(path).resolve())


def read_archive_metadata(archive_dir: Union[str, Path]) -> Optional[ArchiveMetadata]:
    """Read an archive's metadata file, or None when missing or unreadable."""
    metadata_file = Path(archive_dir) / ARCHIVE_METADATA_FILE
    try:
        with open(metadata_file, encoding="utf-8") as f:
            return ArchiveMetadata.model_validate(json.load(f))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, PydanticValidationError) as e:
        logger.warning("Unreadable archive metadata %s: %s", metadata_file, e)
        return None


class ArchiveIndexManager:
    """Maintains the catalog of archived specs stored beside the archives.

    Every public method performs its own read-modify-write of the index file.
    """

    def __init__(self, archive_root: Path):
        """Initialize index manager.

        Args:
            archive_root: Directory holding one subdirectory per archived spec
        """
        self.archive_root = Path(archive_root)
        self.index_file = self.archive_root / INDEX_FILE_NAME

    def _load_index(self) -> ArchiveIndex:
        """Load the index from disk; a missing or corrupt file reads as empty."""
        index, _ = self._read_index()
        return index

    def _read_index(self) -> Tuple[ArchiveIndex, List[str]]:
        problems: List[str] = []
        if not self.index_file.exists():
            return ArchiveIndex(), problems

        try:
            with open(self.index_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Archive index %s is unreadable, treating as empty: %s", self.index_file, e)
            problems.append(f"Index file is unreadable: {e}")
            return ArchiveIndex(), problems

        if not isinstance(data, dict):
            logger.warning("Archive index %s is not a JSON object, treating as empty", self.index_file)
            problems.append("Index file is not a JSON object")
            return ArchiveIndex(), problems

        entries = []
        raw_entries = data.get("archives")
        if not isinstance(raw_entries, list):
            raw_entries = []
        for raw in raw_entries:
            try:
                entries.append(ArchiveIndexEntry.model_validate(raw))
            except PydanticValidationError as e:
                logger.warning("Dropping invalid archive index entry %r: %s", raw, e)
                problems.append(f"Invalid index entry dropped: {raw!r}")

        try:
            last_updated = ArchiveIndex.model_validate(
                {"lastUpdated": data.get("lastUpdated")}
            ).last_updated
        except PydanticValidationError:
            last_updated = datetime.now()

        return ArchiveIndex(version=INDEX_VERSION, last_updated=last_updated, archives=entries), problems

    def _save_index(self, index: ArchiveIndex) -> None:
        """Save the index to disk."""
        index.last_updated = datetime.now()
        try:
            self.archive_root.mkdir(parents=True, exist_ok=True)
            with open(self.index_file, 'w', encoding="utf-8") as f:
                json.dump(index.to_file_dict(), f, indent=2)
        except OSError as e:
            raise ArchiveIndexError(f"Failed to save archive index: {e}", str(self.index_file))

    def add_entry(self, metadata: ArchiveMetadata) -> ArchiveIndexEntry:
        """Add or replace the index entry for an archive.

        Args:
            metadata: Metadata of the archived spec

        Returns:
            The stored index entry
        """
        index = self._load_index()
        entry = ArchiveIndexEntry.from_metadata(metadata)
        key = _path_key(entry.archive_path)

        index.archives = [e for e in index.archives if _path_key(e.archive_path) != key]
        index.archives.append(entry)
        index.archives.sort(key=lambda e: e.archival_date, reverse=True)

        self._save_index(index)
        return entry

    def remove_entry(self, archive_path: Union[str, Path]) -> bool:
        """Remove the entry for an archive path.

        Returns:
            True if an entry existed and was removed
        """
        index = self._load_index()
        key = _path_key(archive_path)
        remaining = [e for e in index.archives if _path_key(e.archive_path) != key]

        if len(remaining) == len(index.archives):
            return False

        index.archives = remaining
        self._save_index(index)
        return True

    def get_all(self) -> List[ArchiveIndexEntry]:
        """All entries, newest archival first."""
        return list(self._load_index().archives)

    def search(self, term: str) -> List[ArchiveIndexEntry]:
        """Entries whose spec name contains term, case-insensitively."""
        term_lower = term.lower()
        return [e for e in self.get_all() if term_lower in e.spec_name.lower()]

    def get_by_spec_name(self, spec_name: str) -> Optional[ArchiveIndexEntry]:
        return next((e for e in self.get_all() if e.spec_name == spec_name), None)

    def get_by_path(self, archive_path: Union[str, Path]) -> Optional[ArchiveIndexEntry]:
        key = _path_key(archive_path)
        return next((e for e in self.get_all() if _path_key(e.archive_path) == key), None)

    def get_stats(self) -> ArchiveStats:
        """Count archives and tasks, and find the archival date range."""
        entries = self.get_all()
        if not entries:
            return ArchiveStats(total_archives=0, total_tasks=0)

        dates = [e.archival_date for e in entries]
        return ArchiveStats(
            total_archives=len(entries),
            total_tasks=sum(e.total_tasks for e in entries),
            oldest_archive=min(dates),
            newest_archive=max(dates),
        )

    def list_archive_dirs(self) -> List[Path]:
        """Archive directories present on disk."""
        if not self.archive_root.is_dir():
            return []
        return sorted(
            entry for entry in self.archive_root.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def validate_and_repair(self) -> IndexRepairReport:
        """Reconcile the index with the archive directories on disk.

        Duplicate entries and entries without a readable archive are dropped;
        archives with readable metadata but no entry are re-indexed.
        """
        index, issues = self._read_index()
        repaired = bool(issues)

        on_disk: Dict[str, Path] = {_path_key(d): d for d in self.list_archive_dirs()}
        metadata_by_key = {key: read_archive_metadata(d) for key, d in on_disk.items()}

        kept: List[ArchiveIndexEntry] = []
        seen = set()
        for entry in index.archives:
            key = _path_key(entry.archive_path)
            if key in seen:
                issues.append(f"Duplicate entry for path: {entry.archive_path}")
                repaired = True
                continue
            seen.add(key)

            if key not in on_disk:
                issues.append(f"Archive directory not found: {entry.archive_path}")
                repaired = True
                continue
            if metadata_by_key[key] is None:
                issues.append(f"Archive metadata missing or unreadable: {entry.archive_path}")
                repaired = True
                continue
            kept.append(entry)

        for key, archive_dir in on_disk.items():
            if key in seen:
                continue
            metadata = metadata_by_key[key]
            if metadata is None:
                issues.append(f"Archive directory has no readable metadata: {archive_dir}")
                continue
            issues.append(f"Archive missing from index: {archive_dir}")
            kept.append(ArchiveIndexEntry.from_metadata(metadata, archive_path=str(archive_dir)))
            repaired = True

        if repaired:
            kept.sort(key=lambda e: e.archival_date, reverse=True)
            index.archives = kept
            self._save_index(index)
            logger.info("Repaired archive index %s", self.index_file)

        return IndexRepairReport(is_valid=not issues, repaired=repaired, issues=issues)
