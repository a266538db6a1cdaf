"""Tests for SpecScanner."""
import logging
from pathlib import Path

import pytest

from kiro_archiver.core.spec_scanner import SpecScanner
from kiro_archiver.services.exceptions import ValidationError


INCOMPLETE_TASKS = "- [x] one\n- [ ] two\n"


@pytest.fixture
def scanner(specs_root):
    return SpecScanner(specs_root, archive_root=specs_root / "archive")


class TestListSpecs:
    """Test cases for spec discovery."""

    def test_lists_spec_dirs_sorted(self, scanner, make_spec):
        make_spec("zeta")
        make_spec("alpha")

        specs = scanner.list_specs()

        assert [Path(p).name for p in specs] == ["alpha", "zeta"]

    def test_skips_archive_and_dirs_without_tasks(self, scanner, specs_root, make_spec):
        make_spec("real")
        make_spec("no-tasks", tasks=None)
        (specs_root / "archive" / "2024-01-01_old").mkdir(parents=True)
        (specs_root / "archive" / "tasks.md").write_text("- [x] not a spec\n")
        (specs_root / "loose-file.md").write_text("not a directory")

        specs = scanner.list_specs()

        assert specs == [str(specs_root / "real")]

    def test_skips_custom_archive_root(self, specs_root, make_spec):
        make_spec("real")
        make_spec("done-specs")
        scanner = SpecScanner(specs_root, archive_root=specs_root / "done-specs")

        assert scanner.list_specs() == [str(specs_root / "real")]

    def test_skips_archived_copies_in_specs_root(self, specs_root, make_spec):
        make_spec("real")
        archived = make_spec("2024-01-15_done")
        (archived / ".archive-metadata.json").write_text("{}")
        scanner = SpecScanner(specs_root, archive_root=specs_root)

        assert scanner.list_specs() == [str(specs_root / "real")]
        assert scanner.ready_for_archival() == [str(specs_root / "real")]

    def test_missing_specs_root_is_empty(self, tmp_path):
        scanner = SpecScanner(tmp_path / "nowhere")

        assert scanner.list_specs() == []

    def test_unlistable_specs_root_raises(self, tmp_path):
        not_a_dir = tmp_path / "specs"
        not_a_dir.write_text("oops")
        scanner = SpecScanner(not_a_dir)

        with pytest.raises(ValidationError):
            scanner.list_specs()


class TestCompletionPartition:
    """Test cases for completed/incomplete listing."""

    def test_partition(self, scanner, specs_root, make_spec):
        make_spec("done")
        make_spec("wip", tasks=INCOMPLETE_TASKS)
        make_spec("empty", tasks="# Tasks\n")

        assert scanner.list_completed() == [str(specs_root / "done")]
        assert scanner.list_incomplete() == [str(specs_root / "empty"), str(specs_root / "wip")]

    def test_unreadable_spec_counts_as_incomplete(self, scanner, specs_root, make_spec):
        spec_dir = make_spec("binary", tasks=None)
        (spec_dir / "tasks.md").write_bytes(b"\xff\xfe\xfa")

        assert scanner.list_completed() == []
        assert scanner.list_incomplete() == [str(spec_dir)]


class TestValidateSpec:
    """Test cases for structural validation."""

    def test_valid_complete_spec(self, scanner, make_spec):
        spec_dir = make_spec("done")

        result = scanner.validate_spec(spec_dir)

        assert result.is_valid
        assert "All tasks completed - spec may be ready for archival" in result.warnings

    def test_missing_required_file(self, scanner, make_spec):
        spec_dir = make_spec("no-design", design=None)

        result = scanner.validate_spec(spec_dir)

        assert not result.is_valid
        assert "Missing required file: design.md" in result.issues

    def test_empty_required_file(self, scanner, make_spec):
        spec_dir = make_spec("empty-req", requirements="")

        result = scanner.validate_spec(spec_dir)

        assert "Required file is empty: requirements.md" in result.issues

    def test_required_file_is_directory(self, scanner, make_spec):
        spec_dir = make_spec("dir-design", design=None)
        (spec_dir / "design.md").mkdir()

        result = scanner.validate_spec(spec_dir)

        assert "Required file is not a regular file: design.md" in result.issues

    def test_not_a_directory(self, scanner, tmp_path):
        result = scanner.validate_spec(tmp_path / "missing")

        assert not result.is_valid
        assert result.issues[0].startswith("Spec path is not a directory")

    def test_tasks_format_issues_are_prefixed(self, scanner, make_spec):
        spec_dir = make_spec("malformed", tasks="- [x] ok\n- [X] bad\n")

        result = scanner.validate_spec(spec_dir)

        assert not result.is_valid
        assert any(issue.startswith("tasks.md: Found malformed task markers") for issue in result.issues)

    def test_many_tasks_warning(self, scanner, make_spec):
        tasks = "".join(f"- [ ] task {i}\n" for i in range(51))
        spec_dir = make_spec("huge", tasks=tasks)

        result = scanner.validate_spec(spec_dir)

        assert any("consider breaking into smaller specs" in w for w in result.warnings)

    def test_unexpected_entries(self, scanner, make_spec):
        spec_dir = make_spec("extras", extra_files={
            "notes.md": "fine",
            "scratch.txt": "unexpected",
            ".hidden": "ignored",
            "assets/diagram.txt": "nested",
        })

        result = scanner.validate_spec(spec_dir)

        assert result.is_valid
        assert "Unexpected file found: scratch.txt" in result.warnings
        assert "Unexpected subdirectory found: assets" in result.warnings
        assert not any("notes.md" in w or ".hidden" in w for w in result.warnings)

    def test_short_documents_warn(self, scanner, make_spec):
        spec_dir = make_spec("terse", requirements="Do it.", design="Somehow.")

        result = scanner.validate_spec(spec_dir)

        assert "requirements.md is very short - may need more detail" in result.warnings
        assert "design.md is very short - may need more detail" in result.warnings
        assert "requirements.md may not contain actual requirements" in result.warnings


class TestScanAndValidateAll:
    """Test cases for whole-tree validation."""

    def test_report_partitions_specs(self, scanner, specs_root, make_spec):
        make_spec("good")
        make_spec("bad", design=None)

        report = scanner.scan_and_validate_all()

        assert report.total_specs == 2
        assert report.valid_specs == [str(specs_root / "good")]
        assert report.invalid_specs == [str(specs_root / "bad")]
        assert "Missing required file: design.md" in report.issues_by_path[str(specs_root / "bad")]
        assert any(m.startswith("WARNING: ") for m in report.issues_by_path[str(specs_root / "good")])

    def test_validation_exception_marks_spec_invalid(self, scanner, specs_root, make_spec, monkeypatch):
        make_spec("boom")

        def explode(spec_path):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(scanner, "validate_spec", explode)
        report = scanner.scan_and_validate_all()

        assert report.invalid_specs == [str(specs_root / "boom")]
        assert report.issues_by_path[str(specs_root / "boom")] == ["Validation failed: disk on fire"]


class TestReadyForArchival:
    """Test cases for archival readiness and stats."""

    def test_only_complete_and_valid_specs(self, scanner, specs_root, make_spec):
        make_spec("ready")
        make_spec("wip", tasks=INCOMPLETE_TASKS)
        make_spec("broken", design=None)

        assert scanner.ready_for_archival() == [str(specs_root / "ready")]

    def test_validation_os_error_means_not_ready(self, scanner, specs_root, make_spec, monkeypatch, caplog):
        make_spec("ready")
        make_spec("vanishing")
        real_validate = scanner.validate_spec

        def validate(spec_path):
            if Path(spec_path).name == "vanishing":
                raise FileNotFoundError("tasks.md disappeared")
            return real_validate(spec_path)

        monkeypatch.setattr(scanner, "validate_spec", validate)
        with caplog.at_level(logging.DEBUG, logger="kiro_archiver.core.spec_scanner"):
            ready = scanner.ready_for_archival()

        assert ready == [str(specs_root / "ready")]
        assert "Skipping" in caplog.text and "vanishing" in caplog.text

    def test_spec_stats(self, scanner, make_spec):
        make_spec("ready")
        make_spec("wip", tasks=INCOMPLETE_TASKS)
        make_spec("broken", design=None)

        stats = scanner.get_spec_stats()

        assert stats.total == 3
        assert stats.completed == 2
        assert stats.incomplete == 1
        assert stats.valid == 2
        assert stats.invalid == 1
        assert stats.ready_for_archival == 1
