"""Tests for archive commands."""
import json

import pytest

from kiro_archiver.cli.commands.archive import archive


@pytest.fixture
def in_project(project_dir, monkeypatch):
    """Run commands from inside the project directory."""
    monkeypatch.chdir(project_dir)
    return project_dir


@pytest.fixture
def archive_root(in_project):
    return in_project / ".kiro" / "specs" / "archive"


def disable_archival(project_dir):
    config_file = project_dir / ".kiro" / ".kiro-archival-config.json"
    config_file.write_text(json.dumps({"enabled": False}))


class TestArchiveGroup:
    """Smoke tests for the archive command group."""

    def test_help(self, cli_runner):
        result = cli_runner.invoke(archive, ['--help'])

        assert result.exit_code == 0
        assert "Archive completed specs" in result.output
        for command in ['run', 'spec', 'list', 'search', 'stats', 'repair', 'remove']:
            assert command in result.output


class TestArchiveRun:
    """Test cases for 'archive run'."""

    def test_archives_ready_specs(self, cli_runner, in_project, make_spec, specs_root, archive_root):
        make_spec("alpha")
        make_spec("beta")
        make_spec("wip", tasks="- [x] a\n- [ ] b\n")

        result = cli_runner.invoke(archive, ['run'])

        assert result.exit_code == 0
        assert "Archived alpha" in result.output
        assert "Archived beta" in result.output
        assert "Archived: 2, Failed: 0, Skipped: 0" in result.output
        assert not (specs_root / "alpha").exists()
        assert (specs_root / "wip").exists()
        assert len([d for d in archive_root.iterdir() if d.is_dir()]) == 2

    def test_reports_skipped_specs(self, cli_runner, in_project, make_spec):
        make_spec("fresh", age_minutes=1)

        result = cli_runner.invoke(archive, ['run'])

        assert result.exit_code == 0
        assert "Skipped fresh" in result.output
        assert "delay" in result.output

    def test_dry_run(self, cli_runner, in_project, make_spec, specs_root, archive_root):
        make_spec("alpha")

        result = cli_runner.invoke(archive, ['run', '--dry-run'])

        assert result.exit_code == 0
        assert "Specs that would be archived" in result.output
        assert "alpha" in result.output
        assert (specs_root / "alpha").exists()
        assert not archive_root.exists()

    def test_nothing_to_do(self, cli_runner, in_project):
        result = cli_runner.invoke(archive, ['run'])

        assert result.exit_code == 0
        assert "No specs ready for archival" in result.output

    def test_disabled(self, cli_runner, in_project, make_spec, specs_root):
        make_spec("alpha")
        disable_archival(in_project)

        result = cli_runner.invoke(archive, ['run'])

        assert result.exit_code == 0
        assert "Archival is disabled" in result.output
        assert (specs_root / "alpha").exists()

    def test_corrupt_config_exits_with_error(self, cli_runner, in_project):
        (in_project / ".kiro" / ".kiro-archival-config.json").write_text("{oops")

        result = cli_runner.invoke(archive, ['run'])

        assert result.exit_code == 1
        assert "Failed to load archival configuration" in result.output


class TestArchiveSpec:
    """Test cases for 'archive spec'."""

    def test_archive_by_name(self, cli_runner, in_project, make_spec, specs_root):
        make_spec("alpha")

        result = cli_runner.invoke(archive, ['spec', 'alpha'])

        assert result.exit_code == 0
        assert "Archived alpha" in result.output
        assert not (specs_root / "alpha").exists()

    def test_archive_by_path(self, cli_runner, in_project, make_spec, specs_root):
        make_spec("alpha")

        result = cli_runner.invoke(archive, ['spec', '.kiro/specs/alpha'])

        assert result.exit_code == 0
        assert not (specs_root / "alpha").exists()

    def test_incomplete_spec_needs_force(self, cli_runner, in_project, make_spec, specs_root):
        make_spec("wip", tasks="- [x] a\n- [ ] b\n")

        result = cli_runner.invoke(archive, ['spec', 'wip'])

        assert result.exit_code == 1
        assert "not complete (1/2 tasks done)" in result.output
        assert "Hint: Finish the remaining tasks or pass --force" in result.output
        assert (specs_root / "wip").exists()

        forced = cli_runner.invoke(archive, ['spec', 'wip', '--force'])

        assert forced.exit_code == 0
        assert not (specs_root / "wip").exists()

    def test_invalid_spec_fails(self, cli_runner, in_project, make_spec, specs_root):
        make_spec("broken", design=None)

        result = cli_runner.invoke(archive, ['spec', 'broken'])

        assert result.exit_code == 1
        assert "design.md" in result.output
        assert (specs_root / "broken").exists()

    def test_missing_spec(self, cli_runner, in_project):
        result = cli_runner.invoke(archive, ['spec', 'ghost'])

        assert result.exit_code == 1
        assert "Tasks file not found" in result.output


class TestArchiveQueries:
    """Test cases for list, search, stats and repair."""

    @pytest.fixture
    def archived(self, cli_runner, in_project, make_spec):
        make_spec("user-auth")
        make_spec("payments")
        result = cli_runner.invoke(archive, ['run'])
        assert result.exit_code == 0

    def test_list_empty(self, cli_runner, in_project):
        result = cli_runner.invoke(archive, ['list'])

        assert result.exit_code == 0
        assert "No archived specs found" in result.output

    def test_list(self, cli_runner, archived):
        result = cli_runner.invoke(archive, ['list'])

        assert result.exit_code == 0
        assert "user-auth" in result.output
        assert "payments" in result.output
        assert "Total: 2 archive(s)" in result.output

    def test_search(self, cli_runner, archived):
        result = cli_runner.invoke(archive, ['search', 'AUTH'])

        assert result.exit_code == 0
        assert "user-auth" in result.output
        assert "payments" not in result.output
        assert "Found 1 matching archive(s)" in result.output

    def test_search_no_match(self, cli_runner, archived):
        result = cli_runner.invoke(archive, ['search', 'nothing'])

        assert result.exit_code == 0
        assert "No archived specs found matching 'nothing'" in result.output

    def test_stats(self, cli_runner, archived):
        result = cli_runner.invoke(archive, ['stats'])

        assert result.exit_code == 0
        assert "Archived specs" in result.output
        assert "Archived tasks" in result.output

    def test_repair_valid_index(self, cli_runner, archived):
        result = cli_runner.invoke(archive, ['repair'])

        assert result.exit_code == 0
        assert "Archive index is valid" in result.output

    def test_repair_rebuilds_deleted_index(self, cli_runner, archived, archive_root):
        (archive_root / ".archive-index.json").unlink()

        result = cli_runner.invoke(archive, ['repair'])

        assert result.exit_code == 0
        assert "Archive missing from index" in result.output
        assert "Archive index repaired" in result.output
        data = json.loads((archive_root / ".archive-index.json").read_text())
        assert len(data["archives"]) == 2


class TestArchiveRemove:
    """Test cases for 'archive remove'."""

    def test_remove_by_name(self, cli_runner, in_project, make_spec, archive_root):
        make_spec("alpha")
        cli_runner.invoke(archive, ['run'])
        archive_dir = next(d for d in archive_root.iterdir() if d.is_dir())

        result = cli_runner.invoke(archive, ['remove', archive_dir.name, '--yes'])

        assert result.exit_code == 0
        assert f"Removed archive {archive_dir.name}" in result.output
        assert not archive_dir.exists()

    def test_remove_requires_confirmation(self, cli_runner, in_project, make_spec, archive_root):
        make_spec("alpha")
        cli_runner.invoke(archive, ['run'])
        archive_dir = next(d for d in archive_root.iterdir() if d.is_dir())

        result = cli_runner.invoke(archive, ['remove', archive_dir.name], input="n\n")

        assert result.exit_code != 0
        assert archive_dir.exists()

    def test_remove_unknown_archive(self, cli_runner, in_project):
        result = cli_runner.invoke(archive, ['remove', '2024-01-01_ghost', '--yes'])

        assert result.exit_code == 1
        assert "No archive found" in result.output

    def test_remove_outside_archive_is_refused(self, cli_runner, in_project, make_spec, specs_root):
        make_spec("alpha")

        result = cli_runner.invoke(archive, ['remove', '.kiro/specs/alpha', '--yes'])

        assert result.exit_code == 1
        assert "Refusing to remove" in result.output
        assert (specs_root / "alpha").exists()
