import os
import time
from pathlib import Path

import pytest
from click.testing import CliRunner


REQUIREMENTS_TEXT = """# Requirements Document

## Requirement 1

**User Story:** As a developer, I want completed specs moved out of the way,
so that the active spec list only shows work in progress.
"""

DESIGN_TEXT = """# Design Document

## Overview

Completed specs are copied into a dated archive directory, verified,
indexed and only then removed from the active specs directory.
"""

COMPLETE_TASKS = "# Tasks\n\n- [x] 1. Write the parser\n- [x] 2. Write the tests\n"
INCOMPLETE_TASKS = "# Tasks\n\n- [x] 1. Write the parser\n- [ ] 2. Write the tests\n"


def set_file_age(path: Path, minutes: float) -> None:
    """Backdate a file's modification time."""
    timestamp = time.time() - minutes * 60
    os.utime(path, (timestamp, timestamp))


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def project_dir(tmp_path):
    """Creates a project directory with an empty .kiro/specs folder."""
    (tmp_path / ".kiro" / "specs").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def specs_root(project_dir):
    return project_dir / ".kiro" / "specs"


@pytest.fixture
def make_spec(specs_root):
    """Factory creating spec directories under .kiro/specs.

    tasks.md is backdated by ``age_minutes`` so it is past the safety and
    delay windows unless a test asks otherwise.
    """
    def _make_spec(name, tasks=COMPLETE_TASKS, age_minutes=60,
                   requirements=REQUIREMENTS_TEXT, design=DESIGN_TEXT, extra_files=None):
        spec_dir = specs_root / name
        spec_dir.mkdir(parents=True)
        if requirements is not None:
            (spec_dir / "requirements.md").write_text(requirements)
        if design is not None:
            (spec_dir / "design.md").write_text(design)
        if tasks is not None:
            (spec_dir / "tasks.md").write_text(tasks)
            if age_minutes is not None:
                set_file_age(spec_dir / "tasks.md", age_minutes)
        for relative, content in (extra_files or {}).items():
            target = spec_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        return spec_dir

    return _make_spec


@pytest.fixture
def age_file():
    """Returns a helper that backdates a file by a number of minutes."""
    return set_file_age
