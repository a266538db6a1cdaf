"""Archive all completed specs command."""

import click
import sys
from pathlib import Path

from ....services.exceptions import ArchivalError
from ...helpers import display_path, exit_with_error, get_engine


@click.command()
@click.option('--dry-run', is_flag=True, help='Show what would be archived without changing anything')
def run(dry_run):
    """Archive every completed spec that is ready"""
    engine = get_engine()

    if not engine.is_archival_enabled():
        click.echo("Archival is disabled in configuration.")
        click.echo("Enable it with: kiro-archiver config set enabled true")
        return

    try:
        report = engine.auto_archive_completed_specs(dry_run=dry_run)
    except ArchivalError as e:
        exit_with_error(e)

    if dry_run:
        if report.planned:
            click.echo("🔍 Specs that would be archived:")
            for spec_path in report.planned:
                click.echo(f"  - {Path(spec_path).name}")
        else:
            click.echo("No specs ready for archival")

    for result in report.succeeded:
        click.echo(f"✅ Archived {Path(result.original_path).name} -> {display_path(result.archive_path)}")
        if result.error:
            click.echo(f"⚠️  Warning: {result.error}", err=True)

    for result in report.failed:
        click.echo(f"❌ Failed to archive {Path(result.original_path).name}: {result.error}", err=True)

    for skipped in report.skipped:
        click.echo(f"⏭️  Skipped {Path(skipped.spec_path).name}: {skipped.reason}")

    if not dry_run:
        if not report.results and not report.skipped:
            click.echo("No specs ready for archival")
        else:
            click.echo(
                f"\nArchived: {len(report.succeeded)}, "
                f"Failed: {len(report.failed)}, "
                f"Skipped: {len(report.skipped)}"
            )

    if report.failed:
        sys.exit(1)
