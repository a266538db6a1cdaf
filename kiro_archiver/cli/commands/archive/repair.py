"""Validate and repair the archive index command."""

import click

from ....services.exceptions import ArchivalError
from ...helpers import exit_with_error, get_engine


@click.command()
def repair():
    """Reconcile the archive index with the archive directories"""
    engine = get_engine()

    try:
        report = engine.validate_and_repair_archive_index()
    except ArchivalError as e:
        exit_with_error(e)

    if report.is_valid:
        click.echo("✅ Archive index is valid")
        return

    click.echo("Found archive index issues:")
    for issue in report.issues:
        click.echo(f"  - {issue}")

    if report.repaired:
        click.echo("\n🔧 Archive index repaired")
    else:
        click.echo("\nNo index changes were needed")
