"""Remove an archived spec command."""

import click
import sys

from ....services.exceptions import ArchivalError
from ...helpers import display_path, exit_with_error, get_engine, resolve_archive_path


@click.command()
@click.argument('archive_path')
@click.confirmation_option(prompt='Are you sure you want to permanently delete this archive?')
def remove(archive_path):
    """Permanently delete an archived spec"""
    engine = get_engine()
    archive_dir = resolve_archive_path(engine, archive_path)

    try:
        removed = engine.remove_archived_spec(archive_dir)
    except ArchivalError as e:
        exit_with_error(e)

    if not removed:
        click.echo(f"Error: No archive found at {display_path(str(archive_dir))}", err=True)
        sys.exit(1)

    click.echo(f"✅ Removed archive {archive_dir.name}")
