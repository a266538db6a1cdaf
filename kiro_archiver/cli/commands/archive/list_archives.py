"""List archived specs command."""

import click

from ...helpers import format_archive_table, get_engine


@click.command()
def list():
    """List all archived specs"""
    engine = get_engine()
    entries = engine.get_archived_specs()

    if not entries:
        click.echo("No archived specs found")
        return

    click.echo("\n📦 Archived specs:")
    click.echo(format_archive_table(entries))
    click.echo(f"\nTotal: {len(entries)} archive(s)")
