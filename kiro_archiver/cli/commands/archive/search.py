"""Search archived specs command."""

import click

from ...helpers import format_archive_table, get_engine


@click.command()
@click.argument('term')
def search(term):
    """Search archived specs by name"""
    engine = get_engine()
    matching = engine.search_archived_specs(term)

    if not matching:
        click.echo(f"\nNo archived specs found matching '{term}'")
        return

    click.echo(f"\n📦 Archived specs matching '{term}':")
    click.echo(format_archive_table(matching))
    click.echo(f"\nFound {len(matching)} matching archive(s)")
