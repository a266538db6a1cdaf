"""Archive statistics command."""

import click

from ...helpers import format_date, get_engine, print_table


@click.command()
def stats():
    """Show archive statistics"""
    engine = get_engine()
    archive_stats = engine.get_archive_stats()

    rows = [
        ["Archived specs", archive_stats.total_archives],
        ["Archived tasks", archive_stats.total_tasks],
        ["Oldest archive", format_date(archive_stats.oldest_archive)],
        ["Newest archive", format_date(archive_stats.newest_archive)],
    ]
    print_table(["METRIC", "VALUE"], rows)
