"""Archive command group and sub-commands."""

import click

from .run import run
from .archive_spec import archive_spec
from .list_archives import list
from .search import search
from .stats import stats
from .repair import repair
from .remove import remove

__all__ = [
    'archive',
    'run',
    'archive_spec',
    'list',
    'search',
    'stats',
    'repair',
    'remove',
]


@click.group()
def archive():
    """Archive completed specs and manage the archive"""
    pass


# Register all sub-commands
archive.add_command(run)
archive.add_command(archive_spec, name='spec')
archive.add_command(list)
archive.add_command(search)
archive.add_command(stats)
archive.add_command(repair)
archive.add_command(remove)
