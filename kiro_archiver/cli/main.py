"""Main CLI entry point for the Kiro archiver."""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from ..core.constants import NOTIFICATION_LOGGER
from .commands.archive import archive
from .commands.config import config
from .commands.specs import specs


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Show debug output')
def cli(verbose):
    """Kiro Archiver - Archive completed Kiro specs safely"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    # Notifications honour notificationLevel, so let them through by default
    logging.getLogger(NOTIFICATION_LOGGER).setLevel(logging.DEBUG if verbose else logging.INFO)


# Register commands
cli.add_command(archive)
cli.add_command(specs)
cli.add_command(config)


if __name__ == '__main__':
    cli()
