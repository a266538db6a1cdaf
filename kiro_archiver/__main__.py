"""Allow running the archiver with ``python -m kiro_archiver``."""

from .cli.main import cli

if __name__ == '__main__':
    cli()
