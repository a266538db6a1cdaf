"""Archive a single spec command."""

import click
import sys

from ....services.exceptions import ArchivalError, IncompleteSpecError
from ...helpers import display_path, exit_with_error, get_engine, resolve_spec_path


@click.command()
@click.argument('spec_path')
@click.option('--force', is_flag=True,
              help='Archive even if tasks are incomplete, ignoring the enabled flag and delay')
def archive_spec(spec_path, force):
    """Archive one spec by path or name"""
    engine = get_engine()
    spec_dir = resolve_spec_path(engine, spec_path)

    if force:
        result = engine.archive_spec(spec_dir)
    else:
        try:
            status = engine.detector.check_completion(spec_dir)
            if not status.is_complete:
                raise IncompleteSpecError(
                    f"Spec '{spec_dir.name}' is not complete "
                    f"({status.completed_tasks}/{status.total_tasks} tasks done)",
                    str(spec_dir),
                )
        except ArchivalError as e:
            exit_with_error(e)

        result = engine.archive_spec_with_config(spec_dir)

    if not result.success:
        click.echo(f"❌ Failed to archive {spec_dir.name}: {result.error}", err=True)
        sys.exit(1)

    click.echo(f"✅ Archived {spec_dir.name} -> {display_path(result.archive_path)}")
    if result.error:
        click.echo(f"⚠️  Warning: {result.error}", err=True)
