"""Spec inspection commands for the Kiro archiver."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ...services.exceptions import ArchivalError
from ..helpers import exit_with_error, get_engine, resolve_spec_path


@click.group()
def specs():
    """Inspect active specs"""
    pass


@specs.command('list')
@click.option('--status', type=click.Choice(['complete', 'incomplete']),
              help='Only show specs with this completion status')
def list_specs(status):
    """List active specs with their task progress"""
    console = Console()
    engine = get_engine()

    try:
        spec_paths = engine.get_all_specs()
    except ArchivalError as e:
        exit_with_error(e)

    if not spec_paths:
        console.print("[yellow]No specs found.[/yellow]")
        return

    table = Table(title="Specs")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Status", style="green")
    table.add_column("Progress", justify="right")

    shown = 0
    for spec_path in spec_paths:
        try:
            completion = engine.detector.check_completion(spec_path)
        except ArchivalError as e:
            if status != 'complete':
                table.add_row(Path(spec_path).name, "[red]unreadable[/red]", e.message)
                shown += 1
            continue

        is_complete = completion.is_complete
        if status == 'complete' and not is_complete:
            continue
        if status == 'incomplete' and is_complete:
            continue

        percentage = engine.detector.completion_percentage(spec_path)
        table.add_row(
            Path(spec_path).name,
            "complete" if is_complete else "[yellow]in progress[/yellow]",
            f"{completion.completed_tasks}/{completion.total_tasks} ({percentage}%)",
        )
        shown += 1

    if not shown:
        console.print(f"[yellow]No {status} specs found.[/yellow]")
        return

    console.print(table)


@specs.command()
@click.argument('spec_path', required=False)
def validate(spec_path):
    """Validate one spec, or every spec when none is given"""
    engine = get_engine()

    if spec_path:
        spec_dir = resolve_spec_path(engine, spec_path)
        result = engine.scanner.validate_spec(spec_dir)

        for issue in result.issues:
            click.echo(f"❌ {issue}")
        for warning in result.warnings:
            click.echo(f"⚠️  {warning}")

        if not result.is_valid:
            click.echo(f"\nSpec '{spec_dir.name}' is invalid", err=True)
            sys.exit(1)
        click.echo(f"✅ Spec '{spec_dir.name}' is valid")
        return

    try:
        report = engine.scan_and_validate_specs()
    except ArchivalError as e:
        exit_with_error(e)

    if not report.total_specs:
        click.echo("No specs found")
        return

    for path, messages in report.issues_by_path.items():
        click.echo(f"\n{Path(path).name}:")
        for message in messages:
            click.echo(f"  - {message}")

    click.echo(
        f"\nValidated {report.total_specs} spec(s): "
        f"{len(report.valid_specs)} valid, {len(report.invalid_specs)} invalid"
    )
    if report.invalid_specs:
        sys.exit(1)


@specs.command()
def status():
    """Show a summary of active and archived specs"""
    console = Console()
    engine = get_engine()

    try:
        spec_stats = engine.scanner.get_spec_stats()
    except ArchivalError as e:
        exit_with_error(e)
    archive_stats = engine.get_archive_stats()
    config = engine.get_config()

    table = Table(title="Spec Status")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    table.add_row("Total specs", str(spec_stats.total))
    table.add_row("Completed", str(spec_stats.completed))
    table.add_row("Incomplete", str(spec_stats.incomplete))
    table.add_row("Valid", str(spec_stats.valid))
    table.add_row("Invalid", str(spec_stats.invalid))
    table.add_row("Ready for archival", str(spec_stats.ready_for_archival))
    table.add_row("Archived", str(archive_stats.total_archives))
    table.add_row("Archival", "enabled" if config.enabled else "disabled")

    console.print(table)
