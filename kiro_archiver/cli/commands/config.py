"""Configuration management commands for the Kiro archiver."""

import json

import click

from ...core.constants import KIRO_DIR_NAME
from ...services.exceptions import ArchivalError, ConfigurationError
from ...utils.config_manager import ConfigurationManager
from ..helpers import exit_with_error, get_project_context, parse_setting_value


def _get_manager() -> ConfigurationManager:
    _, kiro_dir = get_project_context()
    return ConfigurationManager(kiro_dir)


def _backup_if_enabled(config_manager: ConfigurationManager) -> None:
    if not config_manager.config_file_exists():
        return
    if config_manager.load().backup_enabled:
        backup_path = config_manager.backup()
        click.echo(f"Backed up configuration to {backup_path.name}")


@click.group()
def config():
    """Manage archival configuration"""
    pass


@config.command()
def show():
    """Display current archival configuration"""
    config_manager = _get_manager()

    try:
        archival_config = config_manager.load()
    except ArchivalError as e:
        exit_with_error(e)

    click.echo("Archival Configuration:")
    click.echo(json.dumps(archival_config.to_file_dict(), indent=2))
    click.echo(f"\nStored in {KIRO_DIR_NAME}/{config_manager.config_file.name}")


@config.command('set')
@click.argument('key')
@click.argument('value')
def set_value(key, value):
    """Set a configuration value (e.g. delayMinutes 30)"""
    config_manager = _get_manager()

    try:
        _backup_if_enabled(config_manager)
        config_manager.update_setting(key, parse_setting_value(value))
    except ArchivalError as e:
        exit_with_error(e)

    click.echo(f"Set {key} = {value}")


@config.command()
def reset():
    """Reset archival configuration to defaults"""
    config_manager = _get_manager()

    try:
        _backup_if_enabled(config_manager)
    except ConfigurationError as e:
        # A corrupt file is the usual reason to reset
        click.echo(f"Warning: could not back up current configuration: {e.message}", err=True)

    try:
        config_manager.reset_to_defaults()
    except ArchivalError as e:
        exit_with_error(e)

    click.echo("Archival configuration reset to defaults")


@config.command()
def backup():
    """Write a timestamped backup of the configuration"""
    config_manager = _get_manager()

    try:
        backup_path = config_manager.backup()
    except ArchivalError as e:
        exit_with_error(e)

    click.echo(f"Configuration backed up to {backup_path}")


@config.command()
@click.argument('backup_path', type=click.Path(exists=True, dir_okay=False))
def restore(backup_path):
    """Restore configuration from a backup file"""
    config_manager = _get_manager()

    try:
        config_manager.restore_from_backup(backup_path)
    except ArchivalError as e:
        exit_with_error(e)

    click.echo(f"Configuration restored from {backup_path}")
