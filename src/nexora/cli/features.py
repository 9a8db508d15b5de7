"""
Nexora Feature Commands

This module implements 'nexora-rn add', 'nexora-rn remove' and
'nexora-rn info' for managing features of an existing project.
"""

from pathlib import Path

import click

from ..exceptions import NexoraError
from ..models.feature_manager import FeatureChange
from ..models.feature_state import is_installed
from ..models.features import FEATURES, validate_feature
from .common import build_manager, fail, path_option


def _print_change(change: FeatureChange) -> None:
    if change.displaced:
        click.echo(f"🔁 Replaced '{change.displaced}' with '{change.feature}'")
    for directory in change.directories_removed:
        click.echo(f"  🗑️  {directory}/")
    for relative in change.files_removed:
        click.echo(f"  🗑️  {relative}")
    for relative in change.files_written:
        click.echo(f"  📝 {relative}")
    if change.packages_installed:
        click.echo(f"  📦 Installed: {', '.join(change.packages_installed)}")
    if change.packages_removed:
        click.echo(f"  📦 Uninstalled: {', '.join(change.packages_removed)}")


@click.command()
@click.argument('feature')
@path_option
@click.option('--yes', '-y', is_flag=True, help='Do not prompt; keep an installed feature as it is')
def add(feature: str, path: Path, yes: bool) -> None:
    """
    Add a feature to an existing project.

    Example: nexora-rn add drawer
    """
    try:
        validate_feature(feature)
        manager = build_manager(path)
        change = manager.add_feature(feature)

        if not change.changed:
            click.echo(f"⚠️  {change.message}")
            if yes or not click.confirm("Do you want to reinstall/update it?", default=False):
                return
            change = manager.add_feature(feature, reinstall=True)

    except (NexoraError, OSError) as e:
        fail(f"Error adding {feature}: {e}")

    _print_change(change)
    click.echo(f"✅ {change.message}")


@click.command()
@click.argument('feature')
@path_option
@click.option('--yes', '-y', is_flag=True, help='Remove without asking for confirmation')
def remove(feature: str, path: Path, yes: bool) -> None:
    """
    Remove a feature from an existing project.

    Example: nexora-rn remove redux
    """
    try:
        validate_feature(feature)
        manager = build_manager(path)
        config = manager.load_config()

        if is_installed(config, feature) and not yes:
            click.echo(f"⚠️  Removing the '{feature}' feature may cause data loss and require code adjustments.")
            if not click.confirm("Are you sure you want to remove this feature?", default=False):
                click.echo("Feature removal cancelled.")
                return

        change = manager.remove_feature(feature)

    except (NexoraError, OSError) as e:
        fail(f"Error removing {feature}: {e}")

    if not change.changed:
        click.echo(f"⚠️  {change.message}")
        return

    _print_change(change)
    click.echo(f"✅ {change.message}")


@click.command()
@path_option
def info(path: Path) -> None:
    """
    Show the features installed in a project.
    """
    try:
        manager = build_manager(path)
        config = manager.load_config()
        installed = manager.installed_features()
    except (NexoraError, OSError) as e:
        fail(str(e))

    click.echo(f"📱 {click.style(config.name, fg='cyan', bold=True)} ({config.language})")
    click.echo(f"🏷️  Created with nexora-rn {config.cli_version}")
    click.echo()
    click.echo("Installed features:")
    for key in installed:
        label = FEATURES[key].label if key in FEATURES else key
        click.echo(f"  ✅ {key:<18} {label}")

    available = [key for key in FEATURES if key not in installed]
    if available:
        click.echo()
        click.echo(f"Available: {', '.join(available)}")
