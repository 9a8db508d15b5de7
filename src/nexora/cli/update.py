"""
Nexora Update Command

This module implements 'nexora-rn update', which brings a project's
generated files in line with the templates of the installed CLI version.
"""

from pathlib import Path
from typing import Optional

import click

from ..exceptions import NexoraError
from ..models.config_store import load_project_config
from ..models.updater import UpdateReconciler
from ..utils import resolve_project_root
from .common import build_installer, build_registry, fail, get_settings, path_option


@click.command()
@path_option
@click.option('--features', help='Comma-separated features to update (default: all installed)')
@click.option('--force', is_flag=True, help='Update even if the project is already up to date')
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.option('--no-backup', is_flag=True, help='Do not back up the project first')
@click.option('--skip-install', is_flag=True, help='Do not install dependencies')
def update(
    path: Path,
    features: Optional[str],
    force: bool,
    yes: bool,
    no_backup: bool,
    skip_install: bool,
) -> None:
    """
    Update an existing project with the latest template changes.
    """
    settings = get_settings()
    project_root = resolve_project_root(path)
    reconciler = UpdateReconciler(registry=build_registry(settings), installer=build_installer(settings))

    try:
        project = load_project_config(project_root)
        click.echo(f"🏷️  Current project CLI version: {project.cli_version}")
        click.echo(f"🆕 Latest CLI version: {reconciler.tool_version}")

        if not force and not reconciler.is_update_needed(project.cli_version):
            click.echo("✅ Your project is already up to date with the latest template version.")
            click.echo("💡 If you want to force an update, use the --force flag.")
            return

        if not yes and not click.confirm(
            "This will update your project with the latest template changes. "
            "Some of your customizations might be overwritten. Do you want to continue?",
            default=False,
        ):
            click.echo("Update cancelled.")
            return

        selected = [f.strip() for f in features.split(",") if f.strip()] if features else None
        report = reconciler.update(
            project_root,
            features=selected,
            force=force,
            backup=settings.create_backups and not no_backup,
            skip_install=skip_install,
        )

    except (NexoraError, OSError) as e:
        fail(f"Error updating project: {e}")

    for relative in report.created:
        click.echo(f"  ➕ {relative}")
    for relative in report.updated:
        click.echo(f"  📝 {relative}")
    click.echo(f"  {len(report.unchanged)} files unchanged")

    if report.backup_path is not None:
        click.echo(f"💾 Backup created at {report.backup_path}")

    if report.dependency_error:
        click.echo(f"⚠️  Project files were updated to {report.new_version}, but installing dependencies failed:")
        fail(report.dependency_error)

    click.echo(f"✅ Project successfully updated to version {report.new_version}!")
    if report.features:
        click.echo(f"Updated features: {', '.join(report.features)}")
