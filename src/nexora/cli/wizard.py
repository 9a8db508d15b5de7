"""
Nexora Setup Wizard

This module provides an interactive wizard for writing the Nexora user
settings file (package manager, project defaults, backups, templates).
"""

import click
import questionary
from pathlib import Path
from typing import Optional, Union

from ..models.config import NexoraSettings
from ..models.config_manager import ConfigManager
from ..models.settings import DefaultSettings


@click.command()
@click.option(
    '--force',
    is_flag=True,
    help='Overwrite existing configuration without prompting'
)
def wizard(force: bool) -> None:
    """
    Interactive setup wizard for Nexora.

    Guides you through choosing a package manager, the default project
    language, backups and an optional custom templates directory.
    """
    config_manager = ConfigManager()
    if not force and config_manager.config_exists():
        if not click.confirm("Configuration already exists. Do you want to overwrite it?"):
            click.echo("Setup cancelled. Using existing configuration.")
            return

    result = run_setup_wizard(config_manager)
    if result:
        click.echo("✅ Setup completed successfully!")
    else:
        click.echo("❌ Setup was cancelled or failed.")


def run_setup_wizard(config_manager: Optional[ConfigManager] = None) -> Optional[NexoraSettings]:
    """
    Run the interactive setup wizard.

    Args:
        config_manager: Manager to save with; defaults to the user settings file

    Returns:
        NexoraSettings if setup was completed, None if cancelled
    """
    config_manager = config_manager or ConfigManager()
    current = config_manager.load_config()

    click.echo("\n🧙‍♂️ Welcome to the Nexora Setup Wizard!")
    click.echo("Let's pick the defaults used when creating and updating projects.\n")

    package_manager = questionary.select(
        "Which package manager should install dependencies?",
        choices=[
            {"name": "Detect from lock files (auto)", "value": "auto"},
            {"name": "npm", "value": "npm"},
            {"name": "yarn", "value": "yarn"},
            {"name": "pnpm", "value": "pnpm"},
            {"name": "bun", "value": "bun"},
        ],
        default=current.package_manager
    ).ask()
    if not package_manager:
        click.echo("Setup cancelled.")
        return None

    legacy_peer_deps = current.legacy_peer_deps
    if package_manager in ("auto", "npm"):
        legacy_peer_deps = questionary.confirm(
            "Pass --legacy-peer-deps to npm?",
            default=current.legacy_peer_deps
        ).ask()
        if legacy_peer_deps is None:
            click.echo("Setup cancelled.")
            return None

    default_language = questionary.select(
        "Default language for new projects:",
        choices=["TypeScript", "JavaScript"],
        default=current.default_language
    ).ask()
    if not default_language:
        click.echo("Setup cancelled.")
        return None

    create_backups = questionary.confirm(
        "Back up projects before running `nexora-rn update`?",
        default=current.create_backups
    ).ask()
    if create_backups is None:
        click.echo("Setup cancelled.")
        return None

    templates_dir = questionary.path(
        "Custom templates directory (leave empty for built-in templates only):",
        default=str(current.templates_dir or ""),
        only_directories=True,
        validate=validate_templates_dir
    ).ask()
    if templates_dir is None:
        click.echo("Setup cancelled.")
        return None

    log_level = questionary.select(
        "Log level:",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=current.log_level if current.log_level in ("DEBUG", "INFO", "WARNING", "ERROR")
        else DefaultSettings.DEFAULT_LOG_LEVEL
    ).ask()
    if not log_level:
        click.echo("Setup cancelled.")
        return None

    settings = NexoraSettings(
        package_manager=package_manager,
        legacy_peer_deps=legacy_peer_deps,
        default_language=default_language,
        create_backups=create_backups,
        templates_dir=Path(templates_dir).expanduser() if templates_dir.strip() else None,
        log_level=log_level,
    )

    if not config_manager.save_config(settings):
        click.echo(f"❌ Could not write {config_manager.config_path}")
        return None

    click.echo(f"\n📁 Configuration saved to: {config_manager.config_path}")
    return settings


def validate_templates_dir(value: str) -> Union[bool, str]:
    """
    Validate the templates directory answer.

    Args:
        value: Path entered by the user

    Returns:
        True if valid, error message string if invalid
    """
    if not value.strip():
        return True
    if not Path(value).expanduser().is_dir():
        return "Directory does not exist"
    return True
