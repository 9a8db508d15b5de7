"""
Nexora Project Management Commands

This module implements 'nexora-rn rename' and 'nexora-rn config'.
"""

from pathlib import Path
from typing import Optional

import click
import questionary

from ..exceptions import NexoraError
from ..models.features import STATE_CHOICES, STORAGE_CHOICES, UI_CHOICES
from ..models.settings import DefaultSettings
from .common import build_manager, fail, path_option


@click.command()
@click.argument('new_name')
@path_option
def rename(new_name: str, path: Path) -> None:
    """
    Rename the React Native app.

    Example: nexora-rn rename "My New App"
    """
    try:
        result = build_manager(path).rename_app(new_name)
    except (NexoraError, OSError) as e:
        fail(f"Error renaming app: {e}")

    for relative in result.files_updated:
        click.echo(f"  📝 {relative}")
    click.echo(f"✅ App renamed from '{result.old_name}' to '{result.new_name}'")
    click.echo()
    click.echo("Note: You may need to run the following commands:")
    click.echo("  npx react-native-rename-next  (if installed)")
    click.echo("  npx pod-install ios  (for iOS)")
    click.echo("Then restart your development server.")


@click.command()
@path_option
@click.option('--theme', type=click.Choice(list(DefaultSettings.THEME_CHOICES)), help='Set default theme')
@click.option('--language', type=click.Choice(list(DefaultSettings.AVAILABLE_LANGUAGES)), help='Set default language')
@click.option('--navigation', help='Navigation types, comma-separated (stack,tabs,drawer) or none')
@click.option('--state', type=click.Choice(list(STATE_CHOICES)), help='State management')
@click.option('--ui', type=click.Choice(list(UI_CHOICES)), help='UI framework')
@click.option('--storage', type=click.Choice(list(STORAGE_CHOICES)), help='Storage backend')
def config(
    path: Path,
    theme: Optional[str],
    language: Optional[str],
    navigation: Optional[str],
    state: Optional[str],
    ui: Optional[str],
    storage: Optional[str],
) -> None:
    """
    Configure app settings.

    Without options, prompts for the default theme and language.
    """
    try:
        manager = build_manager(path)

        if all(option is None for option in (theme, language, navigation, state, ui, storage)):
            project = manager.load_config()
            if not project.theme and not project.localization:
                click.echo("⚠️  No configurable options are available. Enable theme or localization features first.")
                return
            if project.theme:
                theme = questionary.select(
                    "Select default theme:",
                    choices=list(DefaultSettings.THEME_CHOICES),
                    default=project.default_theme,
                ).ask()
            if project.localization:
                language = questionary.select(
                    "Select default language:",
                    choices=list(DefaultSettings.AVAILABLE_LANGUAGES),
                    default=project.default_language,
                ).ask()
            if theme is None and language is None:
                click.echo("Configuration cancelled.")
                return

        result = manager.configure(
            theme=theme,
            language=language,
            navigation=navigation,
            state=state,
            ui=ui,
            storage=storage,
        )

    except (NexoraError, OSError) as e:
        fail(f"Error configuring app: {e}")

    for change in result.changes:
        click.echo(f"  ✔ {change}")
    for skipped in result.skipped:
        click.echo(f"  ⚠️  Skipped {skipped}")
    for relative in result.files_written:
        click.echo(f"  📝 {relative}")
    click.echo("✅ Configuration updated successfully!")
