"""
Nexora Create Command

This module implements the 'nexora-rn create' command for generating a new
React Native project with the selected features.
"""

import shutil
from pathlib import Path
from typing import Any, Dict, Optional

import click
import questionary
from pydantic import ValidationError

from ..exceptions import NexoraError
from ..models.features import STATE_CHOICES, STORAGE_CHOICES, UI_CHOICES
from ..models.project import ProjectConfig
from ..models.project_generator import ProjectComposer, init_react_native_project
from .common import build_installer, build_registry, fail, get_settings


def prompt_for_options(project_name: str, defaults: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Ask for every project option interactively.

    Args:
        project_name: Name of the project being created
        defaults: Values given on the command line, used as prompt defaults

    Returns:
        Answers keyed by ProjectConfig field name, or None if cancelled
    """
    click.echo(f"\n📱 Configuring {click.style(project_name, fg='cyan', bold=True)}\n")

    navigation_default = defaults.get("navigation") or []
    questions = {
        "language": questionary.select(
            "Which language would you like to use?",
            choices=["JavaScript", "TypeScript"],
            default=defaults["language"],
        ),
        "navigation": questionary.checkbox(
            "Which navigation types would you like to use?",
            choices=[
                questionary.Choice("Stack Navigation", value="stack", checked="stack" in navigation_default),
                questionary.Choice("Bottom Tabs Navigation", value="tabs", checked="tabs" in navigation_default),
                questionary.Choice("Drawer Navigation", value="drawer", checked="drawer" in navigation_default),
            ],
        ),
        "state": questionary.select(
            "Which state management solution would you like to use?",
            choices=list(STATE_CHOICES),
            default=defaults["state"],
        ),
        "theme": questionary.confirm("Would you like to include a theme system?", default=defaults["theme"]),
        "localization": questionary.confirm(
            "Would you like to include localization support?", default=defaults["localization"]
        ),
        "firebase": questionary.confirm("Would you like to include Firebase setup?", default=defaults["firebase"]),
        "api": questionary.confirm(
            "Would you like to include a REST API service layer?", default=defaults["api"]
        ),
        "auth": questionary.confirm("Would you like to include an authentication flow?", default=defaults["auth"]),
        "storage": questionary.select(
            "Which storage solution would you like to use?",
            choices=list(STORAGE_CHOICES),
            default=defaults["storage"],
        ),
        "ui": questionary.select(
            "Which UI framework would you like to use?",
            choices=list(UI_CHOICES),
            default=defaults["ui"],
        ),
        "sample_screens": questionary.confirm(
            "Would you like to include sample screens?", default=defaults["sample_screens"]
        ),
    }

    answers: Dict[str, Any] = {}
    for field, question in questions.items():
        answer = question.ask()
        if answer is None:
            return None
        answers[field] = answer
    return answers


@click.command()
@click.argument('project_name')
@click.option('--language', type=click.Choice(["JavaScript", "TypeScript"]), help='Choose JavaScript or TypeScript')
@click.option('--navigation', default="stack", show_default=True,
              help='Navigation types, comma-separated (stack,tabs,drawer) or none')
@click.option('--state', type=click.Choice(list(STATE_CHOICES)), default="none", show_default=True,
              help='State management')
@click.option('--theme', is_flag=True, help='Include theme system')
@click.option('--localization', is_flag=True, help='Include localization support')
@click.option('--firebase', is_flag=True, help='Include Firebase setup')
@click.option('--api', is_flag=True, help='Include REST API service layer')
@click.option('--auth', is_flag=True, help='Include authentication flow')
@click.option('--fonts', is_flag=True, help='Include custom fonts folder')
@click.option('--storage', type=click.Choice(list(STORAGE_CHOICES)), default="async-storage", show_default=True,
              help='Storage backend')
@click.option('--ui', type=click.Choice(list(UI_CHOICES)), default="styled-components", show_default=True,
              help='UI framework')
@click.option('--sample-screens', is_flag=True, help='Include sample screens')
@click.option('--skipPrompts', '--skip-prompts', 'skip_prompts', is_flag=True,
              help='Skip interactive prompts and use command line options')
@click.option('--init/--no-init', 'run_init', default=True, show_default=True,
              help='Run the React Native community CLI before adding features')
@click.option('--skip-install', is_flag=True, help='Do not install npm dependencies')
@click.option('--path', 'parent_dir', type=click.Path(file_okay=False, path_type=Path), default=Path("."),
              help='Directory to create the project in')
@click.option('--force', is_flag=True, help='Overwrite an existing project directory without asking')
def create(
    project_name: str,
    language: Optional[str],
    navigation: str,
    state: str,
    theme: bool,
    localization: bool,
    firebase: bool,
    api: bool,
    auth: bool,
    fonts: bool,
    storage: str,
    ui: str,
    sample_screens: bool,
    skip_prompts: bool,
    run_init: bool,
    skip_install: bool,
    parent_dir: Path,
    force: bool,
) -> None:
    """
    Create a new React Native project with selected features.

    Example: nexora-rn create MyApp --navigation=stack,tabs --state=redux --theme --skipPrompts
    """
    settings = get_settings()

    options: Dict[str, Any] = {
        "name": project_name,
        "language": language or settings.default_language,
        "navigation": navigation,
        "state": state,
        "theme": theme,
        "localization": localization,
        "firebase": firebase,
        "api": api,
        "auth": auth,
        "fonts": fonts,
        "storage": storage,
        "ui": ui,
        "sample_screens": sample_screens,
    }

    try:
        config = ProjectConfig(**options)
    except ValidationError as e:
        fail(f"Invalid project options: {e}")

    if not skip_prompts:
        answers = prompt_for_options(project_name, config.model_dump())
        if answers is None:
            click.echo("Project creation cancelled.")
            return
        config = config.evolve(**answers)

    project_dir = (parent_dir / project_name).resolve()
    if project_dir.exists() and any(project_dir.iterdir()):
        if not force and not click.confirm(
            f"Directory {project_name} already exists. Do you want to overwrite it?", default=False
        ):
            click.echo("Project creation cancelled.")
            return
        shutil.rmtree(project_dir)

    click.echo(f"\n🚀 Creating a new React Native project: {click.style(project_name, fg='cyan', bold=True)}")

    try:
        if run_init:
            click.echo("📦 Running the React Native community CLI...")
            parent_dir.mkdir(parents=True, exist_ok=True)
            init_react_native_project(parent_dir.resolve(), project_name, typescript=config.is_typescript)

        composer = ProjectComposer(registry=build_registry(settings), installer=build_installer(settings))
        if not skip_install:
            click.echo("📥 Installing dependencies...")
        result = composer.compose(project_dir, config, install=not skip_install)

    except (NexoraError, OSError) as e:
        fail(f"Error creating project: {e}")

    click.echo()
    click.echo("✅ Project created successfully!")
    click.echo(f"📁 Project location: {click.style(str(project_dir), fg='green')}")
    click.echo(f"📝 Files written: {len(result.files_written)}")
    if skip_install and not result.dependencies.is_empty:
        click.echo("💡 Dependencies were not installed. Install them later with:")
        click.echo(f"   npm install {' '.join(result.dependencies.packages)}")
    click.echo()
    click.echo("Next steps:")
    click.echo(f"  1. cd {project_name}")
    click.echo("  2. npx react-native run-android  or  npx react-native run-ios")
    click.echo()
    click.echo("To add features later:")
    click.echo("  nexora-rn add <feature>")
