"""
Nexora CLI Helpers

Shared plumbing for the CLI commands: settings lookup, logging setup and
construction of the template registry and package installer.
"""

import logging
from pathlib import Path
from typing import NoReturn, Optional

import click

from ..models.config import NexoraSettings
from ..models.config_manager import ConfigManager
from ..models.dependencies import PackageInstaller
from ..models.feature_manager import FeatureManager
from ..models.renderer import TemplateRegistry
from ..models.settings import DefaultSettings
from ..utils import resolve_project_root

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool, level: Optional[str] = None) -> None:
    """Configure root logging; --verbose wins over the configured level."""
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, (level or DefaultSettings.DEFAULT_LOG_LEVEL).upper(), logging.WARNING)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)


def get_settings() -> NexoraSettings:
    """Settings loaded by the CLI group, or from disk outside a click context."""
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        root = ctx.find_root()
        if isinstance(root.obj, NexoraSettings):
            return root.obj
    return ConfigManager().load_config()


def build_registry(settings: NexoraSettings) -> TemplateRegistry:
    """Built-in templates, overlaid with the user's templates directory if set."""
    registry = TemplateRegistry.builtin()
    if settings.templates_dir is not None:
        logger.info(f"Overlaying templates from {settings.templates_dir}")
        registry = registry.merged(TemplateRegistry.from_directory(settings.templates_dir))
    return registry


def build_installer(settings: NexoraSettings) -> PackageInstaller:
    return PackageInstaller(
        package_manager=settings.package_manager,
        legacy_peer_deps=settings.legacy_peer_deps,
    )


def fail(message: str) -> NoReturn:
    """Print an error and abort the command with exit code 1."""
    click.echo(f"❌ {message}")
    raise click.Abort()


path_option = click.option(
    '--path', '-p',
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help='Path to the project'
)


def build_manager(path: Path) -> FeatureManager:
    """FeatureManager for the project containing ``path``."""
    settings = get_settings()
    return FeatureManager(
        resolve_project_root(path),
        registry=build_registry(settings),
        installer=build_installer(settings),
    )
