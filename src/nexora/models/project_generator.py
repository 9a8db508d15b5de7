"""
Nexora Project Generator

This module builds a complete React Native project tree from a project
configuration: directory layout, manifests, rendered feature templates,
the application entry point, the persisted config and its dependencies.
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..exceptions import DependencyInstallError, ProjectIOError
from ..utils import to_kebab_case, write_json_atomic, write_text
from .config_store import ConfigStore
from .dependencies import DependencyPlan, DependencyPlanner, PackageInstaller
from .entrypoint import build_entry_point, entry_point_name
from .feature_state import feature_directories, template_sets_for
from .lock import ProjectLock
from .project import ProjectConfig
from .renderer import TemplateRegistry, TemplateRenderer, render_template_sets
from .settings import DefaultSettings

# Set up module logger
logger = logging.getLogger(__name__)


class ComposeResult(BaseModel):
    """Outcome of composing a project."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    project_dir: Path
    config: ProjectConfig
    directories: List[str] = Field(default_factory=list)
    files_written: List[str] = Field(default_factory=list)
    manifests_created: List[str] = Field(default_factory=list)
    dependencies: DependencyPlan = Field(default_factory=DependencyPlan)
    installed: bool = False


def default_package_json(config: ProjectConfig) -> Dict:
    """Minimal package.json for a project that has none yet."""
    dev_dependencies = {
        "@babel/core": "^7.20.0",
        "@react-native/babel-preset": DefaultSettings.REACT_NATIVE_VERSION,
        "@react-native/metro-config": DefaultSettings.REACT_NATIVE_VERSION,
        "jest": "^29.6.3",
    }
    if config.is_typescript:
        dev_dependencies.update({
            "@types/react": "^18.2.6",
            "typescript": "5.0.4",
        })

    return {
        "name": to_kebab_case(config.name),
        "version": "0.0.1",
        "private": True,
        "scripts": {
            "android": "react-native run-android",
            "ios": "react-native run-ios",
            "lint": "eslint .",
            "start": "react-native start",
            "test": "jest",
        },
        "dependencies": {
            "react": DefaultSettings.REACT_VERSION,
            DefaultSettings.FRAMEWORK_PACKAGE: DefaultSettings.REACT_NATIVE_VERSION,
        },
        "devDependencies": dev_dependencies,
    }


def default_app_json(config: ProjectConfig) -> Dict:
    return {"name": config.name, "displayName": config.name}


def init_react_native_project(
    parent_dir: Path,
    name: str,
    typescript: bool = True,
    runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
) -> Path:
    """
    Create the native project shell with the React Native community CLI.

    Args:
        parent_dir: Directory the project folder is created in
        name: Project name
        typescript: Use the TypeScript template
        runner: Replacement for subprocess.run, used by tests

    Returns:
        Path to the created project directory

    Raises:
        DependencyInstallError: If the CLI is missing or fails
    """
    command = DefaultSettings.RN_INIT_COMMAND + [name]
    if typescript:
        command += ["--template", DefaultSettings.RN_TYPESCRIPT_TEMPLATE]

    run = runner or subprocess.run
    logger.info(f"Running {' '.join(command)} in {parent_dir}")
    try:
        result = run(command, cwd=str(parent_dir), capture_output=True, text=True)
    except FileNotFoundError as e:
        raise DependencyInstallError(command, 127, str(e)) from e

    if result.returncode != 0:
        raise DependencyInstallError(command, result.returncode, result.stderr or result.stdout or "")
    return Path(parent_dir) / name


class ProjectComposer:
    """
    Handles the complete process of generating a project tree.

    Templates are rendered into memory first, so a broken template aborts
    before anything is written. There is no rollback for later failures.
    """

    def __init__(
        self,
        registry: Optional[TemplateRegistry] = None,
        renderer: Optional[TemplateRenderer] = None,
        planner: Optional[DependencyPlanner] = None,
        installer: Optional[PackageInstaller] = None,
        tool_version: str = __version__,
    ) -> None:
        self.registry = registry or TemplateRegistry.builtin()
        self.renderer = renderer or TemplateRenderer()
        self.planner = planner or DependencyPlanner()
        self.installer = installer or PackageInstaller()
        self.tool_version = tool_version

    def compose(self, project_root: Path, config: ProjectConfig, install: bool = True) -> ComposeResult:
        """
        Build the project at ``project_root``.

        Args:
            project_root: Project directory (created if missing)
            config: Desired project configuration
            install: Install dependencies after writing files

        Returns:
            ComposeResult describing what was written

        Raises:
            TemplateSyntaxError: If a template is malformed (nothing written)
            TemplateRenderError: If a template fails to render (nothing written)
            ProjectIOError: If a file cannot be written
            ProjectLocked: If another command holds the project lock
            DependencyInstallError: If installing dependencies fails
        """
        project_root = Path(project_root)
        config = config.evolve(cli_version=self.tool_version)

        rendered = render_template_sets(self.registry, self.renderer, template_sets_for(config), config)
        rendered[entry_point_name(config)] = build_entry_point(config)

        try:
            project_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProjectIOError(project_root, "create directory", e) from e

        result = ComposeResult(project_dir=project_root, config=config)

        with ProjectLock(project_root):
            for directory in feature_directories(config):
                self._make_directory(project_root / directory)
                result.directories.append(directory)

            result.manifests_created = self._ensure_manifests(project_root, config)

            for relative, content in rendered.items():
                write_text(project_root / relative, content)
                result.files_written.append(relative)
            logger.info(f"Wrote {len(result.files_written)} files to {project_root}")

            ConfigStore(project_root).save(config)

            result.dependencies = self.planner.plan(config)
            if install:
                self.installer.install_plan(project_root, result.dependencies)
                result.installed = True

        return result

    def _make_directory(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProjectIOError(path, "create directory", e) from e

    def _ensure_manifests(self, project_root: Path, config: ProjectConfig) -> List[str]:
        """Write package.json and app.json when absent; existing ones are kept."""
        created = []
        manifests = (
            (DefaultSettings.PACKAGE_JSON, default_package_json),
            (DefaultSettings.APP_JSON, default_app_json),
        )
        for file_name, factory in manifests:
            path = project_root / file_name
            if path.exists():
                logger.debug(f"Keeping existing {path}")
                continue
            write_json_atomic(factory(config), path)
            created.append(file_name)
        return created
