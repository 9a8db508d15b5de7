"""
Nexora Dependency Management

This module maps project configurations to npm package lists and runs the
project's package manager to install or uninstall them.
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
from pydantic import BaseModel, Field

from ..exceptions import DependencyInstallError
from .feature_state import active_features
from .features import AUTH_STANDALONE_PACKAGES, get_feature_spec
from .project import ProjectConfig
from .settings import DefaultSettings

logger = logging.getLogger(__name__)


class DependencyPlan(BaseModel):
    """Regular and dev packages to install."""

    packages: List[str] = Field(default_factory=list)
    dev_packages: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.packages and not self.dev_packages

    @property
    def all_packages(self) -> List[str]:
        return self.packages + [p for p in self.dev_packages if p not in self.packages]


def _extend_unique(target: List[str], items: Sequence[str]) -> None:
    for item in items:
        if item not in target:
            target.append(item)


class DependencyPlanner:
    """
    Computes which packages a configuration needs.

    Packages are derived from the feature table; the only cross-feature rule
    is that auth brings its own token storage when Firebase is not enabled.
    """

    def plan(self, config: ProjectConfig, features: Optional[Iterable[str]] = None) -> DependencyPlan:
        """
        Build the dependency plan for a configuration.

        Args:
            config: Project configuration
            features: Limit the plan to these active feature keys; every
                active feature when omitted

        Returns:
            DependencyPlan with ordered, de-duplicated package names
        """
        packages: List[str] = []
        dev_packages: List[str] = []

        keys = active_features(config) if features is None else list(features)
        for key in keys:
            spec = get_feature_spec(key)
            _extend_unique(packages, spec.packages)
            _extend_unique(dev_packages, spec.dev_packages)

        if "auth" in keys and not config.firebase:
            _extend_unique(packages, AUTH_STANDALONE_PACKAGES)

        return DependencyPlan(packages=packages, dev_packages=dev_packages)

    def diff(self, old: ProjectConfig, new: ProjectConfig) -> Tuple[DependencyPlan, List[str]]:
        """
        Compute the package delta between two configurations.

        A package still required by ``new`` is never uninstalled, so removing
        drawer keeps the navigation core packages while stack remains.

        Args:
            old: Configuration before the change
            new: Configuration after the change

        Returns:
            Tuple of (plan of packages to install, packages to uninstall)
        """
        old_plan = self.plan(old)
        new_plan = self.plan(new)
        old_all = set(old_plan.all_packages)
        new_all = set(new_plan.all_packages)

        to_install = DependencyPlan(
            packages=[p for p in new_plan.packages if p not in old_all],
            dev_packages=[p for p in new_plan.dev_packages if p not in old_all],
        )
        to_uninstall = [p for p in old_plan.all_packages if p not in new_all]
        return to_install, to_uninstall


def detect_package_manager(project_dir: Path) -> str:
    """Detect the package manager from lock files in ``project_dir``."""
    for lock_file, manager in DefaultSettings.LOCKFILE_MANAGERS:
        if (Path(project_dir) / lock_file).exists():
            return manager
    return DefaultSettings.DEFAULT_PACKAGE_MANAGER


class PackageInstaller:
    """
    Runs the project's package manager in a subprocess.
    """

    _ADD_COMMANDS = {
        "npm": (["npm", "install"], "--save-dev"),
        "yarn": (["yarn", "add"], "--dev"),
        "pnpm": (["pnpm", "add"], "--save-dev"),
        "bun": (["bun", "add"], "--dev"),
    }
    _REMOVE_COMMANDS = {
        "npm": ["npm", "uninstall"],
        "yarn": ["yarn", "remove"],
        "pnpm": ["pnpm", "remove"],
        "bun": ["bun", "remove"],
    }

    def __init__(
        self,
        package_manager: str = "auto",
        legacy_peer_deps: bool = True,
        runner: Optional[Callable[..., subprocess.CompletedProcess]] = None,
    ) -> None:
        """
        Initialize the installer.

        Args:
            package_manager: npm, yarn, pnpm, bun, or auto to detect per project
            legacy_peer_deps: Pass --legacy-peer-deps to npm installs
            runner: Replacement for subprocess.run, used by tests
        """
        self.package_manager = package_manager
        self.legacy_peer_deps = legacy_peer_deps
        self._run = runner or subprocess.run

    def resolve_manager(self, project_dir: Path) -> str:
        if self.package_manager == "auto":
            return detect_package_manager(project_dir)
        return self.package_manager

    def build_install_command(self, manager: str, names: Sequence[str], dev: bool = False) -> List[str]:
        base, dev_flag = self._ADD_COMMANDS[manager]
        command = list(base)
        if dev:
            command.append(dev_flag)
        command.extend(names)
        if manager == "npm" and self.legacy_peer_deps:
            command.append("--legacy-peer-deps")
        return command

    def build_uninstall_command(self, manager: str, names: Sequence[str]) -> List[str]:
        command = list(self._REMOVE_COMMANDS[manager])
        command.extend(names)
        if manager == "npm" and self.legacy_peer_deps:
            command.append("--legacy-peer-deps")
        return command

    def install(self, project_dir: Path, names: Sequence[str], dev: bool = False) -> None:
        """
        Install packages into the project.

        Args:
            project_dir: Project root
            names: Package names; nothing runs when empty
            dev: Install as dev dependencies

        Raises:
            DependencyInstallError: If the package manager fails
        """
        if not names:
            return
        manager = self.resolve_manager(project_dir)
        self._execute(project_dir, self.build_install_command(manager, names, dev=dev))

    def uninstall(self, project_dir: Path, names: Sequence[str]) -> None:
        """
        Uninstall packages from the project.

        Raises:
            DependencyInstallError: If the package manager fails
        """
        if not names:
            return
        manager = self.resolve_manager(project_dir)
        self._execute(project_dir, self.build_uninstall_command(manager, names))

    def install_plan(self, project_dir: Path, plan: DependencyPlan) -> None:
        """Install a plan: one call for regular and one for dev dependencies."""
        self.install(project_dir, plan.packages)
        self.install(project_dir, plan.dev_packages, dev=True)

    def _execute(self, project_dir: Path, command: List[str]) -> None:
        logger.info(f"Running {' '.join(command)} in {project_dir}")
        try:
            result = self._run(
                command,
                cwd=str(project_dir),
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise DependencyInstallError(command, 127, str(e)) from e

        if result.returncode != 0:
            output = result.stderr or result.stdout or ""
            raise DependencyInstallError(command, result.returncode, output)
        logger.debug(f"{command[0]} finished: {(result.stdout or '').strip()[:200]}")
