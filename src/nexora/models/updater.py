"""
Nexora Project Updater

This module re-applies the current templates to an existing project so it
picks up template changes shipped by newer releases of the CLI. A snapshot
of the project tree is taken first, and snapshots can be listed and restored.
"""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional
from packaging.version import Version
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..exceptions import BackupError, DependencyInstallError, NotAManagedProject
from ..utils import get_backup_timestamp, read_text, safe_load_json, write_text
from .config_store import ConfigStore
from .dependencies import DependencyPlan, DependencyPlanner, PackageInstaller
from .entrypoint import build_entry_point, entry_point_name
from .feature_state import active_features, resolve_feature_keys, template_sets_for
from .lock import ProjectLock
from .renderer import TemplateRegistry, TemplateRenderer, render_template_sets
from .settings import DefaultSettings

# Set up module logger
logger = logging.getLogger(__name__)


class BackupInfo(BaseModel):
    """Information about a project snapshot."""
    backup_id: str = Field(description="Directory name of the snapshot")
    path: Path = Field(description="Absolute path of the snapshot")
    created: datetime = Field(description="When the snapshot was taken")


class UpdateReport(BaseModel):
    """Outcome of an update run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    project_dir: Path
    previous_version: str
    new_version: str
    up_to_date: bool = False
    features: List[str] = Field(default_factory=list)
    created: List[str] = Field(default_factory=list)
    updated: List[str] = Field(default_factory=list)
    unchanged: List[str] = Field(default_factory=list)
    backup_path: Optional[Path] = None
    dependencies: DependencyPlan = Field(default_factory=DependencyPlan)
    dependencies_installed: bool = False
    dependency_error: Optional[str] = None

    @property
    def changed_files(self) -> List[str]:
        return self.created + self.updated


class BackupManager:
    """
    Manages full-tree snapshots under the project's backups directory.
    """

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = Path(project_dir)
        self.backups_dir = self.project_dir / DefaultSettings.BACKUPS_DIR

    def _ignore(self, directory: str, names: List[str]) -> List[str]:
        """copytree ignore hook applying the backup exclusion list."""
        relative_dir = Path(directory).relative_to(self.project_dir)
        ignored = []
        for name in names:
            relative = (relative_dir / name).as_posix()
            if relative in DefaultSettings.BACKUP_EXCLUDES or name in ("node_modules", ".git"):
                ignored.append(name)
        return ignored

    def create_backup(self) -> Path:
        """
        Snapshot the project tree.

        Returns:
            Path of the new snapshot directory

        Raises:
            BackupError: If the snapshot cannot be written
        """
        backup_path = self.backups_dir / f"{DefaultSettings.BACKUP_PREFIX}{get_backup_timestamp()}"
        try:
            self.backups_dir.mkdir(parents=True, exist_ok=True)
            shutil.copytree(self.project_dir, backup_path, ignore=self._ignore)
        except (OSError, shutil.Error) as e:
            raise BackupError(f"Failed to back up {self.project_dir} to {backup_path}: {e}") from e

        logger.info(f"Created backup {backup_path}")
        return backup_path

    def list_backups(self) -> List[BackupInfo]:
        """List snapshots, newest first."""
        if not self.backups_dir.exists():
            return []

        backups = [
            BackupInfo(
                backup_id=path.name,
                path=path,
                created=datetime.fromtimestamp(path.stat().st_mtime),
            )
            for path in self.backups_dir.iterdir()
            if path.is_dir() and path.name.startswith(DefaultSettings.BACKUP_PREFIX)
        ]
        # Names embed an ISO timestamp, so they sort chronologically
        backups.sort(key=lambda b: b.backup_id, reverse=True)
        return backups

    def restore_backup(self, backup_id: str) -> Path:
        """
        Copy a snapshot back over the project tree.

        Files created after the snapshot are left in place.

        Raises:
            BackupError: If the snapshot does not exist or cannot be copied
        """
        source = self.backups_dir / backup_id
        if not source.is_dir():
            raise BackupError(f"Backup {backup_id} not found in {self.backups_dir}")

        try:
            shutil.copytree(source, self.project_dir, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            raise BackupError(f"Error restoring backup {backup_id}: {e}") from e

        logger.info(f"Restored backup {backup_id} into {self.project_dir}")
        return source


def has_framework_dependency(project_dir: Path) -> bool:
    """Check that package.json lists react-native under dependencies."""
    package_data = safe_load_json(Path(project_dir) / DefaultSettings.PACKAGE_JSON)
    if not isinstance(package_data, dict):
        return False
    dependencies = package_data.get("dependencies") or {}
    return isinstance(dependencies, dict) and DefaultSettings.FRAMEWORK_PACKAGE in dependencies


class UpdateReconciler:
    """
    Re-renders a project's templates and overwrites files that differ.

    There is no merge: a hand edit is overwritten whenever the rendered
    output differs from it.
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

    def is_update_needed(self, project_version: str) -> bool:
        return Version(project_version) < Version(self.tool_version)

    def update(
        self,
        project_root: Path,
        features: Optional[Iterable[str]] = None,
        force: bool = False,
        backup: bool = True,
        skip_install: bool = False,
    ) -> UpdateReport:
        """
        Update a project to the running tool's templates.

        Args:
            project_root: Project directory
            features: Feature keys or field names to update; all active
                features when omitted
            force: Update even when the project is already current
            backup: Snapshot the project first
            skip_install: Do not run the package manager

        Returns:
            UpdateReport; a failed dependency install is recorded in
            ``dependency_error`` rather than raised

        Raises:
            NotAManagedProject: If the directory is not a Nexora project
            CorruptConfig: If the project config cannot be parsed
            UnknownFeature: If a requested feature key is invalid
            BackupError: If the snapshot fails (nothing is modified)
            TemplateSyntaxError: If a template is malformed (nothing is modified)
        """
        project_root = Path(project_root)
        store = ConfigStore(project_root)
        config = store.load()

        if not has_framework_dependency(project_root):
            raise NotAManagedProject(project_root, "package.json does not depend on react-native")

        report = UpdateReport(
            project_dir=project_root,
            previous_version=config.cli_version,
            new_version=self.tool_version,
        )

        if not force and not self.is_update_needed(config.cli_version):
            logger.info(f"Project at {config.cli_version} is up to date with {self.tool_version}")
            report.up_to_date = True
            report.new_version = config.cli_version
            return report

        with ProjectLock(project_root):
            # Another command may have saved since the version check
            config = store.load()

            # Validates explicit keys before anything is touched
            feature_keys = None if features is None else list(features)
            report.features = (
                active_features(config) if feature_keys is None
                else resolve_feature_keys(config, feature_keys)
            )

            new_config = config.evolve(cli_version=self.tool_version)
            rendered = render_template_sets(
                self.registry, self.renderer, template_sets_for(new_config, feature_keys), new_config
            )
            # The entry point belongs to no template set; only a full update rebuilds it
            if feature_keys is None:
                rendered[entry_point_name(new_config)] = build_entry_point(new_config)

            if backup:
                report.backup_path = BackupManager(project_root).create_backup()

            for relative, content in rendered.items():
                path = project_root / relative
                if not path.exists():
                    write_text(path, content)
                    report.created.append(relative)
                elif read_text(path) != content:
                    write_text(path, content)
                    report.updated.append(relative)
                else:
                    report.unchanged.append(relative)

            store.save(new_config)
            logger.info(
                f"Updated {len(report.updated)} and created {len(report.created)} files in {project_root}"
            )

            report.dependencies = self.planner.plan(
                new_config, None if feature_keys is None else report.features
            )
            if not skip_install:
                try:
                    self.installer.install_plan(project_root, report.dependencies)
                    report.dependencies_installed = True
                except DependencyInstallError as e:
                    logger.error(f"Dependency installation failed: {e}")
                    report.dependency_error = str(e)

        return report
