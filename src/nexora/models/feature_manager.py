"""
Nexora Feature Manager

This module applies feature changes to an existing project: adding and
removing features, renaming the app, and changing app-level settings.
Every mutating operation runs under the project lock.
"""

import logging
import re
import shutil
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from pydantic import BaseModel, Field

from ..exceptions import InvalidOption, NotAManagedProject, ProjectIOError
from ..utils import read_text, safe_load_json, to_kebab_case, write_json_atomic, write_text
from .config_store import ConfigStore
from .dependencies import DependencyPlanner, PackageInstaller
from .entrypoint import build_entry_point, entry_point_name, insert_feature, strip_feature
from .feature_state import (
    active_features,
    apply_disable,
    apply_enable,
    displaced_feature,
    is_installed,
    orphaned_directories,
    template_sets_for,
)
from .features import STATE_CHOICES, UI_CHOICES, get_feature_spec, validate_feature
from .lock import ProjectLock
from .project import ProjectConfig, normalize_navigation
from .renderer import TemplateRegistry, TemplateRenderer, render_template_sets, target_path
from .settings import DefaultSettings

logger = logging.getLogger(__name__)

# Source files scanned for app name references on rename
RENAME_GLOBS = ("src/**/*.js", "src/**/*.jsx", "src/**/*.ts", "src/**/*.tsx")
RENAME_ROOT_FILES = ("index.js", "index.tsx")


class FeatureChange(BaseModel):
    """Outcome of adding or removing one feature."""
    feature: str
    changed: bool
    message: str
    config: ProjectConfig
    displaced: Optional[str] = None
    directories_created: List[str] = Field(default_factory=list)
    directories_removed: List[str] = Field(default_factory=list)
    files_written: List[str] = Field(default_factory=list)
    files_removed: List[str] = Field(default_factory=list)
    packages_installed: List[str] = Field(default_factory=list)
    packages_removed: List[str] = Field(default_factory=list)


class RenameResult(BaseModel):
    """Outcome of renaming the app."""
    old_name: str
    new_name: str
    files_updated: List[str] = Field(default_factory=list)


class ConfigureResult(BaseModel):
    """Outcome of a configure call."""
    config: ProjectConfig
    changes: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    feature_changes: List[FeatureChange] = Field(default_factory=list)
    files_written: List[str] = Field(default_factory=list)


class FeatureManager:
    """
    Adds, removes and reconfigures features in one project directory.
    """

    def __init__(
        self,
        project_dir: Path,
        registry: Optional[TemplateRegistry] = None,
        renderer: Optional[TemplateRenderer] = None,
        planner: Optional[DependencyPlanner] = None,
        installer: Optional[PackageInstaller] = None,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.store = ConfigStore(self.project_dir)
        self.registry = registry or TemplateRegistry.builtin()
        self.renderer = renderer or TemplateRenderer()
        self.planner = planner or DependencyPlanner()
        self.installer = installer or PackageInstaller()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def load_config(self) -> ProjectConfig:
        return self.store.load()

    def installed_features(self) -> List[str]:
        """Active feature keys of the project."""
        return active_features(self.store.load())

    # ------------------------------------------------------------------
    # Add / remove
    # ------------------------------------------------------------------

    def add_feature(self, key: str, reinstall: bool = False) -> FeatureChange:
        """
        Add a feature to the project.

        Args:
            key: Feature key
            reinstall: Re-render and reinstall a feature that is already active

        Returns:
            FeatureChange; ``changed`` is False when nothing had to be done

        Raises:
            UnknownFeature: If the key is invalid
            NotAManagedProject: If the directory is not a Nexora project
            ProjectLocked: If another command holds the project lock
        """
        validate_feature(key)
        self._require_project()
        with ProjectLock(self.project_dir):
            return self._add(self.store.load(), key, reinstall)

    def remove_feature(self, key: str) -> FeatureChange:
        """
        Remove a feature from the project.

        Returns:
            FeatureChange; ``changed`` is False when the feature was not active

        Raises:
            UnknownFeature: If the key is invalid
            NotAManagedProject: If the directory is not a Nexora project
            ProjectLocked: If another command holds the project lock
        """
        validate_feature(key)
        self._require_project()
        with ProjectLock(self.project_dir):
            return self._remove(self.store.load(), key)

    def _add(self, old: ProjectConfig, key: str, reinstall: bool = False) -> FeatureChange:
        if is_installed(old, key) and not reinstall:
            return FeatureChange(
                feature=key,
                changed=False,
                message=f"Feature '{key}' is already installed in this project.",
                config=old,
            )

        new = apply_enable(old, key)
        displaced = displaced_feature(old, key)

        # Render before touching anything so template errors leave no trace
        rendered = render_template_sets(
            self.registry, self.renderer, template_sets_for(new, [key]), new
        )
        change = FeatureChange(
            feature=key,
            changed=True,
            message=f"Feature '{key}' added successfully.",
            config=new,
            displaced=displaced,
        )

        if displaced:
            logger.info(f"'{key}' replaces '{displaced}'")
            change.directories_removed = self._remove_directories(
                orphaned_directories(old, new, displaced)
            )
            change.files_removed = self._remove_stale_files(old, new, displaced, keep=rendered)

        for directory in get_feature_spec(key).directories:
            path = self.project_dir / directory
            if not path.exists():
                self._make_directory(path)
                change.directories_created.append(directory)

        for relative, content in rendered.items():
            write_text(self.project_dir / relative, content)
            change.files_written.append(relative)

        if self._sync_entry_point(old, new, key, displaced):
            change.files_written.append(entry_point_name(new))

        self.store.save(new)

        to_install, to_uninstall = self.planner.diff(old, new)
        if reinstall:
            plan = self.planner.plan(new)
            own = set(get_feature_spec(key).packages) | set(get_feature_spec(key).dev_packages)
            to_install.packages = [p for p in plan.packages if p in own or p in to_install.packages]
            to_install.dev_packages = [p for p in plan.dev_packages if p in own or p in to_install.dev_packages]
        self.installer.install(self.project_dir, to_install.packages)
        self.installer.install(self.project_dir, to_install.dev_packages, dev=True)
        self.installer.uninstall(self.project_dir, to_uninstall)
        change.packages_installed = to_install.all_packages
        change.packages_removed = to_uninstall

        logger.info(f"Added feature '{key}' to {self.project_dir}")
        return change

    def _remove(self, old: ProjectConfig, key: str) -> FeatureChange:
        if not is_installed(old, key):
            return FeatureChange(
                feature=key,
                changed=False,
                message=f"Feature '{key}' is not installed in this project.",
                config=old,
            )

        spec = get_feature_spec(key)
        new = apply_disable(old, key)

        # Templates that take over from the removed feature
        refresh_keys: List[str] = []
        if spec.is_navigation and new.has_navigation:
            refresh_keys = ["navigation"]
        elif spec.fallback:
            refresh_keys = [spec.domain]
        rendered = render_template_sets(
            self.registry, self.renderer, template_sets_for(new, refresh_keys), new
        ) if refresh_keys else {}

        change = FeatureChange(
            feature=key,
            changed=True,
            message=f"Feature '{key}' removed successfully.",
            config=new,
        )

        change.directories_removed = self._remove_directories(orphaned_directories(old, new, key))
        change.files_removed = self._remove_stale_files(old, new, key, keep=rendered)

        to_install, to_uninstall = self.planner.diff(old, new)
        self.installer.uninstall(self.project_dir, to_uninstall)
        change.packages_removed = to_uninstall

        entry_name = entry_point_name(old)
        entry_path = self.project_dir / entry_name
        strip_key = None
        if spec.provider is not None and not (spec.is_navigation and new.has_navigation):
            strip_key = key
        if strip_key and entry_path.exists():
            content = read_text(entry_path)
            stripped = strip_feature(content, strip_key, app_name=new.name)
            if stripped != content:
                write_text(entry_path, stripped)
                change.files_written.append(entry_name)
        elif strip_key:
            logger.info(f"No entry point at {entry_path}, nothing to unwrap")

        for relative, content in rendered.items():
            write_text(self.project_dir / relative, content)
            change.files_written.append(relative)

        if not to_install.is_empty:
            self.installer.install(self.project_dir, to_install.packages)
            self.installer.install(self.project_dir, to_install.dev_packages, dev=True)
            change.packages_installed = to_install.all_packages

        self.store.save(new)
        logger.info(f"Removed feature '{key}' from {self.project_dir}")
        return change

    # ------------------------------------------------------------------
    # Rename
    # ------------------------------------------------------------------

    def rename_app(self, new_name: str) -> RenameResult:
        """
        Rename the app in its manifests, source references and config.

        Args:
            new_name: New display name

        Returns:
            RenameResult listing the files that changed

        Raises:
            InvalidOption: If the new name is empty
            NotAManagedProject: If the directory is not a Nexora project
        """
        new_name = new_name.strip()
        if not new_name:
            raise InvalidOption("name", new_name, ["a non-empty app name"])

        self._require_project()
        with ProjectLock(self.project_dir):
            config = self.store.load()
            old_name = config.name
            result = RenameResult(old_name=old_name, new_name=new_name)

            if self._update_app_json(new_name):
                result.files_updated.append(DefaultSettings.APP_JSON)
            if self._update_package_json(new_name):
                result.files_updated.append(DefaultSettings.PACKAGE_JSON)
            result.files_updated.extend(self._update_code_references(old_name, new_name))

            self.store.save(config.evolve(name=new_name))

        logger.info(f"Renamed app from '{old_name}' to '{new_name}'")
        return result

    def _update_app_json(self, new_name: str) -> bool:
        path = self.project_dir / DefaultSettings.APP_JSON
        if not path.exists():
            return False
        data = safe_load_json(path)
        if not isinstance(data, dict):
            raise ProjectIOError(path, "parse")
        for field in ("name", "displayName"):
            if data.get(field):
                data[field] = new_name
        write_json_atomic(data, path)
        return True

    def _update_package_json(self, new_name: str) -> bool:
        path = self.project_dir / DefaultSettings.PACKAGE_JSON
        if not path.exists():
            logger.warning(f"No {path}, package name left unchanged")
            return False
        data = safe_load_json(path)
        if not isinstance(data, dict):
            raise ProjectIOError(path, "parse")
        data["name"] = to_kebab_case(new_name)
        write_json_atomic(data, path)
        return True

    def _update_code_references(self, old_name: str, new_name: str) -> List[str]:
        quoted = r"[\"']" + re.escape(old_name) + r"[\"']"
        patterns = [
            re.compile(r"name:\s*" + quoted),
            re.compile(r"displayName:\s*" + quoted),
            re.compile(r"title:\s*" + quoted),
            re.compile(r"appName\s*=\s*" + quoted),
        ]

        candidates: List[Path] = []
        for pattern in RENAME_GLOBS:
            candidates.extend(sorted(self.project_dir.glob(pattern)))
        candidates.extend(self.project_dir / name for name in RENAME_ROOT_FILES)

        updated: List[str] = []
        for path in candidates:
            if not path.is_file():
                continue
            content = read_text(path)
            new_content = content
            for pattern in patterns:
                new_content = pattern.sub(lambda m: m.group(0).replace(old_name, new_name), new_content)
            if new_content != content:
                write_text(path, new_content)
                updated.append(path.relative_to(self.project_dir).as_posix())
        return updated

    # ------------------------------------------------------------------
    # Configure
    # ------------------------------------------------------------------

    def configure(
        self,
        theme: Optional[str] = None,
        language: Optional[str] = None,
        navigation: Optional[str] = None,
        state: Optional[str] = None,
        ui: Optional[str] = None,
        storage: Optional[str] = None,
    ) -> ConfigureResult:
        """
        Change app-level settings.

        ``theme`` and ``language`` set the default theme and locale and
        re-render the theme and localization templates. The structural
        options add or remove features so the project ends up with the
        requested value.

        Raises:
            InvalidOption: If a value is outside its allowed choices
            NotAManagedProject: If the directory is not a Nexora project
            ProjectLocked: If another command holds the project lock
        """
        self._validate_options(theme, language, state, ui, storage)
        requested_navigation = None
        if navigation is not None:
            try:
                requested_navigation = normalize_navigation(navigation)
            except ValueError as e:
                raise InvalidOption("navigation", navigation, ["stack", "tabs", "drawer", "none"]) from e

        self._require_project()
        with ProjectLock(self.project_dir):
            config = self.store.load()
            result = ConfigureResult(config=config)

            if requested_navigation is not None:
                for nav_type in requested_navigation:
                    if nav_type not in config.navigation:
                        config = self._record(result, self._add(config, nav_type))
                for nav_type in list(config.navigation):
                    if nav_type not in requested_navigation:
                        config = self._record(result, self._remove(config, nav_type))

            for field, value in (("state", state), ("ui", ui)):
                if value is None or value == getattr(config, field):
                    continue
                if value == "none":
                    config = self._record(result, self._remove(config, getattr(config, field)))
                else:
                    config = self._record(result, self._add(config, value))

            if storage is not None and storage != config.storage:
                if storage == "mmkv":
                    config = self._record(result, self._add(config, "mmkv"))
                else:
                    config = self._record(result, self._remove(config, "mmkv"))

            settings_changed = False
            if theme is not None:
                if config.theme:
                    config = config.evolve(default_theme=theme)
                    result.changes.append(f"Default theme set to {theme}")
                    settings_changed = True
                else:
                    result.skipped.append("theme: enable the theme feature first")
            if language is not None:
                if config.localization:
                    config = config.evolve(default_language=language)
                    result.changes.append(f"Default language set to {language}")
                    settings_changed = True
                else:
                    result.skipped.append("language: enable the localization feature first")

            if settings_changed:
                self.store.save(config)
                rendered = render_template_sets(
                    self.registry,
                    self.renderer,
                    template_sets_for(config, ["theme", "localization"]),
                    config,
                )
                for relative, content in rendered.items():
                    if self._write_if_changed(relative, content):
                        result.files_written.append(relative)

        result.config = config
        return result

    def _validate_options(self, theme, language, state, ui, storage) -> None:
        checks = (
            ("theme", theme, DefaultSettings.THEME_CHOICES),
            ("language", language, DefaultSettings.AVAILABLE_LANGUAGES),
            ("state", state, STATE_CHOICES),
            ("ui", ui, UI_CHOICES),
            ("storage", storage, ("async-storage", "mmkv")),
        )
        for option, value, choices in checks:
            if value is not None and value not in choices:
                raise InvalidOption(option, value, choices)

    def _record(self, result: ConfigureResult, change: FeatureChange) -> ProjectConfig:
        result.feature_changes.append(change)
        if change.changed:
            result.changes.append(change.message)
        return change.config

    # ------------------------------------------------------------------
    # File system helpers
    # ------------------------------------------------------------------

    def _require_project(self) -> None:
        if not self.store.exists():
            raise NotAManagedProject(self.project_dir)

    def _make_directory(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ProjectIOError(path, "create directory", e) from e

    def _remove_directories(self, directories: Iterable[str]) -> List[str]:
        removed = []
        for directory in directories:
            path = self.project_dir / directory
            if not path.exists():
                continue
            try:
                shutil.rmtree(path)
            except OSError as e:
                raise ProjectIOError(path, "remove directory", e) from e
            removed.append(directory)
        return removed

    def _remove_stale_files(
        self,
        old: ProjectConfig,
        new: ProjectConfig,
        key: str,
        keep: Dict[str, str],
    ) -> List[str]:
        """Delete files rendered for ``key`` that no active template set still produces."""
        still_produced = set(keep) | self._template_paths(template_sets_for(new), new)
        removed = []
        for relative in sorted(self._template_paths(get_feature_spec(key).template_sets, old)):
            path = self.project_dir / relative
            if relative in still_produced or not path.is_file():
                continue
            try:
                path.unlink()
            except OSError as e:
                raise ProjectIOError(path, "remove file", e) from e
            removed.append(relative)
        return removed

    def _template_paths(self, template_sets: Iterable[str], config: ProjectConfig) -> set:
        paths = set()
        for template_set in template_sets:
            for relative in self.registry.lookup(template_set, config.language):
                paths.add(target_path(relative, config))
        return paths

    def _sync_entry_point(
        self,
        old: ProjectConfig,
        new: ProjectConfig,
        key: str,
        displaced: Optional[str],
    ) -> bool:
        """
        Edit the entry point for an added feature, leaving other lines alone.

        A file without region tags is only regenerated when it still matches
        what the tool generated for the old config.
        """
        removing = displaced if displaced and get_feature_spec(displaced).provider else None
        adding = key if get_feature_spec(key).provider else None
        if not removing and not adding:
            return False

        relative = entry_point_name(new)
        path = self.project_dir / relative
        if not path.exists():
            write_text(path, build_entry_point(new))
            return True

        content = read_text(path)
        updated: Optional[str] = content
        if removing:
            updated = strip_feature(updated, removing, app_name=new.name)
        if adding:
            updated = insert_feature(updated, adding)
        if updated is None:
            if content != build_entry_point(old):
                logger.warning(
                    f"{relative} has no region tags; add the '{key}' provider to it by hand"
                )
                return False
            updated = build_entry_point(new)

        if updated == content:
            return False
        write_text(path, updated)
        return True

    def _write_if_changed(self, relative: str, content: str) -> bool:
        path = self.project_dir / relative
        if path.exists() and read_text(path) == content:
            return False
        write_text(path, content)
        return True
