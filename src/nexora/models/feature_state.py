"""
Nexora Feature State Machine

This module holds the pure transitions between project configurations.
Every function takes a ProjectConfig and returns a new one (or a derived
value) without touching the file system or mutating its input.
"""

import logging
from typing import Iterable, List, Optional

from ..exceptions import UnknownFeature
from .features import (
    ASYNC_STORAGE,
    FEATURES,
    FLAG_FEATURES,
    NAVIGATION_TYPES,
    STRUCTURAL_FIELDS,
    VALID_FEATURES,
    get_feature_spec,
    validate_feature,
)
from .project import ProjectConfig
from .settings import DefaultSettings

logger = logging.getLogger(__name__)


def is_installed(config: ProjectConfig, key: str) -> bool:
    """
    Check whether a feature is active in ``config``.

    Args:
        config: Project configuration
        key: Feature key

    Returns:
        True if the feature is active

    Raises:
        UnknownFeature: If the key is not a valid feature
    """
    spec = validate_feature(key)

    if key == "navigation":
        return config.has_navigation
    if spec.is_navigation:
        return key in config.navigation
    if spec.is_exclusive:
        return getattr(config, spec.domain) == key
    return bool(getattr(config, key))


def apply_enable(config: ProjectConfig, key: str) -> ProjectConfig:
    """
    Return the configuration with ``key`` enabled.

    Navigation types are added to the active set; the bare ``navigation`` key
    enables stack navigation when no type is active. Exclusive features
    replace the current value of their field. Enabling an active feature
    returns an equal configuration.
    """
    spec = validate_feature(key)

    if key == "navigation":
        if config.has_navigation:
            return config.evolve()
        return config.evolve(navigation=["stack"])
    if spec.is_navigation:
        if key in config.navigation:
            return config.evolve()
        return config.evolve(navigation=config.navigation + [key])
    if spec.is_exclusive:
        return config.evolve(**{spec.domain: key})
    return config.evolve(**{key: True})


def apply_disable(config: ProjectConfig, key: str) -> ProjectConfig:
    """
    Return the configuration with ``key`` disabled.

    The bare ``navigation`` key clears every navigation type. Disabling
    ``mmkv`` falls back to async-storage since a project always has a
    storage backend. Disabling an inactive feature returns an equal
    configuration.
    """
    spec = validate_feature(key)

    if key == "navigation":
        return config.evolve(navigation=[])
    if spec.is_navigation:
        return config.evolve(navigation=[t for t in config.navigation if t != key])
    if spec.is_exclusive:
        if getattr(config, spec.domain) != key:
            return config.evolve()
        reset = spec.fallback or "none"
        return config.evolve(**{spec.domain: reset})
    return config.evolve(**{key: False})


def active_features(config: ProjectConfig) -> List[str]:
    """
    Expand a configuration into its active feature keys.

    The order is deterministic: navigation and its types, the state and ui
    values, the storage backend, then enabled flags in table order.
    """
    keys: List[str] = []
    if config.has_navigation:
        keys.append("navigation")
        keys.extend(t for t in NAVIGATION_TYPES if t in config.navigation)
    if config.state != "none":
        keys.append(config.state)
    if config.ui != "none":
        keys.append(config.ui)
    keys.append(config.storage)
    keys.extend(flag for flag in FLAG_FEATURES if getattr(config, flag))
    return keys


def resolve_feature_keys(config: ProjectConfig, keys: Iterable[str]) -> List[str]:
    """
    Resolve user supplied keys into active feature keys.

    Keys may be feature keys or the field names navigation, state, ui and
    storage, which expand to their current values. Inactive features are
    skipped with a log line.

    Raises:
        UnknownFeature: If a key is neither a feature nor a field name
    """
    active = active_features(config)
    resolved: List[str] = []

    for key in keys:
        if key == "navigation":
            expanded = [k for k in active if k == "navigation" or k in NAVIGATION_TYPES]
        elif key in STRUCTURAL_FIELDS:
            value = getattr(config, key)
            expanded = [value] if value != "none" else []
        elif key in FEATURES or key == ASYNC_STORAGE.key:
            expanded = [key] if key in active else []
        else:
            raise UnknownFeature(key, VALID_FEATURES + STRUCTURAL_FIELDS)

        if not expanded:
            logger.info(f"Skipping '{key}': not active in this project")
        for item in expanded:
            if item not in resolved:
                resolved.append(item)

    return resolved


def template_sets_for(config: ProjectConfig, keys: Optional[Iterable[str]] = None) -> List[str]:
    """
    List the template sets to render for a configuration.

    Args:
        config: Project configuration
        keys: Restrict to these feature keys / field names; all active
            features (plus the core set) when omitted

    Returns:
        Ordered, de-duplicated template set names
    """
    if keys is None:
        feature_keys = active_features(config)
        sets = [DefaultSettings.CORE_TEMPLATE_SET]
    else:
        feature_keys = resolve_feature_keys(config, keys)
        sets = []

    for key in feature_keys:
        for template_set in get_feature_spec(key).template_sets:
            if template_set not in sets:
                sets.append(template_set)
    return sets


def displaced_feature(config: ProjectConfig, key: str) -> Optional[str]:
    """
    Return the exclusive value that enabling ``key`` would replace.

    For example enabling redux while zustand is active displaces zustand.
    """
    spec = validate_feature(key)
    if not spec.is_exclusive:
        return None
    current = getattr(config, spec.domain)
    if current in ("none", key):
        return None
    return current


def owned_directories(key: str) -> List[str]:
    """Directories (project relative) created for a feature."""
    return list(get_feature_spec(key).directories)


def orphaned_directories(old: ProjectConfig, new: ProjectConfig, key: str) -> List[str]:
    """
    Directories owned by ``key`` that no feature active in ``new`` still owns.

    Removing drawer while stack stays active keeps src/navigation.
    """
    if key not in active_features(old):
        return []

    still_owned = set()
    for active_key in active_features(new):
        still_owned.update(get_feature_spec(active_key).directories)
    return [d for d in owned_directories(key) if d not in still_owned]


def feature_directories(config: ProjectConfig) -> List[str]:
    """Base directories plus every directory owned by an active feature."""
    directories = list(DefaultSettings.BASE_DIRECTORIES)
    for key in active_features(config):
        for directory in get_feature_spec(key).directories:
            if directory not in directories:
                directories.append(directory)
    return directories
