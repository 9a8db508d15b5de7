"""
Nexora Data Models

This package contains the Pydantic models, the feature table and the engine
that reconciles a project's files and dependencies with its feature config.

Only leaf modules are re-exported here; import the engine modules
(config_store, project_generator, updater, feature_manager) directly.
"""

from .config import NexoraSettings, get_config_path, get_config_dir
from .config_manager import ConfigManager
from .features import FEATURES, VALID_FEATURES, FeatureSpec, ProviderSpec, validate_feature
from .project import ProjectConfig, normalize_navigation
from .settings import DefaultSettings

__all__ = [
    # Configuration
    "NexoraSettings",
    "ConfigManager",
    "get_config_path",
    "get_config_dir",

    # Settings
    "DefaultSettings",

    # Feature table
    "FEATURES",
    "VALID_FEATURES",
    "FeatureSpec",
    "ProviderSpec",
    "validate_feature",

    # Project models
    "ProjectConfig",
    "normalize_navigation",
]
