"""
Nexora Configuration Models

This module contains the Pydantic model for the tool-wide user settings of the
Nexora CLI (package manager choice, backups, template overlay, logging).
"""

import logging
from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from platformdirs import user_config_dir

from .settings import DefaultSettings


class NexoraSettings(BaseModel):
    """
    User preferences for the Nexora CLI.

    These apply to every project the tool touches; per-project feature state
    lives in the project's own config file.
    """

    # Dependency installation
    package_manager: Literal["auto", "npm", "yarn", "pnpm", "bun"] = Field(
        default="auto",
        description="Package manager to use; 'auto' detects it from lock files"
    )
    legacy_peer_deps: bool = Field(
        default=True,
        description="Pass --legacy-peer-deps to npm"
    )

    # Project defaults
    default_language: Literal["JavaScript", "TypeScript"] = Field(
        default="TypeScript",
        description="Language preselected by `nexora-rn create`"
    )

    # File management
    create_backups: bool = Field(default=True, description="Back up the project before `update`")
    templates_dir: Optional[Path] = Field(
        default=None,
        description="Directory of templates overlaid on the built-in ones"
    )

    # Logging
    log_level: str = Field(default=DefaultSettings.DEFAULT_LOG_LEVEL)

    model_config = ConfigDict(
        validate_assignment=True,
        arbitrary_types_allowed=True
    )

    @field_validator('templates_dir')
    @classmethod
    def validate_templates_dir(cls, v: Optional[Path]) -> Optional[Path]:
        """Validate that the template overlay directory exists."""
        if v is not None and not Path(v).is_dir():
            raise ValueError(f"Templates directory does not exist: {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the level is one the logging module knows."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


def get_config_dir() -> Path:
    """
    Get the Nexora configuration directory following XDG standards.

    Returns:
        Path to the configuration directory
    """
    return Path(user_config_dir("nexora"))


def get_config_path() -> Path:
    """
    Get the path to the Nexora configuration file.

    Returns:
        Path to the configuration file
    """
    return get_config_dir() / DefaultSettings.SETTINGS_FILE
