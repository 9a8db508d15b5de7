"""
Nexora Config Store

This module reads and writes the per-project feature configuration file
(.nexora-cli-config.json). The presence of that file is what marks a
directory as a Nexora managed project.
"""

import json
import logging
from pathlib import Path
from pydantic import ValidationError

from ..exceptions import CorruptConfig, NotAManagedProject, ProjectIOError
from ..utils import write_json_atomic
from .project import ProjectConfig
from .settings import DefaultSettings

logger = logging.getLogger(__name__)


class ConfigStore:
    """
    Manages the project configuration file of one project directory.
    """

    def __init__(self, project_dir: Path) -> None:
        """
        Initialize a ConfigStore for a specific project directory.

        Args:
            project_dir: Path to the project root
        """
        self.project_dir = Path(project_dir)
        self.config_file = self.project_dir / DefaultSettings.CONFIG_FILE

    def exists(self) -> bool:
        """Check whether the directory is a managed project."""
        return self.config_file.is_file()

    def load(self) -> ProjectConfig:
        """
        Load the project configuration.

        Returns:
            Validated ProjectConfig

        Raises:
            NotAManagedProject: If the config file does not exist
            CorruptConfig: If the file is not valid JSON or fails validation
            ProjectIOError: If the file exists but cannot be read
        """
        if not self.exists():
            raise NotAManagedProject(self.project_dir)

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CorruptConfig(self.config_file, f"not valid JSON ({e})") from e
        except OSError as e:
            raise ProjectIOError(self.config_file, "read", e) from e

        if not isinstance(data, dict):
            raise CorruptConfig(self.config_file, "expected a JSON object")

        try:
            config = ProjectConfig.model_validate(data)
        except ValidationError as e:
            raise CorruptConfig(self.config_file, str(e)) from e

        logger.debug(f"Loaded project config from {self.config_file}")
        return config

    def save(self, config: ProjectConfig) -> None:
        """
        Persist the whole configuration record.

        Args:
            config: Configuration to write

        Raises:
            ProjectIOError: If the file cannot be written
        """
        write_json_atomic(config.to_file_dict(), self.config_file)
        logger.debug(f"Saved project config to {self.config_file}")


def load_project_config(project_dir: Path) -> ProjectConfig:
    """Load the configuration of the project at ``project_dir``."""
    return ConfigStore(project_dir).load()


def save_project_config(project_dir: Path, config: ProjectConfig) -> None:
    """Save ``config`` as the configuration of the project at ``project_dir``."""
    ConfigStore(project_dir).save(config)


def is_managed_project(project_dir: Path) -> bool:
    """Check whether ``project_dir`` holds a Nexora config file."""
    return ConfigStore(project_dir).exists()
