"""
Nexora Configuration Manager

This module handles reading and writing the Nexora user settings file.
"""

import logging
from pathlib import Path
from typing import Optional
from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import NexoraSettings, get_config_path
from .settings import DefaultSettings

# Set up module logger
logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Manages Nexora settings file operations.

    Handles reading, writing, and validating the settings file in YAML format.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else get_config_path()
        self.yaml = YAML()
        self.yaml.preserve_quotes = DefaultSettings.YAML_PRESERVE_QUOTES
        self.yaml.width = DefaultSettings.YAML_LINE_WIDTH

    def load_config(self) -> NexoraSettings:
        """
        Load settings from the config file.

        Returns:
            NexoraSettings from the file, or defaults when the file is
            missing or invalid
        """
        if not self.config_path.exists():
            return NexoraSettings()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = self.yaml.load(f)

            if config_data and config_data.get('templates_dir'):
                config_data['templates_dir'] = Path(config_data['templates_dir'])

            return NexoraSettings(**dict(config_data)) if config_data else NexoraSettings()

        except (OSError, YAMLError, ValidationError, TypeError) as e:
            logger.warning(f"Ignoring invalid settings in {self.config_path}: {e}")
            return NexoraSettings()

    def save_config(self, config: NexoraSettings) -> bool:
        """
        Save settings to the config file.

        Args:
            config: NexoraSettings object to save

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

            # Path objects are not YAML serializable
            config_dict = config.model_dump()
            if config.templates_dir is not None:
                config_dict['templates_dir'] = str(config.templates_dir)
            else:
                config_dict.pop('templates_dir')

            with open(self.config_path, 'w', encoding='utf-8') as f:
                self.yaml.dump(config_dict, f)

            logger.info(f"Configuration saved to: {self.config_path}")
            return True

        except (OSError, YAMLError) as e:
            logger.error(f"Error saving config to {self.config_path}: {e}", exc_info=True)
            return False

    def config_exists(self) -> bool:
        """
        Check if a settings file already exists.

        Returns:
            True if config file exists, False otherwise
        """
        return self.config_path.exists()
