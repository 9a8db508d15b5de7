"""
Nexora Centralized Settings

This module contains all centralized configuration constants and default values
used throughout the Nexora CLI.
"""

from typing import Dict, List, Tuple


class DefaultSettings:
    """
    Centralized default settings for Nexora.

    Single source of truth for file names, directory layout and the
    constants shared by the composer, the reconciler and the CLI.
    """

    # YAML Configuration
    YAML_LINE_WIDTH = 120
    YAML_PRESERVE_QUOTES = True

    # File Names
    CONFIG_FILE = ".nexora-cli-config.json"
    LOCK_FILE = ".nexora.lock"
    PACKAGE_JSON = "package.json"
    APP_JSON = "app.json"
    SETTINGS_FILE = "config.yaml"

    # Directory Names
    BACKUPS_DIR = ".nexora-backups"
    BACKUP_PREFIX = "backup-"

    # Directories every generated project gets
    BASE_DIRECTORIES: Tuple[str, ...] = (
        "src/assets",
        "src/components",
        "src/config",
        "src/hooks",
        "src/utils",
        "src/screens",
    )

    # Never copied into a backup snapshot
    BACKUP_EXCLUDES: Tuple[str, ...] = (
        "node_modules",
        ".git",
        "android/build",
        "android/app/build",
        "ios/build",
        "ios/Pods",
        BACKUPS_DIR,
        LOCK_FILE,
    )

    # Language folders inside the template tree
    LANGUAGE_FOLDERS: Dict[str, str] = {
        "JavaScript": "javascript",
        "TypeScript": "typescript",
    }

    # Template handling
    NAME_PLACEHOLDER = "__NAME__"
    JSX_PLACEHOLDER_PREFIX = "__NEXORA_JSX_"
    REGION_TAG_PREFIX = "@nexora:"
    CORE_TEMPLATE_SET = "core"

    # Framework marker checked in package.json
    FRAMEWORK_PACKAGE = "react-native"
    REACT_NATIVE_VERSION = "0.74.1"
    REACT_VERSION = "18.2.0"

    # React Native community CLI used by `create --init`
    RN_INIT_COMMAND: List[str] = ["npx", "@react-native-community/cli", "init"]
    RN_TYPESCRIPT_TEMPLATE = "react-native-template-typescript"

    # Package manager detection (lock file -> manager)
    LOCKFILE_MANAGERS: Tuple[Tuple[str, str], ...] = (
        ("bun.lockb", "bun"),
        ("bun.lock", "bun"),
        ("pnpm-lock.yaml", "pnpm"),
        ("yarn.lock", "yarn"),
    )
    DEFAULT_PACKAGE_MANAGER = "npm"

    # Localization
    AVAILABLE_LANGUAGES: Tuple[str, ...] = ("en", "es", "fr", "de", "ja")
    THEME_CHOICES: Tuple[str, ...] = ("light", "dark", "system")

    # Logging Configuration
    DEFAULT_LOG_LEVEL = "WARNING"

    # Version reported when a config predates version tracking
    UNKNOWN_VERSION = "0.0.0"
