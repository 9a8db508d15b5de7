"""
Nexora: React Native project generator with incremental feature management.

Nexora scaffolds React Native apps and keeps adding, removing and updating
features (navigation, state management, theming, localization, Firebase and
more) in a generated project, tracked in a per-project config file.
"""

__version__ = "1.2.0"

from .cli.main import main
from .utils import (
    get_timestamp,
    get_backup_timestamp,
    find_project_directory,
    resolve_project_root,
    safe_load_json,
    write_json_atomic,
    to_kebab_case,
)

__all__ = [
    "main",
    "__version__",
    # Utils functions
    "get_timestamp",
    "get_backup_timestamp",
    "find_project_directory",
    "resolve_project_root",
    "safe_load_json",
    "write_json_atomic",
    "to_kebab_case",
]
