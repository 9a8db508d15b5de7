"""
Nexora Utilities Module

This module contains shared utility functions used throughout the Nexora CLI:
timestamps, project discovery, JSON file helpers and name conversions.
"""

import json
import logging
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ProjectIOError
from .models.settings import DefaultSettings

# Set up module logger
logger = logging.getLogger(__name__)


# ====================================================================
# Timestamp Utilities
# ====================================================================

def get_timestamp() -> str:
    """
    Get current ISO-formatted timestamp string.

    Returns:
        ISO-formatted timestamp string
    """
    return datetime.now().isoformat()


def get_backup_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Get a timestamp usable as a directory name.

    The ISO timestamp has ':' and '.' replaced with '-', so
    2024-05-01T10:20:30.123456 becomes 2024-05-01T10-20-30-123456.

    Args:
        moment: Datetime to format (defaults to now)

    Returns:
        File-system safe timestamp string
    """
    moment = moment or datetime.now()
    return re.sub(r"[:.]", "-", moment.isoformat())


# ====================================================================
# Project Directory Utilities
# ====================================================================

def find_project_directory(start_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find the project directory by looking for the Nexora config file.

    Args:
        start_path: Starting directory to search from (defaults to current directory)

    Returns:
        Path to project directory if found, None otherwise
    """
    current_dir = Path(start_path or Path.cwd()).resolve()

    # Check current directory and parent directories
    for path in [current_dir] + list(current_dir.parents):
        if (path / DefaultSettings.CONFIG_FILE).exists():
            return path

    return None


def resolve_project_root(path: Optional[Path] = None) -> Path:
    """
    Resolve the root of the project a command should act on.

    Walks up from ``path`` to the nearest managed project; when none is found
    the starting directory is returned unchanged so the caller reports it as
    unmanaged.

    Args:
        path: Directory given on the command line (defaults to current directory)

    Returns:
        Project root path
    """
    start = Path(path or Path.cwd()).resolve()
    return find_project_directory(start) or start


# ====================================================================
# File Loading Utilities
# ====================================================================

def safe_load_json(file_path: Path) -> Optional[Dict[str, Any]]:
    """
    Safely load a JSON file with error handling.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data or None if loading fails
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.error(f"Failed to load JSON from {file_path}: {e}")
        return None


def write_json_atomic(data: Any, file_path: Path, indent: int = 2) -> None:
    """
    Write JSON to a temp file beside ``file_path`` and move it into place.

    Args:
        data: JSON-serializable data
        file_path: Destination path
        indent: JSON indentation level

    Raises:
        ProjectIOError: If the file cannot be written
    """
    file_path = Path(file_path)
    tmp_name = None
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{file_path.name}.", suffix=".tmp", dir=file_path.parent
        )
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_name, file_path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ProjectIOError(file_path, "write", e) from e


def read_text(file_path: Path) -> str:
    """Read a UTF-8 text file, wrapping OS errors in ProjectIOError."""
    try:
        return Path(file_path).read_text(encoding='utf-8')
    except OSError as e:
        raise ProjectIOError(file_path, "read", e) from e


def write_text(file_path: Path, content: str) -> None:
    """Write a UTF-8 text file, creating parent directories as needed."""
    file_path = Path(file_path)
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding='utf-8')
    except OSError as e:
        raise ProjectIOError(file_path, "write", e) from e


# ====================================================================
# String Manipulation Utilities
# ====================================================================

def to_kebab_case(name: str) -> str:
    """
    Convert an app name to a package.json friendly kebab-case name.

    Args:
        name: App name such as "MyCoolApp" or "My Cool App"

    Returns:
        Kebab-case string such as "my-cool-app"
    """
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", name.strip())
    spaced = re.sub(r"[^A-Za-z0-9]+", "-", spaced)
    return spaced.strip("-").lower()
