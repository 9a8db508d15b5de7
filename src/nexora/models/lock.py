"""
Nexora Project Lock

A lock file in the project root keeps two mutating commands from running
against the same project at once.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..exceptions import ProjectIOError, ProjectLocked
from ..utils import get_timestamp
from .settings import DefaultSettings

logger = logging.getLogger(__name__)


class ProjectLock:
    """
    Exclusive, non-blocking lock on a project directory.

    Usage:
        with ProjectLock(project_dir):
            ...
    """

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = Path(project_dir)
        self.lock_path = self.project_dir / DefaultSettings.LOCK_FILE
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """
        Create the lock file.

        Raises:
            ProjectLocked: If the lock file already exists
            ProjectIOError: If the lock file cannot be created
        """
        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError as e:
            raise ProjectLocked(self.lock_path, self._read_holder()) from e
        except OSError as e:
            raise ProjectIOError(self.lock_path, "create lock", e) from e

        with os.fdopen(fd, "w") as f:
            f.write(f"{os.getpid()} {get_timestamp()}\n")
        self._held = True
        logger.debug(f"Acquired project lock {self.lock_path}")

    def release(self) -> None:
        """Remove the lock file if this instance holds it."""
        if not self._held:
            return
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            logger.warning(f"Lock file {self.lock_path} vanished before release")
        self._held = False
        logger.debug(f"Released project lock {self.lock_path}")

    def _read_holder(self) -> str:
        try:
            return self.lock_path.read_text().strip()
        except OSError:
            return ""

    def __enter__(self) -> "ProjectLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self.release()
        return None
