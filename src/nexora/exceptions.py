"""Custom exceptions for the Nexora CLI."""

from pathlib import Path
from typing import Iterable, Optional


class NexoraError(Exception):
    """Base exception for all Nexora errors."""


class NotAManagedProject(NexoraError):
    """Raised when a directory is not a project generated by Nexora."""

    def __init__(self, path: Path, reason: str = "missing .nexora-cli-config.json"):
        self.path = Path(path)
        self.reason = reason
        super().__init__(
            f"{self.path} is not a Nexora React Native project ({reason}). "
            f"Run this command from a project created with 'nexora-rn create'."
        )


class UnknownFeature(NexoraError):
    """Raised when a feature key is outside the supported vocabulary."""

    def __init__(self, feature: str, valid_features: Iterable[str]):
        self.feature = feature
        self.valid_features = list(valid_features)
        super().__init__(
            f"'{feature}' is not a valid feature. "
            f"Valid features are: {', '.join(self.valid_features)}"
        )


class CorruptConfig(NexoraError):
    """Raised when the project config file exists but cannot be parsed."""

    def __init__(self, path: Path, detail: str):
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"Invalid project configuration in {self.path}: {detail}")


class ProjectIOError(NexoraError):
    """Raised when a file system operation on the project fails."""

    def __init__(self, path: Path, operation: str, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.operation = operation
        self.cause = cause
        message = f"Failed to {operation} {self.path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class TemplateSyntaxError(NexoraError):
    """Raised when a template cannot be parsed."""

    def __init__(self, template: str, detail: str, line: Optional[int] = None):
        self.template = template
        self.detail = detail
        self.line = line
        location = f"{template}:{line}" if line is not None else template
        super().__init__(f"Template syntax error in {location}: {detail}")


class TemplateRenderError(NexoraError):
    """Raised when a syntactically valid template fails while rendering."""


class DependencyInstallError(NexoraError):
    """Raised when the package manager exits with an error."""

    def __init__(self, command: Iterable[str], returncode: int, output: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        super().__init__(
            f"Command '{' '.join(self.command)}' failed with exit code {returncode}"
            + (f": {output.strip()}" if output.strip() else "")
        )


class BackupError(NexoraError):
    """Raised when a project backup cannot be created or restored."""


class ProjectLocked(NexoraError):
    """Raised when another Nexora command holds the project lock."""

    def __init__(self, lock_path: Path, holder: str = ""):
        self.lock_path = Path(lock_path)
        self.holder = holder
        detail = f" (held by {holder})" if holder else ""
        super().__init__(
            f"Project is locked by another Nexora command{detail}. "
            f"Remove {self.lock_path} if no other command is running."
        )


class InvalidOption(NexoraError):
    """Raised when a configuration option has an unsupported value."""

    def __init__(self, option: str, value: str, choices: Iterable[str]):
        self.option = option
        self.value = value
        self.choices = list(choices)
        super().__init__(
            f"Invalid value '{value}' for {option}. "
            f"Choose from: {', '.join(self.choices)}"
        )
