"""
Nexora Project Models

This module defines the persisted feature configuration of a generated
React Native project.
"""

from typing import Any, Iterable, List, Literal
from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .features import NAVIGATION_TYPES
from .settings import DefaultSettings


NavigationType = Literal["stack", "tabs", "drawer"]


def normalize_navigation(value: Any) -> List[str]:
    """
    Normalize every stored shape of the navigation field into an ordered list.

    Older configs store a single string ("stack"), a comma separated string
    ("stack,tabs"), "none", or a list that may mix those forms. The result
    holds each navigation type at most once, in first-seen order.

    Args:
        value: Raw navigation value from a config file or CLI option

    Returns:
        Ordered list of navigation types

    Raises:
        ValueError: If an unknown navigation type is present
    """
    if value is None or value is False:
        return []

    if isinstance(value, str):
        raw_items: Iterable[Any] = [value]
    elif isinstance(value, (set, frozenset)):
        raw_items = sorted(value, key=lambda item: NAVIGATION_TYPES.index(item)
                           if item in NAVIGATION_TYPES else len(NAVIGATION_TYPES))
    elif isinstance(value, (list, tuple)):
        raw_items = value
    else:
        raise ValueError(f"Unsupported navigation value: {value!r}")

    result: List[str] = []
    for item in raw_items:
        if item is None:
            continue
        for part in str(item).split(","):
            nav_type = part.strip().lower()
            if not nav_type or nav_type == "none":
                continue
            if nav_type not in NAVIGATION_TYPES:
                raise ValueError(
                    f"Unknown navigation type '{nav_type}'. "
                    f"Expected one of: {', '.join(NAVIGATION_TYPES)}"
                )
            if nav_type not in result:
                result.append(nav_type)
    return result


class ProjectConfig(BaseModel):
    """
    Feature state of a generated project.

    Persisted with camelCase keys so configs written by earlier releases of
    the CLI load unchanged. Unknown keys are kept and written back.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="allow",
    )

    name: str = Field(min_length=1, description="Display / app name")
    language: Literal["JavaScript", "TypeScript"] = Field(default="TypeScript")
    navigation: List[NavigationType] = Field(
        default_factory=list,
        description="Active navigation types, empty when the app has no navigation"
    )
    state: Literal["redux", "zustand", "none"] = Field(default="none")
    ui: Literal["styled-components", "tailwind", "none"] = Field(default="none")
    storage: Literal["async-storage", "mmkv"] = Field(default="async-storage")

    theme: bool = False
    localization: bool = False
    firebase: bool = False
    api: bool = False
    auth: bool = False
    fonts: bool = False

    sample_screens: bool = Field(default=False, alias="sampleScreens")
    default_theme: Literal["light", "dark", "system"] = Field(default="light", alias="defaultTheme")
    default_language: str = Field(default="en", alias="defaultLanguage")
    cli_version: str = Field(default=DefaultSettings.UNKNOWN_VERSION, alias="cliVersion")

    @field_validator("navigation", mode="before")
    @classmethod
    def validate_navigation(cls, v: Any) -> List[str]:
        """Collapse the scalar / list duality of the navigation field."""
        return normalize_navigation(v)

    @field_validator("language", mode="before")
    @classmethod
    def validate_language(cls, v: Any) -> Any:
        """Accept case-insensitive language names and the short forms js / ts."""
        if isinstance(v, str):
            lookup = {
                "javascript": "JavaScript",
                "js": "JavaScript",
                "typescript": "TypeScript",
                "ts": "TypeScript",
            }
            return lookup.get(v.strip().lower(), v)
        return v

    @field_validator("state", "ui", mode="before")
    @classmethod
    def validate_none_sentinel(cls, v: Any) -> Any:
        if v is None or v is False or v == "":
            return "none"
        return v

    @field_validator("storage", mode="before")
    @classmethod
    def validate_storage(cls, v: Any) -> Any:
        if v is None or v == "" or v == "none":
            return "async-storage"
        return v

    @field_validator("cli_version", mode="before")
    @classmethod
    def validate_cli_version(cls, v: Any) -> str:
        """Validate that the stored version is a semantic version."""
        if v is None or v == "":
            return DefaultSettings.UNKNOWN_VERSION
        try:
            Version(str(v))
        except InvalidVersion as e:
            raise ValueError(f"Invalid cliVersion '{v}'") from e
        return str(v)

    @property
    def has_navigation(self) -> bool:
        return len(self.navigation) > 0

    @property
    def is_typescript(self) -> bool:
        return self.language == "TypeScript"

    @property
    def language_folder(self) -> str:
        return DefaultSettings.LANGUAGE_FOLDERS[self.language]

    @property
    def version(self) -> Version:
        return Version(self.cli_version)

    def evolve(self, **changes: Any) -> "ProjectConfig":
        """
        Return a validated copy with the given fields replaced.

        Args:
            **changes: Field names (snake_case) and their new values

        Returns:
            New ProjectConfig; this instance is left untouched
        """
        data = self.model_dump()
        data.update(changes)
        return ProjectConfig.model_validate(data)

    def to_file_dict(self) -> dict:
        """Serialize with the on-disk camelCase keys."""
        return self.model_dump(by_alias=True)
