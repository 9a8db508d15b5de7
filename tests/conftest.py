"""
Pytest configuration and shared fixtures for Nexora tests.
"""

import subprocess
from pathlib import Path
from typing import Callable, Dict, List

import pytest

from nexora.models.dependencies import PackageInstaller
from nexora.models.project import ProjectConfig
from nexora.models.project_generator import ProjectComposer
from nexora.models.renderer import TemplateRegistry


TEST_TEMPLATES = {
    ("core", "TypeScript"): {
        "README.md": "# {{ projectName }}\n",
        "src/config/index.ts": "export const appName = '{{ projectName }}';\n",
    },
    ("navigation", "TypeScript"): {
        "src/navigation/index.tsx": (
            "{% if contains(navigationTypes, 'drawer') %}drawer"
            "{% elif contains(navigationTypes, 'tabs') %}tabs"
            "{% else %}stack{% endif %}\n"
        ),
        "src/screens/HomeScreen.tsx": "<Text>Welcome to {{ projectName }}</Text>\n",
    },
    ("stack", "TypeScript"): {
        "src/navigation/StackNavigator.tsx": "<Stack.Navigator screenOptions={{ headerShown: true }} />\n",
    },
    ("tabs", "TypeScript"): {
        "src/navigation/TabNavigator.tsx": "<Tab.Navigator />\n",
    },
    ("drawer", "TypeScript"): {
        "src/navigation/DrawerNavigator.tsx": "<Drawer.Navigator />\n",
    },
    ("redux", "TypeScript"): {
        "src/store/index.ts": "export const store = 'redux';\n",
        "src/store/slices/appSlice.ts": "export const slice = 'app';\n",
    },
    ("zustand", "TypeScript"): {
        "src/store/index.ts": "export const store = 'zustand';\n",
        "src/store/appStore.ts": "export const appStore = 'zustand';\n",
    },
    ("theme", "TypeScript"): {
        "src/config/theme/index.tsx": "export const DEFAULT_THEME = '{{ defaultTheme }}';\n",
    },
    ("localization", "TypeScript"): {
        "src/localization/index.tsx": "export const DEFAULT_LANGUAGE = '{{ defaultLanguage }}';\n",
    },
    ("async-storage", "TypeScript"): {
        "src/utils/storage.ts": "export const backend = 'async-storage';\n",
    },
    ("mmkv", "TypeScript"): {
        "src/utils/storage.ts": "export const backend = 'mmkv';\n",
    },
    ("firebase", "TypeScript"): {
        "src/services/firebase/index.ts": "export const firebase = true;\n",
    },
}


class RecordingRunner:
    """Stand-in for subprocess.run that records every command."""

    def __init__(self, returncode: int = 0, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.commands: List[List[str]] = []

    def __call__(self, command, cwd=None, capture_output=False, text=False):
        self.commands.append(list(command))
        return subprocess.CompletedProcess(command, self.returncode, stdout="", stderr=self.stderr)

    def packages(self, verb: str) -> List[str]:
        """Package names passed to every `npm <verb>` call, in order."""
        names: List[str] = []
        for command in self.commands:
            if command[1] == verb:
                names.extend(arg for arg in command[2:] if not arg.startswith("--"))
        return names


def snapshot_tree(root: Path) -> Dict[str, bytes]:
    """Map every file under ``root`` to its bytes."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch) -> Path:
    """Point the user settings directory at a temporary location."""
    config_home = tmp_path / "user-config"
    monkeypatch.setattr(
        "nexora.models.config.user_config_dir",
        lambda app_name: str(config_home / app_name),
    )
    return config_home


@pytest.fixture
def template_registry() -> TemplateRegistry:
    """Small in-memory template registry covering the common feature sets."""
    return TemplateRegistry.from_mapping(TEST_TEMPLATES)


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def installer(runner: RecordingRunner) -> PackageInstaller:
    """npm installer whose subprocess calls are recorded instead of run."""
    return PackageInstaller(package_manager="npm", legacy_peer_deps=True, runner=runner)


@pytest.fixture
def create_project(tmp_path: Path, template_registry: TemplateRegistry) -> Callable[..., Path]:
    """
    Factory composing a project at version 1.0.0 without installing anything.

    Usage:
        root = create_project("Foo", navigation=["stack"], state="redux")
    """
    def _create(name: str = "Foo", **fields) -> Path:
        composer = ProjectComposer(
            registry=template_registry,
            installer=PackageInstaller(runner=RecordingRunner()),
            tool_version="1.0.0",
        )
        root = tmp_path / name
        composer.compose(root, ProjectConfig(name=name, **fields), install=False)
        return root

    return _create
