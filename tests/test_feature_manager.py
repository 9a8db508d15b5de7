"""
Tests for adding, removing and reconfiguring features in a project.
"""

import json
from unittest.mock import patch

import pytest

from nexora.exceptions import InvalidOption, NotAManagedProject, ProjectLocked, UnknownFeature
from nexora.models.config_store import ConfigStore, load_project_config
from nexora.models.entrypoint import build_entry_point
from nexora.models.feature_manager import FeatureManager
from nexora.models.lock import ProjectLock
from nexora.models.settings import DefaultSettings

from conftest import snapshot_tree


@pytest.fixture
def manager_for(template_registry, installer):
    """Factory building a FeatureManager with the test registry and installer."""
    def _manager(root):
        return FeatureManager(root, registry=template_registry, installer=installer)

    return _manager


class TestAddFeature:
    """Test FeatureManager.add_feature."""

    def test_add_drawer_to_stack(self, create_project, manager_for, runner):
        root = create_project("Foo", navigation=["stack"])
        entry_before = (root / "App.tsx").read_text()

        change = manager_for(root).add_feature("drawer")

        assert change.changed
        assert change.message == "Feature 'drawer' added successfully."
        assert load_project_config(root).navigation == ["stack", "drawer"]
        assert (root / "src/navigation/DrawerNavigator.tsx").exists()
        assert (root / "src/navigation/index.tsx").read_text() == "drawer\n"
        assert (root / "App.tsx").read_text() == entry_before
        assert "App.tsx" not in change.files_written
        assert runner.commands == [[
            "npm", "install",
            "@react-navigation/drawer", "react-native-gesture-handler", "react-native-reanimated",
            "--legacy-peer-deps",
        ]]

    def test_add_redux_replaces_zustand(self, create_project, manager_for, runner):
        root = create_project("Foo", state="zustand")

        change = manager_for(root).add_feature("redux")

        assert change.displaced == "zustand"
        assert load_project_config(root).state == "redux"
        assert (root / "src/store/index.ts").read_text() == "export const store = 'redux';\n"
        assert (root / "src/store/slices/appSlice.ts").exists()
        assert not (root / "src/store/appStore.ts").exists()
        assert change.files_removed == ["src/store/appStore.ts"]
        assert "<Provider store={store}>" in (root / "App.tsx").read_text()
        assert runner.packages("install") == ["@reduxjs/toolkit", "react-redux"]
        assert runner.packages("uninstall") == ["zustand"]

    def test_add_installed_feature(self, create_project, manager_for, runner):
        root = create_project("Foo", theme=True)
        before = snapshot_tree(root)

        change = manager_for(root).add_feature("theme")

        assert not change.changed
        assert change.message == "Feature 'theme' is already installed in this project."
        assert snapshot_tree(root) == before
        assert runner.commands == []

    def test_reinstall(self, create_project, manager_for, runner):
        root = create_project("Foo", state="redux")
        (root / "src/store/index.ts").write_text("edited\n")

        change = manager_for(root).add_feature("redux", reinstall=True)

        assert change.changed
        assert (root / "src/store/index.ts").read_text() == "export const store = 'redux';\n"
        assert runner.packages("install") == ["@reduxjs/toolkit", "react-redux"]

    def test_add_flag_creates_directory(self, create_project, manager_for):
        root = create_project("Foo")
        change = manager_for(root).add_feature("firebase")
        assert change.directories_created == ["src/services/firebase"]
        assert (root / "src/services/firebase/index.ts").exists()
        assert load_project_config(root).firebase is True

    def test_add_feature_without_provider_keeps_entry_point(self, create_project, manager_for):
        root = create_project("Foo", navigation=["stack"])
        entry = root / "App.tsx"
        entry.write_text(entry.read_text() + "// custom analytics\n")
        before = entry.read_text()

        change = manager_for(root).add_feature("api")

        assert entry.read_text() == before
        assert "App.tsx" not in change.files_written

    def test_add_provider_keeps_user_edits(self, create_project, manager_for):
        root = create_project("Foo", navigation=["stack"])
        entry = root / "App.tsx"
        entry.write_text(entry.read_text() + "// custom analytics\n")

        change = manager_for(root).add_feature("theme")

        expected = build_entry_point(load_project_config(root)) + "// custom analytics\n"
        assert entry.read_text() == expected
        assert "App.tsx" in change.files_written

    def test_add_provider_to_untagged_entry_point(self, create_project, manager_for):
        root = create_project("Foo", navigation=["stack"])
        entry = root / "App.tsx"
        entry.write_text("import React from 'react';\nexport default () => null;\n")

        change = manager_for(root).add_feature("redux")

        assert entry.read_text() == "import React from 'react';\nexport default () => null;\n"
        assert "App.tsx" not in change.files_written
        assert load_project_config(root).state == "redux"

    def test_config_is_read_under_lock(self, create_project, manager_for):
        root = create_project("Foo", navigation=["stack"])
        acquire = ProjectLock.acquire

        def acquire_after_other_command(lock):
            # Another command adds drawer just before this one gets the lock
            store = ConfigStore(root)
            store.save(store.load().evolve(navigation=["stack", "drawer"]))
            acquire(lock)

        with patch.object(ProjectLock, "acquire", acquire_after_other_command):
            manager_for(root).add_feature("tabs")

        assert load_project_config(root).navigation == ["stack", "drawer", "tabs"]

    def test_unknown_feature(self, create_project, manager_for):
        root = create_project("Foo")
        with pytest.raises(UnknownFeature):
            manager_for(root).add_feature("graphql")

    def test_unmanaged_directory(self, tmp_path, manager_for):
        with pytest.raises(NotAManagedProject):
            manager_for(tmp_path).add_feature("theme")

    def test_locked_project(self, create_project, manager_for):
        root = create_project("Foo")
        (root / DefaultSettings.LOCK_FILE).write_text("4242 earlier\n")
        with pytest.raises(ProjectLocked) as exc_info:
            manager_for(root).add_feature("theme")
        assert exc_info.value.holder == "4242 earlier"
        assert load_project_config(root).theme is False


class TestRemoveFeature:
    """Test FeatureManager.remove_feature."""

    def test_remove_redux(self, create_project, manager_for, runner):
        root = create_project("Foo", navigation=["stack"], state="redux", theme=True)

        change = manager_for(root).remove_feature("redux")

        assert change.message == "Feature 'redux' removed successfully."
        assert change.directories_removed == ["src/store"]
        assert not (root / "src/store").exists()
        entry = (root / "App.tsx").read_text()
        assert "Provider store" not in entry
        assert "react-redux" not in entry
        assert "<ThemeProvider>" in entry
        assert load_project_config(root).state == "none"
        assert runner.packages("uninstall") == ["@reduxjs/toolkit", "react-redux"]

    def test_remove_missing_feature(self, create_project, manager_for, runner):
        root = create_project("Foo")
        before = snapshot_tree(root)

        change = manager_for(root).remove_feature("firebase")

        assert not change.changed
        assert change.message == "Feature 'firebase' is not installed in this project."
        assert snapshot_tree(root) == before
        assert runner.commands == []

    def test_remove_one_navigation_type(self, create_project, manager_for, runner):
        root = create_project("Foo", navigation=["stack", "tabs"])

        change = manager_for(root).remove_feature("tabs")

        assert (root / "src/navigation").is_dir()
        assert not (root / "src/navigation/TabNavigator.tsx").exists()
        assert (root / "src/navigation/StackNavigator.tsx").exists()
        assert (root / "src/navigation/index.tsx").read_text() == "stack\n"
        assert "src/navigation/TabNavigator.tsx" in change.files_removed
        assert "<AppNavigator />" in (root / "App.tsx").read_text()
        assert runner.packages("uninstall") == ["@react-navigation/bottom-tabs"]

    def test_remove_last_navigation_type(self, create_project, manager_for, runner):
        root = create_project("Foo", navigation=["stack"])

        manager_for(root).remove_feature("stack")

        assert not (root / "src/navigation").exists()
        assert not (root / "src/screens/HomeScreen.tsx").exists()
        entry = (root / "App.tsx").read_text()
        assert "Welcome to Foo!" in entry
        assert "NavigationContainer" not in entry
        assert "@react-navigation/native" in runner.packages("uninstall")

    def test_remove_mmkv_falls_back_to_async_storage(self, create_project, manager_for, runner):
        root = create_project("Foo", storage="mmkv")
        assert (root / "src/utils/storage.ts").read_text() == "export const backend = 'mmkv';\n"

        manager_for(root).remove_feature("mmkv")

        assert load_project_config(root).storage == "async-storage"
        assert (root / "src/utils/storage.ts").read_text() == "export const backend = 'async-storage';\n"
        assert runner.packages("uninstall") == ["react-native-mmkv"]
        assert runner.packages("install") == ["@react-native-async-storage/async-storage"]

    def test_lock_released_after_remove(self, create_project, manager_for):
        root = create_project("Foo", theme=True)
        manager_for(root).remove_feature("theme")
        assert not (root / DefaultSettings.LOCK_FILE).exists()


class TestRenameApp:
    """Test FeatureManager.rename_app."""

    def test_rename(self, create_project, manager_for):
        root = create_project("Foo")

        result = manager_for(root).rename_app("Bar App")

        assert result.old_name == "Foo"
        app = json.loads((root / DefaultSettings.APP_JSON).read_text())
        assert app == {"name": "Bar App", "displayName": "Bar App"}
        package = json.loads((root / DefaultSettings.PACKAGE_JSON).read_text())
        assert package["name"] == "bar-app"
        assert (root / "src/config/index.ts").read_text() == "export const appName = 'Bar App';\n"
        assert "src/config/index.ts" in result.files_updated
        assert load_project_config(root).name == "Bar App"

    def test_empty_name(self, create_project, manager_for):
        root = create_project("Foo")
        with pytest.raises(InvalidOption):
            manager_for(root).rename_app("   ")


class TestConfigure:
    """Test FeatureManager.configure."""

    def test_default_theme(self, create_project, manager_for):
        root = create_project("Foo", theme=True)

        result = manager_for(root).configure(theme="dark", language="fr")

        assert result.changes == ["Default theme set to dark"]
        assert result.skipped == ["language: enable the localization feature first"]
        assert result.files_written == ["src/config/theme/index.tsx"]
        assert (root / "src/config/theme/index.tsx").read_text() == "export const DEFAULT_THEME = 'dark';\n"
        assert load_project_config(root).default_theme == "dark"

    def test_default_language(self, create_project, manager_for):
        root = create_project("Foo", localization=True)
        manager_for(root).configure(language="ja")
        assert "'ja'" in (root / "src/localization/index.tsx").read_text()

    def test_state_change(self, create_project, manager_for):
        root = create_project("Foo", state="zustand")
        result = manager_for(root).configure(state="redux")
        assert result.changes == ["Feature 'redux' added successfully."]
        assert result.config.state == "redux"

    def test_state_none(self, create_project, manager_for):
        root = create_project("Foo", state="redux")
        result = manager_for(root).configure(state="none")
        assert result.config.state == "none"
        assert not (root / "src/store").exists()

    def test_navigation_replaced(self, create_project, manager_for):
        root = create_project("Foo", navigation=["stack"])

        result = manager_for(root).configure(navigation="tabs")

        assert result.config.navigation == ["tabs"]
        assert load_project_config(root).navigation == ["tabs"]
        assert (root / "src/navigation/TabNavigator.tsx").exists()
        assert not (root / "src/navigation/StackNavigator.tsx").exists()

    def test_same_value_is_noop(self, create_project, manager_for):
        root = create_project("Foo", ui="tailwind")
        result = manager_for(root).configure(ui="tailwind", storage="async-storage")
        assert result.changes == []
        assert result.feature_changes == []

    @pytest.mark.parametrize("option,value", [
        ("theme", "blue"),
        ("language", "xx"),
        ("state", "mobx"),
        ("ui", "bootstrap"),
        ("storage", "sqlite"),
        ("navigation", "sideways"),
    ])
    def test_invalid_option(self, create_project, manager_for, option, value):
        root = create_project("Foo")
        before = snapshot_tree(root)
        with pytest.raises(InvalidOption):
            manager_for(root).configure(**{option: value})
        assert snapshot_tree(root) == before
