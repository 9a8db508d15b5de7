"""
Tests for ProjectConfig and the per-project config file.
"""

import json

import pytest
from pydantic import ValidationError

from nexora.exceptions import CorruptConfig, NotAManagedProject
from nexora.models.config_store import ConfigStore, is_managed_project, load_project_config, save_project_config
from nexora.models.project import ProjectConfig, normalize_navigation
from nexora.models.settings import DefaultSettings


class TestNormalizeNavigation:
    """Every stored navigation shape collapses to one ordered list."""

    @pytest.mark.parametrize("raw", [
        "stack,tabs",
        ["stack", "tabs"],
        ["stack,tabs"],
        ("stack", "tabs", "stack"),
        {"tabs", "stack"},
        " Stack , TABS ",
        ["stack", "none", "tabs"],
    ])
    def test_forms_normalize_to_same_list(self, raw):
        assert normalize_navigation(raw) == ["stack", "tabs"]

    @pytest.mark.parametrize("raw", [None, False, "", "none", [], ["none"]])
    def test_empty_forms(self, raw):
        assert normalize_navigation(raw) == []

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="bottom"):
            normalize_navigation("stack,bottom")


class TestProjectConfig:
    """Test ProjectConfig validation."""

    def test_defaults(self):
        config = ProjectConfig(name="Foo")
        assert config.language == "TypeScript"
        assert config.navigation == []
        assert config.state == "none"
        assert config.storage == "async-storage"
        assert config.cli_version == "0.0.0"
        assert not config.has_navigation

    def test_language_short_forms(self):
        assert ProjectConfig(name="Foo", language="js").language == "JavaScript"
        assert ProjectConfig(name="Foo", language="typescript").is_typescript

    def test_none_sentinels(self):
        config = ProjectConfig(name="Foo", state=None, ui="", storage="none")
        assert config.state == "none"
        assert config.ui == "none"
        assert config.storage == "async-storage"

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            ProjectConfig(name="Foo", state="mobx")
        with pytest.raises(ValidationError):
            ProjectConfig(name="")
        with pytest.raises(ValidationError):
            ProjectConfig(name="Foo", cliVersion="not-a-version")

    def test_camel_case_aliases(self):
        config = ProjectConfig.model_validate({
            "name": "Foo",
            "sampleScreens": True,
            "defaultTheme": "dark",
            "cliVersion": "1.2.0",
        })
        assert config.sample_screens is True
        assert config.default_theme == "dark"
        assert str(config.version) == "1.2.0"

    def test_evolve_returns_new_validated_copy(self):
        config = ProjectConfig(name="Foo")
        changed = config.evolve(navigation="drawer,stack")
        assert changed.navigation == ["drawer", "stack"]
        assert config.navigation == []
        with pytest.raises(ValidationError):
            config.evolve(ui="bootstrap")


class TestConfigStore:
    """Test ConfigStore load / save."""

    def test_round_trip(self, tmp_path):
        config = ProjectConfig(
            name="Foo",
            navigation=["stack", "drawer"],
            state="redux",
            theme=True,
            default_language="fr",
            cli_version="1.1.0",
        )
        save_project_config(tmp_path, config)
        assert load_project_config(tmp_path) == config

    def test_file_uses_camel_case_keys(self, tmp_path):
        ConfigStore(tmp_path).save(ProjectConfig(name="Foo", sample_screens=True))
        data = json.loads((tmp_path / DefaultSettings.CONFIG_FILE).read_text())
        assert data["sampleScreens"] is True
        assert "cliVersion" in data
        assert "sample_screens" not in data

    def test_legacy_scalar_navigation(self, tmp_path):
        (tmp_path / DefaultSettings.CONFIG_FILE).write_text(json.dumps({
            "name": "Legacy",
            "language": "JavaScript",
            "navigation": "stack,tabs",
            "state": "none",
        }))
        config = load_project_config(tmp_path)
        assert config.navigation == ["stack", "tabs"]
        assert config.cli_version == "0.0.0"

    def test_unknown_keys_survive_round_trip(self, tmp_path):
        (tmp_path / DefaultSettings.CONFIG_FILE).write_text(json.dumps({
            "name": "Foo",
            "customField": "kept",
        }))
        store = ConfigStore(tmp_path)
        store.save(store.load())
        data = json.loads((tmp_path / DefaultSettings.CONFIG_FILE).read_text())
        assert data["customField"] == "kept"

    def test_missing_file(self, tmp_path):
        assert not is_managed_project(tmp_path)
        with pytest.raises(NotAManagedProject):
            load_project_config(tmp_path)

    def test_invalid_json(self, tmp_path):
        (tmp_path / DefaultSettings.CONFIG_FILE).write_text("{ not json")
        with pytest.raises(CorruptConfig, match="not valid JSON"):
            load_project_config(tmp_path)

    def test_not_an_object(self, tmp_path):
        (tmp_path / DefaultSettings.CONFIG_FILE).write_text("[1, 2]")
        with pytest.raises(CorruptConfig, match="JSON object"):
            load_project_config(tmp_path)

    def test_validation_failure(self, tmp_path):
        (tmp_path / DefaultSettings.CONFIG_FILE).write_text(json.dumps({"name": "Foo", "ui": "bootstrap"}))
        with pytest.raises(CorruptConfig):
            load_project_config(tmp_path)

    def test_save_leaves_no_temp_files(self, tmp_path):
        save_project_config(tmp_path, ProjectConfig(name="Foo"))
        assert [p.name for p in tmp_path.iterdir()] == [DefaultSettings.CONFIG_FILE]
