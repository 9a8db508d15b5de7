"""
Tests for template rendering, JSX prop masking and the template registry.
"""

import pytest

from nexora.exceptions import TemplateRenderError, TemplateSyntaxError
from nexora.models.feature_state import template_sets_for
from nexora.models.features import FEATURES
from nexora.models.project import ProjectConfig
from nexora.models.renderer import (
    TemplateRegistry,
    TemplateRenderer,
    build_context,
    mask_jsx_props,
    render_template_sets,
    unmask_jsx_props,
)
from nexora.models.settings import DefaultSettings


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


class TestMasking:
    """Test JSX object prop masking."""

    def test_no_props(self):
        masked, originals = mask_jsx_props("const a = 1;\n")
        assert masked == "const a = 1;\n"
        assert originals == []

    def test_single_prop(self):
        masked, originals = mask_jsx_props("<View style={{ flex: 1 }} />")
        assert originals == ["{{ flex: 1 }}"]
        assert "{{" not in masked
        assert DefaultSettings.JSX_PLACEHOLDER_PREFIX in masked

    def test_nested_braces_and_strings(self):
        text = "<Tab screenOptions={{ tabBarStyle: { height: 60 }, label: '}' }} />"
        masked, originals = mask_jsx_props(text)
        assert originals == ["{{ tabBarStyle: { height: 60 }, label: '}' }}"]
        assert unmask_jsx_props(masked, originals) == text

    def test_unbalanced_prop_reports_line(self):
        text = "line one\n<View style={{ flex: 1 }\n"
        with pytest.raises(TemplateSyntaxError) as exc_info:
            mask_jsx_props(text, "broken.tsx")
        assert exc_info.value.line == 2
        assert "broken.tsx" in str(exc_info.value)

    def test_prop_closed_by_single_brace_is_rejected(self):
        text = (
            "const A = () => {\n"
            "  return <View style={{ flex: 1 }>{{ projectName }}</View>;\n"
            "};\n"
        )
        with pytest.raises(TemplateSyntaxError) as exc_info:
            mask_jsx_props(text, "broken.tsx")
        assert exc_info.value.line == 2
        assert "style" in str(exc_info.value)

    def test_prop_running_into_directive_is_rejected(self):
        text = "<View style={{ flex: 1 }\n{% if flag %}<Text />{% endif %}\n}}"
        with pytest.raises(TemplateSyntaxError, match="template directive"):
            mask_jsx_props(text)

    def test_nested_prop_inside_value(self):
        text = "<Tab options={{ icon: () => <Icon style={{ margin: 2 }} /> }} />"
        masked, originals = mask_jsx_props(text)
        assert originals == ["{{ icon: () => <Icon style={{ margin: 2 }} /> }}"]
        assert unmask_jsx_props(masked, originals) == text

    def test_unmask_repeated_placeholder(self):
        placeholder = f"{DefaultSettings.JSX_PLACEHOLDER_PREFIX}0__"
        assert unmask_jsx_props(f"{placeholder}|{placeholder}", ["{{ a: 1 }}"]) == "{{ a: 1 }}|{{ a: 1 }}"


class TestTemplateRenderer:
    """Test TemplateRenderer.render."""

    def test_plain_text_unchanged(self, renderer):
        assert renderer.render("no directives here\n", {}) == "no directives here\n"

    def test_props_survive_rendering(self, renderer):
        text = (
            "<Stack.Navigator screenOptions={{ headerShown: false }}>\n"
            "  <Switch trackColor={{ false: '#E5E7EB', true: '#3B82F6' }} />\n"
            "</Stack.Navigator>\n"
        )
        assert renderer.render(text, {}) == text

    def test_props_adjacent_to_directives(self, renderer):
        text = "{% if flag %}<View style={{ flex: 1 }}>{% endif %}{{ name }}<Text value={{ a: 1 }}/>{{ name }}"
        assert renderer.render(text, {"flag": True, "name": "Foo"}) == (
            "<View style={{ flex: 1 }}>Foo<Text value={{ a: 1 }}/>Foo"
        )
        assert renderer.render(text, {"flag": False, "name": "Foo"}) == "Foo<Text value={{ a: 1 }}/>Foo"

    def test_prop_inside_loop(self, renderer):
        text = "{% for item in items %}<Item key=\"{{ item }}\" style={{ margin: 4 }} />\n{% endfor %}"
        result = renderer.render(text, {"items": ["a", "b"]})
        assert result == (
            "<Item key=\"a\" style={{ margin: 4 }} />\n"
            "<Item key=\"b\" style={{ margin: 4 }} />\n"
        )

    def test_trailing_newline_after_final_block(self, renderer):
        text = "{% if flag %}on{% else %}off{% endif %}\n"
        assert renderer.render(text, {"flag": True}) == "on\n"
        assert renderer.render(text, {"flag": False}) == "off\n"

    def test_malformed_prop_is_not_rendered_silently(self, renderer):
        text = "const A = () => {\n  return <View style={{ flex: 1 }>{{ projectName }}</View>;\n};\n"
        with pytest.raises(TemplateSyntaxError):
            renderer.render(text, {"projectName": "Foo"}, template_name="App.tsx")

    def test_helpers(self, renderer):
        text = (
            "{% if eq(state, 'redux') %}redux{% endif %}"
            "{% if neq(ui, 'none') %}+ui{% endif %}"
            "{% if contains(navigationTypes, 'tabs') %}+tabs{% endif %}"
            "{% if navigationTypes is contains 'drawer' %}+drawer{% endif %}"
        )
        context = {"state": "redux", "ui": "tailwind", "navigationTypes": ["stack", "tabs"]}
        assert renderer.render(text, context) == "redux+ui+tabs"

    def test_contains_handles_missing_collection(self, renderer):
        assert renderer.render("{% if contains(items, 'a') %}yes{% else %}no{% endif %}", {"items": None}) == "no"

    def test_kebab_case_filter(self, renderer):
        assert renderer.render("{{ name | kebab_case }}", {"name": "My Cool App"}) == "my-cool-app"

    def test_syntax_error(self, renderer):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            renderer.render("ok\n{% if %}\n", {}, template_name="bad.ts")
        assert exc_info.value.line == 2
        assert exc_info.value.template == "bad.ts"

    def test_undefined_variable(self, renderer):
        with pytest.raises(TemplateRenderError, match="missing"):
            renderer.render("{{ missing }}", {}, template_name="undefined.ts")


class TestTemplateRegistry:
    """Test TemplateRegistry construction and lookup."""

    def test_from_mapping_accepts_language_names(self):
        registry = TemplateRegistry.from_mapping({("redux", "TypeScript"): {"a.ts": "a"}})
        assert registry.lookup("redux", "TypeScript") == {"a.ts": "a"}
        assert registry.lookup("redux", "typescript") == {"a.ts": "a"}
        assert registry.lookup("redux", "JavaScript") == {}

    def test_unregistered_set_is_empty(self):
        assert TemplateRegistry().lookup("nothing", "TypeScript") == {}

    def test_from_directory(self, tmp_path):
        (tmp_path / "theme" / "typescript" / "src" / "config").mkdir(parents=True)
        (tmp_path / "theme" / "typescript" / "src" / "config" / "theme.ts").write_text("theme")
        (tmp_path / "core" / "javascript").mkdir(parents=True)
        (tmp_path / "core" / "javascript" / ".env.example").write_text("APP_ENV=dev")

        registry = TemplateRegistry.from_directory(tmp_path)
        assert registry.template_sets() == ["core", "theme"]
        assert registry.lookup("theme", "TypeScript") == {"src/config/theme.ts": "theme"}
        assert registry.lookup("core", "JavaScript") == {".env.example": "APP_ENV=dev"}

    def test_missing_directory(self, tmp_path):
        assert TemplateRegistry.from_directory(tmp_path / "missing").template_sets() == []

    def test_merged_overrides_per_path(self):
        base = TemplateRegistry.from_mapping({("core", "TypeScript"): {"a": "base", "b": "base"}})
        overlay = TemplateRegistry.from_mapping({
            ("core", "TypeScript"): {"b": "overlay"},
            ("extra", "TypeScript"): {"c": "overlay"},
        })
        merged = base.merged(overlay)
        assert merged.lookup("core", "TypeScript") == {"a": "base", "b": "overlay"}
        assert merged.lookup("extra", "TypeScript") == {"c": "overlay"}
        assert base.lookup("core", "TypeScript")["b"] == "base"


class TestRenderTemplateSets:
    """Test batch rendering into memory."""

    def test_name_placeholder_in_path(self, renderer):
        registry = TemplateRegistry.from_mapping({
            ("core", "JavaScript"): {"ios/__NAME__/Info.txt": "{{ projectName }} {{ packageName }}"},
        })
        config = ProjectConfig(name="MyApp", language="JavaScript")
        assert render_template_sets(registry, renderer, ["core"], config) == {
            "ios/MyApp/Info.txt": "MyApp my-app",
        }

    def test_context_has_both_key_styles(self):
        context = build_context(ProjectConfig(name="Foo", default_theme="dark", navigation=["tabs"]))
        assert context["default_theme"] == "dark"
        assert context["defaultTheme"] == "dark"
        assert context["projectName"] == "Foo"
        assert context["navigationTypes"] == ["tabs"]
        assert context["hasNavigation"] is True


class TestBuiltinTemplates:
    """The templates shipped with the package render for every feature."""

    def test_every_template_set_is_shipped(self):
        shipped = set(TemplateRegistry.builtin().template_sets())
        expected = {"core", "async-storage"}
        for spec in FEATURES.values():
            expected.update(spec.template_sets)
        assert expected <= shipped

    @pytest.mark.parametrize("language", ["TypeScript", "JavaScript"])
    @pytest.mark.parametrize("fields", [
        {},
        {
            "navigation": ["stack", "tabs", "drawer"],
            "state": "redux",
            "ui": "styled-components",
            "storage": "mmkv",
            "theme": True,
            "localization": True,
            "firebase": True,
            "api": True,
            "auth": True,
            "fonts": True,
            "sample_screens": True,
            "default_theme": "dark",
            "default_language": "es",
        },
        {"navigation": ["tabs"], "state": "zustand", "ui": "tailwind", "auth": True},
        {"navigation": ["drawer"]},
    ])
    def test_render_all_sets(self, renderer, language, fields):
        config = ProjectConfig(name="Sample App", language=language, **fields)
        rendered = render_template_sets(TemplateRegistry.builtin(), renderer, template_sets_for(config), config)

        assert "README.md" in rendered
        assert ".env.example" in rendered
        for relative, content in rendered.items():
            assert DefaultSettings.JSX_PLACEHOLDER_PREFIX not in content, relative
            assert "{%" not in content, relative

    def test_rendered_navigation_keeps_screen_options(self, renderer):
        config = ProjectConfig(name="Foo", navigation=["stack", "drawer"])
        rendered = render_template_sets(TemplateRegistry.builtin(), renderer, template_sets_for(config), config)

        assert "screenOptions={{" in rendered["src/navigation/StackNavigator.tsx"]
        assert "import DrawerNavigator" in rendered["src/navigation/index.tsx"]
        assert "component={StackNavigator}" in rendered["src/navigation/DrawerNavigator.tsx"]

    def test_theme_and_language_defaults_are_rendered(self, renderer):
        config = ProjectConfig(name="Foo", theme=True, localization=True, default_theme="dark", default_language="de")
        rendered = render_template_sets(
            TemplateRegistry.builtin(), renderer, ["theme", "localization"], config
        )
        assert "DEFAULT_THEME_MODE: ThemeMode = 'dark'" in rendered["src/config/theme/index.tsx"]
        assert "DEFAULT_LANGUAGE: Language = 'de'" in rendered["src/localization/index.tsx"]
        assert "Willkommen" in rendered["src/localization/translations.ts"]
