"""
Nexora Template Renderer

This module renders the Jinja2 templates that make up a generated project.

JSX object props such as ``screenOptions={{ headerShown: false }}`` use the
same ``{{`` delimiter as Jinja expressions, so they are masked with
placeholders before compiling and restored verbatim after rendering.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import jinja2
from jinja2 import Environment, StrictUndefined

from ..exceptions import ProjectIOError, TemplateRenderError, TemplateSyntaxError
from ..utils import to_kebab_case
from .project import ProjectConfig
from .settings import DefaultSettings

# Set up module logger
logger = logging.getLogger(__name__)

BUILTIN_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_PROP_OPENER = re.compile(r"([A-Za-z_$][\w$]*)=\{\{")
_PROP_CLOSER = re.compile(r"\}\s*\}\Z")
# Nested JSX props such as `style={{ ... }}` inside a value are allowed
_DIRECTIVE_INSIDE = re.compile(r"(?<!=)\{\{|\{%")
_PLACEHOLDER = re.compile(re.escape(DefaultSettings.JSX_PLACEHOLDER_PREFIX) + r"(\d+)__")


# ====================================================================
# Template helpers
# ====================================================================

def eq(left: Any, right: Any) -> bool:
    return left == right


def neq(left: Any, right: Any) -> bool:
    return left != right


def contains(collection: Any, item: Any) -> bool:
    """True when ``item`` is in ``collection``; a missing collection contains nothing."""
    if collection is None:
        return False
    return item in collection


# ====================================================================
# JSX prop masking
# ====================================================================

def _find_closing_brace(text: str, start: int) -> int:
    """
    Return the index just past the brace that balances ``text[start]``.

    String literals are skipped so braces inside them do not count.
    Returns -1 when the braces never balance.
    """
    depth = 0
    i = start
    length = len(text)
    while i < length:
        char = text[i]
        if char in ("'", '"', "`"):
            i += 1
            while i < length and text[i] != char:
                if text[i] == "\\":
                    i += 1
                i += 1
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return -1


def _check_prop_value(
    text: str,
    match: "re.Match[str]",
    value_start: int,
    value_end: int,
    template_name: str,
) -> None:
    """
    Reject a prop value that did not close where the prop ends.

    A well formed value ends in ``}}`` and holds no template directive; an
    unclosed ``{{`` otherwise runs on into later code and hides it.
    """
    value = text[value_start:value_end]
    problem = None
    if not _PROP_CLOSER.search(value):
        problem = "does not close with '}}'"
    elif _DIRECTIVE_INSIDE.search(value, 2):
        problem = "runs into a template directive"
    if problem:
        line = text.count("\n", 0, match.start()) + 1
        raise TemplateSyntaxError(
            template_name,
            f"JSX prop '{match.group(1)}' {problem}",
            line=line,
        )


def mask_jsx_props(text: str, template_name: str = "<string>") -> Tuple[str, List[str]]:
    """
    Replace every ``identifier={{ ... }}`` prop value with a placeholder.

    Args:
        text: Raw template text
        template_name: Name used in error messages

    Returns:
        Tuple of (masked text, original prop values in placeholder order)

    Raises:
        TemplateSyntaxError: If a prop value never closes, or closes past the
            end of the prop
    """
    originals: List[str] = []
    parts: List[str] = []
    position = 0

    while True:
        match = _PROP_OPENER.search(text, position)
        if match is None:
            break
        value_start = match.end() - 2
        value_end = _find_closing_brace(text, value_start)
        if value_end == -1:
            line = text.count("\n", 0, match.start()) + 1
            raise TemplateSyntaxError(
                template_name,
                f"unbalanced braces in JSX prop '{match.group(1)}'",
                line=line,
            )
        _check_prop_value(text, match, value_start, value_end, template_name)
        parts.append(text[position:value_start])
        parts.append(f"{DefaultSettings.JSX_PLACEHOLDER_PREFIX}{len(originals)}__")
        originals.append(text[value_start:value_end])
        position = value_end

    parts.append(text[position:])
    return "".join(parts), originals


def unmask_jsx_props(text: str, originals: List[str]) -> str:
    """
    Restore placeholders produced by mask_jsx_props.

    Placeholders dropped by a skipped conditional branch are simply absent;
    one repeated by a loop is restored everywhere it appears.
    """
    if not originals:
        return text

    def restore(match: "re.Match[str]") -> str:
        index = int(match.group(1))
        if index < len(originals):
            return originals[index]
        return match.group(0)

    return _PLACEHOLDER.sub(restore, text)


# ====================================================================
# Renderer
# ====================================================================

class TemplateRenderer:
    """
    Renders template text with a context dictionary.

    Undefined variables fail loudly instead of rendering as empty strings.
    """

    def __init__(self) -> None:
        self.env = Environment(
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register helpers both as callables and as tests
        for helper in (eq, neq, contains):
            self.env.globals[helper.__name__] = helper
            self.env.tests[helper.__name__] = helper
        self.env.filters["kebab_case"] = to_kebab_case

    def render(self, template_text: str, context: Mapping[str, Any], template_name: str = "<string>") -> str:
        """
        Render one template.

        Args:
            template_text: Raw template text
            context: Variables available inside the template
            template_name: Name used in error messages

        Returns:
            Rendered text with JSX props restored

        Raises:
            TemplateSyntaxError: If the template cannot be parsed
            TemplateRenderError: If rendering fails, e.g. on an undefined variable
        """
        masked, originals = mask_jsx_props(template_text, template_name)

        try:
            template = self.env.from_string(masked)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateSyntaxError(template_name, e.message or str(e), line=e.lineno) from e

        try:
            rendered = template.render(**context)
        except jinja2.TemplateError as e:
            raise TemplateRenderError(f"Failed to render {template_name}: {e}") from e

        # trim_blocks eats the newline after a final block tag
        if rendered and template_text.endswith("\n") and not rendered.endswith("\n"):
            rendered += "\n"

        return unmask_jsx_props(rendered, originals)


# ====================================================================
# Registry
# ====================================================================

RegistryKey = Tuple[str, str]


def _language_folder(language: str) -> str:
    return DefaultSettings.LANGUAGE_FOLDERS.get(language, language.lower())


class TemplateRegistry:
    """
    Maps (template set, language folder) to {relative path: template text}.

    On disk the layout is ``<set>/<javascript|typescript>/<relative path>``.
    """

    def __init__(self, templates: Optional[Dict[RegistryKey, Dict[str, str]]] = None) -> None:
        self._templates: Dict[RegistryKey, Dict[str, str]] = {
            key: dict(files) for key, files in (templates or {}).items()
        }

    @classmethod
    def from_mapping(cls, mapping: Mapping[RegistryKey, Mapping[str, str]]) -> "TemplateRegistry":
        """Build a registry from an in-memory mapping."""
        return cls({
            (template_set, _language_folder(language)): dict(files)
            for (template_set, language), files in mapping.items()
        })

    @classmethod
    def from_directory(cls, root: Path) -> "TemplateRegistry":
        """
        Load every template under ``root`` once.

        Args:
            root: Directory laid out as <set>/<language>/<relative path>

        Returns:
            Loaded registry

        Raises:
            ProjectIOError: If a template file cannot be read
        """
        root = Path(root)
        templates: Dict[RegistryKey, Dict[str, str]] = {}
        if not root.is_dir():
            logger.warning(f"Template directory not found: {root}")
            return cls(templates)

        for set_dir in sorted(p for p in root.iterdir() if p.is_dir()):
            for language_dir in sorted(p for p in set_dir.iterdir() if p.is_dir()):
                files: Dict[str, str] = {}
                for file_path in sorted(language_dir.rglob("*")):
                    if not file_path.is_file():
                        continue
                    relative = file_path.relative_to(language_dir).as_posix()
                    try:
                        files[relative] = file_path.read_text(encoding="utf-8")
                    except OSError as e:
                        raise ProjectIOError(file_path, "read template", e) from e
                templates[(set_dir.name, language_dir.name)] = files

        logger.debug(f"Loaded {len(templates)} template groups from {root}")
        return cls(templates)

    @classmethod
    def builtin(cls) -> "TemplateRegistry":
        """Load the templates shipped with the package."""
        return cls.from_directory(BUILTIN_TEMPLATES_DIR)

    def merged(self, other: "TemplateRegistry") -> "TemplateRegistry":
        """Return a registry where templates from ``other`` override ours path by path."""
        combined = {key: dict(files) for key, files in self._templates.items()}
        for key, files in other._templates.items():
            combined.setdefault(key, {}).update(files)
        return TemplateRegistry(combined)

    def lookup(self, template_set: str, language: str) -> Dict[str, str]:
        """
        Get the templates of one set for one language.

        An unregistered set yields an empty mapping; that is not an error.
        """
        files = self._templates.get((template_set, _language_folder(language)))
        if not files:
            logger.info(f"No templates registered for {template_set}/{_language_folder(language)}")
            return {}
        return dict(files)

    def template_sets(self) -> List[str]:
        return sorted({template_set for template_set, _ in self._templates})


# ====================================================================
# Context and batch rendering
# ====================================================================

def build_context(config: ProjectConfig) -> Dict[str, Any]:
    """
    Build the template context for a project.

    Every config field is available under its snake_case name and its
    camelCase file key, plus a few derived values.
    """
    context: Dict[str, Any] = config.model_dump()
    context.update(config.model_dump(by_alias=True))
    context.update(
        projectName=config.name,
        packageName=to_kebab_case(config.name),
        isTypeScript=config.is_typescript,
        navigationTypes=list(config.navigation),
        hasNavigation=config.has_navigation,
        cliVersion=config.cli_version,
        availableLanguages=list(DefaultSettings.AVAILABLE_LANGUAGES),
    )
    return context


def target_path(relative_path: str, config: ProjectConfig) -> str:
    """Substitute the project name into a template's relative path."""
    return relative_path.replace(DefaultSettings.NAME_PLACEHOLDER, config.name)


def render_template_sets(
    registry: TemplateRegistry,
    renderer: TemplateRenderer,
    template_sets: Iterable[str],
    config: ProjectConfig,
) -> Dict[str, str]:
    """
    Render whole template sets into memory.

    Nothing is written, so a broken template aborts the caller before any
    file changes. Later sets win when two sets produce the same path.

    Returns:
        Mapping of project-relative path to rendered content
    """
    context = build_context(config)
    rendered: Dict[str, str] = {}
    for template_set in template_sets:
        for relative, text in registry.lookup(template_set, config.language).items():
            name = f"{template_set}/{config.language_folder}/{relative}"
            rendered[target_path(relative, config)] = renderer.render(text, context, template_name=name)
    return rendered
