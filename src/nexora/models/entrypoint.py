"""
Nexora Entry Point Builder

This module writes and edits the application entry point (App.tsx / App.js).

Every line injected for a provider carries a region tag, ``// @nexora:<tag>``
on imports and ``{/* @nexora:<tag> */}`` on JSX lines, so removing a feature
deletes its tagged lines instead of pattern matching on arbitrary code.
Adding a feature inserts its tagged lines at its place in the provider
nesting order. On removal, files without tags (hand-edited, or created by
older releases) fall back to pattern-based surgery.
"""

import logging
import re
from typing import Iterable, List, Optional, Tuple

from .features import PROVIDER_ORDER, get_feature_spec
from .project import ProjectConfig
from .settings import DefaultSettings

logger = logging.getLogger(__name__)

ROOT_TAG = "root"
INDENT = "  "


def entry_point_name(config: ProjectConfig) -> str:
    """File name of the entry point for the project's language."""
    return "App.tsx" if config.is_typescript else "App.js"


def region_tag(key: str) -> str:
    """Region tag used for a feature; all navigation types share one."""
    if key == "navigation" or get_feature_spec(key).is_navigation:
        return "navigation"
    return key


def _import_marker(tag: str) -> str:
    return f"// {DefaultSettings.REGION_TAG_PREFIX}{tag}"


def _jsx_marker(tag: str) -> str:
    return f"{{/* {DefaultSettings.REGION_TAG_PREFIX}{tag} */}}"


def _tag_pattern(tag: str) -> "re.Pattern[str]":
    return re.compile(re.escape(DefaultSettings.REGION_TAG_PREFIX + tag) + r"(?![\w-])")


def welcome_view(app_name: str) -> str:
    return (
        f"<View style={{styles.container}}>{_jsx_marker(ROOT_TAG)}"
        f"<Text>Welcome to {app_name}!</Text></View>"
    )


def navigator_root() -> str:
    return f"<AppNavigator />{_jsx_marker(ROOT_TAG)}"


def active_providers(config: ProjectConfig) -> List[str]:
    """Provider keys wrapping the app root, outermost first."""
    enabled = {
        "theme": config.theme,
        "localization": config.localization,
        "redux": config.state == "redux",
        "navigation": config.has_navigation,
    }
    return [key for key in PROVIDER_ORDER if enabled[key]]


def build_entry_point(config: ProjectConfig) -> str:
    """
    Build the entry point for a configuration.

    Providers nest theme outermost, then localization, then the redux store
    provider, then the navigation container around the app navigator.
    Without navigation the root is a static welcome view.

    Args:
        config: Project configuration

    Returns:
        Entry point source
    """
    providers = active_providers(config)

    lines = [
        "import React from 'react';",
        "import { StyleSheet, Text, View } from 'react-native';",
    ]
    for key in providers:
        provider = get_feature_spec(key).provider
        for import_line in provider.imports:
            lines.append(f"{import_line} {_import_marker(key)}")

    lines.append("")
    if config.is_typescript:
        lines.append("const App: React.FC = () => {")
    else:
        lines.append("const App = () => {")
    lines.append(f"{INDENT}return (")

    depth = 2
    for key in providers:
        provider = get_feature_spec(key).provider
        lines.append(f"{INDENT * depth}{provider.open_tag}{_jsx_marker(key)}")
        depth += 1

    root = navigator_root() if config.has_navigation else welcome_view(config.name)
    lines.append(f"{INDENT * depth}{root}")

    for key in reversed(providers):
        depth -= 1
        provider = get_feature_spec(key).provider
        lines.append(f"{INDENT * depth}{_jsx_marker(key)}{provider.close_tag}")

    lines.extend([
        f"{INDENT});",
        "};",
        "",
        "const styles = StyleSheet.create({",
        "  container: {",
        "    flex: 1,",
        "    alignItems: 'center',",
        "    justifyContent: 'center',",
        "  },",
        "});",
        "",
        "export default App;",
        "",
    ])
    return "\n".join(lines)


def has_region(content: str, key: str) -> bool:
    """Check whether ``content`` holds tagged lines for a feature."""
    pattern = _tag_pattern(region_tag(key))
    return any(pattern.search(line) for line in content.splitlines())


def insert_feature(content: str, key: str) -> Optional[str]:
    """
    Add a feature's imports and provider wrapper to an existing entry point.

    The wrapper goes where PROVIDER_ORDER puts it: inside the providers that
    come before it and around the ones that come after it. Adding the first
    navigation type also swaps the welcome view for the app navigator.

    Args:
        content: Current entry point source
        key: Feature being added

    Returns:
        Updated source; unchanged when the feature has no provider or is
        already wrapped, None when the file has no region tags to anchor on
    """
    spec = get_feature_spec(key)
    if spec.provider is None or has_region(content, key):
        return content

    tag = region_tag(key)
    lines = content.split("\n")
    root_pattern = _tag_pattern(ROOT_TAG)
    root = next((i for i, line in enumerate(lines) if root_pattern.search(line)), None)
    if root is None:
        return None

    position = PROVIDER_ORDER.index(tag)
    before = PROVIDER_ORDER[:position]
    after = [t for t in PROVIDER_ORDER[position + 1:] if has_region(content, t)]

    if tag == "navigation":
        indent = lines[root][:len(lines[root]) - len(lines[root].lstrip())]
        lines[root] = f"{indent}{navigator_root()}"

    # Wrap the outermost later provider, or the root when there is none
    if after:
        region = _jsx_region(lines, after[0])
        if region is None:
            return None
        first, last = region
    else:
        first = last = root
    indent = lines[first][:len(lines[first]) - len(lines[first].lstrip())]
    for i in range(first, last + 1):
        if lines[i]:
            lines[i] = INDENT + lines[i]
    lines.insert(last + 1, f"{indent}{_jsx_marker(tag)}{spec.provider.close_tag}")
    lines.insert(first, f"{indent}{spec.provider.open_tag}{_jsx_marker(tag)}")

    anchor = _import_anchor(lines, before, after)
    new_imports = [f"{line} {_import_marker(tag)}" for line in spec.provider.imports]
    lines[anchor:anchor] = new_imports
    return "\n".join(lines)


def _jsx_region(lines: List[str], tag: str) -> Optional[Tuple[int, int]]:
    pattern = _tag_pattern(tag)
    jsx = [
        i for i, line in enumerate(lines)
        if pattern.search(line) and not line.lstrip().startswith("import ")
    ]
    if len(jsx) < 2:
        return None
    return jsx[0], jsx[-1]


def _import_anchor(lines: List[str], before: Iterable[str], after: Iterable[str]) -> int:
    """Index at which a provider's imports go, keeping provider order."""
    imports = [i for i, line in enumerate(lines) if line.lstrip().startswith("import ")]
    for tags, pick_last in ((before, True), (after, False)):
        patterns = [_tag_pattern(t) for t in tags]
        tagged = [i for i in imports if any(p.search(lines[i]) for p in patterns)]
        if tagged:
            return tagged[-1] + 1 if pick_last else tagged[0]
    return imports[-1] + 1 if imports else 0


def strip_feature(content: str, key: str, app_name: str = "App") -> str:
    """
    Remove a feature's imports and provider wrapper from an entry point.

    Args:
        content: Current entry point source
        key: Feature being removed
        app_name: Name shown in the welcome view when navigation goes away

    Returns:
        Updated source; unchanged when the feature has no provider
    """
    spec = get_feature_spec(key)
    if spec.provider is None:
        return content

    tag = region_tag(key)
    if has_region(content, key):
        result = _strip_region(content, tag)
    else:
        logger.info(f"No region tags for '{tag}' in entry point, using pattern removal")
        result = _strip_by_pattern(content, key)

    if tag == "navigation":
        result = _swap_root(result, app_name)
    return result


def _strip_region(content: str, tag: str) -> str:
    pattern = _tag_pattern(tag)
    lines = content.split("\n")
    tagged = [i for i, line in enumerate(lines) if pattern.search(line)]

    jsx = [i for i in tagged if not lines[i].lstrip().startswith("import ")]
    opener: Optional[int] = jsx[0] if jsx else None
    closer: Optional[int] = jsx[-1] if len(jsx) > 1 else None

    result: List[str] = []
    for i, line in enumerate(lines):
        if i in tagged:
            continue
        if opener is not None and closer is not None and opener < i < closer:
            if line.startswith(INDENT):
                line = line[len(INDENT):]
        result.append(line)
    return "\n".join(result)


def _strip_by_pattern(content: str, key: str) -> str:
    provider = get_feature_spec(key).provider

    for import_line in provider.imports:
        module = re.search(r"from\s+['\"]([^'\"]+)['\"]", import_line)
        if module is None:
            continue
        content = re.sub(
            r"^[ \t]*import\s[^;\n]*from\s+['\"]" + re.escape(module.group(1)) + r"['\"];?[ \t]*\n?",
            "",
            content,
            flags=re.MULTILINE,
        )

    tag_name = re.match(r"<\s*([\w.]+)", provider.open_tag).group(1)
    # Opening tag alone on its line goes with the line, otherwise just the tag
    content, removed = re.subn(
        r"^[ \t]*<" + re.escape(tag_name) + r"\b[^>]*>[ \t]*\n",
        "",
        content,
        count=1,
        flags=re.MULTILINE,
    )
    if not removed:
        content = re.sub(r"<" + re.escape(tag_name) + r"\b[^>]*>", "", content, count=1)

    closing = re.compile(r"^[ \t]*</" + re.escape(tag_name) + r"\s*>[ \t]*\n", re.MULTILINE)
    matches = list(closing.finditer(content))
    if matches:
        last = matches[-1]
        content = content[:last.start()] + content[last.end():]
    else:
        content = re.sub(r"</" + re.escape(tag_name) + r"\s*>", "", content)
    return content


def _swap_root(content: str, app_name: str) -> str:
    lines = content.split("\n")
    root_pattern = _tag_pattern(ROOT_TAG)
    for i, line in enumerate(lines):
        if root_pattern.search(line) or re.search(r"<AppNavigator\s*/>", line):
            indent = line[:len(line) - len(line.lstrip())]
            lines[i] = f"{indent}{welcome_view(app_name)}"
    return "\n".join(lines)
