"""Typed release configuration.

Configuration lives in `.autoshiprc.toml` (searched from the working
directory upwards) or under `[tool.autoship]` in `pyproject.toml`:

    owner = "acme"
    repo = "widgets"
    base_branch = "main"
    plugins = ["git-tag", { name = "released", lock_issues = true }]

    [labels]
    major = ["major", "breaking"]
    minor = ["minor", "enhancement"]
    patch = ["patch", "bug"]
    skip = ["skip-release", "documentation"]

Each `[labels]` key replaces the default labels of that bump kind only; the
other kinds keep theirs. Moving a default label to another kind, such as
`minor = ["patch"]`, also needs the kind it leaves overridden (`patch =
["bug"]`), otherwise the label is rejected as configured for two kinds.

`AutoConfig` is immutable. Plugins amend it through the `modify_config`
waterfall by returning `dataclasses.replace(...)` copies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from autoship.core.result import Err, Ok, Result
from autoship.core.structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_list,
    get_str,
    get_str_list,
    get_table,
)
from autoship.release.model import BUMP_PRECEDENCE, BumpKind, LabelBumpMap, LabelDefinition

__all__ = [
    "AutoConfig",
    "ConfigError",
    "PluginSpec",
    "CONFIG_FILENAME",
    "DEFAULT_PLUGINS",
    "find_config",
    "label_bump_map",
    "load_config",
]

CONFIG_FILENAME = ".autoshiprc.toml"
DEFAULT_BASE_BRANCH = "main"
DEFAULT_CHANGELOG_PATH = "CHANGELOG.md"
DEFAULT_CHANGELOG_MESSAGE = "Update CHANGELOG.md [skip ci]"

DEFAULT_BUMP_LABELS: dict[BumpKind, tuple[str, ...]] = {
    "major": ("major",),
    "minor": ("minor",),
    "patch": ("patch",),
    "skip": ("skip-release",),
}

DEFAULT_LABEL_DEFINITIONS: tuple[LabelDefinition, ...] = (
    LabelDefinition("major", "Increment the major version when merged", "C5000B"),
    LabelDefinition("minor", "Increment the minor version when merged", "F1A60E"),
    LabelDefinition("patch", "Increment the patch version when merged", "870048"),
    LabelDefinition("skip-release", "Preserve the current version when merged", "BFE5BF"),
)


@dataclass(frozen=True, slots=True)
class ConfigError:
    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class PluginSpec:
    name: str
    options: Mapping[str, object] = field(default_factory=dict)


DEFAULT_PLUGINS: tuple[PluginSpec, ...] = (PluginSpec("git-tag"), PluginSpec("released"))


def _default_labels() -> LabelBumpMap:
    return LabelBumpMap(
        {kind: frozenset(names) for kind, names in DEFAULT_BUMP_LABELS.items()}
    )


@dataclass(frozen=True, slots=True)
class AutoConfig:
    owner: str | None = None
    repo: str | None = None
    base_branch: str = DEFAULT_BASE_BRANCH
    no_version_prefix: bool = False
    name: str | None = None
    email: str | None = None
    host: str | None = None
    labels: LabelBumpMap = field(default_factory=_default_labels)
    label_definitions: tuple[LabelDefinition, ...] = DEFAULT_LABEL_DEFINITIONS
    plugins: tuple[PluginSpec, ...] = DEFAULT_PLUGINS
    changelog_path: str = DEFAULT_CHANGELOG_PATH
    changelog_message: str = DEFAULT_CHANGELOG_MESSAGE

    @property
    def skip_labels(self) -> frozenset[str]:
        return self.labels.for_kind("skip")

    def has_label_definition(self, name: str) -> bool:
        return any(d.name == name for d in self.label_definitions)

    def with_label_definition(self, definition: LabelDefinition) -> AutoConfig:
        if self.has_label_definition(definition.name):
            return self
        return replace(self, label_definitions=(*self.label_definitions, definition))


def label_bump_map(mapping: Mapping[BumpKind, list[str] | tuple[str, ...]]) -> Result[LabelBumpMap, ConfigError]:
    """Build a LabelBumpMap, rejecting labels configured for two bump kinds."""
    labels = LabelBumpMap({kind: frozenset(names) for kind, names in mapping.items() if names})
    conflict = labels.conflict()
    if conflict is not None:
        name, first, second = conflict
        return Err(ConfigError(f"label '{name}' is configured for both '{first}' and '{second}'"))
    return Ok(labels)


def _parse_plugins(items: list[object], *, path: Path | None) -> Result[tuple[PluginSpec, ...], ConfigError]:
    specs: list[PluginSpec] = []
    for item in items:
        if isinstance(item, str) and item.strip():
            specs.append(PluginSpec(item.strip()))
            continue
        table = as_str_dict(item)
        name = get_str(table, "name") if table is not None else None
        if table is None or name is None:
            return Err(ConfigError(f"invalid plugin entry: {item!r}", path=path))
        options = {k: v for k, v in table.items() if k != "name"}
        specs.append(PluginSpec(name, options))
    return Ok(tuple(specs))


def config_from_dict(data: Mapping[str, object], *, path: Path | None = None) -> Result[AutoConfig, ConfigError]:
    """Create an AutoConfig from a parsed TOML table."""
    labels_tbl: StrDict = get_table(data, "labels") or {}
    unknown = set(labels_tbl) - set(BUMP_PRECEDENCE)
    if unknown:
        return Err(ConfigError(f"unknown bump kinds in [labels]: {', '.join(sorted(unknown))}", path=path))

    mapping: dict[BumpKind, list[str]] = {
        kind: list(names) for kind, names in DEFAULT_BUMP_LABELS.items()
    }
    for kind in BUMP_PRECEDENCE:
        names = get_str_list(labels_tbl, kind)
        if names is not None:
            mapping[kind] = names

    labels = label_bump_map(mapping)
    if isinstance(labels, Err):
        return Err(ConfigError(labels.error.message, path=path))

    definitions = list(DEFAULT_LABEL_DEFINITIONS)
    configured = {d.name for d in definitions}
    for label in sorted(labels.value.all_labels() - configured):
        definitions.append(LabelDefinition(label))

    plugins = DEFAULT_PLUGINS
    raw_plugins = get_list(data, "plugins")
    if raw_plugins is not None:
        parsed = _parse_plugins(raw_plugins, path=path)
        if isinstance(parsed, Err):
            return parsed
        plugins = parsed.value

    return Ok(
        AutoConfig(
            owner=get_str(data, "owner"),
            repo=get_str(data, "repo"),
            base_branch=get_str(data, "base_branch") or DEFAULT_BASE_BRANCH,
            no_version_prefix=get_bool(data, "no_version_prefix") or False,
            name=get_str(data, "name"),
            email=get_str(data, "email"),
            host=get_str(data, "host"),
            labels=labels.value,
            label_definitions=tuple(definitions),
            plugins=plugins,
            changelog_path=get_str(data, "changelog_path") or DEFAULT_CHANGELOG_PATH,
            changelog_message=get_str(data, "changelog_message") or DEFAULT_CHANGELOG_MESSAGE,
        )
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def find_config(start: Path) -> Path | None:
    """Find the nearest `.autoshiprc.toml`, or a pyproject with [tool.autoship]."""
    for parent in (start, *start.parents):
        rc = parent / CONFIG_FILENAME
        if rc.is_file():
            return rc
        pyproject = parent / "pyproject.toml"
        if pyproject.is_file():
            parsed = _parse_toml(pyproject)
            if isinstance(parsed, Ok) and _tool_table(parsed.value) is not None:
                return pyproject
    return None


def _tool_table(data: StrDict) -> StrDict | None:
    tool = get_table(data, "tool") or {}
    return get_table(tool, "autoship")


def load_config(path: Path | None) -> Result[AutoConfig, ConfigError]:
    """Load configuration from `path`; None yields the defaults."""
    if path is None:
        return Ok(AutoConfig())

    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed

    data = parsed.value
    if path.name == "pyproject.toml":
        data = _tool_table(data) or {}

    return config_from_dict(data, path=path)
