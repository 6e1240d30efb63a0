"""Built-in plugins.

A plugin is a name plus `apply(hooks, host)`. `apply` only taps hook points;
everything else (hosting client, repository, current config) is read from
`host` when a handler runs, because plugins are applied before the run loads.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Protocol

from autoship.core.result import Err, Ok, Result
from autoship.git.repository import Repository
from autoship.hooks.points import ReleaseHooks
from autoship.output.console import ConsoleProtocol
from autoship.release.ci import CiContext
from autoship.release.config import AutoConfig, PluginSpec
from autoship.release.errors import ReleaseError
from autoship.release.hosting import HostingClient


class PluginHost(Protocol):
    @property
    def config(self) -> AutoConfig: ...

    @property
    def hosting(self) -> HostingClient: ...

    @property
    def repo(self) -> Repository: ...

    @property
    def console(self) -> ConsoleProtocol: ...

    @property
    def ci(self) -> CiContext: ...

    @property
    def dry_run(self) -> bool: ...

    def prefix_release(self, version: str) -> str: ...


class Plugin(Protocol):
    name: str

    def apply(self, hooks: ReleaseHooks, host: PluginHost) -> None: ...


PluginFactory = Callable[[Mapping[str, object]], Result[Plugin, ReleaseError]]


def _git_tag(options: Mapping[str, object]) -> Result[Plugin, ReleaseError]:
    from autoship.plugins.git_tag import GitTagPlugin

    return GitTagPlugin.from_options(options)


def _released(options: Mapping[str, object]) -> Result[Plugin, ReleaseError]:
    from autoship.plugins.released import ReleasedPlugin

    return ReleasedPlugin.from_options(options)


BUILTIN_PLUGINS: dict[str, PluginFactory] = {
    "git-tag": _git_tag,
    "released": _released,
}


def load_plugins(
    specs: tuple[PluginSpec, ...],
    *,
    registry: Mapping[str, PluginFactory] = BUILTIN_PLUGINS,
) -> Result[list[Plugin], ReleaseError]:
    plugins: list[Plugin] = []
    for spec in specs:
        factory = registry.get(spec.name)
        if factory is None:
            return Err(
                ReleaseError(
                    kind="config_invalid",
                    message=f"unknown plugin: {spec.name}",
                    hint=f"Available plugins: {', '.join(sorted(registry))}",
                )
            )
        plugin = factory(spec.options)
        if isinstance(plugin, Err):
            return plugin
        plugins.append(plugin.value)
    return Ok(plugins)


def apply_plugins(plugins: list[Plugin], hooks: ReleaseHooks, host: PluginHost) -> None:
    for plugin in plugins:
        plugin.apply(hooks, host)


__all__ = [
    "BUILTIN_PLUGINS",
    "Plugin",
    "PluginFactory",
    "PluginHost",
    "apply_plugins",
    "load_plugins",
]
