"""The fixed set of extension points a release run exposes.

Each field documents the arguments its taps receive and what they return.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING

from autoship.hooks.registry import HookKind, HookPoint
from autoship.release.model import Author, CanaryFailure, RepoIdentity

if TYPE_CHECKING:
    from autoship.release.config import AutoConfig

PrefixRelease = Callable[[str], str]


@dataclass(frozen=True, slots=True)
class ReleaseHooks:
    # (config) -> config. Plugins return an amended snapshot.
    modify_config: HookPoint[AutoConfig]
    # (config). Check for platform specific secrets here.
    before_run: HookPoint[None]
    # (). Raised errors abort shipit before anything happens.
    before_ship_it: HookPoint[None]
    # (ChangelogLifecycle). Taps may amend lifecycle.draft.text.
    before_commit_changelog: HookPoint[None]
    # (ChangelogLifecycle)
    after_add_to_changelog: HookPoint[None]
    # (bump). Version the project, usually tagging it.
    version: HookPoint[None]
    after_version: HookPoint[None]
    # (bump). Publish to a package distributor and push tags.
    publish: HookPoint[None]
    after_publish: HookPoint[None]
    # (AfterRelease)
    after_release: HookPoint[None]
    # (new_version | None, commits)
    after_ship_it: HookPoint[None]
    # (bump, suffix) -> published identifier or CanaryFailure
    canary: HookPoint[str | CanaryFailure]
    # (prefix_release) -> previous version
    get_previous_version: HookPoint[str]
    # () -> Author
    get_author: HookPoint[Author]
    # () -> RepoIdentity
    get_repository: HookPoint[RepoIdentity]

    def points(self) -> tuple[HookPoint[object], ...]:
        return tuple(getattr(self, f.name) for f in fields(self))


def make_hooks() -> ReleaseHooks:
    return ReleaseHooks(
        modify_config=HookPoint("modify_config", HookKind.WATERFALL),
        before_run=HookPoint("before_run", HookKind.BROADCAST),
        before_ship_it=HookPoint("before_ship_it", HookKind.BROADCAST),
        before_commit_changelog=HookPoint("before_commit_changelog", HookKind.SERIES),
        after_add_to_changelog=HookPoint("after_add_to_changelog", HookKind.SERIES),
        version=HookPoint("version", HookKind.PARALLEL),
        after_version=HookPoint("after_version", HookKind.PARALLEL),
        publish=HookPoint("publish", HookKind.PARALLEL),
        after_publish=HookPoint("after_publish", HookKind.PARALLEL),
        after_release=HookPoint("after_release", HookKind.PARALLEL),
        after_ship_it=HookPoint("after_ship_it", HookKind.BROADCAST),
        canary=HookPoint("canary", HookKind.SERIES_BAIL),
        get_previous_version=HookPoint("get_previous_version", HookKind.SERIES_BAIL),
        get_author=HookPoint("get_author", HookKind.SERIES_BAIL),
        get_repository=HookPoint("get_repository", HookKind.SERIES_BAIL),
    )
