"""Version a project by tagging it; publish by pushing the tag."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from autoship.core.result import Err, Ok, Result
from autoship.git.repository import GitError
from autoship.hooks.points import PrefixRelease, ReleaseHooks
from autoship.plugins import PluginHost
from autoship.release.errors import ReleaseError
from autoship.release.model import ReleaseBump, RepoIdentity
from autoship.release.semver import increment


_REMOTE_RE = re.compile(r"[:/]([^/:]+)/([^/]+?)(?:\.git)?/?$")


def parse_remote(url: str) -> RepoIdentity | None:
    """Owner and repo from an ssh or https remote URL."""
    m = _REMOTE_RE.search(url.strip())
    if m is None:
        return None
    return RepoIdentity(owner=m.group(1), repo=m.group(2))


def _git_failed(e: GitError) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=f"git {e.command} failed", hint=e.message)


@dataclass(frozen=True, slots=True)
class GitTagPlugin:
    name: str = "git-tag"

    @classmethod
    def from_options(cls, options: Mapping[str, object]) -> Result[GitTagPlugin, ReleaseError]:
        if options:
            return Err(
                ReleaseError(
                    kind="config_invalid",
                    message=f"git-tag takes no options, got: {', '.join(sorted(options))}",
                )
            )
        return Ok(cls())

    def apply(self, hooks: ReleaseHooks, host: PluginHost) -> None:
        def previous_version(prefix_release: PrefixRelease) -> str | None:
            tag = host.repo.latest_tag()
            if isinstance(tag, Err) or not tag.value:
                host.console.debug("git-tag: no tags found")
                return None
            return prefix_release(tag.value)

        def version(bump: ReleaseBump) -> Result[None, ReleaseError]:
            tag = host.repo.latest_tag()
            last = tag.value if isinstance(tag, Ok) and tag.value else host.prefix_release("0.0.0")
            new_tag = increment(last, bump, no_version_prefix=host.config.no_version_prefix)
            if new_tag is None:
                return Err(
                    ReleaseError(
                        kind="invalid_input",
                        message=f"latest tag is not a semantic version: {last}",
                    )
                )
            if host.dry_run:
                host.console.info(f"Would have tagged {new_tag}")
                return Ok(None)

            tagged = host.repo.tag(new_tag, f"Update version to {new_tag}")
            if isinstance(tagged, Err):
                return Err(_git_failed(tagged.error))
            host.console.debug(f"git-tag: tagged {new_tag}")
            return Ok(None)

        def repository() -> RepoIdentity | None:
            url = host.repo.remote_url()
            return parse_remote(url) if url else None

        def publish(bump: ReleaseBump) -> Result[None, ReleaseError]:
            del bump
            pushed = host.repo.push_with_tags(host.config.base_branch)
            if isinstance(pushed, Err):
                return Err(_git_failed(pushed.error))
            return Ok(None)

        hooks.get_repository.tap(self.name, repository)
        hooks.get_previous_version.tap(self.name, previous_version)
        hooks.version.tap(self.name, version)
        hooks.publish.tap(self.name, publish)
