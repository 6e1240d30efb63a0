"""Announce a release on the requests and issues it contains.

After a release every merged request in it gets a comment and the
"released" label; issues the request closes (`Fixes #12`, `Closes #3, #4`)
get the same treatment and can optionally be locked. Canary versions only
get the comment.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from autoship.core.result import Err, Ok, Result
from autoship.core.structured import get_bool, get_raw_str, get_str
from autoship.hooks.points import ReleaseHooks
from autoship.plugins import PluginHost
from autoship.release.canary import is_canary
from autoship.release.comments import ensure_label, upsert_comment
from autoship.release.config import AutoConfig
from autoship.release.errors import ReleaseError
from autoship.release.model import AfterRelease, Commit, LabelDefinition

RELEASED_CONTEXT = "released"
DEFAULT_LABEL = "released"
DEFAULT_MESSAGE = ":rocket: %TYPE was released in %VERSION :rocket:"

_CLOSE_ISSUE_RE = re.compile(
    r"(?:Close|Closes|Closed|Fix|Fixes|Fixed|Resolve|Resolves|Resolved)\s((?:#\d+(?:,\s)?)+)",
    re.IGNORECASE,
)
_ISSUE_NUMBER_RE = re.compile(r"#(\d+)")

_OPTIONS = frozenset({"label", "lock_issues", "message"})


def closed_issues(messages: list[str]) -> list[int]:
    """Issue numbers referenced by closing keywords, in order of appearance."""
    seen: dict[int, None] = {}
    for message in messages:
        for refs in _CLOSE_ISSUE_RE.findall(message):
            for number in _ISSUE_NUMBER_RE.findall(refs):
                seen.setdefault(int(number), None)
    return list(seen)


def released_comment(template: str, *, version: str, is_issue: bool) -> str:
    return template.replace("%TYPE", "Issue" if is_issue else "PR").replace("%VERSION", version)


def _first_error(outcomes: Sequence[Result[object, ReleaseError]]) -> Err[ReleaseError] | None:
    for outcome in outcomes:
        if isinstance(outcome, Err):
            return outcome
    return None


@dataclass(frozen=True, slots=True)
class ReleasedPlugin:
    label: str = DEFAULT_LABEL
    lock_issues: bool = False
    message: str = DEFAULT_MESSAGE
    name: str = "released"

    @classmethod
    def from_options(cls, options: Mapping[str, object]) -> Result[ReleasedPlugin, ReleaseError]:
        unknown = set(options) - _OPTIONS
        if unknown:
            return Err(
                ReleaseError(
                    kind="config_invalid",
                    message=f"unknown released options: {', '.join(sorted(unknown))}",
                    hint=f"Known options: {', '.join(sorted(_OPTIONS))}",
                )
            )
        return Ok(
            cls(
                label=get_str(options, "label") or DEFAULT_LABEL,
                lock_issues=bool(get_bool(options, "lock_issues")),
                message=get_raw_str(options, "message") or DEFAULT_MESSAGE,
            )
        )

    def apply(self, hooks: ReleaseHooks, host: PluginHost) -> None:
        def add_label_definition(config: AutoConfig) -> AutoConfig:
            return config.with_label_definition(
                LabelDefinition(
                    name=self.label,
                    description="This issue/pull request has been released.",
                    color="ededed",
                )
            )

        async def after_release(event: AfterRelease) -> Result[None, ReleaseError]:
            if not event.new_version or host.dry_run or not event.commits:
                return Ok(None)
            head = event.commits[0]
            if head.labels & host.config.skip_labels:
                host.console.debug("released: head commit is skipped, not announcing")
                return Ok(None)
            return await self._announce(host, event.commits, event.new_version)

        hooks.modify_config.tap(self.name, add_label_definition)
        hooks.after_release.tap(self.name, after_release)

    async def _announce(
        self, host: PluginHost, commits: tuple[Commit, ...], version: str
    ) -> Result[None, ReleaseError]:
        # One announcement per target; upserts on the same target must not overlap.
        requests = list(dict.fromkeys(c.request for c in commits if c.request is not None))

        announced = await asyncio.gather(
            *(self._comment_and_label(host, n, version, is_issue=False) for n in requests)
        )
        if failed := _first_error(announced):
            return failed

        messages = [c.subject for c in commits]
        found = await asyncio.gather(*(self._request_messages(host, n) for n in requests))
        if failed := _first_error(found):
            return failed
        for outcome in found:
            if isinstance(outcome, Ok):
                messages.extend(outcome.value)

        issues = [n for n in closed_issues(messages) if n not in requests]
        outcomes = await asyncio.gather(*(self._announce_issue(host, n, version) for n in issues))
        if failed := _first_error(outcomes):
            return failed
        return Ok(None)

    async def _request_messages(self, host: PluginHost, number: int) -> Result[list[str], ReleaseError]:
        """The request body lines and its commit messages."""
        request = await asyncio.to_thread(host.hosting.get_request, number)
        if isinstance(request, Err):
            return request
        pr_commits = await asyncio.to_thread(host.hosting.get_commits_for_request, number)
        if isinstance(pr_commits, Err):
            return pr_commits
        return Ok([*request.value.body.splitlines(), *pr_commits.value])

    async def _announce_issue(self, host: PluginHost, number: int, version: str) -> Result[None, ReleaseError]:
        done = await self._comment_and_label(host, number, version, is_issue=True)
        if isinstance(done, Err):
            return done
        if self.lock_issues and not is_canary(version):
            return await asyncio.to_thread(host.hosting.lock_issue, number)
        return Ok(None)

    async def _comment_and_label(
        self, host: PluginHost, number: int, version: str, *, is_issue: bool
    ) -> Result[None, ReleaseError]:
        commented = await asyncio.to_thread(
            lambda: upsert_comment(
                hosting=host.hosting,
                message=released_comment(self.message, version=version, is_issue=is_issue),
                number=number,
                context=RELEASED_CONTEXT,
            )
        )
        if isinstance(commented, Err):
            return commented
        if is_canary(version):
            return Ok(None)

        labelled = await asyncio.to_thread(
            lambda: ensure_label(hosting=host.hosting, number=number, label=self.label)
        )
        if isinstance(labelled, Err):
            return labelled
        return Ok(None)
