"""Commit-log provider: local git history enriched with request labels."""

from __future__ import annotations

import re
from typing import Protocol

from autoship.core.result import Err, Ok, Result
from autoship.git.repository import GitError, LogEntry, Repository
from autoship.release.errors import ReleaseError
from autoship.release.hosting import HostingClient
from autoship.release.model import Commit

_MERGE_RE = re.compile(r"^Merge pull request #(\d+)")
_SQUASH_RE = re.compile(r"\(#(\d+)\)\s*$")


class CommitLog(Protocol):
    def commits_between(
        self, from_ref: str, to_ref: str | None = None
    ) -> Result[list[Commit], ReleaseError]:
        """Commits after `from_ref` up to `to_ref` (default HEAD), newest first."""
        ...

    def latest_release_ref(self) -> Result[str, ReleaseError]: ...

    def first_commit_ref(self) -> Result[str, ReleaseError]: ...

    def current_head_short_sha(self) -> Result[str, ReleaseError]: ...


def request_number(subject: str) -> int | None:
    """Request number from a merge or squash commit subject."""
    m = _MERGE_RE.match(subject) or _SQUASH_RE.search(subject)
    return int(m.group(1)) if m else None


def _git_error(e: GitError) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=f"git {e.command} failed", hint=e.message)


class GitCommitLog:
    """CommitLog over a local checkout.

    Labels are read from the originating request of each commit, once per
    request.
    """

    def __init__(self, *, repo: Repository, hosting: HostingClient) -> None:
        self.repo = repo
        self.hosting = hosting
        self._labels: dict[int, frozenset[str]] = {}

    def commits_between(
        self, from_ref: str, to_ref: str | None = None
    ) -> Result[list[Commit], ReleaseError]:
        entries = self.repo.log_range(from_ref, to_ref)
        if isinstance(entries, Err):
            return Err(_git_error(entries.error))

        out: list[Commit] = []
        for entry in entries.value:
            commit = self._to_commit(entry)
            if isinstance(commit, Err):
                return commit
            out.append(commit.value)
        return Ok(out)

    def _to_commit(self, entry: LogEntry) -> Result[Commit, ReleaseError]:
        number = request_number(entry.subject)
        labels: frozenset[str] = frozenset()
        if number is not None:
            cached = self._labels.get(number)
            if cached is None:
                fetched = self.hosting.get_labels(number)
                if isinstance(fetched, Err):
                    return fetched
                cached = fetched.value
                self._labels[number] = cached
            labels = cached

        return Ok(
            Commit(
                sha=entry.sha,
                subject=entry.subject,
                message=entry.message,
                labels=labels,
                request=number,
            )
        )

    def latest_release_ref(self) -> Result[str, ReleaseError]:
        """Latest tag on the branch, else the first commit."""
        tag = self.repo.latest_tag()
        if isinstance(tag, Ok) and tag.value:
            return tag
        return self.first_commit_ref()

    def first_commit_ref(self) -> Result[str, ReleaseError]:
        first = self.repo.first_commit()
        if isinstance(first, Err):
            return Err(_git_error(first.error))
        return first

    def current_head_short_sha(self) -> Result[str, ReleaseError]:
        sha = self.repo.head_sha(short=True)
        if isinstance(sha, Err):
            return Err(_git_error(sha.error))
        return sha
