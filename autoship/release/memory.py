"""In-memory stand-ins for the hosting platform, the commit log and git.

Used by tests the way `MockConsole` stands in for the terminal. Every
mutation is appended to `calls` so tests can assert on order and absence of
side effects.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

from autoship.core.result import Err, Ok, Result
from autoship.git.repository import GitError
from autoship.release.errors import ReleaseError
from autoship.release.model import (
    Commit,
    IssueComment,
    LabelDefinition,
    ReleaseInfo,
    RequestInfo,
    StatusInfo,
)


@dataclass
class MemoryHosting:
    requests: dict[int, RequestInfo] = field(default_factory=dict)
    request_commits: dict[int, list[str]] = field(default_factory=dict)
    labels: dict[int, set[str]] = field(default_factory=dict)
    comments: dict[int, list[IssueComment]] = field(default_factory=dict)
    repo_labels: set[str] = field(default_factory=set)
    locked: set[int] = field(default_factory=set)
    releases: list[tuple[ReleaseInfo, str, bool]] = field(default_factory=list)
    statuses: list[StatusInfo] = field(default_factory=list)
    merged: list[RequestInfo] = field(default_factory=list)
    failures: dict[str, ReleaseError] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    _next_comment_id: int = 1

    def _fail(self, name: str) -> Err[ReleaseError] | None:
        error = self.failures.get(name)
        return Err(error) if error is not None else None

    def add_request(
        self,
        number: int,
        *,
        body: str = "",
        labels: set[str] | None = None,
        commits: list[str] | None = None,
        head_sha: str = "f" * 40,
    ) -> None:
        self.requests[number] = RequestInfo(
            number=number,
            title=f"request {number}",
            body=body,
            head_sha=head_sha,
            labels=frozenset(labels or ()),
        )
        self.labels[number] = set(labels or ())
        self.request_commits[number] = list(commits or [])

    # Reads

    def get_request(self, number: int) -> Result[RequestInfo, ReleaseError]:
        if failed := self._fail("get_request"):
            return failed
        request = self.requests.get(number)
        if request is None:
            return Err(ReleaseError(kind="platform_failed", message=f"no request #{number}", status=404))
        return Ok(request)

    def get_commits_for_request(self, number: int) -> Result[list[str], ReleaseError]:
        return Ok(list(self.request_commits.get(number, [])))

    def get_labels(self, number: int) -> Result[frozenset[str], ReleaseError]:
        if failed := self._fail("get_labels"):
            return failed
        return Ok(frozenset(self.labels.get(number, set())))

    def list_comments(self, number: int) -> Result[list[IssueComment], ReleaseError]:
        return Ok(list(self.comments.get(number, [])))

    def list_merged_requests(self, *, limit: int) -> Result[list[RequestInfo], ReleaseError]:
        return Ok(self.merged[:limit])

    def list_repo_labels(self) -> Result[frozenset[str], ReleaseError]:
        return Ok(frozenset(self.repo_labels))

    # Writes

    def add_label(self, number: int, label: str) -> Result[None, ReleaseError]:
        if failed := self._fail("add_label"):
            return failed
        self.calls.append(f"add_label:{number}:{label}")
        self.labels.setdefault(number, set()).add(label)
        return Ok(None)

    def create_comment(self, number: int, body: str) -> Result[IssueComment, ReleaseError]:
        if failed := self._fail("create_comment"):
            return failed
        self.calls.append(f"create_comment:{number}")
        comment = IssueComment(id=self._next_comment_id, body=body)
        self._next_comment_id += 1
        self.comments.setdefault(number, []).append(comment)
        return Ok(comment)

    def edit_comment(self, comment_id: int, body: str) -> Result[None, ReleaseError]:
        self.calls.append(f"edit_comment:{comment_id}")
        for thread in self.comments.values():
            for i, c in enumerate(thread):
                if c.id == comment_id:
                    thread[i] = replace(c, body=body)
                    return Ok(None)
        return Err(ReleaseError(kind="platform_failed", message=f"no comment {comment_id}", status=404))

    def delete_comment(self, comment_id: int) -> Result[None, ReleaseError]:
        self.calls.append(f"delete_comment:{comment_id}")
        for thread in self.comments.values():
            thread[:] = [c for c in thread if c.id != comment_id]
        return Ok(None)

    def lock_issue(self, number: int) -> Result[None, ReleaseError]:
        self.calls.append(f"lock_issue:{number}")
        self.locked.add(number)
        return Ok(None)

    def update_request_body(self, number: int, body: str) -> Result[None, ReleaseError]:
        self.calls.append(f"update_request_body:{number}")
        self.requests[number] = replace(self.requests[number], body=body)
        return Ok(None)

    def create_release(
        self, *, tag: str, notes: str, prerelease: bool = False
    ) -> Result[ReleaseInfo, ReleaseError]:
        if failed := self._fail("create_release"):
            return failed
        self.calls.append(f"create_release:{tag}")
        info = ReleaseInfo(tag=tag, url=f"https://example.test/releases/{tag}", id=len(self.releases) + 1)
        self.releases.append((info, notes, prerelease))
        return Ok(info)

    def create_status(self, status: StatusInfo) -> Result[None, ReleaseError]:
        if failed := self._fail("create_status"):
            return failed
        self.calls.append(f"create_status:{status.state}")
        self.statuses.append(status)
        return Ok(None)

    def create_label(self, definition: LabelDefinition) -> Result[None, ReleaseError]:
        self.calls.append(f"create_label:{definition.name}")
        self.repo_labels.add(definition.name)
        return Ok(None)


@dataclass
class MemoryCommitLog:
    """Commit log over a fixed list (newest first).

    `ranges` overrides the answer for specific `from_ref` values.
    """

    commits: list[Commit] = field(default_factory=list)
    latest_ref: str = "v1.0.0"
    head_short_sha: str = "abc1234"
    ranges: dict[str, list[Commit]] = field(default_factory=dict)
    queries: list[tuple[str, str | None]] = field(default_factory=list)

    def commits_between(
        self, from_ref: str, to_ref: str | None = None
    ) -> Result[list[Commit], ReleaseError]:
        self.queries.append((from_ref, to_ref))
        return Ok(list(self.ranges.get(from_ref, self.commits)))

    def latest_release_ref(self) -> Result[str, ReleaseError]:
        return Ok(self.latest_ref)

    def first_commit_ref(self) -> Result[str, ReleaseError]:
        return Ok("0" * 40)

    def current_head_short_sha(self) -> Result[str, ReleaseError]:
        return Ok(self.head_short_sha)


@dataclass
class MemoryRepository:
    """The subset of `Repository` the release flow drives, kept in memory.

    Files are still written under `path`; only git commands are simulated.
    """

    path: Path
    tags: list[str] = field(default_factory=list)
    branch: str | None = "main"
    remote: str | None = None
    git_config: dict[str, str] = field(default_factory=dict)
    staged: list[str] = field(default_factory=list)
    commits: list[str] = field(default_factory=list)
    pushed: list[str] = field(default_factory=list)
    head: str = "abc1234def5678"

    def latest_tag(self) -> Result[str, GitError]:
        if not self.tags:
            return Err(GitError(command="describe", message="No names found"))
        return Ok(self.tags[-1])

    def head_sha(self, *, short: bool = False) -> Result[str, GitError]:
        return Ok(self.head[:7] if short else self.head)

    def current_branch(self) -> str | None:
        return self.branch

    def remote_url(self, remote: str = "origin") -> str | None:
        del remote
        return self.remote

    def config_get(self, key: str) -> str | None:
        return self.git_config.get(key)

    def config_set(self, key: str, value: str) -> Result[None, GitError]:
        self.git_config[key] = value
        return Ok(None)

    def add(self, path: str) -> Result[None, GitError]:
        self.staged.append(path)
        return Ok(None)

    def commit(self, message: str, *, no_verify: bool = True) -> Result[None, GitError]:
        del no_verify
        self.commits.append(message)
        return Ok(None)

    def tag(self, name: str, message: str) -> Result[None, GitError]:
        del message
        self.tags.append(name)
        return Ok(None)

    def push_with_tags(self, branch: str, *, remote: str = "origin") -> Result[None, GitError]:
        self.pushed.append(f"{remote}/{branch}")
        return Ok(None)
