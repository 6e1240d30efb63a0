from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

BumpKind = Literal["major", "minor", "patch", "skip", "none"]
ReleaseBump = Literal["major", "minor", "patch"]
StatusState = Literal["error", "failure", "pending", "success"]

# Highest precedence first. Not configurable.
BUMP_PRECEDENCE: tuple[BumpKind, ...] = ("major", "minor", "patch", "skip", "none")


def bump_rank(kind: BumpKind) -> int:
    """Higher rank wins; `none` ranks lowest."""
    return len(BUMP_PRECEDENCE) - BUMP_PRECEDENCE.index(kind)


@dataclass(frozen=True, slots=True)
class Commit:
    sha: str
    subject: str
    message: str
    labels: frozenset[str] = frozenset()
    request: int | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


@dataclass(frozen=True, slots=True)
class LabelBumpMap:
    """Labels signalling each bump kind.

    `label_bump_map()` rejects conflicting labels when the config is read;
    the release run checks `conflict()` again after plugins amend the config.
    """

    labels: Mapping[BumpKind, frozenset[str]] = field(default_factory=dict)

    def for_kind(self, kind: BumpKind) -> frozenset[str]:
        return self.labels.get(kind, frozenset())

    def all_labels(self) -> frozenset[str]:
        out: set[str] = set()
        for kind in BUMP_PRECEDENCE:
            out |= self.for_kind(kind)
        return frozenset(out)

    def conflict(self) -> tuple[str, BumpKind, BumpKind] | None:
        """The first label configured for two bump kinds, with both kinds."""
        owner_of: dict[str, BumpKind] = {}
        for kind in BUMP_PRECEDENCE:
            for name in sorted(self.for_kind(kind)):
                previous = owner_of.setdefault(name, kind)
                if previous != kind:
                    return name, previous, kind
        return None


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    bump: ReleaseBump | None
    commits: tuple[Commit, ...]
    release_notes: str
    current_version: str
    last_release: str


@dataclass(frozen=True, slots=True)
class CanaryIdentifier:
    request: int | None
    build: str | None
    short_sha: str


@dataclass(frozen=True, slots=True)
class CanaryFailure:
    """Returned by a canary publisher that declined or failed gracefully."""

    error: str


@dataclass(frozen=True, slots=True)
class RequestInfo:
    number: int
    title: str
    body: str
    head_sha: str
    merged_at: str | None = None
    labels: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class IssueComment:
    id: int
    body: str


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """Metadata of a release object created on the hosting platform."""

    tag: str
    url: str
    id: int | None = None


@dataclass(frozen=True, slots=True)
class LabelDefinition:
    name: str
    description: str = ""
    color: str | None = None


@dataclass(frozen=True, slots=True)
class StatusInfo:
    sha: str
    state: StatusState
    description: str
    context: str
    target_url: str | None = None


@dataclass(slots=True)
class NotesDraft:
    """Release notes open for amendment during `before_commit_changelog`."""

    text: str


@dataclass(frozen=True, slots=True)
class ChangelogLifecycle:
    context: ReleaseContext
    draft: NotesDraft


@dataclass(frozen=True, slots=True)
class AfterRelease:
    last_release: str
    new_version: str | None
    commits: tuple[Commit, ...]
    release_notes: str
    release: ReleaseInfo | None = None


@dataclass(frozen=True, slots=True)
class Author:
    name: str | None = None
    email: str | None = None


@dataclass(frozen=True, slots=True)
class RepoIdentity:
    owner: str
    repo: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"
