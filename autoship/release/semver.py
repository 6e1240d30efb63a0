"""Version engine: label sets in, semantic version bump out."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from autoship.core.result import Err, Ok, Result
from autoship.release.errors import ReleaseError
from autoship.release.model import (
    BUMP_PRECEDENCE,
    BumpKind,
    Commit,
    LabelBumpMap,
    ReleaseBump,
    bump_rank,
)

if TYPE_CHECKING:
    from autoship.release.log import CommitLog

_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def bump(self, kind: ReleaseBump) -> SemVer:
        match kind:
            case "major":
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                return SemVer(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


def parse_version(version: str) -> SemVer | None:
    """Parse `1.2.3` or `v1.2.3`; pre-release and build suffixes are dropped."""
    m = _SEMVER_RE.match(version.strip())
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def is_prerelease(version: str) -> bool:
    m = _SEMVER_RE.match(version.strip())
    return m is not None and m.group(4) is not None


def prefix_release(version: str, *, no_version_prefix: bool) -> str:
    if no_version_prefix or version.startswith("v"):
        return version
    return f"v{version}"


def increment(version: str, bump: ReleaseBump, *, no_version_prefix: bool) -> str | None:
    parsed = parse_version(version)
    if parsed is None:
        return None
    return prefix_release(str(parsed.bump(bump)), no_version_prefix=no_version_prefix)


def commit_bump(labels: Iterable[str], label_map: LabelBumpMap) -> BumpKind:
    """Bump kind of a single commit: the highest kind any of its labels signals."""
    present = frozenset(labels)
    for kind in BUMP_PRECEDENCE:
        if present & label_map.for_kind(kind):
            return kind
    return "none"


def calculate_bump(
    label_sets: Iterable[Iterable[str]], label_map: LabelBumpMap
) -> ReleaseBump | None:
    """Aggregate per-commit bumps into the release bump.

    Each commit is resolved on its own first, so a `skip` label only caps the
    commit that carries it. Returns None when no commit warrants a release.
    """
    best: BumpKind = "none"
    for labels in label_sets:
        kind = commit_bump(labels, label_map)
        if bump_rank(kind) > bump_rank(best):
            best = kind

    match best:
        case "major" | "minor" | "patch":
            return best
        case _:
            return None


def bump_for_commits(commits: Iterable[Commit], label_map: LabelBumpMap) -> ReleaseBump | None:
    return calculate_bump((c.labels for c in commits), label_map)


def compute_bump(
    *,
    log: CommitLog,
    label_map: LabelBumpMap,
    last_release_ref: str,
    up_to_ref: str | None = None,
) -> Result[ReleaseBump | None, ReleaseError]:
    """Release bump for the commits after `last_release_ref` up to `up_to_ref`."""
    commits = log.commits_between(last_release_ref, up_to_ref)
    if isinstance(commits, Err):
        return commits
    return Ok(bump_for_commits(commits.value, label_map))
