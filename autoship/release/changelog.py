from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Protocol

from autoship.core.result import Err, Ok, Result
from autoship.release.errors import ReleaseError
from autoship.release.model import BumpKind, Commit, LabelBumpMap, ReleaseBump
from autoship.release.semver import commit_bump

SECTION_TITLES: dict[BumpKind, str] = {
    "major": "💥 Breaking Change",
    "minor": "🚀 Enhancement",
    "patch": "🐛 Bug Fix",
    "skip": "🏠 Internal",
    "none": "Other Changes",
}


class ChangelogGenerator(Protocol):
    def generate(
        self, commits: list[Commit], previous_version: str, bump: ReleaseBump | None
    ) -> str: ...


@dataclass(frozen=True, slots=True)
class MarkdownChangelog:
    """Release notes grouped by the bump kind each commit resolves to."""

    labels: LabelBumpMap
    repo_url: str | None = None

    def _line(self, commit: Commit) -> str:
        if commit.request is not None:
            if self.repo_url:
                return f"- {commit.subject} ([#{commit.request}]({self.repo_url}/pull/{commit.request}))"
            return f"- {commit.subject} (#{commit.request})"
        return f"- {commit.subject} ({commit.short_sha})"

    def generate(
        self, commits: list[Commit], previous_version: str, bump: ReleaseBump | None
    ) -> str:
        del previous_version, bump
        grouped: dict[BumpKind, list[str]] = {}
        for commit in commits:
            grouped.setdefault(commit_bump(commit.labels, self.labels), []).append(self._line(commit))

        blocks: list[str] = []
        for kind, title in SECTION_TITLES.items():
            lines = grouped.get(kind)
            if lines:
                blocks.append(f"#### {title}\n\n" + "\n".join(lines))
        return "\n\n".join(blocks)


def render_entry(*, notes: str, version: str, today: date) -> str:
    return f"# {version} ({today.strftime('%a %b %d %Y')})\n\n{notes.strip()}\n"


def add_to_changelog(
    *, path: Path, notes: str, version: str, today: date
) -> Result[None, ReleaseError]:
    """Prepend a release entry to the changelog file, creating it if needed."""
    entry = render_entry(notes=notes, version=version, today=today)
    try:
        existing = path.read_text(encoding="utf-8") if path.exists() else ""
        content = entry if not existing.strip() else f"{entry}\n---\n\n{existing}"
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="changelog_failed",
                message=f"failed to write changelog: {e}",
                hint=str(path),
            )
        )
    return Ok(None)
