from __future__ import annotations

from pathlib import Path

from autoship.core.result import Err, Ok
from autoship.git.repository import GitError, LogEntry
from autoship.release.log import GitCommitLog, request_number
from autoship.release.memory import MemoryHosting


class LogRepository:
    """Just enough of `Repository` for the commit log."""

    def __init__(self, entries: list[LogEntry], *, tag: str | None = "v1.0.0") -> None:
        self.path = Path(".")
        self.entries = entries
        self.tag = tag

    def log_range(self, from_ref: str, to_ref: str | None):
        del from_ref, to_ref
        return Ok(self.entries)

    def latest_tag(self):
        if self.tag is None:
            return Err(GitError(command="describe", message="No names found"))
        return Ok(self.tag)

    def first_commit(self):
        return Ok("root")

    def head_sha(self, *, short: bool = False):
        return Ok("abc1234" if short else "abc1234" + "0" * 33)


def test_request_number() -> None:
    assert request_number("Merge pull request #12 from acme/feature") == 12
    assert request_number("Add widget (#34)") == 34
    assert request_number("Fix typo #56 in docs") is None
    assert request_number("plain commit") is None


def test_commits_carry_request_labels() -> None:
    hosting = MemoryHosting()
    hosting.add_request(12, labels={"minor"})
    entries = [
        LogEntry(sha="a" * 40, subject="Merge pull request #12 from acme/x", body="Add x"),
        LogEntry(sha="b" * 40, subject="direct push", body=""),
    ]
    log = GitCommitLog(repo=LogRepository(entries), hosting=hosting)  # type: ignore[arg-type]

    result = log.commits_between("v1.0.0")

    assert isinstance(result, Ok)
    first, second = result.value
    assert first.request == 12
    assert first.labels == frozenset({"minor"})
    assert first.message == "Merge pull request #12 from acme/x\n\nAdd x"
    assert second.request is None
    assert second.labels == frozenset()


def test_labels_are_fetched_once_per_request() -> None:
    class CountingHosting(MemoryHosting):
        reads: int = 0

        def get_labels(self, number: int):
            self.reads += 1
            return super().get_labels(number)

    hosting = CountingHosting()
    hosting.add_request(7, labels={"patch"})
    entries = [
        LogEntry(sha="a" * 40, subject="One (#7)", body=""),
        LogEntry(sha="b" * 40, subject="Two (#7)", body=""),
    ]
    log = GitCommitLog(repo=LogRepository(entries), hosting=hosting)  # type: ignore[arg-type]

    log.commits_between("v1.0.0")
    log.commits_between("v1.0.0")

    assert hosting.reads == 1


def test_latest_release_ref_falls_back_to_first_commit() -> None:
    log = GitCommitLog(repo=LogRepository([], tag=None), hosting=MemoryHosting())  # type: ignore[arg-type]
    assert log.latest_release_ref() == Ok("root")

    tagged = GitCommitLog(repo=LogRepository([]), hosting=MemoryHosting())  # type: ignore[arg-type]
    assert tagged.latest_release_ref() == Ok("v1.0.0")
    assert tagged.current_head_short_sha() == Ok("abc1234")
