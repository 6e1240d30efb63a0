"""Local git repository access.

All operations shell out to git through `autoship.platform.process.run` and
return Result types.

Usage:
    repo = Repository(Path("."))
    match repo.log_range("v1.2.0", None):
        case Ok(entries):
            for entry in entries:
                print(entry.sha, entry.subject)
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from autoship.core.result import Err, Ok, Result
from autoship.platform.process import ProcessError
from autoship.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# Field and record separators for `git log --format`.
_FS = "\x1f"
_RS = "\x1e"

__all__ = [
    "GitError",
    "LogEntry",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class LogEntry:
    sha: str
    subject: str
    body: str

    @property
    def message(self) -> str:
        if not self.body.strip():
            return self.subject
        return f"{self.subject}\n\n{self.body.strip()}"


class Repository:
    """A local git checkout."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return (self.path / ".git").exists()

    def log_range(self, from_ref: str, to_ref: str | None) -> Result[list[LogEntry], GitError]:
        """Commits reachable from `to_ref` (default HEAD) but not from `from_ref`.

        Newest first, matching `git log`.
        """
        rev = f"{from_ref}..{to_ref or 'HEAD'}"
        result = self._run(["log", f"--format=%H{_FS}%s{_FS}%b{_RS}", rev])
        if isinstance(result, Err):
            return Err(self._error("log", result.error))

        entries: list[LogEntry] = []
        for record in result.value.split(_RS):
            record = record.strip("\n")
            if not record:
                continue
            parts = record.split(_FS)
            if len(parts) != 3:
                continue
            sha, subject, body = parts
            entries.append(LogEntry(sha=sha.strip(), subject=subject.strip(), body=body))
        return Ok(entries)

    def latest_tag(self) -> Result[str, GitError]:
        """Most recent tag reachable from HEAD."""
        result = self._run(["describe", "--tags", "--abbrev=0"])
        if isinstance(result, Err):
            return Err(self._error("describe", result.error))
        return Ok(result.value.strip())

    def first_commit(self) -> Result[str, GitError]:
        result = self._run(["rev-list", "--max-parents=0", "HEAD"])
        if isinstance(result, Err):
            return Err(self._error("rev-list", result.error))
        roots = result.value.split()
        if not roots:
            return Err(GitError(command="rev-list", message="repository has no commits"))
        return Ok(roots[-1])

    def head_sha(self, *, short: bool = False) -> Result[str, GitError]:
        args = ["rev-parse", "--short", "HEAD"] if short else ["rev-parse", "HEAD"]
        result = self._run(args)
        if isinstance(result, Err):
            return Err(self._error("rev-parse", result.error))
        return Ok(result.value.strip())

    def current_branch(self) -> str | None:
        """Current branch name, or None on detached HEAD or error."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def remote_url(self, remote: str = "origin") -> str | None:
        result = self._run(["remote", "get-url", remote])
        if isinstance(result, Err):
            return None
        return result.value.strip() or None

    def config_get(self, key: str) -> str | None:
        result = self._run(["config", key])
        if isinstance(result, Err):
            return None
        return result.value.strip() or None

    def config_set(self, key: str, value: str) -> Result[None, GitError]:
        result = self._run(["config", key, value])
        if isinstance(result, Err):
            return Err(self._error("config", result.error))
        return Ok(None)

    def add(self, path: str) -> Result[None, GitError]:
        result = self._run(["add", path])
        if isinstance(result, Err):
            return Err(self._error("add", result.error))
        return Ok(None)

    def commit(self, message: str, *, no_verify: bool = True) -> Result[None, GitError]:
        args = ["commit", "-m", message]
        if no_verify:
            args.append("--no-verify")
        result = self._run(args)
        if isinstance(result, Err):
            return Err(self._error("commit", result.error))
        return Ok(None)

    def tag(self, name: str, message: str) -> Result[None, GitError]:
        result = self._run(["tag", "-a", name, "-m", message])
        if isinstance(result, Err):
            return Err(self._error("tag", result.error))
        return Ok(None)

    def push_with_tags(self, branch: str, *, remote: str = "origin") -> Result[None, GitError]:
        result = self._run(["push", "--follow-tags", "--set-upstream", remote, branch])
        if isinstance(result, Err):
            return Err(self._error("push", result.error))
        return Ok(None)

    def _error(self, command: str, e: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
            returncode=e.returncode,
        )

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push", "clone"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
