"""Git operations.

Usage:
    from autoship.git import Repository

    repo = Repository(Path("."))
    tag = repo.latest_tag()
"""

from autoship.git.repository import GitError, LogEntry, Repository

__all__ = [
    "GitError",
    "LogEntry",
    "Repository",
]
