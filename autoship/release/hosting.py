"""Contract between the release flow and the git hosting platform."""

from __future__ import annotations

from typing import Protocol

from autoship.core.result import Result
from autoship.release.errors import ReleaseError
from autoship.release.model import (
    IssueComment,
    LabelDefinition,
    ReleaseInfo,
    RequestInfo,
    StatusInfo,
)


class HostingClient(Protocol):
    """Operations autoship needs from the hosting platform.

    "Request" covers pull/merge requests; requests and issues share one
    number space, so label and comment calls accept either.
    """

    def get_request(self, number: int) -> Result[RequestInfo, ReleaseError]: ...

    def get_commits_for_request(self, number: int) -> Result[list[str], ReleaseError]:
        """Full commit messages of the request, oldest first."""
        ...

    def get_labels(self, number: int) -> Result[frozenset[str], ReleaseError]: ...

    def add_label(self, number: int, label: str) -> Result[None, ReleaseError]: ...

    def list_comments(self, number: int) -> Result[list[IssueComment], ReleaseError]: ...

    def create_comment(self, number: int, body: str) -> Result[IssueComment, ReleaseError]: ...

    def edit_comment(self, comment_id: int, body: str) -> Result[None, ReleaseError]: ...

    def delete_comment(self, comment_id: int) -> Result[None, ReleaseError]: ...

    def lock_issue(self, number: int) -> Result[None, ReleaseError]: ...

    def update_request_body(self, number: int, body: str) -> Result[None, ReleaseError]: ...

    def create_release(
        self, *, tag: str, notes: str, prerelease: bool = False
    ) -> Result[ReleaseInfo, ReleaseError]: ...

    def create_status(self, status: StatusInfo) -> Result[None, ReleaseError]: ...

    def list_merged_requests(self, *, limit: int) -> Result[list[RequestInfo], ReleaseError]:
        """Recently merged requests, most recently merged first."""
        ...

    def list_repo_labels(self) -> Result[frozenset[str], ReleaseError]: ...

    def create_label(self, definition: LabelDefinition) -> Result[None, ReleaseError]: ...
