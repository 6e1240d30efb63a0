"""GitHub binding of `HostingClient`, driven through the `gh` CLI."""

from __future__ import annotations

import json
import re
import shutil
from pathlib import Path
from time import sleep
from typing import Literal

from autoship.core.result import Err, Ok, Result
from autoship.core.structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_int,
    get_raw_str,
    get_str,
    get_table,
)
from autoship.platform.process import ProcessError
from autoship.platform.process import run as run_process
from autoship.release.errors import ReleaseError
from autoship.release.model import (
    IssueComment,
    LabelDefinition,
    ReleaseInfo,
    RepoIdentity,
    RequestInfo,
    StatusInfo,
)
from autoship.release.timeouts import (
    GH_PAGE_SIZE,
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)

Method = Literal["GET", "POST", "PATCH", "PUT", "DELETE"]

_HTTP_STATUS_RE = re.compile(r"HTTP (\d{3})")


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def http_status(error: ProcessError) -> int | None:
    m = _HTTP_STATUS_RE.search(f"{error.stderr}\n{error.stdout}")
    return int(m.group(1)) if m else None


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, workspace_root: Path) -> Result[None, ReleaseError]:
    result = run_process(["gh", "auth", "status"], cwd=workspace_root, timeout=GH_TIMEOUT_SECONDS)
    if isinstance(result, Err):
        return Err(
            ReleaseError(
                kind="gh_auth_required",
                message="gh auth required",
                hint="Run: gh auth login, or export GH_TOKEN",
            )
        )
    return Ok(None)


def _request_from_payload(data: StrDict) -> RequestInfo | None:
    number = get_int(data, "number")
    if number is None:
        return None
    head = get_table(data, "head") or {}
    labels: set[str] = set()
    for item in as_obj_list(data.get("labels")) or []:
        label = as_str_dict(item)
        name = get_str(label, "name") if label is not None else None
        if name is not None:
            labels.add(name)
    return RequestInfo(
        number=number,
        title=get_str(data, "title") or "",
        body=get_raw_str(data, "body") or "",
        head_sha=get_str(head, "sha") or "",
        merged_at=get_str(data, "merged_at"),
        labels=frozenset(labels),
    )


class GhClient:
    """HostingClient implementation for one repository.

    Reads are retried on transient failures; writes are attempted once and
    their failure is reported with the HTTP status attached.
    """

    def __init__(self, *, workspace_root: Path, repo: RepoIdentity, host: str | None = None) -> None:
        self.workspace_root = workspace_root
        self.repo = repo
        self.host = host

    # Transport

    def _cmd(self, method: Method, endpoint: str, *, has_body: bool) -> list[str]:
        cmd = ["gh", "api", "--method", method, endpoint]
        if self.host:
            cmd += ["--hostname", self.host]
        if has_body:
            cmd += ["--input", "-"]
        return cmd

    def _read(self, endpoint: str, *, message: str) -> Result[object, ReleaseError]:
        cmd = self._cmd("GET", endpoint, has_body=False)
        attempts = max(1, GH_READ_RETRY_ATTEMPTS)
        for attempt in range(attempts):
            result = run_process(cmd, cwd=self.workspace_root, timeout=GH_TIMEOUT_SECONDS)
            if isinstance(result, Ok):
                return self._decode(result.value, endpoint=endpoint)

            error = result.error
            if attempt < attempts - 1 and _is_transient_gh_error(error):
                sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
                continue
            return Err(self._platform_error(message, error, endpoint))

        return Err(ReleaseError(kind="platform_failed", message=message, hint=endpoint))

    def _write(
        self,
        method: Method,
        endpoint: str,
        *,
        message: str,
        body: StrDict | None = None,
    ) -> Result[object, ReleaseError]:
        cmd = self._cmd(method, endpoint, has_body=body is not None)
        result = run_process(
            cmd,
            cwd=self.workspace_root,
            timeout=GH_TIMEOUT_SECONDS,
            input_text=json.dumps(body) if body is not None else None,
        )
        if isinstance(result, Err):
            return Err(self._platform_error(message, result.error, endpoint))
        if not result.value.strip():
            return Ok(None)
        return self._decode(result.value, endpoint=endpoint)

    def _decode(self, payload: str, *, endpoint: str) -> Result[object, ReleaseError]:
        try:
            obj: object = json.loads(payload)
        except json.JSONDecodeError as e:
            return Err(
                ReleaseError(
                    kind="platform_failed",
                    message=f"gh api returned invalid JSON: {e}",
                    hint=endpoint,
                )
            )
        return Ok(obj)

    def _platform_error(self, message: str, error: ProcessError, endpoint: str) -> ReleaseError:
        return ReleaseError(
            kind="platform_failed",
            message=message,
            hint=error.stderr.strip() or endpoint,
            status=http_status(error),
        )

    def _slug(self, path: str) -> str:
        return f"repos/{self.repo.slug}/{path}"

    # Requests

    def get_request(self, number: int) -> Result[RequestInfo, ReleaseError]:
        obj = self._read(self._slug(f"pulls/{number}"), message=f"failed to read PR #{number}")
        if isinstance(obj, Err):
            return obj
        data = as_str_dict(obj.value)
        info = _request_from_payload(data) if data is not None else None
        if info is None:
            return Err(ReleaseError(kind="platform_failed", message=f"unexpected PR payload: #{number}"))
        return Ok(info)

    def get_commits_for_request(self, number: int) -> Result[list[str], ReleaseError]:
        obj = self._read(
            self._slug(f"pulls/{number}/commits?per_page={GH_PAGE_SIZE}"),
            message=f"failed to list commits of PR #{number}",
        )
        if isinstance(obj, Err):
            return obj
        messages: list[str] = []
        for item in as_obj_list(obj.value) or []:
            d = as_str_dict(item)
            commit = get_table(d, "commit") if d is not None else None
            msg = get_raw_str(commit, "message") if commit is not None else None
            if msg is not None:
                messages.append(msg)
        return Ok(messages)

    def update_request_body(self, number: int, body: str) -> Result[None, ReleaseError]:
        result = self._write(
            "PATCH",
            self._slug(f"pulls/{number}"),
            message=f"failed to update body of PR #{number}",
            body={"body": body},
        )
        return Ok(None) if isinstance(result, Ok) else result

    def list_merged_requests(self, *, limit: int) -> Result[list[RequestInfo], ReleaseError]:
        obj = self._read(
            self._slug(f"pulls?state=closed&sort=updated&direction=desc&per_page={limit}"),
            message="failed to list closed PRs",
        )
        if isinstance(obj, Err):
            return obj
        out: list[RequestInfo] = []
        for item in as_obj_list(obj.value) or []:
            d = as_str_dict(item)
            info = _request_from_payload(d) if d is not None else None
            if info is not None and info.merged_at:
                out.append(info)
        # ISO-8601 UTC timestamps sort lexicographically.
        out.sort(key=lambda r: r.merged_at or "", reverse=True)
        return Ok(out)

    # Labels

    def get_labels(self, number: int) -> Result[frozenset[str], ReleaseError]:
        obj = self._read(
            self._slug(f"issues/{number}/labels?per_page={GH_PAGE_SIZE}"),
            message=f"failed to read labels of #{number}",
        )
        if isinstance(obj, Err):
            return obj
        return Ok(self._label_names(obj.value))

    def add_label(self, number: int, label: str) -> Result[None, ReleaseError]:
        result = self._write(
            "POST",
            self._slug(f"issues/{number}/labels"),
            message=f"failed to add label '{label}' to #{number}",
            body={"labels": [label]},
        )
        return Ok(None) if isinstance(result, Ok) else result

    def list_repo_labels(self) -> Result[frozenset[str], ReleaseError]:
        obj = self._read(
            self._slug(f"labels?per_page={GH_PAGE_SIZE}"), message="failed to list repository labels"
        )
        if isinstance(obj, Err):
            return obj
        return Ok(self._label_names(obj.value))

    def create_label(self, definition: LabelDefinition) -> Result[None, ReleaseError]:
        body: StrDict = {"name": definition.name, "description": definition.description}
        if definition.color:
            body["color"] = definition.color
        result = self._write(
            "POST",
            self._slug("labels"),
            message=f"failed to create label '{definition.name}'",
            body=body,
        )
        return Ok(None) if isinstance(result, Ok) else result

    def _label_names(self, payload: object) -> frozenset[str]:
        names: set[str] = set()
        for item in as_obj_list(payload) or []:
            d = as_str_dict(item)
            name = get_str(d, "name") if d is not None else None
            if name is not None:
                names.add(name)
        return frozenset(names)

    # Comments

    def list_comments(self, number: int) -> Result[list[IssueComment], ReleaseError]:
        obj = self._read(
            self._slug(f"issues/{number}/comments?per_page={GH_PAGE_SIZE}"),
            message=f"failed to list comments of #{number}",
        )
        if isinstance(obj, Err):
            return obj
        out: list[IssueComment] = []
        for item in as_obj_list(obj.value) or []:
            d = as_str_dict(item)
            if d is None:
                continue
            comment_id = get_int(d, "id")
            if comment_id is None:
                continue
            out.append(IssueComment(id=comment_id, body=get_raw_str(d, "body") or ""))
        return Ok(out)

    def create_comment(self, number: int, body: str) -> Result[IssueComment, ReleaseError]:
        result = self._write(
            "POST",
            self._slug(f"issues/{number}/comments"),
            message=f"failed to comment on #{number}",
            body={"body": body},
        )
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value) or {}
        return Ok(IssueComment(id=get_int(data, "id") or 0, body=body))

    def edit_comment(self, comment_id: int, body: str) -> Result[None, ReleaseError]:
        result = self._write(
            "PATCH",
            self._slug(f"issues/comments/{comment_id}"),
            message=f"failed to edit comment {comment_id}",
            body={"body": body},
        )
        return Ok(None) if isinstance(result, Ok) else result

    def delete_comment(self, comment_id: int) -> Result[None, ReleaseError]:
        result = self._write(
            "DELETE",
            self._slug(f"issues/comments/{comment_id}"),
            message=f"failed to delete comment {comment_id}",
        )
        return Ok(None) if isinstance(result, Ok) else result

    def lock_issue(self, number: int) -> Result[None, ReleaseError]:
        result = self._write(
            "PUT",
            self._slug(f"issues/{number}/lock"),
            message=f"failed to lock issue #{number}",
            body={"lock_reason": "resolved"},
        )
        return Ok(None) if isinstance(result, Ok) else result

    # Releases and statuses

    def create_release(
        self, *, tag: str, notes: str, prerelease: bool = False
    ) -> Result[ReleaseInfo, ReleaseError]:
        result = self._write(
            "POST",
            self._slug("releases"),
            message=f"failed to create release {tag}",
            body={"tag_name": tag, "name": tag, "body": notes, "prerelease": prerelease},
        )
        if isinstance(result, Err):
            return result
        data = as_str_dict(result.value) or {}
        return Ok(
            ReleaseInfo(
                tag=get_str(data, "tag_name") or tag,
                url=get_str(data, "html_url") or "",
                id=get_int(data, "id"),
            )
        )

    def create_status(self, status: StatusInfo) -> Result[None, ReleaseError]:
        body: StrDict = {
            "state": status.state,
            "description": status.description,
            "context": status.context,
        }
        if status.target_url:
            body["target_url"] = status.target_url
        result = self._write(
            "POST",
            self._slug(f"statuses/{status.sha}"),
            message=f"failed to post status for {status.sha[:7]}",
            body=body,
        )
        return Ok(None) if isinstance(result, Ok) else result
