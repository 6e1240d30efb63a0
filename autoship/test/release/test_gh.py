from __future__ import annotations

import json
from pathlib import Path

import pytest

from autoship.core.result import Err, Ok
from autoship.platform.process import ProcessError
from autoship.release import gh as gh_mod
from autoship.release.model import RepoIdentity, StatusInfo


def _err(*, stderr: str, returncode: int = 1) -> Err[ProcessError]:
    return Err(
        ProcessError(
            command=("gh", "api", "repos/acme/widget"),
            returncode=returncode,
            stdout="",
            stderr=stderr,
        )
    )


def _no_sleep(seconds: float) -> None:
    del seconds


class FakeGh:
    def __init__(self, responses: list[object]) -> None:
        self.responses = responses
        self.calls: list[list[str]] = []
        self.inputs: list[str | None] = []

    def __call__(
        self,
        cmd: list[str],
        *,
        cwd: Path,
        timeout: float | None = None,
        input_text: str | None = None,
    ):
        del cwd, timeout
        self.calls.append(cmd)
        self.inputs.append(input_text)
        return self.responses.pop(0)


def _client(tmp_path: Path) -> gh_mod.GhClient:
    return gh_mod.GhClient(workspace_root=tmp_path, repo=RepoIdentity(owner="acme", repo="widget"))


def test_read_retries_transient_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeGh([_err(stderr="HTTP 503 Service Unavailable"), Ok('[{"name": "minor"}]')])
    monkeypatch.setattr(gh_mod, "run_process", fake)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = _client(tmp_path).get_labels(5)

    assert result == Ok(frozenset({"minor"}))
    assert len(fake.calls) == 2
    assert fake.calls[0][:5] == ["gh", "api", "--method", "GET", "repos/acme/widget/issues/5/labels?per_page=100"]


def test_read_does_not_retry_on_not_found(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeGh([_err(stderr="gh: Not Found (HTTP 404)")])
    monkeypatch.setattr(gh_mod, "run_process", fake)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = _client(tmp_path).get_request(9)

    assert isinstance(result, Err)
    assert result.error.kind == "platform_failed"
    assert result.error.status == 404
    assert len(fake.calls) == 1


def test_writes_are_never_retried(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeGh([_err(stderr="HTTP 502 Bad Gateway")])
    monkeypatch.setattr(gh_mod, "run_process", fake)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = _client(tmp_path).add_label(5, "released")

    assert isinstance(result, Err)
    assert result.error.status == 502
    assert len(fake.calls) == 1


def test_write_sends_json_body_on_stdin(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeGh([Ok('{"id": 77, "body": "hi"}')])
    monkeypatch.setattr(gh_mod, "run_process", fake)

    result = _client(tmp_path).create_comment(5, "hi")

    assert isinstance(result, Ok)
    assert result.value.id == 77
    assert fake.calls[0][-2:] == ["--input", "-"]
    assert json.loads(fake.inputs[0] or "") == {"body": "hi"}


def test_empty_write_response_is_ok(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(gh_mod, "run_process", FakeGh([Ok("")]))

    assert _client(tmp_path).delete_comment(3) == Ok(None)


def test_get_request_payload(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    payload = {
        "number": 5,
        "title": "Add thing",
        "body": "Fixes #10",
        "head": {"sha": "abc"},
        "merged_at": "2024-01-02T00:00:00Z",
        "labels": [{"name": "minor"}],
    }
    monkeypatch.setattr(gh_mod, "run_process", FakeGh([Ok(json.dumps(payload))]))

    result = _client(tmp_path).get_request(5)

    assert isinstance(result, Ok)
    assert result.value.head_sha == "abc"
    assert result.value.body == "Fixes #10"
    assert result.value.labels == frozenset({"minor"})


def test_list_merged_requests_filters_and_sorts(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    payload = [
        {"number": 1, "head": {"sha": "a"}, "merged_at": "2024-01-01T00:00:00Z"},
        {"number": 2, "head": {"sha": "b"}, "merged_at": None},
        {"number": 3, "head": {"sha": "c"}, "merged_at": "2024-02-01T00:00:00Z"},
    ]
    monkeypatch.setattr(gh_mod, "run_process", FakeGh([Ok(json.dumps(payload))]))

    result = _client(tmp_path).list_merged_requests(limit=10)

    assert isinstance(result, Ok)
    assert [r.number for r in result.value] == [3, 1]


def test_create_status(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeGh([Ok('{"id": 1}')])
    monkeypatch.setattr(gh_mod, "run_process", fake)

    status = StatusInfo(sha="abc", state="success", description="CI - minor", context="ci/autoship")
    assert _client(tmp_path).create_status(status) == Ok(None)
    assert fake.calls[0][4] == "repos/acme/widget/statuses/abc"
    assert json.loads(fake.inputs[0] or "") == {
        "state": "success",
        "description": "CI - minor",
        "context": "ci/autoship",
    }


def test_hostname_is_passed_for_enterprise(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeGh([Ok("[]")])
    monkeypatch.setattr(gh_mod, "run_process", fake)
    client = gh_mod.GhClient(
        workspace_root=tmp_path, repo=RepoIdentity(owner="acme", repo="widget"), host="ghe.example.com"
    )

    client.list_repo_labels()

    assert "--hostname" in fake.calls[0]
    assert "ghe.example.com" in fake.calls[0]


def test_ensure_gh_auth(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(gh_mod, "run_process", FakeGh([_err(stderr="not logged in")]))

    result = gh_mod.ensure_gh_auth(workspace_root=tmp_path)

    assert isinstance(result, Err)
    assert result.error.kind == "gh_auth_required"


def test_ensure_gh_available(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gh_mod.shutil, "which", lambda name: None)

    result = gh_mod.ensure_gh_available()

    assert isinstance(result, Err)
    assert result.error.kind == "gh_missing"
