from __future__ import annotations

from pathlib import Path

import pytest
import typer

from autoship.cli.context import CLIContext
from autoship.core.errors import ErrorCode
from autoship.core.result import Err, Ok, Result
from autoship.hooks import make_hooks
from autoship.output.console import MockConsole
from autoship.release.changelog import MarkdownChangelog
from autoship.release.ci import CiContext
from autoship.release.config import AutoConfig
from autoship.release.errors import ReleaseError
from autoship.release.memory import MemoryCommitLog, MemoryHosting, MemoryRepository
from autoship.release.model import Commit, RepoIdentity
from autoship.release.orchestrator import Collaborators, ReleaseOrchestrator


def _ctx(
    tmp_path: Path,
    *,
    commits: list[Commit] | None = None,
    hosting: MemoryHosting | None = None,
    ci: CiContext | None = None,
    preflight_error: ReleaseError | None = None,
) -> CLIContext:
    console = MockConsole()
    ci = ci or CiContext()
    hosting = hosting or MemoryHosting()
    orchestrator = ReleaseOrchestrator(
        hooks=make_hooks(),
        config=AutoConfig(owner="acme", repo="widget"),
        console=console,
        repo=MemoryRepository(path=tmp_path),  # type: ignore[arg-type]
        ci=ci,
    )

    def connect(config: AutoConfig, identity: RepoIdentity) -> Collaborators:
        del identity
        return Collaborators(
            hosting=hosting,
            log=MemoryCommitLog(commits=commits or []),
            changelog=MarkdownChangelog(labels=config.labels),
        )

    return CLIContext(
        root=tmp_path,
        console=console,
        ci=ci,
        orchestrator=orchestrator,
        connect=connect,
        preflight=lambda: Err(preflight_error) if preflight_error else Ok(None),
    )


def _patch(monkeypatch: pytest.MonkeyPatch, module: object, ctx: CLIContext) -> None:
    monkeypatch.setattr(module, "build_context", lambda **_: ctx)


def test_version_prints_bump(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import autoship.cli.commands.release_cmd as release_cmd

    commit = Commit(sha="a" * 40, subject="feat (#1)", message="", labels=frozenset({"minor"}), request=1)
    ctx = _ctx(tmp_path, commits=[commit])
    _patch(monkeypatch, release_cmd, ctx)

    release_cmd.version(from_ref=None, owner=None, repo=None)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.messages[-1] == "minor"


def test_missing_gh_auth_exits_with_env_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import autoship.cli.commands.release_cmd as release_cmd

    error = ReleaseError(kind="gh_auth_required", message="gh auth required", hint="Run: gh auth login")
    ctx = _ctx(tmp_path, preflight_error=error)
    _patch(monkeypatch, release_cmd, ctx)

    with pytest.raises(typer.Exit) as exc:
        release_cmd.version(from_ref=None, owner=None, repo=None)

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("hint: Run: gh auth login")


def test_canary_without_publisher_is_a_user_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import autoship.cli.commands.release_cmd as release_cmd

    ctx = _ctx(tmp_path, ci=CiContext(is_pr=True, pr=3))
    _patch(monkeypatch, release_cmd, ctx)

    with pytest.raises(typer.Exit) as exc:
        release_cmd.canary(pr=None, build=None, message=None, dry_run=False, owner=None, repo=None)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.has_error()


def test_pr_check_without_label_exits(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import autoship.cli.commands.pr_cmd as pr_cmd

    hosting = MemoryHosting()
    hosting.add_request(4, labels={"docs"})
    ctx = _ctx(tmp_path, hosting=hosting, ci=CiContext(pr=4))
    _patch(monkeypatch, pr_cmd, ctx)

    with pytest.raises(typer.Exit) as exc:
        pr_cmd.pr_check(url=None, context="ci/autoship", pr=None, dry_run=False, owner=None, repo=None)

    assert exc.value.exit_code == int(ErrorCode.RELEASE_ERROR)
    assert hosting.statuses[0].state == "error"


def test_comment_without_request_exits(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import autoship.cli.commands.pr_cmd as pr_cmd

    ctx = _ctx(tmp_path)
    _patch(monkeypatch, pr_cmd, ctx)

    with pytest.raises(typer.Exit) as exc:
        pr_cmd.comment(
            message="hi",
            context="default",
            edit=False,
            delete=False,
            pr=None,
            dry_run=False,
            owner=None,
            repo=None,
        )

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_label_prints_labels(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import autoship.cli.commands.pr_cmd as pr_cmd

    hosting = MemoryHosting()
    hosting.add_request(4, labels={"patch", "docs"})
    ctx = _ctx(tmp_path, hosting=hosting)
    _patch(monkeypatch, pr_cmd, ctx)

    pr_cmd.label(pr=4, owner=None, repo=None)

    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.messages[-2:] == ["docs", "patch"]


def test_app_version_flag() -> None:
    from typer.testing import CliRunner

    from autoship import __version__
    from autoship.cli.app import app

    result = CliRunner().invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_plugin_crash_exits_as_hook_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import autoship.cli.commands.release_cmd as release_cmd

    def crash(config: AutoConfig) -> None:
        raise RuntimeError("registry token missing")

    ctx = _ctx(tmp_path)
    ctx.orchestrator.hooks.before_run.tap("npm", crash)
    _patch(monkeypatch, release_cmd, ctx)

    with pytest.raises(typer.Exit) as exc:
        release_cmd.version(from_ref=None, owner=None, repo=None)

    assert exc.value.exit_code == int(ErrorCode.RELEASE_ERROR)
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("error: RuntimeError: registry token missing")
    assert ctx.console.find("hint: from plugin 'npm' at before_run")


def test_run_stage_lets_internal_errors_through() -> None:
    from autoship.cli.commands._helpers import run_stage

    async def broken() -> Result[None, ReleaseError]:
        raise ValueError("bug")

    with pytest.raises(ValueError, match="bug"):
        run_stage(broken(), MockConsole())
