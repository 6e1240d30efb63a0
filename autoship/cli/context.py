from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path

import typer

from autoship.core.errors import ErrorCode
from autoship.core.result import Err, Ok, Result
from autoship.git.repository import Repository
from autoship.hooks.points import make_hooks
from autoship.output.console import ConsoleProtocol, RichConsole
from autoship.plugins import apply_plugins, load_plugins
from autoship.release.changelog import MarkdownChangelog
from autoship.release.ci import CiContext, detect_ci
from autoship.release.config import AutoConfig, find_config, load_config
from autoship.release.errors import ReleaseError
from autoship.release.gh import GhClient, ensure_gh_auth, ensure_gh_available
from autoship.release.log import GitCommitLog
from autoship.release.model import RepoIdentity
from autoship.release.orchestrator import Collaborators, Connect, ReleaseOrchestrator

VERBOSE_ENV = "AUTOSHIP_VERBOSE"

Preflight = Callable[[], Result[None, ReleaseError]]


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    console: ConsoleProtocol
    ci: CiContext
    orchestrator: ReleaseOrchestrator
    connect: Connect
    preflight: Preflight

    @property
    def config(self) -> AutoConfig:
        return self.orchestrator.config


def _github_connect(root: Path, repo: Repository) -> Connect:
    def connect(config: AutoConfig, identity: RepoIdentity) -> Collaborators:
        hosting = GhClient(workspace_root=root, repo=identity, host=config.host)
        web = f"https://{config.host or 'github.com'}/{identity.slug}"
        return Collaborators(
            hosting=hosting,
            log=GitCommitLog(repo=repo, hosting=hosting),
            changelog=MarkdownChangelog(labels=config.labels, repo_url=web),
        )

    return connect


def _github_preflight(root: Path) -> Preflight:
    def preflight() -> Result[None, ReleaseError]:
        available = ensure_gh_available()
        if isinstance(available, Err):
            return available
        auth = ensure_gh_auth(workspace_root=root)
        if isinstance(auth, Err):
            return auth
        return Ok(None)

    return preflight


def build_context(
    *,
    dry_run: bool = False,
    owner: str | None = None,
    repo: str | None = None,
) -> CLIContext:
    cwd = Path.cwd()
    config_path = find_config(cwd)
    config_result = load_config(config_path)
    if isinstance(config_result, Err):
        e = config_result.error
        where = f" ({e.path})" if e.path else ""
        typer.echo(f"error: {e.message}{where}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    config = config_result.value
    if owner:
        config = replace(config, owner=owner)
    if repo:
        config = replace(config, repo=repo)

    root = config_path.parent if config_path is not None else cwd
    console = RichConsole(verbose=os.environ.get(VERBOSE_ENV) == "1")

    plugins = load_plugins(config.plugins)
    if isinstance(plugins, Err):
        typer.echo(f"error: {plugins.error.pretty()}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    git = Repository(root)
    ci = detect_ci(os.environ)
    hooks = make_hooks()
    orchestrator = ReleaseOrchestrator(
        hooks=hooks,
        config=config,
        console=console,
        repo=git,
        ci=ci,
        dry_run=dry_run,
    )
    apply_plugins(plugins.value, hooks, orchestrator)

    return CLIContext(
        root=root,
        console=console,
        ci=ci,
        orchestrator=orchestrator,
        connect=_github_connect(root, git),
        preflight=_github_preflight(root),
    )
