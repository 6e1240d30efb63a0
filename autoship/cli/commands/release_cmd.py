from __future__ import annotations

import typer

from autoship.cli.commands._helpers import load_or_exit, run_stage
from autoship.cli.context import build_context
from autoship.output.console import Style
from autoship.release.orchestrator import CanaryOptions, ChangelogOptions, ReleaseOptions

DRY_RUN = typer.Option(False, "--dry-run", "-d", help="Report what would happen without changing anything")
OWNER = typer.Option(None, "--owner", help="Repository owner (overrides config)")
REPO = typer.Option(None, "--repo", help="Repository name (overrides config)")


def version(
    from_ref: str | None = typer.Option(None, "--from", help="Tag or ref to start from"),
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Print the bump the merged changes warrant (major, minor, patch or nothing)."""
    ctx = build_context(owner=owner, repo=repo)
    load_or_exit(ctx)

    bump = run_stage(ctx.orchestrator.version(from_ref=from_ref), ctx.console)
    ctx.console.print(bump or "")


def changelog(
    from_ref: str | None = typer.Option(None, "--from", help="Tag or ref to start from"),
    to_ref: str | None = typer.Option(None, "--to", help="Ref to stop at (default HEAD)"),
    message: str | None = typer.Option(None, "--message", "-m", help="Commit message for the changelog"),
    dry_run: bool = DRY_RUN,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Prepend release notes to the changelog and commit it."""
    ctx = build_context(dry_run=dry_run, owner=owner, repo=repo)
    load_or_exit(ctx)

    options = ChangelogOptions(from_ref=from_ref, to_ref=to_ref, message=message)
    run_stage(ctx.orchestrator.changelog(options), ctx.console)


def release(
    from_ref: str | None = typer.Option(None, "--from", help="Tag or ref to start from"),
    use_version: str | None = typer.Option(None, "--use-version", help="Version to release instead of the current one"),
    dry_run: bool = DRY_RUN,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Create a hosting release for the changes since the last one."""
    ctx = build_context(dry_run=dry_run, owner=owner, repo=repo)
    load_or_exit(ctx)

    options = ReleaseOptions(from_ref=from_ref, use_version=use_version)
    released = run_stage(ctx.orchestrator.release(options), ctx.console)
    if released:
        ctx.console.print(released, Style.BOLD)


def shipit(
    pr: int | None = typer.Option(None, "--pr", help="Request number for canary builds"),
    build: str | None = typer.Option(None, "--build", help="Build id for canary builds"),
    message: str | None = typer.Option(None, "--message", "-m", help="Canary body message, or 'false'"),
    dry_run: bool = DRY_RUN,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Release on the base branch; publish a canary anywhere else."""
    ctx = build_context(dry_run=dry_run, owner=owner, repo=repo)
    load_or_exit(ctx)

    options = CanaryOptions(request=pr, build=build, message=message)
    info = run_stage(ctx.orchestrator.shipit(options), ctx.console)
    if info is not None and info.new_version:
        ctx.console.print(info.new_version, Style.BOLD)


def canary(
    pr: int | None = typer.Option(None, "--pr", help="Request number to identify the build"),
    build: str | None = typer.Option(None, "--build", help="Build id to identify the build"),
    message: str | None = typer.Option(None, "--message", "-m", help="Canary body message, or 'false'"),
    dry_run: bool = DRY_RUN,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Publish a uniquely versioned test build."""
    ctx = build_context(dry_run=dry_run, owner=owner, repo=repo)
    load_or_exit(ctx)

    options = CanaryOptions(request=pr, build=build, message=message)
    info = run_stage(ctx.orchestrator.canary(options), ctx.console)
    if info is not None and info.new_version:
        ctx.console.print(info.new_version, Style.BOLD)
