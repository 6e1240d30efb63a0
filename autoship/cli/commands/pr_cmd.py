from __future__ import annotations

import typer

from autoship.cli.commands._helpers import load_or_exit, unwrap_or_exit
from autoship.cli.commands.release_cmd import DRY_RUN, OWNER, REPO
from autoship.cli.context import build_context
from autoship.core.errors import ErrorCode
from autoship.release import pr_commands
from autoship.release.comments import DEFAULT_CONTEXT

PR = typer.Option(None, "--pr", help="Request number (default: from CI)")


def comment(
    message: str | None = typer.Option(None, "--message", "-m", help="Comment text"),
    context: str = typer.Option(DEFAULT_CONTEXT, "--context", help="Tracked comment context"),
    edit: bool = typer.Option(False, "--edit", "-e", help="Edit the existing comment in place"),
    delete: bool = typer.Option(False, "--delete", help="Delete the tracked comment"),
    pr: int | None = PR,
    dry_run: bool = DRY_RUN,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Create, update or delete the tracked comment for a context."""
    ctx = build_context(dry_run=dry_run, owner=owner, repo=repo)
    load_or_exit(ctx)

    done = pr_commands.comment(
        hosting=ctx.orchestrator.hosting,
        console=ctx.console,
        ci=ctx.ci,
        pr=pr,
        message=message,
        context=context,
        edit=edit,
        delete=delete,
        dry_run=dry_run,
    )
    unwrap_or_exit(done, ctx.console)


def pr_body(
    message: str | None = typer.Option(None, "--message", "-m", help="Section text"),
    context: str = typer.Option(DEFAULT_CONTEXT, "--context", help="Body section context"),
    delete: bool = typer.Option(False, "--delete", help="Remove the section"),
    pr: int | None = PR,
    dry_run: bool = DRY_RUN,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Replace a marker-delimited section of a request body."""
    ctx = build_context(dry_run=dry_run, owner=owner, repo=repo)
    load_or_exit(ctx)

    done = pr_commands.pr_body(
        hosting=ctx.orchestrator.hosting,
        console=ctx.console,
        ci=ctx.ci,
        pr=pr,
        message=message,
        context=context,
        delete=delete,
        dry_run=dry_run,
    )
    unwrap_or_exit(done, ctx.console)


def label(
    pr: int | None = PR,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Print the labels of a request, or of the last merged one."""
    ctx = build_context(owner=owner, repo=repo)
    load_or_exit(ctx)

    found = unwrap_or_exit(
        pr_commands.labels(hosting=ctx.orchestrator.hosting, ci=ctx.ci, pr=pr), ctx.console
    )
    for name in found:
        ctx.console.print(name)


def pr_status(
    state: str = typer.Option(..., "--state", help="error, failure, pending or success"),
    description: str = typer.Option(..., "--description", help="Status description"),
    context: str = typer.Option(..., "--context", help="Status context"),
    url: str | None = typer.Option(None, "--url", help="Link shown next to the status"),
    sha: str | None = typer.Option(None, "--sha", help="Commit to attach the status to"),
    pr: int | None = PR,
    dry_run: bool = DRY_RUN,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Post a commit status for a request head (or HEAD)."""
    ctx = build_context(dry_run=dry_run, owner=owner, repo=repo)
    load_or_exit(ctx)

    done = pr_commands.pr_status(
        hosting=ctx.orchestrator.hosting,
        repo=ctx.orchestrator.repo,
        console=ctx.console,
        ci=ctx.ci,
        state=state,
        description=description,
        context=context,
        url=url,
        sha=sha,
        pr=pr,
        dry_run=dry_run,
    )
    unwrap_or_exit(done, ctx.console)


def pr_check(
    url: str | None = typer.Option(None, "--url", help="Link shown next to the status"),
    context: str = typer.Option(pr_commands.PR_CHECK_CONTEXT, "--context", help="Status context"),
    pr: int | None = PR,
    dry_run: bool = DRY_RUN,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Require a bump or skip label on a request and report it as a status."""
    ctx = build_context(dry_run=dry_run, owner=owner, repo=repo)
    load_or_exit(ctx)

    passes = unwrap_or_exit(
        pr_commands.pr_check(
            hosting=ctx.orchestrator.hosting,
            console=ctx.console,
            config=ctx.config,
            ci=ctx.ci,
            pr=pr,
            url=url,
            context=context,
            dry_run=dry_run,
        ),
        ctx.console,
    )
    if not passes:
        raise typer.Exit(code=int(ErrorCode.RELEASE_ERROR))


def create_labels(
    dry_run: bool = DRY_RUN,
    owner: str | None = OWNER,
    repo: str | None = REPO,
) -> None:
    """Create the configured labels missing from the repository."""
    ctx = build_context(dry_run=dry_run, owner=owner, repo=repo)
    load_or_exit(ctx)

    unwrap_or_exit(
        pr_commands.create_labels(
            hosting=ctx.orchestrator.hosting,
            console=ctx.console,
            config=ctx.config,
            dry_run=dry_run,
        ),
        ctx.console,
    )
