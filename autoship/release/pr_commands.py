"""Commands that act on a single pull request or the repository's labels."""

from __future__ import annotations

from autoship.core.result import Err, Ok, Result
from autoship.git.repository import Repository
from autoship.output.console import ConsoleProtocol
from autoship.release.ci import CiContext
from autoship.release.comments import (
    DEFAULT_CONTEXT,
    delete_comment,
    upsert_body_section,
    upsert_comment,
)
from autoship.release.config import AutoConfig
from autoship.release.errors import ReleaseError
from autoship.release.hosting import HostingClient
from autoship.release.model import BumpKind, StatusInfo, StatusState
from autoship.release.semver import commit_bump

_STATES: dict[str, StatusState] = {
    "error": "error",
    "failure": "failure",
    "pending": "pending",
    "success": "success",
}

PR_CHECK_CONTEXT = "ci/autoship"
SKIP_DESCRIPTION = "PR will not create a release"
MISSING_LABEL_DESCRIPTION = "No semver label!"


def resolve_request(*, explicit: int | None, ci: CiContext, command: str) -> Result[int, ReleaseError]:
    """Request number from `--pr`, else from the CI environment."""
    number = explicit if explicit is not None else ci.pr
    if number is None:
        return Err(
            ReleaseError(
                kind="missing_request",
                message=f"`{command}` must be run from a pull request build or given --pr",
                hint="Pass --pr <number>",
            )
        )
    return Ok(number)


def comment(
    *,
    hosting: HostingClient,
    console: ConsoleProtocol,
    ci: CiContext,
    pr: int | None,
    message: str | None,
    context: str = DEFAULT_CONTEXT,
    edit: bool = False,
    delete: bool = False,
    dry_run: bool = False,
) -> Result[None, ReleaseError]:
    number = resolve_request(explicit=pr, ci=ci, command="comment")
    if isinstance(number, Err):
        return number

    if delete:
        if dry_run:
            console.info(f"Would have deleted comment on #{number.value} under \"{context}\" context")
            return Ok(None)
        return delete_comment(hosting=hosting, number=number.value, context=context)

    if not message:
        return Err(ReleaseError(kind="invalid_input", message="a message is required unless --delete is given"))

    if dry_run:
        verb = "edited" if edit else "commented"
        console.info(f"Would have {verb} on #{number.value} under \"{context}\" context:")
        console.print(message)
        return Ok(None)

    done = upsert_comment(hosting=hosting, message=message, number=number.value, context=context, edit=edit)
    if isinstance(done, Err):
        return done
    console.success(f"Commented on #{number.value} under \"{context}\" context")
    return Ok(None)


def pr_body(
    *,
    hosting: HostingClient,
    console: ConsoleProtocol,
    ci: CiContext,
    pr: int | None,
    message: str | None,
    context: str = DEFAULT_CONTEXT,
    delete: bool = False,
    dry_run: bool = False,
) -> Result[None, ReleaseError]:
    """Replace (or with `delete`, remove) the `context` section of a request body."""
    number = resolve_request(explicit=pr, ci=ci, command="pr-body")
    if isinstance(number, Err):
        return number

    text = "" if delete else (message or "")
    if not delete and not text:
        return Err(ReleaseError(kind="invalid_input", message="a message is required unless --delete is given"))

    if dry_run:
        action = "removed" if delete else "updated"
        console.info(f"Would have {action} the \"{context}\" section of #{number.value}")
        return Ok(None)

    done = upsert_body_section(hosting=hosting, number=number.value, context=context, message=text)
    if isinstance(done, Err):
        return done
    console.success(f"Updated body of #{number.value}")
    return Ok(None)


def labels(
    *, hosting: HostingClient, ci: CiContext, pr: int | None
) -> Result[list[str], ReleaseError]:
    """Labels of `pr` (or the CI request); else of the last merged request."""
    number = pr if pr is not None else ci.pr
    if number is not None:
        found = hosting.get_labels(number)
        if isinstance(found, Err):
            return found
        return Ok(sorted(found.value))

    merged = hosting.list_merged_requests(limit=1)
    if isinstance(merged, Err):
        return merged
    if not merged.value:
        return Ok([])
    return Ok(sorted(merged.value[0].labels))


def pr_status(
    *,
    hosting: HostingClient,
    repo: Repository,
    console: ConsoleProtocol,
    ci: CiContext,
    state: str,
    description: str,
    context: str,
    url: str | None = None,
    sha: str | None = None,
    pr: int | None = None,
    dry_run: bool = False,
) -> Result[None, ReleaseError]:
    status_state = _STATES.get(state)
    if status_state is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"invalid status state: {state}",
                hint="Use one of: error, failure, pending, success",
            )
        )

    target = sha
    number = pr if pr is not None else ci.pr
    if not target and number is not None:
        request = hosting.get_request(number)
        if isinstance(request, Err):
            return request
        target = request.value.head_sha
    if not target:
        head = repo.head_sha()
        if isinstance(head, Err):
            return Err(ReleaseError(kind="git_failed", message="could not read HEAD", hint=head.error.message))
        target = head.value

    status = StatusInfo(
        sha=target,
        state=status_state,
        description=description,
        context=context,
        target_url=url,
    )
    if dry_run:
        console.info(f"Would have posted status {state} for {target[:7]}: {description}")
        return Ok(None)

    done = hosting.create_status(status)
    if isinstance(done, Err):
        return done
    console.success(f"Posted status {state} for {target[:7]}")
    return Ok(None)


def check_labels(labels: frozenset[str], config: AutoConfig) -> tuple[bool, str]:
    """(passes, description) for a request carrying `labels`."""
    kind: BumpKind = commit_bump(labels, config.labels)
    if kind == "skip":
        return True, SKIP_DESCRIPTION
    if kind == "none":
        return False, MISSING_LABEL_DESCRIPTION
    label = sorted(labels & config.labels.for_kind(kind))[0]
    return True, f"CI - {label}"


def pr_check(
    *,
    hosting: HostingClient,
    console: ConsoleProtocol,
    config: AutoConfig,
    ci: CiContext,
    pr: int | None,
    url: str | None = None,
    context: str = PR_CHECK_CONTEXT,
    dry_run: bool = False,
) -> Result[bool, ReleaseError]:
    """Post a success status when the request carries a bump or skip label.

    Ok(False) means the check ran and the request is missing a label.
    """
    number = resolve_request(explicit=pr, ci=ci, command="pr-check")
    if isinstance(number, Err):
        return number

    request = hosting.get_request(number.value)
    if isinstance(request, Err):
        return request
    found = hosting.get_labels(number.value)
    if isinstance(found, Err):
        return found

    passes, description = check_labels(found.value, config)
    status = StatusInfo(
        sha=request.value.head_sha,
        state="success" if passes else "error",
        description=description,
        context=context,
        target_url=url,
    )

    if dry_run:
        console.info(f"Would have posted {status.state} status: {description}")
        return Ok(passes)

    posted = hosting.create_status(status)
    if isinstance(posted, Err):
        e = posted.error
        return Err(
            ReleaseError(
                kind=e.kind,
                message=f"failed to post PR status: {e.message}",
                hint=e.hint,
                status=e.status,
            )
        )

    if passes:
        console.success(description)
    else:
        console.error(description)
    return Ok(passes)


def create_labels(
    *,
    hosting: HostingClient,
    console: ConsoleProtocol,
    config: AutoConfig,
    dry_run: bool = False,
) -> Result[list[str], ReleaseError]:
    """Create configured label definitions missing from the repository."""
    existing = hosting.list_repo_labels()
    if isinstance(existing, Err):
        return existing

    created: list[str] = []
    for definition in config.label_definitions:
        if definition.name in existing.value:
            console.debug(f"label exists: {definition.name}")
            continue
        if dry_run:
            console.info(f"Would have created label: {definition.name}")
        else:
            done = hosting.create_label(definition)
            if isinstance(done, Err):
                return done
            console.success(f"Created label: {definition.name}")
        created.append(definition.name)

    if not created:
        console.info("All labels already exist")
    return Ok(created)
