"""Idempotent comment, body and label mutations.

A tracked comment carries a hidden HTML marker naming its context. At most
one tracked comment exists per (number, context); every operation here can be
repeated and converges to the same state.
"""

from __future__ import annotations

import re

from autoship.core.result import Err, Ok, Result
from autoship.release.errors import ReleaseError
from autoship.release.hosting import HostingClient
from autoship.release.model import IssueComment

DEFAULT_CONTEXT = "default"


def comment_marker(context: str) -> str:
    return f"<!-- AUTOSHIP COMMENT: {context} -->"


def _body_markers(context: str) -> tuple[str, str]:
    return (f"<!-- AUTOSHIP PR BODY: {context} -->", f"<!-- AUTOSHIP PR BODY: {context} END -->")


def tracked_comments(
    *, hosting: HostingClient, number: int, context: str
) -> Result[list[IssueComment], ReleaseError]:
    comments = hosting.list_comments(number)
    if isinstance(comments, Err):
        return comments
    marker = comment_marker(context)
    return Ok([c for c in comments.value if marker in c.body])


def upsert_comment(
    *,
    hosting: HostingClient,
    message: str,
    number: int,
    context: str = DEFAULT_CONTEXT,
    edit: bool = False,
) -> Result[None, ReleaseError]:
    """Create or replace the tracked comment for `context`.

    With `edit` the existing comment is updated in place; otherwise it is
    deleted and recreated so it sits at the end of the thread.
    """
    body = f"{comment_marker(context)}\n{message}"
    existing = tracked_comments(hosting=hosting, number=number, context=context)
    if isinstance(existing, Err):
        return existing
    found = existing.value

    if edit and found:
        keep, extra = found[0], found[1:]
        for c in extra:
            deleted = hosting.delete_comment(c.id)
            if isinstance(deleted, Err):
                return deleted
        if keep.body == body:
            return Ok(None)
        return hosting.edit_comment(keep.id, body)

    for c in found:
        deleted = hosting.delete_comment(c.id)
        if isinstance(deleted, Err):
            return deleted

    created = hosting.create_comment(number, body)
    if isinstance(created, Err):
        return created
    return Ok(None)


def delete_comment(
    *, hosting: HostingClient, number: int, context: str = DEFAULT_CONTEXT
) -> Result[None, ReleaseError]:
    existing = tracked_comments(hosting=hosting, number=number, context=context)
    if isinstance(existing, Err):
        return existing
    for c in existing.value:
        deleted = hosting.delete_comment(c.id)
        if isinstance(deleted, Err):
            return deleted
    return Ok(None)


def ensure_label(*, hosting: HostingClient, number: int, label: str) -> Result[bool, ReleaseError]:
    """Add `label` unless already present. Ok(True) when it was added."""
    labels = hosting.get_labels(number)
    if isinstance(labels, Err):
        return labels
    if label in labels.value:
        return Ok(False)
    added = hosting.add_label(number, label)
    if isinstance(added, Err):
        return added
    return Ok(True)


def replace_body_section(body: str, *, context: str, message: str) -> str:
    """Drop the `context` section from `body` and append `message` as the new one."""
    start, end = _body_markers(context)
    pattern = re.compile(rf"\n*{re.escape(start)}.*?{re.escape(end)}\n*", re.DOTALL)
    stripped = pattern.sub("\n", body).strip("\n")
    if not message:
        return stripped
    section = f"{start}\n{message}\n{end}"
    return f"{stripped}\n\n{section}" if stripped else section


def upsert_body_section(
    *, hosting: HostingClient, number: int, context: str, message: str
) -> Result[None, ReleaseError]:
    """Keep a single marker-delimited section per context in a request body.

    An empty message removes the section.
    """
    request = hosting.get_request(number)
    if isinstance(request, Err):
        return request
    current = request.value.body.replace("\r\n", "\n")
    updated = replace_body_section(current, context=context, message=message)
    if updated == current:
        return Ok(None)
    return hosting.update_request_body(number, updated)
