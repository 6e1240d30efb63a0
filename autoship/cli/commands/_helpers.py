"""Shared helpers for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any, NoReturn

import typer

from autoship.core.errors import ErrorCode
from autoship.core.result import Err, Result
from autoship.hooks import exception_origin
from autoship.output.console import ConsoleProtocol, Style
from autoship.release.errors import ReleaseError

if TYPE_CHECKING:
    from autoship.cli.context import CLIContext


def release_error_code(error: ReleaseError) -> ErrorCode:
    if error.kind in {"gh_missing", "gh_auth_required"}:
        return ErrorCode.ENV_ERROR
    if error.kind in {"platform_failed"}:
        return ErrorCode.NETWORK_ERROR
    if error.kind in {"git_failed", "changelog_failed"}:
        return ErrorCode.IO_ERROR
    if error.kind in {"hook_failed"}:
        return ErrorCode.RELEASE_ERROR
    return ErrorCode.USER_ERROR


def exit_release(error: ReleaseError, console: ConsoleProtocol) -> NoReturn:
    message = error.message if error.status is None else f"{error.message} (HTTP {error.status})"
    console.error(message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(release_error_code(error)))


def unwrap_or_exit[T](result: Result[T, ReleaseError], console: ConsoleProtocol) -> T:
    if isinstance(result, Err):
        exit_release(result.error, console)
    return result.value


def run_stage[T](stage: Coroutine[Any, Any, Result[T, ReleaseError]], console: ConsoleProtocol) -> T:
    """Run an async release stage; a plugin crash exits as a hook failure."""
    try:
        result = asyncio.run(stage)
    except Exception as e:
        origin = exception_origin(e)
        if origin is None:
            raise
        exit_release(
            ReleaseError(kind="hook_failed", message=f"{type(e).__name__}: {e}", hint=origin),
            console,
        )
    return unwrap_or_exit(result, console)


def load_or_exit(ctx: CLIContext) -> None:
    """Check gh, let plugins amend the config and connect to the hosting platform."""
    unwrap_or_exit(ctx.preflight(), ctx.console)
    run_stage(ctx.orchestrator.load(connect=ctx.connect), ctx.console)
