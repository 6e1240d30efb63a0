from __future__ import annotations

import os

import typer

from autoship import __version__
from autoship.cli.commands.pr_cmd import comment, create_labels, label, pr_body, pr_check, pr_status
from autoship.cli.commands.release_cmd import canary, changelog, release, shipit, version
from autoship.cli.context import VERBOSE_ENV

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Release
app.command()(version)
app.command()(changelog)
app.command()(release)
app.command()(shipit)
app.command()(canary)

# Requests
app.command()(comment)
app.command("pr-body")(pr_body)
app.command()(label)
app.command("pr-status")(pr_status)
app.command("pr-check")(pr_check)
app.command("create-labels")(create_labels)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    show_version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print debug output."),
) -> None:
    if show_version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if verbose:
        os.environ[VERBOSE_ENV] = "1"


def main() -> None:
    app()
