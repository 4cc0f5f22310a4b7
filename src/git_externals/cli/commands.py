"""CLI command implementations."""

from __future__ import annotations

import os
import shlex
from typing import TYPE_CHECKING, Annotated, Literal

import typer

from git_externals.cli import app
from git_externals.cli.errors import handle_error

if TYPE_CHECKING:
    from collections.abc import Callable

    from git_externals.config.schema import External
    from git_externals.engine.operations import ProgressCallback
    from git_externals.engine.types import OperationResult
    from git_externals.workspace import Workspace

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output."),
]

AutoApprove = Annotated[
    bool,
    typer.Option("--auto-approve", help="Skip interactive approval."),
]

Target = Annotated[
    str,
    typer.Argument(help="External name, or 'all'."),
]


def _use_color(no_color: bool) -> bool:
    """Determine whether to use color output."""
    return not (no_color or os.environ.get("NO_COLOR"))


def _open(color: bool) -> Workspace:
    """Open the workspace or exit when not at the repository top level."""
    from git_externals.workspace import open_workspace

    try:
        return open_workspace()
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc


def _run_with_progress(
    run: Callable[[ProgressCallback], list[OperationResult]], action: str, *, color: bool
) -> list[OperationResult]:
    """Run a bulk operation with a Rich progress bar and per-external status lines."""
    from rich.console import Console
    from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

    console = Console(no_color=not color, stderr=True)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(action.capitalize(), total=None)

        def on_progress(external: External, event: Literal["start", "done"]) -> None:
            if event == "start":
                progress.update(task, description=f"{external.name}: {action}...")
            elif event == "done":
                progress.advance(task)

        return run(on_progress)


def _report_results(action: str, results: list[OperationResult], *, color: bool) -> None:
    from git_externals.cli.formatting import (
        format_result,
        format_results_summary,
        results_summary,
    )

    for r in results:
        typer.echo(format_result(r, color=color))
    typer.echo()
    typer.echo(format_results_summary(action, results_summary(results), color=color))

    if any(r.failed for r in results):
        raise typer.Exit(1)


@app.command()
def status(
    no_color: NoColor = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the report as JSON."),
    ] = False,
) -> None:
    """Compare every external with its declared url and branch/commit."""
    from git_externals.cli.formatting import format_status
    from git_externals.config import status as status_fn

    color = _use_color(no_color)
    ws = _open(color)
    try:
        report = status_fn(ws)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    if as_json:
        typer.echo(report.model_dump_json(indent=2))
    else:
        typer.echo(format_status(report, color=color))

    if not report.healthy:
        raise typer.Exit(1)


@app.command()
def add(
    url: Annotated[str, typer.Argument(help="Repository URL (may be relative to origin).")],
    path: Annotated[str, typer.Argument(help="Checkout path, relative to the top level.")],
    branch_or_commit: Annotated[
        str,
        typer.Argument(help="Branch name, or a full 40-character commit hash."),
    ] = "master",
    no_color: NoColor = False,
) -> None:
    """Declare an external (replacing any existing declaration for PATH)."""
    from git_externals.config import add as add_fn

    color = _use_color(no_color)
    ws = _open(color)
    try:
        external = add_fn(ws, url, path, branch_or_commit)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    kind = "commit" if external.commit is not None else "branch"
    typer.echo(f"Added external {external.name} ({kind} {external.target}).")


@app.command(name="rm")
def rm_cmd(
    path: Annotated[str, typer.Argument(help="Path of the external to remove.")],
    no_color: NoColor = False,
) -> None:
    """Remove an external declaration and its ignore entry."""
    from git_externals.config import remove as remove_fn
    from git_externals.engine.errors import ConfigError

    color = _use_color(no_color)
    ws = _open(color)
    try:
        if not remove_fn(ws, path):
            raise ConfigError(f"No external declared for {path}")
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(f"Removed external {path}.")


@app.command(name="init")
def init_cmd(target: Target = "all", no_color: NoColor = False) -> None:
    """Clone missing externals and check out their target."""
    from git_externals.config import init as init_fn

    color = _use_color(no_color)
    ws = _open(color)
    try:
        results = _run_with_progress(
            lambda cb: init_fn(ws, target, progress=cb), "init", color=color
        )
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    _report_results("init", results, color=color)


@app.command()
def update(target: Target = "all", no_color: NoColor = False) -> None:
    """Fetch and check out the declared target of clean externals."""
    from git_externals.config import update as update_fn

    color = _use_color(no_color)
    ws = _open(color)
    try:
        results = _run_with_progress(
            lambda cb: update_fn(ws, target, progress=cb), "update", color=color
        )
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    _report_results("update", results, color=color)


@app.command()
def reset(
    target: Target = "all",
    auto_approve: AutoApprove = False,
    no_color: NoColor = False,
) -> None:
    """Hard-reset externals to their declared target, discarding local changes."""
    from git_externals.config import load
    from git_externals.config import reset as reset_fn

    color = _use_color(no_color)
    ws = _open(color)
    try:
        config = load(ws)
        selected = config.select(target)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    if not selected:
        typer.echo("No externals declared.")
        raise typer.Exit(0)

    for external in selected:
        typer.echo(f"  {external.name} -> {external.target}")
    typer.echo()

    if not auto_approve:
        try:
            typer.confirm(
                f"Hard-reset {len(selected)} external(s)? Local changes will be lost.",
                abort=True,
            )
        except typer.Abort as e:
            typer.echo("Reset canceled.", err=True)
            raise typer.Exit(1) from e

    try:
        results = _run_with_progress(
            lambda cb: reset_fn(ws, target, config=config, progress=cb), "reset", color=color
        )
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    _report_results("reset", results, color=color)


@app.command(
    name="cmd",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def cmd_cmd(
    command: Annotated[
        list[str],
        typer.Argument(help="Shell command to run in each initialized external."),
    ],
    no_color: NoColor = False,
) -> None:
    """Run a shell command inside every initialized external."""
    from git_externals.cli.formatting import format_command_output
    from git_externals.config import run_in_externals
    from git_externals.engine.types import Outcome

    color = _use_color(no_color)
    # A single argument is a shell command line; several are re-quoted into one.
    line = command[0] if len(command) == 1 else shlex.join(command)
    ws = _open(color)
    try:
        results = run_in_externals(ws, line)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    for r in results:
        if r.outcome != Outcome.SKIPPED:
            typer.echo(format_command_output(r, color=color))

    if any(r.failed for r in results):
        raise typer.Exit(1)


@app.command(name="list")
def list_cmd(no_color: NoColor = False) -> None:
    """List declared externals."""
    from git_externals.cli.formatting import format_externals, styler
    from git_externals.config import load

    color = _use_color(no_color)
    ws = _open(color)
    try:
        config = load(ws)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    for w in config.warnings:
        typer.echo(styler(color)(f"warning: {w}", fg="yellow"), err=True)
    typer.echo(format_externals(config.externals.values()))


@app.command()
def heads(no_color: NoColor = False) -> None:
    """Print the remote default branch of each initialized external."""
    from git_externals.cli.formatting import styler
    from git_externals.config import heads as heads_fn
    from git_externals.engine.types import Outcome

    color = _use_color(no_color)
    ws = _open(color)
    try:
        results = heads_fn(ws)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    style = styler(color)
    for r in results:
        if r.failed:
            typer.echo(style(f"  {r.name}: {r.message}", fg="red"))
        elif r.outcome == Outcome.DONE:
            typer.echo(f"  {r.name}: {r.message}")

    if any(r.failed for r in results):
        raise typer.Exit(1)
