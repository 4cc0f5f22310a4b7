"""CLI application for git-externals."""

from __future__ import annotations

import logging
import os
import sys

import typer

from git_externals import __version__

app = typer.Typer(
    name="git-externals",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"git-externals {__version__}")
        raise typer.Exit


_PACKAGE_LOGGER = __name__.partition(".")[0]
_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _configure_logging(verbose: int) -> None:
    """Set up stdlib logging based on ``-v`` flags or ``GIT_EXTERNALS_LOG`` env var."""
    env_level = os.environ.get("GIT_EXTERNALS_LOG", "").upper()
    if env_level:
        if env_level not in _VALID_LEVELS:
            print(
                f"WARNING: invalid GIT_EXTERNALS_LOG level '{env_level}', "
                f"expected one of {', '.join(sorted(_VALID_LEVELS))}; defaulting to INFO",
                file=sys.stderr,
            )
            env_level = "INFO"
        level = getattr(logging, env_level)
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose >= 1:
        level = logging.INFO
    else:
        return
    logging.basicConfig(
        level=logging.WARNING,
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger(_PACKAGE_LOGGER).setLevel(level)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase log verbosity (-v info, -vv debug).",
    ),
) -> None:
    """Manage external git repositories declared in .gitexternals."""
    _ = version
    _configure_logging(verbose)


# Register commands after app is created to avoid circular imports.
from git_externals.cli import commands as _commands  # noqa: E402, F401
