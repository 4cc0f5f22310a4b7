"""Subprocess execution behind a narrow, mockable interface."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

from git_externals.engine.errors import ProcessError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of a finished command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner:
    """Run commands and capture their output.

    Git is always invoked with an argument vector. Shell strings are only
    accepted with ``shell=True``, for commands typed by the user.
    """

    def __init__(self, git: str = "git") -> None:
        self.git_executable = git

    def run(
        self, args: Sequence[str] | str, *, cwd: Path, check: bool = False, shell: bool = False
    ) -> CommandResult:
        """Run *args* in *cwd*, through the system shell when *shell* is set.

        Raises:
            ProcessError: When *check* is set and the command exits non-zero,
                or when the executable cannot be started at all.
        """
        argv = (args,) if isinstance(args, str) else tuple(str(a) for a in args)
        logger.debug("Running %s (cwd=%s)", " ".join(argv), cwd)
        try:
            completed = subprocess.run(
                " ".join(argv) if shell else argv,
                shell=shell,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise ProcessError(argv, 127, str(exc)) from exc

        result = CommandResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if not result.ok:
            logger.debug("%s exited with %d", argv[0], result.returncode)
            if check:
                raise ProcessError(argv, result.returncode, result.stderr)
        return result

    def git(self, *args: str, cwd: Path, check: bool = False) -> CommandResult:
        """Run a git subcommand."""
        return self.run([self.git_executable, *args], cwd=cwd, check=check)
