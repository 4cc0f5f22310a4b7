"""Shared fixtures for unit tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from git_externals.engine.errors import ProcessError
from git_externals.engine.process import CommandResult, ProcessRunner
from git_externals.workspace import Workspace

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

_ENV_VARS = (
    "GIT_EXTERNALS_LOG",
    "GIT_EXTERNALS_CONFIG_FILE",
    "GIT_EXTERNALS_IGNORE_FILE",
    "GIT_EXTERNALS_GIT",
    "NO_COLOR",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove GIT_EXTERNALS_* env vars so unit tests don't leak host config."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class FakeRunner(ProcessRunner):
    """Records every command and answers from a table of scripted results.

    Responses are keyed by an argv prefix and optionally a working
    directory; the longest matching prefix wins, and a response scripted for
    the call's directory beats one scripted for any directory. Shell
    commands are recorded as a one-element argv. Unscripted commands succeed
    with empty output.
    """

    def __init__(self) -> None:
        super().__init__("git")
        self.calls: list[tuple[tuple[str, ...], Path]] = []
        self.responses: dict[tuple[Path | None, tuple[str, ...]], tuple[int, str, str]] = {}

    def script(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        cwd: Path | None = None,
    ) -> None:
        self.responses[(cwd, ("git", *prefix))] = (returncode, stdout, stderr)

    def script_shell(
        self, command: str, *, returncode: int = 0, stdout: str = "", stderr: str = ""
    ) -> None:
        self.responses[(None, (command,))] = (returncode, stdout, stderr)

    def run(
        self, args: Sequence[str] | str, *, cwd: Path, check: bool = False, shell: bool = False
    ) -> CommandResult:
        argv = (args,) if isinstance(args, str) else tuple(str(a) for a in args)
        self.calls.append((argv, cwd))

        matches = [
            (where, prefix)
            for where, prefix in self.responses
            if where in (None, cwd) and argv[: len(prefix)] == prefix
        ]
        best = max(matches, key=lambda k: (k[0] is not None, len(k[1])), default=None)
        returncode, stdout, stderr = self.responses[best] if best else (0, "", "")
        result = CommandResult(argv, returncode, stdout, stderr)
        if check and not result.ok:
            raise ProcessError(argv, returncode, stderr)
        return result

    def git_commands(self) -> list[tuple[str, ...]]:
        """Git subcommand vectors (without the executable), in call order."""
        return [argv[1:] for argv, _ in self.calls if argv[0] == "git"]

    def ran(self, *prefix: str) -> bool:
        return any(cmd[: len(prefix)] == prefix for cmd in self.git_commands())


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def workspace(tmp_path: Path, runner: FakeRunner) -> Workspace:
    return Workspace.at(tmp_path, runner)


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[[str], Path]:
    """Factory fixture: create ``<tmp>/<relative>/.git`` so the probe sees a repository."""

    def _make(relative: str) -> Path:
        path = tmp_path / relative
        (path / ".git").mkdir(parents=True)
        return path

    return _make
