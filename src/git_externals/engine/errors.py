"""Error types for externals management."""

from __future__ import annotations

from collections.abc import Sequence


class ExternalsError(Exception):
    """Base exception for externals errors."""


class ConfigError(ExternalsError):
    """Raised for invalid or incomplete external declarations."""


class ResolutionError(ExternalsError):
    """Raised when the remote default branch of an external cannot be determined."""

    def __init__(self, path: str, detail: str = "") -> None:
        msg = f"Cannot resolve remote default branch for {path}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
        self.path = path


class DirtyStateError(ExternalsError):
    """Raised when an update is refused because of uncommitted changes."""

    def __init__(self, path: str) -> None:
        super().__init__(f"{path} has uncommitted changes; commit or reset them first")
        self.path = path


class ProcessError(ExternalsError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command '{' '.join(self.command)}' failed with exit code {returncode}"
        if stderr.strip():
            msg += f": {stderr.strip()}"
        super().__init__(msg)


class NotAtTopLevelError(ExternalsError):
    """Raised when the tool is not invoked from the repository top level."""

    def __init__(self, cwd: str, toplevel: str | None) -> None:
        if toplevel:
            msg = f"Must be run from the repository top level ({toplevel}), not {cwd}"
        else:
            msg = f"{cwd} is not inside a git repository"
        super().__init__(msg)
        self.cwd = cwd
        self.toplevel = toplevel
