"""Read-only inspection of an external's on-disk git state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from git_externals.engine.errors import ProcessError, ResolutionError
from git_externals.engine.types import DETACHED_HEAD, ProbedState

if TYPE_CHECKING:
    from pathlib import Path

    from git_externals.engine.process import ProcessRunner

logger = logging.getLogger(__name__)

_REMOTE_HEAD_REF = "refs/remotes/origin/HEAD"


class RepositoryProbe:
    """Query repository state through git. Never mutates the repository.

    Every query shells out on its own; externals are few enough that no
    batching is needed.
    """

    def __init__(self, runner: ProcessRunner) -> None:
        self.runner = runner

    def exists(self, path: Path) -> bool:
        return (path / ".git").exists()

    def is_dirty(self, path: Path) -> bool:
        """True when tracked files differ from HEAD."""
        result = self.runner.git("diff", "--quiet", "HEAD", cwd=path)
        if result.returncode not in (0, 1):
            raise ProcessError(result.args, result.returncode, result.stderr)
        return result.returncode == 1

    def has_untracked(self, path: Path) -> bool:
        """True when there are files neither tracked nor ignored."""
        result = self.runner.git("ls-files", "--others", "--exclude-standard", cwd=path, check=True)
        return bool(result.stdout.strip())

    def current_branch_and_revision(self, path: Path) -> tuple[str, str]:
        """Return ``(branch, revision)``; branch is ``"HEAD"`` when detached."""
        branch = self.runner.git("rev-parse", "--abbrev-ref", "HEAD", cwd=path, check=True)
        revision = self.runner.git("rev-parse", "HEAD", cwd=path, check=True)
        return branch.stdout.strip(), revision.stdout.strip()

    def remote_url(self, path: Path) -> str:
        result = self.runner.git("config", "--get", "remote.origin.url", cwd=path)
        return result.stdout.strip() if result.ok else ""

    def ahead_behind(self, path: Path, branch: str) -> tuple[int, int] | None:
        """Return ``(behind, ahead)`` against the upstream of *branch*.

        ``None`` means there is no upstream data to compare with, which is
        not an error.
        """
        result = self.runner.git(
            "rev-list", "--left-right", "--count", f"{branch}@{{upstream}}...{branch}",
            cwd=path,
        )
        if not result.ok:
            logger.debug("No upstream data for %s in %s", branch, path)
            return None
        parts = result.stdout.split()
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            logger.debug("Unexpected rev-list output in %s: %r", path, result.stdout)
            return None
        return int(parts[0]), int(parts[1])

    def default_remote_head(self, path: Path) -> str:
        """Resolve the remote's default branch name (e.g. ``main``)."""
        result = self.runner.git("symbolic-ref", _REMOTE_HEAD_REF, cwd=path)
        ref = result.stdout.strip()
        if not result.ok or not ref:
            raise ResolutionError(str(path), result.stderr.strip())
        return ref.removeprefix("refs/remotes/origin/")

    def observe(self, path: Path) -> ProbedState:
        """Collect the full state of the repository at *path*.

        A missing repository short-circuits: nothing else is probed.
        """
        if not self.exists(path):
            return ProbedState(exists=False)

        branch, revision = self.current_branch_and_revision(path)
        counts = None if branch == DETACHED_HEAD else self.ahead_behind(path, branch)
        behind, ahead = counts if counts is not None else (None, None)

        return ProbedState(
            exists=True,
            current_branch=branch,
            current_revision=revision,
            remote_url=self.remote_url(path),
            dirty=self.is_dirty(path),
            untracked=self.has_untracked(path),
            ahead=ahead,
            behind=behind,
        )
