"""Repository operations: init, update, reset, cmd and heads per external.

Each operation either returns an ``OperationResult`` or raises an
``ExternalsError``; ``run_bulk`` turns per-entry errors into failed results
so one broken external never stops the others.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Literal

from git_externals.engine.errors import ConfigError, DirtyStateError, ExternalsError
from git_externals.engine.types import OperationResult, Outcome
from git_externals.engine.urls import is_relative, resolve_url

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from git_externals.config.schema import External
    from git_externals.engine.process import ProcessRunner
    from git_externals.workspace import Workspace

logger = logging.getLogger(__name__)

HEAD_MARKER = "HEAD"

Operation = Callable[["Workspace", "External"], OperationResult]
ProgressCallback = Callable[["External", Literal["start", "done"]], None]


def _skipped(external: External, action: str, message: str) -> OperationResult:
    return OperationResult(
        name=external.name, action=action, outcome=Outcome.SKIPPED, message=message
    )


def _done(external: External, action: str, message: str = "", output: str = "") -> OperationResult:
    return OperationResult(
        name=external.name, action=action, outcome=Outcome.DONE, message=message, output=output
    )


def _require_unambiguous(external: External) -> None:
    if external.ambiguous:
        raise ConfigError(f"{external.name}: both branch and commit are set (ambiguous definition)")


def _ensure_local_branch(runner: ProcessRunner, path: Path, branch: str) -> None:
    has_local = runner.git("show-ref", "--verify", "--quiet", f"refs/heads/{branch}", cwd=path).ok
    if not has_local:
        logger.info("Creating local branch %s tracking origin/%s", branch, branch)
        runner.git("branch", "--track", branch, f"origin/{branch}", cwd=path, check=True)


def _pinned_commit(commit: str | None) -> str | None:
    return None if commit == HEAD_MARKER else commit


def checkout_target(
    runner: ProcessRunner, path: Path, branch: str | None, commit: str | None
) -> None:
    """Check out the declared branch (and pull) or the declared commit (after a fetch)."""
    if branch is None and commit is None:
        raise ConfigError(f"{path}: neither branch nor commit is declared")

    if branch is not None:
        _ensure_local_branch(runner, path, branch)

    if _pinned_commit(commit) is None:
        if branch is None:
            raise ConfigError(f"{path}: commit {HEAD_MARKER} needs a branch")
        runner.git("checkout", branch, cwd=path, check=True)
        runner.git("pull", cwd=path, check=True)
    else:
        runner.git("fetch", cwd=path, check=True)
        runner.git("checkout", commit, cwd=path, check=True)


def init_external(ws: Workspace, external: External) -> OperationResult:
    """Clone a missing external and check out its target."""
    path = ws.external_path(external.path)
    if ws.probe.exists(path):
        return _skipped(external, "init", "already initialized")
    _require_unambiguous(external)

    url = external.url
    if is_relative(url):
        url = resolve_url(url, ws.origin_url())
        logger.debug("Resolved %s to %s", external.url, url)

    path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Cloning %s into %s", url, path)
    ws.runner.git("clone", url, str(path), cwd=ws.root, check=True)
    checkout_target(ws.runner, path, external.branch, external.commit)
    return _done(external, "init", f"cloned {url}")


def update_external(ws: Workspace, external: External) -> OperationResult:
    """Bring a clean external up to date; dirty ones are refused untouched."""
    path = ws.external_path(external.path)
    if not ws.probe.exists(path):
        return _skipped(external, "update", "not initialized")
    _require_unambiguous(external)

    if ws.probe.is_dirty(path):
        raise DirtyStateError(external.path)

    checkout_target(ws.runner, path, external.branch, external.commit)
    return _done(external, "update", f"updated to {external.target}")


def reset_external(ws: Workspace, external: External) -> OperationResult:
    """Hard-reset to the declared commit, or to the upstream of the declared branch.

    Local changes are discarded, and so are local commits on the branch.
    """
    path = ws.external_path(external.path)
    if not ws.probe.exists(path):
        return _skipped(external, "reset", "not initialized")
    _require_unambiguous(external)

    commit = _pinned_commit(external.commit)
    branch = external.branch
    runner = ws.runner
    if commit is not None:
        runner.git("fetch", cwd=path, check=True)
        # Detach first so that no local branch is moved by the reset.
        runner.git("checkout", "--force", "--detach", commit, cwd=path, check=True)
        reset_point = commit
    elif branch is not None:
        runner.git("fetch", cwd=path, check=True)
        _ensure_local_branch(runner, path, branch)
        runner.git("checkout", "--force", branch, cwd=path, check=True)
        reset_point = f"origin/{branch}"
    else:
        raise ConfigError(f"{external.name}: no branch or commit to reset to")

    logger.info("Hard reset of %s to %s", path, reset_point)
    runner.git("reset", "--hard", reset_point, cwd=path, check=True)
    return _done(external, "reset", f"reset to {external.target}")


def run_command(ws: Workspace, external: External, command: str) -> OperationResult:
    """Run the shell *command* inside an initialized external."""
    path = ws.external_path(external.path)
    if not ws.probe.exists(path):
        return _skipped(external, "cmd", "not initialized")

    result = ws.runner.run(command, cwd=path, shell=True)
    output = result.stdout + result.stderr
    if not result.ok:
        return OperationResult(
            name=external.name,
            action="cmd",
            outcome=Outcome.FAILED,
            message=f"exit code {result.returncode}",
            output=output,
        )
    return _done(external, "cmd", output=output)


def remote_head(ws: Workspace, external: External) -> OperationResult:
    """Resolve the default branch of an initialized external's remote."""
    path = ws.external_path(external.path)
    if not ws.probe.exists(path):
        return _skipped(external, "heads", "not initialized")
    return _done(external, "heads", ws.probe.default_remote_head(path))


def run_bulk(
    ws: Workspace,
    externals: Iterable[External],
    operation: Operation,
    *,
    action: str,
    progress: ProgressCallback | None = None,
) -> list[OperationResult]:
    """Apply *operation* to each external in order, isolating failures."""
    results: list[OperationResult] = []
    for external in externals:
        if progress:
            progress(external, "start")
        try:
            result = operation(ws, external)
        except ExternalsError as exc:
            logger.warning("%s %s failed: %s", action, external.name, exc)
            result = OperationResult(
                name=external.name, action=action, outcome=Outcome.FAILED, message=str(exc)
            )
        results.append(result)
        if progress:
            progress(external, "done")
    return results
