"""Externals configuration loading and convenience status/init/update API."""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from git_externals.config.schema import DEFAULT_BRANCH, External, ExternalsConfig, Settings
from git_externals.config.store import ConfigStore
from git_externals.engine import operations
from git_externals.engine.reconciler import reconcile

if TYPE_CHECKING:
    from git_externals.engine.operations import ProgressCallback
    from git_externals.engine.types import OperationResult, StatusReport
    from git_externals.workspace import Workspace

__all__ = [
    "ConfigStore",
    "External",
    "ExternalsConfig",
    "Settings",
    "add",
    "heads",
    "init",
    "load",
    "remove",
    "reset",
    "run_in_externals",
    "status",
    "update",
]

logger = logging.getLogger(__name__)


def load(ws: Workspace) -> ExternalsConfig:
    """Load the declarations of the workspace (once per invocation)."""
    return ws.store.load()


def add(
    ws: Workspace, url: str, path: str, branch_or_commit: str = DEFAULT_BRANCH
) -> External:
    """Declare an external named after its path."""
    return ws.store.add(path, url, path, branch_or_commit)


def remove(ws: Workspace, name: str) -> bool:
    """Remove a declaration; False when it does not exist."""
    return ws.store.remove(name)


def status(ws: Workspace, config: ExternalsConfig | None = None) -> StatusReport:
    """Reconcile every declared external against its on-disk state."""
    if config is None:
        config = load(ws)
    report = reconcile(config.externals.values(), ws.probe, ws.root, origin_url=ws.origin_url())
    report.warnings = list(config.warnings)
    return report


def _bulk(
    ws: Workspace,
    operation: operations.Operation,
    action: str,
    target: str,
    progress: ProgressCallback | None,
    config: ExternalsConfig | None = None,
) -> list[OperationResult]:
    selected = (config if config is not None else load(ws)).select(target)
    logger.info("%s: %d external(s)", action, len(selected))
    return operations.run_bulk(ws, selected, operation, action=action, progress=progress)


def init(
    ws: Workspace, target: str = "all", *, progress: ProgressCallback | None = None
) -> list[OperationResult]:
    """Clone and check out missing externals."""
    return _bulk(ws, operations.init_external, "init", target, progress)


def update(
    ws: Workspace, target: str = "all", *, progress: ProgressCallback | None = None
) -> list[OperationResult]:
    """Re-fetch and check out the declared target of clean externals."""
    return _bulk(ws, operations.update_external, "update", target, progress)


def reset(
    ws: Workspace,
    target: str = "all",
    *,
    config: ExternalsConfig | None = None,
    progress: ProgressCallback | None = None,
) -> list[OperationResult]:
    """Hard-reset externals to their declared target. Destructive."""
    return _bulk(ws, operations.reset_external, "reset", target, progress, config)


def run_in_externals(ws: Workspace, command: str) -> list[OperationResult]:
    """Run a shell command inside every initialized external."""
    operation = partial(_run_command, command=command)
    return _bulk(ws, operation, "cmd", "all", None)


def _run_command(ws: Workspace, external: External, *, command: str) -> OperationResult:
    return operations.run_command(ws, external, command)


def heads(ws: Workspace) -> list[OperationResult]:
    """Resolve the remote default branch of every initialized external."""
    return _bulk(ws, operations.remote_head, "heads", "all", None)
