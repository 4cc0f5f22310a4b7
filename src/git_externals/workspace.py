"""Host repository context shared by every command."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from git_externals.config.schema import Settings
from git_externals.config.store import ConfigStore
from git_externals.engine.errors import NotAtTopLevelError
from git_externals.engine.probe import RepositoryProbe
from git_externals.engine.process import ProcessRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Workspace:
    """Top-level directory of the host repository plus its collaborators."""

    root: Path
    settings: Settings
    runner: ProcessRunner
    store: ConfigStore
    probe: RepositoryProbe

    @classmethod
    def at(cls, root: Path, runner: ProcessRunner, settings: Settings | None = None) -> Workspace:
        """Wire a workspace for *root* without any top-level check."""
        settings = settings or Settings()
        return cls(
            root=root,
            settings=settings,
            runner=runner,
            store=ConfigStore(root, runner, settings),
            probe=RepositoryProbe(runner),
        )

    def external_path(self, relative: str) -> Path:
        return self.root / relative

    def origin_url(self) -> str | None:
        result = self.runner.git("config", "--get", "remote.origin.url", cwd=self.root)
        if not result.ok:
            return None
        return result.stdout.strip() or None


def open_workspace(cwd: Path | None = None, settings: Settings | None = None) -> Workspace:
    """Open the workspace for *cwd*, which must be the repository top level.

    Raises:
        NotAtTopLevelError: When *cwd* is outside a git repository or below
            its top-level directory.
    """
    settings = settings or Settings()
    cwd = (cwd or Path.cwd()).resolve()
    runner = ProcessRunner(settings.git)

    result = runner.git("rev-parse", "--show-toplevel", cwd=cwd)
    toplevel = result.stdout.strip() if result.ok else ""
    if not toplevel:
        raise NotAtTopLevelError(str(cwd), None)
    if Path(toplevel).resolve() != cwd:
        raise NotAtTopLevelError(str(cwd), toplevel)

    logger.debug("Workspace root: %s", cwd)
    return Workspace.at(cwd, runner, settings)
