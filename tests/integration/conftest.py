"""Pytest fixtures for integration tests against a real git executable."""

from __future__ import annotations

import subprocess
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

_ENV_VARS = (
    "GIT_EXTERNALS_LOG",
    "GIT_EXTERNALS_CONFIG_FILE",
    "GIT_EXTERNALS_IGNORE_FILE",
    "GIT_EXTERNALS_GIT",
    "NO_COLOR",
)


def git(*args: str, cwd: Path) -> str:
    """Run git for test setup and return its stripped stdout."""
    completed = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return completed.stdout.strip()


@pytest.fixture(autouse=True)
def _isolated_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's git configuration and GIT_EXTERNALS_* settings out of the tests."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")


@pytest.fixture
def remotes(tmp_path: Path) -> Path:
    """Directory of bare repositories; ``lib.git`` has ``main`` and ``dev`` branches."""
    root = tmp_path / "remotes"
    seed = tmp_path / "seed"
    seed.mkdir()
    git("init", "-q", "-b", "main", cwd=seed)
    (seed / "README").write_text("lib\n")
    git("add", "README", cwd=seed)
    git("commit", "-q", "-m", "initial", cwd=seed)
    git("branch", "dev", cwd=seed)
    root.mkdir()
    git("clone", "-q", "--bare", str(seed), str(root / "lib.git"), cwd=tmp_path)
    return root


@pytest.fixture
def lib_url(remotes: Path) -> str:
    return str(remotes / "lib.git")


@pytest.fixture
def lib_head(remotes: Path) -> str:
    return git("rev-parse", "main", cwd=remotes / "lib.git")


@pytest.fixture
def host(tmp_path: Path, remotes: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A host repository whose origin sits next to ``lib.git``; cwd is its top level."""
    path = tmp_path / "host"
    path.mkdir()
    git("init", "-q", "-b", "main", cwd=path)
    git("remote", "add", "origin", str(remotes / "host.git"), cwd=path)
    monkeypatch.chdir(path)
    return path


@pytest.fixture
def run_git() -> Callable[..., str]:
    return git
