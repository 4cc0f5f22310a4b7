from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from git_externals.engine.errors import ProcessError, ResolutionError
from git_externals.engine.probe import RepositoryProbe

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from tests.unit.conftest import FakeRunner


@pytest.fixture
def probe(runner: FakeRunner) -> RepositoryProbe:
    return RepositoryProbe(runner)


class TestExists:
    def test_missing_directory(self, probe: RepositoryProbe, tmp_path: Path) -> None:
        assert not probe.exists(tmp_path / "lib")

    def test_directory_without_git(self, probe: RepositoryProbe, tmp_path: Path) -> None:
        (tmp_path / "lib").mkdir()
        assert not probe.exists(tmp_path / "lib")

    def test_repository(
        self, probe: RepositoryProbe, make_repo: Callable[[str], Path]
    ) -> None:
        assert probe.exists(make_repo("lib"))


class TestDirtiness:
    def test_clean(self, probe: RepositoryProbe, tmp_path: Path) -> None:
        assert not probe.is_dirty(tmp_path)

    def test_dirty(self, probe: RepositoryProbe, runner: FakeRunner, tmp_path: Path) -> None:
        runner.script("diff", "--quiet", returncode=1)
        assert probe.is_dirty(tmp_path)

    def test_git_failure_raises(
        self, probe: RepositoryProbe, runner: FakeRunner, tmp_path: Path
    ) -> None:
        runner.script("diff", "--quiet", returncode=128, stderr="fatal: bad revision 'HEAD'")
        with pytest.raises(ProcessError, match="bad revision"):
            probe.is_dirty(tmp_path)

    def test_untracked(self, probe: RepositoryProbe, runner: FakeRunner, tmp_path: Path) -> None:
        runner.script("ls-files", stdout="new.txt\n")
        assert probe.has_untracked(tmp_path)

    def test_no_untracked(self, probe: RepositoryProbe, tmp_path: Path) -> None:
        assert not probe.has_untracked(tmp_path)


class TestAheadBehind:
    def test_counts(self, probe: RepositoryProbe, runner: FakeRunner, tmp_path: Path) -> None:
        runner.script("rev-list", stdout="3\t1\n")
        assert probe.ahead_behind(tmp_path, "main") == (3, 1)
        assert runner.ran("rev-list", "--left-right", "--count", "main@{upstream}...main")

    def test_no_upstream(self, probe: RepositoryProbe, runner: FakeRunner, tmp_path: Path) -> None:
        runner.script("rev-list", returncode=128, stderr="fatal: no upstream configured")
        assert probe.ahead_behind(tmp_path, "main") is None

    def test_garbage_output(
        self, probe: RepositoryProbe, runner: FakeRunner, tmp_path: Path
    ) -> None:
        runner.script("rev-list", stdout="nope\n")
        assert probe.ahead_behind(tmp_path, "main") is None


class TestDefaultRemoteHead:
    def test_strips_remote_prefix(
        self, probe: RepositoryProbe, runner: FakeRunner, tmp_path: Path
    ) -> None:
        runner.script("symbolic-ref", stdout="refs/remotes/origin/develop\n")
        assert probe.default_remote_head(tmp_path) == "develop"

    def test_unresolvable(
        self, probe: RepositoryProbe, runner: FakeRunner, tmp_path: Path
    ) -> None:
        runner.script("symbolic-ref", returncode=128, stderr="fatal: ref is not a symbolic ref")
        with pytest.raises(ResolutionError, match="not a symbolic ref"):
            probe.default_remote_head(tmp_path)


class TestObserve:
    def test_missing_repository_runs_nothing(
        self, probe: RepositoryProbe, runner: FakeRunner, tmp_path: Path
    ) -> None:
        state = probe.observe(tmp_path / "lib")

        assert not state.exists
        assert runner.calls == []

    def test_on_branch(
        self,
        probe: RepositoryProbe,
        runner: FakeRunner,
        make_repo: Callable[[str], Path],
    ) -> None:
        path = make_repo("lib")
        runner.script("rev-parse", "--abbrev-ref", stdout="main\n")
        runner.script("rev-parse", "HEAD", stdout="abc123\n")
        runner.script("rev-list", stdout="0\t2\n")
        runner.script("config", "--get", "remote.origin.url", stdout="https://example.com/lib\n")
        runner.script("diff", returncode=1)

        state = probe.observe(path)

        assert state.exists
        assert state.current_branch == "main"
        assert state.current_revision == "abc123"
        assert state.remote_url == "https://example.com/lib"
        assert state.dirty
        assert not state.untracked
        assert (state.behind, state.ahead) == (0, 2)

    def test_detached_head_skips_upstream(
        self,
        probe: RepositoryProbe,
        runner: FakeRunner,
        make_repo: Callable[[str], Path],
    ) -> None:
        path = make_repo("lib")
        runner.script("rev-parse", "--abbrev-ref", stdout="HEAD\n")
        runner.script("rev-parse", "HEAD", stdout="abc123\n")

        state = probe.observe(path)

        assert state.current_branch == "HEAD"
        assert state.ahead is None
        assert state.behind is None
        assert not runner.ran("rev-list")

    def test_missing_remote(
        self,
        probe: RepositoryProbe,
        runner: FakeRunner,
        make_repo: Callable[[str], Path],
    ) -> None:
        path = make_repo("lib")
        runner.script("config", "--get", returncode=1)

        assert probe.observe(path).remote_url == ""
