"""Tests for git clone-or-update."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeRunner, RecordedCall
from sbo.core.subprocess_utils import CommandResult
from sbo.errors import FetchError
from sbo.fetch import FetchAction, fetch_git, fetch_source
from sbo.manifest.models import SourceKind, SourceSpec

SOURCE = SourceSpec(
    kind=SourceKind.GIT,
    url="https://example.invalid/x264.git",
    directory="x264",
)


def _make_checkout(call: RecordedCall) -> None:
    (Path(call.args[-1]) / ".git").mkdir(parents=True)


class _HeadSequenceRunner(FakeRunner):
    """Answers successive ``git rev-parse HEAD`` calls from a list."""

    def __init__(self, heads: list[str]) -> None:
        super().__init__()
        self._heads = iter(heads)

    def run(self, args, **kwargs) -> CommandResult:
        result = super().run(args, **kwargs)
        if result.args[:2] == ("git", "rev-parse"):
            return CommandResult(result.args, 0, next(self._heads))
        return result


class TestClone:
    """A missing directory is cloned."""

    def test_clones_into_src_dir(self, tmp_path: Path, fake_runner: FakeRunner):
        fake_runner.on(("git", "clone"), effect=_make_checkout)
        fake_runner.on(("git", "rev-parse"), stdout="abc123\n")

        result = fetch_git("x264", SOURCE, tmp_path, runner=fake_runner)

        assert result.action is FetchAction.CLONED
        assert result.path == tmp_path / "x264"
        assert result.revision_after == "abc123"
        assert result.changed
        assert fake_runner.calls[0].args == (
            "git",
            "clone",
            "https://example.invalid/x264.git",
            str(tmp_path / "x264"),
        )
        assert fake_runner.calls[0].cwd == tmp_path

    def test_shallow_clone(self, tmp_path: Path, fake_runner: FakeRunner):
        source = SourceSpec(
            kind=SourceKind.GIT,
            url="https://example.invalid/x264.git",
            directory="x264",
            depth=1,
        )
        fetch_git("x264", source, tmp_path, runner=fake_runner)
        assert fake_runner.calls[0].args[:4] == ("git", "clone", "--depth", "1")

    def test_clone_failure_raises(self, tmp_path: Path, fake_runner: FakeRunner):
        fake_runner.on(("git", "clone"), returncode=128, stderr="fatal: not found")

        with pytest.raises(FetchError) as exc_info:
            fetch_git("x264", SOURCE, tmp_path, runner=fake_runner)

        assert exc_info.value.dependency == "x264"
        assert "status 128" in exc_info.value.reason


class TestUpdate:
    """An existing checkout is fast-forwarded."""

    def test_pulls_and_updates_submodules(self, tmp_path: Path):
        dest = tmp_path / "x264"
        (dest / ".git").mkdir(parents=True)
        runner = _HeadSequenceRunner(["aaa\n", "bbb\n"])

        result = fetch_git("x264", SOURCE, tmp_path, runner=runner)

        assert result.action is FetchAction.UPDATED
        assert result.revision_before == "aaa"
        assert result.revision_after == "bbb"
        assert result.changed
        assert runner.commands_in(dest) == [
            ("git", "rev-parse", "HEAD"),
            ("git", "pull", "--ff-only", "--quiet"),
            ("git", "submodule", "update", "--init", "--recursive", "--quiet"),
            ("git", "rev-parse", "HEAD"),
        ]

    def test_unchanged_checkout(self, tmp_path: Path, fake_runner: FakeRunner):
        (tmp_path / "x264" / ".git").mkdir(parents=True)
        fake_runner.on(("git", "rev-parse"), stdout="same\n")

        result = fetch_git("x264", SOURCE, tmp_path, runner=fake_runner)

        assert result.action is FetchAction.UPDATED
        assert not result.changed

    def test_pull_failure_raises(self, tmp_path: Path, fake_runner: FakeRunner):
        (tmp_path / "x264" / ".git").mkdir(parents=True)
        fake_runner.on(("git", "pull"), returncode=1, stderr="not fast-forward")

        with pytest.raises(FetchError, match="git pull exited with status 1"):
            fetch_git("x264", SOURCE, tmp_path, runner=fake_runner)

    def test_skip_updates(self, tmp_path: Path, fake_runner: FakeRunner):
        (tmp_path / "x264" / ".git").mkdir(parents=True)

        result = fetch_git(
            "x264", SOURCE, tmp_path, runner=fake_runner, skip_updates=True
        )

        assert result.action is FetchAction.SKIPPED
        assert not result.changed
        assert fake_runner.calls == []

    def test_directory_without_git_is_rejected(
        self, tmp_path: Path, fake_runner: FakeRunner
    ):
        (tmp_path / "x264").mkdir()
        with pytest.raises(FetchError, match="not a git checkout"):
            fetch_git("x264", SOURCE, tmp_path, runner=fake_runner)


class TestFetchSource:
    """Dispatch through fetch_source."""

    def test_creates_src_dir_and_dispatches_git(
        self, tmp_path: Path, fake_runner: FakeRunner
    ):
        src_dir = tmp_path / "nested" / "src"
        fake_runner.on(("git", "clone"), effect=_make_checkout)

        result = fetch_source("x264", SOURCE, src_dir, runner=fake_runner)

        assert src_dir.is_dir()
        assert result.action is FetchAction.CLONED
