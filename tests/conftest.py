"""Shared test fixtures for sbo."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from sbo.context import BuildContext
from sbo.core.subprocess_utils import CommandResult
from sbo.manifest.models import (
    ArtifactSpec,
    BuildRecipe,
    BuildSystem,
    Dependency,
    PkgConfigSpec,
    SourceKind,
    SourceSpec,
)


@dataclass(frozen=True)
class RecordedCall:
    """One command seen by FakeRunner."""

    args: tuple[str, ...]
    cwd: Path | None
    env: Mapping[str, str] | None
    timeout: float | None


Matcher = tuple[str, ...] | Callable[[RecordedCall], bool]
Effect = Callable[[RecordedCall], None]


@dataclass
class _Rule:
    matcher: Matcher
    returncode: int
    stdout: str
    stderr: str
    effect: Effect | None

    def matches(self, call: RecordedCall) -> bool:
        if callable(self.matcher):
            return self.matcher(call)
        return call.args[: len(self.matcher)] == self.matcher


@dataclass
class FakeRunner:
    """Scripted CommandRunner.

    Rules registered later win. Unmatched commands succeed with no
    output. Effects run before the result is returned, so they can
    "install" files the way a real ``make install`` would.
    """

    rules: list[_Rule] = field(default_factory=list)
    calls: list[RecordedCall] = field(default_factory=list)

    def on(
        self,
        matcher: Matcher,
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Effect | None = None,
    ) -> FakeRunner:
        self.rules.append(_Rule(matcher, returncode, stdout, stderr, effect))
        return self

    def run(
        self,
        args: Sequence[str | Path],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        call = RecordedCall(tuple(str(a) for a in args), cwd, env, timeout)
        self.calls.append(call)
        for rule in reversed(self.rules):
            if rule.matches(call):
                if rule.effect is not None:
                    rule.effect(call)
                return CommandResult(
                    call.args, rule.returncode, rule.stdout, rule.stderr
                )
        return CommandResult(call.args, 0)

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [c.args for c in self.calls]

    def commands_in(self, cwd: Path) -> list[tuple[str, ...]]:
        return [c.args for c in self.calls if c.cwd == cwd]


def touch(path: Path, content: str = "") -> Path:
    """Create ``path`` and its parents."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture(autouse=True)
def isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    """Keep tests away from the user's ~/.sbo and SBO_* variables."""
    for name in list(os.environ):
        if name.startswith("SBO_"):
            monkeypatch.delenv(name)
    home = tmp_path_factory.mktemp("sbo-home")
    monkeypatch.setenv("SBO_DATA_DIR", str(home))


@pytest.fixture(autouse=True)
def reset_root_logging():
    """Drop handlers installed by configure_logging during a test."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def prefix(tmp_path: Path) -> Path:
    path = tmp_path / "prefix"
    path.mkdir()
    return path


@pytest.fixture
def build_context(tmp_path: Path, prefix: Path) -> BuildContext:
    """Context with a temporary prefix and source directory."""
    return BuildContext(
        prefix=prefix,
        source_dir=tmp_path / "src",
        jobs=4,
        base_env={"PATH": "/usr/bin", "PKG_CONFIG_PATH": "/opt/pc"},
    )


@pytest.fixture
def x265_dependency() -> Dependency:
    """Optional cmake dependency shaped like x265."""
    return Dependency(
        name="x265",
        source=SourceSpec(
            kind=SourceKind.GIT,
            url="https://example.invalid/x265_git.git",
            directory="x265_git",
        ),
        build=BuildRecipe(
            system=BuildSystem.CMAKE,
            work_dir="source",
            configure_args=("-DCMAKE_INSTALL_PREFIX={prefix}",),
        ),
        artifacts=ArtifactSpec(
            library="libx265.a",
            header="x265.h",
            library_fallback_dirs=("lib64", "lib/x86_64-linux-gnu"),
        ),
        optional=True,
        pkgconfig=PkgConfigSpec(
            name="x265",
            version="4.1",
            description="H.265/HEVC video encoder",
            libs="-L${libdir} -lx265",
            libs_private="-lstdc++ -lm -ldl",
        ),
    )
