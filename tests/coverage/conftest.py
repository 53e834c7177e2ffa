"""Fixtures for coverage pipeline tests.

The converter is simulated by patching ``subprocess.run`` in the converter
module: the fake writes ``<artifact>.gcov`` from a per-artifact script, the
way ``gcov -i`` would.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from covgather.config.models import GcovConfig


@dataclass
class FakeGcov:
    """Scripted stand-in for the gcov executable."""

    outputs: dict[str, str] = field(default_factory=dict)  # artifact name -> text
    returncodes: dict[str, int] = field(default_factory=dict)
    timeouts: set[str] = field(default_factory=set)
    calls: list[dict[str, Any]] = field(default_factory=list)

    def run(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        self.calls.append({"args": list(args), **kwargs})
        artifact = Path(args[-1])
        if artifact.name in self.timeouts:
            raise subprocess.TimeoutExpired(args, kwargs.get("timeout", 0))
        code = self.returncodes.get(artifact.name, 0)
        if code == 0 and artifact.name in self.outputs:
            artifact.with_name(artifact.name + ".gcov").write_text(self.outputs[artifact.name])
        return subprocess.CompletedProcess(args, code)


@pytest.fixture
def fake_gcov() -> Generator[FakeGcov, None, None]:
    fake = FakeGcov()
    with (
        patch("covgather.coverage.converter.shutil.which", return_value="/usr/bin/gcov"),
        patch("covgather.coverage.converter.subprocess.run", side_effect=fake.run),
    ):
        yield fake


@pytest.fixture
def gcov_config() -> GcovConfig:
    return GcovConfig()


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    path = tmp_path / "build"
    path.mkdir()
    return path


@pytest.fixture
def make_artifact(build_dir: Path) -> Callable[[str], Path]:
    """Create an (opaque) raw artifact relative to the build directory."""

    def _make(relative: str) -> Path:
        path = build_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\x00gcda")
        return path

    return _make

