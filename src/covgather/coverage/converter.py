"""Invocation of the external converter (gcov) for one raw artifact.

``gcov -i -m -b <artifact>`` runs in the artifact's directory and writes
``<artifact>.gcov`` beside it. Its own output is discarded; success is judged
only by the exit status and the presence of that sibling file.
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import structlog

from covgather.config.models import GcovConfig
from covgather.core.errors import ConverterError

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Outcome of converting one raw artifact."""

    artifact: Path
    output: Path | None = None
    error: ConverterError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.output is not None


class GcovConverter:
    """Runs the converter executable against raw artifacts."""

    def __init__(self, config: GcovConfig | None = None) -> None:
        self._config = config or GcovConfig()

    @property
    def config(self) -> GcovConfig:
        return self._config

    def output_path(self, artifact: Path) -> Path:
        return artifact.with_name(artifact.name + self._config.output_suffix)

    def build_command(self, artifact: Path, executable: str | None = None) -> list[str]:
        return [executable or self._config.executable, *self._config.flags, str(artifact)]

    def resolve_executable(self) -> str | None:
        """Absolute path of the converter, or None when it is not on PATH."""
        return shutil.which(self._config.executable)

    def convert(self, artifact: Path) -> ConversionResult:
        """Convert one artifact. Never raises for converter failures."""
        executable = self.resolve_executable()
        if executable is None:
            return ConversionResult(artifact, error=ConverterError.not_found(self._config.executable))

        args = self.build_command(artifact, executable)
        try:
            proc = subprocess.run(
                args,
                cwd=artifact.parent,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.STDOUT,
                timeout=self._config.timeout_sec,
                check=False,
            )
        except FileNotFoundError:
            return ConversionResult(artifact, error=ConverterError.not_found(self._config.executable))
        except subprocess.TimeoutExpired:
            return ConversionResult(
                artifact,
                error=ConverterError.timed_out(str(artifact), self._config.timeout_sec),
            )

        if proc.returncode != 0:
            return ConversionResult(artifact, error=ConverterError.failed(proc.returncode, args))

        output = self.output_path(artifact)
        if not output.is_file():
            return ConversionResult(
                artifact,
                error=ConverterError.missing_output(str(artifact), str(output)),
            )

        logger.debug("artifact_converted", artifact=str(artifact), output=str(output))
        return ConversionResult(artifact, output=output)


@contextmanager
def read_and_discard(output: Path) -> Iterator[list[str]]:
    """Yield the lines of a converter output, deleting the file on every exit path."""
    try:
        with output.open(encoding="utf-8", errors="replace") as f:
            lines = f.read().splitlines()
        yield lines
    finally:
        discard(output)


def discard(path: Path) -> bool:
    """Delete ``path``; failures are logged and reported as False."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("file_not_deleted", path=str(path), error=str(e))
        return False
    return True
