"""Background gather cycle: locate -> convert -> parse -> clean up -> publish.

Design:
- One single-worker ThreadPoolExecutor per orchestrator; callers never block
- Each cycle builds a fresh CoverageModel and swaps it into the CoverageStore
  only when complete, so readers see either the old or the new snapshot
- Per-artifact failures are skipped and recorded as warnings
- The completion callback fires exactly once per cycle, through ``dispatch``
"""

from __future__ import annotations

import functools
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog

from covgather.config.models import GcovConfig
from covgather.core.errors import (
    ConverterError,
    CoverageParseError,
    CovGatherError,
    ErrorCode,
    FormatContractError,
    InternalError,
)
from covgather.core.logging import clear_cycle_id, set_cycle_id
from covgather.coverage.converter import GcovConverter, discard, read_and_discard
from covgather.coverage.locator import find_raw_artifacts, purge_stale_outputs
from covgather.coverage.merge import merge_into
from covgather.coverage.models import CoverageFile, CoverageLine, CoverageModel
from covgather.coverage.parser import GcovIntermediateParser

logger = structlog.get_logger()


class GatherState(Enum):
    """Gather cycle state."""

    IDLE = "idle"
    LOCATING = "locating"
    CONVERTING = "converting"
    PARSING = "parsing"
    CLEANING_UP = "cleaning_up"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class GatherWarning:
    """Something the user should hear about; the cycle still completed."""

    kind: str
    message: str
    artifact: str | None = None


@dataclass
class GatherResult:
    """Outcome of one gather cycle."""

    model: CoverageModel
    artifacts: list[Path] = field(default_factory=list)
    parsed: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    warnings: list[GatherWarning] = field(default_factory=list)
    error: CovGatherError | None = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    def warn(self, kind: str, message: str, artifact: Path | None = None) -> None:
        """Record a warning unless an identical one was already recorded."""
        warning = GatherWarning(kind, message, str(artifact) if artifact is not None else None)
        if any(w.kind == kind and w.message == message for w in self.warnings):
            return
        self.warnings.append(warning)


GatherCallback = Callable[[GatherResult], None]
Dispatcher = Callable[[Callable[[], None]], None]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class CoverageStore:
    """Owner of the current coverage snapshot.

    Readers get the model through ``snapshot``; a gather cycle replaces it in
    one reference swap. The snapshot must be treated as read-only.
    """

    def __init__(self, project_root: str | Path | None = None) -> None:
        self._project_root = project_root
        self._lock = threading.Lock()
        self._snapshot = CoverageModel(project_root)

    @property
    def project_root(self) -> str | Path | None:
        return self._project_root

    @property
    def snapshot(self) -> CoverageModel:
        with self._lock:
            return self._snapshot

    def new_model(self) -> CoverageModel:
        return CoverageModel(self._project_root)

    def publish(self, model: CoverageModel) -> None:
        with self._lock:
            self._snapshot = model

    def clear(self) -> None:
        self.publish(self.new_model())

    def get_file(self, path: str) -> CoverageFile | None:
        return self.snapshot.get_file(path)

    def get_line(self, path: str, line: int) -> CoverageLine | None:
        return self.snapshot.get_line(path, line)


class GatherOrchestrator:
    """Runs gather cycles for one build directory.

    Cycles are serialized on a single worker thread; the pipeline has no
    cancellation. ``dispatch`` receives a zero-argument callable that invokes
    the completion callback and must run it in the caller's context (for an
    asyncio caller: ``loop.call_soon_threadsafe``).
    """

    def __init__(
        self,
        store: CoverageStore,
        build_directory: Path,
        config: GcovConfig | None = None,
        *,
        converter: GcovConverter | None = None,
        parser: GcovIntermediateParser | None = None,
        dispatch: Dispatcher | None = None,
    ) -> None:
        self._store = store
        self._build_directory = Path(build_directory)
        self._config = config or GcovConfig()
        self._converter = converter or GcovConverter(self._config)
        self._parser = parser or GcovIntermediateParser()
        self._dispatch = dispatch or _call_now
        self._state = GatherState.IDLE
        self._state_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None

    @property
    def state(self) -> GatherState:
        with self._state_lock:
            return self._state

    @property
    def build_directory(self) -> Path:
        return self._build_directory

    @build_directory.setter
    def build_directory(self, value: Path) -> None:
        self._build_directory = Path(value)

    def _enter(self, state: GatherState) -> None:
        with self._state_lock:
            self._state = state
        logger.debug("gather_state", state=state.value)

    def gather(self, callback: GatherCallback | None = None) -> Future[GatherResult]:
        """Start a cycle on the background worker and return immediately."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix="covgather-gather",
            )
        if self.state not in (GatherState.IDLE, GatherState.DONE):
            logger.warning("gather_already_running", state=self.state.value)
        return self._executor.submit(self._run_in_worker, callback)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker thread after any queued cycle finishes."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def _run_in_worker(self, callback: GatherCallback | None) -> GatherResult:
        try:
            result = self.gather_sync()
        except Exception as e:
            logger.exception("gather_crashed")
            result = GatherResult(
                model=self._store.new_model(),
                error=InternalError.unexpected(str(e), error_type=type(e).__name__),
            )
            self._enter(GatherState.DONE)
        if callback is not None:
            self._dispatch(functools.partial(callback, result))
        return result

    def gather_sync(self) -> GatherResult:
        """Run one full cycle on the calling thread.

        A format contract violation aborts the cycle: it is logged at error
        level and returned in ``result.error``, raw artifacts are still
        cleaned up, and the half-built model is not published.
        """
        set_cycle_id()
        started = time.monotonic()
        model = self._store.new_model()
        result = GatherResult(model=model)
        pending_outputs: list[Path] = []
        completed = False
        log = logger.bind(build_directory=str(self._build_directory))
        log.info("gather_started")

        try:
            self._enter(GatherState.LOCATING)
            if not self._build_directory.is_dir():
                result.warn(
                    "environment",
                    f"Build directory does not exist: {self._build_directory}",
                )
            elif self._config.purge_stale_outputs:
                purge_stale_outputs(self._build_directory, self._config.output_suffix)
            result.artifacts = find_raw_artifacts(self._build_directory, self._config.raw_extension)

            self._enter(GatherState.CONVERTING)
            for artifact in result.artifacts:
                conversion = self._converter.convert(artifact)
                if conversion.ok and conversion.output is not None:
                    pending_outputs.append(conversion.output)
                    continue
                result.skipped.append(artifact)
                if conversion.error is not None:
                    self._record_conversion_error(result, conversion.error, artifact)

            self._enter(GatherState.PARSING)
            suffix_len = len(self._config.output_suffix)
            for output in pending_outputs:
                artifact = output.with_name(output.name[:-suffix_len])
                if self._parse_one(model, output, artifact, result):
                    result.parsed.append(artifact)
                else:
                    result.skipped.append(artifact)
            completed = True

        except FormatContractError as e:
            result.error = e
            log.error("gather_aborted", error=e.message, details=e.details)

        finally:
            self._enter(GatherState.CLEANING_UP)
            for output in pending_outputs:
                discard(output)
            if self._config.delete_raw_artifacts:
                for artifact in result.artifacts:
                    if not discard(artifact):
                        log.warning("raw_artifact_not_deleted", artifact=str(artifact))
            result.duration_seconds = time.monotonic() - started
            if completed:
                self._store.publish(model)
            self._enter(GatherState.DONE)
            clear_cycle_id()

        log.info(
            "gather_finished",
            artifacts=len(result.artifacts),
            parsed=len(result.parsed),
            skipped=len(result.skipped),
            files=len(model),
            aborted=result.error is not None,
            duration_seconds=round(result.duration_seconds, 3),
        )
        return result

    def _record_conversion_error(
        self, result: GatherResult, error: ConverterError, artifact: Path
    ) -> None:
        logger.warning(
            "artifact_conversion_failed",
            artifact=str(artifact),
            error=error.error_name,
            details=error.details,
        )
        kind = "environment" if error.code == ErrorCode.CONVERTER_NOT_FOUND else "artifact"
        result.warn(kind, error.message, artifact)

    def _parse_one(
        self, model: CoverageModel, output: Path, artifact: Path, result: GatherResult
    ) -> bool:
        """Parse one converter output into ``model``; per-artifact failures return False."""
        scratch = self._store.new_model()
        try:
            with read_and_discard(output) as lines:
                if not lines:
                    logger.warning("converter_output_empty", artifact=str(artifact))
                    return False
                self._parser.parse_lines(lines, scratch)
        except CoverageParseError as e:
            logger.warning("artifact_parse_failed", artifact=str(artifact), error=e.message)
            result.warn("artifact", e.message, artifact)
            return False
        except OSError as e:
            logger.warning("converter_output_unreadable", artifact=str(artifact), error=str(e))
            return False
        merge_into(model, scratch)
        return True
