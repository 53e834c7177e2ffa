"""Coverage gathering: discovery, conversion, parsing, model and views.

Usage:
    from covgather.coverage import CoverageStore, GatherOrchestrator

    store = CoverageStore(project_root="/src/project")
    orchestrator = GatherOrchestrator(store, Path("/src/project/build"))

    # Background cycle; callback fires once the new snapshot is published
    orchestrator.gather(lambda result: print(len(result.model)))

    # Readers query the current snapshot
    line = store.get_line("/src/project/main.c", 12)
"""

from covgather.coverage.converter import ConversionResult, GcovConverter
from covgather.coverage.gather import (
    CoverageStore,
    GatherOrchestrator,
    GatherResult,
    GatherState,
    GatherWarning,
)
from covgather.coverage.locator import find_raw_artifacts, purge_stale_outputs
from covgather.coverage.merge import merge_into, merge_models
from covgather.coverage.models import (
    UNKNOWN_FUNCTION,
    CoverageFile,
    CoverageFunction,
    CoverageLine,
    CoverageModel,
)
from covgather.coverage.parser import GcovIntermediateParser
from covgather.coverage.report import (
    EMPTY_MESSAGE,
    TreeRow,
    build_summary,
    build_text_summary,
    build_tree_rows,
    compute_file_stats,
)

__all__ = [
    # Models
    "UNKNOWN_FUNCTION",
    "CoverageFile",
    "CoverageFunction",
    "CoverageLine",
    "CoverageModel",
    # Pipeline
    "ConversionResult",
    "GcovConverter",
    "GcovIntermediateParser",
    "find_raw_artifacts",
    "purge_stale_outputs",
    "merge_into",
    "merge_models",
    # Orchestration
    "CoverageStore",
    "GatherOrchestrator",
    "GatherResult",
    "GatherState",
    "GatherWarning",
    # Report
    "EMPTY_MESSAGE",
    "TreeRow",
    "build_summary",
    "build_text_summary",
    "build_tree_rows",
    "compute_file_stats",
]
