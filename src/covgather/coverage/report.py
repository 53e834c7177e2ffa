"""Presentation-ready views over a coverage snapshot.

Output schema for build_summary:
{
    "summary": {
        "total_files": int,
        "covered_files": int,
        "total_lines": int,
        "covered_lines": int,
        "line_coverage_percent": float,
        "total_functions": int,
        "covered_functions": int,
        "function_coverage_percent": float | null
    },
    "files": [
        {
            "path": str,
            "label": str,
            "project_source": bool,
            "coverage_percent": float,   # mean of function ratios
            "total_lines": int,
            "covered_lines": int,
            "missed_lines": str,         # compressed ranges, e.g. "3-5,9"
            "functions": [
                {"name": str, "start_line": int, "end_line": int,
                 "execution_count": int, "coverage_percent": float,
                 "total_lines": int, "covered_lines": int},
                ...
            ]
        },
        ...
    ]
}
"""

from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Literal

from covgather.coverage.models import CoverageFile, CoverageFunction, CoverageModel

EMPTY_MESSAGE = 'No coverage data found. Did you compile with "--coverage"?'


@dataclass(frozen=True, slots=True)
class TreeRow:
    """One row of the file/function coverage tree."""

    kind: Literal["file", "function"]
    label: str
    path: str
    ratio: float
    covered: int
    total: int
    start_line: int | None = None

    @property
    def depth(self) -> int:
        return 0 if self.kind == "file" else 1

    @property
    def tooltip(self) -> str:
        return f"{self.covered}/{self.total} covered"


def _compress_ranges(lines: list[int]) -> str:
    """Compress sorted line numbers into range notation: [1,2,3,5] -> "1-3,5"."""
    if not lines:
        return ""

    ranges: list[str] = []
    start = prev = lines[0]
    for line in lines[1:]:
        if line == prev + 1:
            prev = line
            continue
        ranges.append(f"{start}-{prev}" if start != prev else str(start))
        start = prev = line
    ranges.append(f"{start}-{prev}" if start != prev else str(start))
    return ",".join(ranges)


def file_label(
    file: CoverageFile,
    project_root: PurePath | None,
    *,
    show_non_project_sources: bool,
) -> str:
    """Display label: project-relative while non-project sources are hidden."""
    if show_non_project_sources or project_root is None or not file.project_source:
        return file.path
    return str(PurePath(file.path).relative_to(project_root))


def visible_files(model: CoverageModel, *, show_non_project_sources: bool) -> list[CoverageFile]:
    """Files to present, sorted by path."""
    return [
        file
        for file in model.files.values()
        if show_non_project_sources or file.project_source
    ]


def build_tree_rows(model: CoverageModel, *, show_non_project_sources: bool) -> list[TreeRow]:
    """Flatten the snapshot into file rows each followed by its function rows."""
    rows: list[TreeRow] = []
    for file in visible_files(model, show_non_project_sources=show_non_project_sources):
        rows.append(
            TreeRow(
                kind="file",
                label=file_label(
                    file,
                    model.project_root,
                    show_non_project_sources=show_non_project_sources,
                ),
                path=file.path,
                ratio=file.coverage_ratio,
                covered=file.covered_lines,
                total=file.total_lines,
            )
        )
        for function in file.functions.values():
            rows.append(
                TreeRow(
                    kind="function",
                    label=function.name,
                    path=file.path,
                    ratio=function.coverage_ratio,
                    covered=function.covered_lines,
                    total=function.total_lines,
                    start_line=function.start_line,
                )
            )
    return rows


def _function_stats(function: CoverageFunction) -> dict[str, Any]:
    return {
        "name": function.name,
        "start_line": function.start_line,
        "end_line": function.end_line,
        "execution_count": function.execution_count,
        "coverage_percent": round(function.coverage_ratio * 100.0, 2),
        "total_lines": function.total_lines,
        "covered_lines": function.covered_lines,
    }


def compute_file_stats(
    model: CoverageModel,
    *,
    show_non_project_sources: bool = True,
) -> list[dict[str, Any]]:
    """Per-file coverage statistics, sorted by path."""
    stats = []
    for file in visible_files(model, show_non_project_sources=show_non_project_sources):
        stats.append(
            {
                "path": file.path,
                "label": file_label(
                    file,
                    model.project_root,
                    show_non_project_sources=show_non_project_sources,
                ),
                "project_source": file.project_source,
                "coverage_percent": round(file.coverage_ratio * 100.0, 2),
                "total_lines": file.total_lines,
                "covered_lines": file.covered_lines,
                "missed_lines": _compress_ranges(file.uncovered_lines),
                "functions": [_function_stats(f) for f in file.functions.values()],
            }
        )
    return stats


def build_summary(
    model: CoverageModel,
    *,
    show_non_project_sources: bool = True,
    include_files: bool = True,
) -> dict[str, Any]:
    """Build a structured coverage summary suitable for JSON serialization."""
    files = visible_files(model, show_non_project_sources=show_non_project_sources)

    total_lines = sum(f.total_lines for f in files)
    covered_lines = sum(f.covered_lines for f in files)
    functions = [fn for f in files for fn in f.functions.values() if not fn.is_unknown]
    covered_functions = sum(1 for fn in functions if fn.execution_count > 0)

    summary: dict[str, Any] = {
        "total_files": len(files),
        "covered_files": sum(1 for f in files if f.lines and f.covered_lines == f.total_lines),
        "total_lines": total_lines,
        "covered_lines": covered_lines,
        "line_coverage_percent": round(covered_lines / total_lines * 100.0, 2)
        if total_lines
        else 0.0,
        "total_functions": len(functions),
        "covered_functions": covered_functions,
        "function_coverage_percent": round(covered_functions / len(functions) * 100.0, 2)
        if functions
        else None,
    }

    result: dict[str, Any] = {"summary": summary}
    if include_files:
        result["files"] = compute_file_stats(
            model, show_non_project_sources=show_non_project_sources
        )
    return result


def build_text_summary(model: CoverageModel, *, show_non_project_sources: bool = True) -> str:
    """Concise one-line summary for display contexts."""
    files = visible_files(model, show_non_project_sources=show_non_project_sources)
    total_lines = sum(f.total_lines for f in files)
    if total_lines == 0:
        return EMPTY_MESSAGE

    covered_lines = sum(f.covered_lines for f in files)
    percent = covered_lines / total_lines * 100.0
    return f"Coverage: {percent:.1f}% ({covered_lines}/{total_lines} lines in {len(files)} files)"
