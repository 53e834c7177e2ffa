"""Tests for coverage report views."""

from pathlib import PurePath

import pytest

from covgather.coverage.models import UNKNOWN_FUNCTION, CoverageModel
from covgather.coverage.parser import GcovIntermediateParser
from covgather.coverage.report import (
    EMPTY_MESSAGE,
    _compress_ranges,
    build_summary,
    build_text_summary,
    build_tree_rows,
    file_label,
)


@pytest.fixture
def model() -> CoverageModel:
    model = CoverageModel(project_root="/proj")
    GcovIntermediateParser().parse_lines(
        [
            "file:/proj/src/a.c",
            "function:1,5,2,foo",
            "lcount:2,2,0",
            "lcount:3,0,0",
            "lcount:6,0,0",
            "file:/usr/include/stdio.h",
            "function:10,12,0,inline_helper",
            "lcount:11,0,0",
        ],
        model,
    )
    return model


class TestCompressRanges:
    @pytest.mark.parametrize(
        ("lines", "expected"),
        [
            ([], ""),
            ([4], "4"),
            ([1, 2, 3, 5], "1-3,5"),
            ([1, 3, 5], "1,3,5"),
            ([7, 8, 20, 21, 22], "7-8,20-22"),
        ],
    )
    def test_compress(self, lines: list[int], expected: str) -> None:
        assert _compress_ranges(lines) == expected


class TestLabels:
    def test_project_relative_when_hiding_others(self, model: CoverageModel) -> None:
        file = model.files["/proj/src/a.c"]
        label = file_label(file, PurePath("/proj"), show_non_project_sources=False)
        assert label == str(PurePath("src/a.c"))

    def test_full_path_when_showing_all(self, model: CoverageModel) -> None:
        file = model.files["/proj/src/a.c"]
        assert file_label(file, PurePath("/proj"), show_non_project_sources=True) == "/proj/src/a.c"

    def test_non_project_file_keeps_full_path(self, model: CoverageModel) -> None:
        file = model.files["/usr/include/stdio.h"]
        label = file_label(file, PurePath("/proj"), show_non_project_sources=False)
        assert label == "/usr/include/stdio.h"


class TestTreeRows:
    def test_hides_non_project_sources(self, model: CoverageModel) -> None:
        rows = build_tree_rows(model, show_non_project_sources=False)
        assert [r.path for r in rows if r.kind == "file"] == ["/proj/src/a.c"]

    def test_file_followed_by_functions(self, model: CoverageModel) -> None:
        rows = build_tree_rows(model, show_non_project_sources=True)

        assert [(r.kind, r.label) for r in rows] == [
            ("file", "/proj/src/a.c"),
            ("function", UNKNOWN_FUNCTION),
            ("function", "foo"),
            ("file", "/usr/include/stdio.h"),
            ("function", "inline_helper"),
        ]
        assert [r.depth for r in rows] == [0, 1, 1, 0, 1]

    def test_ratios_and_tooltips(self, model: CoverageModel) -> None:
        rows = {r.label: r for r in build_tree_rows(model, show_non_project_sources=True)}

        foo = rows["foo"]
        assert foo.ratio == pytest.approx(0.5)
        assert foo.tooltip == "1/2 covered"
        assert foo.start_line == 1
        # Mean of foo (1/2) and the sentinel (0/1).
        assert rows["/proj/src/a.c"].ratio == pytest.approx(0.25)
        assert rows["/proj/src/a.c"].tooltip == "1/3 covered"


class TestSummary:
    def test_summary_counts(self, model: CoverageModel) -> None:
        summary = build_summary(model)["summary"]

        assert summary["total_files"] == 2
        assert summary["covered_files"] == 0
        assert summary["total_lines"] == 4
        assert summary["covered_lines"] == 1
        assert summary["line_coverage_percent"] == 25.0
        # The sentinel is not a real function.
        assert summary["total_functions"] == 2
        assert summary["covered_functions"] == 1
        assert summary["function_coverage_percent"] == 50.0

    def test_file_entries(self, model: CoverageModel) -> None:
        files = build_summary(model, show_non_project_sources=False)["files"]

        assert len(files) == 1
        entry = files[0]
        assert entry["path"] == "/proj/src/a.c"
        assert entry["project_source"]
        assert entry["coverage_percent"] == 25.0
        assert entry["missed_lines"] == "3,6"
        assert [f["name"] for f in entry["functions"]] == [UNKNOWN_FUNCTION, "foo"]

    def test_without_files(self, model: CoverageModel) -> None:
        assert "files" not in build_summary(model, include_files=False)

    def test_empty_model(self) -> None:
        summary = build_summary(CoverageModel())["summary"]
        assert summary["line_coverage_percent"] == 0.0
        assert summary["function_coverage_percent"] is None


class TestTextSummary:
    def test_text(self, model: CoverageModel) -> None:
        assert build_text_summary(model) == "Coverage: 25.0% (1/4 lines in 2 files)"

    def test_empty_message(self) -> None:
        assert build_text_summary(CoverageModel()) == EMPTY_MESSAGE

    def test_only_hidden_files_is_empty(self) -> None:
        hidden = CoverageModel(project_root="/elsewhere")
        GcovIntermediateParser().parse_lines(["file:/a.c", "lcount:1,1,0"], hidden)
        assert build_text_summary(hidden, show_non_project_sources=False) == EMPTY_MESSAGE
