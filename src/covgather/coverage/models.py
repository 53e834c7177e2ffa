"""Hierarchical coverage model: project -> files -> functions -> lines.

File-centric like every coverage view, but lines are also grouped under the
function that owns them so a tree can show per-function coverage. Each file
keeps a flat line index next to the per-function maps; both are only ever
mutated through CoverageModel.upsert_line so they stay in lock-step.

Duplicate observations merge by addition: a function or line mentioned twice
has its execution counts summed. Parsing the same text twice therefore doubles
every count, exactly as if the program had run twice.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, MutableMapping
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import TypeVar

UNKNOWN_FUNCTION = "<unknown function>"

K = TypeVar("K")
V = TypeVar("V")


def upsert(
    container: MutableMapping[K, V],
    key: K,
    create: Callable[[], V],
    accumulate: Callable[[V], None] | None = None,
) -> tuple[V, bool]:
    """Insert ``create()`` under ``key`` or fold a new observation into the existing value.

    Returns:
        (value, created) where created is True when the key was new.
    """
    existing = container.get(key)
    if existing is None:
        value = create()
        container[key] = value
        return value, True
    if accumulate is not None:
        accumulate(existing)
    return existing, False


@dataclass(slots=True)
class CoverageLine:
    """Execution count for one source line."""

    line_number: int
    execution_count: int = 0
    unexecuted_block: bool = False

    @property
    def covered(self) -> bool:
        return self.execution_count != 0


@dataclass(eq=False, slots=True)
class CoverageFunction:
    """A function and the lines attributed to it.

    The sentinel ``<unknown function>`` has the range [-1, -1] and absorbs
    lines that fall outside every known function.
    """

    name: str
    start_line: int
    end_line: int
    execution_count: int = 0
    lines: dict[int, CoverageLine] = field(default_factory=dict)
    file: CoverageFile | None = field(default=None, repr=False)

    @property
    def is_unknown(self) -> bool:
        return self.name == UNKNOWN_FUNCTION and self.start_line == -1

    def contains(self, line: int) -> bool:
        if self.is_unknown:
            return False
        return self.start_line <= line <= self.end_line

    @property
    def total_lines(self) -> int:
        return len(self.lines)

    @property
    def covered_lines(self) -> int:
        return sum(1 for ln in self.lines.values() if ln.covered)

    @property
    def coverage_ratio(self) -> float:
        """Covered lines over total lines; 0/0 is 0."""
        if not self.lines:
            return 0.0
        return self.covered_lines / len(self.lines)

    def iter_lines(self) -> Iterator[CoverageLine]:
        """Lines in ascending line-number order."""
        for number in sorted(self.lines):
            yield self.lines[number]


@dataclass(eq=False, slots=True)
class CoverageFile:
    """Coverage for one source file, keyed by absolute path."""

    path: str
    project_source: bool = False
    functions: dict[str, CoverageFunction] = field(default_factory=dict)  # name -> function
    lines: dict[int, CoverageLine] = field(default_factory=dict)  # flat index over functions

    def function_owning(self, line: int) -> CoverageFunction | None:
        """First function (by name) whose range contains ``line``, else None."""
        for function in self.functions.values():
            if function.contains(line):
                return function
        return None

    def line_at(self, line: int) -> CoverageLine | None:
        return self.lines.get(line)

    @property
    def total_lines(self) -> int:
        return len(self.lines)

    @property
    def covered_lines(self) -> int:
        return sum(1 for ln in self.lines.values() if ln.covered)

    @property
    def coverage_ratio(self) -> float:
        """Mean of the per-function ratios (functions without lines count as 0).

        This is deliberately not covered_lines / total_lines: every function
        weighs the same regardless of its size.
        """
        if not self.functions:
            return 0.0
        return sum(f.coverage_ratio for f in self.functions.values()) / len(self.functions)

    @property
    def uncovered_lines(self) -> list[int]:
        return sorted(number for number, ln in self.lines.items() if not ln.covered)


class CoverageModel:
    """Mutable coverage store for one gather cycle.

    Not thread-safe. A cycle builds a fresh model on its worker thread and the
    finished instance is published through CoverageStore.
    """

    def __init__(self, project_root: str | PurePath | None = None) -> None:
        self._project_root = PurePath(project_root) if project_root is not None else None
        self._files: dict[str, CoverageFile] = {}

    @property
    def project_root(self) -> PurePath | None:
        return self._project_root

    @property
    def files(self) -> dict[str, CoverageFile]:
        """Files sorted by path."""
        return dict(sorted(self._files.items()))

    def __len__(self) -> int:
        return len(self._files)

    def __bool__(self) -> bool:
        return bool(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def reset(self) -> None:
        self._files.clear()

    def is_project_source(self, path: str) -> bool:
        if self._project_root is None:
            return False
        return PurePath(path).is_relative_to(self._project_root)

    def get_file(self, path: str) -> CoverageFile | None:
        return self._files.get(path)

    def get_line(self, path: str, line: int) -> CoverageLine | None:
        file = self._files.get(path)
        if file is None:
            return None
        return file.line_at(line)

    def upsert_file(self, path: str) -> CoverageFile:
        file, _ = upsert(
            self._files,
            path,
            lambda: CoverageFile(path=path, project_source=self.is_project_source(path)),
        )
        return file

    def upsert_function(
        self,
        file: CoverageFile,
        start_line: int,
        end_line: int,
        execution_count: int,
        name: str,
    ) -> CoverageFunction:
        def _add(existing: CoverageFunction) -> None:
            existing.execution_count += execution_count

        function, created = upsert(
            file.functions,
            name,
            lambda: CoverageFunction(
                name=name,
                start_line=start_line,
                end_line=end_line,
                execution_count=execution_count,
                file=file,
            ),
            _add,
        )
        if created:
            # Keep name order so the range scan's "first match" is stable.
            file.functions = dict(sorted(file.functions.items()))
        return function

    def upsert_line(
        self,
        function: CoverageFunction,
        line: int,
        execution_count: int,
        unexecuted_block: bool = False,
    ) -> CoverageLine:
        """Create or add to a line record under ``function``.

        A line number already recorded under another function of the same file
        moves to ``function``, so every file holds one record per line.
        """
        file = function.file
        if file is not None and line not in function.lines and line in file.lines:
            function.lines[line] = self._detach_line(file, line)

        def _add(existing: CoverageLine) -> None:
            existing.execution_count += execution_count
            existing.unexecuted_block = existing.unexecuted_block or unexecuted_block

        record, created = upsert(
            function.lines,
            line,
            lambda: CoverageLine(
                line_number=line,
                execution_count=execution_count,
                unexecuted_block=unexecuted_block,
            ),
            _add,
        )
        if created and file is not None:
            file.lines[line] = record
        return record

    @staticmethod
    def _detach_line(file: CoverageFile, line: int) -> CoverageLine:
        record = file.lines[line]
        for name, owner in list(file.functions.items()):
            if owner.lines.get(line) is record:
                del owner.lines[line]
                if owner.is_unknown and not owner.lines:
                    del file.functions[name]
                break
        return record

    def function_owning(self, file: CoverageFile, line: int) -> CoverageFunction:
        """Function whose range contains ``line``, or the unknown-function sentinel."""
        function = file.function_owning(line)
        if function is not None:
            return function
        return self.upsert_function(file, -1, -1, 0, UNKNOWN_FUNCTION)

    @staticmethod
    def coverage_ratio(entity: CoverageFile | CoverageFunction) -> float:
        return entity.coverage_ratio
