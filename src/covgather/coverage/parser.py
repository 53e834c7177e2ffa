"""gcov intermediate text format parser.

The intermediate format (``gcov -i``) is line oriented, one ``<tag>:<payload>``
record per line:
- file:<absolute source path>
- function:<start line>,<end line>,<execution count>,<name>
- lcount:<line number>,<execution count>,<has unexecuted block>
- branch:<line number>,<taken|nottaken|notexec>
- version:<gcc version>

``branch`` and ``version`` records are accepted and dropped; any other tag is
ignored. Function names are demangled and may themselves contain commas, so the
name is everything after the third comma.

Used by: gcc 5-8 ``gcov -i`` (gcc 9+ switched to gzipped JSON).
"""

import re
from collections.abc import Iterable

import structlog

from covgather.core.errors import CoverageParseError, FormatContractError
from covgather.coverage.models import CoverageFile, CoverageModel

logger = structlog.get_logger()

_INTEGER = re.compile(r"-?\d+")


def _parse_int(
    text: str, what: str, line: str, lineno: int, *, minimum: int | None = None
) -> int:
    if not _INTEGER.fullmatch(text):
        raise CoverageParseError.malformed(line, f"{what} is not an integer: {text!r}", lineno)
    value = int(text)
    if minimum is not None and value < minimum:
        raise CoverageParseError.malformed(line, f"{what} must be >= {minimum}: {value}", lineno)
    return value


class GcovIntermediateParser:
    """Parser for gcov intermediate text output."""

    def parse_lines(self, lines: Iterable[str], model: CoverageModel) -> None:
        """Feed structured-text records into ``model``.

        Raises:
            CoverageParseError: A numeric field is malformed or a function range is inverted.
            FormatContractError: A function/lcount record precedes every file record.
        """
        current_file: CoverageFile | None = None

        for lineno, raw in enumerate(lines, start=1):
            line = raw.rstrip("\r\n")
            tag, sep, payload = line.partition(":")
            if not sep:
                continue

            if tag == "file":
                current_file = model.upsert_file(payload)

            elif tag == "function":
                if current_file is None:
                    raise FormatContractError.record_before_file(tag, lineno)
                parts = payload.split(",", 3)
                if len(parts) < 4:
                    raise CoverageParseError.malformed(line, "expected 4 fields", lineno)
                start_line = _parse_int(parts[0], "start line", line, lineno)
                end_line = _parse_int(parts[1], "end line", line, lineno)
                if start_line > end_line:
                    raise CoverageParseError.malformed(
                        line, f"start line {start_line} is after end line {end_line}", lineno
                    )
                count = _parse_int(parts[2], "execution count", line, lineno, minimum=0)
                model.upsert_function(current_file, start_line, end_line, count, parts[3])

            elif tag == "lcount":
                if current_file is None:
                    raise FormatContractError.record_before_file(tag, lineno)
                parts = payload.split(",")
                if len(parts) < 2:
                    raise CoverageParseError.malformed(line, "expected at least 2 fields", lineno)
                line_number = _parse_int(parts[0], "line number", line, lineno)
                count = _parse_int(parts[1], "execution count", line, lineno, minimum=0)
                unexecuted = (
                    _parse_int(parts[2], "unexecuted block flag", line, lineno) == 1
                    if len(parts) > 2
                    else False
                )
                function = model.function_owning(current_file, line_number)
                model.upsert_line(function, line_number, count, unexecuted)

            elif tag in ("branch", "version"):
                # Branch coverage is not modeled.
                pass

            else:
                logger.debug("unknown_record_ignored", tag=tag, lineno=lineno)
