"""Additive merging of coverage models.

Each converter output is parsed into its own scratch model and folded into
the cycle's model only once it parsed cleanly, so a malformed file leaves no
partial records behind. Merging uses the same upsert rules as parsing:

- function[k].execution_count = sum across models
- line[i].execution_count = sum across models
- a line stays under the function name the source attributed it to (the
  unknown-function sentinel included), so folding one parsed output into an
  empty model reproduces that parse exactly
"""

from collections.abc import Iterable

from covgather.coverage.models import CoverageModel


def merge_into(target: CoverageModel, source: CoverageModel) -> CoverageModel:
    """Fold every record of ``source`` into ``target``.

    Returns:
        ``target``, for chaining.
    """
    for path, source_file in source.files.items():
        target_file = target.upsert_file(path)

        for function in source_file.functions.values():
            owner = target.upsert_function(
                target_file,
                function.start_line,
                function.end_line,
                function.execution_count,
                function.name,
            )
            for line in function.iter_lines():
                target.upsert_line(
                    owner,
                    line.line_number,
                    line.execution_count,
                    line.unexecuted_block,
                )

    return target


def merge_models(models: Iterable[CoverageModel], target: CoverageModel) -> CoverageModel:
    """Fold several models into ``target`` in order."""
    for model in models:
        merge_into(target, model)
    return target
