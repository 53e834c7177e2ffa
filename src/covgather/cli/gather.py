"""covgather gather command - run one gather cycle and print the result."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from covgather.config import load_config
from covgather.core.errors import ConfigError
from covgather.core.logging import configure_logging
from covgather.coverage import (
    EMPTY_MESSAGE,
    CoverageStore,
    GatherOrchestrator,
    GatherResult,
    build_summary,
    build_text_summary,
    build_tree_rows,
)

_console = Console()
_err_console = Console(stderr=True)


def _ratio_style(ratio: float) -> str:
    if ratio >= 0.8:
        return "green"
    if ratio >= 0.5:
        return "yellow"
    return "red"


def _print_table(result: GatherResult, *, show_non_project_sources: bool) -> None:
    rows = build_tree_rows(result.model, show_non_project_sources=show_non_project_sources)
    if not rows:
        _console.print(EMPTY_MESSAGE)
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Function/File")
    table.add_column("Coverage", justify="right")
    table.add_column("Lines", justify="right")
    for row in rows:
        label = row.label if row.kind == "file" else f"  {row.label}"
        percent = f"[{_ratio_style(row.ratio)}]{row.ratio * 100:.1f}%[/]"
        table.add_row(label, percent, row.tooltip, style="bold" if row.kind == "file" else None)
    _console.print(table)
    _console.print(
        build_text_summary(result.model, show_non_project_sources=show_non_project_sources)
    )


@click.command()
@click.argument(
    "build_dir",
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Files under this directory are project sources (default: current directory).",
)
@click.option(
    "--show-non-project-sources",
    is_flag=True,
    help="Include system headers and other files outside the project root.",
)
@click.option("--gcov", "gcov_executable", default=None, help="Converter executable to run.")
@click.option("--keep-raw", is_flag=True, help="Do not delete raw .gcda artifacts afterwards.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def gather_command(
    ctx: click.Context,
    build_dir: Path,
    project_root: Path | None,
    show_non_project_sources: bool,
    gcov_executable: str | None,
    keep_raw: bool,
    as_json: bool,
) -> None:
    """Convert and collect coverage from the raw artifacts under BUILD_DIR."""
    root = (project_root or Path.cwd()).resolve()
    try:
        config = load_config(root)
    except ConfigError as e:
        raise click.ClickException(e.message) from e

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    if verbose:
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)

    gcov_updates: dict[str, object] = {}
    if gcov_executable:
        gcov_updates["executable"] = gcov_executable
    if keep_raw:
        gcov_updates["delete_raw_artifacts"] = False
    gcov_config = config.gcov.model_copy(update=gcov_updates)

    show_all = show_non_project_sources or config.view.show_non_project_sources
    # An explicit --project-root beats view.project_root from config.
    source_root = root if project_root is not None else (config.view.project_root or root)
    store = CoverageStore(project_root=source_root)
    orchestrator = GatherOrchestrator(store, build_dir.resolve(), gcov_config)
    result = orchestrator.gather_sync()

    for warning in result.warnings:
        _err_console.print(f"[yellow]![/yellow] {warning.message}")

    if result.error is not None:
        raise click.ClickException(str(result.error))

    if as_json:
        summary = build_summary(result.model, show_non_project_sources=show_all)
        summary["artifacts"] = len(result.artifacts)
        summary["parsed"] = len(result.parsed)
        summary["skipped"] = len(result.skipped)
        summary["warnings"] = [w.message for w in result.warnings]
        click.echo(json.dumps(summary, indent=2))
    else:
        _print_table(result, show_non_project_sources=show_all)
