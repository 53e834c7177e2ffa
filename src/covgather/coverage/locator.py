"""Raw artifact discovery under a build output directory."""

from pathlib import Path

import structlog

logger = structlog.get_logger()


def find_raw_artifacts(root: Path, extension: str = ".gcda") -> list[Path]:
    """Regular files under ``root`` whose name ends with ``extension``.

    Searches recursively without a depth limit. A missing root yields an
    empty list. Results are sorted by path so runs are reproducible.
    """
    if not root.is_dir():
        logger.warning("build_directory_missing", path=str(root))
        return []
    found = sorted(
        path for path in root.rglob("*") if path.name.endswith(extension) and path.is_file()
    )
    logger.debug("raw_artifacts_found", root=str(root), count=len(found))
    return found


def purge_stale_outputs(root: Path, suffix: str = ".gcov") -> int:
    """Delete converter outputs left behind by an interrupted cycle.

    Returns:
        Number of files removed. Files that cannot be removed are logged.
    """
    if not root.is_dir():
        return 0
    removed = 0
    for path in sorted(root.rglob("*")):
        if not path.name.endswith(suffix) or not path.is_file():
            continue
        try:
            path.unlink()
            removed += 1
        except OSError as e:
            logger.warning("stale_output_not_deleted", path=str(path), error=str(e))
    if removed:
        logger.debug("stale_outputs_purged", root=str(root), count=removed)
    return removed
