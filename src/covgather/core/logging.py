"""Structured logging for gather cycles.

structlog events are rendered by stdlib handlers, one per configured output,
each with its own level and renderer. Events logged while a gather cycle runs
carry that cycle's ``cycle_id``.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from covgather.config.models import LoggingConfig, LogOutputConfig

_cycle_id: ContextVar[str | None] = ContextVar("cycle_id", default=None)


def get_cycle_id() -> str | None:
    return _cycle_id.get()


def set_cycle_id(cycle_id: str | None = None) -> str:
    """Correlate subsequent events with a gather cycle, generating an id if needed."""
    cid = cycle_id or uuid4().hex[:12]
    _cycle_id.set(cid)
    return cid


def clear_cycle_id() -> None:
    _cycle_id.set(None)


def _add_cycle_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if cid := get_cycle_id():
        event_dict["cycle_id"] = cid
    return event_dict


def _level(name: str) -> int:
    return logging.getLevelNamesMapping()[name.upper()]


def _handler_for(output: LogOutputConfig) -> logging.Handler:
    if output.destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if output.destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(output.destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def _renderer_for(output: LogOutputConfig) -> structlog.types.Processor:
    if output.format == "json":
        return structlog.processors.JSONRenderer()
    stream = sys.stdout if output.destination == "stdout" else sys.stderr
    colors = output.destination in ("stderr", "stdout") and stream.isatty()
    return structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)


def configure_logging(*, config: LoggingConfig | None = None, level: str = "INFO") -> None:
    """Route structlog through one stdlib handler per configured output.

    Without ``config`` a single console output on stderr is used at ``level``.
    Safe to call again; previous handlers are replaced.
    """
    from covgather.config.models import LoggingConfig

    if config is None:
        config = LoggingConfig(level=level.upper())  # type: ignore[arg-type]

    root_level = _level(config.level)
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_cycle_id,  # type: ignore[list-item]
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration must take effect for loggers created at import time.
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(root_level)

    for output in config.outputs:
        handler = _handler_for(output)
        handler.setLevel(_level(output.level or config.level))
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=_renderer_for(output),
                foreign_pre_chain=shared_processors,
            )
        )
        root_logger.addHandler(handler)
