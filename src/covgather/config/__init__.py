"""Config module exports."""

from covgather.config.loader import CovGatherSettings, load_config
from covgather.config.models import (
    CovGatherConfig,
    GcovConfig,
    LoggingConfig,
    LogOutputConfig,
    ViewConfig,
)

__all__ = [
    "load_config",
    "CovGatherConfig",
    "CovGatherSettings",
    "GcovConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "ViewConfig",
]
