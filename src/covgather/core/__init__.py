"""Core module exports."""

from covgather.core.errors import (
    ConfigError,
    ConverterError,
    CoverageParseError,
    CovGatherError,
    ErrorCode,
    FormatContractError,
    InternalError,
)
from covgather.core.logging import (
    clear_cycle_id,
    configure_logging,
    get_cycle_id,
    set_cycle_id,
)

__all__ = [
    # Errors
    "CovGatherError",
    "ConfigError",
    "ConverterError",
    "CoverageParseError",
    "ErrorCode",
    "FormatContractError",
    "InternalError",
    # Logging
    "clear_cycle_id",
    "configure_logging",
    "get_cycle_id",
    "set_cycle_id",
]
