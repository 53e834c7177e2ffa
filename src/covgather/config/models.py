"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (COVGATHER__SECTION__KEY)
3. Repo YAML (.covgather/config.yaml)
4. Global YAML (~/.config/covgather/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    COVGATHER__<SECTION>__<KEY>=<VALUE>

Examples:
    COVGATHER__LOGGING__LEVEL=DEBUG
    COVGATHER__GCOV__EXECUTABLE=/usr/bin/gcov-12
    COVGATHER__VIEW__SHOW_NON_PROJECT_SOURCES=true
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVGATHER__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every converted artifact.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class GcovConfig(BaseModel):
    """Converter invocation configuration.

    Env vars:
        COVGATHER__GCOV__EXECUTABLE: Converter executable name or path
        COVGATHER__GCOV__TIMEOUT_SEC: Max wait for a single conversion
        COVGATHER__GCOV__DELETE_RAW_ARTIFACTS: Delete .gcda files after a cycle
    """

    executable: str = Field(
        default="gcov",
        description="Converter executable. Bare names are resolved on PATH.",
    )
    flags: list[str] = Field(
        default_factory=lambda: ["-i", "-m", "-b"],
        description="Intermediate, demangled and branch output.",
    )
    raw_extension: str = Field(
        default=".gcda",
        description="Suffix of raw execution-count artifacts.",
    )
    output_suffix: str = Field(
        default=".gcov",
        description="Suffix the converter appends to the artifact path.",
    )
    timeout_sec: float = Field(
        default=120.0,
        description="Max wait for one conversion before it is reported as timed out.",
    )
    delete_raw_artifacts: bool = Field(
        default=True,
        description="Delete raw artifacts once the whole batch is processed. "
        "Counters accumulate across runs when raw artifacts are kept.",
    )
    purge_stale_outputs: bool = Field(
        default=True,
        description="Delete leftover converter outputs before converting.",
    )

    @field_validator("timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    @field_validator("raw_extension", "output_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        if not v:
            raise ValueError("Suffix must not be empty")
        return v


class ViewConfig(BaseModel):
    """Presentation configuration.

    Env vars:
        COVGATHER__VIEW__SHOW_NON_PROJECT_SOURCES: Include files outside the project
        COVGATHER__VIEW__PROJECT_ROOT: Root that defines project sources
    """

    show_non_project_sources: bool = Field(
        default=False,
        description="Include system headers and other files outside project_root.",
    )
    project_root: str | None = Field(
        default=None,
        description="Files under this directory are project sources.",
    )


class CovGatherConfig(BaseModel):
    """Root configuration for covgather."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    gcov: GcovConfig = Field(default_factory=GcovConfig)
    view: ViewConfig = Field(default_factory=ViewConfig)
