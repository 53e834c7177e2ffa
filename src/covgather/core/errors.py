"""covgather error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Gather (conversion, parsing)
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Gather (3xxx)
    CONVERTER_NOT_FOUND = 3001
    CONVERTER_FAILED = 3002
    CONVERTER_TIMEOUT = 3003
    CONVERTER_NO_OUTPUT = 3004
    COVERAGE_PARSE_ERROR = 3101
    FORMAT_CONTRACT_VIOLATION = 3102

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True)
class CovGatherError(Exception):
    """Base error with structured context.

    Not slotted: subclasses must accept ``__traceback__`` assignment when they
    propagate through generator-based context managers.
    """

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONVERTER_FAILED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CovGatherError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ConverterError(CovGatherError):
    """A single raw artifact could not be converted to structured text."""

    @classmethod
    def not_found(cls, executable: str) -> "ConverterError":
        return cls(
            code=ErrorCode.CONVERTER_NOT_FOUND,
            message=f'"{executable}" was not found in system path',
            details={"executable": executable},
        )

    @classmethod
    def failed(cls, returncode: int, args: list[str]) -> "ConverterError":
        command = " ".join(args)
        return cls(
            code=ErrorCode.CONVERTER_FAILED,
            message=f"converter finished with error code {returncode} "
            f"using following arguments\n{command}",
            retryable=True,
            details={"returncode": returncode, "args": list(args)},
        )

    @classmethod
    def timed_out(cls, artifact: str, timeout_sec: float) -> "ConverterError":
        return cls(
            code=ErrorCode.CONVERTER_TIMEOUT,
            message="Process timed out",
            retryable=True,
            details={"artifact": artifact, "timeout_sec": timeout_sec},
        )

    @classmethod
    def missing_output(cls, artifact: str, expected: str) -> "ConverterError":
        return cls(
            code=ErrorCode.CONVERTER_NO_OUTPUT,
            message=f"converter produced no output for {artifact}",
            details={"artifact": artifact, "expected": expected},
        )


class CoverageParseError(CovGatherError):
    """A structured-text record could not be parsed."""

    @classmethod
    def malformed(cls, line: str, reason: str, lineno: int | None = None) -> "CoverageParseError":
        return cls(
            code=ErrorCode.COVERAGE_PARSE_ERROR,
            message=f"Malformed record {line!r}: {reason}",
            details={"line": line, "reason": reason, "lineno": lineno},
        )


class FormatContractError(CovGatherError, AssertionError):
    """Converter output and parser disagree on the record format.

    Raised when a ``function`` or ``lcount`` record appears before any ``file``
    record. This is never a user error and is not skipped per artifact.
    """

    @classmethod
    def record_before_file(cls, tag: str, lineno: int | None = None) -> "FormatContractError":
        return cls(
            code=ErrorCode.FORMAT_CONTRACT_VIOLATION,
            message=f'"{tag}" statement found before a file statement',
            details={"tag": tag, "lineno": lineno},
        )


class InternalError(CovGatherError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
