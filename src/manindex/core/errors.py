"""manindex error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Index (identifiers, markup, snapshot)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Index (3xxx)
    IDENTIFIER_NO_MATCH = 3001
    MARKUP_UNREADABLE = 3101
    SNAPSHOT_INVALID_RECORD = 3201
    SNAPSHOT_READ_FAILED = 3202
    SNAPSHOT_WRITE_FAILED = 3203


@dataclass(eq=False)
class ManIndexError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'SNAPSHOT_INVALID_RECORD')."""
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


class ConfigError(ManIndexError):
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

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class IdentifierParseError(ManIndexError):
    """A token does not spell any documentation object."""

    @classmethod
    def no_match(cls, token: str) -> "IdentifierParseError":
        return cls(
            code=ErrorCode.IDENTIFIER_NO_MATCH,
            message=f"Not a documentation object: {token!r}",
            details={"token": token},
        )


class MarkupError(ManIndexError):
    """A source file could not be read or decoded."""

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "MarkupError":
        return cls(
            code=ErrorCode.MARKUP_UNREADABLE,
            message=f"Cannot read {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class SnapshotError(ManIndexError):
    """Snapshot (persisted index) read/write errors."""

    @classmethod
    def invalid_record(cls, line_no: int, text: str, reason: str) -> "SnapshotError":
        return cls(
            code=ErrorCode.SNAPSHOT_INVALID_RECORD,
            message=f"Invalid index record at line {line_no}: {reason}",
            details={"line": line_no, "text": text, "reason": reason},
        )

    @classmethod
    def read_failed(cls, path: str, reason: str) -> "SnapshotError":
        return cls(
            code=ErrorCode.SNAPSHOT_READ_FAILED,
            message=f"Failed to read snapshot {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "SnapshotError":
        return cls(
            code=ErrorCode.SNAPSHOT_WRITE_FAILED,
            message=f"Failed to write snapshot {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )
