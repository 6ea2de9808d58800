"""Exception hierarchy for seal-commit.

Construction-time problems (bad custom patterns, impossible entropy bounds,
unreadable config files) are raised immediately. Per-file and per-finding
problems during scanning and redaction are never raised to the caller; they
are collected on the ScanResult or RedactionReport instead.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    PATTERN_COMPILE_ERROR = "PATTERN_COMPILE_ERROR"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    NOT_A_FILE = "NOT_A_FILE"
    FILE_READ_ERROR = "FILE_READ_ERROR"
    FILE_WRITE_ERROR = "FILE_WRITE_ERROR"
    BACKUP_CREATION_ERROR = "BACKUP_CREATION_ERROR"
    BACKUP_NOT_FOUND = "BACKUP_NOT_FOUND"
    RESTORE_ERROR = "RESTORE_ERROR"
    GIT_COMMAND_FAILED = "GIT_COMMAND_FAILED"


class SealCommitError(Exception):
    """Base exception for seal-commit errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.code:
            msg = f"[{self.code.value}] {msg}"
        return msg

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        return {
            "name": type(self).__name__,
            "message": self.args[0] if self.args else "",
            "code": self.code.value if self.code else None,
            "details": self.details,
        }


class ConfigurationError(SealCommitError):
    """Configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ) -> None:
        self.config_path = config_path
        super().__init__(message, code, details)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.config_path:
            msg += f" (config: {self.config_path})"
        return msg


class PatternCompileError(ConfigurationError):
    """A custom pattern failed to compile."""

    def __init__(self, index: int, pattern: str, reason: str) -> None:
        self.index = index
        self.pattern = pattern
        super().__init__(
            f"Custom pattern #{index} is not a valid regular expression: {reason}",
            details={"index": index, "pattern": pattern},
            code=ErrorCode.PATTERN_COMPILE_ERROR,
        )


class RedactionError(SealCommitError):
    """A file could not be redacted, backed up or restored."""

    def __init__(self, message: str, code: ErrorCode, file_path: str | None = None) -> None:
        self.file_path = file_path
        super().__init__(message, code, {"file_path": file_path} if file_path else None)
