"""Convex Navigator error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Resolver

Resolver failures (no project, no definition under the cursor, malformed
identifiers) are normally reported as ``None`` or empty results. The
exception types here are for the outer surfaces (config loading, CLI) that
need to turn a "no result" into a message.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Resolver (3xxx)
    PROJECT_NOT_FOUND = 3001
    INVALID_IDENTIFIER = 3002
    MODULE_NOT_FOUND = 3003
    DEFINITION_NOT_FOUND = 3004


@dataclass(frozen=True, slots=True)
class ConvexNavError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
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


class ConfigError(ConvexNavError):
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


class ResolverError(ConvexNavError):
    """A resolver lookup produced no result the caller can act on."""

    @classmethod
    def project_not_found(cls, workspace_root: str) -> "ResolverError":
        return cls(
            code=ErrorCode.PROJECT_NOT_FOUND,
            message=f"No Convex project detected in {workspace_root}",
            details={"workspace_root": workspace_root},
        )

    @classmethod
    def invalid_identifier(cls, identifier: str) -> "ResolverError":
        return cls(
            code=ErrorCode.INVALID_IDENTIFIER,
            message=f"Not a function reference: {identifier}",
            details={"identifier": identifier},
        )

    @classmethod
    def module_not_found(cls, identifier: str, module_path: str) -> "ResolverError":
        return cls(
            code=ErrorCode.MODULE_NOT_FOUND,
            message=f"No source file for module '{module_path}' ({identifier})",
            details={"identifier": identifier, "module_path": module_path},
        )

    @classmethod
    def definition_not_found(cls, file_path: str, line: int) -> "ResolverError":
        return cls(
            code=ErrorCode.DEFINITION_NOT_FOUND,
            message=f"No Convex function at {file_path}:{line + 1}",
            details={"file_path": file_path, "line": line},
        )

