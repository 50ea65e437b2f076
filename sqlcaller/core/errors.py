"""Error Hierarchy — typed, categorized exceptions for every sqlcaller failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Driver errors (sqlalchemy.exc.*, DB-API errors) are never wrapped here;
      they reach the caller untouched
    - to_dict() produces a flat, JSON-serializable envelope

Design Decisions:
    - Single hierarchy with SqlCallerError base: callers can catch every core failure at once
    - ErrorContext as dataclass: carries facade/operation/sql without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    CONFIGURATION = "configuration"
    USAGE = "usage"
    VALIDATION = "validation"
    TYPE = "type"
    RESULT = "result"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    facade: str | None = None
    operation: str | None = None
    sql: str | None = None
    type_name: str | None = None
    debug_info: dict[str, Any] | None = None


class SqlCallerError(Exception):
    """Base exception for all sqlcaller errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_dict(self) -> dict:
        """Convert to a standardized error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "facade": self.context.facade,
                    "operation": self.context.operation,
                    "sql": self.context.sql,
                    "type_name": self.context.type_name,
                },
            }
        }


# ─── Configuration Errors ───────────────────────────────────────

class ConfigurationError(SqlCallerError):
    """Model binding missing, unresolvable, or defined twice."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context,
        )


# ─── Usage Errors ───────────────────────────────────────────────

class MissingBlockError(SqlCallerError):
    """transaction() called without a callable to run."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "block must be given", "MISSING_BLOCK", ErrorCategory.USAGE,
            ErrorSeverity.ERROR, context,
        )


class BindVariableError(SqlCallerError):
    """Bind values do not match the placeholders of a SQL template."""
    def __init__(self, message: str, sql: str | None = None):
        super().__init__(
            message, "BIND_VARIABLE_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ErrorContext(sql=sql),
        )


class InvalidIdentifierError(SqlCallerError):
    """A table name is not a plain, optionally schema-qualified identifier."""
    def __init__(self, name: str, context: ErrorContext | None = None):
        super().__init__(
            f"'{name}' is not a valid table name",
            "INVALID_IDENTIFIER", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.name = name


# ─── Type Errors ────────────────────────────────────────────────

class UnknownTypeError(SqlCallerError):
    """Type name is not registered in the type registry."""
    def __init__(self, type_name: str):
        super().__init__(
            f"Unknown type '{type_name}'", "UNKNOWN_TYPE", ErrorCategory.TYPE,
            ErrorSeverity.ERROR, ErrorContext(type_name=type_name),
        )
        self.type_name = type_name


class TypeCastError(SqlCallerError):
    """A value cannot be cast by the codec of its declared type."""
    def __init__(self, type_name: str, value: Any):
        super().__init__(
            f"Cannot cast {value!r} to {type_name}", "TYPE_CAST_ERROR",
            ErrorCategory.TYPE, ErrorSeverity.ERROR,
            ErrorContext(type_name=type_name, debug_info={"value": repr(value)}),
        )
        self.type_name = type_name
        self.value = value


# ─── Result Errors ──────────────────────────────────────────────

class EmptyResultError(SqlCallerError):
    """A first-row/first-value operation ran against zero rows."""
    def __init__(self, operation: str, sql: str | None = None):
        super().__init__(
            f"{operation} returned no rows", "EMPTY_RESULT", ErrorCategory.RESULT,
            ErrorSeverity.ERROR, ErrorContext(operation=operation, sql=sql),
        )
        self.operation = operation
