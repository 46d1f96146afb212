"""
Structured error types for sqld.

Every failure raised by ``Conn``, ``Trans`` and ``Req`` is a ``SqldError``.
The hierarchy separates two very different situations:

- **Usage errors:** the caller broke an operation's precondition (reading a
  column with no row pending, committing with no open transaction). These are
  bugs in calling code and are never retryable.
- **Engine errors:** SQLite refused the SQL or failed while running it. The
  message is the engine's own diagnostic. Lock contention (``SQLITE_BUSY``,
  ``SQLITE_LOCKED``) is flagged retryable; everything else is not.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                        SqldError                          │
        │     (category, retryable, context, cause)                 │
        ├──────────────────────────────────────────────────────────┤
        │                                                           │
        │  DatabaseConnectionError   UsageError      EngineError    │
        │  (CONNECTION, retryable)   (USAGE)                        │
        │                               │               │           │
        │                          StateError      CompileError     │
        │                          ProtocolError   ExecutionError   │
        └──────────────────────────────────────────────────────────┘

Examples:
    Precondition violations are never retryable:

    >>> ProtocolError("next_row() called without current row data").retryable
    False

    Wrapping a driver exception keeps the engine's message and error code:

    >>> try:
    ...     raw.execute("select * from missing")
    ... except sqlite3.Error as e:
    ...     raise CompileError.from_sqlite(e, statement="select * from missing")
    Traceback (most recent call last):
    ...
    CompileError: no such table: missing

Guardrails:
    ❌ DON'T: Retry a UsageError, fix the calling code
    ✅ DO: Check ``is_retryable()`` before retrying an EngineError

    ❌ DON'T: Rewrite the engine's diagnostic
    ✅ DO: Pass the driver exception as ``cause=`` for chaining

Tags:
    error-handling, exception-hierarchy, retry-logic, sqlite, sqld
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Engine result codes that describe lock contention rather than bad SQL
RETRYABLE_ENGINE_ERRORS = frozenset({"SQLITE_BUSY", "SQLITE_LOCKED"})


class ErrorCategory(str, Enum):
    """
    Error categories for classification and retry decisions.

    Attributes:
        CONNECTION: Opening or reopening a session failed
        USAGE: An operation was called in the wrong state
        SQL: The engine could not compile a statement
        EXECUTION: The engine failed while stepping a statement
        INTERNAL: Unexpected state inside sqld
        UNKNOWN: Not raised by sqld
    """

    CONNECTION = "CONNECTION"  # sqlite3_open failures
    USAGE = "USAGE"  # caller broke a precondition
    SQL = "SQL"  # prepare failures
    EXECUTION = "EXECUTION"  # step failures
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set appear in ``to_dict()``.

    Attributes:
        uri: Connection string of the session involved
        statement: SQL text of the statement being compiled or stepped
        position: Buffer offset just past the statement
        errorcode: Engine extended result code
        errorname: Engine result code name (``SQLITE_BUSY`` ...)
        metadata: Additional key-value pairs
    """

    uri: str | None = None
    statement: str | None = None
    position: int | None = None
    errorcode: int | None = None
    errorname: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["uri", "statement", "position", "errorcode", "errorname"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SqldError(Exception):
    """
    Base exception for all sqld errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can be
    overridden per instance.

    Examples:
        >>> error = SqldError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = StateError("begin() transaction when already active")
        >>> error.to_dict()["category"]
        'USAGE'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SqldError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ExecutionError("disk I/O error").with_context(uri=conn.uri)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONNECTION ERRORS
# =============================================================================


class DatabaseConnectionError(SqldError):
    """The engine refused to open a session for the given URI."""

    default_category = ErrorCategory.CONNECTION
    default_retryable = True


# =============================================================================
# USAGE ERRORS (never retryable)
# =============================================================================


class UsageError(SqldError):
    """An operation was invoked in violation of its precondition."""

    default_category = ErrorCategory.USAGE
    default_retryable = False


class StateError(UsageError):
    """Transaction operation invoked in the wrong state."""

    pass


class ProtocolError(UsageError):
    """Cursor or connection operation invoked out of order."""

    pass


# =============================================================================
# ENGINE ERRORS
# =============================================================================


class EngineError(SqldError):
    """SQLite reported a failure; the message is its diagnostic text."""

    default_category = ErrorCategory.EXECUTION
    default_retryable = False

    @classmethod
    def from_sqlite(
        cls,
        exc: sqlite3.Error,
        *,
        statement: str | None = None,
        position: int | None = None,
        uri: str | None = None,
    ) -> EngineError:
        """Wrap a driver exception, keeping the engine's message and codes."""
        errorname = getattr(exc, "sqlite_errorname", None)
        context = ErrorContext(
            uri=uri,
            statement=statement,
            position=position,
            errorcode=getattr(exc, "sqlite_errorcode", None),
            errorname=errorname,
        )
        return cls(
            str(exc),
            retryable=errorname in RETRYABLE_ENGINE_ERRORS,
            context=context,
            cause=exc,
        )


class CompileError(EngineError):
    """The engine could not compile the next statement."""

    default_category = ErrorCategory.SQL


class ExecutionError(EngineError):
    """The engine failed while stepping a compiled statement."""

    default_category = ErrorCategory.EXECUTION


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SqldError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, SqldError):
        return error.category
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SqldError",
    "DatabaseConnectionError",
    "UsageError",
    "StateError",
    "ProtocolError",
    "EngineError",
    "CompileError",
    "ExecutionError",
    "RETRYABLE_ENGINE_ERRORS",
    "is_retryable",
    "categorize_error",
]
