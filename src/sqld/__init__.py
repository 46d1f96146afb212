"""
sqld - connection, transaction and request-cursor handles over SQLite.

- ``Conn``: one open SQLite session (URI connection strings)
- ``Trans``: BEGIN / COMMIT / ROLLBACK guard, aborts when destroyed while active
- ``Req``: incremental multi-statement execution with typed column readers

Example:
    >>> from sqld import Conn, Req
    >>> conn = Conn("file::memory:")
    >>> req = Req(conn)
    >>> req.sql().write("create table t(a, b);", "insert into t values('x', 1);", "select * from t;")
    SqlBuffer(...)
    >>> req.exec_select()
    2
    >>> req.col_text(0), req.col_int(1)
    ('x', 1)
"""

__version__ = "0.1.0"

from sqld.conn import Conn
from sqld.errors import (
    CompileError,
    DatabaseConnectionError,
    EngineError,
    ErrorCategory,
    ErrorContext,
    ExecutionError,
    ProtocolError,
    SqldError,
    StateError,
    UsageError,
    categorize_error,
    is_retryable,
)
from sqld.req import Req, SqlBuffer
from sqld.trans import Trans

__all__ = [
    "__version__",
    "Conn",
    "Trans",
    "Req",
    "SqlBuffer",
    "SqldError",
    "ErrorCategory",
    "ErrorContext",
    "DatabaseConnectionError",
    "UsageError",
    "StateError",
    "ProtocolError",
    "EngineError",
    "CompileError",
    "ExecutionError",
    "is_retryable",
    "categorize_error",
]
