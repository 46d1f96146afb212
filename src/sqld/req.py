"""Database request cursor.

A ``Req`` holds a buffer of SQL text, a position into it, at most one
compiled statement and the column count of the current row. Text appended
with ``sql()`` is compiled lazily, one statement at a time, starting where
the previous statement ended; more text can be appended at any time and is
picked up by the next ``exec_select()``.

Usage::

    req = Req(conn)
    req.sql().write(
        "create table t(one int, two int);",
        "insert into t values(1, 2);",
        "select * from t;",
    )
    cols = req.exec_select()            # runs all three, stops on the first row
    while cols:
        print(req.col_int(0), req.col_int(1))
        cols = req.next_row()
    assert req.exec_select() == 0       # buffer consumed

SQLite's `dynamic typing <https://www.sqlite.org/datatype3.html>`_ applies:
each typed reader converts the stored value the way the engine's own column
accessor would. UTF-16 text is not supported.
"""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING, Any

from sqld import coerce
from sqld.compiler import next_statement
from sqld.errors import CompileError, ErrorContext, ExecutionError, ProtocolError
from sqld.logging import get_logger

if TYPE_CHECKING:
    from sqld.conn import Conn

logger = get_logger(__name__)


class SqlBuffer:
    """Append-only SQL text accumulator returned by ``Req.sql()``."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._text = ""

    def write(self, *parts: Any) -> SqlBuffer:
        """Append ``str(part)`` for each part; returns the buffer for chaining."""
        self._parts.extend(str(part) for part in parts)
        return self

    def getvalue(self) -> str:
        if self._parts:
            self._text += "".join(self._parts)
            self._parts.clear()
        return self._text

    def clear(self) -> None:
        self._parts.clear()
        self._text = ""

    def __len__(self) -> int:
        return len(self.getvalue())

    def __str__(self) -> str:
        return self.getvalue()

    def __repr__(self) -> str:
        return f"SqlBuffer({self.getvalue()!r})"


class Req:
    """
    Database request.

    Executes the statements in ``sql()`` in order. ``exec_select()`` stops at
    the first statement that produces a row; the caller then reads columns and
    calls ``next_row()`` until it returns 0 (or clears the request) before
    calling ``exec_select()`` again. ``exec()`` runs everything and discards
    rows.
    """

    def __init__(self, conn: Conn):
        self._conn = conn
        self._stmt: sqlite3.Cursor | None = None
        self._row: tuple | None = None
        self._sql = SqlBuffer()
        self._pos = 0
        self._cols = 0

    @property
    def position(self) -> int:
        """Offset of the first not-yet-compiled character of ``sql()``."""
        return self._pos

    @property
    def row_columns(self) -> int:
        """Columns in the current row; 0 when no row is available."""
        return self._cols

    def sql(self) -> SqlBuffer:
        """SQL text buffer. Append statements with ``write()``."""
        return self._sql

    def clear(self) -> None:
        """Release the statement and empty the ``sql()`` buffer."""
        self._finalize()
        self._sql.clear()
        self._pos = 0

    def reset(self) -> None:
        """Release the statement and rewind to the start of ``sql()``.

        The buffer is kept, so the same statements can be executed again.
        """
        self._finalize()
        self._pos = 0

    def close(self) -> None:
        """Release the compiled statement, if any."""
        self._finalize()

    def exec_select(self) -> int:
        """Execute statements until one produces a row or none remain.

        Returns:
            Number of columns in the current row, or 0 when the buffer is consumed.
        """
        if self._cols:
            raise ProtocolError("exec_select() called with current row data")

        while True:
            self._prepare()
            if self._stmt is None:
                return 0

            row = self._step()
            if row is None:
                continue

            self._row = row
            self._cols = len(self._stmt.description or ())
            return self._cols

    def exec(self) -> None:
        """Execute all statements, ignoring row data."""
        if self._cols:
            raise ProtocolError("exec() called with current row data")

        while self.exec_select():
            while self.next_row():
                pass

    def next_row(self) -> int:
        """Step to the next row of the current statement.

        When several statements in ``sql()`` return rows, ``exec_select()``
        moves on to the next one after this returns 0.

        Returns:
            Number of columns in the current row, or 0 when the statement is done.
        """
        if self._stmt is None:
            raise ProtocolError("next_row() called with invalid statement")
        if not self._cols:
            raise ProtocolError("next_row() called without current row data")

        row = self._step()
        if row is None:
            self._row = None
            self._cols = 0
            return 0

        self._row = row
        return self._cols

    # ── Column readers ──────────────────────────────────────────

    def col_name(self, col: int) -> str:
        """Column name of zero-indexed *col*."""
        self._check_col(col)
        return self._stmt.description[col][0]

    def col_text(self, col: int) -> str:
        """UTF-8 TEXT value of zero-indexed *col*."""
        return coerce.as_text(self._value(col))

    def col_int(self, col: int) -> int:
        """32-bit INTEGER value of zero-indexed *col*."""
        return coerce.as_int(self._value(col))

    def col_int64(self, col: int) -> int:
        """64-bit INTEGER value of zero-indexed *col*."""
        return coerce.as_int64(self._value(col))

    def col_real(self, col: int) -> float:
        """64-bit REAL value of zero-indexed *col*."""
        return coerce.as_real(self._value(col))

    def col_blob(self, col: int) -> bytes:
        """BLOB value of zero-indexed *col*, exact length."""
        return coerce.as_blob(self._value(col))

    # ── Internals ───────────────────────────────────────────────

    def _finalize(self) -> None:
        self._row = None
        self._cols = 0
        if self._stmt is not None:
            stmt, self._stmt = self._stmt, None
            # statements of a closed session were finalized with it
            if self._conn._owns(stmt):
                stmt.close()

    def _prepare(self) -> None:
        """Compile the next statement of the buffer into ``_stmt``.

        The driver compiles and takes the first step in one call; the first
        row (if any) is then returned by ``_step()``.
        """
        self._finalize()

        text = self._sql.getvalue()
        if self._pos >= len(text):
            return

        try:
            compiled = next_statement(text, self._pos)
        except UnicodeEncodeError as e:
            raise self._unencodable(e, text[self._pos :]) from e
        if compiled.sql is None:
            self._pos = compiled.tail
            return

        db = self._conn._handle()
        cursor = db.cursor()
        self._conn._arm_step_tracker()
        try:
            cursor.execute(compiled.sql)
        except UnicodeEncodeError as e:
            cursor.close()
            raise self._unencodable(e, compiled.sql) from e
        except sqlite3.Error as e:
            cursor.close()
            # a statement the engine never ran leaves the position on it
            started = self._conn._statement_started()
            if started:
                self._pos = compiled.tail
            error_cls = ExecutionError if started else CompileError
            logger.debug(
                "statement_failed",
                phase="step" if started else "compile",
                position=self._pos,
                error=str(e),
            )
            raise error_cls.from_sqlite(
                e, statement=compiled.sql, position=self._pos, uri=self._conn.uri
            ) from e

        self._pos = compiled.tail

        self._stmt = cursor
        logger.debug("statement_compiled", position=self._pos)

    def _unencodable(self, exc: UnicodeEncodeError, statement: str) -> CompileError:
        """SQL text that cannot be encoded as UTF-8 never reaches the engine."""
        logger.debug("statement_failed", phase="compile", position=self._pos, error=str(exc))
        return CompileError(
            f"SQL text is not valid UTF-8: {exc.reason}",
            context=ErrorContext(statement=statement, position=self._pos, uri=self._conn.uri),
            cause=exc,
        )

    def _step(self) -> tuple | None:
        try:
            return self._stmt.fetchone()
        except sqlite3.Error as e:
            raise ExecutionError.from_sqlite(e, position=self._pos, uri=self._conn.uri) from e

    def _check_col(self, col: int) -> None:
        if self._stmt is None:
            raise ProtocolError("column operation called with invalid statement")
        if not self._cols:
            raise ProtocolError("column operation called when row not available")
        if col < 0 or col >= self._cols:
            raise ProtocolError("column operation called with invalid column number")

    def _value(self, col: int) -> Any:
        self._check_col(col)
        return self._row[col]

    # ── Object protocol ─────────────────────────────────────────

    def __enter__(self) -> Req:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_stmt", None) is not None:
            self._finalize()


__all__ = ["Req", "SqlBuffer"]
