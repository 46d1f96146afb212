"""Database connection.

A ``Conn`` owns exactly one open SQLite session. Connection strings use the
`URI method <https://sqlite.org/uri.html>`_; the default is a shared-cache
in-memory database, so every ``Conn`` opened with the default URI in one
process sees the same data::

    conn = Conn()                               # file:mem?mode=memory&cache=shared
    conn = Conn("file:app.db?mode=rwc")         # read/write/create file
    conn = Conn("file:app.db?mode=ro")          # read-only

Once opened, a connection may be shared by any number of ``Req`` cursors,
including from different threads; the engine arbitrates access. ``reopen()``
and ``close()`` must not race with other use of the same connection.

The session is opened with the driver's implicit transaction handling
disabled: each statement commits on its own unless a ``Trans`` (or an
explicit ``BEGIN``) is active. TEXT values are fetched as raw bytes, so a
value that is not valid UTF-8 is still readable through ``col_blob()``.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqld.errors import DatabaseConnectionError, ErrorContext, ProtocolError
from sqld.logging import get_logger
from sqld.settings import get_settings
from sqld.trans import Trans

logger = get_logger(__name__)


class _StepTracker(threading.local):
    """Per-thread flag set when the engine starts running a statement."""

    started = False

    def arm(self) -> None:
        self.started = False

    def mark(self, _sql: str) -> None:
        self.started = True


class Conn:
    """
    SQLite database connection.

    Not copyable: the object's identity is tied to its session handle.
    """

    def __init__(self, uri: str | None = None, *, timeout: float | None = None):
        self._db: sqlite3.Connection | None = None
        self._uri: str | None = None
        self._timeout = timeout
        self._tracker = _StepTracker()
        self.open(uri)

    @property
    def uri(self) -> str | None:
        """Connection string of the open session, or None when closed."""
        return self._uri

    @property
    def is_open(self) -> bool:
        return self._db is not None

    def open(self, uri: str | None = None) -> None:
        """Open a session against *uri* (the configured default when None).

        Raises ProtocolError if a session is already open; use ``reopen()``.
        """
        if self._db is not None:
            raise ProtocolError("open() called on an open connection").with_context(uri=self._uri)

        settings = get_settings()
        if uri is None:
            uri = settings.default_uri
        timeout = self._timeout if self._timeout is not None else settings.busy_timeout

        try:
            db = sqlite3.connect(
                uri,
                timeout=timeout,
                isolation_level=None,
                check_same_thread=False,
                uri=True,
            )
        except sqlite3.Error as e:
            logger.warning("connection_open_failed", uri=uri, error=str(e))
            raise DatabaseConnectionError(
                str(e),
                context=ErrorContext(
                    uri=uri,
                    errorcode=getattr(e, "sqlite_errorcode", None),
                    errorname=getattr(e, "sqlite_errorname", None),
                ),
                cause=e,
            ) from e

        # TEXT is not validated by the engine; readers decode it themselves
        db.text_factory = bytes
        db.set_trace_callback(self._tracker.mark)
        self._db = db
        self._uri = uri
        logger.debug("connection_opened", uri=uri)

    def reopen(self, uri: str | None = None) -> None:
        """Close the session and open a new one.

        A private in-memory database is destroyed by this. Not thread-safe.
        """
        self.close()
        self.open(uri)

    def close(self) -> None:
        """Release the session handle; no-op when already closed."""
        if self._db is None:
            return
        db, self._db = self._db, None
        db.close()
        logger.debug("connection_closed", uri=self._uri)
        self._uri = None

    @contextmanager
    def transaction(self) -> Iterator[Trans]:
        """Run a block inside BEGIN ... COMMIT, rolling back on exception.

        Usage:
            with conn.transaction():
                req.sql().write("insert into t values(1);")
                req.exec()
        """
        trans = Trans(self)
        trans.begin()
        try:
            yield trans
        except BaseException:
            if trans.is_active:
                trans.abort()
            raise
        if trans.is_active:
            trans.commit()

    # ── Private interface for Req and Trans ─────────────────────

    def _handle(self) -> sqlite3.Connection:
        if self._db is None:
            raise ProtocolError("connection is not open")
        return self._db

    def _owns(self, cursor: sqlite3.Cursor) -> bool:
        """Whether *cursor* belongs to the currently open session."""
        return self._db is not None and cursor.connection is self._db

    def _arm_step_tracker(self) -> None:
        self._tracker.arm()

    def _statement_started(self) -> bool:
        """Whether the engine began running the last statement submitted on this thread."""
        return self._tracker.started

    # ── Object protocol ─────────────────────────────────────────

    def __enter__(self) -> Conn:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_db", None) is not None:
            self._db.close()
            self._db = None

    def __copy__(self):
        raise TypeError("Conn objects cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("Conn objects cannot be copied")

    def __repr__(self) -> str:
        state = "open" if self._db is not None else "closed"
        return f"Conn({self._uri!r}, {state})"


__all__ = ["Conn"]
