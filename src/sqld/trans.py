"""Database transaction guard.

``Trans`` issues BEGIN / COMMIT / ROLLBACK on a connection through a private
one-shot ``Req`` and remembers whether a transaction is open. A guard that is
closed, leaves a ``with`` block, or is garbage collected while active rolls
the transaction back, so no transaction is silently left open.

The guard's state is not synchronized; serialize calls on one guard.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqld.errors import SqldError, StateError
from sqld.logging import get_logger
from sqld.req import Req

if TYPE_CHECKING:
    from sqld.conn import Conn

logger = get_logger(__name__)


class Trans:
    """Database transaction. An active transaction is aborted on destruction."""

    def __init__(self, conn: Conn):
        self._conn = conn
        self._active = False

    @property
    def is_active(self) -> bool:
        """Is this transaction active?"""
        return self._active

    def begin(self) -> None:
        """BEGIN the transaction. Raises StateError if already active."""
        if self._active:
            raise StateError("begin() transaction when already active")
        self._run("BEGIN;")
        self._active = True
        logger.debug("transaction_begun", uri=self._conn.uri)

    def commit(self) -> None:
        """COMMIT the transaction. Raises StateError if not active."""
        if not self._active:
            raise StateError("commit() transaction when not active")
        self._run("COMMIT;")
        self._active = False
        logger.debug("transaction_committed", uri=self._conn.uri)

    def abort(self) -> None:
        """ROLLBACK (abort) the transaction. Raises StateError if not active."""
        if not self._active:
            raise StateError("abort() transaction when not active")
        self._run("ROLLBACK;")
        self._active = False
        logger.debug("transaction_aborted", uri=self._conn.uri)

    def close(self) -> None:
        """Abort if active. Failures are logged, never raised."""
        if not self._active:
            return
        try:
            self.abort()
        except SqldError as e:
            self._active = False
            logger.warning("transaction_abort_failed", uri=self._conn.uri, **e.to_dict())

    def _run(self, statement: str) -> None:
        with Req(self._conn) as req:
            req.sql().write(statement)
            req.exec()

    def __enter__(self) -> Trans:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_active", False):
            self.close()

    def __repr__(self) -> str:
        state = "active" if self._active else "inactive"
        return f"Trans({self._conn!r}, {state})"


__all__ = ["Trans"]
