"""Incremental statement splitting.

SQLite compiles one statement at a time and reports where it stopped
(``pzTail`` of ``sqlite3_prepare_v2``). Python's driver only accepts a single
statement per ``execute()``, so the boundary is found here instead: the next
statement ends at the first ``;`` for which ``sqlite3.complete_statement``
agrees the text is a whole statement. That is the engine's own tokenizer, so
semicolons inside string literals, quoted identifiers, comments and trigger
bodies do not end a statement early.

``next_statement()`` returns the statement text together with the offset just
past it. Callers advance their position to that offset and call again.
"""

from __future__ import annotations

import sqlite3
from typing import NamedTuple

_WHITESPACE = " \t\n\f\r"


class Compiled(NamedTuple):
    """One statement split from the buffer."""

    sql: str | None
    """Statement text, or None when only whitespace/comments remain."""

    tail: int
    """Offset just past the consumed text."""


def skip_trivia(text: str, pos: int) -> int:
    """Return the offset of the first token at or after *pos*.

    Whitespace, ``--`` line comments, ``/* */`` block comments and empty
    statements (bare ``;``) are skipped. An unterminated block comment runs
    to the end of the text, as it does for the engine.
    """
    end = len(text)
    while pos < end:
        ch = text[pos]
        if ch in _WHITESPACE or ch == ";":
            pos += 1
        elif text.startswith("--", pos):
            newline = text.find("\n", pos + 2)
            pos = end if newline < 0 else newline + 1
        elif text.startswith("/*", pos):
            close = text.find("*/", pos + 2)
            pos = end if close < 0 else close + 2
        else:
            break
    return pos


def next_statement(text: str, pos: int) -> Compiled:
    """Split the statement that starts at *pos*.

    A final statement without a terminating ``;`` is returned whole; if it is
    malformed the engine reports that when it is compiled.
    """
    start = skip_trivia(text, pos)
    if start >= len(text):
        return Compiled(None, len(text))

    semi = text.find(";", start)
    while semi >= 0:
        if sqlite3.complete_statement(text[start : semi + 1]):
            return Compiled(text[start : semi + 1], semi + 1)
        semi = text.find(";", semi + 1)

    return Compiled(text[start:], len(text))


__all__ = ["Compiled", "next_statement", "skip_trivia"]
