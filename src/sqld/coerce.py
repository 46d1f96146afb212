"""SQLite's implicit conversions for the typed column readers.

The driver hands back each value in its storage class (``None``, ``int``,
``float``, ``bytes``); TEXT arrives as its raw bytes, like BLOB, and
``str`` is accepted as well. The C accessors ``sqlite3_column_int``,
``_int64``, ``_double``, ``_text`` and ``_blob`` convert between classes on
read; these functions apply the same rules so a reader returns what the
engine's accessor would.

==========  ==========  ===========  ============  ===========
stored      as_int64    as_real      as_text       as_blob
==========  ==========  ===========  ============  ===========
NULL        0           0.0          ""            b""
INTEGER     value       float(v)     decimal text  text bytes
REAL        truncated   value        ``%!.15g``    text bytes
TEXT        int prefix  num prefix   UTF-8 decode  value
BLOB        int prefix  num prefix   UTF-8 decode  value
==========  ==========  ===========  ============  ===========
"""

from __future__ import annotations

import math
import re
from typing import Any

INT64_MAX = (1 << 63) - 1
INT64_MIN = -(1 << 63)

# Leading integer / real prefixes, as sqlite3Atoi64 and sqlite3AtoF read them
_INT_PREFIX = re.compile(r"[ \t\n\f\r]*([+-]?[0-9]+)")
_REAL_PREFIX = re.compile(
    r"[ \t\n\f\r]*([+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
)


def _clamp64(value: int) -> int:
    return max(INT64_MIN, min(INT64_MAX, value))


def _text_of(value: str | bytes) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def real_to_int64(value: float) -> int:
    """Truncate toward zero, saturating at the 64-bit limits."""
    if math.isnan(value):
        return 0
    if value <= INT64_MIN:
        return INT64_MIN
    if value >= INT64_MAX:
        return INT64_MAX
    return int(value)


def real_to_text(value: float) -> str:
    """Render a REAL the way the engine does (``%!.15g``)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Inf" if value > 0 else "-Inf"
    text = "%.15g" % value
    if "e" in text:
        mantissa, exponent = text.split("e")
        if "." not in mantissa:
            mantissa += ".0"
        return f"{mantissa}e{exponent}"
    if "." not in text:
        text += ".0"
    return text


def as_int64(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return _clamp64(value)
    if isinstance(value, float):
        return real_to_int64(value)
    match = _INT_PREFIX.match(_text_of(value))
    if not match:
        return 0
    return _clamp64(int(match.group(1)))


def as_int(value: Any) -> int:
    """Low 32 bits of the 64-bit value, as a signed int."""
    low = as_int64(value) & 0xFFFFFFFF
    return low - (1 << 32) if low & 0x80000000 else low


def as_real(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = _REAL_PREFIX.match(_text_of(value))
    if not match:
        return 0.0
    return float(match.group(1))


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return real_to_text(value)
    if isinstance(value, int):
        return str(value)
    return _text_of(value)


def as_blob(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    return as_text(value).encode("utf-8")
