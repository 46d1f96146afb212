"""Tests for ``sqld.coerce``: engine-style value conversions."""

import math

import pytest

from sqld import coerce


class TestIntegerReaders:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, 0),
            (42, 42),
            (-7, -7),
            (3.99, 3),
            (-3.99, -3),
            ("  12abc", 12),
            ("-5", -5),
            ("3.7", 3),
            ("abc", 0),
            (b"77", 77),
            ("99999999999999999999", coerce.INT64_MAX),
            (1e300, coerce.INT64_MAX),
            (-1e300, coerce.INT64_MIN),
            (math.nan, 0),
        ],
    )
    def test_as_int64(self, value, expected):
        assert coerce.as_int64(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1 << 48, 0),
            ((1 << 32) + 5, 5),
            (0xFFFFFFFF, -1),
            (2**31, -(2**31)),
            (-1, -1),
        ],
    )
    def test_as_int_truncates_to_32_bits(self, value, expected):
        assert coerce.as_int(value) == expected


class TestRealReader:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, 0.0),
            (3, 3.0),
            (2.5, 2.5),
            ("1.5e3xyz", 1500.0),
            (".5", 0.5),
            ("-2.", -2.0),
            ("nope", 0.0),
        ],
    )
    def test_as_real(self, value, expected):
        assert coerce.as_real(value) == expected


class TestTextReader:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            (12, "12"),
            (2.0, "2.0"),
            (0.1, "0.1"),
            (1e20, "1.0e+20"),
            (1.5e-7, "1.5e-07"),
            ("text", "text"),
            ("héllo".encode("utf-8"), "héllo"),
        ],
    )
    def test_as_text(self, value, expected):
        assert coerce.as_text(value) == expected


class TestBlobReader:
    def test_bytes_returned_exactly(self):
        raw = bytes([0xDE, 0xAD, 0x00, 0xEF])
        assert coerce.as_blob(raw) == raw

    def test_text_encoded_utf8(self):
        assert coerce.as_blob("ö") == b"\xc3\xb6"

    def test_null_is_empty(self):
        assert coerce.as_blob(None) == b""

    def test_integer_as_decimal_text(self):
        assert coerce.as_blob(15) == b"15"
