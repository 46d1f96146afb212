"""Tests for ``sqld.compiler``: statement splitting."""

from __future__ import annotations

import pytest

from sqld.compiler import next_statement, skip_trivia


def _split(text: str) -> list[str]:
    statements = []
    pos = 0
    while pos < len(text):
        compiled = next_statement(text, pos)
        assert compiled.tail > pos or compiled.sql is None
        pos = compiled.tail
        if compiled.sql is not None:
            statements.append(compiled.sql)
    return statements


class TestSkipTrivia:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("select 1;", 0),
            ("   select 1;", 3),
            ("-- note\nselect 1;", 8),
            ("/* a */ /* b */select 1;", 15),
            (";; ;select 1;", 4),
            ("-- only a comment", 17),
            ("/* unterminated", 15),
        ],
    )
    def test_offsets(self, text, expected):
        assert skip_trivia(text, 0) == expected

    def test_starts_at_position(self):
        assert skip_trivia("select 1;  select 2;", 9) == 11


class TestNextStatement:
    def test_tail_is_just_past_semicolon(self):
        text = "create table t(a);insert into t values(1);"
        first = next_statement(text, 0)
        assert first.sql == "create table t(a);"
        assert first.tail == len("create table t(a);")
        second = next_statement(text, first.tail)
        assert second.sql == "insert into t values(1);"
        assert second.tail == len(text)

    def test_nothing_left(self):
        compiled = next_statement("select 1;  -- done\n", 9)
        assert compiled.sql is None
        assert compiled.tail == len("select 1;  -- done\n")

    def test_string_literal_semicolons(self):
        assert _split("insert into t values('a;b'); select \"c;d\" from t;") == [
            "insert into t values('a;b');",
            "select \"c;d\" from t;",
        ]

    def test_comment_semicolons(self):
        assert _split("select 1 /* ; */ ; select 2 -- ;\n;") == [
            "select 1 /* ; */ ;",
            "select 2 -- ;\n;",
        ]

    def test_trigger_body(self):
        trigger = (
            "create trigger tr after insert on t begin "
            "update t set a = 1; delete from t where a = 2; end;"
        )
        assert _split(trigger + "select 1;") == [trigger, "select 1;"]

    def test_unterminated_final_statement(self):
        assert _split("select 1; select 2") == ["select 1;", "select 2"]
