"""Tests for the key-value script tokenizer."""

import pytest

from polydb.core.kv_script import KvCommand, tokenize, tokenize_line


@pytest.mark.unit
class TestTokenizeLine:
    def test_whitespace_split(self):
        assert tokenize_line("SET key value") == ["SET", "key", "value"]

    def test_runs_of_whitespace(self):
        assert tokenize_line("GET   key\t") == ["GET", "key"]

    def test_quoted_span_keeps_whitespace(self):
        assert tokenize_line('HSET myhash "field one" value\\"x') == [
            "HSET",
            "myhash",
            "field one",
            'value"x',
        ]

    def test_backslash_escapes_inside_quotes(self):
        assert tokenize_line('SET k "a \\" b"') == ["SET", "k", 'a " b']

    def test_escaped_backslash(self):
        assert tokenize_line("SET k a\\\\b") == ["SET", "k", "a\\b"]

    def test_quotes_join_adjacent_text(self):
        assert tokenize_line('SET k pre"fix suf"fix') == ["SET", "k", "prefix suffix"]

    def test_only_quotes_produces_nothing(self):
        assert tokenize_line('""') == []


@pytest.mark.unit
class TestTokenizeScript:
    def test_blank_and_comment_lines_are_skipped(self):
        script = "SET a 1\n\nGET a\n# comment\nDEL a"
        commands = tokenize(script)
        assert [c.args for c in commands] == [
            ("SET", "a", "1"),
            ("GET", "a"),
            ("DEL", "a"),
        ]

    def test_double_dash_comment(self):
        assert tokenize("-- note\nPING") == [KvCommand(line="PING", args=("PING",))]

    def test_crlf_line_endings(self):
        commands = tokenize("SET a 1\r\nGET a\r\n")
        assert [c.line for c in commands] == ["SET a 1", "GET a"]

    def test_line_text_is_stripped(self):
        assert tokenize("   GET a   ")[0].line == "GET a"

    def test_zero_token_line_skipped(self):
        assert tokenize('""\nPING') == [KvCommand(line="PING", args=("PING",))]

    def test_command_name(self):
        assert tokenize("hgetall h")[0].name == "hgetall"

    def test_empty_script(self):
        assert tokenize("") == []
