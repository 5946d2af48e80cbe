"""Unit tests for token quoting helpers."""

import pytest

from gnomod.core.quoting import auto_quote, is_directory_path, must_quote, parse_string, quote, unquote


class TestUnquote:
    """Tests for string literal decoding."""

    @pytest.mark.parametrize(
        ("literal", "expected"),
        [
            ('"abc"', "abc"),
            ('"a\\"b"', 'a"b'),
            ('"tab\\there"', "tab\there"),
            ('"\\x41\\u00e9"', "Aé"),
            ('"\\101"', "A"),
            ("`raw \\n`", "raw \\n"),
        ],
    )
    def test_valid(self, literal: str, expected: str) -> None:
        assert unquote(literal) == expected

    @pytest.mark.parametrize("literal", ['"abc', "abc", '"a"b"', '"\\q"', "`a`b`", '"'])
    def test_invalid(self, literal: str) -> None:
        with pytest.raises(ValueError):
            unquote(literal)


def test_quote_escapes() -> None:
    assert quote('a"b') == '"a\\"b"'
    assert quote("a\nb") == '"a\\nb"'
    assert quote("a\x01") == '"a\\x01"'


class TestAutoQuote:
    """Tests for quoting only when needed."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("gno.land/p/demo/avl", False),
            ("", True),
            ("has space", True),
            ("a//b", True),
            ("a(b", True),
            ("(", False),
            ("it's", True),
        ],
    )
    def test_must_quote(self, value: str, expected: bool) -> None:
        assert must_quote(value) is expected

    def test_auto_quote(self) -> None:
        assert auto_quote("foo") == "foo"
        assert auto_quote("foo bar") == '"foo bar"'


class TestParseString:
    """Tests for decoding directive arguments."""

    def test_bare_token(self) -> None:
        assert parse_string("foo") == ("foo", "foo")

    def test_needlessly_quoted_token_is_requoted_bare(self) -> None:
        assert parse_string('"foo"') == ("foo", "foo")

    def test_stray_quote_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="unquoted string cannot contain quote"):
            parse_string("it's")


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("./foo", True),
        ("../foo", True),
        (".", True),
        ("..", True),
        ("/abs/path", True),
        ("C:\\work", True),
        (".\\foo", True),
        ("gno.land/p/demo/foo", False),
        (".foo", False),
    ],
)
def test_is_directory_path(path: str, expected: bool) -> None:
    assert is_directory_path(path) is expected
