import pytest

from giallo.errors import TokenizeRegexError
from giallo.patterns import (
    Regex,
    escape_regexp_characters,
    resolve_backreferences,
    transform_z_anchor,
)


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("\\z", "$(?!\\n)(?<!\\n)"),
        ("^start\\z", "^start$(?!\\n)(?<!\\n)"),
        ("\\zmiddle", "$(?!\\n)(?<!\\n)middle"),
        ("\\z.*\\z", "$(?!\\n)(?<!\\n).*$(?!\\n)(?<!\\n)"),
        ("^normal$", "^normal$"),
        ("\\\\z", "\\\\z"),
        ("\\A\\G\\n\\t", "\\A\\G\\n\\t"),
        ("", ""),
        (
            '^(?:(?=(msg(?:id(_plural)?|ctxt))\\s*"[^"])|\\s*$).*\\z',
            '^(?:(?=(msg(?:id(_plural)?|ctxt))\\s*"[^"])|\\s*$).*$(?!\\n)(?<!\\n)',
        ),
    ],
)
def test_transform_z_anchor(pattern, expected):
    assert transform_z_anchor(pattern) == expected


def test_escape_regexp_characters():
    assert escape_regexp_characters("a.b") == "a\\.b"
    assert escape_regexp_characters("(x)") == "\\(x\\)"
    assert escape_regexp_characters("a b") == "a\\ b"
    assert escape_regexp_characters("plain") == "plain"


def test_escaped_text_matches_itself():
    text = "a+b*(c)|[d]{e}#f,g-h"
    compiled = Regex(escape_regexp_characters(text)).compiled()
    match = compiled.fullmatch(text)
    assert match.group(0) == text
    assert match.span() == (0, len(text))


def test_resolve_backreferences_replaces_and_escapes():
    captures = [(0, 7), (0, 3), (4, 7)]
    assert resolve_backreferences("\\1-\\2", "EOF a.b", captures) == "EOF-a\\.b"


def test_resolve_backreferences_missing_and_unmatched():
    captures = [(0, 3), None]
    assert resolve_backreferences("x\\1y\\5z", "abc", captures) == "xyz"


def test_resolve_backreferences_keeps_other_escapes():
    assert resolve_backreferences("\\s+\\w", "abc", [(0, 3)]) == "\\s+\\w"


def test_resolve_backreferences_multi_digit():
    captures = [(0, 1)] * 10 + [(0, 2)] + [(0, 1)]
    assert resolve_backreferences("\\11", "ab", captures) == "a"


def test_regex_applies_z_transform():
    assert Regex("end\\z").pattern() == "end$(?!\\n)(?<!\\n)"


def test_regex_compiles_lazily_and_matches():
    compiled = Regex("a+b").compiled()
    match = compiled.search("xaab")
    assert match.span() == (1, 4)


def test_regex_line_anchors():
    compiled = Regex("^b$").compiled()
    assert compiled.search("a\nb\nc").span() == (2, 3)


def test_invalid_regex_compiles_to_none_and_fails_validation():
    bad = Regex("(unclosed")
    assert bad.compiled() is None
    with pytest.raises(TokenizeRegexError):
        bad.validate()


def test_regex_equality_by_pattern():
    assert Regex("abc") == Regex("abc")
    assert Regex("abc") != Regex("abd")
    assert len({Regex("x"), Regex("x")}) == 1