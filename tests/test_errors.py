import pytest

from giallo.errors import (
    GialloError,
    GialloIOError,
    GrammarNotFoundError,
    InvalidHexColorError,
    JsonError,
    ReplacingGrammarPostLinkingError,
    ThemeNotFoundError,
    TokenizeRegexError,
    UnlinkedGrammarsError,
)


def test_invalid_hex_color_message_and_fields():
    err = InvalidHexColorError("#zz", "bad digit")
    assert str(err) == "invalid hex color '#zz': bad digit"
    assert (err.value, err.reason) == ("#zz", "bad digit")
    assert isinstance(err, ValueError)


def test_grammar_not_found():
    err = GrammarNotFoundError("rust")
    assert str(err) == "grammar 'rust' not found"
    assert err.name == "rust"
    with pytest.raises(LookupError):
        raise err


def test_theme_not_found():
    err = ThemeNotFoundError("vitesse-black")
    assert str(err) == "theme 'vitesse-black' not found"
    assert err.name == "vitesse-black"


def test_tokenize_regex_error():
    err = TokenizeRegexError("unmatched paren")
    assert str(err) == "regex compilation error: unmatched paren"
    assert err.message == "unmatched paren"


def test_unlinked_grammars():
    assert str(UnlinkedGrammarsError()) == (
        "grammars are unlinked, call `registry.link_grammars()`"
    )


def test_replacing_grammar_post_linking():
    err = ReplacingGrammarPostLinkingError("javascript")
    assert str(err) == "Tried to replace grammar `javascript` after linking"
    assert err.name == "javascript"


@pytest.mark.parametrize(
    "err, message",
    [
        (GialloIOError("io"), "io"),
        (JsonError("json"), "json"),
        (InvalidHexColorError("x", "y"), "invalid hex color 'x': y"),
        (GrammarNotFoundError("g"), "grammar 'g' not found"),
        (ThemeNotFoundError("t"), "theme 't' not found"),
        (TokenizeRegexError("m"), "regex compilation error: m"),
        (
            UnlinkedGrammarsError(),
            "grammars are unlinked, call `registry.link_grammars()`",
        ),
        (
            ReplacingGrammarPostLinkingError("g"),
            "Tried to replace grammar `g` after linking",
        ),
    ],
)
def test_all_errors_are_giallo_errors(err, message):
    with pytest.raises(GialloError) as exc_info:
        raise err
    assert exc_info.value is err
    assert str(exc_info.value) == message


def test_io_and_json_errors_keep_message():
    assert str(GialloIOError("I/O error: nope")) == "I/O error: nope"
    assert isinstance(GialloIOError("x"), OSError)
    assert str(JsonError("JSON parsing error: bad")) == "JSON parsing error: bad"
    assert isinstance(JsonError("x"), ValueError)