import pytest

from giallo.markdown_fence import (
    PLAIN_GRAMMAR_NAME,
    FenceOptions,
    parse_line_range,
    parse_markdown_fence,
)


def test_language_only():
    result = parse_markdown_fence("rust")
    assert result.lang == "rust"
    assert result.options == FenceOptions()
    assert result.rest == {}


def test_empty_string():
    result = parse_markdown_fence("")
    assert result.lang == PLAIN_GRAMMAR_NAME
    assert result.options == FenceOptions()
    assert result.rest == {}


def test_line_numbers():
    result = parse_markdown_fence("python,linenos")
    assert result.lang == "python"
    assert result.options.show_line_numbers is True


def test_line_number_start():
    result = parse_markdown_fence("javascript,linenos,linenostart=5")
    assert result.lang == "javascript"
    assert result.options.show_line_numbers is True
    assert result.options.line_number_start == 5


def test_highlight_lines_multiple():
    result = parse_markdown_fence("rust,hl_lines=1-3 5 7-9")
    assert result.lang == "rust"
    assert result.options.highlight_lines == [range(1, 4), range(5, 6), range(7, 10)]


def test_hide_lines():
    result = parse_markdown_fence("rust,hide_lines=2 4-6")
    assert result.lang == "rust"
    assert result.options.hide_lines == [range(2, 3), range(4, 7)]


def test_metadata():
    result = parse_markdown_fence("rust,name=example,copy=true")
    assert result.lang == "rust"
    assert result.rest["name"] == "example"
    assert result.rest["copy"] == "true"


def test_complex_combination():
    result = parse_markdown_fence(
        "rust,linenos,linenostart=10,hl_lines=1-3 5,hide_lines=2,name=test"
    )
    assert result.lang == "rust"
    assert result.options.show_line_numbers is True
    assert result.options.line_number_start == 10
    assert result.options.highlight_lines == [range(1, 4), range(5, 6)]
    assert result.options.hide_lines == [range(2, 3)]
    assert result.rest == {"name": "test"}


def test_rest_is_sorted_by_key():
    result = parse_markdown_fence("rust,zeta=1,alpha=2")
    assert list(result.rest) == ["alpha", "zeta"]


def test_invalid_linenostart_keeps_default():
    result = parse_markdown_fence("rust,linenostart=abc")
    assert result.options.line_number_start == FenceOptions().line_number_start


def test_options_without_language_give_empty_lang():
    result = parse_markdown_fence("linenos")
    assert result.lang == ""
    assert result.options.show_line_numbers is True


@pytest.mark.parametrize(
    "text,expected",
    [
        ("5", range(5, 6)),
        ("1-3", range(1, 4)),
        ("3-1", range(1, 4)),
        ("", None),
        ("a", None),
        ("-3", None),
        ("1-", None),
    ],
)
def test_parse_line_range(text, expected):
    assert parse_line_range(text) == expected


def test_invalid_ranges_are_skipped():
    result = parse_markdown_fence("rust,hl_lines=1-2  x 4")
    assert result.options.highlight_lines == [range(1, 3), range(4, 5)]