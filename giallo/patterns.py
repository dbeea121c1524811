"""Regular expression helpers for TextMate grammar patterns."""

from __future__ import annotations

import re

import regex

from giallo.errors import TokenizeRegexError

_SPECIAL_CHARACTERS = frozenset("-\\{}*+?|^$.,[]()#")
_BACKREFERENCE = re.compile(r"\\([0-9]+)")
_USIZE_MAX = 2**64 - 1
# Grammar patterns treat ^ and $ as line anchors.
_FLAGS = regex.MULTILINE


def escape_regexp_characters(value: str) -> str:
    """Escape every character of ``value`` that has a meaning in a pattern."""
    return "".join(
        "\\" + c if c in _SPECIAL_CHARACTERS or c.isspace() else c for c in value
    )


def resolve_backreferences(pattern, text, captures) -> str:
    """Replace ``\\N`` in ``pattern`` with the escaped text of capture ``N``.

    ``captures`` holds one ``(start, end)`` pair or ``None`` per group.
    Captures that are missing or did not match become empty strings.
    """
    groups = [text[c[0]:c[1]] if c is not None else "" for c in captures]

    def substitute(match: re.Match) -> str:
        index = int(match.group(1))
        if index > _USIZE_MAX:
            return match.group(0)
        if index < len(groups):
            return escape_regexp_characters(groups[index])
        return ""

    return _BACKREFERENCE.sub(substitute, pattern)


def transform_z_anchor(pattern: str) -> str:
    """Turn ``\\z`` into an end anchor that does not match before a newline.

    A literal ``\\\\z`` (escaped backslash followed by ``z``) is left alone.
    """
    return (
        pattern.replace("\\\\z", "___TEMP___")
        .replace("\\z", "$(?!\\n)(?<!\\n)")
        .replace("___TEMP___", "\\\\z")
    )


class Regex:
    """A pattern compiled on first use; compares equal by its pattern text."""

    __slots__ = ("_pattern", "_compiled", "_resolved")

    def __init__(self, pattern: str) -> None:
        self._pattern = transform_z_anchor(pattern)
        self._compiled = None
        self._resolved = False

    def pattern(self) -> str:
        """The pattern text after the ``\\z`` transformation."""
        return self._pattern

    def compiled(self):
        """The compiled pattern, or ``None`` if it does not compile."""
        if not self._resolved:
            try:
                self._compiled = regex.compile(self._pattern, _FLAGS)
            except regex.error:
                self._compiled = None
            self._resolved = True
        return self._compiled

    def validate(self) -> None:
        """Raise :class:`TokenizeRegexError` if the pattern does not compile."""
        try:
            regex.compile(self._pattern, _FLAGS)
        except regex.error as exc:
            raise TokenizeRegexError(str(exc)) from exc

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Regex):
            return NotImplemented
        return self._pattern == other._pattern

    def __hash__(self) -> int:
        return hash(self._pattern)

    def __repr__(self) -> str:
        return self._pattern