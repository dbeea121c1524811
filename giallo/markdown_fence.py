"""Parsing of Markdown code fence info strings."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

PLAIN_GRAMMAR_NAME = "plain"

_NUMBER = re.compile(r"\+?[0-9]+")


def _parse_number(text: str) -> int | None:
    return int(text) if _NUMBER.fullmatch(text) else None


@dataclass
class FenceOptions:
    """Rendering options a fence can set. Line ranges are inclusive, 1-based."""

    show_line_numbers: bool = False
    line_number_start: int = 1
    highlight_lines: list[range] = field(default_factory=list)
    hide_lines: list[range] = field(default_factory=list)


@dataclass
class ParsedFence:
    """The language, known options and remaining ``key=value`` pairs of a fence."""

    lang: str = PLAIN_GRAMMAR_NAME
    options: FenceOptions = field(default_factory=FenceOptions)
    rest: dict[str, str] = field(default_factory=dict)


def parse_line_range(text: str) -> range | None:
    """Parse ``n`` or ``a-b`` into the range of lines it covers, or ``None``."""
    if "-" in text:
        first, second = text.split("-", 1)
        start, end = _parse_number(first), _parse_number(second)
        if start is None or end is None:
            return None
        if end < start:
            start, end = end, start
        return range(start, end + 1)
    value = _parse_number(text)
    return None if value is None else range(value, value + 1)


def _parse_ranges(text: str) -> list[range]:
    return [r for r in map(parse_line_range, text.split(" ")) if r is not None]


def parse_markdown_fence(fence: str) -> ParsedFence:
    """Parse a fence such as ``rust,linenos,linenostart=10,hl_lines=1-3 5``.

    The bare word is the language; ``linenos``, ``linenostart``, ``hl_lines`` and
    ``hide_lines`` set options; other ``key=value`` pairs are kept in ``rest``.
    """
    if not fence.strip():
        return ParsedFence()

    language = ""
    options = FenceOptions()
    rest: dict[str, str] = {}

    for token in fence.split(","):
        token = token.strip()
        if not token:
            continue
        parts = token.split("=")
        key = parts[0].strip()
        value = parts[1] if len(parts) > 1 else None

        if key == "linenostart":
            start = _parse_number(value) if value is not None else None
            if start is not None:
                options.line_number_start = start
        elif key == "linenos":
            options.show_line_numbers = True
        elif key == "hl_lines":
            if value is not None:
                options.highlight_lines.extend(_parse_ranges(value))
        elif key == "hide_lines":
            if value is not None:
                options.hide_lines.extend(_parse_ranges(value))
        elif value is not None:
            rest[key] = value.strip()
        else:
            language = key

    return ParsedFence(lang=language, options=options, rest=dict(sorted(rest.items())))