"""Exceptions raised while loading grammars and themes and highlighting code."""

from __future__ import annotations


class GialloError(Exception):
    """Base class of every error raised by this package."""


class GialloIOError(GialloError, OSError):
    """A grammar, theme or dump file could not be read."""


class JsonError(GialloError, ValueError):
    """A grammar or theme document is not valid JSON or has the wrong shape."""


class InvalidHexColorError(GialloError, ValueError):
    """A theme holds a color that is not a valid hex color."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"invalid hex color '{value}': {reason}")
        self.value = value
        self.reason = reason


class GrammarNotFoundError(GialloError, LookupError):
    """The requested grammar is not in the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"grammar '{name}' not found")
        self.name = name


class ThemeNotFoundError(GialloError, LookupError):
    """The requested theme is not in the registry."""

    def __init__(self, name: str) -> None:
        super().__init__(f"theme '{name}' not found")
        self.name = name


class TokenizeRegexError(GialloError):
    """A pattern built at tokenization time failed to compile."""

    def __init__(self, message: str) -> None:
        super().__init__(f"regex compilation error: {message}")
        self.message = message


class UnlinkedGrammarsError(GialloError):
    """Highlighting was requested before the grammars were linked."""

    def __init__(self) -> None:
        super().__init__("grammars are unlinked, call `registry.link_grammars()`")


class ReplacingGrammarPostLinkingError(GialloError):
    """A grammar was replaced after the registry linked its grammars."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tried to replace grammar `{name}` after linking")
        self.name = name