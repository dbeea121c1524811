"""TextMate grammar loading and compilation, injection selectors, pattern sets and fence parsing."""

__version__ = "0.1.0"
__all__ = [
    "errors",
    "grammar",
    "injections",
    "markdown_fence",
    "pattern_set",
    "patterns",
    "raw",
    "rules",
]