"""Several patterns searched together, the leftmost match winning."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import regex

from giallo.errors import TokenizeRegexError
from giallo.rules import GlobalRuleRef

# Grammar patterns treat ^ and $ as line anchors.
_FLAGS = regex.MULTILINE


@dataclass(frozen=True)
class PatternSetMatch:
    """The rule whose pattern matched, the match span and every group's span."""

    rule_ref: GlobalRuleRef
    start: int
    end: int
    capture_pos: list[Optional[Tuple[int, int]]]


class PatternSet:
    """Patterns compiled on first search and searched as one set.

    A search reports the match that starts earliest; when several patterns
    match at the same position the first one in the set wins.
    """

    __slots__ = ("_rule_refs", "_patterns", "_compiled")

    def __init__(self, items: Iterable[tuple[GlobalRuleRef, str]]) -> None:
        pairs = list(items)
        self._rule_refs: list[GlobalRuleRef] = [ref for ref, _ in pairs]
        self._patterns: list[str] = [pattern for _, pattern in pairs]
        self._compiled: list | None = None

    @property
    def patterns(self) -> tuple[str, ...]:
        """The patterns, in order."""
        return tuple(self._patterns)

    @property
    def rule_refs(self) -> tuple[GlobalRuleRef, ...]:
        """The rule each pattern belongs to, in order."""
        return tuple(self._rule_refs)

    def __len__(self) -> int:
        return len(self._patterns)

    def _compile_all(self) -> list:
        compiled = []
        for i, pattern in enumerate(self._patterns):
            try:
                compiled.append(regex.compile(pattern, _FLAGS))
            except regex.error as exc:
                listing = "\n".join(
                    f"  [{j}] Rule ID {ref.rule} of grammar {ref.grammar}: {pat!r}"
                    for j, (ref, pat) in enumerate(zip(self._rule_refs, self._patterns))
                )
                raise TokenizeRegexError(
                    f"Failed to compile pattern set with {len(self._patterns)} "
                    f"patterns: pattern {i} ({pattern!r}): {exc}\n{listing}"
                ) from exc
        return compiled

    def update(self, index: int, pattern: str) -> bool:
        """Replace the pattern at ``index``; return whether it changed."""
        if self._patterns[index] == pattern:
            return False
        if self._compiled is not None:
            try:
                self._compiled[index] = regex.compile(pattern, _FLAGS)
            except regex.error as exc:
                raise TokenizeRegexError(str(exc)) from exc
        self._patterns[index] = pattern
        return True

    def update_front(self, pattern: str) -> bool:
        """Replace the first pattern; return whether it changed."""
        return self.update(0, pattern)

    def update_last(self, pattern: str) -> bool:
        """Replace the last pattern; return whether it changed."""
        return self.update(len(self._patterns) - 1, pattern)

    def find_at(self, text: str, pos: int) -> PatternSetMatch | None:
        """Search ``text`` from ``pos`` and return the leftmost match, if any.

        Text before ``pos`` stays visible to lookbehind; ``^`` only matches at
        real line starts and ``\\G`` matches at ``pos``.
        """
        if not self._patterns:
            return None
        if self._compiled is None:
            self._compiled = self._compile_all()

        best = None
        best_index = -1
        for index, compiled in enumerate(self._compiled):
            found = compiled.search(text, pos)
            if found is None:
                continue
            if best is None or found.start() < best.start():
                best, best_index = found, index
                if found.start() == pos:
                    break

        if best is None:
            return None
        capture_pos = [_span(best, group) for group in range(len(best.regs))]
        return PatternSetMatch(
            rule_ref=self._rule_refs[best_index],
            start=best.start(),
            end=best.end(),
            capture_pos=capture_pos,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternSet):
            return NotImplemented
        return self._patterns == other._patterns and self._rule_refs == other._rule_refs

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return "\n".join(
            f"  - RuleId({ref.rule}): {pattern}"
            for pattern, ref in zip(self._patterns, self._rule_refs)
        )


def _span(found, group: int) -> Optional[Tuple[int, int]]:
    start, end = found.span(group)
    if start < 0:
        return None
    return (start, end)


def _refs(items: Sequence[tuple[GlobalRuleRef, str]]) -> list[GlobalRuleRef]:
    return [ref for ref, _ in items]