"""Injection selectors: which scope stacks a grammar injection applies to."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Sequence, Union

# Same token shapes as the reference selector tokenizer, plus ``*`` inside names.
_TOKEN_RE = re.compile(r"([LR]:|[\w.:]+[\w\*.:\-]*|[,|\-()])")
_IDENTIFIER_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_.:-*"
)


class InjectionPrecedence(enum.Enum):
    """Where an injection goes relative to the grammar's own patterns."""

    LEFT = "L"
    RIGHT = "R"


def is_scope_prefix(prefix: str, scope: str) -> bool:
    """Whether ``prefix`` equals ``scope`` or is a dotted prefix of it."""
    return scope == prefix or scope.startswith(prefix + ".")


@dataclass(frozen=True)
class ScopeMatcher:
    """Matches when any scope of the stack starts with ``scope``."""

    scope: str

    def matches(self, scope_stack: Sequence[str]) -> bool:
        return any(is_scope_prefix(self.scope, s) for s in scope_stack)

    def __str__(self) -> str:
        return self.scope


@dataclass(frozen=True)
class AndMatcher:
    """Every matcher must succeed; plain scopes must appear in order."""

    matchers: tuple

    def matches(self, scope_stack: Sequence[str]) -> bool:
        start = 0
        for matcher in self.matchers:
            if isinstance(matcher, ScopeMatcher):
                found = next(
                    (
                        i
                        for i in range(start, len(scope_stack))
                        if is_scope_prefix(matcher.scope, scope_stack[i])
                    ),
                    None,
                )
                if found is None:
                    return False
                start = found + 1
            elif not matcher.matches(scope_stack):
                return False
        return True

    def __str__(self) -> str:
        return " ".join(str(m) for m in self.matchers)


@dataclass(frozen=True)
class OrMatcher:
    """Any matcher may succeed."""

    matchers: tuple

    def matches(self, scope_stack: Sequence[str]) -> bool:
        return any(m.matches(scope_stack) for m in self.matchers)

    def __str__(self) -> str:
        if len(self.matchers) == 1:
            return str(self.matchers[0])
        return "(" + " | ".join(str(m) for m in self.matchers) + ")"


@dataclass(frozen=True)
class NotMatcher:
    """Succeeds when the inner matcher does not."""

    matcher: SelectorMatcher

    def matches(self, scope_stack: Sequence[str]) -> bool:
        return not self.matcher.matches(scope_stack)

    def __str__(self) -> str:
        return f"-{self.matcher}"


SelectorMatcher = Union[ScopeMatcher, AndMatcher, OrMatcher, NotMatcher]


@dataclass(frozen=True)
class CompiledInjectionMatcher:
    """A selector matcher with its optional precedence prefix."""

    matcher: SelectorMatcher
    priority: InjectionPrecedence | None = None

    def matches(self, scope_stack: Sequence[str]) -> bool:
        return self.matcher.matches(scope_stack)

    def precedence(self) -> InjectionPrecedence:
        """The precedence, ``RIGHT`` when none was given."""
        return self.priority or InjectionPrecedence.RIGHT

    def __repr__(self) -> str:
        if self.priority is None:
            return f'"{self.matcher}"'
        return f'"{self.priority.value}:{self.matcher}"'


def _is_identifier(token: str) -> bool:
    if not token or token == "-":
        return False
    return all(c in _IDENTIFIER_CHARS for c in token)


def _scope_of(token: str) -> str:
    pos = token.find(".*")
    if pos >= 0:
        return token[:pos].rstrip(".")
    return token


class _Parser:
    def __init__(self, tokens: list[str]) -> None:
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def inner_expression(self) -> SelectorMatcher:
        found: list[SelectorMatcher] = []
        while (m := self.conjunction()) is not None:
            found.append(m)
            if self.peek() in ("|", ","):
                self.pos += 1
            else:
                break
        unique: list[SelectorMatcher] = []
        for m in found:
            if m not in unique:
                unique.append(m)
        if len(unique) == 1:
            return unique[0]
        return OrMatcher(tuple(unique))

    def operand(self) -> SelectorMatcher | None:
        token = self.peek()
        if token is None:
            return None
        if token == "-":
            self.pos += 1
            negated = self.operand()
            return NotMatcher(negated) if negated is not None else None
        if token == "(":
            self.pos += 1
            inner = self.inner_expression()
            if self.peek() == ")":
                self.pos += 1
            return inner
        scopes: list[str] = []
        while (token := self.peek()) is not None and _is_identifier(token):
            scope = _scope_of(token)
            if scope not in scopes:
                scopes.append(scope)
            self.pos += 1
        if not scopes:
            return None
        if len(scopes) == 1:
            return ScopeMatcher(scopes[0])
        return AndMatcher(tuple(ScopeMatcher(s) for s in scopes))

    def conjunction(self) -> SelectorMatcher | None:
        matchers: list[SelectorMatcher] = []
        while (m := self.operand()) is not None:
            matchers.append(m)
        if not matchers:
            return None
        if len(matchers) == 1:
            return matchers[0]
        return AndMatcher(tuple(matchers))


def parse_injection_selector(selector: str) -> list[CompiledInjectionMatcher]:
    """Parse a selector into its comma separated matchers, each with a priority."""
    selector = selector.strip()
    if not selector:
        return []
    parser = _Parser([t for t in _TOKEN_RE.findall(selector) if t])
    result: list[CompiledInjectionMatcher] = []
    priority: InjectionPrecedence | None = None
    while (token := parser.peek()) is not None:
        if token == "L:":
            priority = InjectionPrecedence.LEFT
            parser.pos += 1
            continue
        if token == "R:":
            priority = InjectionPrecedence.RIGHT
            parser.pos += 1
            continue
        before = parser.pos
        matcher = parser.conjunction()
        if matcher is None:
            if parser.pos == before:
                break
            continue
        result.append(CompiledInjectionMatcher(matcher, priority))
        priority = None
        if parser.peek() == ",":
            parser.pos += 1
        else:
            break
    return result