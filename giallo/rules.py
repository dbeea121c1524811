"""Compiled grammar rules and the helpers they use to name their scopes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple

_CAPTURING_NAME = re.compile(r"\$([0-9]+)|\$\{([0-9]+):/(downcase|upcase)\}")
_REPOSITORY_STACK_CAPACITY = 8

CapturePositions = Sequence[Optional[Tuple[int, int]]]


def has_captures(name: str | None) -> bool:
    """Whether a scope name refers to capture groups such as ``$1``."""
    return name is not None and _CAPTURING_NAME.search(name) is not None


def has_backreferences(pattern: str) -> bool:
    """Whether a pattern holds a backreference from ``\\1`` to ``\\9``."""
    return any(f"\\{i}" in pattern for i in range(1, 10))


def replace_captures(name: str, text: str, captures: CapturePositions) -> str:
    """Fill ``$N`` and ``${N:/downcase}``-style references in a scope name.

    Leading dots of the captured text are dropped. A group that did not match
    becomes an empty string; a group that does not exist is left as written.
    """

    def substitute(match: re.Match) -> str:
        number = int(match.group(1) or match.group(2) or 0)
        command = match.group(3)
        if number >= len(captures):
            return match.group(0)
        position = captures[number]
        if position is None:
            return ""
        start, end = position
        result = text[start:end].lstrip(".")
        if command == "downcase":
            return result.lower()
        if command == "upcase":
            return result.upper()
        return result

    return _CAPTURING_NAME.sub(substitute, name)


def split_scopes(name: str) -> list[str]:
    """Split a space separated scope name into its scopes."""
    return name.split()


def _scopes_from_name(name: str | None, is_capturing: bool) -> list[str]:
    if is_capturing or name is None:
        return []
    return split_scopes(name)


def _process_scope_name(
    name: str | None, is_capturing: bool, text: str, captures: CapturePositions
) -> str | None:
    if name is None:
        return None
    if is_capturing:
        return replace_captures(name, text, captures)
    return name


@dataclass(frozen=True)
class GlobalRuleRef:
    """A rule of a grammar, addressable across the whole registry."""

    grammar: int
    rule: int


ROOT_RULE_ID = 0
END_RULE_ID = 0xFFFF
TEMP_RULE_ID = 0xFFFF - 1

NO_OP_GLOBAL_RULE_REF = GlobalRuleRef(grammar=0xFFFF - 1, rule=TEMP_RULE_ID)
BASE_GLOBAL_RULE_REF = GlobalRuleRef(grammar=0xFFFF - 2, rule=ROOT_RULE_ID)
PRE_CROSS_LINKING_RULE_REF = GlobalRuleRef(grammar=0xFFFF - 3, rule=TEMP_RULE_ID)


@dataclass(frozen=True)
class RepositoryStack:
    """The repositories visible to a rule, innermost last. Holds at most 8."""

    ids: tuple[int, ...] = ()

    def push(self, repo_id: int) -> RepositoryStack:
        """A new stack with ``repo_id`` on top."""
        if len(self.ids) >= _REPOSITORY_STACK_CAPACITY:
            raise IndexError("repository stack is full")
        return RepositoryStack(self.ids + (repo_id,))

    def pop(self) -> tuple[int, RepositoryStack]:
        """The top repository and the stack without it."""
        if not self.ids:
            raise IndexError("pop from an empty repository stack")
        return self.ids[-1], RepositoryStack(self.ids[:-1])

    def __iter__(self) -> Iterator[int]:
        return iter(self.ids)

    def __len__(self) -> int:
        return len(self.ids)


class Rule:
    """Behaviour shared by every kind of compiled rule."""

    def _name_fields(self) -> tuple[str | None, bool, list[str]] | None:
        return None

    def _content_fields(self) -> tuple[str | None, bool, list[str]] | None:
        return None

    def pattern_refs(self) -> Sequence[GlobalRuleRef]:
        """The rules this rule includes, in order."""
        return ()

    def original_name(self) -> str | None:
        """The name as written in the grammar."""
        fields = self._name_fields()
        return fields[0] if fields else None

    def has_end_backrefs(self) -> bool:
        """Whether the end or while pattern refers to begin captures."""
        return False

    def resolved_name(self, text: str, captures: CapturePositions) -> str | None:
        """The name with capture references filled from ``text``."""
        fields = self._name_fields()
        if fields is None:
            return None
        name, is_capturing, _ = fields
        return _process_scope_name(name, is_capturing, text, captures)

    def resolved_content_name(
        self, text: str, captures: CapturePositions
    ) -> str | None:
        """The content name with capture references filled from ``text``."""
        fields = self._content_fields()
        if fields is None:
            return None
        name, is_capturing, _ = fields
        return _process_scope_name(name, is_capturing, text, captures)

    def name_scopes(self, text: str, captures: CapturePositions) -> list[str]:
        """Scopes of the name, computed from captures when it refers to them."""
        fields = self._name_fields()
        if fields is None:
            return []
        _, is_capturing, scopes = fields
        if is_capturing:
            name = self.resolved_name(text, captures)
            return split_scopes(name) if name is not None else []
        return list(scopes)

    def content_scopes_for(self, text: str, captures: CapturePositions) -> list[str]:
        """Scopes of the content name, computed from captures when needed."""
        fields = self._content_fields()
        if fields is None:
            return []
        _, is_capturing, scopes = fields
        if is_capturing:
            name = self.resolved_content_name(text, captures)
            return split_scopes(name) if name is not None else []
        return list(scopes)

    def has_patterns(self) -> bool:
        return bool(self.pattern_refs())

    def has_only_missing_patterns(self) -> bool:
        """Whether the rule has patterns and every one was left unresolved."""
        refs = self.pattern_refs()
        return bool(refs) and all(p == NO_OP_GLOBAL_RULE_REF for p in refs)

    def replace_pattern(self, position: int, rule_ref: GlobalRuleRef) -> None:
        """Point the pattern at ``position`` to ``rule_ref``; no-op without patterns."""
        refs = self.pattern_refs()
        # Rules without patterns hand out an immutable empty tuple.
        if isinstance(refs, list):
            refs[position] = rule_ref


@dataclass(kw_only=True)
class NoopRule(Rule):
    """A rule removed at compile time because it can never match."""

    repository_stack: RepositoryStack = field(default_factory=RepositoryStack)


@dataclass(kw_only=True)
class MatchRule(Rule):
    """A single-pattern rule, or a scope-only rule when ``regex_id`` is ``None``."""

    id: GlobalRuleRef
    name: str | None = None
    name_is_capturing: bool = False
    scopes: list[str] = field(default_factory=list)
    regex_id: int | None = None
    captures: list[GlobalRuleRef | None] = field(default_factory=list)
    repository_stack: RepositoryStack = field(default_factory=RepositoryStack)

    def _name_fields(self):
        return self.name, self.name_is_capturing, self.scopes


@dataclass(kw_only=True)
class IncludeOnlyRule(Rule):
    """A rule that only groups other patterns."""

    id: GlobalRuleRef
    name: str | None = None
    name_is_capturing: bool = False
    scopes: list[str] = field(default_factory=list)
    content_name: str | None = None
    content_name_is_capturing: bool = False
    content_scopes: list[str] = field(default_factory=list)
    repository_stack: RepositoryStack = field(default_factory=RepositoryStack)
    patterns: list[GlobalRuleRef] = field(default_factory=list)

    def _name_fields(self):
        return self.name, self.name_is_capturing, self.scopes

    def _content_fields(self):
        return self.content_name, self.content_name_is_capturing, self.content_scopes

    def pattern_refs(self):
        return self.patterns


@dataclass(kw_only=True)
class BeginEndRule(Rule):
    """A region opened by ``begin`` and closed by ``end``."""

    id: GlobalRuleRef
    begin: int
    end: int
    name: str | None = None
    name_is_capturing: bool = False
    scopes: list[str] = field(default_factory=list)
    content_name: str | None = None
    content_name_is_capturing: bool = False
    content_scopes: list[str] = field(default_factory=list)
    begin_captures: list[GlobalRuleRef | None] = field(default_factory=list)
    end_has_backrefs: bool = False
    end_captures: list[GlobalRuleRef | None] = field(default_factory=list)
    apply_end_pattern_last: bool = False
    patterns: list[GlobalRuleRef] = field(default_factory=list)
    repository_stack: RepositoryStack = field(default_factory=RepositoryStack)

    def _name_fields(self):
        return self.name, self.name_is_capturing, self.scopes

    def _content_fields(self):
        return self.content_name, self.content_name_is_capturing, self.content_scopes

    def pattern_refs(self):
        return self.patterns

    def has_end_backrefs(self) -> bool:
        return self.end_has_backrefs


@dataclass(kw_only=True)
class BeginWhileRule(Rule):
    """A region opened by ``begin`` that lasts while each line matches ``while_``."""

    id: GlobalRuleRef
    begin: int
    while_: int
    name: str | None = None
    name_is_capturing: bool = False
    scopes: list[str] = field(default_factory=list)
    content_name: str | None = None
    content_name_is_capturing: bool = False
    content_scopes: list[str] = field(default_factory=list)
    begin_captures: list[GlobalRuleRef | None] = field(default_factory=list)
    while_has_backrefs: bool = False
    while_captures: list[GlobalRuleRef | None] = field(default_factory=list)
    patterns: list[GlobalRuleRef] = field(default_factory=list)
    repository_stack: RepositoryStack = field(default_factory=RepositoryStack)

    def _name_fields(self):
        return self.name, self.name_is_capturing, self.scopes

    def _content_fields(self):
        return self.content_name, self.content_name_is_capturing, self.content_scopes

    def pattern_refs(self):
        return self.patterns

    def has_end_backrefs(self) -> bool:
        return self.while_has_backrefs