"""TextMate grammars as they appear in their JSON documents."""

from __future__ import annotations

import enum
import json
import re
from dataclasses import dataclass, field
from os import PathLike
from typing import Any

from giallo.errors import GialloIOError, JsonError

_CAPTURE_KEY = re.compile(r"\+?[0-9]+")


def _json_error(message: str) -> JsonError:
    return JsonError(f"JSON parsing error: {message}")


class ReferenceKind(enum.Enum):
    """What an ``include`` points at."""

    SELF = "self"
    BASE = "base"
    LOCAL = "local"
    OTHER_COMPLETE = "other_complete"
    OTHER_SPECIFIC = "other_specific"


@dataclass(frozen=True)
class Reference:
    """A parsed ``include`` value.

    ``scope`` names another grammar; ``rule`` names a repository entry.
    """

    kind: ReferenceKind
    scope: str | None = None
    rule: str | None = None

    @staticmethod
    def parse(value: str) -> Reference:
        """Parse ``$self``, ``$base``, ``#rule``, ``scope#rule`` or ``scope``."""
        if value == "$self":
            return Reference(ReferenceKind.SELF)
        if value == "$base":
            return Reference(ReferenceKind.BASE)
        if value.startswith("#"):
            return Reference(ReferenceKind.LOCAL, rule=value[1:])
        if "#" in value:
            scope, rule = value.split("#", 1)
            return Reference(ReferenceKind.OTHER_SPECIFIC, scope=scope, rule=rule)
        return Reference(ReferenceKind.OTHER_COMPLETE, scope=value)

    def is_local(self) -> bool:
        return self.kind is ReferenceKind.LOCAL


def _optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _json_error(f"invalid type for `{key}`, expected a string")
    return value


def _required_str(data: dict, key: str) -> str:
    if key not in data:
        raise _json_error(f"missing field `{key}`")
    value = _optional_str(data, key)
    if value is None:
        raise _json_error(f"invalid type for `{key}`, expected a string")
    return value


def _str_list(data: dict, key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise _json_error(f"invalid type for `{key}`, expected a list of strings")
    return list(value)


def _rule_list(value: Any) -> list[RawRule]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise _json_error("invalid type for `patterns`, expected a list")
    return [RawRule.from_dict(item) for item in value]


def _bool_or_number(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and 0 <= value <= 255:
        if value in (0, 1):
            return bool(value)
        raise _json_error(f"expected bool, 0, or 1, got {value}")
    raise _json_error("invalid type for `applyEndPatternLast`, expected bool or 0/1")


def parse_captures(value: Any) -> dict[int, RawRule]:
    """Parse a captures object or array into rules keyed by group number.

    Keys that are not numbers are skipped; anything malformed yields no captures.
    """
    try:
        if isinstance(value, dict):
            captures = {
                int(key): RawRule.from_dict(rule)
                for key, rule in value.items()
                if isinstance(key, str) and _CAPTURE_KEY.fullmatch(key)
            }
        elif isinstance(value, list):
            captures = {i: RawRule.from_dict(rule) for i, rule in enumerate(value)}
        else:
            return {}
    except JsonError:
        return {}
    return dict(sorted(captures.items()))


def parse_repository(value: Any) -> dict[str, RawRule]:
    """Parse a repository whose entries are a single rule or a list of rules.

    Empty rules are dropped from every entry's patterns.
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _json_error("invalid type for `repository`, expected an object")
    result: dict[str, RawRule] = {}
    for key in sorted(value):
        entry = value[key]
        if isinstance(entry, list):
            rule = RawRule(patterns=_rule_list(entry))
        elif isinstance(entry, dict):
            rule = RawRule.from_dict(entry)
        else:
            raise _json_error(f"invalid repository entry `{key}`")
        rule.patterns = [p for p in rule.patterns if not p.is_empty()]
        result[key] = rule
    return result


@dataclass
class RawRule:
    """Any TextMate rule, before it is split into its compiled kinds."""

    include: Reference | None = None
    name: str | None = None
    content_name: str | None = None
    match_: str | None = None
    captures: dict[int, RawRule] = field(default_factory=dict)
    begin: str | None = None
    begin_captures: dict[int, RawRule] = field(default_factory=dict)
    end: str | None = None
    end_captures: dict[int, RawRule] = field(default_factory=dict)
    while_: str | None = None
    while_captures: dict[int, RawRule] = field(default_factory=dict)
    patterns: list[RawRule] = field(default_factory=list)
    repository: dict[str, RawRule] = field(default_factory=dict)
    apply_end_pattern_last: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> RawRule:
        """Build a rule from its JSON object."""
        if not isinstance(data, dict):
            raise _json_error("invalid type for rule, expected an object")
        include = _optional_str(data, "include")
        return cls(
            include=Reference.parse(include) if include is not None else None,
            name=_optional_str(data, "name"),
            content_name=_optional_str(data, "contentName"),
            match_=_optional_str(data, "match"),
            captures=parse_captures(data.get("captures")),
            begin=_optional_str(data, "begin"),
            begin_captures=parse_captures(data.get("beginCaptures")),
            end=_optional_str(data, "end"),
            end_captures=parse_captures(data.get("endCaptures")),
            while_=_optional_str(data, "while"),
            while_captures=parse_captures(data.get("whileCaptures")),
            patterns=_rule_list(data.get("patterns")),
            repository=parse_repository(data.get("repository")),
            apply_end_pattern_last=_bool_or_number(data.get("applyEndPatternLast")),
        )

    def is_empty(self) -> bool:
        """Whether every field holds its default."""
        return self == RawRule()


@dataclass
class RawGrammar:
    """A complete TextMate grammar document."""

    name: str
    scope_name: str
    display_name: str | None = None
    file_types: list[str] = field(default_factory=list)
    repository: dict[str, RawRule] = field(default_factory=dict)
    patterns: list[RawRule] = field(default_factory=list)
    injections: dict[str, RawRule] = field(default_factory=dict)
    injection_selector: str | None = None
    inject_to: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> RawGrammar:
        """Build a grammar from its decoded JSON object."""
        if not isinstance(data, dict):
            raise _json_error("invalid type for grammar, expected an object")
        injections = data.get("injections")
        if injections is None:
            injections = {}
        if not isinstance(injections, dict):
            raise _json_error("invalid type for `injections`, expected an object")
        return cls(
            name=_required_str(data, "name"),
            scope_name=_required_str(data, "scopeName"),
            display_name=_optional_str(data, "displayName"),
            file_types=_str_list(data, "fileTypes"),
            repository=parse_repository(data.get("repository")),
            patterns=_rule_list(data.get("patterns")),
            injections={
                key: RawRule.from_dict(injections[key]) for key in sorted(injections)
            },
            injection_selector=_optional_str(data, "injectionSelector"),
            inject_to=_str_list(data, "injectTo"),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> RawGrammar:
        """Parse a grammar from JSON text."""
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise _json_error(str(exc)) from exc
        return cls.from_dict(data)

    @classmethod
    def load_from_file(cls, path: str | PathLike) -> RawGrammar:
        """Read and parse a grammar JSON file."""
        try:
            with open(path, "rb") as handle:
                content = handle.read()
        except OSError as exc:
            raise GialloIOError(f"I/O error: {exc}") from exc
        return cls.from_json(content)