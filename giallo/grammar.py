"""Compilation of raw TextMate grammars into indexed rules and patterns."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from giallo.injections import CompiledInjectionMatcher, parse_injection_selector
from giallo.patterns import Regex
from giallo.raw import RawGrammar, RawRule, Reference, ReferenceKind
from giallo.rules import (
    BASE_GLOBAL_RULE_REF,
    NO_OP_GLOBAL_RULE_REF,
    PRE_CROSS_LINKING_RULE_REF,
    ROOT_RULE_ID,
    TEMP_RULE_ID,
    BeginEndRule,
    BeginWhileRule,
    GlobalRuleRef,
    IncludeOnlyRule,
    MatchRule,
    NoopRule,
    RepositoryStack,
    Rule,
    has_backreferences,
    has_captures,
    split_scopes,
)

# End pattern used when a begin rule has no end, so the region never closes.
_NEVER_MATCHING_END = "\uffff"


@dataclass
class Repository:
    """Named rules of one ``repository`` block, by rule id."""

    rules: dict[str, int] = field(default_factory=dict)

    def get(self, name: str) -> int | None:
        """The id of the rule called ``name``, or ``None``."""
        return self.rules.get(name)


@dataclass
class _RefToReplace:
    rule_id: int
    index: int
    reference: Reference


def _scopes_from_name(name: str | None, is_capturing: bool) -> list[str]:
    if is_capturing or name is None:
        return []
    return split_scopes(name)


@dataclass
class CompiledGrammar:
    """A grammar whose rules, regexes and repositories live in flat lists."""

    id: int
    name: str
    scope_name: str
    scope: str
    display_name: str | None = None
    file_types: list[str] = field(default_factory=list)
    regexes: list[Regex] = field(default_factory=list)
    rules: list[Rule] = field(default_factory=list)
    repositories: list[Repository] = field(default_factory=list)
    injections: list[tuple[list[CompiledInjectionMatcher], GlobalRuleRef]] = field(
        default_factory=list
    )
    injection_selector: list[CompiledInjectionMatcher] = field(default_factory=list)
    inject_to: list[str] = field(default_factory=list)
    _references: list[_RefToReplace] = field(default_factory=list, repr=False)

    @classmethod
    def from_raw_grammar(cls, raw: RawGrammar, grammar_id: int) -> CompiledGrammar:
        """Compile ``raw`` and resolve its references to its own repositories."""
        scopes = split_scopes(raw.scope_name)
        grammar = cls(
            id=grammar_id,
            name=raw.name,
            scope_name=raw.scope_name,
            scope=scopes[0] if scopes else raw.scope_name,
            display_name=raw.display_name,
            file_types=list(raw.file_types),
            injection_selector=(
                parse_injection_selector(raw.injection_selector)
                if raw.injection_selector is not None
                else []
            ),
            inject_to=list(raw.inject_to),
        )

        root = RawRule(patterns=raw.patterns, repository=raw.repository)
        root_id = grammar._compile_rule(root, RepositoryStack())
        assert root_id == ROOT_RULE_ID

        for selector, raw_rule in sorted(raw.injections.items()):
            matchers = parse_injection_selector(selector)
            stack = RepositoryStack()
            if grammar.repositories:
                stack = stack.push(0)
            rule_id = grammar._compile_rule(raw_rule, stack)
            grammar.injections.append(
                (matchers, GlobalRuleRef(grammar=grammar_id, rule=rule_id))
            )

        grammar._resolve_local_references()
        return grammar

    def _global(self, rule_id: int) -> GlobalRuleRef:
        return GlobalRuleRef(grammar=self.id, rule=rule_id)

    def _compile_rule(self, raw: RawRule, stack: RepositoryStack) -> int:
        local_id = len(self.rules)
        global_id = self._global(local_id)
        # Reserve the slot so nested rules get the following ids.
        self.rules.append(NoopRule())
        name = raw.name

        rule: Rule
        if raw.match_ is not None:
            if not raw.match_:
                rule = NoopRule()
            else:
                is_capturing = has_captures(name)
                regex_id, _ = self._compile_regex(raw.match_)
                rule = MatchRule(
                    id=global_id,
                    name=name,
                    name_is_capturing=is_capturing,
                    scopes=_scopes_from_name(name, is_capturing),
                    regex_id=regex_id,
                    captures=self._compile_captures(raw.captures, stack),
                    repository_stack=stack,
                )
        elif raw.begin is not None:
            rule = self._compile_begin_rule(raw, global_id, stack)
        else:
            rule = self._compile_group_rule(raw, global_id, stack)

        self.rules[local_id] = rule
        return local_id

    def _compile_begin_rule(
        self, raw: RawRule, global_id: GlobalRuleRef, stack: RepositoryStack
    ) -> Rule:
        name = raw.name
        content_name = raw.content_name
        name_is_capturing = has_captures(name)
        content_is_capturing = has_captures(content_name)
        begin_captures = raw.begin_captures or raw.captures

        if raw.while_ is not None:
            while_id, while_backrefs = self._compile_regex(raw.while_)
            patterns = self._compile_patterns(global_id.rule, raw.patterns, stack)
            begin_id, _ = self._compile_regex(raw.begin)
            return BeginWhileRule(
                id=global_id,
                name=name,
                name_is_capturing=name_is_capturing,
                scopes=_scopes_from_name(name, name_is_capturing),
                content_name=content_name,
                content_name_is_capturing=content_is_capturing,
                content_scopes=_scopes_from_name(content_name, content_is_capturing),
                begin=begin_id,
                begin_captures=self._compile_captures(begin_captures, stack),
                while_=while_id,
                while_has_backrefs=while_backrefs,
                while_captures=self._compile_captures(
                    raw.while_captures or raw.captures, stack
                ),
                patterns=patterns,
                repository_stack=stack,
            )

        end_pattern = raw.end if raw.end else _NEVER_MATCHING_END
        end_id, end_backrefs = self._compile_regex(end_pattern)
        patterns = self._compile_patterns(global_id.rule, raw.patterns, stack)
        begin_id, _ = self._compile_regex(raw.begin)
        return BeginEndRule(
            id=global_id,
            name=name,
            name_is_capturing=name_is_capturing,
            scopes=_scopes_from_name(name, name_is_capturing),
            content_name=content_name,
            content_name_is_capturing=content_is_capturing,
            content_scopes=_scopes_from_name(content_name, content_is_capturing),
            begin=begin_id,
            begin_captures=self._compile_captures(begin_captures, stack),
            end=end_id,
            end_has_backrefs=end_backrefs,
            end_captures=self._compile_captures(raw.end_captures or raw.captures, stack),
            apply_end_pattern_last=raw.apply_end_pattern_last,
            patterns=patterns,
            repository_stack=stack,
        )

    def _compile_group_rule(
        self, raw: RawRule, global_id: GlobalRuleRef, stack: RepositoryStack
    ) -> Rule:
        if raw.repository:
            stack = stack.push(self._compile_repository(raw.repository, stack))

        name = raw.name
        if name is not None and not raw.patterns and raw.include is None:
            # A rule that only assigns scopes, such as a capture.
            is_capturing = has_captures(name)
            return MatchRule(
                id=global_id,
                name=name,
                name_is_capturing=is_capturing,
                scopes=_scopes_from_name(name, is_capturing),
                regex_id=None,
                captures=[],
                repository_stack=stack,
            )

        # An include is only used when there are no patterns.
        patterns = raw.patterns
        if not patterns and raw.include is not None:
            patterns = [RawRule(include=raw.include)]
        if not patterns:
            return NoopRule()

        compiled = self._compile_patterns(global_id.rule, patterns, stack)
        name_is_capturing = has_captures(name)
        content_is_capturing = has_captures(raw.content_name)
        return IncludeOnlyRule(
            id=global_id,
            name=name,
            name_is_capturing=name_is_capturing,
            scopes=_scopes_from_name(name, name_is_capturing),
            content_name=raw.content_name,
            content_name_is_capturing=content_is_capturing,
            content_scopes=_scopes_from_name(raw.content_name, content_is_capturing),
            repository_stack=stack,
            patterns=compiled,
        )

    def _compile_regex(self, pattern: str) -> tuple[int, bool]:
        regex_id = len(self.regexes)
        self.regexes.append(Regex(pattern))
        return regex_id, has_backreferences(pattern)

    def _compile_repository(
        self, raw_repository: Mapping[str, RawRule], stack: RepositoryStack
    ) -> int:
        repo_id = len(self.repositories)
        self.repositories.append(Repository())
        inner = stack.push(repo_id)
        rules = {
            name: self._compile_rule(raw_repository[name], inner)
            for name in sorted(raw_repository)
        }
        self.repositories[repo_id] = Repository(rules)
        return repo_id

    def _compile_captures(
        self, captures: Mapping[int, RawRule], stack: RepositoryStack
    ) -> list[GlobalRuleRef | None]:
        if not captures:
            return []
        out: list[GlobalRuleRef | None] = [None] * (max(captures) + 1)
        for key in sorted(captures):
            out[key] = self._global(self._compile_rule(captures[key], stack))
        return out

    def _compile_patterns(
        self, rule_id: int, raw_rules: Sequence[RawRule], stack: RepositoryStack
    ) -> list[GlobalRuleRef]:
        out: list[GlobalRuleRef] = []
        for index, raw in enumerate(raw_rules):
            reference = raw.include
            if reference is None:
                out.append(self._global(self._compile_rule(raw, stack)))
                continue
            # Everything else in a rule with an include is ignored.
            if reference.kind is ReferenceKind.BASE:
                out.append(BASE_GLOBAL_RULE_REF)
            elif reference.kind is ReferenceKind.SELF:
                out.append(self._global(ROOT_RULE_ID))
            elif reference.kind is ReferenceKind.LOCAL:
                out.append(self._global(TEMP_RULE_ID))
                self._references.append(_RefToReplace(rule_id, index, reference))
            else:
                out.append(PRE_CROSS_LINKING_RULE_REF)
                self._references.append(_RefToReplace(rule_id, index, reference))
        return out

    def _resolve_local_references(self) -> None:
        local = [r for r in self._references if r.reference.is_local()]
        self._references = [r for r in self._references if not r.reference.is_local()]

        for rep in local:
            rule = self.rules[rep.rule_id]
            target = next(
                (
                    rule_id
                    for repo_id in reversed(tuple(rule.repository_stack))
                    if (rule_id := self.repositories[repo_id].get(rep.reference.rule))
                    is not None
                ),
                None,
            )
            rule.replace_pattern(
                rep.index,
                self._global(target) if target is not None else NO_OP_GLOBAL_RULE_REF,
            )

        self.remove_empty_rules()

    def resolve_external_references(
        self,
        grammar_mapping: Mapping[str, int],
        grammars: Sequence[CompiledGrammar],
    ) -> None:
        """Point includes of other grammars at their rules, once all are compiled."""
        references, self._references = self._references, []

        for rep in references:
            rule = self.rules[rep.rule_id]
            grammar_name = rep.reference.scope
            repo_name = (
                rep.reference.rule
                if rep.reference.kind is ReferenceKind.OTHER_SPECIFIC
                else None
            )
            grammar_id = grammar_mapping.get(grammar_name)
            if grammar_id is None or not 0 <= grammar_id < len(grammars):
                rule.replace_pattern(rep.index, NO_OP_GLOBAL_RULE_REF)
                continue
            if repo_name is None:
                rule.replace_pattern(
                    rep.index, GlobalRuleRef(grammar=grammar_id, rule=ROOT_RULE_ID)
                )
                continue
            target = next(
                (
                    rule_id
                    for repo in grammars[grammar_id].repositories
                    if (rule_id := repo.get(repo_name)) is not None
                ),
                None,
            )
            rule.replace_pattern(
                rep.index,
                GlobalRuleRef(grammar=grammar_id, rule=target)
                if target is not None
                else NO_OP_GLOBAL_RULE_REF,
            )

        self.remove_empty_rules()

    def remove_empty_rules(self) -> None:
        """Turn rules whose patterns can never match into no-ops, until none remain."""
        while True:
            empty: list[int] = []
            for i, rule in enumerate(self.rules):
                if isinstance(rule, (NoopRule, MatchRule)):
                    continue
                if rule.has_only_missing_patterns():
                    empty.append(i)
                    continue
                patterns = rule.pattern_refs()
                if not patterns:
                    continue
                num_noop = 0
                for ref in patterns:
                    if ref.rule == TEMP_RULE_ID or ref.grammar != self.id:
                        break
                    if isinstance(self.rules[ref.rule], NoopRule):
                        num_noop += 1
                if num_noop == len(patterns):
                    empty.append(i)

            for i in empty:
                self.rules[i] = NoopRule()
            if not empty:
                break