# giallo

Building blocks for a code highlighter driven by TextMate grammars, following
the rules VSCode's TextMate engine applies when it loads grammars.

## What is in the package

- `giallo.raw` reads TextMate JSON grammars: `RawGrammar.load_from_file`,
  `RawGrammar.from_json` and `RawGrammar.from_dict` build a `RawGrammar` of
  `RawRule` objects. `include` values become a `Reference` (`Reference.parse`),
  whose `kind` is a `ReferenceKind` (`SELF`, `BASE`, `LOCAL`, `OTHER_COMPLETE`,
  `OTHER_SPECIFIC`). Captures may be an object or an array (`parse_captures`);
  repository entries may be one rule or a list of rules (`parse_repository`), and
  empty rules are dropped from their patterns. `applyEndPatternLast` accepts a
  boolean or `0`/`1`.
- `giallo.grammar` compiles a `RawGrammar` into a `CompiledGrammar` with flat
  lists of rules, regexes and `Repository` blocks
  (`CompiledGrammar.from_raw_grammar(raw, grammar_id)`). Includes of the
  grammar's own repositories are resolved during compilation; includes of other
  grammars are resolved later with
  `resolve_external_references(grammar_mapping, grammars)`. Rules that can never
  match are turned into no-ops by `remove_empty_rules`.
- `giallo.rules` holds the compiled rule kinds (`MatchRule`, `IncludeOnlyRule`,
  `BeginEndRule`, `BeginWhileRule`, `NoopRule`, all subclasses of `Rule`),
  `GlobalRuleRef`, `RepositoryStack` (at most 8 entries) and scope name helpers:
  `has_captures`, `has_backreferences`, `replace_captures` (fills `$1` and
  `${1:/downcase}` / `${1:/upcase}` from capture spans) and `split_scopes`.
- `giallo.injections` parses injection selectors such as
  `L:text.html -comment` into `CompiledInjectionMatcher` objects
  (`parse_injection_selector`) built from `ScopeMatcher`, `AndMatcher`,
  `OrMatcher` and `NotMatcher`. Each has a `precedence()`,
  `InjectionPrecedence.LEFT` or `InjectionPrecedence.RIGHT` (the default).
- `giallo.pattern_set` searches several patterns at once: `PatternSet.find_at`
  returns the `PatternSetMatch` that starts earliest, the first pattern winning
  ties, with the span of every group. Patterns can be replaced in place with
  `update`, `update_front` and `update_last`.
- `giallo.patterns` has the regex helpers: `Regex` (compiled on first use),
  `escape_regexp_characters`, `resolve_backreferences` and
  `transform_z_anchor`. Patterns are compiled with the `regex` library in
  multiline mode.
- `giallo.markdown_fence` parses code fence info strings such as
  `rust,linenos,linenostart=10,hl_lines=1-3 5,hide_lines=2,name=test` into a
  `ParsedFence` with a `FenceOptions`; `parse_line_range` parses `n` or `a-b`
  into an inclusive line range.

Errors raised by the package derive from `giallo.errors.GialloError`: for
example `GialloIOError` when a file cannot be read, `JsonError` for malformed
grammar documents, and `TokenizeRegexError` when a pattern does not compile.

## Installation

```
pip install giallo
```

## Examples

Parse a code fence:

```python
from giallo.markdown_fence import parse_markdown_fence

fence = parse_markdown_fence("rust,linenos,linenostart=10,hl_lines=1-3 5,name=test")
fence.lang                        # "rust"
fence.options.show_line_numbers   # True
fence.options.line_number_start   # 10
fence.options.highlight_lines     # [range(1, 4), range(5, 6)]
fence.rest["name"]                # "test"
```

Match an injection selector against a scope stack:

```python
from giallo.injections import parse_injection_selector

matchers = parse_injection_selector("L:text.html -comment")
any(m.matches(["text.html"]) for m in matchers)                   # True
any(m.matches(["text.html", "comment.block"]) for m in matchers)  # False
```

Load and compile a grammar:

```python
from giallo.raw import RawGrammar
from giallo.grammar import CompiledGrammar

raw = RawGrammar.load_from_file("javascript.json")
grammar = CompiledGrammar.from_raw_grammar(raw, 0)
grammar.rules[0]   # the root rule
```

Search a set of patterns:

```python
from giallo.pattern_set import PatternSet
from giallo.rules import GlobalRuleRef

patterns = PatternSet([
    (GlobalRuleRef(grammar=0, rule=1), r"\d+"),
    (GlobalRuleRef(grammar=0, rule=2), r"[a-z]+"),
])
found = patterns.find_at("let x = 42", 0)
found.rule_ref, found.start, found.end   # (GlobalRuleRef(grammar=0, rule=2), 0, 3)
```

## What the package does not do

The package loads and compiles grammars and provides the matching pieces, but
it does not tokenize or highlight source text. There is no grammar registry,
no theme loading or styling, no HTML or terminal output and no command-line
tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```