import pytest

from giallo.errors import TokenizeRegexError
from giallo.pattern_set import PatternSet, PatternSetMatch
from giallo.rules import GlobalRuleRef


def ref(rule):
    return GlobalRuleRef(grammar=0, rule=rule)


def make(*patterns):
    return PatternSet([(ref(i), p) for i, p in enumerate(patterns)])


def test_empty_set_finds_nothing():
    assert PatternSet([]).find_at("anything", 0) is None


def test_no_match_returns_none():
    assert make("x", "y").find_at("abc", 0) is None


def test_leftmost_match_wins():
    found = make("b", "a").find_at("ab", 0)
    assert found == PatternSetMatch(ref(1), 0, 1, [(0, 1)])


def test_tie_goes_to_first_pattern():
    found = make("a", "ab").find_at("ab", 0)
    assert found.rule_ref == ref(0)
    assert (found.start, found.end) == (0, 1)


def test_search_starts_at_position():
    found = make("a").find_at("aXa", 1)
    assert (found.start, found.end) == (2, 3)


def test_lookbehind_sees_text_before_position():
    found = make("(?<=x)y").find_at("xy", 1)
    assert (found.start, found.end) == (1, 2)


def test_caret_does_not_match_at_search_position():
    assert make("^a").find_at("ba", 1) is None


def test_caret_matches_after_newline():
    found = make("^b").find_at("a\nb", 0)
    assert (found.start, found.end) == (2, 3)


def test_dollar_matches_before_newline():
    found = make("a$").find_at("a\nb", 0)
    assert (found.start, found.end) == (0, 1)


def test_g_anchor_matches_at_search_position():
    found = make(r"\Ga").find_at("ba", 1)
    assert (found.start, found.end) == (1, 2)


def test_unmatched_group_is_none():
    found = make("(a)(b)?").find_at("a", 0)
    assert found.capture_pos == [(0, 1), (0, 1), None]


def test_update_reports_change():
    ps = make("a", "b")
    assert ps.update(0, "a") is False
    assert ps.update(0, "c") is True
    assert ps.patterns == ("c", "b")


def test_update_after_compile_changes_matches():
    ps = make("a", "b")
    assert ps.find_at("ab", 0).rule_ref == ref(0)
    assert ps.update_front("z") is True
    assert ps.find_at("ab", 0).rule_ref == ref(1)


def test_update_last_replaces_last_pattern():
    ps = make("a", "b")
    assert ps.update_last("c") is True
    assert ps.patterns == ("a", "c")
    assert ps.update_last("c") is False


def test_invalid_pattern_raises_on_search():
    ps = make("a", "(")
    with pytest.raises(TokenizeRegexError):
        ps.find_at("a", 0)


def test_invalid_update_after_compile_raises():
    ps = make("a")
    ps.find_at("a", 0)
    with pytest.raises(TokenizeRegexError):
        ps.update(0, "[")
    assert ps.patterns == ("a",)


def test_equality_uses_patterns_and_rules():
    assert make("a", "b") == make("a", "b")
    assert make("a", "b") != make("a", "c")
    other = PatternSet([(ref(5), "a"), (ref(1), "b")])
    assert make("a", "b") != other


def test_repr_lists_rules_and_patterns():
    assert repr(make("a", "b")) == "  - RuleId(0): a\n  - RuleId(1): b"