import pytest

from mesdoc.pattern import (
    AttrKey,
    Identity,
    Literal,
    NestedSelector,
    Nth,
    RegExp,
    Spaces,
)
from mesdoc.rule import (
    Matcher,
    Rule,
    RuleItem,
    RuleSyntaxError,
    add_rules,
    clear_rules,
    registered_rules,
)


@pytest.fixture
def empty_registry():
    clear_rules()
    yield
    clear_rules()


def _default_factory(_data):
    return Matcher()


def test_debug_representations():
    matcher = Matcher()
    assert "Matcher" in repr(matcher)
    rule = Rule(handle=_default_factory, priority=1)
    assert "Rule" in repr(rule)


def test_matcher_repr_reports_handles():
    matcher = Matcher(one_handle=lambda ele, _: True)
    assert "one_handle=True" in repr(matcher)
    assert "all_handle=False" in repr(matcher)


def test_rule_escape_start():
    assert Rule.get_queues("{{nth") == [Literal("{nth")]


def test_rule_escape_end():
    assert Rule.get_queues("nth}}") == [Literal("nth}")]


def test_rule_escape_end_repeat():
    with pytest.raises(RuleSyntaxError):
        Rule.get_queues("nth}}}")


def test_rule_escape_both():
    assert Rule.get_queues("{{nth}}") == [Literal("{nth}")]


def test_rule_escape_no_start():
    with pytest.raises(RuleSyntaxError):
        Rule.get_queues("{{nth}")


@pytest.mark.parametrize("content", ["{nth", "{nth#", "{nth#a#", "{nth#a##}"])
def test_rule_not_end(content):
    with pytest.raises(RuleSyntaxError):
        Rule.get_queues(content)


def test_wrong_escape_no_end_at_end():
    with pytest.raises(RuleSyntaxError):
        Rule.get_queues("{nth}{")


@pytest.mark.parametrize(
    "content",
    ["{abc!#abc}", "{abc!#abc#}", "{abc!#a#bc#}", "{abc!##a#bc##}"],
)
def test_rule_params_errors(content):
    with pytest.raises(RuleSyntaxError):
        Rule.get_queues(content)


def test_hash_without_raw_params():
    with pytest.raises(RuleSyntaxError):
        Rule.get_queues("{nth#}")


def test_single_pattern():
    assert Rule.get_queues("{nth}") == [Nth()]


def test_literal_and_patterns():
    queues = Rule.get_queues("[{spaces}{attr_key}{spaces}]")
    assert queues == [Literal("["), Spaces(), AttrKey(), Spaces(), Literal("]")]


def test_regexp_raw_params():
    queues = Rule.get_queues(r"{regexp#(\s*[>,~+]\s*|\s+)#}")
    assert queues == [RegExp(r"(\s*[>,~+]\s*|\s+)")]


def test_regexp_raw_params_with_double_hash():
    queues = Rule.get_queues("{regexp##a#b##}")
    assert queues == [RegExp("a#b")]


def test_nested_selector_template():
    queues = Rule.get_queues(":not({spaces}{selector}{spaces})")
    assert queues == [Literal(":not("), Spaces(), NestedSelector(), Spaces(), Literal(")")]
    assert queues[2].is_nested()


def test_exec_matches_id_rule():
    rule = Rule.add("#{identity}", Rule(handle=_default_factory))
    assert rule.queues == [Literal("#"), Identity()]
    result = rule.exec("#main .x")
    assert result is not None
    matched, length, count = result
    assert length == 5
    assert count == 2
    assert matched[1].chars == "main"


def test_exec_with_escaped_identity():
    rule = Rule.add("#{identity}", Rule(handle=_default_factory))
    matched, length, count = rule.exec("#a\\.b")
    assert matched[1].chars == "a.b"
    assert length == 5
    assert count == 2


def test_exec_no_match_returns_none():
    rule = Rule.add("#{identity}", Rule(handle=_default_factory))
    assert rule.exec("div") is None


def test_exec_queues_partial_match():
    queues = Rule.get_queues(":nth-child({spaces}{nth}{spaces})")
    matched, length, count = Rule.exec_queues(queues, ":nth-child(2n+1)")
    assert count == len(queues)
    assert length == len(":nth-child(2n+1)")
    assert matched[2].data == {"n": "2", "index": "1"}


def test_make_sets_priority_and_cache():
    seen = []

    def factory(data):
        seen.append([m.chars for m in data])
        return Matcher(one_handle=lambda ele, _: True)

    rule = Rule.add("#{identity}", Rule(handle=factory, priority=10000, in_cache=True))
    matched, _, _ = rule.exec("#box")
    matcher = rule.make(matched)
    assert matcher.priority == 10000
    assert matcher.in_cache is True
    assert seen == [["#", "box"]]


def test_matcher_apply_one_handle():
    matcher = Matcher(one_handle=lambda ele, _: ele % 2 == 0)
    assert matcher.apply([1, 2, 3, 4]) == [2, 4]


def test_matcher_apply_all_handle_receives_cache_flag():
    calls = []

    def all_handle(elements, use_cache):
        calls.append(use_cache)
        return list(reversed(elements))

    matcher = Matcher(all_handle=all_handle, one_handle=lambda ele, _: False)
    assert matcher.apply([1, 2, 3], True) == [3, 2, 1]
    assert calls == [True]


def test_matcher_apply_without_handles():
    with pytest.raises(ValueError):
        Matcher().apply([1])


def test_add_and_clear_rules(empty_registry):
    add_rules(
        [
            RuleItem(name="id", context="#{identity}", rule=Rule(handle=_default_factory)),
            RuleItem(name="all", context="*", rule=Rule(handle=_default_factory)),
        ]
    )
    rules = registered_rules()
    assert [name for name, _ in rules] == ["id", "all"]
    assert rules[1][1].queues == [Literal("*")]
    clear_rules()
    assert registered_rules() == []


def test_add_rules_bad_template_registers_nothing(empty_registry):
    with pytest.raises(RuleSyntaxError):
        add_rules(
            [
                RuleItem(name="ok", context="*", rule=Rule(handle=_default_factory)),
                RuleItem(name="bad", context="{nth", rule=Rule(handle=_default_factory)),
            ]
        )
    assert registered_rules() == []