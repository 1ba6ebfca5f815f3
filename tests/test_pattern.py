from typing import Optional

import pytest

from mesdoc.pattern import (
    AttrKey,
    Identity,
    Literal,
    Matched,
    NestedSelector,
    Nth,
    Pattern,
    PatternError,
    RegExp,
    Spaces,
    add_pattern,
    check_params_return,
    exec_patterns,
    to_pattern,
)


class _TestPattern(Pattern):
    def matched(self, chars: str) -> Optional[Matched]:
        return None

    def __repr__(self) -> str:
        return "TestPattern"


@pytest.mark.parametrize(
    "n, index, total, expected",
    [
        ("-2", "3", 9, [0, 2]),
        ("2", "3", 9, [2, 4, 6, 8]),
        (None, "3", 9, [2]),
        (None, "3", 2, []),
        ("0", "3", 9, [2]),
        ("0", "-3", 9, []),
        ("1", "6", 5, []),
        ("2", None, 9, [1, 3, 5, 7]),
        ("-2", None, 9, []),
        ("-4", "3", 2, []),
    ],
)
def test_allowed_indexes(n, index, total, expected):
    assert Nth.get_allowed_indexes(n, index, total) == expected


def test_allowed_indexes_requires_index_without_n():
    with pytest.raises(PatternError):
        Nth.get_allowed_indexes(None, None, 3)


def test_check_params_return():
    with pytest.raises(PatternError):
        check_params_return(["a"], lambda: Literal("c"))
    with pytest.raises(PatternError):
        check_params_return(["", "a"], lambda: Literal("c"))
    assert check_params_return(["", ""], lambda: Literal("c")) == Literal("c")


def test_new_pattern():
    pat = _TestPattern()
    assert pat.is_nested() is False
    assert pat.matched("a") is None
    assert "Pattern" in repr(pat)
    with pytest.raises(PatternError):
        _TestPattern.from_params("a", "")
    add_pattern("test_new_pattern", _TestPattern.from_params)
    with pytest.raises(PatternError):
        add_pattern("test_new_pattern", _TestPattern.from_params)


def test_literal_from_params_fails():
    with pytest.raises(PatternError):
        Literal.from_params("", "")


def test_pattern_matched():
    nth = Nth()
    assert nth.matched("-a") is None
    assert nth.matched("-1") is not None
    part = nth.matched("-2n+a")
    assert part is not None
    assert part.chars == "-2n"
    attr_key = AttrKey()
    assert attr_key.matched(",") is None
    assert attr_key.matched(" ") is None
    assert attr_key.matched("\u0000") is None
    assert "abc" in repr(RegExp("abc"))


@pytest.mark.parametrize(
    "text, data, chars",
    [
        ("2n+1", {"n": "2", "index": "1"}, "2n+1"),
        ("-n + 3)", {"n": "-1", "index": "3"}, "-n + 3"),
        ("3)", {"index": "3"}, "3"),
        ("-4", {"index": "-4"}, "-4"),
        ("even", {"n": "2", "index": "0"}, "even"),
        ("odd)", {"n": "2", "index": "1"}, "odd"),
    ],
)
def test_nth_data(text, data, chars):
    found = Nth().matched(text)
    assert found.name == "nth"
    assert found.data == data
    assert found.chars == chars


def test_identity_with_escape():
    found = Identity().matched("a\\.b c")
    assert found.chars == "a.b"
    assert found.ignore_chars == 1
    assert found.consumed == 4


def test_identity_rejects_leading_digit():
    assert Identity().matched("1abc") is None
    assert Identity().matched("") is None


def test_spaces_matches_empty_and_whitespace():
    assert Spaces().matched("abc").chars == ""
    assert Spaces().matched(" \t\nx").chars == " \t\n"


def test_attr_key_stops_at_equals():
    found = AttrKey().matched("data-id=1")
    assert found.chars == "data-id"
    assert found.name == "attr_key"


def test_regexp_groups():
    found = RegExp(r"(a)(x)?(b+)").matched("abbbc")
    assert found.chars == "abbb"
    assert found.data == {"1": "a", "3": "bbb"}
    assert RegExp("b").matched("ab") is None


def test_regexp_invalid():
    with pytest.raises(PatternError):
        RegExp.get_rule("(")


def test_nested_selector():
    nested = NestedSelector()
    assert nested.is_nested() is True
    assert nested.matched("div") is None


def test_to_pattern():
    assert to_pattern("regexp", "", "a+") == RegExp("a+")
    assert to_pattern("identity", "", "") == Identity()
    assert to_pattern("selector", "", "").is_nested() is True
    with pytest.raises(PatternError):
        to_pattern("identity", "x", "")
    with pytest.raises(PatternError):
        to_pattern("no-such-pattern", "", "")


def test_exec_patterns():
    queues = [Literal("."), Identity()]
    result, length, count, complete = exec_patterns(queues, ".item")
    assert [m.chars for m in result] == [".", "item"]
    assert (length, count, complete) == (5, 2, True)

    result, length, count, complete = exec_patterns(queues, ".item x")
    assert (length, count, complete) == (5, 2, False)

    result, length, count, complete = exec_patterns(queues, "#id")
    assert (result, length, count, complete) == ([], 0, 0, False)