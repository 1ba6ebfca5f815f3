# mesdoc

A small engine for parsing CSS selector strings. Selector rules are written in
a short template language and registered at run time. `Selector.parse` then
splits a selector string into groups, pieces and combinators, and builds a
`Matcher` for every piece from the rule that recognised it.

## Installation

```
pip install mesdoc
```

To run the tests:

```
pip install "mesdoc[test]"
pytest
```

## Modules

- `mesdoc.utils`: character and number helpers. `get_class_list` and
  `class_list_to_string` split and join class attribute values.
  `is_char_available_in_key` and `is_non_character` classify characters.
  `is_equal_chars_ignore_case` and `contains_chars` compare character
  sequences. `retain_by_index` deletes items at ascending positions.
  `divide_isize` divides integers and rounds as a `RoundType` asks
  (`FLOOR`, `CEIL` or `ROUND`).
- `mesdoc.node`: `NodeType`, the DOM node type numbers, with `is_element()`.
- `mesdoc.pattern`: the matchers that rule templates are built from.
  `Literal`, `Identity`, `AttrKey`, `Spaces`, `Nth`, `RegExp` and
  `NestedSelector` each match at the start of a string and return a
  `Matched`, or `None`. `add_pattern` and `to_pattern` manage the registry of
  pattern names; `identity`, `spaces`, `attr_key`, `nth`, `regexp` and
  `selector` are registered on import. `exec_patterns` runs a list of
  patterns in order. `Nth.get_allowed_indexes` resolves an `an+b` expression
  into zero-based positions. Errors raise `PatternError`.
- `mesdoc.rule`: `Rule`, `Matcher`, `RuleItem` and the rule registry
  (`add_rules`, `registered_rules`, `clear_rules`). `Rule.get_queues` parses a
  template: `{name}` inserts a registered pattern, `{name#raw#}` passes raw
  parameters (as in `{regexp#\d+#}`), `{{` and `}}` stand for literal braces,
  and other text is matched literally. Malformed templates raise
  `RuleSyntaxError`. `Matcher.apply` filters a sequence of elements with the
  matcher's handles.
- `mesdoc.selector`: `Selector.parse` turns a selector string into a list of
  `QueryProcess` steps (one per comma-separated group) joined by `Combinator`
  values, and raises `InvalidSelectorError` for input it cannot read.
  `Combinator.parse` reads `""`, `">"`, `"~"` and `"+"`;
  `Combinator.reverse` gives the opposite direction.
  `Selector.head_combinator`, `Selector.make_comb_all`,
  `Selector.from_segment` and `Selector.parse_until` help build and adjust
  selectors.

## Examples

Resolving an `an+b` expression:

```python
from mesdoc.pattern import Nth

# Zero-based positions that "2n+3" selects among 9 items.
print(Nth.get_allowed_indexes("2", "3", 9))   # [2, 4, 6, 8]
```

Registering rules and parsing a selector:

```python
from mesdoc.rule import Matcher, Rule, RuleItem, add_rules
from mesdoc.selector import Combinator, Selector

def tag_rule(data):
    name = data[0].chars
    return Matcher(one_handle=lambda element, _: element == name)

add_rules([
    RuleItem(name="name", context="{identity}", rule=Rule(handle=tag_rule, priority=1)),
])

selector = Selector.parse("div > p")
query = selector.process[0].query
print(len(query))          # 2
print(query[1][0][1])      # Combinator.CHILDREN
print(query[1][0][0].apply(["p", "div", "p"]))   # ['p', 'p']
```

`Selector.make_comb_all` and `Selector.head_combinator` look for a registered
rule named `"all"`; register one (for example with the template `"*"`) before
using them.

## What this package does not do

- It registers no selector rules of its own. Class, id, tag name, attribute
  and pseudo-class selectors only work once rules for them have been added
  with `add_rules`; until then `Selector.parse` raises `InvalidSelectorError`
  for any non-empty selector.
- It has no HTML parser and no document or element model. Matchers receive
  whatever element objects their handles are written for, and running a
  parsed selector against a document is left to the code that uses it.