"""Parsing of selector strings into query processes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Sequence

from mesdoc.pattern import Matched, Pattern, exec_patterns
from mesdoc.rule import Matcher, Rule, registered_rules

NAME_SELECTOR_ALL = "all"

_SPLITTER: list[Pattern] = Rule.get_queues(r"{regexp#(\s*[>,~+]\s*|\s+)#}")


class InvalidSelectorError(ValueError):
    """Raised when a selector string cannot be parsed."""

    def __init__(self, context: str, reason: str) -> None:
        super().__init__(f"Invalid selector '{context}': {reason}")
        self.context = context
        self.reason = reason


class Combinator(Enum):
    """How one selector piece relates to the one before it."""

    CHILDREN_ALL = auto()
    CHILDREN = auto()
    PARENT = auto()
    PARENT_ALL = auto()
    NEXT_ALL = auto()
    NEXT = auto()
    PREV_ALL = auto()
    PREV = auto()
    SIBLINGS = auto()
    CHAIN = auto()

    @classmethod
    def parse(cls, text: str) -> "Combinator":
        """Return the combinator written as ``text``."""
        try:
            return _COMBINATOR_TEXT[text]
        except KeyError:
            raise ValueError(f"Not supported combinator string '{text}'") from None

    def reverse(self) -> "Combinator":
        """Return the combinator that walks the opposite way."""
        try:
            return _COMBINATOR_REVERSE[self]
        except KeyError:
            raise ValueError(f"Not supported combinator reverse for '{self.name}'") from None


_COMBINATOR_TEXT = {
    "": Combinator.CHILDREN_ALL,
    ">": Combinator.CHILDREN,
    "~": Combinator.NEXT_ALL,
    "+": Combinator.NEXT,
}

_COMBINATOR_REVERSE = {
    Combinator.CHILDREN_ALL: Combinator.PARENT_ALL,
    Combinator.CHILDREN: Combinator.PARENT,
    Combinator.NEXT_ALL: Combinator.PREV_ALL,
    Combinator.NEXT: Combinator.PREV,
    Combinator.CHAIN: Combinator.CHAIN,
}

SelectorSegment = tuple[Matcher, Combinator]
SelectorGroupsItem = list[list[SelectorSegment]]


class _PrevIn(Enum):
    BEGIN = auto()
    SPLITTER = auto()
    SELECTOR = auto()


@dataclass
class QueryProcess:
    """One comma-separated part of a selector, ready to query with."""

    should_in: Optional[SelectorGroupsItem] = None
    query: SelectorGroupsItem = field(default_factory=list)


@dataclass
class Selector:
    """A parsed selector: one query process per comma-separated group."""

    process: list[QueryProcess] = field(default_factory=list)

    @classmethod
    def parse(cls, context: str, use_lookup: bool = True) -> "Selector":
        """Parse ``context`` with the registered rules."""
        selector = cls()
        if not context:
            return selector
        total = len(context)
        index = 0
        comb = Combinator.CHILDREN_ALL
        prev_in = _PrevIn.BEGIN
        last_in = prev_in
        groups: list[SelectorGroupsItem] = [[]]
        rules = registered_rules()
        while index < total:
            next_chars = context[index:]
            split = Rule.exec_queues(_SPLITTER, next_chars)
            if split is not None:
                matched, length, _ = split
                op = matched[0].chars.strip()
                if prev_in is _PrevIn.SPLITTER:
                    raise InvalidSelectorError(
                        context,
                        f"Wrong combinator '{matched[0].chars}' at index {index}",
                    )
                index += length
                if op == ",":
                    if prev_in is not _PrevIn.SELECTOR:
                        raise InvalidSelectorError(
                            context, f"Wrong empty selector before ',' at index {index}"
                        )
                    groups.append([])
                    comb = Combinator.CHILDREN_ALL
                else:
                    comb = Combinator.parse(op)
                if op:
                    prev_in = _PrevIn.SPLITTER
                    last_in = prev_in
                else:
                    last_in = prev_in
                    prev_in = _PrevIn.SPLITTER
                continue
            is_new_item = True
            if prev_in is _PrevIn.SELECTOR:
                comb = Combinator.CHAIN
                is_new_item = False
            else:
                prev_in = _PrevIn.SELECTOR
                last_in = prev_in
            found = False
            for _, rule in rules:
                result = rule.exec(next_chars)
                if result is None:
                    continue
                matched, length, queue_num = result
                index += length
                queues = rule.queues
                if queue_num == len(queues):
                    _add_group_item(groups, (rule.make(matched), comb), is_new_item)
                    found = True
                elif queues[queue_num].is_nested():
                    nested_len, nested_matched = cls.parse_until(
                        context[index:], queues[queue_num + 1:], rules, _SPLITTER, 0
                    )
                    index += nested_len
                    matched.extend(nested_matched)
                    _add_group_item(groups, (rule.make(matched), comb), is_new_item)
                    found = True
                break
            if not found:
                raise InvalidSelectorError(
                    context, f"Unrecognized selector '{next_chars}' at index {index}"
                )
        if last_in is not _PrevIn.SELECTOR:
            raise InvalidSelectorError(context, "Wrong selector rule at last")
        selector.process = _optimize(groups, use_lookup)
        return selector

    def head_combinator(self, comb: Combinator) -> None:
        """Set the combinator that links the selector to its starting elements."""
        for process in self.process:
            items = process.should_in if process.should_in is not None else process.query
            if not items:
                continue
            first = items[0]
            matcher, first_comb = first[0]
            if first_comb is Combinator.CHILDREN_ALL:
                first[0] = (matcher, comb)
            else:
                items.insert(0, [Selector.make_comb_all(comb)])

    @staticmethod
    def make_comb_all(comb: Combinator) -> SelectorSegment:
        """Return a ``*`` segment joined by ``comb``."""
        for name, rule in registered_rules():
            if name == NAME_SELECTOR_ALL:
                return rule.make([]), comb
        raise LookupError("The all rule must be registered")

    @classmethod
    def from_segment(cls, segment: SelectorSegment) -> "Selector":
        """Build a selector made of the single ``segment``."""
        return cls(process=[QueryProcess(query=[[segment]])])

    @staticmethod
    def parse_until(
        chars: str,
        until: Sequence[Pattern],
        rules: Optional[Sequence[tuple[str, Rule]]] = None,
        splitter: Optional[Sequence[Pattern]] = None,
        level: int = 0,
    ) -> tuple[int, list[Matched]]:
        """Read a nested selector from ``chars`` and then the ``until`` patterns.

        Returns the characters consumed and, at the top level, the nested
        selector as a match followed by the matches of ``until``.
        """
        if rules is None:
            rules = registered_rules()
        if splitter is None:
            splitter = _SPLITTER
        index = 0
        total = len(chars)
        matched: list[Matched] = []
        while index < total:
            next_chars = chars[index:]
            split = Rule.exec_queues(splitter, next_chars)
            if split is not None:
                index += split[1]
                continue
            found = False
            for _, rule in rules:
                result = rule.exec(next_chars)
                if result is None:
                    continue
                _, length, queue_num = result
                index += length
                if queue_num == len(rule.queues):
                    found = True
                else:
                    nested_len, _ = Selector.parse_until(
                        chars[index:],
                        rule.queues[queue_num + 1:],
                        rules,
                        splitter,
                        level + 1,
                    )
                    index += nested_len
                break
            if not found:
                if level == 0:
                    matched.append(Matched(chars=chars[:index], name="selector"))
                if until:
                    until_matched, count, queue_num, _ = exec_patterns(until, chars[index:])
                    if queue_num != len(until):
                        raise InvalidSelectorError(
                            chars[index:], f"Nested selector parse error at index {index}"
                        )
                    index += count
                    if level == 0:
                        matched.extend(until_matched)
                break
        return index, matched


def _add_group_item(
    groups: list[SelectorGroupsItem], item: SelectorSegment, is_new: bool
) -> None:
    last_group = groups[-1]
    if is_new:
        last_group.append([item])
    elif last_group:
        last_group[-1].append(item)


def _optimize(groups: list[SelectorGroupsItem], use_lookup: bool) -> list[QueryProcess]:
    process: list[QueryProcess] = []
    for group in groups:
        max_index = 0
        max_priority = 0
        for index, segments in enumerate(group):
            if len(segments) > 1:
                chain_comb = segments[0][1]
                segments.sort(key=lambda seg: seg[0].priority, reverse=True)
                if segments[0][1] is not chain_comb:
                    segments[0] = (segments[0][0], chain_comb)
                    segments[1:] = [(m, Combinator.CHAIN) for m, _ in segments[1:]]
            if use_lookup:
                total_priority = sum(m.priority for m, _ in segments)
                if total_priority > max_priority:
                    max_priority = total_priority
                    max_index = index
        if use_lookup and max_index > 0 and group[0][0][1] in (
            Combinator.CHILDREN,
            Combinator.CHILDREN_ALL,
        ):
            process.append(QueryProcess(should_in=group[:max_index], query=group[max_index:]))
            continue
        process.append(QueryProcess(should_in=None, query=group))
    return process