"""Selector rules: rule templates, matchers and the rule registry."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

from mesdoc.pattern import (
    Literal,
    Matched,
    Pattern,
    PatternError,
    exec_patterns,
    to_pattern,
)

MatchAllHandle = Callable[[Sequence[Any], Optional[bool]], list]
MatchOneHandle = Callable[[Any, Optional[bool]], bool]
MatchSpecifiedHandle = Callable[[Any, Callable[[Any, bool, bool], None]], None]
MatcherFactory = Callable[[list[Matched]], "Matcher"]

_ANCHOR_CHAR = "\0"
_START_CHAR = "{"
_END_CHAR = "}"
_ASCII_WHITESPACE = frozenset(" \t\n\x0c\r")


class RuleSyntaxError(ValueError):
    """Raised when a rule template cannot be parsed into patterns."""


@dataclass
class Matcher:
    """The handles that test elements against one parsed selector piece."""

    all_handle: Optional[MatchAllHandle] = None
    one_handle: Optional[MatchOneHandle] = None
    specified_handle: Optional[MatchSpecifiedHandle] = None
    priority: int = 0
    in_cache: bool = False

    def __repr__(self) -> str:
        return (
            f"Matcher(all_handle={self.all_handle is not None}, "
            f"one_handle={self.one_handle is not None}, "
            f"specified_handle={self.specified_handle is not None})"
        )

    def apply(self, elements: Sequence[Any], use_cache: Optional[bool] = None) -> list:
        """Return the elements that this matcher selects."""
        if self.all_handle is not None:
            return self.all_handle(elements, use_cache)
        if self.one_handle is None:
            raise ValueError("Matcher has neither an all handle nor a one handle")
        handle = self.one_handle
        return [element for element in elements if handle(element, use_cache)]


def _unmatched(ch: str, index: int) -> RuleSyntaxError:
    return RuleSyntaxError(
        f"Unmatched '{ch}' at index {index},you can escape it using both {ch}{ch}"
    )


@dataclass
class _PatternStore:
    """State of the pattern currently being read inside ``{...}``."""

    hashes: int = 0
    wait_end: bool = False
    in_matched: bool = False
    raw_params: list[str] = field(default_factory=list)
    suffix: list[str] = field(default_factory=list)
    names: list[str] = field(default_factory=list)

    def build(self) -> Pattern:
        name = "".join(self.names)
        suffix = "".join(self.suffix)
        raw = "".join(self.raw_params)
        self.hashes = 0
        self.wait_end = False
        self.in_matched = False
        self.names.clear()
        self.suffix.clear()
        self.raw_params.clear()
        try:
            return to_pattern(name, suffix, raw)
        except PatternError as exc:
            raise RuleSyntaxError(str(exc)) from exc


@dataclass
class Rule:
    """A selector rule: its pattern queue and the factory of its matchers."""

    handle: MatcherFactory
    priority: int = 0
    in_cache: bool = False
    queues: list[Pattern] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"Rule(queues={self.queues!r})"

    @staticmethod
    def get_queues(content: str) -> list[Pattern]:
        """Parse a rule template such as ``#{identity}`` into patterns.

        ``{name}`` and ``{name#raw#}`` insert registered patterns; ``{{`` and
        ``}}`` stand for literal braces; other text is matched literally.
        """
        prev_char = _ANCHOR_CHAR
        store = _PatternStore()
        raw_chars: list[str] = []
        queues: list[Pattern] = []
        matched_finish = False
        index = 0
        for ch in content:
            index += 1
            prev_matched_finish = matched_finish
            matched_finish = False
            if store.wait_end:
                if ch in _ASCII_WHITESPACE:
                    continue
                if ch != _END_CHAR:
                    raise RuleSyntaxError(
                        f"Unexpected end of the pattern '{''.join(store.names)}' "
                        f"at index {index - 1}, expect '{_END_CHAR}' but found '{ch}'"
                    )
                matched_finish = True
            elif not store.in_matched:
                if prev_char == _START_CHAR:
                    if ch == _START_CHAR:
                        prev_char = _ANCHOR_CHAR
                        continue
                    store.names.append(ch)
                    store.in_matched = True
                    raw_chars.pop()
                    if raw_chars:
                        queues.append(Literal("".join(raw_chars)))
                        raw_chars.clear()
                elif prev_char == _END_CHAR:
                    if prev_matched_finish:
                        raw_chars.append(ch)
                    elif ch == _END_CHAR:
                        prev_char = _ANCHOR_CHAR
                        continue
                    else:
                        raise _unmatched(_END_CHAR, index - 2)
                else:
                    raw_chars.append(ch)
            elif store.raw_params:
                if ch == "#":
                    leave_count = store.hashes - 1
                    if leave_count == 0:
                        store.wait_end = True
                    else:
                        last_index = len(store.raw_params) - leave_count
                        if last_index < 0:
                            raise RuleSyntaxError(
                                f"Uncomplete raw params: '{''.join(store.raw_params)}'"
                            )
                        if last_index > 0:
                            tail = store.raw_params[last_index:]
                            store.wait_end = tail.count("#") == leave_count
                            if store.wait_end:
                                del store.raw_params[last_index:]
                    if not store.wait_end:
                        store.raw_params.append(ch)
                else:
                    store.raw_params.append(ch)
            elif ch == _END_CHAR:
                if store.hashes > 0:
                    raise RuleSyntaxError("Uncomplete raw params: ''")
                matched_finish = True
            elif ch == "#":
                store.hashes += 1
            elif prev_char == "#":
                store.raw_params.append(ch)
            elif store.suffix or not ((ch.isascii() and ch.isalnum()) or ch == "_"):
                store.suffix.append(ch)
            else:
                store.names.append(ch)
            if matched_finish:
                queues.append(store.build())
            prev_char = ch
        if store.wait_end or store.in_matched:
            raise RuleSyntaxError(
                f"The matched type '{''.join(store.names)}' is not complete"
            )
        if prev_char == _START_CHAR or (prev_char == _END_CHAR and not matched_finish):
            raise _unmatched(prev_char, index - 1)
        if raw_chars:
            queues.append(Literal("".join(raw_chars)))
        return queues

    def exec(self, chars: str) -> Optional[tuple[list[Matched], int, int]]:
        """Run this rule's queue over ``chars``."""
        return Rule.exec_queues(self.queues, chars)

    @staticmethod
    def exec_queues(
        queues: Sequence[Pattern], chars: str
    ) -> Optional[tuple[list[Matched], int, int]]:
        """Run ``queues`` over ``chars``.

        Returns the matches, the characters consumed and the number of
        patterns matched, or None when nothing was consumed.
        """
        result, length, count, _ = exec_patterns(queues, chars)
        if length > 0:
            return result, length, count
        return None

    def make(self, data: list[Matched]) -> Matcher:
        """Build a matcher from the matched pieces of a selector."""
        matcher = self.handle(data)
        matcher.priority = self.priority
        matcher.in_cache = self.in_cache
        return matcher

    @classmethod
    def add(cls, context: str, rule: "Rule") -> "Rule":
        """Set the queue of ``rule`` from the template ``context``."""
        rule.queues = cls.get_queues(context)
        return rule


@dataclass
class RuleItem:
    """A named rule together with its template, ready to register."""

    name: str
    context: str
    rule: Rule


_RULES: list[tuple[str, Rule]] = []
_RULES_LOCK = threading.Lock()


def add_rules(items: Iterable[RuleItem]) -> None:
    """Parse the templates of ``items`` and register their rules in order."""
    prepared = [(item.name, Rule.add(item.context, item.rule)) for item in items]
    with _RULES_LOCK:
        _RULES.extend(prepared)


def registered_rules() -> list[tuple[str, Rule]]:
    """Return the registered ``(name, rule)`` pairs in registration order."""
    with _RULES_LOCK:
        return list(_RULES)


def clear_rules() -> None:
    """Remove every registered rule."""
    with _RULES_LOCK:
        _RULES.clear()