"""Patterns that match the pieces of a selector, and the pattern registry."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Iterable, Optional, Sequence

from mesdoc.utils import RoundType, divide_isize, is_char_available_in_key

_ASCII_WHITESPACE = frozenset(" \t\n\x0c\r")


class PatternError(ValueError):
    """Raised when a pattern cannot be built, registered or looked up."""


@dataclass
class Matched:
    """What a pattern matched at the start of some text."""

    chars: str = ""
    ignore_chars: Optional[int] = None
    name: str = ""
    data: dict[str, str] = field(default_factory=dict)

    @property
    def consumed(self) -> int:
        """Number of input characters this match used up."""
        return len(self.chars) + (self.ignore_chars or 0)


PatternFactory = Callable[[str, str], "Pattern"]


class Pattern:
    """Base class of every pattern."""

    _accepts_params: ClassVar[bool] = True

    def matched(self, chars: str) -> Optional[Matched]:
        """Match at the start of ``chars``; return None when nothing matches."""
        raise NotImplementedError

    def is_nested(self) -> bool:
        """Return True when the pattern stands for a nested selector."""
        return False

    @classmethod
    def from_params(cls, suffix: str, raw: str) -> "Pattern":
        """Build the pattern from its suffix and raw parameters."""
        if not cls._accepts_params:
            raise PatternError(f"No supported pattern '{suffix}' was found")
        return check_params_return((suffix, raw), cls)


@dataclass(frozen=True)
class Literal(Pattern):
    """Matches a fixed run of characters."""

    text: str

    _accepts_params: ClassVar[bool] = False

    def matched(self, chars: str) -> Optional[Matched]:
        if chars.startswith(self.text):
            return Matched(chars=self.text)
        return None


@dataclass(frozen=True)
class Identity(Pattern):
    """Matches a name: letters, digits, ``-`` and ``_``, with ``\\`` escapes."""

    def matched(self, chars: str) -> Optional[Matched]:
        if not chars:
            return None
        first = chars[0]
        if not ((first.isascii() and first.isalpha()) or first == "_"):
            return None
        result: list[str] = []
        escaping = False
        ignored = 0
        for ch in chars:
            if escaping:
                result.append(ch)
                escaping = False
            elif (ch.isascii() and ch.isalnum()) or ch in "-_":
                result.append(ch)
            elif ch == "\\":
                escaping = True
                ignored += 1
            else:
                break
        return Matched(
            chars="".join(result),
            name="identity",
            ignore_chars=ignored or None,
        )


@dataclass(frozen=True)
class AttrKey(Pattern):
    """Matches an attribute name."""

    def matched(self, chars: str) -> Optional[Matched]:
        result: list[str] = []
        for ch in chars:
            if not is_char_available_in_key(ch):
                break
            result.append(ch)
        if result:
            return Matched(chars="".join(result), name="attr_key")
        return None


@dataclass(frozen=True)
class Spaces(Pattern):
    """Matches any run of ASCII whitespace, possibly empty."""

    def matched(self, chars: str) -> Optional[Matched]:
        result: list[str] = []
        for ch in chars:
            if ch not in _ASCII_WHITESPACE:
                break
            result.append(ch)
        return Matched(chars="".join(result), name="spaces")


_NTH_RULE = (
    r"^(?:([-+])?([1-9]\d+|[0-9])?n(?:\s*([+-])\s*([1-9]\d+|[0-9]))?"
    r"|([-+])?([1-9]\d+|[0-9]))"
)


def _nth_number(
    data: dict[str, str], keys: tuple[str, str], default: Optional[str]
) -> Optional[str]:
    value = data.get(keys[0], default)
    if value is None:
        return None
    if data.get(keys[1]) == "-":
        value = "-" + value
    return value


@dataclass(frozen=True)
class Nth(Pattern):
    """Matches an ``an+b`` expression, ``even`` or ``odd``."""

    def matched(self, chars: str) -> Optional[Matched]:
        data: dict[str, str] = {}
        matched_chars = ""
        found = RegExp(_NTH_RULE).matched(chars)
        if found is not None:
            rule_data = found.data
            only_index = "6" in rule_data
            index_keys = ("6", "5") if only_index else ("4", "3")
            index = _nth_number(rule_data, index_keys, None)
            if index is not None:
                data["index"] = index
            if not only_index:
                n = _nth_number(rule_data, ("2", "1"), "1")
                if n is not None:
                    data["n"] = n
            matched_chars = found.chars
        elif chars.startswith("even"):
            data = {"n": "2", "index": "0"}
            matched_chars = "even"
        elif chars.startswith("odd"):
            data = {"n": "2", "index": "1"}
            matched_chars = "odd"
        if data:
            return Matched(chars=matched_chars, name="nth", data=data)
        return None

    @staticmethod
    def get_allowed_indexes(
        n: Optional[str], index: Optional[str], total: int
    ) -> list[int]:
        """Return the zero-based positions among ``total`` items that ``an+b`` selects."""
        if n is None:
            if index is None:
                raise PatternError("Nth must have 'index' value when 'n' is not set")
            position = int(index)
            if position <= 0 or position > total:
                return []
            return [position - 1]

        step = int(n)
        offset = int(index) if index is not None else 0
        if step == 0:
            if 0 < offset <= total:
                return [offset - 1]
            return []
        if step < 0:
            if offset <= 0:
                return []
            if offset <= -step:
                return [offset - 1] if offset <= total else []
            start = divide_isize(offset - total, -step, RoundType.CEIL)
            end = divide_isize(offset - 1, -step, RoundType.FLOOR)
        else:
            start = divide_isize(1 - offset, step, RoundType.CEIL)
            end = divide_isize(total - offset, step, RoundType.FLOOR)
        start = max(start, 0)
        if start > end:
            return []
        allowed = [
            i * step + offset - 1
            for i in range(start, end + 1)
            if i * step + offset >= 1
        ]
        if step < 0:
            allowed.reverse()
        return allowed


_REGEX_CACHE: dict[str, re.Pattern[str]] = {}
_REGEX_LOCK = threading.Lock()


@dataclass(frozen=True)
class RegExp(Pattern):
    """Matches a regular expression anchored at the start of the text."""

    context: str

    def matched(self, chars: str) -> Optional[Matched]:
        found = RegExp.get_rule(self.context).match(chars)
        if found is None:
            return None
        data = {
            str(number): value
            for number, value in enumerate(found.groups(), start=1)
            if value is not None
        }
        return Matched(chars=found.group(0), name="regexp", data=data)

    @classmethod
    def from_params(cls, suffix: str, raw: str) -> "RegExp":
        return check_params_return((suffix,), lambda: cls(raw))

    @staticmethod
    def get_rule(context: str) -> re.Pattern[str]:
        """Return the compiled, start-anchored regex for ``context``, cached."""
        key = "^" + context
        with _REGEX_LOCK:
            rule = _REGEX_CACHE.get(key)
            if rule is None:
                try:
                    rule = re.compile(key)
                except re.error as exc:
                    raise PatternError(f"Wrong regex context '{context}'") from exc
                _REGEX_CACHE[key] = rule
            return rule


@dataclass(frozen=True)
class NestedSelector(Pattern):
    """Placeholder for a nested selector; it never matches by itself."""

    def matched(self, chars: str) -> Optional[Matched]:
        return None

    def is_nested(self) -> bool:
        return True


_PATTERNS: dict[str, PatternFactory] = {}
_PATTERNS_LOCK = threading.Lock()


def add_pattern(name: str, factory: PatternFactory) -> None:
    """Register a pattern factory under ``name``."""
    with _PATTERNS_LOCK:
        if name in _PATTERNS:
            raise PatternError(f"The pattern '{name}' is already exist.")
        _PATTERNS[name] = factory


def to_pattern(name: str, suffix: str, raw: str) -> Pattern:
    """Build the registered pattern ``name`` from its parameters."""
    with _PATTERNS_LOCK:
        factory = _PATTERNS.get(name)
    if factory is None:
        raise PatternError(f"No supported pattern '{name}' was found")
    return factory(suffix, raw)


def exec_patterns(
    queues: Sequence[Pattern], chars: str
) -> tuple[list[Matched], int, int, bool]:
    """Run ``queues`` in order over ``chars`` until one fails.

    Returns the matches, the characters consumed, the number of patterns
    that matched and whether all of ``chars`` was consumed.
    """
    start = 0
    result: list[Matched] = []
    for pattern in queues:
        found = pattern.matched(chars[start:])
        if found is None:
            break
        start += found.consumed
        result.append(found)
    return result, start, len(result), start == len(chars)


def check_params_return(
    params: Iterable[str], factory: Callable[[], Pattern]
) -> Pattern:
    """Build a pattern with ``factory`` if every parameter is empty."""
    params = tuple(params)
    if any(params):
        raise PatternError(f"Unrecognized params '{''.join(params)}'")
    return factory()


def _register_builtin_patterns() -> None:
    add_pattern("identity", Identity.from_params)
    add_pattern("spaces", Spaces.from_params)
    add_pattern("attr_key", AttrKey.from_params)
    add_pattern("nth", Nth.from_params)
    add_pattern("regexp", RegExp.from_params)
    add_pattern("selector", NestedSelector.from_params)


_register_builtin_patterns()