"""Character and number helpers shared by the selector engine."""

from __future__ import annotations

import string
from enum import Enum
from typing import MutableSequence, Sequence

_ASCII_WHITESPACE = frozenset(" \t\n\x0c\r")
_ASCII_PUNCTUATION = frozenset(string.punctuation)
_KEY_EXTRA_CHARS = frozenset("_-.:")


class RoundType(Enum):
    """How an integer division result is rounded."""

    FLOOR = "floor"
    CEIL = "ceil"
    ROUND = "round"


def _is_ascii_alphanumeric(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def _is_ascii_control(ch: str) -> bool:
    code = ord(ch)
    return code < 0x20 or code == 0x7F


def is_non_character(ch: str) -> bool:
    """Return True if ``ch`` is a Unicode noncharacter code point."""
    code = ord(ch)
    if 0xFDD0 <= code <= 0xFDEF:
        return True
    return (code & 0xFFFE) == 0xFFFE and code <= 0x10FFFF


def is_char_available_in_key(ch: str) -> bool:
    """Return True if ``ch`` may appear in an HTML attribute name."""
    if _is_ascii_alphanumeric(ch) or ch in _KEY_EXTRA_CHARS:
        return True
    if (
        ch in _ASCII_WHITESPACE
        or _is_ascii_control(ch)
        or is_non_character(ch)
        or ch in _ASCII_PUNCTUATION
    ):
        return False
    return True


def _truncating_divmod(a: int, b: int) -> tuple[int, int]:
    """Divide rounding toward zero; the remainder takes the dividend's sign."""
    if b == 0:
        raise ZeroDivisionError("integer division by zero")
    quotient = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        quotient = -quotient
    return quotient, a - quotient * b


def divide_isize(a: int, b: int, round_type: RoundType) -> int:
    """Divide ``a`` by ``b`` and round the quotient as ``round_type`` asks."""
    res, remainder = _truncating_divmod(a, b)
    if round_type is RoundType.FLOOR:
        if res < 0 and remainder != 0:
            res -= 1
    elif round_type is RoundType.CEIL:
        if res > 0 and remainder != 0:
            res += 1
    elif res != 0 and remainder != 0:
        symbol = -1 if res < 0 else 1
        total = remainder * 2 - symbol * b
        if (total >= 0 and a > 0) or (total <= 0 and a < 0):
            res += symbol
    return res


def retain_by_index(items: MutableSequence, indexes: Sequence[int]) -> None:
    """Remove the items at the given ascending ``indexes`` in place."""
    for offset, index in enumerate(indexes):
        del items[index - offset]


def get_class_list(attr_class: str) -> list[str]:
    """Split a class attribute value into its class names."""
    class_list: list[str] = []
    name: list[str] = []
    for ch in attr_class:
        if ch in _ASCII_WHITESPACE:
            if name:
                class_list.append("".join(name))
                name = []
        else:
            name.append(ch)
    if name:
        class_list.append("".join(name))
    return class_list


def class_list_to_string(class_list: Sequence[str]) -> str:
    """Join class names back into a class attribute value."""
    return " ".join("".join(name) for name in class_list)


def _ascii_swapcase(ch: str) -> str:
    if "a" <= ch <= "z":
        return ch.upper()
    if "A" <= ch <= "Z":
        return ch.lower()
    return ch


def is_equal_chars_ignore_case(target: Sequence[str], cmp: Sequence[str]) -> bool:
    """Compare two character sequences, ignoring ASCII letter case."""
    if len(target) != len(cmp):
        return False
    return all(t == c or t == _ascii_swapcase(c) for t, c in zip(target, cmp))


def contains_chars(target: Sequence[str], search: Sequence[str]) -> bool:
    """Return True if ``search`` occurs as a contiguous run inside ``target``."""
    if isinstance(target, str) and isinstance(search, str):
        return search in target
    target_seq = tuple(target)
    search_seq = tuple(search)
    size = len(search_seq)
    if len(target_seq) < size:
        return False
    return any(
        target_seq[start:start + size] == search_seq
        for start in range(len(target_seq) - size + 1)
    )