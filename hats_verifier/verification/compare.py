"""Value normalization shared by every check.

On-chain integers come back as Python ints, while config values may be ints
or (for large token amounts) decimal strings. Numbers are compared by their
canonical decimal string, so ``600`` and ``"600"`` are equal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Comparison:
    """Typed result of comparing an on-chain value to an expected one."""

    actual: str
    expected: str
    equal: bool

    def __bool__(self) -> bool:
        return self.equal


def normalize_numeric(value: Any) -> str:
    """Canonical decimal string for ints, decimal strings and ``0x`` hex strings.

    Values that are not numbers are returned as their plain string form, so a
    malformed value compares unequal instead of raising.
    """
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                return str(int(text, 16))
            return str(int(text, 10))
        except ValueError:
            return text
    return str(value)


def compare_numeric(actual: Any, expected: Any) -> Comparison:
    a, e = normalize_numeric(actual), normalize_numeric(expected)
    return Comparison(actual=a, expected=e, equal=a == e)


def normalize_address(value: Any) -> str:
    return str(value or "").strip().lower()


def same_address(actual: Any, expected: Any) -> bool:
    """Case-insensitive address equality; empty values never match."""
    a, e = normalize_address(actual), normalize_address(expected)
    return bool(a) and a == e


def same_bytes(actual: Any, expected: Any) -> bool:
    """Hex byte-string equality, ignoring case and treating ``""`` as ``0x``."""

    def _norm(value: Any) -> str:
        text = str(value or "").strip().lower()
        return text if text.startswith("0x") else "0x" + text

    return _norm(actual) == _norm(expected)
