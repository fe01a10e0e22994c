"""Identifier to dash-lower wire name conversion."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any


class CharCategory(Enum):
    UPPER = "upper"
    LOWER = "lower"
    DIGIT = "digit"
    OTHER = "other"


def _classify(char: str) -> CharCategory:
    if char.isupper():
        return CharCategory.UPPER
    if char.islower():
        return CharCategory.LOWER
    if char.isdigit():
        return CharCategory.DIGIT
    return CharCategory.OTHER


_UPPER = CharCategory.UPPER
_LOWER = CharCategory.LOWER
_DIGIT = CharCategory.DIGIT

# (previous, current) -> separator; missing pairs never separate.
_BOUNDARIES: dict[tuple[CharCategory, CharCategory], bool] = {
    (_LOWER, _UPPER): True,
    (_DIGIT, _UPPER): True,
    (_DIGIT, _LOWER): True,
    (_UPPER, _DIGIT): True,
    (_LOWER, _DIGIT): True,
    (_UPPER, _UPPER): False,
    (_UPPER, _LOWER): False,
}


def dash_case(name: str | None) -> str | None:
    """Convert ``SharedUsers``-style identifiers to ``shared-users``.

    Acronym runs stay joined and split off in front of their last capital
    when a lower-case word follows (``HTTPServer`` -> ``http-server``).
    Letters and digits are separated in both directions. Characters that
    are neither letters nor digits pass through with no separator next to
    them.
    """
    if not name:
        return name

    output: list[str] = []
    previous: CharCategory | None = None
    for index, char in enumerate(name):
        current = _classify(char)
        if previous is not None and _separates(previous, current, name, index):
            output.append("-")
        output.append(char.lower())
        previous = current
    return "".join(output)


def _separates(previous: CharCategory, current: CharCategory, name: str, index: int) -> bool:
    if previous is CharCategory.OTHER or current is CharCategory.OTHER:
        return False
    if previous is _UPPER and current is _UPPER:
        following = name[index + 1] if index + 1 < len(name) else ""
        return bool(following) and _classify(following) is _LOWER
    return _BOUNDARIES.get((previous, current), False)


def wire_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Rename caller-supplied keys to RouterOS field names."""
    converted: dict[str, Any] = {}
    for key, value in fields.items():
        wire_key = (dash_case(key) or key).replace("_", "-")
        converted[wire_key] = value
    return converted
