"""Loose value coercions applied to raw (usually string) filter values."""

from __future__ import annotations

from typing import Any

# Everything else, including "0", "false", "off", "no" and "", is false.
TRUTHY_TOKENS = frozenset({"1", "true", "on", "yes"})

NULL_TOKEN = "null"

LIST_SEPARATOR = ","


def to_bool(value: Any) -> bool:
    """Coerce a raw filter value using the loose boolean truth table."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_TOKENS


def to_list(value: Any) -> list[Any]:
    """
    Coerce an ``in`` value to a list.

    Sequences are used as-is; anything else is split on ``,`` and each
    element trimmed (``"25, 35"`` -> ``["25", "35"]``).
    """
    if isinstance(value, list | tuple | set | frozenset):
        return list(value)
    return [part.strip() for part in str(value).split(LIST_SEPARATOR)]


def is_null_token(value: Any) -> bool:
    """True for ``None`` or any casing/padding of the string ``"null"``."""
    if value is None:
        return True
    return isinstance(value, str) and value.strip().lower() == NULL_TOKEN
