from __future__ import annotations

import string

_HEX_DIGITS = frozenset(string.hexdigits)


def normalize_color(raw: str) -> str:
    return raw.strip().removeprefix("#")


def is_hex_color(value: object) -> bool:
    """True for exactly 3 or 6 hex digits, with no delimiter."""
    if not isinstance(value, str) or len(value) not in (3, 6):
        return False
    return all(ch in _HEX_DIGITS for ch in value)


def is_valid_color(value: object) -> bool:
    if not isinstance(value, str):
        return False
    return is_hex_color(value.removeprefix("#"))
