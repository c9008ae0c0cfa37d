"""
Null-tolerant coercion of loosely typed feed values.

None of these functions raise: anything that cannot be read as the requested
type comes back as None so a single odd field never fails a whole race.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

DEFAULT_COUNTRY = "NZ"

_INT_PREFIX = re.compile(r"[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def to_int(value: Any) -> int | None:
    """
    Coerce a feed value to int.

    Strings are trimmed and their leading integer prefix is used, so
    ``"12"`` and ``" 12 "`` give 12 and ``"invalid"`` gives None. Integral
    floats are accepted; booleans are not numbers here.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        match = _INT_PREFIX.match(value.strip())
        return int(match.group()) if match else None
    return None


def to_float(value: Any) -> float | None:
    """Coerce a feed value to float; ints are promoted exactly."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(value.strip())
        return float(match.group()) if match else None
    return None


def normalize_string(value: Any) -> str | None:
    """Trim a string; empty or whitespace-only becomes None."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_country(value: Any, default: str = DEFAULT_COUNTRY) -> str:
    """Uppercase a territory code and cut it to 3 characters."""
    country = normalize_string(value)
    if country is None:
        return default
    return country.upper()[:3]


def extract_first(record: Mapping[str, Any] | None, keys: Iterable[str]) -> Any:
    """Return the first non-None value found by probing ``keys`` in order."""
    if not isinstance(record, Mapping):
        return None
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def extract_number(record: Mapping[str, Any] | None, keys: Iterable[str]) -> int | None:
    """First present value among ``keys``, as int."""
    return to_int(extract_first(record, keys))


def extract_float(record: Mapping[str, Any] | None, keys: Iterable[str]) -> float | None:
    """First present value among ``keys``, as float."""
    return to_float(extract_first(record, keys))


def extract_string(record: Mapping[str, Any] | None, keys: Iterable[str]) -> str | None:
    """First present value among ``keys``, trimmed."""
    return normalize_string(extract_first(record, keys))
