"""Canonical stringification of task identifiers.

Key format:
  - direct properties sorted by name (plain string order, not locale-aware)
  - each property emitted as `<name>,<value>,` (the trailing comma is part of the key)
  - records and sequences rendered recursively with the same rules;
    sequences use their indices "0", "1", ... as property names
  - any single value rendering longer than FOLD_THRESHOLD is folded

Folding is deliberately lossy and collision-prone: the rendering is split in
half and each half replaced by the decimal sum of its UTF-16 code units. It only
bounds key length. Changing it changes every stored key.
"""

from __future__ import annotations

import math
import struct
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, List, Sequence, Tuple

from .identifier import TYPE_FIELD, KeyedIdentifier

FOLD_THRESHOLD = 100


def _utf16_units(s: str) -> Tuple[int, ...]:
    data = s.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(data) // 2}H", data)


def _number_text(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "0"

    sign = "-" if x < 0 else ""
    # repr() gives the shortest round-trip digits; lay them out the way
    # JSON-producing runtimes print numbers.
    _, digit_tuple, exponent = Decimal(repr(abs(x))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        out = digits + "0" * (n - k)
    elif 0 < n <= 21:
        out = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        out = "0." + "0" * (-n) + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
        out = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + out


def value_text(value: Any) -> str:
    """Textual form of a primitive value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _number_text(value)
    return str(value)


def _fold_units(units: Sequence[int]) -> str:
    half = len(units) // 2
    return str(sum(units[:half])) + str(sum(units[half:]))


def fold(s: str) -> str:
    """Two-half additive fold. The odd extra unit goes to the second half."""
    return _fold_units(_utf16_units(s))


def _bounded(text: str) -> str:
    units = _utf16_units(text)
    if len(units) > FOLD_THRESHOLD:
        return _fold_units(units)
    return text


def _is_structured(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _sorted_items(value: Any) -> List[Tuple[str, Any]]:
    if isinstance(value, Mapping):
        items = [(str(k), v) for k, v in value.items()]
    else:
        items = [(str(i), v) for i, v in enumerate(value)]
    # Code-unit order, so "10" < "2" for sequence indices.
    return sorted(items, key=lambda kv: _utf16_units(kv[0]))


def stringify(value: Any) -> str:
    """Deterministic, insertion-order independent rendering of a record."""
    out = []
    for name, item in _sorted_items(value):
        text = stringify(item) if _is_structured(item) else value_text(item)
        out.append(name + "," + _bounded(text) + ",")
    return "".join(out)


def make_keyed(value: Mapping[str, Any]) -> KeyedIdentifier:
    """Key a literal that already carries its `type`."""
    return KeyedIdentifier(key=stringify(value), type=value.get(TYPE_FIELD))
