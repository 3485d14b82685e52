"""Task identifier data model.

A raw identifier is a plain mapping supplied by a task producer. It always
names its task kind under `type` and may carry a stale `_key` from an earlier
canonicalization, which is never trusted.

The keyed form is the only artifact consumers persist or compare.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Union

KEY_FIELD = "_key"
TYPE_FIELD = "type"

Primitive = Union[str, int, float, bool, None]
IdentifierValue = Union[Primitive, Mapping[str, Any], List[Any]]
RawIdentifier = Mapping[str, IdentifierValue]
NormalizedLiteral = Dict[str, IdentifierValue]


@dataclass(frozen=True)
class KeyedIdentifier:
    """Canonical key plus the task type it was derived from.

    Equality and hashing follow `key` only; `type` is informational. It is
    copied from the literal unchanged, so an identifier with no definition
    may carry a non-string (or missing, None) type.
    """

    key: str
    type: Any = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {KEY_FIELD: self.key, TYPE_FIELD: self.type}
