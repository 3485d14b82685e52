from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .identifier import KeyedIdentifier
from .normalize import DefinitionLookup, create_task_identifier
from .reporting import CollectingReporter, Reporter


@dataclass(frozen=True)
class DedupeResult:
    keyed: List[Optional[KeyedIdentifier]]
    # key -> input indices, first-seen order
    groups: Dict[str, List[int]]
    dropped: List[int]
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.dropped) == 0

    def unique(self) -> List[KeyedIdentifier]:
        out: List[KeyedIdentifier] = []
        for indices in self.groups.values():
            k = self.keyed[indices[0]]
            if k is not None:
                out.append(k)
        return out

    def duplicates(self) -> Dict[str, List[int]]:
        return {k: v for k, v in self.groups.items() if len(v) > 1}


def dedupe_identifiers(
    raws: Iterable[Mapping[str, Any]],
    lookup: DefinitionLookup,
    report: Optional[Reporter] = None,
) -> DedupeResult:
    """Canonicalize every identifier and group the ones denoting the same task.

    Messages for unusable identifiers go to `report` (if given) and are also
    kept on the result.
    """
    collected = CollectingReporter()

    def sink(message: str) -> None:
        collected(message)
        if report is not None:
            report(message)

    keyed: List[Optional[KeyedIdentifier]] = []
    groups: Dict[str, List[int]] = {}
    dropped: List[int] = []

    for i, raw in enumerate(raws):
        k = create_task_identifier(raw, lookup, sink)
        keyed.append(k)
        if k is None:
            dropped.append(i)
            continue
        groups.setdefault(k.key, []).append(i)

    return DedupeResult(keyed=keyed, groups=groups, dropped=dropped, errors=collected.errors)
