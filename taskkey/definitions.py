"""Task definitions and the read-only registry the normalizer looks them up in.

A definition document is JSON, either a bare list of definitions or an object
with a `taskDefinitions` list:

    [{"type": "npm",
      "required": ["script"],
      "properties": {"script": {"type": "string"},
                     "path": {"type": "string"}}}]

Documents are validated with a pinned Draft 2020-12 validator before use.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from jsonschema import Draft202012Validator

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "task-definitions-v1.schema.json"


class DefinitionError(Exception):
    pass


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


@dataclass(frozen=True)
class PropertySchema:
    # A kind name or a list of kind names (JSON-Schema style).
    type: Union[str, Tuple[str, ...], None] = None
    default: Any = NO_DEFAULT
    description: Optional[str] = None

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "PropertySchema":
        kind = d.get("type")
        if isinstance(kind, list):
            kind = tuple(kind)
        return PropertySchema(
            type=kind,
            default=d["default"] if "default" in d else NO_DEFAULT,
            description=d.get("description"),
        )


@dataclass(frozen=True)
class TaskDefinition:
    task_type: str
    required: Tuple[str, ...] = ()
    properties: Mapping[str, PropertySchema] = field(default_factory=dict)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "TaskDefinition":
        props = d.get("properties") or {}
        return TaskDefinition(
            task_type=d["type"],
            required=tuple(d.get("required") or ()),
            properties={name: PropertySchema.from_dict(s) for name, s in props.items()},
        )


def _load_schema() -> Dict[str, Any]:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def validate_document(doc: Any) -> None:
    """Raise DefinitionError listing (up to five) schema violations."""
    v = Draft202012Validator(_load_schema())
    errs = sorted(v.iter_errors(doc), key=lambda e: (list(map(str, e.path)), e.message))
    if errs:
        msg = "; ".join([f"{list(e.path)}: {e.message}" for e in errs[:5]])
        raise DefinitionError(msg)


def parse_document(doc: Any) -> List[TaskDefinition]:
    validate_document(doc)
    items = doc["taskDefinitions"] if isinstance(doc, dict) else doc
    return [TaskDefinition.from_dict(d) for d in items]


def load_document(path: Path) -> List[TaskDefinition]:
    p = Path(path)
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise DefinitionError(f"cannot read definitions: {p}: {e}") from e
    except ValueError as e:
        raise DefinitionError(f"invalid JSON in {p}: {e}") from e
    try:
        return parse_document(doc)
    except DefinitionError as e:
        raise DefinitionError(f"{p}: {e}") from e


class DefinitionRegistry:
    """Immutable type -> TaskDefinition map. Later definitions of a type win."""

    def __init__(self, definitions: Iterable[TaskDefinition] = ()) -> None:
        by_type: Dict[str, TaskDefinition] = {}
        for d in definitions:
            by_type[d.task_type] = d
        self._by_type = by_type

    def get(self, task_type: str) -> Optional[TaskDefinition]:
        return self._by_type.get(task_type)

    def types(self) -> List[str]:
        return sorted(self._by_type)

    def __len__(self) -> int:
        return len(self._by_type)

    def __contains__(self, task_type: object) -> bool:
        return task_type in self._by_type

    @staticmethod
    def from_documents(paths: Iterable[Path]) -> "DefinitionRegistry":
        defs: List[TaskDefinition] = []
        for p in paths:
            defs.extend(load_document(p))
        return DefinitionRegistry(defs)
