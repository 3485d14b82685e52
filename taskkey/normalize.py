"""Schema-driven normalization of raw task identifiers.

With a definition for the identifier's type, the literal keeps exactly the
declared properties: supplied values are copied, missing required ones are
defaulted (explicit default, else false / 0 / "" by kind). A required property
that cannot be defaulted makes the whole identifier unusable: it is reported
once and None is returned.

Without a definition the identifier is keyed as-is, minus any stale `_key`.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Callable, Mapping, Optional

from .definitions import PropertySchema, TaskDefinition
from .identifier import KEY_FIELD, TYPE_FIELD, KeyedIdentifier, NormalizedLiteral
from .reporting import Reporter
from .stringify import make_keyed

log = logging.getLogger(__name__)

DefinitionLookup = Callable[[str], Optional[TaskDefinition]]

_FALLBACKS = {
    "boolean": False,
    "number": 0,
    "integer": 0,
    "string": "",
}


class UnresolvablePropertyError(Exception):
    """A required property has no value, no default and no fallback kind."""

    def __init__(self, prop: str) -> None:
        super().__init__(prop)
        self.prop = prop


def missing_property_message(raw: Mapping[str, Any], task_type: str, prop: str) -> str:
    rendered = json.dumps(raw, separators=(",", ":"), ensure_ascii=False, skipkeys=True, default=str)
    return (
        f"Error: the task identifier '{rendered}' is missing the required property "
        f"'{prop}' of task type '{task_type}'. The task identifier will be ignored."
    )


def _default_for(prop: str, schema: PropertySchema) -> Any:
    if schema.has_default:
        return copy.deepcopy(schema.default)
    # Arrays, objects and kind lists have no fallback.
    if isinstance(schema.type, str) and schema.type in _FALLBACKS:
        return _FALLBACKS[schema.type]
    raise UnresolvablePropertyError(prop)


def normalize_literal(raw: Mapping[str, Any], definition: TaskDefinition) -> NormalizedLiteral:
    literal: NormalizedLiteral = {TYPE_FIELD: definition.task_type}
    required = set(definition.required)

    for prop, schema in definition.properties.items():
        if prop == TYPE_FIELD:
            # The definition's spelling of the type always wins.
            continue
        value = raw.get(prop)
        if value is not None:
            literal[prop] = value
        elif prop in required:
            literal[prop] = _default_for(prop, schema)
    return literal


def create_task_identifier(
    raw: Mapping[str, Any],
    lookup: DefinitionLookup,
    report: Reporter,
) -> Optional[KeyedIdentifier]:
    task_type = raw.get(TYPE_FIELD)
    definition = lookup(task_type) if isinstance(task_type, str) else None

    if definition is None:
        log.debug("no task definition for type %r; keying identifier as-is", task_type)
        literal = copy.deepcopy(dict(raw))
        literal.pop(KEY_FIELD, None)
        return make_keyed(literal)

    try:
        literal = normalize_literal(raw, definition)
    except UnresolvablePropertyError as e:
        report(missing_property_message(raw, definition.task_type, e.prop))
        return None
    return make_keyed(literal)
