from __future__ import annotations

from typing import Optional

from taskkey.definitions import DefinitionRegistry, PropertySchema, TaskDefinition
from taskkey.normalize import create_task_identifier, normalize_literal
from taskkey.reporting import CollectingReporter
from taskkey.stringify import make_keyed


def _registry() -> DefinitionRegistry:
    return DefinitionRegistry(
        [
            TaskDefinition(
                task_type="shell",
                required=("command", "args"),
                properties={
                    "command": PropertySchema(type="string"),
                    "args": PropertySchema(type="array", default=[]),
                },
            ),
            TaskDefinition(
                task_type="npm",
                required=("script",),
                properties={
                    "script": PropertySchema(type="string"),
                    "path": PropertySchema(type="string"),
                },
            ),
            TaskDefinition(
                task_type="kinds",
                required=("flag", "count", "level", "name"),
                properties={
                    "flag": PropertySchema(type="boolean"),
                    "count": PropertySchema(type="number"),
                    "level": PropertySchema(type="integer"),
                    "name": PropertySchema(type="string"),
                },
            ),
            TaskDefinition(
                task_type="gulp",
                required=("task", "files"),
                properties={
                    "task": PropertySchema(type="string"),
                    "files": PropertySchema(type="array"),
                },
            ),
        ]
    )


def test_shell_example_fills_default() -> None:
    rep = CollectingReporter()
    k = create_task_identifier({"type": "shell", "command": "echo hi"}, _registry().get, rep)
    assert k is not None
    assert k.key == "args,,command,echo hi,type,shell,"
    assert k.type == "shell"
    assert rep.ok


def test_property_order_swap_gives_same_key() -> None:
    reg = _registry()
    rep = CollectingReporter()
    a = create_task_identifier({"type": "npm", "script": "build"}, reg.get, rep)
    b = create_task_identifier({"script": "build", "type": "npm"}, reg.get, rep)
    assert a is not None and b is not None
    assert a.key == b.key == "script,build,type,npm,"


def test_required_primitives_get_fallbacks() -> None:
    rep = CollectingReporter()
    k = create_task_identifier({"type": "kinds"}, _registry().get, rep)
    assert k is not None
    assert k.key == "count,0,flag,false,level,0,name,,type,kinds,"
    assert rep.ok


def test_null_value_counts_as_missing() -> None:
    rep = CollectingReporter()
    k = create_task_identifier({"type": "npm", "script": None}, _registry().get, rep)
    assert k is not None
    assert k.key == "script,,type,npm,"


def test_optional_missing_property_is_omitted() -> None:
    literal = normalize_literal({"type": "npm", "script": "build"}, _registry().get("npm"))
    assert literal == {"type": "npm", "script": "build"}
    assert "path" not in literal


def test_undeclared_properties_and_stale_key_are_dropped() -> None:
    raw = {"type": "npm", "script": "build", "label": "Build it", "_key": "stale"}
    k = create_task_identifier(raw, _registry().get, CollectingReporter())
    assert k is not None
    assert k.key == "script,build,type,npm,"


def test_unresolvable_required_property_reports_once() -> None:
    rep = CollectingReporter()
    raw = {"type": "gulp", "task": "lint"}
    assert create_task_identifier(raw, _registry().get, rep) is None
    assert len(rep.errors) == 1
    msg = rep.errors[0]
    assert "'files'" in msg
    assert "'gulp'" in msg
    assert '{"type":"gulp","task":"lint"}' in msg


def test_supplied_value_satisfies_kind_without_fallback() -> None:
    rep = CollectingReporter()
    k = create_task_identifier({"type": "gulp", "task": "lint", "files": ["a.js"]}, _registry().get, rep)
    assert k is not None
    assert k.key == "files,0,a.js,,task,lint,type,gulp,"
    assert rep.ok


def test_kind_list_and_missing_kind_are_unresolvable() -> None:
    reg = DefinitionRegistry(
        [
            TaskDefinition("a", ("p",), {"p": PropertySchema(type=("string", "null"))}),
            TaskDefinition("b", ("p",), {"p": PropertySchema()}),
        ]
    )
    for t in ("a", "b"):
        rep = CollectingReporter()
        assert create_task_identifier({"type": t}, reg.get, rep) is None
        assert len(rep.errors) == 1


def test_explicit_null_default_is_used() -> None:
    reg = DefinitionRegistry([TaskDefinition("t", ("p",), {"p": PropertySchema(type="object", default=None)})])
    rep = CollectingReporter()
    k = create_task_identifier({"type": "t"}, reg.get, rep)
    assert k is not None
    assert k.key == "p,null,type,t,"


def test_default_is_deep_copied() -> None:
    default = {"env": {"A": "1"}}
    definition = TaskDefinition("t", ("opts",), {"opts": PropertySchema(type="object", default=default)})
    literal = normalize_literal({"type": "t"}, definition)
    assert literal["opts"] == default
    assert literal["opts"] is not default
    assert literal["opts"]["env"] is not default["env"]


def test_definition_type_spelling_wins() -> None:
    definition = TaskDefinition(
        "npm",
        ("script",),
        {"script": PropertySchema(type="string"), "type": PropertySchema(type="string")},
    )

    def lookup(t: str) -> Optional[TaskDefinition]:
        return definition if t.lower() == "npm" else None

    k = create_task_identifier({"type": "NPM", "script": "build"}, lookup, CollectingReporter())
    assert k is not None
    assert k.type == "npm"
    assert k.key == "script,build,type,npm,"


def test_unknown_type_is_keyed_as_is() -> None:
    raw = {"type": "custom", "b": [1, 2], "a": {"x": "y"}, "_key": "stale"}
    rep = CollectingReporter()
    k = create_task_identifier(raw, _registry().get, rep)
    expected = make_keyed({"type": "custom", "b": [1, 2], "a": {"x": "y"}})
    assert k == expected
    assert k is not None and k.key == "a,x,y,,b,0,1,1,2,,type,custom,"
    assert k.type == "custom"
    assert raw["_key"] == "stale"
    assert rep.ok


def test_missing_type_is_keyed_as_is() -> None:
    k = create_task_identifier({"a": 1}, _registry().get, CollectingReporter())
    assert k is not None
    assert k.key == "a,1,"
    assert k.type is None


def test_normalization_is_repeatable() -> None:
    reg = _registry()
    raw = {"type": "shell", "command": "make"}
    a = create_task_identifier(raw, reg.get, CollectingReporter())
    b = create_task_identifier(raw, reg.get, CollectingReporter())
    assert a == b
    assert a is not b


def test_unreportable_keys_still_report_once() -> None:
    rep = CollectingReporter()
    raw = {"type": "gulp", "task": "lint", (1, 2): "x"}
    assert create_task_identifier(raw, _registry().get, rep) is None
    assert len(rep.errors) == 1
    assert '{"type":"gulp","task":"lint"}' in rep.errors[0]


def test_non_string_type_is_carried_unchanged() -> None:
    k = create_task_identifier({"type": 7, "a": 1}, _registry().get, CollectingReporter())
    assert k is not None
    assert k.key == "a,1,type,7,"
    assert k.type == 7
