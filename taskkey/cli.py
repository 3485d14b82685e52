from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

from .config import definition_paths, strict_enabled
from .definitions import DefinitionError, DefinitionRegistry, load_document
from .dedupe import dedupe_identifiers
from .normalize import create_task_identifier
from .reporting import stderr_reporter


def _read_text(path: str) -> str:
    if path == "-":
        try:
            return sys.stdin.read()
        except UnicodeDecodeError as e:
            raise SystemExit(f"cannot read stdin: {e}")
    p = Path(path)
    if not p.exists():
        raise SystemExit(f"no such file: {p}")
    try:
        return p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SystemExit(f"cannot read {p}: {e}")


def _read_identifier(path: str) -> Mapping[str, Any]:
    try:
        doc = json.loads(_read_text(path))
    except ValueError as e:
        raise SystemExit(f"invalid JSON identifier: {e}")
    if not isinstance(doc, dict):
        raise SystemExit("identifier must decode to a JSON object")
    return doc


def _read_identifiers(path: str) -> List[Mapping[str, Any]]:
    # JSON list, or JSON Lines (one object per non-blank line).
    txt = _read_text(path)
    try:
        doc = json.loads(txt)
        items = doc if isinstance(doc, list) else [doc]
    except ValueError:
        try:
            items = [json.loads(line) for line in txt.splitlines() if line.strip()]
        except ValueError as e:
            raise SystemExit(f"invalid JSON Lines input: {e}")
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise SystemExit(f"identifier #{i} is not a JSON object")
    return items


def _registry(args: argparse.Namespace) -> DefinitionRegistry:
    try:
        return DefinitionRegistry.from_documents(definition_paths(args.definitions))
    except DefinitionError as e:
        raise SystemExit(str(e))


def cmd_key(args: argparse.Namespace) -> int:
    reg = _registry(args)
    k = create_task_identifier(_read_identifier(args.path), reg.get, stderr_reporter)
    if k is None:
        return 2
    print(k.key)
    return 0


def cmd_normalize(args: argparse.Namespace) -> int:
    reg = _registry(args)
    k = create_task_identifier(_read_identifier(args.path), reg.get, stderr_reporter)
    if k is None:
        return 2
    print(json.dumps(k.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    return 0


def cmd_dedupe(args: argparse.Namespace) -> int:
    reg = _registry(args)
    r = dedupe_identifiers(_read_identifiers(args.path), reg.get, stderr_reporter)
    payload = {"groups": r.groups, "dropped": r.dropped}
    print(json.dumps(payload, separators=(",", ":"), ensure_ascii=False))
    if not r.ok and strict_enabled(cli_strict=args.strict):
        return 2
    return 0


def cmd_definitions_check(args: argparse.Namespace) -> int:
    rc = 0
    for path in args.paths:
        try:
            load_document(Path(path))
        except DefinitionError as e:
            print(e, file=sys.stderr)
            rc = 2
    if rc == 0:
        print("OK")
    return rc


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="taskkey", description="Canonical task identifier keys.")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_definitions(sp: argparse.ArgumentParser) -> None:
        sp.add_argument(
            "--definitions",
            action="append",
            help="Task definitions JSON document (repeatable; default: $TASKKEY_DEFINITIONS).",
        )

    p_key = sub.add_parser("key", help="Print the canonical key of one identifier.")
    p_key.add_argument("path", nargs="?", default="-", help="Identifier JSON file ('-' = stdin).")
    add_definitions(p_key)
    p_key.set_defaults(fn=cmd_key)

    p_norm = sub.add_parser("normalize", help="Print the keyed identifier as JSON.")
    p_norm.add_argument("path", nargs="?", default="-", help="Identifier JSON file ('-' = stdin).")
    add_definitions(p_norm)
    p_norm.set_defaults(fn=cmd_normalize)

    p_dd = sub.add_parser("dedupe", help="Group identifiers that denote the same task.")
    p_dd.add_argument("path", nargs="?", default="-", help="JSON list or JSON Lines ('-' = stdin).")
    add_definitions(p_dd)
    p_dd.add_argument(
        "--strict",
        action="store_true",
        help="Exit 2 if any identifier had to be dropped (also: TASKKEY_STRICT).",
    )
    p_dd.set_defaults(fn=cmd_dedupe)

    p_defs = sub.add_parser("definitions", help="Task definition documents.")
    ds = p_defs.add_subparsers(dest="definitions_cmd", required=True)

    ds_check = ds.add_parser("check", help="Validate definition documents.")
    ds_check.add_argument("paths", nargs="+")
    ds_check.set_defaults(fn=cmd_definitions_check)

    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    p = build_parser()
    args = p.parse_args(argv)
    raise SystemExit(args.fn(args))


if __name__ == "__main__":
    main()
