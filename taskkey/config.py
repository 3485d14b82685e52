from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Sequence

DEFINITIONS_ENV = "TASKKEY_DEFINITIONS"
STRICT_ENV = "TASKKEY_STRICT"


def _truthy(v: str) -> bool:
    s = v.strip().lower()
    return s in ("1", "true", "yes", "y", "on")


def definition_paths(cli_paths: Optional[Sequence[str]] = None) -> List[Path]:
    """
    Definition documents to load, in order.

    Controls:
      - CLI: --definitions (repeatable) wins when given
      - Env: TASKKEY_DEFINITIONS, os.pathsep-separated

    Neither set => no definitions (every type keyed as-is).
    """
    if cli_paths:
        return [Path(p) for p in cli_paths]

    v = os.environ.get(DEFINITIONS_ENV)
    if not v:
        return []
    return [Path(p) for p in v.split(os.pathsep) if p.strip()]


def strict_enabled(*, cli_strict: bool = False) -> bool:
    """
    Default: OFF (unusable identifiers are dropped and reported).

    Controls:
      - CLI: --strict enables
      - Env: TASKKEY_STRICT truthy value enables

    Unknown env values => default OFF.
    """
    if cli_strict:
        return True

    v = os.environ.get(STRICT_ENV)
    if v is None:
        return False
    return _truthy(v)
