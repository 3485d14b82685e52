from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, List

# Fire-and-forget error sink: receives one message per unusable identifier.
Reporter = Callable[[str], None]


def stderr_reporter(message: str) -> None:
    print(message, file=sys.stderr)


@dataclass
class CollectingReporter:
    """Keeps reported messages; pass the instance itself as the reporter."""

    errors: List[str] = field(default_factory=list)

    def __call__(self, message: str) -> None:
        self.errors.append(message)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0
