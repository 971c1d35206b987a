from __future__ import annotations

from typing import Any, List, Tuple

# Bundle payloads built by tests import this module to report lifecycle calls.
EVENTS: List[Tuple[str, Any]] = []


def record(kind: str, value: Any) -> None:
    EVENTS.append((kind, value))


def of_kind(kind: str) -> List[Any]:
    return [v for k, v in EVENTS if k == kind]


def clear() -> None:
    EVENTS.clear()
