from __future__ import annotations

from enum import IntEnum

from modhost.core.errors import EventArgsSealedError


class EventPriority(IntEnum):
    """
    Dispatch tiers. Lower values run first.

    MONITOR always runs last; on cancelable events it still runs after a cancel
    and may not change the outcome.
    """

    HIGHEST = 1
    HIGHER = 2
    HIGH = 3
    NORMAL = 4
    LOW = 5
    LOWER = 6
    LOWEST = 7
    MONITOR = 10


class EventArgs:
    """Base payload for events. Subclass (dataclasses work) for typed payloads."""


class CancelableEventArgs(EventArgs):
    """
    Payload carrying a cooperative cancel flag.

    The flag lives in class-level defaults so dataclass subclasses do not need to
    call an ``__init__`` here.
    """

    _cancel = False
    _sealed = False

    @property
    def cancel(self) -> bool:
        return bool(self._cancel)

    @cancel.setter
    def cancel(self, value: bool) -> None:
        if self._sealed:
            raise EventArgsSealedError(requested=bool(value))
        self._cancel = bool(value)

    def _seal(self) -> None:
        self._sealed = True

    def _unseal(self) -> None:
        self._sealed = False
