from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar, Union

from modhost.core.events.models import CancelableEventArgs, EventArgs, EventPriority
from modhost.core.events.stats import StatsCounter
from modhost.core.logger import get_logger

A = TypeVar("A", bound=EventArgs)
C = TypeVar("C", bound=CancelableEventArgs)

Handler = Callable[[Any, Any], None]


@dataclass
class _Sub:
    handler: Handler
    priority: int
    seq: int = 0


class _PriorityHandlers:
    """
    Shared registration + dispatch machinery for the event variants.

    - registrations are kept sorted by priority; list.sort is stable, so equal
      priorities keep registration order
    - publish iterates a snapshot taken under the lock, so subscribe/unsubscribe
      from another thread (or from inside a handler) never affects an in-flight dispatch
    - handler failures are isolated (logged + counted) and dispatch continues
    """

    def __init__(self, name: str, *, logger: Optional[logging.Logger] = None):
        self.name = str(name)
        self.logger = logger or get_logger("events")
        self._lock = threading.Lock()
        self._subs: List[_Sub] = []
        self._seq = 0
        self._stats = StatsCounter()

    def subscribe(self, handler: Handler, priority: Union[EventPriority, int] = EventPriority.NORMAL) -> None:
        if not callable(handler):
            raise ValueError("handler must be callable")
        prio = EventPriority(int(priority))
        with self._lock:
            self._seq += 1
            self._subs.append(_Sub(handler=handler, priority=int(prio), seq=self._seq))
            self._subs.sort(key=lambda s: s.priority)
            self._stats.set_subscribers(len(self._subs))

    def unsubscribe(self, handler: Handler) -> int:
        """Remove the earliest registration of ``handler``; returns 1, or 0 if it was not subscribed."""
        with self._lock:
            matches = [s for s in self._subs if s.handler == handler]
            if not matches:
                return 0
            first = min(matches, key=lambda s: s.seq)
            self._subs = [s for s in self._subs if s is not first]
            self._stats.set_subscribers(len(self._subs))
        return 1

    def list_subscribers(self) -> List[Dict[str, Any]]:
        with self._lock:
            subs = list(self._subs)
        return [{"priority": EventPriority(s.priority).name, "handler": getattr(s.handler, "__name__", "handler")} for s in subs]

    def get_stats(self) -> Dict[str, Any]:
        st = self._stats.snapshot()
        return {
            "name": self.name,
            "published_total": st.published_total,
            "delivered_total": st.delivered_total,
            "handler_errors_total": st.handler_errors_total,
            "canceled_total": st.canceled_total,
            "subscribers": st.subscribers,
            "delivered_by_priority": st.delivered_by_priority,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._subs)

    # ---- internals ----
    def _snapshot(self) -> List[_Sub]:
        with self._lock:
            return list(self._subs)

    def _safe_handle(self, sub: _Sub, sender: Any, args: Any) -> None:
        try:
            sub.handler(sender, args)
            self._stats.inc_delivered(EventPriority(sub.priority).name)
        except Exception as e:  # noqa: BLE001
            self._stats.inc_handler_error()
            self.logger.error(
                "Exception while handling event %s (handler=%s): %s",
                self.name,
                getattr(sub.handler, "__name__", "handler"),
                e,
                exc_info=True,
            )

    def _dispatch(self, sender: Any, args: Any) -> None:
        self._stats.inc_published()
        for s in self._snapshot():
            self._safe_handle(s, sender, args)


class PriorityEvent(_PriorityHandlers):
    """Event without a payload; handlers receive ``(sender, EventArgs())``."""

    def publish(self, sender: Any = None) -> None:
        self._dispatch(sender, EventArgs())


class TypedPriorityEvent(_PriorityHandlers, Generic[A]):
    """Event carrying a payload of ``args_type``; handlers receive ``(sender, args)``."""

    def __init__(self, name: str, args_type: Type[A] = EventArgs, *, logger: Optional[logging.Logger] = None):  # type: ignore[assignment]
        super().__init__(name, logger=logger)
        self.args_type = args_type

    def _check_args(self, args: Any) -> None:
        if not isinstance(args, self.args_type):
            raise TypeError(f"event {self.name} expects {self.args_type.__name__}, got {type(args).__name__}")

    def publish(self, sender: Any, args: A) -> None:
        self._check_args(args)
        self._dispatch(sender, args)


class CancelablePriorityEvent(TypedPriorityEvent[C]):
    """
    Event whose payload may be canceled by a handler.

    Once ``args.cancel`` is set no further non-MONITOR handler runs. MONITOR
    handlers then run regardless, with the flag sealed. ``publish`` returns True
    when the event was not canceled.
    """

    def __init__(self, name: str, args_type: Type[C] = CancelableEventArgs, *, logger: Optional[logging.Logger] = None):  # type: ignore[assignment]
        if not (isinstance(args_type, type) and issubclass(args_type, CancelableEventArgs)):
            raise TypeError("args_type must be a CancelableEventArgs subclass")
        super().__init__(name, args_type, logger=logger)

    def publish(self, sender: Any, args: C) -> bool:
        self._check_args(args)
        self._stats.inc_published()
        subs = self._snapshot()
        monitor = int(EventPriority.MONITOR)

        for s in subs:
            if s.priority == monitor:
                continue
            if args.cancel:
                break
            self._safe_handle(s, sender, args)

        canceled = args.cancel
        if canceled:
            self._stats.inc_canceled()

        args._seal()
        try:
            for s in subs:
                if s.priority == monitor:
                    self._safe_handle(s, sender, args)
        finally:
            args._unseal()
        return not canceled
