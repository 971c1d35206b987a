"""
Priority-ordered, in-process event dispatch.

Each event is its own instance holding (handler, priority) registrations; there is
no global bus.
"""

from modhost.core.events.bus import CancelablePriorityEvent, PriorityEvent, TypedPriorityEvent
from modhost.core.events.models import CancelableEventArgs, EventArgs, EventPriority

__all__ = [
    "CancelableEventArgs",
    "CancelablePriorityEvent",
    "EventArgs",
    "EventPriority",
    "PriorityEvent",
    "TypedPriorityEvent",
]
