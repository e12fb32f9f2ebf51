"""Action dispatch, in-flight guarding, and front-end notifications."""

from .bus import EVENTS, EventBus
from .dispatcher import ActionDispatcher, Confirm, DispatchResult
from .guard import InFlightGuard

__all__ = [
    "ActionDispatcher",
    "DispatchResult",
    "Confirm",
    "EventBus",
    "EVENTS",
    "InFlightGuard",
]
