"""Fan out session events to subscribed observers.

The router lives *outside* BoardSession so that subscription bookkeeping and
error isolation are declared in a single place and can be unit-tested by
feeding synthetic Event objects.
"""

from __future__ import annotations

import logging
from typing import Callable, FrozenSet, List, Tuple

from .events import Category, Event

logger = logging.getLogger(__name__)

Observer = Callable[[Event], None]


class EventRouter:
    """Session-scoped helper that delivers `Event` objects to observers."""

    def __init__(self) -> None:
        self._subs: List[Tuple[Observer, FrozenSet[Category]]] = []

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------
    def subscribe(self, observer: Observer, *categories: Category) -> None:
        """Register *observer* for *categories* (all categories when none given)."""
        wanted = frozenset(categories) if categories else frozenset(Category)
        self._subs.append((observer, wanted))

    def unsubscribe(self, observer: Observer) -> None:
        self._subs = [(cb, cats) for cb, cats in self._subs if cb != observer]

    def clear(self) -> None:
        self._subs.clear()

    def __len__(self) -> int:
        return len(self._subs)

    # ------------------------------------------------------------------
    # Public dispatch entry
    # ------------------------------------------------------------------
    def __call__(self, ev: Event) -> None:  # BoardSession calls router(event)
        self.dispatch(ev)

    def dispatch(self, ev: Event) -> None:
        for cb, cats in tuple(self._subs):
            if ev.category not in cats:
                continue
            try:
                cb(ev)
            except Exception:  # noqa: BLE001
                # Don't let a misbehaving observer starve the others
                logger.exception("Event routing failed for %s", ev)
