"""Listener registry for engine state changes."""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

TInstance = TypeVar("TInstance")

ChangeListener = Callable[[TInstance, bool], None]


class ChangeNotifier(Generic[TInstance]):
    """Call every registered listener with ``(instance, is_synchronous)``.

    ``is_synchronous`` is True for direct mutations the UI should reflect
    immediately and False for passive viewport observation. Notifications
    are never deduplicated.
    """

    def __init__(self) -> None:
        self._listeners: List[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener and return its unsubscribe function.

        The unsubscribe function may be called any number of times.
        """
        self._listeners.append(listener)
        subscribed = [True]

        def unsubscribe() -> None:
            if not subscribed[0]:
                return
            subscribed[0] = False
            try:
                self._listeners.remove(listener)
            except ValueError:
                logger.debug("Listener already removed by clear()")

        return unsubscribe

    def notify(self, instance: Any, is_synchronous: bool) -> None:
        # Snapshot so listeners may unsubscribe while being notified.
        for listener in tuple(self._listeners):
            listener(instance, is_synchronous)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)
