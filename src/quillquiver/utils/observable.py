"""
Observable value store.

Holds one immutable state record and notifies subscribers synchronously
whenever it is replaced, so every mutation is visible to all current
subscribers by the time the mutating call returns.
"""

import logging
from typing import Callable, Generic, List, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

StateType = TypeVar('StateType', bound=BaseModel)
Listener = Callable[[StateType], None]


class Observable(Generic[StateType]):
    """Single-writer state container with synchronous change notification."""

    def __init__(self, initial: StateType, name: str = "state"):
        self._value = initial
        self._listeners: List[Listener] = []
        self.name = name

    @property
    def value(self) -> StateType:
        return self._value

    def set(self, new_value: StateType) -> None:
        """Replace the value and notify subscribers if it changed."""
        if new_value == self._value:
            return
        self._value = new_value
        self._notify()

    def update(self, **changes) -> StateType:
        """Copy the current value with ``changes`` applied and publish it."""
        self.set(self._value.model_copy(update=changes))
        return self._value

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A callable that removes the listener. Calling it twice is harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._value)
            except Exception:
                logger.exception(f"[Observable] Listener failed for {self.name}")
