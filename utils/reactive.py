"""
Minimal reactive state container.

Subclasses declare the public fields that make up their observable state in
``_reactive_fields``. Assigning a new value to one of those fields notifies
every subscriber with ``(name, old_value, new_value)``; assigning an equal
value is a no-op. Everything runs on the caller's thread, so subscribers see
changes in the order they were made.
"""

import logging
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, Any, Any], None]

_UNSET = object()


class ReactiveState:
    """Base class for observable state holders."""

    _reactive_fields: Tuple[str, ...] = ()

    def __init__(self):
        object.__setattr__(self, "_subscribers", [])

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in self._reactive_fields:
            object.__setattr__(self, name, value)
            return

        old = self.__dict__.get(name, _UNSET)
        object.__setattr__(self, name, value)
        if old is _UNSET or (old is not value and old != value):
            self._notify(name, None if old is _UNSET else old, value)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register ``callback`` for field changes.

        Returns:
            A function that removes the subscription. Calling it twice is safe.
        """
        subscribers: List[Subscriber] = self._subscribers
        subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in subscribers:
                subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> Dict[str, Any]:
        """Current values of all reactive fields."""
        return {name: getattr(self, name) for name in self._reactive_fields}

    def _notify(self, name: str, old: Any, new: Any) -> None:
        for callback in list(self._subscribers):
            try:
                callback(name, old, new)
            except Exception:
                logger.exception(f"Subscriber {callback!r} failed on change to '{name}'")
