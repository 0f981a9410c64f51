"""Last-value tracking with a single live-update subscriber.

Each Counter/Gauge wrapper owns one ``Observable``. It keeps the last known
value per label tuple and, while a subscriber is attached, forwards every
update as ``callback(label_values, new_value)``.

Concurrency:
  * subscribe/unsubscribe flip the active slot under ``_state_lock`` so only
    one subscriber can ever win the compare-and-set.
  * apply_delta/set_value perform the read-modify-write of a key under
    ``_values_lock``; concurrent deltas on the same key are never lost.
  * The callback runs outside both locks and receives the value computed by
    its own update, so a slow subscriber never blocks writers.
"""
from __future__ import annotations

import threading
from collections.abc import Callable, Sequence

from consulprom.utils.exceptions import SubscriberActiveError

from .labels import label_key

Subscriber = Callable[[tuple[str, ...], float], None]


class Observable:
    def __init__(self) -> None:
        self._state_lock = threading.Lock()
        self._values_lock = threading.Lock()
        self._active = False
        self._subscriber: Subscriber | None = None
        self._values: dict[str, float] = {}

    @property
    def active(self) -> bool:
        return self._active

    def subscribe(self, callback: Subscriber) -> None:
        """Attach ``callback``; raises SubscriberActiveError if one is attached."""
        with self._state_lock:
            if self._active:
                raise SubscriberActiveError("Observable supports a single subscriber")
            self._subscriber = callback
            self._active = True

    def unsubscribe(self) -> None:
        with self._state_lock:
            self._active = False
            self._subscriber = None

    def _current_subscriber(self) -> Subscriber | None:
        with self._state_lock:
            return self._subscriber if self._active else None

    def apply_delta(self, label_values: Sequence[str], delta: float) -> float:
        """Add ``delta`` to the stored value (default 0) and return the new total."""
        key = label_key(label_values)
        with self._values_lock:
            new_val = self._values.get(key, 0.0) + float(delta)
            self._values[key] = new_val
        self._notify(label_values, new_val)
        return new_val

    def set_value(self, label_values: Sequence[str], value: float) -> float:
        key = label_key(label_values)
        new_val = float(value)
        with self._values_lock:
            self._values[key] = new_val
        self._notify(label_values, new_val)
        return new_val

    def get(self, label_values: Sequence[str], default: float = 0.0) -> float:
        with self._values_lock:
            return self._values.get(label_key(label_values), default)

    def snapshot(self) -> dict[str, float]:
        with self._values_lock:
            return dict(self._values)

    def _notify(self, label_values: Sequence[str], value: float) -> None:
        callback = self._current_subscriber()
        if callback is None:
            return
        callback(tuple(label_values), value)


__all__ = ["Observable", "Subscriber"]
