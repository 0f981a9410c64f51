"""Counter and Gauge wrappers around registered prometheus_client families.

A wrapper binds:
  * the registered family (``prometheus_client.Counter`` / ``Gauge``),
  * a base tuple of label values fixed at creation,
  * the family's ``Observable``,
  * the registry ``active`` flag (False means every update is a no-op).

``with_labels`` returns a lightweight view over the same family and
Observable with extra base label values appended; nothing new is registered.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from .observable import Observable, Subscriber


def _series(family: Any, values: Sequence[str]) -> Any:
    # Unlabelled families are updated directly; labelled ones via a child.
    if not values:
        return family
    return family.labels(*values)


@dataclass(frozen=True)
class _Instrument:
    family: Any
    active: bool = True
    base_labels: tuple[str, ...] = ()
    observable: Observable = field(default_factory=Observable, compare=False)

    @property
    def name(self) -> str:
        return getattr(self.family, '_name', '')

    @property
    def label_names(self) -> tuple[str, ...]:
        """Label names the family was registered with."""
        return tuple(getattr(self.family, '_labelnames', ()))

    def _full_labels(self, values: Sequence[str]) -> tuple[str, ...]:
        return self.base_labels + tuple(str(v) for v in values)

    def subscribe(self, callback: Subscriber) -> None:
        self.observable.subscribe(callback)

    def unsubscribe(self) -> None:
        self.observable.unsubscribe()

    @property
    def subscribed(self) -> bool:
        return self.observable.active

    def value(self, *values: str) -> float:
        """Last value recorded for ``base_labels + values`` (0.0 if never updated)."""
        return self.observable.get(self._full_labels(values))


@dataclass(frozen=True)
class Counter(_Instrument):
    """Monotonic counter; the exposed series only ever increases."""

    def with_labels(self, *values: str) -> Counter:
        return replace(self, base_labels=self._full_labels(values))

    def increment(self, *values: str) -> None:
        if not self.active:
            return
        labels = self._full_labels(values)
        _series(self.family, labels).inc()
        self.observable.apply_delta(labels, 1.0)

    def add_by(self, n: int, *values: str) -> None:
        if not self.active:
            return
        if n < 0:
            raise ValueError(f"counter {self.name!r} can only increase (got {n})")
        labels = self._full_labels(values)
        _series(self.family, labels).inc(n)
        self.observable.apply_delta(labels, float(n))


@dataclass(frozen=True)
class Gauge(_Instrument):
    """Free-valued gauge."""

    def with_labels(self, *values: str) -> Gauge:
        return replace(self, base_labels=self._full_labels(values))

    def set(self, value: float, *values: str) -> None:
        if not self.active:
            return
        labels = self._full_labels(values)
        _series(self.family, labels).set(value)
        self.observable.set_value(labels, value)

    def increment(self, *values: str) -> None:
        if not self.active:
            return
        labels = self._full_labels(values)
        _series(self.family, labels).inc()
        self.observable.apply_delta(labels, 1.0)

    def decrement(self, *values: str) -> None:
        if not self.active:
            return
        labels = self._full_labels(values)
        _series(self.family, labels).dec()
        self.observable.apply_delta(labels, -1.0)


__all__ = ["Counter", "Gauge"]
