"""Computed values — derived state with automatic dependency tracking.

A Computed wraps a function. When evaluated, it tracks which reactive keys
the function reads and caches the result. When any dependency changes,
the cached value is invalidated. On next read, it re-evaluates.

Computed values are lazy: they only recompute when read, however many
times their dependencies changed in between.

All state lives in _anchor; instances are thin handles holding an _id.
"""

from __future__ import annotations

import weakref
from typing import Callable, Generic, TypeVar

from reactform import _anchor
from reactform._tracking import current_derivation, notify_all
from reactform.errors import CircularDependencyError

T = TypeVar("T")

_UNSET = object()


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_id", "__weakref__")

    _lazy = True

    def __init__(self, fn: Callable[[], T]) -> None:
        self._id = _anchor.new_id()
        _anchor.derivation_fns[self._id] = fn
        _anchor.cached_values[self._id] = _UNSET
        _anchor.dirty_flags[self._id] = True
        _anchor.dependencies[self._id] = set()
        _anchor.observers[self._id] = {}
        weakref.finalize(self, _anchor.release, self._id)

    @property
    def _fn(self) -> Callable[[], T]:
        return _anchor.derivation_fns[self._id]

    @property
    def _dependencies(self) -> set:
        return _anchor.dependencies[self._id]

    @property
    def dirty(self) -> bool:
        return _anchor.dirty_flags[self._id]

    def get(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        derivation = current_derivation.get()
        if derivation is not None:
            _anchor.observers[self._id][derivation] = None
            derivation._dependencies.add(self)

        if _anchor.dirty_flags[self._id]:
            self._recompute()

        return _anchor.cached_values[self._id]

    @property
    def value(self) -> T:
        return self.get()

    def peek(self) -> T:
        """Read the value without registering the caller as a dependent."""
        if _anchor.dirty_flags[self._id]:
            self._recompute()
        return _anchor.cached_values[self._id]

    def _recompute(self) -> None:
        """Re-evaluate the function, tracking dependencies."""
        if self._id in _anchor.computing:
            raise CircularDependencyError(
                f"Computed {getattr(self._fn, '__name__', self._fn)!s} read itself while evaluating"
            )

        for dep in _anchor.dependencies[self._id]:
            dep._remove_observer(self)
        _anchor.dependencies[self._id].clear()

        _anchor.computing.add(self._id)
        token = current_derivation.set(self)
        try:
            _anchor.cached_values[self._id] = self._fn()
        finally:
            current_derivation.reset(token)
            _anchor.computing.discard(self._id)

        _anchor.dirty_flags[self._id] = False

    def _run(self) -> None:
        """Called by the scheduler when a dependency changed.

        For Computed, we mark dirty and propagate to our own observers.
        Recomputation waits for the next .get().
        """
        if not _anchor.dirty_flags[self._id]:
            _anchor.dirty_flags[self._id] = True
            observers = list(_anchor.observers[self._id])
            if observers:
                notify_all(observers)

    def _remove_observer(self, observer) -> None:
        _anchor.observers[self._id].pop(observer, None)

    def dispose(self) -> None:
        """Disconnect from all dependencies. The computed becomes inert."""
        for dep in _anchor.dependencies[self._id]:
            dep._remove_observer(self)
        _anchor.dependencies[self._id].clear()
        _anchor.observers[self._id].clear()
        _anchor.dirty_flags[self._id] = True
        _anchor.cached_values[self._id] = _UNSET

    def __repr__(self) -> str:
        dirty = _anchor.dirty_flags[self._id]
        val = _anchor.cached_values[self._id]
        state = "dirty" if dirty else f"cached={val!r}"
        return f"Computed({getattr(self._fn, '__name__', 'fn')}, {state})"


def computed(fn: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed from a function.

    Usage:
        state = wrap({"count": 0})

        @computed
        def doubled():
            return state.count * 2

        doubled.get()  # 0
        state.count = 5
        doubled.get()  # 10
    """
    return Computed(fn)
