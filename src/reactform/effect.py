"""Effects — side effects triggered by reactive state changes.

Unlike Computed (which is lazy and only evaluates on read), an Effect
eagerly re-runs whenever its tracked dependencies change.

Two flavors:
- effect(fn): runs fn immediately, re-runs when any reactive key it read changes.
- reaction(data_fn, effect_fn): tracks data_fn, calls effect_fn with the new value
  only when data_fn's result changes.

All state lives in _anchor; instances are thin handles holding an _id.
"""

from __future__ import annotations

import weakref
from typing import Any, Callable, TypeVar

from reactform import _anchor
from reactform._tracking import begin_batch, current_derivation, end_batch, untrack

T = TypeVar("T")


class _Derivation:
    """Shared lifecycle of eager derivations: track, run, dispose."""

    __slots__ = ("_id", "__weakref__")

    _lazy = False

    def __init__(self, fn: Callable) -> None:
        self._id = _anchor.new_id()
        _anchor.derivation_fns[self._id] = fn
        _anchor.dependencies[self._id] = set()
        _anchor.disposed[self._id] = False
        weakref.finalize(self, _anchor.release, self._id)

    @property
    def _fn(self) -> Callable:
        return _anchor.derivation_fns[self._id]

    @property
    def _dependencies(self) -> set:
        return _anchor.dependencies[self._id]

    @property
    def disposed(self) -> bool:
        return _anchor.disposed[self._id]

    def _clear_dependencies(self) -> None:
        for dep in _anchor.dependencies[self._id]:
            dep._remove_observer(self)
        _anchor.dependencies[self._id].clear()

    def _track(self, fn: Callable[[], T]) -> T:
        """Re-run fn with this derivation as the active reader."""
        self._clear_dependencies()
        token = current_derivation.set(self)
        try:
            return fn()
        finally:
            current_derivation.reset(token)

    def dispose(self) -> None:
        """Stop this derivation. Disconnects from all dependencies."""
        _anchor.disposed[self._id] = True
        self._clear_dependencies()

    def __call__(self) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "disposed" if _anchor.disposed[self._id] else "active"
        return f"{type(self).__name__}({getattr(self._fn, '__name__', 'fn')}, {state})"


class Effect(_Derivation):
    """A reactive side effect that re-runs when its dependencies change.

    Effects run eagerly (unlike Computed which is lazy). Calling the effect
    object stops it.
    """

    __slots__ = ()

    def _run(self) -> None:
        """Re-evaluate the effect function, re-tracking dependencies."""
        if _anchor.disposed[self._id]:
            return
        self._track(self._fn)


class _DataReaction(_Derivation):
    """Internal: reaction(data_fn, effect_fn) implementation.

    Tracks data_fn's dependencies. When they change, re-runs data_fn.
    If the result differs from last time, calls effect_fn with the new
    value (and the previous one when `pass_old` is set).
    """

    __slots__ = ("_effect_fn", "_last_value", "_initialized", "_pass_old")

    def __init__(self, data_fn: Callable, effect_fn: Callable, *, pass_old: bool = False) -> None:
        super().__init__(data_fn)
        self._effect_fn = effect_fn
        self._last_value: Any = None
        self._initialized = False
        self._pass_old = pass_old

    def _run(self) -> None:
        if _anchor.disposed[self._id]:
            return

        new_value = self._track(self._fn)

        if not self._initialized or not _unchanged(self._last_value, new_value):
            old_value = self._last_value
            self._last_value = new_value
            self._initialized = True
            if self._pass_old:
                untrack(lambda: self._effect_fn(new_value, old_value))
            else:
                untrack(lambda: self._effect_fn(new_value))

    def _prime(self) -> None:
        """Run data_fn to establish deps, but suppress the initial effect."""
        self._last_value = self._track(self._fn)
        self._initialized = True


def _unchanged(old: Any, new: Any) -> bool:
    return old is new or old == new


def effect(fn: Callable[[], None]) -> Effect:
    """Run fn immediately, then re-run whenever any reactive key it reads changes.

    Returns the Effect; call it (or .dispose()) to stop.

    Usage:
        state = wrap({"count": 0})
        log = []

        stop = effect(lambda: log.append(state.count))
        # log == [0]: the first run happens right away

        state.count = 1
        # log == [0, 1]

        stop()
        state.count = 2
        # log == [0, 1], no more runs

    If the first run raises, the effect stays subscribed to what it read
    before raising. The exception carries it as `exc.effect` so the caller
    can still stop it.
    """
    e = Effect(fn)
    # Writes made by the first run are flushed after it returns, not inside it.
    begin_batch()
    try:
        e._run()
    except Exception as exc:
        exc.effect = e
        raise
    finally:
        end_batch()
    return e


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
) -> _DataReaction:
    """Track data_fn's reads; call effect_fn when the result changes.

    Unlike effect(), effect_fn only fires when data_fn's *return value* changes,
    not on every dependency notification. effect_fn's own reads are not tracked.

    Returns the reaction (call it, or .dispose(), to stop).

    Usage:
        person = wrap({"first": "Alice", "last": "Smith"})

        names = []
        r = reaction(
            lambda: f"{person.first} {person.last}",
            lambda name: names.append(name),
        )
        # names == []: data_fn ran, effect_fn did not

        person.first = "Bob"
        # names == ["Bob Smith"]

        r.dispose()
    """
    r = _DataReaction(data_fn, effect_fn)
    begin_batch()
    try:
        if fire_immediately:
            r._run()
        else:
            r._prime()
    finally:
        end_batch()
    return r
