"""watch() — explicit, named change subscriptions on a reactive state.

A watcher subscribes only to the keys it names. The callback body is not
tracked, so reading other reactive keys inside it adds no dependencies.
Nothing runs at registration; the callback gets (new, old) on each later
change that alters the watched value.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from reactform._tracking import begin_batch, end_batch
from reactform.effect import _DataReaction
from reactform.paths import get_path

WatchCallback = Callable[[Any, Any], None]


class WatchHandle:
    """Disposable handle for the watchers registered by one watch() call."""

    __slots__ = ("_reactions", "_disposed")

    def __init__(self, reactions: list[_DataReaction]) -> None:
        self._reactions = reactions
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Stop every watcher of this handle. Safe to call twice."""
        self._disposed = True
        for r in self._reactions:
            r.dispose()

    def __call__(self) -> None:
        self.dispose()

    def __len__(self) -> int:
        return len(self._reactions)


def _getter(state: Any, key: Any) -> Callable[[], Any]:
    if callable(key):
        return key
    if isinstance(key, str) and "." in key:
        return lambda: get_path(state, key)
    return lambda: state[key]


def watch(state: Any, callbacks: Mapping[Any, WatchCallback]) -> WatchHandle:
    """Call callbacks[key](new, old) whenever `key` of `state` changes.

    Keys are plain keys, dotted paths into nested values, or zero-argument
    getters for derived values.

    Usage:
        user = wrap({"name": "Ada", "address": {"city": "London"}})

        stop = watch(user, {
            "name": lambda new, old: print(f"{old} -> {new}"),
            "address.city": lambda new, old: print("moved to", new),
        })

        user.name = "Grace"  # prints "Ada -> Grace"
        stop()
    """
    reactions = []
    begin_batch()
    try:
        for key, callback in callbacks.items():
            r = _DataReaction(_getter(state, key), callback, pass_old=True)
            r._prime()
            reactions.append(r)
    finally:
        end_batch()
    return WatchHandle(reactions)
