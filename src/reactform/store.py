"""Store — reactive state with getters, actions and subscription lifecycle.

A Store wraps one reactive state, exposes named Computed getters and
batched actions, and owns the effects and watchers registered through it.
dispose() stops all of them at once.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Mapping

from reactform.batch import action, mutation
from reactform.computed import Computed
from reactform.effect import effect as _effect
from reactform.paths import SEPARATOR, get_path, set_path
from reactform.reactive import ReactiveDict, to_plain, wrap
from reactform.watch import watch as _watch

logger = logging.getLogger("reactform.store")


def _assign(state: ReactiveDict, key: str, value: object) -> None:
    if SEPARATOR in key:
        set_path(state, key, value)
    else:
        state[key] = value


@mutation
def patch(state: ReactiveDict, updates: Mapping[str, Any]) -> ReactiveDict:
    """Apply updates to state in one batch.

    Keys may be dotted paths. A callable value is called with the key's
    current value and its result is stored instead, so a callable itself
    can't be stored this way.

    Usage:
        patch(state, {"count": lambda n: n + 1, "user.name": "Ada"})
    """
    for key, value in updates.items():
        if callable(value):
            value = value(get_path(state, key))
        _assign(state, key, value)
    return state


class Store:
    """Key-based reactive container with getters, actions and subscription lifecycle."""

    def __init__(
        self,
        initial: dict[str, object] | None = None,
        *,
        getters: Mapping[str, Callable[[ReactiveDict], Any]] | None = None,
        actions: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        self.state: ReactiveDict = wrap(to_plain(dict(initial or {})))
        self._getters: dict[str, Computed] = {}
        self._actions: dict[str, Callable[..., Any]] = {}
        self._reaction_disposers: list = []
        for name, fn in (getters or {}).items():
            self._getters[name] = Computed(functools.partial(fn, self.state))
        for name, fn in (actions or {}).items():
            self._actions[name] = action(functools.partial(fn, self))

    def get(self, key: str) -> object:
        return get_path(self.state, key)

    def set(self, key: str, value: object) -> None:
        _assign(self.state, key, value)

    def update(self, values: Mapping[str, Any]) -> None:
        """Batched patch(); callable values receive the previous value."""
        patch(self.state, values)

    def getter(self, name: str) -> object:
        return self._getters[name].get()

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._getters:
            return self._getters[name].get()
        if name in self._actions:
            return self._actions[name]
        raise AttributeError(f"{type(self).__name__!r} has no getter or action {name!r}")

    def effect(self, fn: Callable[[], None]):
        """effect() whose lifetime is tied to this store."""
        e = _effect(fn)
        self._reaction_disposers.append(e)
        return e

    def watch(self, callbacks: Mapping[Any, Callable[[Any, Any], None]]):
        """watch() on this store's state, tied to this store's lifetime."""
        handle = _watch(self.state, callbacks)
        self._reaction_disposers.append(handle)
        return handle

    def _dispose_reactions(self) -> None:
        for d in self._reaction_disposers:
            try:
                d.dispose()
            except Exception:
                logger.exception("Failed to dispose %r", d)
        self._reaction_disposers.clear()

    def dispose(self) -> None:
        """Stop every owned effect and watcher and detach every getter."""
        count = len(self._reaction_disposers)
        self._dispose_reactions()
        for computed in self._getters.values():
            computed.dispose()
        logger.debug("Disposed store: %d subscriptions, %d getters", count, len(self._getters))
