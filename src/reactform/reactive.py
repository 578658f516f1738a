"""Reactive containers — dicts and lists that track their readers.

When a key is read inside an Effect or Computed evaluation, the dependency
is registered automatically. When the key changes, every dependent is
scheduled for re-evaluation.

Containers wrap the caller's dict or list in place. Nested dicts and lists
are wrapped lazily on first access, so `state.user.name = "x"` is observed
too. There is one wrapper per live raw container; the registry holds the
wrappers weakly.

Thread safety: call set_scheduler() once from the owning thread. After that,
every container mutation (assignment, deletion, the mutating dict and list
methods, notify) made from another thread is auto-marshaled. Owning-thread
mutations remain synchronous. Batching APIs (batch, @action, Form and Store
methods) are not marshaled; call them on the owning thread.
"""

from __future__ import annotations

import functools
import threading
import weakref
from collections.abc import MutableMapping, MutableSequence
from typing import Any, Iterator

from reactform._tracking import begin_batch, current_derivation, end_batch, notify_all

# Structure dependency key: len/iter/keys/items readers.
_ITERATE = object()
_MISSING = object()

# id(raw container) -> wrapper. A wrapper keeps its raw container alive,
# so an id cannot be reused while its entry exists.
_proxies: weakref.WeakValueDictionary[int, ReactiveDict | ReactiveList] = (
    weakref.WeakValueDictionary()
)

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread state mutations.

    Call once from the owning thread:
        reactform.set_scheduler(loop.call_soon_threadsafe)

    After this, any container mutation from a background thread is handed to
    the scheduler. Owning-thread mutations remain synchronous.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def _marshaled(fn):
    """Run fn on the owning thread once a scheduler is set.

    Called from any other thread, fn is handed to the scheduler and the call
    returns None, so value-returning mutators (`pop`, `setdefault`) give
    nothing back off-thread.
    """

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(lambda: fn(*args, **kwargs))
            return None
        return fn(*args, **kwargs)

    return wrapper


def _same(old: Any, new: Any) -> bool:
    return old is new or old == new


class Dep:
    """Subscribers of one (container, key) pair, in subscription order.

    Holds its owning container so the container outlives its subscribers'
    interest in it.
    """

    __slots__ = ("owner", "key", "_observers")

    def __init__(self, owner: object, key: object) -> None:
        self.owner = owner
        self.key = key
        self._observers: dict = {}

    def track(self) -> None:
        """Register the current derivation as an observer."""
        derivation = current_derivation.get()
        if derivation is not None:
            self._observers[derivation] = None
            derivation._dependencies.add(self)

    def _remove_observer(self, observer) -> None:
        """Remove an observer. Called during dependency cleanup."""
        self._observers.pop(observer, None)

    def __len__(self) -> int:
        return len(self._observers)

    def __repr__(self) -> str:
        return f"Dep({self.key!r}, observers={len(self._observers)})"


class _Container:
    __slots__ = ("_data", "_deps", "__weakref__")

    def _dep(self, key) -> Dep:
        dep = self._deps.get(key)
        if dep is None:
            dep = self._deps[key] = Dep(self, key)
        return dep

    def _track(self, key=_ITERATE) -> None:
        if current_derivation.get() is not None:
            self._dep(key).track()

    def _trigger(self, *keys) -> None:
        """Notify observers of the given keys in one flush."""
        observers: dict = {}
        for key in keys:
            dep = self._deps.get(key)
            if dep is not None:
                observers.update(dep._observers)
        if observers:
            notify_all(list(observers))


class ReactiveDict(_Container):
    """A dict wrapper that tracks per-key reads and notifies on writes.

    Keys are reachable as items and, when they do not clash with a method
    name, as attributes. Missing keys read as None.

    Keys named like a method (`items`, `values`, `keys`, `get`, `update`,
    `pop`, `clear`, `setdefault`, `to_dict`) need item access:
    `state.items` is the method, `state["items"]` is the tracked value.
    Attribute assignment still writes the key.
    """

    __slots__ = ()

    def __init__(self, data: dict | None = None) -> None:
        self._data = data if data is not None else {}
        self._deps: dict[object, Dep] = {}
        _proxies[id(self._data)] = self

    # --- Read operations (track) ---

    def __getitem__(self, key) -> Any:
        self._track(key)
        return _wrap_child(self._data.get(key))

    def get(self, key, default: Any = None) -> Any:
        self._track(key)
        return _wrap_child(self._data.get(key, default))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __contains__(self, key) -> bool:
        self._track(key)
        return key in self._data

    def __len__(self) -> int:
        self._track()
        return len(self._data)

    def __iter__(self) -> Iterator:
        self._track()
        return iter(list(self._data))

    def __bool__(self) -> bool:
        self._track()
        return bool(self._data)

    def keys(self) -> list:
        self._track()
        return list(self._data)

    def values(self) -> list:
        self._track()
        return [_wrap_child(v) for v in self._data.values()]

    def items(self) -> list[tuple]:
        self._track()
        return [(k, _wrap_child(v)) for k, v in self._data.items()]

    def __eq__(self, other: object) -> bool:
        self._track()
        return self._data == to_raw(other)

    __hash__ = None

    # --- Write operations (notify) ---

    @_marshaled
    def __setitem__(self, key, value: Any) -> None:
        self._set(key, value)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _CONTAINER_SLOTS:
            object.__setattr__(self, name, value)
        else:
            self[name] = value

    @_marshaled
    def __delitem__(self, key) -> None:
        self._delete(key)

    def __delattr__(self, name: str) -> None:
        del self[name]

    def _set(self, key, value: Any) -> None:
        value = to_raw(value)
        old = self._data.get(key, _MISSING)
        if old is not _MISSING and _same(old, value):
            return
        self._data[key] = value
        self._trigger(key, _ITERATE)

    def _delete(self, key) -> None:
        if key not in self._data:
            return
        del self._data[key]
        self._trigger(key, _ITERATE)

    @_marshaled
    def pop(self, key, *default) -> Any:
        if key not in self._data:
            if default:
                return default[0]
            raise KeyError(key)
        value = self._data.pop(key)
        self._trigger(key, _ITERATE)
        return value

    @_marshaled
    def update(self, other=None, **kwargs) -> None:
        begin_batch()
        try:
            if other:
                for key, value in (other.items() if hasattr(other, "items") else other):
                    self[key] = value
            for key, value in kwargs.items():
                self[key] = value
        finally:
            end_batch()

    @_marshaled
    def clear(self) -> None:
        begin_batch()
        try:
            for key in list(self._data):
                self._delete(key)
        finally:
            end_batch()

    @_marshaled
    def setdefault(self, key, default: Any = None) -> Any:
        if key not in self._data:
            self[key] = default
        return self[key]

    def to_dict(self) -> dict:
        """Deep plain copy of the current contents."""
        self._track()
        return to_plain(self._data)

    def __repr__(self) -> str:
        return f"ReactiveDict({self._data!r})"


class ReactiveList(_Container):
    """A list wrapper that tracks reads and notifies on mutation.

    Any read operation (iteration, indexing, len) registers a dependency.
    Any mutation (append, extend, __setitem__, etc.) notifies observers.
    """

    __slots__ = ()

    def __init__(self, items: list | None = None) -> None:
        self._data = items if items is not None else []
        self._deps: dict[object, Dep] = {}
        _proxies[id(self._data)] = self

    def _notify(self) -> None:
        self._trigger(_ITERATE)

    # --- Read operations (track) ---

    def __getitem__(self, index):
        self._track()
        if isinstance(index, slice):
            return [_wrap_child(v) for v in self._data[index]]
        return _wrap_child(self._data[index])

    def __len__(self) -> int:
        self._track()
        return len(self._data)

    def __iter__(self) -> Iterator:
        self._track()
        return iter([_wrap_child(v) for v in self._data])

    def __reversed__(self) -> Iterator:
        self._track()
        return iter([_wrap_child(v) for v in reversed(self._data)])

    def __contains__(self, item) -> bool:
        self._track()
        return to_raw(item) in self._data

    def __bool__(self) -> bool:
        self._track()
        return bool(self._data)

    def index(self, item, *args) -> int:
        self._track()
        return self._data.index(to_raw(item), *args)

    def count(self, item) -> int:
        self._track()
        return self._data.count(to_raw(item))

    def __eq__(self, other: object) -> bool:
        self._track()
        return self._data == to_raw(other)

    __hash__ = None

    # --- Write operations (notify) ---

    @_marshaled
    def append(self, item) -> None:
        self._data.append(to_raw(item))
        self._notify()

    @_marshaled
    def extend(self, items) -> None:
        self._data.extend(to_raw(item) for item in items)
        self._notify()

    @_marshaled
    def insert(self, index: int, item) -> None:
        self._data.insert(index, to_raw(item))
        self._notify()

    @_marshaled
    def pop(self, index: int = -1):
        result = self._data.pop(index)
        self._notify()
        return _wrap_child(result)

    @_marshaled
    def remove(self, item) -> None:
        self._data.remove(to_raw(item))
        self._notify()

    @_marshaled
    def clear(self) -> None:
        if self._data:
            self._data.clear()
            self._notify()

    @_marshaled
    def sort(self, *, key=None, reverse: bool = False) -> None:
        self._data.sort(key=key, reverse=reverse)
        self._notify()

    @_marshaled
    def reverse(self) -> None:
        self._data.reverse()
        self._notify()

    @_marshaled
    def __setitem__(self, index, value) -> None:
        self._set(index, value)

    def _set(self, index, value) -> None:
        if isinstance(index, slice):
            self._data[index] = [to_raw(v) for v in value]
        else:
            value = to_raw(value)
            if _same(self._data[index], value):
                return
            self._data[index] = value
        self._notify()

    @_marshaled
    def __delitem__(self, index) -> None:
        del self._data[index]
        self._notify()

    def to_list(self) -> list:
        """Deep plain copy of the current contents."""
        self._track()
        return to_plain(self._data)

    def __repr__(self) -> str:
        return f"ReactiveList({self._data!r})"


_CONTAINER_SLOTS = frozenset(("_data", "_deps"))

MutableMapping.register(ReactiveDict)
MutableSequence.register(ReactiveList)


class Ref:
    """A single reactive value exposed as `.value`."""

    __slots__ = ("_state",)

    def __init__(self, value: Any = None) -> None:
        self._state = ReactiveDict({"value": value})

    @property
    def value(self) -> Any:
        return self._state["value"]

    @value.setter
    def value(self, value: Any) -> None:
        self._state["value"] = value

    def get(self) -> Any:
        return self._state["value"]

    def set(self, value: Any) -> None:
        self._state["value"] = value

    def __repr__(self) -> str:
        return f"Ref({self._state._data['value']!r})"


def wrap(record: Any) -> Any:
    """Return the reactive wrapper for a dict or list.

    Wrappers are returned as-is, other values are returned unchanged.
    Wrapping the same raw container twice yields the same wrapper.

    Usage:
        state = wrap({"count": 0})
        effect(lambda: print(state.count))
        state.count += 1
    """
    if isinstance(record, (ReactiveDict, ReactiveList)):
        return record
    if isinstance(record, dict):
        proxy = _proxies.get(id(record))
        if proxy is not None and proxy._data is record:
            return proxy
        return ReactiveDict(record)
    if isinstance(record, list):
        proxy = _proxies.get(id(record))
        if proxy is not None and proxy._data is record:
            return proxy
        return ReactiveList(record)
    return record


def _wrap_child(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return wrap(value)
    return value


def ref(value: Any = None) -> Ref:
    return Ref(value)


def is_reactive(value: Any) -> bool:
    return isinstance(value, (ReactiveDict, ReactiveList))


def to_raw(value: Any) -> Any:
    """Unwrap a reactive container to the dict or list it wraps."""
    if isinstance(value, (ReactiveDict, ReactiveList)):
        return value._data
    return value


def to_plain(value: Any) -> Any:
    """Deep copy into plain dicts and lists, without tracking."""
    value = to_raw(value)
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_plain(v) for v in value]
    return value


@_marshaled
def notify(state: ReactiveDict | ReactiveList, key: Any = _MISSING) -> None:
    """Manually trigger observers of one key, or of every key when omitted."""
    if key is _MISSING:
        state._trigger(*list(state._deps))
    elif isinstance(state, ReactiveList):
        state._notify()
    else:
        state._trigger(key)
