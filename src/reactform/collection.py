"""Reactive collections — a list of records with predicate-based editing.

A Collection keeps its items in a ReactiveList, so effects that read it
re-run when items are added, removed or reordered, and effects that read a
field of an item re-run when that field changes.

Predicates are either a callable `(item) -> bool` or a value compared with
`==`. Mutators are batched and untracked, and return the collection so
calls chain.

Usage:
    todos = collection([{"title": "write docs", "done": False}])
    effect(lambda: print(len(todos.filter(lambda t: not t.done)), "left"))
    todos.add({"title": "ship", "done": False})      # prints "2 left"
    todos.toggle(lambda t: t.title == "write docs")  # prints "1 left"
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Mapping, Union

from reactform.batch import mutation
from reactform.effect import Effect, effect
from reactform.reactive import ReactiveDict, ReactiveList, to_raw, wrap

Predicate = Union[Callable[[Any], bool], Any]


def _matches(predicate: Predicate, item: Any) -> bool:
    if callable(predicate):
        return bool(predicate(item))
    return item == predicate


class Collection:
    """A reactive list of items with find, filter and bulk-edit helpers.

    The item list is copied; the items themselves are shared with the caller.
    """

    def __init__(self, items: Iterable[Any] = ()) -> None:
        self._state = wrap({"items": [to_raw(item) for item in items]})
        self._sources: list[Effect] = []

    @property
    def items(self) -> ReactiveList:
        return self._state["items"]

    # --- Reads (tracked) ---

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Any:
        return self.items[index]

    def __contains__(self, item: Any) -> bool:
        return item in self.items

    def is_empty(self) -> bool:
        return len(self.items) == 0

    @property
    def first(self) -> Any:
        items = self.items
        return items[0] if items else None

    @property
    def last(self) -> Any:
        items = self.items
        return items[-1] if items else None

    def find(self, predicate: Predicate) -> Any:
        """First matching item, or None."""
        for item in self.items:
            if _matches(predicate, item):
                return item
        return None

    def index(self, predicate: Predicate) -> int:
        """Position of the first matching item, or -1."""
        for i, item in enumerate(self.items):
            if _matches(predicate, item):
                return i
        return -1

    def filter(self, predicate: Callable[[Any], bool]) -> list:
        return [item for item in self.items if predicate(item)]

    def to_list(self) -> list:
        """Deep plain copy of the items."""
        return self.items.to_list()

    # --- Mutations (batched, untracked) ---

    @mutation
    def add(self, *items: Any) -> Collection:
        self.items.extend(items)
        return self

    @mutation
    def remove(self, predicate: Predicate) -> Collection:
        """Remove the first matching item, if any."""
        i = self.index(predicate)
        if i != -1:
            del self.items[i]
        return self

    @mutation
    def update(self, predicate: Predicate, updates: Mapping[str, Any]) -> Collection:
        """Merge `updates` into the first matching record."""
        i = self.index(predicate)
        if i != -1:
            item = self.items[i]
            if isinstance(item, ReactiveDict):
                item.update(updates)
        return self

    @mutation
    def toggle(self, predicate: Predicate, field: str = "done") -> Collection:
        """Flip a boolean field of the first matching record."""
        i = self.index(predicate)
        if i != -1:
            item = self.items[i]
            if isinstance(item, ReactiveDict):
                item[field] = not item[field]
        return self

    @mutation
    def remove_where(self, predicate: Callable[[Any], bool]) -> Collection:
        """Remove every matching item in one notification."""
        items = self.items
        kept = [item for item in items if not predicate(item)]
        if len(kept) != len(items):
            items[:] = kept
        return self

    @mutation
    def update_where(self, predicate: Callable[[Any], bool], updates: Mapping[str, Any]) -> Collection:
        for item in self.items:
            if isinstance(item, ReactiveDict) and predicate(item):
                item.update(updates)
        return self

    @mutation
    def clear(self) -> Collection:
        self.items.clear()
        return self

    @mutation
    def reset(self, items: Iterable[Any] = ()) -> Collection:
        """Replace all items."""
        self.items[:] = list(items)
        return self

    @mutation
    def sort(self, *, key: Callable[[Any], Any] | None = None, reverse: bool = False) -> Collection:
        self.items.sort(key=key, reverse=reverse)
        return self

    @mutation
    def reverse(self) -> Collection:
        self.items.reverse()
        return self

    @mutation
    def pop(self, index: int = -1) -> Any:
        items = self.items
        return items.pop(index) if items else None

    # --- Views ---

    def filtered(self, predicate: Callable[[Any], bool]) -> Collection:
        """A live collection of the matching items, kept in sync by an effect.

        The view shares item records with this collection. Call dispose() on
        the view to stop syncing.
        """
        view = Collection()
        view._sources.append(effect(lambda: view.reset(self.filter(predicate))))
        return view

    def dispose(self) -> None:
        """Stop any syncing set up by filtered()."""
        for source in self._sources:
            source.dispose()
        self._sources.clear()

    def __repr__(self) -> str:
        return f"Collection({self._state._data['items']!r})"


def collection(items: Iterable[Any] = ()) -> Collection:
    return Collection(items)
