"""Subscriber tables — plain Python structures that hold derivation state.

Effects and Computeds are thin handles holding an _id; their dependency
sets, cached values, and flags live here, keyed by that id. Reactive
containers keep their own data (see reactive.py) so they are collected
like any other object.

Entries are released when their handle is garbage collected.
"""

import itertools

# Derivation state (Computed + Effect + data reactions)
dependencies: dict[int, set] = {}  # deriv_id -> set of dependency sources
derivation_fns: dict[int, object] = {}  # deriv_id -> callable
disposed: dict[int, bool] = {}

# Computed state
observers: dict[int, dict] = {}  # computed_id -> ordered set of readers
dirty_flags: dict[int, bool] = {}
cached_values: dict[int, object] = {}
computing: set[int] = set()

_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def release(handle_id: int) -> None:
    """Drop every table entry for a collected handle."""
    dependencies.pop(handle_id, None)
    derivation_fns.pop(handle_id, None)
    disposed.pop(handle_id, None)
    observers.pop(handle_id, None)
    dirty_flags.pop(handle_id, None)
    cached_values.pop(handle_id, None)
    computing.discard(handle_id)
