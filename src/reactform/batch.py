"""Batches, actions and transactions — coalesced state mutations.

Wrapping mutations in batch(), an @action, or `with transaction()` defers
all effect re-runs until the outermost scope exits. This prevents glitchy
intermediate states where some dependents have updated but others haven't
yet, and runs each dependent once however many keys it read changed.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, ParamSpec, TypeVar

from reactform._tracking import begin_batch, end_batch, untrack

P = ParamSpec("P")
R = TypeVar("R")


def batch(fn: Callable[P, R], *args: P.args, **kwargs: P.kwargs) -> R:
    """Run fn with notifications deferred; flush once it returns (or raises).

    Usage:
        def bump():
            state.a = 1
            state.a = 2

        batch(bump)
        # dependents of "a" ran once, seeing 2
    """
    begin_batch()
    try:
        return fn(*args, **kwargs)
    finally:
        end_batch()


def pause() -> None:
    """Start deferring notifications. Pair with resume(); calls nest."""
    begin_batch()


def resume(flush: bool = True) -> None:
    """Undo one pause().

    When the last pause is undone and `flush` is true, queued dependents run
    before this returns. With `flush=False` they stay queued until the next
    flush. Extra calls are ignored.
    """
    end_batch(flush)


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all reactive mutations inside fn.

    Effects only fire after fn returns, not during.

    Usage:
        state = wrap({"a": 0, "b": 0})

        @action
        def swap():
            state.a, state.b = state.b, state.a
            # effects see both changes at once, not one at a time
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        begin_batch()
        try:
            return fn(*args, **kwargs)
        finally:
            end_batch()

    return wrapper


def mutation(fn: Callable[P, R]) -> Callable[P, R]:
    """Like @action, but fn's reads are not tracked either.

    For methods that read state to decide what to write: called from inside
    an effect, they add no dependencies to it.
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        begin_batch()
        try:
            return untrack(lambda: fn(*args, **kwargs))
        finally:
            end_batch()

    return wrapper


@contextmanager
def transaction():
    """Context manager for batching mutations.

    Usage:
        with transaction():
            state.a = 1
            state.b = 2
            # effects fire here, after both are set
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()
