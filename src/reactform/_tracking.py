"""Dependency tracking engine — the heart of reactform.

Uses contextvars to track which reactive keys are read during an effect or
computed evaluation, building the dependency graph automatically. Setting and
resetting the context variable behaves as the active-tracker stack.

Batching: mutations inside batch(), @action, or `with transaction()`
accumulate notifications and flush them once at the end. A flush drains
iteratively: notifications raised while draining are collected into a fresh
pending set and handled by the next pass, never by recursion.
"""

from __future__ import annotations

import contextvars
import logging
from typing import TYPE_CHECKING, Callable, Iterable, TypeVar

from reactform.errors import MaxUpdateDepthError

if TYPE_CHECKING:
    from reactform.computed import Computed
    from reactform.effect import Effect, _DataReaction

    Derivation = Computed | Effect | _DataReaction

T = TypeVar("T")

logger = logging.getLogger("reactform.tracking")

# The currently-evaluating derivation (effect, computed or data reaction).
# When set, any reactive read registers itself as a dependency.
current_derivation: contextvars.ContextVar[Derivation | None] = contextvars.ContextVar(
    "current_derivation", default=None
)

DEFAULT_MAX_UPDATE_DEPTH = 100

# Batch depth counter. When > 0, notifications are deferred.
_batch_depth: int = 0

# Derivations notified during a batch, awaiting flush. dict keeps insertion order.
_pending: dict[Derivation, None] = {}

_flushing: bool = False
_max_update_depth: int = DEFAULT_MAX_UPDATE_DEPTH


def set_max_update_depth(depth: int) -> None:
    """Cap the number of drain passes a single flush may take."""
    global _max_update_depth
    if depth < 1:
        raise ValueError(f"max update depth must be positive, got {depth}")
    _max_update_depth = depth


def get_max_update_depth() -> int:
    return _max_update_depth


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch(flush: bool = True) -> None:
    """Exit a batching scope.

    When the outermost scope exits and `flush` is true, pending derivations
    run. With `flush=False` they stay queued for the next flush.
    """
    global _batch_depth
    if _batch_depth == 0:
        return
    _batch_depth -= 1
    if _batch_depth == 0 and flush:
        _flush_pending()


def schedule(derivation: Derivation) -> None:
    """Schedule a derivation for re-evaluation.

    Computeds are invalidated on the spot (invalidation is cheap and never
    recomputes). Everything else is deferred while batching or flushing,
    and run immediately otherwise.
    """
    if derivation._lazy:
        derivation._run()
    elif _batch_depth > 0 or _flushing:
        _pending[derivation] = None
    else:
        _pending[derivation] = None
        _flush_pending()


def notify_all(observers: Iterable[Derivation]) -> None:
    """Schedule every observer, then flush once.

    Observers are queued before any of them runs, so a failing observer
    cannot keep the others from being notified.
    """
    begin_batch()
    try:
        for observer in observers:
            schedule(observer)
    finally:
        end_batch()


def _flush_pending() -> None:
    """Run all pending derivations, pass by pass, until none are left."""
    global _flushing
    if _flushing:
        return
    _flushing = True
    errors: list[Exception] = []
    passes = 0
    try:
        while _pending:
            passes += 1
            if passes > _max_update_depth:
                stuck = list(_pending)
                _pending.clear()
                for exc in errors:
                    logger.error("Subscriber failed during flush", exc_info=exc)
                raise MaxUpdateDepthError(
                    f"Maximum update depth of {_max_update_depth} exceeded while flushing "
                    f"{len(stuck)} subscriber(s) ({', '.join(repr(d) for d in stuck[:3])}). "
                    "An effect is probably writing to state it also reads."
                )
            # Derivations may schedule new ones while this pass runs.
            batch = list(_pending)
            _pending.clear()
            for derivation in batch:
                try:
                    derivation._run()
                except Exception as exc:
                    errors.append(exc)
    finally:
        _flushing = False

    if errors:
        for exc in errors[1:]:
            logger.error("Subscriber failed during flush", exc_info=exc)
        raise errors[0]


def untrack(fn: Callable[[], T]) -> T:
    """Call fn without attributing its reads to the current derivation."""
    token = current_derivation.set(None)
    try:
        return fn()
    finally:
        current_derivation.reset(token)


def get_pending_count() -> int:
    """Number of derivations waiting to run. Useful for testing."""
    return len(_pending)


def get_batch_depth() -> int:
    return _batch_depth
