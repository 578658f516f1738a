"""reactform: reactive state, effects and validated forms for Python."""

from importlib.metadata import version as _version

__version__ = _version("reactform")

from reactform._tracking import (
    get_batch_depth,
    get_max_update_depth,
    get_pending_count,
    set_max_update_depth,
    untrack,
)
from reactform.reactive import (
    ReactiveDict,
    ReactiveList,
    Ref,
    is_reactive,
    notify,
    ref,
    set_scheduler,
    to_plain,
    to_raw,
    wrap,
)
from reactform.computed import Computed, computed
from reactform.effect import Effect, effect, reaction
from reactform.batch import action, batch, pause, resume, transaction
from reactform.watch import watch, WatchHandle
from reactform.paths import get_path, set_path
from reactform.store import Store, patch
from reactform.collection import Collection, collection
from reactform.async_state import AsyncState, async_state
from reactform.form import Form, SubmitResult, form
from reactform import validators
from reactform.errors import CircularDependencyError, MaxUpdateDepthError, ReactivityError

__all__ = [
    "wrap",
    "ReactiveDict",
    "ReactiveList",
    "Ref",
    "ref",
    "is_reactive",
    "to_raw",
    "to_plain",
    "notify",
    "set_scheduler",
    "Computed",
    "computed",
    "Effect",
    "effect",
    "reaction",
    "batch",
    "action",
    "transaction",
    "pause",
    "resume",
    "untrack",
    "watch",
    "WatchHandle",
    "get_path",
    "set_path",
    "Store",
    "patch",
    "Collection",
    "collection",
    "AsyncState",
    "async_state",
    "Form",
    "SubmitResult",
    "form",
    "validators",
    "get_pending_count",
    "get_batch_depth",
    "get_max_update_depth",
    "set_max_update_depth",
    "ReactivityError",
    "MaxUpdateDepthError",
    "CircularDependencyError",
]
