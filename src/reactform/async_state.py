"""Async state — data, loading and error for one asynchronous operation.

The runtime never suspends. execute() awaits the caller's coroutine and
writes each outcome back through ordinary batched writes, so effects see
`loading` flip on, then the result (or error) together with `loading`
flipping off.

Usage:
    users = async_state([])
    effect(lambda: print("loading..." if users.loading else users.data))
    await users.execute(fetch_users)
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from reactform.batch import transaction
from reactform.computed import Computed
from reactform.reactive import ReactiveDict, to_plain, wrap


class AsyncState:
    """Reactive `{data, loading, error}` with derived success/error flags."""

    def __init__(self, initial: Any = None) -> None:
        self._initial = to_plain(initial)
        self.state: ReactiveDict = wrap({"data": to_plain(initial), "loading": False, "error": None})
        state = self.state
        self._is_success = Computed(
            lambda: not state["loading"] and state["error"] is None and state["data"] is not None
        )
        self._is_error = Computed(lambda: not state["loading"] and state["error"] is not None)

    @property
    def data(self) -> Any:
        return self.state["data"]

    @property
    def loading(self) -> bool:
        return self.state["loading"]

    @property
    def error(self) -> Optional[BaseException]:
        return self.state["error"]

    @property
    def is_success(self) -> bool:
        return self._is_success.get()

    @property
    def is_error(self) -> bool:
        return self._is_error.get()

    async def execute(self, fn: Callable[[], Union[Awaitable[Any], Any]]) -> Any:
        """Run fn(), awaiting its result if needed, and record the outcome.

        The previous error is cleared when the call starts; `data` is kept
        until the new result arrives. Exceptions are stored in `error` and
        re-raised.
        """
        with transaction():
            self.state["loading"] = True
            self.state["error"] = None
        try:
            result = fn()
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            with transaction():
                self.state["error"] = exc
                self.state["loading"] = False
            raise
        with transaction():
            self.state["data"] = result
            self.state["loading"] = False
        return result

    def reset(self) -> None:
        with transaction():
            self.state["data"] = to_plain(self._initial)
            self.state["loading"] = False
            self.state["error"] = None

    def __repr__(self) -> str:
        raw = self.state._data
        return f"AsyncState(data={raw['data']!r}, loading={raw['loading']}, error={raw['error']!r})"


def async_state(initial: Any = None) -> AsyncState:
    return AsyncState(initial)
