"""Reactive forms — values, errors and touched flags over one reactive state.

A Form keeps `{values, errors, touched, is_submitting, submit_count}` in a
single ReactiveDict, and validators in a plain side table. Every mutating
method is batched, so dependents see one consolidated update per call, and
untracked, so calling it from inside an effect adds no dependencies.

Validators are `value -> message | None` or `(value, values) -> message | None`
functions (see reactform.validators). A validator that raises is reported as the field
error "Validation failed" and logged; it never propagates.

Usage:
    f = form({"email": ""}, validators={"email": validators.email()})
    effect(lambda: print("valid" if f.is_valid else f.errors.to_dict()))
    f.set_value("email", "nope")  # prints {'email': 'Invalid email address'}
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Union

from reactform.batch import mutation
from reactform.computed import Computed
from reactform.paths import SEPARATOR, get_path, set_path
from reactform.reactive import ReactiveDict, to_plain, wrap
from reactform.validators import Validator, normalize

logger = logging.getLogger("reactform.form")

VALIDATION_FAILED = "Validation failed"

SubmitHandler = Callable[[dict, "Form"], Union[Any, Awaitable[Any]]]


@dataclass
class SubmitResult:
    success: bool
    result: Any = None
    errors: dict = dataclass_field(default_factory=dict)
    error: Optional[Exception] = None


class Form:
    """Form state machine built from reactive primitives."""

    def __init__(
        self,
        initial_values: Optional[Mapping[str, Any]] = None,
        validators: Optional[Mapping[str, Validator]] = None,
        on_submit: Optional[SubmitHandler] = None,
    ) -> None:
        self._initial = to_plain(dict(initial_values or {}))
        self._validators = dict(validators or {})
        self._checks = {field: normalize(fn) for field, fn in self._validators.items()}
        self._on_submit = on_submit
        self._state: ReactiveDict = wrap(
            {
                "values": to_plain(self._initial),
                "errors": {},
                "touched": {},
                "is_submitting": False,
                "submit_count": 0,
            }
        )
        # Derived values close over the state, not the form, so a dropped
        # form is not kept alive by its computeds.
        state = self._state
        self._is_valid = Computed(lambda: not any(state["errors"].values()))
        self._is_dirty = Computed(lambda: bool(state["touched"]))
        self._has_errors = Computed(lambda: any(state["errors"].values()))
        self._touched_fields = Computed(lambda: [k for k, v in state["touched"].items() if v])
        self._error_fields = Computed(lambda: [k for k, v in state["errors"].items() if v])

    # --- State (tracked reads) ---

    @property
    def values(self) -> ReactiveDict:
        return self._state["values"]

    @property
    def errors(self) -> ReactiveDict:
        return self._state["errors"]

    @property
    def touched(self) -> ReactiveDict:
        return self._state["touched"]

    @property
    def is_submitting(self) -> bool:
        return self._state["is_submitting"]

    @property
    def submit_count(self) -> int:
        return self._state["submit_count"]

    @property
    def is_valid(self) -> bool:
        return self._is_valid.get()

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty.get()

    @property
    def has_errors(self) -> bool:
        return self._has_errors.get()

    @property
    def touched_fields(self) -> list[str]:
        return self._touched_fields.get()

    @property
    def error_fields(self) -> list[str]:
        return self._error_fields.get()

    @property
    def validators(self) -> dict[str, Validator]:
        return dict(self._validators)

    # --- Values ---

    @mutation
    def set_value(self, field: str, value: Any) -> None:
        """Write a field, mark it touched, and run its validator if any."""
        values = self._state["values"]
        if SEPARATOR in field:
            set_path(values, field, value)
        else:
            values[field] = value
        self._state["touched"][field] = True
        if field in self._validators:
            self.validate_field(field)

    @mutation
    def set_values(self, patch: Mapping[str, Any]) -> None:
        for field, value in patch.items():
            self.set_value(field, value)

    def get_value(self, field: str) -> Any:
        return get_path(self.values, field)

    # --- Errors ---

    @mutation
    def set_error(self, field: str, message: Optional[str]) -> None:
        """Set a field error by hand; a falsy message clears it."""
        errors = self._state["errors"]
        if message:
            errors[field] = message
        else:
            del errors[field]

    @mutation
    def set_errors(self, errors: Mapping[str, Optional[str]]) -> None:
        for field, message in errors.items():
            self.set_error(field, message)

    @mutation
    def clear_error(self, field: str) -> None:
        del self._state["errors"][field]

    @mutation
    def clear_errors(self) -> None:
        self._state["errors"].clear()

    def get_error(self, field: str) -> Optional[str]:
        return self.errors.get(field) or None

    def has_error(self, field: str) -> bool:
        return bool(self.errors.get(field))

    # --- Touched ---

    @mutation
    def set_touched(self, field: str, touched: bool = True) -> None:
        if touched:
            self._state["touched"][field] = True
        else:
            del self._state["touched"][field]

    @mutation
    def set_touched_fields(self, fields: Iterable[str]) -> None:
        for field in fields:
            self.set_touched(field)

    @mutation
    def touch_all(self) -> None:
        touched = self._state["touched"]
        for field in self._state["values"].keys():
            touched[field] = True

    def is_touched(self, field: str) -> bool:
        return bool(self.touched.get(field))

    def should_show_error(self, field: str) -> bool:
        return self.is_touched(field) and self.has_error(field)

    @mutation
    def handle_blur(self, field: str) -> None:
        self.set_touched(field)
        if field in self._validators:
            self.validate_field(field)

    # --- Validation ---

    def _check(self, field: str, validator: Validator) -> Optional[str]:
        values = self._state["values"]
        try:
            return validator(get_path(values, field), values) or None
        except Exception:
            logger.warning("Validator for %r raised, reporting it as a field error", field, exc_info=True)
            return VALIDATION_FAILED

    @mutation
    def validate_field(self, field: str) -> bool:
        """Re-run one field's validator. True when valid or unvalidated."""
        validator = self._checks.get(field)
        if validator is None:
            return True
        message = self._check(field, validator)
        errors = self._state["errors"]
        if message:
            errors[field] = message
            return False
        del errors[field]
        return True

    @mutation
    def validate(self) -> bool:
        """Run every validator. True when no error of any kind remains."""
        for field in self._validators:
            self.validate_field(field)
        return not any(self._state["errors"].values())

    # --- Reset ---

    @mutation
    def reset(self, new_values: Optional[Mapping[str, Any]] = None) -> None:
        """Back to the initial values (or `new_values`), with no errors or touched fields."""
        values = self._initial if new_values is None else new_values
        self._state["values"] = to_plain(dict(values))
        self._state["errors"] = {}
        self._state["touched"] = {}
        self._state["is_submitting"] = False

    @mutation
    def reset_field(self, field: str) -> None:
        initial = to_plain(get_path(self._initial, field))
        if SEPARATOR in field:
            set_path(self._state["values"], field, initial)
        else:
            self._state["values"][field] = initial
        del self._state["errors"][field]
        del self._state["touched"][field]

    # --- Submission ---

    def _begin_submit(self) -> bool:
        self.touch_all()
        if not self.validate():
            logger.info("Submit blocked, invalid fields: %s", ", ".join(self._error_fields.peek()))
            return False
        self._state["is_submitting"] = True
        return True

    @mutation
    def _end_submit(self, succeeded: bool) -> None:
        if succeeded:
            self._state["submit_count"] += 1
        self._state["is_submitting"] = False

    def _snapshot(self, section: str) -> dict:
        return to_plain(self._state._data[section])

    def submit(self, handler: Optional[SubmitHandler] = None) -> Optional[SubmitResult]:
        """Touch and validate every field, then call handler(values, form).

        Handler exceptions are logged and returned in the result.
        """
        handler = handler or self._on_submit
        if handler is None:
            logger.warning("submit() called without a handler")
            return None
        if not self._begin_submit():
            return SubmitResult(success=False, errors=self._snapshot("errors"))
        try:
            result = handler(self._snapshot("values"), self)
        except Exception as exc:
            logger.exception("Submit handler failed")
            self._end_submit(False)
            return SubmitResult(success=False, error=exc)
        self._end_submit(True)
        return SubmitResult(success=True, result=result)

    async def submit_async(self, handler: Optional[SubmitHandler] = None) -> Optional[SubmitResult]:
        """submit() for handlers that may be coroutines; awaits their result."""
        handler = handler or self._on_submit
        if handler is None:
            logger.warning("submit_async() called without a handler")
            return None
        if not self._begin_submit():
            return SubmitResult(success=False, errors=self._snapshot("errors"))
        try:
            result = handler(self._snapshot("values"), self)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            logger.exception("Submit handler failed")
            self._end_submit(False)
            return SubmitResult(success=False, error=exc)
        self._end_submit(True)
        return SubmitResult(success=True, result=result)

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Plain snapshot of the whole form."""
        return {
            "values": self._snapshot("values"),
            "errors": self._snapshot("errors"),
            "touched": self._snapshot("touched"),
            "is_valid": self._is_valid.peek(),
            "is_dirty": self._is_dirty.peek(),
            "is_submitting": self._state._data["is_submitting"],
            "submit_count": self._state._data["submit_count"],
        }

    def __repr__(self) -> str:
        return f"Form(values={self._snapshot('values')!r}, errors={self._snapshot('errors')!r})"


def form(
    initial_values: Optional[Mapping[str, Any]] = None,
    validators: Optional[Mapping[str, Validator]] = None,
    on_submit: Optional[SubmitHandler] = None,
) -> Form:
    """Create a Form.

    Usage:
        signup = form(
            {"email": "", "password": "", "confirm": ""},
            validators={
                "email": combine(required(), email()),
                "password": min_length(8),
                "confirm": match("password"),
            },
        )
    """
    return Form(initial_values, validators, on_submit)
