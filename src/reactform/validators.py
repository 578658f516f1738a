"""Common field validators.

A validator is a plain function `(value, values) -> message | None`:
`value` is the field's current value, `values` the whole form's values
(for cross-field rules). A falsy return means the value is valid.
Plain `value -> message | None` functions work too; see normalize().

Apart from `required`, validators accept empty values; combine them with
`required()` to make a field mandatory.
"""

from __future__ import annotations

import functools
import inspect
import re
from typing import Any, Callable, Mapping, Optional, Pattern, Union

Validator = Callable[[Any, Optional[Mapping]], Optional[str]]

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value is False


def required(message: str = "This field is required") -> Validator:
    def check(value, values=None):
        if _is_empty(value) or (isinstance(value, str) and not value.strip()):
            return message
        return None

    return check


def email(message: str = "Invalid email address") -> Validator:
    def check(value, values=None):
        if _is_empty(value):
            return None
        return None if _EMAIL_RE.match(str(value)) else message

    return check


def min_length(minimum: int, message: Optional[str] = None) -> Validator:
    msg = message or f"Must be at least {minimum} characters"

    def check(value, values=None):
        if _is_empty(value):
            return None
        return None if len(value) >= minimum else msg

    return check


def max_length(maximum: int, message: Optional[str] = None) -> Validator:
    msg = message or f"Must be no more than {maximum} characters"

    def check(value, values=None):
        if _is_empty(value):
            return None
        return None if len(value) <= maximum else msg

    return check


def pattern(regex: Union[str, Pattern], message: str = "Invalid format") -> Validator:
    compiled = re.compile(regex) if isinstance(regex, str) else regex

    def check(value, values=None):
        if _is_empty(value):
            return None
        return None if compiled.search(str(value)) else message

    return check


def min_value(minimum: float, message: Optional[str] = None) -> Validator:
    msg = message or f"Must be at least {minimum}"

    def check(value, values=None):
        if value is None or value == "":
            return None
        try:
            return None if float(value) >= minimum else msg
        except (TypeError, ValueError):
            return msg

    return check


def max_value(maximum: float, message: Optional[str] = None) -> Validator:
    msg = message or f"Must be no more than {maximum}"

    def check(value, values=None):
        if value is None or value == "":
            return None
        try:
            return None if float(value) <= maximum else msg
        except (TypeError, ValueError):
            return msg

    return check


def match(field: str, message: Optional[str] = None) -> Validator:
    """The value must equal another field's value (e.g. password confirmation)."""
    msg = message or f"Must match {field}"

    def check(value, values=None):
        other = values.get(field) if values is not None else None
        return None if value == other else msg

    return check


def custom(fn: Callable[..., Optional[str]]) -> Validator:
    """Adapt any `value -> message` or `(value, values) -> message` function."""
    return normalize(fn)


def combine(*validators: Callable[..., Optional[str]]) -> Validator:
    """Run validators in order; the first message wins."""
    checks = [normalize(v) for v in validators]

    def check(value, values=None):
        for validator in checks:
            error = validator(value, values)
            if error:
                return error
        return None

    return check


def _accepts_values(fn: Callable) -> bool:
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return True
    positional = 0
    for p in params:
        if p.kind is p.VAR_POSITIONAL:
            return True
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 2


def normalize(fn: Callable[..., Optional[str]]) -> Validator:
    """Return fn as a `(value, values)` validator.

    One-argument functions (`lambda v: ...`) are called with the value only.
    """
    if _accepts_values(fn):
        return fn

    @functools.wraps(fn)
    def check(value, values=None):
        return fn(value)

    return check
