"""Tests for Form."""

import asyncio
import logging

from reactform import Form, effect, form, validators as v


def _required(value, values):
    return None if value else "required"


class TestValues:
    def test_initial_state(self):
        f = form({"name": "", "age": 0})
        assert f.values == {"name": "", "age": 0}
        assert f.errors == {}
        assert f.touched == {}
        assert f.is_valid is True
        assert f.is_dirty is False
        assert isinstance(f, Form)

    def test_initial_values_are_copied(self):
        initial = {"tags": ["a"]}
        f = form(initial)
        f.values.tags.append("b")
        assert initial == {"tags": ["a"]}

    def test_set_value_marks_touched(self):
        f = form({"name": ""})
        f.set_value("name", "Ada")
        assert f.get_value("name") == "Ada"
        assert f.is_touched("name")
        assert f.is_dirty is True
        assert f.touched_fields == ["name"]

    def test_set_value_runs_validator(self):
        f = form({"name": ""}, validators={"name": _required})
        f.set_value("name", "")
        assert f.has_error("name")
        assert f.get_error("name") == "required"
        f.set_value("name", "ok")
        assert not f.has_error("name")
        assert f.get_error("name") is None
        assert "name" not in f.errors

    def test_validator_sees_all_values(self):
        f = form(
            {"password": "secret", "confirm": ""},
            validators={"confirm": v.match("password")},
        )
        f.set_value("confirm", "nope")
        assert f.get_error("confirm") == "Must match password"
        f.set_value("confirm", "secret")
        assert f.is_valid

    def test_dotted_field(self):
        f = form({"address": {"city": ""}})
        f.set_value("address.city", "Oslo")
        assert f.get_value("address.city") == "Oslo"
        assert f.values.address.city == "Oslo"
        assert f.get_value("address.zip") is None

    def test_set_value_is_one_update(self):
        f = form({"name": ""}, validators={"name": _required})
        log = []
        effect(lambda: log.append((f.values.name, f.is_touched("name"), f.get_error("name"))))
        f.set_value("name", "")
        assert log == [("", False, None), ("", True, "required")]

    def test_set_values_is_one_update(self):
        f = form({"a": 0, "b": 0})
        log = []
        effect(lambda: log.append((f.values.a, f.values.b)))
        f.set_values({"a": 1, "b": 2})
        assert log == [(0, 0), (1, 2)]


class TestErrors:
    def test_manual_errors(self):
        f = form({"age": 0})
        f.set_error("age", "too young")
        assert f.has_error("age")
        assert not f.is_valid
        f.set_error("age", None)
        assert f.is_valid

    def test_set_errors_batched(self):
        f = form({})
        log = []
        effect(lambda: log.append(f.is_valid))
        f.set_errors({"a": "bad", "b": "worse"})
        assert log == [True, False]
        assert sorted(f.error_fields) == ["a", "b"]
        assert f.has_errors

    def test_clear_error(self):
        f = form({})
        f.set_errors({"a": "bad", "b": "worse"})
        f.clear_error("a")
        f.clear_error("missing")
        assert f.errors == {"b": "worse"}

    def test_clear_errors_batched_and_safe_when_empty(self):
        f = form({})
        f.clear_errors()
        f.set_errors({"a": "bad", "b": "worse"})
        log = []
        effect(lambda: log.append(len(f.errors)))
        f.clear_errors()
        assert log == [2, 0]
        assert f.is_valid

    def test_absent_error_reads(self):
        f = form({})
        assert f.get_error("nope") is None
        assert f.has_error("nope") is False
        assert f.errors.nope is None


class TestValidation:
    def test_validate_field_does_not_touch(self):
        f = form({"name": ""}, validators={"name": _required})
        assert f.validate_field("name") is False
        assert f.has_error("name")
        assert not f.is_touched("name")

    def test_validate_field_without_validator(self):
        f = form({"x": 1})
        assert f.validate_field("x") is True

    def test_validate_all(self):
        f = form(
            {"name": "", "email": "bad"},
            validators={"name": _required, "email": v.email()},
        )
        log = []
        effect(lambda: log.append(f.is_valid))
        assert f.validate() is False
        assert log == [True, False]
        assert f.errors == {"name": "required", "email": "Invalid email address"}

    def test_validate_counts_manual_errors(self):
        f = form({"name": "x"}, validators={"name": _required})
        f.set_error("server", "rejected")
        assert f.validate() is False

    def test_throwing_validator_becomes_field_error(self, caplog):
        def broken(value, values):
            raise TypeError("bug in validator")

        f = form({"x": ""}, validators={"x": broken})
        with caplog.at_level(logging.WARNING, logger="reactform.form"):
            f.set_value("x", "anything")
        assert f.get_error("x") == "Validation failed"
        assert not f.is_valid
        assert "Validator for 'x' raised" in caplog.text

    def test_is_valid_is_cached(self):
        f = form({"a": ""}, validators={"a": _required})
        f.is_valid
        assert not f._is_valid.dirty
        f.set_value("a", "")
        assert f._is_valid.dirty
        assert f.is_valid is False
        assert not f._is_valid.dirty


class TestTouched:
    def test_set_touched(self):
        f = form({"a": 1})
        f.set_touched("a")
        assert f.is_touched("a")
        f.set_touched("a", False)
        assert not f.is_touched("a")
        assert not f.is_dirty

    def test_touch_all_and_fields(self):
        f = form({"a": 1, "b": 2, "c": 3})
        f.set_touched_fields(["a"])
        assert f.touched_fields == ["a"]
        f.touch_all()
        assert sorted(f.touched_fields) == ["a", "b", "c"]

    def test_should_show_error(self):
        f = form({"a": ""}, validators={"a": _required})
        f.validate()
        assert f.has_error("a")
        assert not f.should_show_error("a")
        f.handle_blur("a")
        assert f.should_show_error("a")


class TestReset:
    def test_reset_to_initial(self):
        f = form({"a": 1}, validators={"a": _required})
        f.set_value("a", 0)
        f.reset()
        assert f.values == {"a": 1}
        assert f.errors == {}
        assert not f.is_dirty
        assert f.is_valid

    def test_reset_to_new_values(self):
        f = form({"a": 1})
        f.reset({"a": 5})
        assert f.get_value("a") == 5

    def test_reset_notifies_once(self):
        f = form({"a": 1})
        f.set_value("a", 2)
        f.set_error("a", "bad")
        log = []
        effect(lambda: log.append((f.values.a, f.is_valid, f.is_dirty)))
        f.reset()
        assert log == [(2, False, True), (1, True, False)]

    def test_reset_field(self):
        f = form({"a": 1, "b": 2}, validators={"a": _required})
        f.set_values({"a": 0, "b": 3})
        f.reset_field("a")
        assert f.get_value("a") == 1
        assert not f.has_error("a")
        assert not f.is_touched("a")
        assert f.get_value("b") == 3


class TestSubmit:
    def test_submit_success(self):
        received = []
        f = form({"a": 1}, on_submit=lambda values, frm: received.append(values) or "ok")
        result = f.submit()
        assert result.success
        assert result.result == "ok"
        assert received == [{"a": 1}]
        assert f.submit_count == 1
        assert f.is_submitting is False
        assert f.is_touched("a")

    def test_submit_blocked_by_validation(self):
        calls = []
        f = form({"a": ""}, validators={"a": _required})
        result = f.submit(lambda values, frm: calls.append(values))
        assert not result.success
        assert result.errors == {"a": "required"}
        assert calls == []
        assert f.submit_count == 0

    def test_submit_handler_failure(self, caplog):
        def handler(values, frm):
            assert frm.is_submitting
            raise ConnectionError("server down")

        f = form({"a": 1})
        with caplog.at_level(logging.ERROR, logger="reactform.form"):
            result = f.submit(handler)
        assert not result.success
        assert isinstance(result.error, ConnectionError)
        assert f.is_submitting is False
        assert f.submit_count == 0
        assert "Submit handler failed" in caplog.text

    def test_submit_without_handler(self, caplog):
        f = form({"a": 1})
        with caplog.at_level(logging.WARNING, logger="reactform.form"):
            assert f.submit() is None
        assert "without a handler" in caplog.text

    def test_submit_async(self):
        async def handler(values, frm):
            await asyncio.sleep(0)
            return values["a"] * 2

        f = form({"a": 21})
        result = asyncio.run(f.submit_async(handler))
        assert result.success
        assert result.result == 42
        assert f.submit_count == 1

    def test_submit_async_server_errors(self):
        async def handler(values, frm):
            frm.set_error("a", "taken")
            raise ValueError("rejected")

        f = form({"a": 1})
        result = asyncio.run(f.submit_async(handler))
        assert not result.success
        assert f.get_error("a") == "taken"
        assert not f.is_valid


class TestSerialization:
    def test_to_dict(self):
        f = form({"a": 1}, validators={"a": _required})
        f.set_value("a", 0)
        assert f.to_dict() == {
            "values": {"a": 0},
            "errors": {"a": "required"},
            "touched": {"a": True},
            "is_valid": False,
            "is_dirty": True,
            "is_submitting": False,
            "submit_count": 0,
        }

    def test_repr(self):
        assert "Form(values={'a': 1}" in repr(form({"a": 1}))
