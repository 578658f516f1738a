"""Tests for the flush engine: isolation, re-entrant passes, runaway detection."""

import logging

import pytest

from reactform import (
    MaxUpdateDepthError,
    batch,
    effect,
    get_max_update_depth,
    get_pending_count,
    set_max_update_depth,
    wrap,
)


class TestFailureIsolation:
    def test_failing_effect_does_not_block_others(self):
        s = wrap({"n": 0})
        log = []

        def bad():
            if s.n:
                raise RuntimeError("bad effect")

        effect(bad)
        effect(lambda: log.append(s.n))

        with pytest.raises(RuntimeError, match="bad effect"):
            s.n = 1
        assert log == [0, 1]

    def test_batched_failure_surfaces_at_batch_exit(self):
        s = wrap({"n": 0})
        log = []

        def bad():
            if s.n:
                raise RuntimeError("bad effect")

        effect(bad)
        effect(lambda: log.append(s.n))

        def write():
            s.n = 1
            log.append("written")

        with pytest.raises(RuntimeError):
            batch(write)
        assert log == [0, "written", 1]

    def test_extra_failures_are_logged(self, caplog):
        s = wrap({"n": 0})

        def bad_one():
            if s.n:
                raise RuntimeError("first")

        def bad_two():
            if s.n:
                raise RuntimeError("second")

        effect(bad_one)
        effect(bad_two)

        with caplog.at_level(logging.ERROR, logger="reactform.tracking"):
            with pytest.raises(RuntimeError, match="first"):
                s.n = 1

        assert "Subscriber failed during flush" in caplog.text
        assert "second" in caplog.text
        assert get_pending_count() == 0


class TestReentrantFlush:
    def test_writes_from_effects_run_in_a_later_pass(self):
        s = wrap({"a": 0, "b": 0})
        log = []
        effect(lambda: s.update(b=s.a + 1))
        effect(lambda: log.append(s.b))
        s.a = 5
        assert s.b == 6
        assert log == [1, 6]

    def test_chain_settles_in_one_call(self):
        s = wrap({"a": 0, "b": 0, "c": 0})
        effect(lambda: s.update(b=s.a * 2))
        effect(lambda: s.update(c=s.b * 2))
        s.a = 1
        assert (s.a, s.b, s.c) == (1, 2, 4)


class TestMaxUpdateDepth:
    def test_default(self):
        assert get_max_update_depth() == 100

    def test_runaway_effect_raises(self):
        s = wrap({"n": 0})
        set_max_update_depth(10)

        def runaway():
            s.n = s.n + 1

        with pytest.raises(MaxUpdateDepthError, match="writing to state it also reads"):
            effect(runaway)
        assert get_pending_count() == 0

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            set_max_update_depth(0)
