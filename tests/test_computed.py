"""Tests for Computed values."""

import pytest

from reactform import CircularDependencyError, Computed, batch, computed, effect, wrap


class TestComputed:
    def test_lazy_eval(self):
        call_count = 0
        s = wrap({"n": 5})

        def fn():
            nonlocal call_count
            call_count += 1
            return s.n * 2

        c = Computed(fn)
        assert call_count == 0  # not yet evaluated
        assert c.get() == 10
        assert call_count == 1

    def test_caches_until_dirty(self):
        call_count = 0
        s = wrap({"n": 5})

        def fn():
            nonlocal call_count
            call_count += 1
            return s.n * 2

        c = Computed(fn)
        c.get()
        c.value
        assert call_count == 1  # cached, no re-eval

    def test_invalidation(self):
        s = wrap({"n": 5})
        c = Computed(lambda: s.n * 2)
        assert c.get() == 10
        s.n = 10
        assert c.dirty
        assert c.get() == 20

    def test_no_recompute_without_readers(self):
        """N changes with nobody reading cost zero evaluations, then exactly one."""
        call_count = 0
        s = wrap({"n": 0})

        def fn():
            nonlocal call_count
            call_count += 1
            return s.n

        c = Computed(fn)
        c.get()
        call_count = 0
        for i in range(1, 20):
            s.n = i
        assert call_count == 0
        assert c.get() == 19
        assert call_count == 1

    def test_dependency_tracking(self):
        """Computed tracks dependencies dynamically."""
        s = wrap({"flag": True, "a": 1, "b": 2})

        c = Computed(lambda: s.a if s.flag else s.b)
        assert c.get() == 1

        s.flag = False
        assert c.get() == 2  # now depends on b, not a
        c.get()
        s.a = 100
        assert not c.dirty  # a is no longer a dependency

    def test_chained_computed(self):
        s = wrap({"n": 3})
        doubled = Computed(lambda: s.n * 2)
        quadrupled = Computed(lambda: doubled.get() * 2)
        assert quadrupled.get() == 12
        s.n = 5
        assert quadrupled.dirty
        assert quadrupled.get() == 20

    def test_dispose(self):
        s = wrap({"n": 5})
        c = Computed(lambda: s.n * 2)
        c.get()
        c.dispose()
        s.n = 10
        # get() re-evaluates from scratch since dispose cleared everything
        assert c.get() == 20

    def test_propagates_to_effects(self):
        """Computed invalidation propagates to downstream effects."""
        s = wrap({"n": 5})
        c = Computed(lambda: s.n * 2)
        log = []
        effect(lambda: log.append(c.get()))
        assert log == [10]
        s.n = 10
        assert log == [10, 20]

    def test_fresh_inside_batch(self):
        s = wrap({"n": 1})
        c = Computed(lambda: s.n + 1)
        c.get()

        def write_then_read():
            s.n = 2
            return c.get()

        assert batch(write_then_read) == 3

    def test_peek_does_not_track(self):
        s = wrap({"n": 1})
        c = Computed(lambda: s.n)
        log = []
        effect(lambda: log.append(c.peek()))
        s.n = 2
        assert log == [1]

    def test_circular_read_raises(self):
        holder = {}
        c = Computed(lambda: holder["c"].get() + 1)
        holder["c"] = c
        with pytest.raises(CircularDependencyError):
            c.get()

    def test_error_leaves_dirty(self):
        s = wrap({"n": 0})
        c = Computed(lambda: 10 // s.n)
        with pytest.raises(ZeroDivisionError):
            c.get()
        assert c.dirty
        s.n = 2
        assert c.get() == 5

    def test_repr(self):
        c = Computed(lambda: 1)
        assert "dirty" in repr(c)
        c.get()
        assert "cached=1" in repr(c)


class TestComputedDecorator:
    def test_decorator_factory(self):
        s = wrap({"n": 7})

        @computed
        def doubled():
            return s.n * 2

        assert doubled.get() == 14
        s.n = 3
        assert doubled.get() == 6
