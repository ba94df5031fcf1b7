"""Tests for the notification pass: failures, re-entrancy, mid-pass changes."""

import logging

import pytest

from atomx import ReentrantWriteError, Store


class TestObserverFailures:
    def test_failure_does_not_block_others(self):
        s = Store()
        a = s.create_atom(0)
        log = []

        def boom(v):
            raise ValueError("boom")

        s.subscribe(a, boom)
        s.subscribe(a, log.append)
        with pytest.raises(ValueError, match="boom"):
            s.write(a, 1)
        assert log == [1]
        assert s.read(a) == 1

    def test_first_failure_reraised(self):
        s = Store()
        a = s.create_atom(0)

        def first(v):
            raise ValueError("first")

        def second(v):
            raise RuntimeError("second")

        s.subscribe(a, first)
        s.subscribe(a, second)
        with pytest.raises(ValueError, match="first"):
            s.write(a, 1)

    def test_failure_logged(self, caplog):
        s = Store()
        a = s.create_atom(0, name="flaky")

        def boom(v):
            raise ValueError("boom")

        s.subscribe(a, boom)
        with caplog.at_level(logging.ERROR, logger="atomx.store"):
            with pytest.raises(ValueError):
                s.write(a, 1)
        assert "failed for Atom('flaky', int)" in caplog.text

    def test_selector_observers_still_run(self):
        s = Store()
        a = s.create_atom(1)
        doubled = s.create_selector([a], lambda v: v * 2)
        log = []

        def boom(v):
            raise ValueError("boom")

        s.subscribe(a, boom)
        s.subscribe(doubled, log.append)
        with pytest.raises(ValueError):
            s.write(a, 3)
        assert log == [6]

    def test_failing_selector_does_not_block_others(self):
        s = Store()
        a = s.create_atom(1)
        broken = s.create_selector([a], lambda v: 1 // (v - 2))
        ok = s.create_selector([a], lambda v: v)
        log = []
        s.subscribe(broken, lambda v: None)
        s.subscribe(ok, log.append)
        with pytest.raises(ZeroDivisionError):
            s.write(a, 2)
        assert log == [2]


class TestReentrantWrites:
    def test_write_to_same_atom_rejected(self):
        s = Store()
        a = s.create_atom(0)
        s.subscribe(a, lambda v: s.write(a, v + 1))
        with pytest.raises(ReentrantWriteError):
            s.write(a, 1)
        assert s.read(a) == 1

    def test_write_to_other_atom_allowed(self):
        s = Store()
        a = s.create_atom(0)
        b = s.create_atom(0)
        log = []
        s.subscribe(a, lambda v: s.write(b, v * 10))
        s.subscribe(b, log.append)
        s.write(a, 2)
        assert s.read(b) == 20
        assert log == [20]

    def test_cycle_through_other_atom_rejected(self):
        s = Store()
        a = s.create_atom(0)
        b = s.create_atom(0)
        s.subscribe(a, lambda v: s.write(b, v))
        s.subscribe(b, lambda v: s.write(a, v))
        with pytest.raises(ReentrantWriteError):
            s.write(a, 1)

    def test_atom_writable_again_after_pass(self):
        s = Store()
        a = s.create_atom(0)
        log = []
        s.subscribe(a, log.append)
        s.write(a, 1)
        s.write(a, 2)
        assert log == [1, 2]

    def test_observer_can_read_during_pass(self):
        s = Store()
        a = s.create_atom(0)
        doubled = s.create_selector([a], lambda v: v * 2)
        seen = []
        s.subscribe(a, lambda v: seen.append(s.read(doubled)))
        s.write(a, 4)
        assert seen == [8]


class TestMidPassSubscriptionChanges:
    def test_unsubscribe_self(self):
        s = Store()
        a = s.create_atom(0)
        log = []
        unsub = None

        def once(v):
            log.append(("once", v))
            unsub()

        unsub = s.subscribe(a, once)
        s.subscribe(a, lambda v: log.append(("other", v)))
        s.write(a, 1)
        s.write(a, 2)
        assert log == [("once", 1), ("other", 1), ("other", 2)]

    def test_unsubscribe_later_observer(self):
        s = Store()
        a = s.create_atom(0)
        log = []
        unsub_later = None
        s.subscribe(a, lambda v: unsub_later())
        unsub_later = s.subscribe(a, log.append)
        s.write(a, 1)
        assert log == []

    def test_subscribe_during_pass_waits_for_next_write(self):
        s = Store()
        a = s.create_atom(0)
        late = []
        added = []

        def add_late(v):
            if not added:
                added.append(s.subscribe(a, late.append))

        s.subscribe(a, add_late)
        s.write(a, 1)
        assert late == []
        s.write(a, 2)
        assert late == [2]


class TestNestedWrites:
    def test_shared_selector_notified_once(self):
        s = Store()
        a = s.create_atom(0)
        b = s.create_atom(0)
        total = s.create_selector([a, b], lambda x, y: x + y)
        log = []
        s.subscribe(a, lambda v: s.write(b, v * 10))
        s.subscribe(total, log.append)
        s.write(a, 1)
        assert log == [11]

    def test_nested_atom_observers_run_inline(self):
        s = Store()
        a = s.create_atom(0)
        b = s.create_atom(0)
        order = []
        s.subscribe(a, lambda v: (order.append("a"), s.write(b, v), order.append("a done")))
        s.subscribe(b, lambda v: order.append("b"))
        s.write(a, 1)
        assert order == ["a", "b", "a done"]

    def test_selector_sees_settled_values(self):
        s = Store()
        a = s.create_atom(0)
        b = s.create_atom(0)
        c = s.create_atom(0)
        pair = s.create_selector([b, c], lambda x, y: (x, y))
        log = []
        s.subscribe(a, lambda v: s.write(b, v))
        s.subscribe(a, lambda v: s.write(c, v))
        s.subscribe(pair, log.append)
        s.write(a, 5)
        assert log == [(5, 5)]

    def test_selector_observer_write_notifies_downstream(self):
        s = Store()
        a = s.create_atom(1)
        b = s.create_atom(0)
        doubled = s.create_selector([a], lambda v: v * 2)
        b_plus = s.create_selector([b], lambda v: v + 1)
        log = []
        s.subscribe(doubled, lambda v: s.write(b, v))
        s.subscribe(b_plus, log.append)
        s.write(a, 3)
        assert log == [7]


class TestObserverCopies:
    def test_each_observer_gets_own_copy(self):
        s = Store()
        posts = s.create_atom(["A"])
        seen = []

        def mutate(v):
            v.append("MUTATED")

        s.subscribe(posts, mutate)
        s.subscribe(posts, seen.append)
        s.append(posts, "B")
        assert seen == [["A", "B"]]
        assert s.read(posts) == ["A", "B"]

    def test_selector_observers_get_own_copy(self):
        s = Store()
        posts = s.create_atom([1])
        same = s.create_selector([posts], lambda v: v)
        seen = []
        s.subscribe(same, lambda v: v.clear())
        s.subscribe(same, seen.append)
        s.write(posts, [1, 2])
        assert seen == [[1, 2]]
        assert s.read(same) == [1, 2]
