"""Tests for the LocalEngine batch primitives and failure isolation."""

import pytest

from forma.engine import LocalEngine
from forma.errors import FormaError, NoOverlapError


class TestGrouping:
    """Tests for group_sorted and aggregate."""

    def test_groups_in_first_seen_order_and_sorted(self):
        engine = LocalEngine()
        records = [("b", 3), ("a", 2), ("b", 1), ("a", 1)]
        groups = list(engine.group_sorted(records, key=lambda r: r[0], sort_key=lambda r: r[1]))
        assert groups == [("b", [("b", 1), ("b", 3)]), ("a", [("a", 1), ("a", 2)])]

    def test_unsorted_groups_keep_input_order(self):
        engine = LocalEngine()
        groups = dict(engine.group_sorted([(1, "x"), (1, "a")], key=lambda r: r[0]))
        assert groups[1] == [(1, "x"), (1, "a")]

    def test_aggregate(self):
        engine = LocalEngine()
        out = dict(engine.aggregate(
            [("a", 1), ("b", 5), ("a", 2)],
            key=lambda r: r[0],
            value=lambda r: r[1],
            combine=lambda x, y: x + y,
            initial=0,
        ))
        assert out == {"a": 3, "b": 5}


class TestJoins:
    """Tests for join and left_join."""

    def test_inner_join(self):
        engine = LocalEngine()
        out = list(engine.join([1, 2, 3], [3, 1, 1], left_key=lambda x: x, right_key=lambda x: x))
        assert out == [(1, 1), (1, 1), (3, 3)]

    def test_left_join(self):
        engine = LocalEngine()
        out = list(engine.left_join(["a", "b"], ["b"], left_key=str, right_key=str))
        assert out == [("a", None), ("b", "b")]


class TestRunPerKey:
    """Tests for per-key failure isolation."""

    @staticmethod
    def _fn(key, items):
        if key == "bad":
            raise NoOverlapError("no overlap", {"key": key})
        for item in items:
            yield key, item

    def test_structured_failure_isolated(self):
        engine = LocalEngine()
        groups = [("ok", [1, 2]), ("bad", [3]), ("fine", [4])]
        out = list(engine.run_per_key("align", groups, self._fn))
        assert out == [("ok", 1), ("ok", 2), ("fine", 4)]
        assert engine.progress.keys_processed == 2
        assert engine.progress.keys_failed == 1
        assert not engine.progress.success
        [failure] = engine.progress.failures
        assert (failure.operator, failure.key, failure.kind) == ("align", "bad", "NoOverlap")

    def test_partial_output_of_failed_key_dropped(self):
        def fn(key, items):
            yield "partial"
            raise FormaError("late failure")

        engine = LocalEngine()
        assert list(engine.run_per_key("op", [("k", [])], fn)) == []

    def test_fail_fast_reraises(self):
        engine = LocalEngine(fail_fast=True)
        with pytest.raises(NoOverlapError):
            list(engine.run_per_key("align", [("bad", [1])], self._fn))

    def test_other_exceptions_propagate(self):
        def fn(key, items):
            raise KeyError(key)

        engine = LocalEngine()
        with pytest.raises(KeyError):
            list(engine.run_per_key("op", [("k", [])], fn))

    def test_summary(self):
        engine = LocalEngine()
        list(engine.run_per_key("align", [("bad", [1])], self._fn))
        summary = engine.progress.summary()
        assert "Keys failed: 1" in summary
        assert "NoOverlap" in summary


class TestErrors:
    """Tests for the structured error types."""

    def test_str_includes_kind_and_context(self):
        err = NoOverlapError("series share no common period", {"starts": [1, 2]})
        assert str(err) == "NoOverlap: series share no common period (starts=[1, 2])"

    def test_str_without_context(self):
        assert str(FormaError("boom")) == "FormaError: boom"
