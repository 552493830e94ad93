"""
Tests for the saga driver — ordering, rollback, timeouts.
"""

import time

import pytest

from provisioner.core.engine.saga import Saga
from provisioner.core.errors import FilesystemError, StepTimeoutError


class _Boom(Exception):
    pass


def _fail(message: str = "boom"):
    def action():
        raise _Boom(message)
    return action


class TestSagaForward:
    def test_runs_in_order(self):
        calls: list[str] = []
        saga = Saga("t")
        saga.add("a", lambda: calls.append("a"))
        saga.add("b", lambda: calls.append("b"))
        saga.add("c", lambda: calls.append("c"))

        report = saga.execute()

        assert report.ok
        assert calls == ["a", "b", "c"]
        assert report.completed == ["a", "b", "c"]
        assert report.compensated == []

    def test_results_by_step(self):
        saga = Saga("t").add("x", lambda: 42)
        assert saga.execute().results == {"x": 42}

    def test_empty_saga(self):
        report = Saga("t").execute()
        assert report.ok
        assert report.status == "ok"


class TestSagaRollback:
    def test_compensates_in_reverse(self):
        calls: list[str] = []
        saga = Saga("t")
        saga.add("a", lambda: calls.append("a"), lambda: calls.append("undo-a"))
        saga.add("b", lambda: calls.append("b"), lambda: calls.append("undo-b"))
        saga.add("c", _fail(), lambda: calls.append("undo-c"))

        report = saga.execute()

        assert not report.ok
        assert report.failed_step == "c"
        assert isinstance(report.error, _Boom)
        assert calls == ["a", "b", "undo-b", "undo-a"]
        assert report.compensated == ["b", "a"]

    def test_later_steps_not_run(self):
        calls: list[str] = []
        saga = Saga("t")
        saga.add("a", _fail())
        saga.add("b", lambda: calls.append("b"))
        saga.execute()
        assert calls == []

    def test_compensate_on_failure(self):
        calls: list[str] = []
        saga = Saga("t")
        saga.add("a", lambda: None, lambda: calls.append("undo-a"))
        saga.add("b", _fail(), lambda: calls.append("undo-b"), compensate_on_failure=True)

        saga.execute()

        assert calls == ["undo-b", "undo-a"]

    def test_compensation_failure_is_recorded_and_rollback_continues(self):
        calls: list[str] = []

        def broken_undo():
            raise FilesystemError("disk gone")

        saga = Saga("t")
        saga.add("a", lambda: None, lambda: calls.append("undo-a"))
        saga.add("b", lambda: None, broken_undo)
        saga.add("c", _fail("original"))

        report = saga.execute()

        assert calls == ["undo-a"]
        assert report.compensated == ["a"]
        assert report.compensation_errors == ["b: disk gone"]
        assert str(report.error) == "original"

    def test_raise_if_failed_reraises_original(self):
        saga = Saga("t").add("a", _fail("original"))
        report = saga.execute()
        with pytest.raises(_Boom, match="original"):
            report.raise_if_failed()


class TestSagaTimeout:
    def test_slow_step_times_out_and_rolls_back(self):
        calls: list[str] = []
        saga = Saga("t", step_timeout=0.05)
        saga.add("a", lambda: calls.append("a"), lambda: calls.append("undo-a"))
        saga.add("slow", lambda: time.sleep(0.5))

        report = saga.execute()

        assert isinstance(report.error, StepTimeoutError)
        assert report.error.step == "slow"
        assert report.failed_step == "slow"
        assert calls == ["a", "undo-a"]

    def test_fast_steps_within_timeout(self):
        saga = Saga("t", step_timeout=5)
        saga.add("a", lambda: "done")
        report = saga.execute()
        assert report.ok
        assert report.results["a"] == "done"

    def test_rollback_waits_for_timed_out_step(self):
        calls: list[str] = []

        def slow():
            time.sleep(0.3)
            calls.append("slow")

        saga = Saga("t", step_timeout=0.05)
        saga.add("slow", slow, lambda: calls.append("undo-slow"))

        report = saga.execute()

        assert isinstance(report.error, StepTimeoutError)
        assert report.error.completed_late is True
        assert calls == ["slow", "undo-slow"]
        assert report.compensated == ["slow"]
        assert report.completed == []

    def test_timed_out_step_that_fails_is_not_compensated(self):
        calls: list[str] = []

        def slow_fail():
            time.sleep(0.3)
            raise _Boom("late")

        saga = Saga("t", step_timeout=0.05)
        saga.add("a", lambda: calls.append("a"), lambda: calls.append("undo-a"))
        saga.add("slow", slow_fail, lambda: calls.append("undo-slow"))

        report = saga.execute()

        assert isinstance(report.error, StepTimeoutError)
        assert report.error.completed_late is False
        assert calls == ["a", "undo-a"]
