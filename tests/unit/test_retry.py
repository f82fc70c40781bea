"""Tests for retry_until — the shared bounded wait."""

from __future__ import annotations

import threading

import pytest

from buildtail.core.errors import (
    QueryFailure,
    StagePodTimeoutError,
    WaitCancelledError,
    WaitTimeoutError,
)
from buildtail.core.retry import retry_until, sleep_or_cancel


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float, stop: threading.Event | None) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestRetryUntil:
    def test_immediate_success_does_not_sleep(self):
        clock = FakeClock()
        result = retry_until(
            lambda: "ok", subject="x", interval=1.0, timeout=10.0,
            clock=clock, sleep=clock.sleep,
        )
        assert result == "ok"
        assert clock.sleeps == []

    def test_succeeds_after_retries(self):
        clock = FakeClock()
        answers = iter([None, None, "ready"])
        result = retry_until(
            lambda: next(answers), subject="x", interval=2.0, timeout=10.0,
            clock=clock, sleep=clock.sleep,
        )
        assert result == "ready"
        assert clock.sleeps == [2.0, 2.0]

    def test_timeout_reports_subject_and_elapsed(self):
        clock = FakeClock()
        with pytest.raises(WaitTimeoutError) as info:
            retry_until(
                lambda: None, subject="pipeline acme/app/master", interval=2.0,
                timeout=5.0, clock=clock, sleep=clock.sleep,
            )
        assert info.value.subject == "pipeline acme/app/master"
        assert info.value.elapsed >= 5.0
        assert "pipeline acme/app/master" in str(info.value)

    def test_last_sleep_clamped_to_timeout(self):
        clock = FakeClock()
        with pytest.raises(WaitTimeoutError):
            retry_until(
                lambda: None, subject="x", interval=2.0, timeout=5.0,
                clock=clock, sleep=clock.sleep,
            )
        assert clock.sleeps == [2.0, 2.0, 1.0]

    def test_zero_timeout_makes_one_attempt(self):
        clock = FakeClock()
        calls = []

        def attempt():
            calls.append(1)
            return None

        with pytest.raises(WaitTimeoutError):
            retry_until(attempt, subject="x", interval=1.0, timeout=0.0,
                        clock=clock, sleep=clock.sleep)
        assert len(calls) == 1

    def test_query_failures_count_as_attempts(self):
        clock = FakeClock()
        failure = QueryFailure("pod p", "connection refused")

        def attempt():
            raise failure

        with pytest.raises(WaitTimeoutError) as info:
            retry_until(attempt, subject="x", interval=1.0, timeout=3.0,
                        clock=clock, sleep=clock.sleep)
        assert info.value.last_error is failure
        assert "connection refused" in str(info.value)

    def test_other_errors_propagate(self):
        clock = FakeClock()

        def attempt():
            raise ValueError("bug")

        with pytest.raises(ValueError):
            retry_until(attempt, subject="x", interval=1.0, timeout=3.0,
                        clock=clock, sleep=clock.sleep)

    def test_custom_error_class(self):
        clock = FakeClock()
        with pytest.raises(StagePodTimeoutError):
            retry_until(lambda: None, subject="x", interval=1.0, timeout=1.0,
                        error_cls=StagePodTimeoutError, clock=clock, sleep=clock.sleep)

    def test_stop_event_cancels(self):
        stop = threading.Event()
        stop.set()
        with pytest.raises(WaitCancelledError):
            retry_until(lambda: None, subject="x", interval=5.0, timeout=60.0, stop=stop)


class TestSleepOrCancel:
    def test_unset_event_sleeps(self):
        sleep_or_cancel(0.0, threading.Event())

    def test_no_event_sleeps(self):
        sleep_or_cancel(0.0, None)

    def test_set_event_raises(self):
        stop = threading.Event()
        stop.set()
        with pytest.raises(WaitCancelledError):
            sleep_or_cancel(10.0, stop)
