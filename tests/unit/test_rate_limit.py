"""Unit tests for the rate-limited caller."""

import threading

import pytest

from design_review.pipeline.rate_limit import RateLimitedCaller


class TestRateLimitedCaller:
    """Tests for RateLimitedCaller."""

    def test_first_call_does_not_wait(self, rate_limiter, fake_clock):
        assert rate_limiter.call(lambda: "ok") == "ok"
        assert fake_clock.sleeps == []

    def test_waits_full_interval_after_instant_call(self, rate_limiter, fake_clock):
        rate_limiter.call(lambda: None)
        rate_limiter.call(lambda: None)
        assert fake_clock.sleeps == [pytest.approx(2.0)]

    def test_gap_measured_from_end_of_previous_call(self, rate_limiter, fake_clock):
        def slow_call():
            fake_clock.advance(5.0)

        rate_limiter.call(slow_call)
        rate_limiter.call(lambda: None)
        # The 5 s call duration does not count towards the gap
        assert fake_clock.sleeps == [pytest.approx(2.0)]

    def test_elapsed_idle_time_counts(self, rate_limiter, fake_clock):
        rate_limiter.call(lambda: None)
        fake_clock.advance(1.5)
        rate_limiter.call(lambda: None)
        assert fake_clock.sleeps == [pytest.approx(0.5)]

    def test_no_wait_after_long_idle(self, rate_limiter, fake_clock):
        rate_limiter.call(lambda: None)
        fake_clock.advance(10.0)
        rate_limiter.call(lambda: None)
        assert fake_clock.sleeps == []

    def test_failed_call_still_spaces_the_next(self, rate_limiter, fake_clock):
        def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            rate_limiter.call(failing)
        rate_limiter.call(lambda: None)

        assert fake_clock.sleeps == [pytest.approx(2.0)]
        assert rate_limiter.call_count == 2

    def test_reset(self, rate_limiter, fake_clock):
        rate_limiter.call(lambda: None)
        rate_limiter.reset()
        rate_limiter.call(lambda: None)
        assert fake_clock.sleeps == []

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RateLimitedCaller(min_interval=-1)

    def test_concurrent_callers_are_serialized(self, rate_limiter, fake_clock):
        rate_limiter.call(lambda: None)
        release = threading.Event()
        first_running = threading.Event()
        second_running = threading.Event()
        starts = []

        def first():
            starts.append(fake_clock())
            first_running.set()
            release.wait(timeout=5)

        def second():
            starts.append(fake_clock())
            second_running.set()

        first_thread = threading.Thread(target=rate_limiter.call, args=(first,))
        first_thread.start()
        assert first_running.wait(timeout=5)

        second_thread = threading.Thread(target=rate_limiter.call, args=(second,))
        second_thread.start()
        assert not second_running.wait(timeout=0.2)

        release.set()
        first_thread.join(timeout=5)
        second_thread.join(timeout=5)

        assert second_running.is_set()
        assert starts[1] - starts[0] == pytest.approx(2.0)
        assert fake_clock.sleeps == [pytest.approx(2.0), pytest.approx(2.0)]
        assert rate_limiter.call_count == 3
