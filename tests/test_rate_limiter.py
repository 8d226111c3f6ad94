"""Tests for the sliding-window rate limiter."""

import threading
import time

import pytest

from utility_roe.rate_limiter import RateLimiter, backoff_delay


def test_first_request_is_immediate(clock):
    limiter = RateLimiter(clock=clock, sleep=clock.sleep)
    limiter.acquire()
    assert clock.sleeps == []
    assert limiter.stats()["requests_in_last_second"] == 1


def test_min_spacing_between_requests(clock):
    limiter = RateLimiter(10, 100, clock=clock, sleep=clock.sleep)
    limiter.acquire()
    clock.now_ns += 30_000_000          # 30ms later
    limiter.acquire()
    assert clock.sleeps == [pytest.approx(0.07)]
    assert clock.now_ns == 100_000_000


def test_thirty_sequential_requests_take_at_least_2900ms(clock):
    limiter = RateLimiter(10, 100, clock=clock, sleep=clock.sleep)
    start = clock()
    for _ in range(30):
        limiter.acquire()
    assert clock() - start >= 2_900_000_000


def test_window_cap_without_spacing(clock):
    limiter = RateLimiter(3, 0, clock=clock, sleep=clock.sleep)
    for _ in range(3):
        limiter.acquire()
    assert clock.sleeps == []
    # fourth request must wait for the oldest to leave the 1s window
    limiter.acquire()
    assert clock.now_ns >= 1_000_000_000
    assert limiter.stats()["requests_in_last_second"] == 1


def test_full_window_waits_window_remainder_plus_spacing(clock):
    limiter = RateLimiter(2, 100, clock=clock, sleep=clock.sleep)
    limiter.acquire()                   # t=0
    limiter.acquire()                   # t=100ms
    clock.now_ns = 500_000_000
    limiter.acquire()
    # 1000 - (500 - 0) + 100 = 600ms wait
    assert clock.sleeps[-1] == pytest.approx(0.6)
    assert clock.now_ns == 1_100_000_000


def test_never_more_than_n_in_any_window(clock):
    limiter = RateLimiter(5, 10, clock=clock, sleep=clock.sleep)
    grants = []
    for _ in range(40):
        limiter.acquire()
        grants.append(clock())
    for i, t in enumerate(grants):
        in_window = [g for g in grants[i:] if g - t < 1_000_000_000]
        assert len(in_window) <= 5


def test_reset_clears_state(clock):
    limiter = RateLimiter(1, 100, clock=clock, sleep=clock.sleep)
    limiter.acquire()
    limiter.reset()
    limiter.acquire()
    assert clock.sleeps == []
    assert limiter.stats()["time_since_last_request_ms"] == 0


def test_stats_before_any_request(clock):
    stats = RateLimiter(clock=clock, sleep=clock.sleep).stats()
    assert stats == {
        "requests_in_last_second": 0,
        "max_requests_per_second": 10,
        "time_since_last_request_ms": None,
        "min_interval_ms": 100,
    }


@pytest.mark.parametrize("attempt, expected", [
    (0, 1.0), (1, 2.0), (2, 4.0), (4, 16.0), (5, 30.0), (50, 30.0),
])
def test_backoff_delay(attempt, expected):
    assert backoff_delay(attempt) == expected


def test_handle_error_sleeps_backoff(clock):
    limiter = RateLimiter(clock=clock, sleep=clock.sleep)
    assert limiter.handle_error(3) == 8.0
    assert clock.sleeps == [8.0]


def test_handle_error_rejects_negative_attempt(clock):
    limiter = RateLimiter(clock=clock, sleep=clock.sleep)
    with pytest.raises(ValueError, match="non-negative"):
        limiter.handle_error(-1)
    assert clock.sleeps == []


def test_invalid_configuration():
    with pytest.raises(ValueError):
        RateLimiter(0, 100)
    with pytest.raises(ValueError):
        RateLimiter(10, -1)


def test_shared_across_threads(clock):
    lock = threading.Lock()

    def locked_sleep(seconds):
        with lock:
            clock.sleep(seconds)

    limiter = RateLimiter(10, 100, clock=clock, sleep=locked_sleep)
    threads = [threading.Thread(target=limiter.acquire) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    # 20 serialized grants at 100ms spacing
    assert clock() >= 1_900_000_000


def test_stats_waits_behind_sleeping_acquirer(clock):
    entered = threading.Event()
    release = threading.Event()

    def blocking_sleep(seconds):
        entered.set()
        release.wait(5)
        clock.sleep(seconds)

    limiter = RateLimiter(1, 100, clock=clock, sleep=blocking_sleep)
    limiter.acquire()
    waiter = threading.Thread(target=limiter.acquire)
    waiter.start()
    assert entered.wait(5)

    stats = []
    reader = threading.Thread(target=lambda: stats.append(limiter.stats()))
    reader.start()
    reader.join(0.2)
    assert reader.is_alive()

    release.set()
    waiter.join(5)
    reader.join(5)
    assert stats[0]["requests_in_last_second"] == 1


@pytest.mark.slow
def test_real_clock_spacing():
    limiter = RateLimiter(10, 100)
    start = time.monotonic()
    for _ in range(30):
        limiter.acquire()
    assert (time.monotonic() - start) * 1000 >= 2900
