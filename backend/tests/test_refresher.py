import threading
from unittest.mock import Mock

from coinops.jobs.refresher import PriceRefresher


def test_run_once_refreshes_and_returns_jittered_delay() -> None:
    cache = Mock()
    cache.get_prices.return_value = []
    delay = Mock(return_value=1234)
    refresher = PriceRefresher(cache, mean_interval_ms=5000, delay=delay)

    assert refresher.run_once() == 1234
    cache.get_prices.assert_called_once_with()
    delay.assert_called_once_with(5000)


def test_refresher_loops_until_stopped() -> None:
    cycles = threading.Semaphore(0)
    cache = Mock()

    def get_prices():
        cycles.release()
        return []

    cache.get_prices.side_effect = get_prices
    refresher = PriceRefresher(cache, mean_interval_ms=10, delay=lambda mean: 1)

    refresher.start()
    try:
        assert cycles.acquire(timeout=5)
        assert cycles.acquire(timeout=5)
        assert refresher.running is True
    finally:
        refresher.stop()

    assert refresher.running is False


def test_refresher_survives_failing_cycle() -> None:
    calls: list[int] = []
    recovered = threading.Event()
    cache = Mock()

    def get_prices():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        recovered.set()
        return []

    cache.get_prices.side_effect = get_prices
    refresher = PriceRefresher(cache, mean_interval_ms=10, delay=lambda mean: 1)

    refresher.start()
    try:
        assert recovered.wait(5)
    finally:
        refresher.stop()


def test_start_is_idempotent() -> None:
    cache = Mock()
    cache.get_prices.return_value = []
    refresher = PriceRefresher(cache, mean_interval_ms=10_000, delay=lambda mean: 10_000)

    refresher.start()
    thread = refresher._thread
    refresher.start()
    try:
        assert refresher._thread is thread
    finally:
        refresher.stop()


def test_restart_after_timed_out_stop_leaves_one_loop() -> None:
    entered = threading.Event()
    release = threading.Event()
    first_call = threading.Lock()
    cache = Mock()

    def get_prices():
        if first_call.acquire(blocking=False):
            entered.set()
            release.wait(5)
        return []

    cache.get_prices.side_effect = get_prices
    refresher = PriceRefresher(cache, mean_interval_ms=10, delay=lambda mean: 1)

    refresher.start()
    assert entered.wait(5)
    blocked = refresher._thread
    refresher.stop(timeout=0.05)
    assert refresher.running is False
    assert blocked.is_alive()

    refresher.start()
    try:
        assert refresher._thread is not blocked
        release.set()
        blocked.join(5)
        assert not blocked.is_alive()
        assert refresher.running is True
        alive = [t for t in threading.enumerate() if t.name == "price-refresher"]
        assert alive == [refresher._thread]
    finally:
        release.set()
        refresher.stop()
