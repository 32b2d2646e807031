from __future__ import annotations

import pytest

from stock_insight.application.stock_analysis.cache import ResponseCache, cache_key


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_cache_key_combines_provider_symbol_and_request_kind() -> None:
    assert cache_key(provider="Twelve_Data", symbol=" aapl ", kind="quote") == "twelve_data:AAPL:quote"
    assert cache_key(provider="finnhub", symbol="AAPL", kind="quote") != cache_key(
        provider="finnhub", symbol="AAPL", kind="history"
    )


def test_get_returns_payload_within_ttl() -> None:
    clock = FakeClock()
    cache = ResponseCache(ttl_seconds=30, clock=clock)
    cache.put("finnhub:AAPL:quote", {"c": 1})

    clock.advance(29.9)

    assert cache.get("finnhub:AAPL:quote") == {"c": 1}


def test_entry_is_absent_once_ttl_elapses() -> None:
    clock = FakeClock()
    cache = ResponseCache(ttl_seconds=30, clock=clock)
    cache.put("finnhub:AAPL:quote", "payload")

    clock.advance(30)

    assert cache.get("finnhub:AAPL:quote") is None
    # expiry is lazy; the stale entry stays until overwritten or evicted
    assert len(cache) == 1


def test_put_overwrites_and_refreshes_capture_time() -> None:
    clock = FakeClock()
    cache = ResponseCache(ttl_seconds=10, clock=clock)
    cache.put("k", "old")
    clock.advance(8)
    cache.put("k", "new")
    clock.advance(8)

    assert cache.get("k") == "new"
    assert len(cache) == 1


def test_missing_key_returns_none() -> None:
    assert ResponseCache().get("polygon:MSFT:quote") is None


def test_least_recently_used_entry_is_evicted_at_capacity() -> None:
    cache = ResponseCache(ttl_seconds=60, max_entries=2, clock=FakeClock())
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.get("a") == 1

    cache.put("c", 3)

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3
    assert len(cache) == 2


def test_clear_drops_every_entry() -> None:
    cache = ResponseCache()
    cache.put("a", 1)
    cache.clear()

    assert len(cache) == 0


@pytest.mark.parametrize(("ttl", "max_entries"), [(0, 10), (-1, 10), (30, 0)])
def test_rejects_invalid_configuration(ttl: float, max_entries: int) -> None:
    with pytest.raises(ValueError):
        ResponseCache(ttl_seconds=ttl, max_entries=max_entries)
