from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import random

from stock_insight.application.stock_analysis.cache import ResponseCache
from stock_insight.application.stock_analysis.quote_chain import QuoteFallbackChain
from stock_insight.domain.stock_analysis.schemas import FAILURE_KINDS, ProviderFailure, Quote
from stock_insight.domain.stock_analysis.synthetic import SyntheticMarketData

NOW = datetime(2026, 2, 10, 14, 31, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _quote(symbol: str, *, provider: str, price: float = 100.0) -> Quote:
    return Quote(
        symbol=symbol,
        name=f"{symbol} Inc.",
        price=price,
        change=1.0,
        change_percent="+1.01%",
        volume=1000,
        high=price,
        low=price,
        open=price,
        previous_close=price - 1,
        last_updated=f"2026-02-10 09:31:00 ET ({provider})",
        provider=provider,
        market_status="OPEN",
    )


class FakeQuoteProvider:
    def __init__(self, name: str, *results: object, delay: float = 0.0) -> None:
        self.name = name
        self._results = list(results)
        self._delay = delay
        self.calls: list[str] = []

    async def fetch_quote(self, symbol: str) -> object:
        self.calls.append(symbol)
        if self._delay:
            await asyncio.sleep(self._delay)
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result


def _chain(*providers: FakeQuoteProvider, clock: FakeClock | None = None, timeout: float = 8.0) -> QuoteFallbackChain:
    return QuoteFallbackChain(
        providers=providers,
        cache=ResponseCache(ttl_seconds=30, clock=clock or FakeClock()),
        synthetic=SyntheticMarketData(rng=random.Random(1), now=lambda: NOW),
        timeout_seconds=timeout,
    )


def test_first_successful_provider_short_circuits_chain() -> None:
    first = FakeQuoteProvider("twelve_data", _quote("AAPL", provider="Twelve Data"))
    second = FakeQuoteProvider("alpha_vantage", _quote("AAPL", provider="Alpha Vantage"))

    async def scenario() -> None:
        lookup = await _chain(first, second).get_quote_with_trace("AAPL")
        assert lookup.quote.provider == "Twelve Data"
        assert lookup.failures == []
        assert second.calls == []

    asyncio.run(scenario())


def test_rate_limited_provider_falls_through_to_next() -> None:
    limited = FakeQuoteProvider("twelve_data", ProviderFailure(provider="twelve_data", kind="RATE_LIMITED"))
    healthy = FakeQuoteProvider("alpha_vantage", _quote("AAPL", provider="Alpha Vantage"))

    async def scenario() -> None:
        lookup = await _chain(limited, healthy).get_quote_with_trace("AAPL")
        assert lookup.quote.provider == "Alpha Vantage"
        assert [failure.kind for failure in lookup.failures] == ["RATE_LIMITED"]
        assert lookup.is_simulated is False

    asyncio.run(scenario())


def test_all_failures_degrade_to_simulated_quote() -> None:
    providers = [
        FakeQuoteProvider("twelve_data", ProviderFailure(provider="twelve_data", kind="NO_DATA")),
        FakeQuoteProvider("alpha_vantage", ProviderFailure(provider="alpha_vantage", kind="MALFORMED_RESPONSE")),
        FakeQuoteProvider("finnhub", ProviderFailure(provider="finnhub", kind="PROVIDER_ERROR")),
    ]

    async def scenario() -> None:
        lookup = await _chain(*providers).get_quote_with_trace("AAPL")
        assert lookup.is_simulated is True
        assert lookup.quote.provider == "Simulated"
        assert lookup.quote.symbol == "AAPL"
        assert [failure.provider for failure in lookup.failures] == ["twelve_data", "alpha_vantage", "finnhub"]
        assert {failure.kind for failure in lookup.failures} <= FAILURE_KINDS
        assert all(len(provider.calls) == 1 for provider in providers)

    asyncio.run(scenario())


def test_empty_chain_returns_simulated_quote_without_failures() -> None:
    async def scenario() -> None:
        lookup = await _chain().get_quote_with_trace("MSFT")
        assert lookup.quote.provider == "Simulated"
        assert lookup.quote.name == "Microsoft Corporation"
        assert lookup.failures == []

    asyncio.run(scenario())


def test_timeout_is_reported_as_provider_error() -> None:
    slow = FakeQuoteProvider("twelve_data", _quote("AAPL", provider="Twelve Data"), delay=1.0)
    fast = FakeQuoteProvider("finnhub", _quote("AAPL", provider="Finnhub"))

    async def scenario() -> None:
        lookup = await _chain(slow, fast, timeout=0.01).get_quote_with_trace("AAPL")
        assert lookup.quote.provider == "Finnhub"
        assert lookup.failures[0].kind == "PROVIDER_ERROR"
        assert "timed out" in lookup.failures[0].detail

    asyncio.run(scenario())


def test_unexpected_exception_is_contained() -> None:
    broken = FakeQuoteProvider("alpha_vantage", RuntimeError("socket closed"))

    async def scenario() -> None:
        lookup = await _chain(broken).get_quote_with_trace("AAPL")
        assert lookup.is_simulated is True
        assert lookup.failures[0].kind == "PROVIDER_ERROR"
        assert lookup.failures[0].detail == "socket closed"

    asyncio.run(scenario())


def test_unexpected_result_type_is_reported_as_provider_error() -> None:
    weird = FakeQuoteProvider("polygon", {"price": 1})

    async def scenario() -> None:
        lookup = await _chain(weird).get_quote_with_trace("AAPL")
        assert lookup.failures[0].kind == "PROVIDER_ERROR"
        assert lookup.failures[0].provider == "polygon"

    asyncio.run(scenario())


def test_cached_quote_is_reused_within_ttl_and_refetched_after() -> None:
    clock = FakeClock()
    provider = FakeQuoteProvider(
        "finnhub",
        _quote("AAPL", provider="Finnhub", price=100.0),
        _quote("AAPL", provider="Finnhub", price=101.0),
    )
    chain = _chain(provider, clock=clock)

    async def scenario() -> None:
        first = await chain.get_quote("AAPL")
        clock.now = 10.0
        second = await chain.get_quote("AAPL")
        clock.now = 31.0
        third = await chain.get_quote("AAPL")

        assert first == second
        assert third.price == 101.0
        assert provider.calls == ["AAPL", "AAPL"]

    asyncio.run(scenario())


def test_failures_are_not_cached() -> None:
    provider = FakeQuoteProvider(
        "finnhub",
        ProviderFailure(provider="finnhub", kind="RATE_LIMITED"),
        _quote("AAPL", provider="Finnhub"),
    )
    chain = _chain(provider)

    async def scenario() -> None:
        assert (await chain.get_quote("AAPL")).is_simulated
        assert (await chain.get_quote("AAPL")).provider == "Finnhub"

    asyncio.run(scenario())


def test_cache_entries_are_scoped_per_symbol() -> None:
    provider = FakeQuoteProvider("finnhub", _quote("AAPL", provider="Finnhub"))
    chain = _chain(provider)

    async def scenario() -> None:
        await chain.get_quote("AAPL")
        await chain.get_quote("MSFT")
        assert provider.calls == ["AAPL", "MSFT"]

    asyncio.run(scenario())


def test_provider_names_preserve_priority_order() -> None:
    chain = _chain(FakeQuoteProvider("twelve_data", None), FakeQuoteProvider("finnhub", None))

    assert chain.provider_names == ["twelve_data", "finnhub"]
