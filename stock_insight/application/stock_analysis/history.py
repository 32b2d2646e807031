from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
import logging
from typing import Any

from stock_insight.application.stock_analysis.cache import HISTORY_REQUEST, ResponseCache, cache_key
from stock_insight.application.stock_analysis.quote_chain import QuoteFallbackChain
from stock_insight.domain.stock_analysis.schemas import (
    FAILURE_MALFORMED_RESPONSE,
    FAILURE_NO_DATA,
    FAILURE_PROVIDER_ERROR,
    SIMULATED_PROVIDER,
    HistoricalPoint,
    ProviderFailure,
    Quote,
)
from stock_insight.domain.stock_analysis.synthetic import DEFAULT_ANCHOR_PRICE, SyntheticMarketData

DEFAULT_HISTORY_DAYS = 30

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SeriesLookup:
    points: list[HistoricalPoint]
    source: str
    failures: list[ProviderFailure] = field(default_factory=list)


class HistoricalSeriesFetcher:
    """Fetches daily closing prices, falling back to a synthetic series.

    Providers expose ``name`` and an async ``fetch_daily_closes(symbol, days=...)``
    returning oldest-first ``HistoricalPoint`` items or a ``ProviderFailure``.
    Callers that already have a quote lookup in flight pass it as
    ``anchor_quote`` so the synthetic fallback reuses it.
    """

    def __init__(
        self,
        *,
        providers: Sequence[Any],
        cache: ResponseCache,
        quote_chain: QuoteFallbackChain,
        synthetic: SyntheticMarketData,
        timeout_seconds: float = 8.0,
    ) -> None:
        self._providers = list(providers)
        self._cache = cache
        self._quote_chain = quote_chain
        self._synthetic = synthetic
        self._timeout_seconds = timeout_seconds

    async def get_series(
        self,
        symbol: str,
        days: int = DEFAULT_HISTORY_DAYS,
        *,
        anchor_quote: Awaitable[Quote] | None = None,
    ) -> list[HistoricalPoint]:
        lookup = await self.get_series_with_trace(symbol, days=days, anchor_quote=anchor_quote)
        return lookup.points

    async def get_series_with_trace(
        self,
        symbol: str,
        days: int = DEFAULT_HISTORY_DAYS,
        *,
        anchor_quote: Awaitable[Quote] | None = None,
    ) -> SeriesLookup:
        if days < 1:
            raise ValueError("days must be >= 1")

        failures: list[ProviderFailure] = []
        for provider in self._providers:
            key = cache_key(provider=provider.name, symbol=symbol, kind=HISTORY_REQUEST)
            cached = self._cache.get(key)
            window = _validated_window(cached, days=days) if cached is not None else None
            if not isinstance(window, list):
                # a cached series shorter than this request is refetched with a wider range
                result = await self._fetch_from(provider, symbol=symbol, days=days)
                if isinstance(result, ProviderFailure):
                    failures.append(result)
                    logger.warning(
                        "History provider %s failed for %s: %s %s",
                        result.provider,
                        symbol,
                        result.kind,
                        result.detail,
                    )
                    continue
                self._cache.put(key, result)
                window = _validated_window(result, days=days)

            if isinstance(window, str):
                failures.append(ProviderFailure(provider=provider.name, kind=FAILURE_NO_DATA, detail=window))
                logger.warning("History provider %s unusable for %s: %s", provider.name, symbol, window)
                continue
            return SeriesLookup(points=window, source=provider.name, failures=failures)

        anchor_price = await self._anchor_price(symbol, anchor_quote=anchor_quote)
        logger.warning("Historical data unavailable for %s, using simulated series", symbol)
        return SeriesLookup(
            points=self._synthetic.series(anchor_price=anchor_price, days=days),
            source=SIMULATED_PROVIDER,
            failures=failures,
        )

    async def _fetch_from(self, provider: Any, *, symbol: str, days: int) -> list[HistoricalPoint] | ProviderFailure:
        try:
            result = await asyncio.wait_for(
                provider.fetch_daily_closes(symbol, days=days),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            return ProviderFailure(
                provider=provider.name,
                kind=FAILURE_PROVIDER_ERROR,
                detail=f"timed out after {self._timeout_seconds:g}s",
            )
        except Exception as exc:
            logger.exception("History provider %s raised unexpectedly", provider.name)
            return ProviderFailure(provider=provider.name, kind=FAILURE_PROVIDER_ERROR, detail=str(exc))

        if isinstance(result, ProviderFailure):
            return result
        if not isinstance(result, list) or not all(isinstance(point, HistoricalPoint) for point in result):
            return ProviderFailure(
                provider=provider.name,
                kind=FAILURE_MALFORMED_RESPONSE,
                detail="history entries are not price points",
            )
        return result

    async def _anchor_price(self, symbol: str, *, anchor_quote: Awaitable[Quote] | None) -> float:
        try:
            if anchor_quote is None:
                anchor_quote = self._quote_chain.get_quote(symbol)
            quote = await anchor_quote
        except Exception:
            logger.exception("Anchor quote lookup failed for %s", symbol)
            return DEFAULT_ANCHOR_PRICE
        return quote.price if quote.price > 0 else DEFAULT_ANCHOR_PRICE


def _validated_window(points: list[HistoricalPoint], *, days: int) -> list[HistoricalPoint] | str:
    ordered = sorted(points, key=lambda point: point.date)
    if len(ordered) < days:
        return f"only {len(ordered)} of {days} points available"
    window = ordered[-days:]
    if any(point.price < 0 for point in window):
        return "negative price in series"
    return window
