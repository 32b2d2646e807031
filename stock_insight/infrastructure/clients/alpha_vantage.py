from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import httpx

from stock_insight.domain.stock_analysis.market_hours import resolve_market_status, utc_now
from stock_insight.domain.stock_analysis.schemas import HistoricalPoint, ProviderFailure, Quote
from stock_insight.infrastructure.clients.http_json import get_json
from stock_insight.infrastructure.clients.provider_mappers import (
    ALPHA_VANTAGE,
    map_alpha_vantage_daily_series,
    map_alpha_vantage_quote,
)

COMPACT_SERIES_POINTS = 100


class AlphaVantageClient:
    """Alpha Vantage ``GLOBAL_QUOTE`` and ``TIME_SERIES_DAILY`` endpoints.

    Alpha Vantage reports throttling and unknown symbols inside a 200
    response body, so those signals are decoded by the mappers.
    """

    name = ALPHA_VANTAGE

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://www.alphavantage.co",
        *,
        timeout_seconds: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        if not api_key:
            raise ValueError("Alpha Vantage API key is not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._now = now

    async def query(self, function: str, symbol: str, **extra: str) -> object | ProviderFailure:
        return await get_json(
            provider=self.name,
            url=f"{self.base_url}/query",
            params={"function": function, "symbol": symbol, "apikey": self.api_key, **extra},
            timeout=self._timeout_seconds,
            transport=self._transport,
        )

    async def fetch_quote(self, symbol: str) -> Quote | ProviderFailure:
        payload = await self.query("GLOBAL_QUOTE", symbol)
        if isinstance(payload, ProviderFailure):
            return payload
        now = self._now()
        return map_alpha_vantage_quote(payload, symbol=symbol, now=now, market_status=resolve_market_status(now=now))

    async def fetch_daily_closes(self, symbol: str, days: int = 30) -> list[HistoricalPoint] | ProviderFailure:
        outputsize = "compact" if days <= COMPACT_SERIES_POINTS else "full"
        payload = await self.query("TIME_SERIES_DAILY", symbol, outputsize=outputsize)
        if isinstance(payload, ProviderFailure):
            return payload
        return map_alpha_vantage_daily_series(payload)
