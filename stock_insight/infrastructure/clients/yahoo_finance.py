from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import httpx

from stock_insight.domain.stock_analysis.market_hours import resolve_market_status, utc_now
from stock_insight.domain.stock_analysis.schemas import HistoricalPoint, ProviderFailure, Quote
from stock_insight.infrastructure.clients.http_json import get_json
from stock_insight.infrastructure.clients.provider_mappers import (
    YAHOO_FINANCE,
    map_yahoo_chart_closes,
    map_yahoo_chart_quote,
)

# Smallest chart range holding at least this many daily sessions, allowing for holidays.
_HISTORY_RANGES = (
    (60, "3mo"),
    (120, "6mo"),
    (245, "1y"),
    (490, "2y"),
)
_MAX_HISTORY_RANGE = "5y"


def history_range(days: int) -> str:
    for sessions, chart_range in _HISTORY_RANGES:
        if days <= sessions:
            return chart_range
    return _MAX_HISTORY_RANGE


class YahooFinanceClient:
    name = YAHOO_FINANCE

    def __init__(
        self,
        base_url: str = "https://query1.finance.yahoo.com",
        *,
        timeout_seconds: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._now = now

    async def chart(self, symbol: str, params: dict | None = None) -> object | ProviderFailure:
        return await get_json(
            provider=self.name,
            url=f"{self.base_url}/v8/finance/chart/{symbol}",
            params=params,
            timeout=self._timeout_seconds,
            transport=self._transport,
        )

    async def fetch_quote(self, symbol: str) -> Quote | ProviderFailure:
        payload = await self.chart(symbol)
        if isinstance(payload, ProviderFailure):
            return payload
        now = self._now()
        return map_yahoo_chart_quote(payload, symbol=symbol, now=now, market_status=resolve_market_status(now=now))

    async def fetch_daily_closes(self, symbol: str, days: int = 30) -> list[HistoricalPoint] | ProviderFailure:
        payload = await self.chart(symbol, {"range": history_range(days), "interval": "1d"})
        if isinstance(payload, ProviderFailure):
            return payload
        return map_yahoo_chart_closes(payload)
