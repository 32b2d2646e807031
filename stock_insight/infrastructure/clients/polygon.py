from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import httpx

from stock_insight.domain.stock_analysis.market_hours import resolve_market_status, utc_now
from stock_insight.domain.stock_analysis.schemas import ProviderFailure, Quote
from stock_insight.infrastructure.clients.http_json import get_json
from stock_insight.infrastructure.clients.provider_mappers import POLYGON, map_polygon_previous_close


class PolygonClient:
    name = POLYGON

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.polygon.io",
        *,
        timeout_seconds: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        if not api_key:
            raise ValueError("Polygon API key is not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._now = now

    async def get(self, path: str, params: dict | None = None) -> dict | ProviderFailure:
        params = dict(params or {})
        params["apiKey"] = self.api_key
        return await get_json(
            provider=self.name,
            url=f"{self.base_url}{path}",
            params=params,
            timeout=self._timeout_seconds,
            transport=self._transport,
        )

    async def fetch_quote(self, symbol: str) -> Quote | ProviderFailure:
        payload = await self.get(f"/v2/aggs/ticker/{symbol}/prev", {"adjusted": "true"})
        if isinstance(payload, ProviderFailure):
            return payload
        now = self._now()
        return map_polygon_previous_close(
            payload,
            symbol=symbol,
            now=now,
            market_status=resolve_market_status(now=now),
        )
