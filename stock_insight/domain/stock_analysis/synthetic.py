from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
import math
import random

from stock_insight.domain.stock_analysis.market_hours import as_market_time, resolve_market_status, utc_now
from stock_insight.domain.stock_analysis.quotes import (
    change_percent_from,
    company_name,
    last_updated_label,
    normalize_symbol,
    round_price,
)
from stock_insight.domain.stock_analysis.schemas import SIMULATED_PROVIDER, HistoricalPoint, Quote

DEFAULT_ANCHOR_PRICE = 100.0
SERIES_MAX_DEVIATION = 0.03

_BASE_PRICES = {
    "AAPL": 175.0,
    "GOOGL": 140.0,
    "MSFT": 380.0,
    "AMZN": 145.0,
    "TSLA": 250.0,
    "META": 500.0,
    "NVDA": 875.0,
    "NFLX": 445.0,
    "AMD": 165.0,
    "INTC": 45.0,
}


class SyntheticMarketData:
    """Demo quote and history generator used when every upstream provider fails.

    The random source and clock are injectable so generated data is
    reproducible in tests.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._rng = rng or random.Random()
        self._now = now

    def quote(self, symbol: str) -> Quote:
        normalized = normalize_symbol(symbol)
        now = self._now()
        market_status = resolve_market_status(now=now)

        base_price = self._base_price(normalized)
        if market_status == "OPEN":
            variation = (self._rng.random() - 0.5) * 0.04
        else:
            minute = as_market_time(now).minute
            variation = math.sin(minute / 10) * 0.02 * 0.5

        price = base_price * (1 + variation)
        previous_close = base_price * (1 + (self._rng.random() - 0.5) * 0.01)
        volume = 10_000_000 + self._rng.randrange(50_000_000)

        return Quote(
            symbol=normalized,
            name=company_name(normalized),
            price=round_price(price),
            change=round_price(price - previous_close),
            change_percent=change_percent_from(price=price, previous_close=previous_close),
            volume=volume,
            high=round_price(price * 1.02),
            low=round_price(price * 0.98),
            open=round_price(previous_close * 1.005),
            previous_close=round_price(previous_close),
            last_updated=last_updated_label(now=now, provider=SIMULATED_PROVIDER),
            provider=SIMULATED_PROVIDER,
            market_status=market_status,
        )

    def series(self, *, anchor_price: float, days: int) -> list[HistoricalPoint]:
        if days < 1:
            raise ValueError("days must be >= 1")
        if not math.isfinite(anchor_price) or anchor_price <= 0:
            anchor_price = DEFAULT_ANCHOR_PRICE

        today = as_market_time(self._now()).date()
        points: list[HistoricalPoint] = []
        for offset in range(days - 1, -1, -1):
            deviation = (self._rng.random() - 0.5) * 2 * SERIES_MAX_DEVIATION
            points.append(
                HistoricalPoint(
                    date=(today - timedelta(days=offset)).isoformat(),
                    price=max(0.0, round_price(anchor_price * (1 + deviation))),
                )
            )
        return points

    def _base_price(self, symbol: str) -> float:
        base_price = _BASE_PRICES.get(symbol)
        if base_price is not None:
            return base_price
        return 100 + self._rng.random() * 200
