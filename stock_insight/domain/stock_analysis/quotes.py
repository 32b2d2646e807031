from __future__ import annotations

from datetime import datetime
import math
import re

from stock_insight.domain.stock_analysis.market_hours import as_market_time
from stock_insight.domain.stock_analysis.schemas import FAILURE_MALFORMED_RESPONSE, ProviderFailure, Quote

SYMBOL_PATTERN = re.compile(r"^[A-Z]{1,5}$")

_COMPANY_NAMES = {
    "AAPL": "Apple Inc.",
    "GOOGL": "Alphabet Inc.",
    "MSFT": "Microsoft Corporation",
    "AMZN": "Amazon.com Inc.",
    "TSLA": "Tesla Inc.",
    "META": "Meta Platforms Inc.",
    "NVDA": "NVIDIA Corporation",
    "NFLX": "Netflix Inc.",
    "AMD": "Advanced Micro Devices",
    "INTC": "Intel Corporation",
}


def normalize_symbol(raw: str) -> str:
    return raw.strip().upper()


def is_valid_symbol(symbol: str) -> bool:
    return SYMBOL_PATTERN.fullmatch(symbol) is not None


def company_name(symbol: str) -> str:
    normalized = normalize_symbol(symbol)
    return _COMPANY_NAMES.get(normalized, f"{normalized} Inc.")


def round_price(value: float) -> float:
    return round(value, 2)


def format_change_percent(change_pct: float) -> str:
    sign = "+" if change_pct >= 0 else ""
    return f"{sign}{change_pct:.2f}%"


def change_percent_from(*, price: float, previous_close: float) -> str:
    if previous_close <= 0:
        return format_change_percent(0.0)
    return format_change_percent((price - previous_close) / previous_close * 100)


def last_updated_label(*, now: datetime, provider: str) -> str:
    local_now = as_market_time(now)
    return f"{local_now:%Y-%m-%d %H:%M:%S} ET ({provider})"


def is_valid_price(value: float) -> bool:
    return math.isfinite(value) and value >= 0


def build_quote(
    *,
    symbol: str,
    provider: str,
    now: datetime,
    price: float,
    previous_close: float,
    volume: float = 0,
    high: float | None = None,
    low: float | None = None,
    open_price: float | None = None,
    change: float | None = None,
    change_pct: float | None = None,
    market_status: str | None = None,
    provider_id: str | None = None,
) -> Quote | ProviderFailure:
    """Assemble a canonical quote, rejecting values that break quote invariants.

    Missing day range or open fall back to the current price and a missing
    change is derived from the previous close. Failures are tagged with
    ``provider_id`` when given, otherwise with the display ``provider``.
    """
    high = price if high is None or high == 0 else high
    low = price if low is None or low == 0 else low
    open_price = price if open_price is None or open_price == 0 else open_price

    for field_name, value in (
        ("price", price),
        ("previous_close", previous_close),
        ("high", high),
        ("low", low),
        ("open", open_price),
    ):
        if not is_valid_price(value):
            return ProviderFailure(
                provider=provider_id or provider,
                kind=FAILURE_MALFORMED_RESPONSE,
                detail=f"{field_name} must be a non-negative finite number",
            )
    if not math.isfinite(volume) or volume < 0:
        return ProviderFailure(
            provider=provider_id or provider,
            kind=FAILURE_MALFORMED_RESPONSE,
            detail="volume must be a non-negative number",
        )

    if high < low:
        high, low = low, high

    if change is None:
        change = price - previous_close
    if change_pct is None:
        change_percent = change_percent_from(price=price, previous_close=previous_close)
    else:
        change_percent = format_change_percent(change_pct)

    normalized = normalize_symbol(symbol)
    return Quote(
        symbol=normalized,
        name=company_name(normalized),
        price=round_price(price),
        change=round_price(change),
        change_percent=change_percent,
        volume=int(volume),
        high=round_price(high),
        low=round_price(low),
        open=round_price(open_price),
        previous_close=round_price(previous_close),
        last_updated=last_updated_label(now=now, provider=provider),
        provider=provider,
        market_status=market_status,
    )
