from __future__ import annotations

from collections.abc import Sequence

from stock_insight.domain.stock_analysis.schemas import HistoricalPoint, TechnicalIndicators

RSI_PERIOD = 14
NEUTRAL_RSI = 50.0
TREND_WINDOW = 5
TREND_UPPER_RATIO = 1.02
TREND_LOWER_RATIO = 0.98
SUPPORT_RESISTANCE_WINDOW = 20


def calculate_technical_indicators(series: Sequence[HistoricalPoint]) -> TechnicalIndicators:
    if not series:
        raise ValueError("Historical series must contain at least one point")

    prices = [point.price for point in series]
    support, resistance = support_resistance(prices)
    return TechnicalIndicators(
        rsi=calculate_rsi(prices),
        trend=classify_trend(prices),
        support=support,
        resistance=resistance,
    )


def calculate_rsi(prices: Sequence[float], period: int = RSI_PERIOD) -> float:
    """Simple-average RSI over the most recent ``period`` day-over-day transitions."""
    if period < 1:
        raise ValueError("RSI period must be >= 1")
    if len(prices) < period + 1:
        return NEUTRAL_RSI

    window = prices[-(period + 1) :]
    gains = 0.0
    losses = 0.0
    for previous, current in zip(window, window[1:]):
        delta = current - previous
        if delta > 0:
            gains += delta
        else:
            losses -= delta

    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return round(100 - 100 / (1 + rs), 2)


def classify_trend(prices: Sequence[float]) -> str:
    if not prices:
        return "NEUTRAL"

    recent = prices[-TREND_WINDOW:]
    recent_avg = _mean(recent)
    if len(prices) < TREND_WINDOW * 2:
        older_avg = recent_avg
    else:
        older_avg = _mean(prices[-TREND_WINDOW * 2 : -TREND_WINDOW])

    if recent_avg > older_avg * TREND_UPPER_RATIO:
        return "BULLISH"
    if recent_avg < older_avg * TREND_LOWER_RATIO:
        return "BEARISH"
    return "NEUTRAL"


def support_resistance(
    prices: Sequence[float],
    window: int = SUPPORT_RESISTANCE_WINDOW,
) -> tuple[float, float]:
    if not prices:
        raise ValueError("Support/resistance requires at least one price")
    recent = prices[-window:]
    return round(min(recent), 2), round(max(recent), 2)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)
