from __future__ import annotations

from datetime import date, timedelta

import pytest

from stock_insight.domain.stock_analysis.indicators import (
    calculate_rsi,
    calculate_technical_indicators,
    classify_trend,
    support_resistance,
)
from stock_insight.domain.stock_analysis.schemas import HistoricalPoint


def _series(prices: list[float]) -> list[HistoricalPoint]:
    start = date(2026, 1, 1)
    return [
        HistoricalPoint(date=(start + timedelta(days=index)).isoformat(), price=price)
        for index, price in enumerate(prices)
    ]


def test_rsi_is_100_for_strictly_rising_series() -> None:
    assert calculate_rsi([100.0 + i for i in range(15)]) == 100.0
    assert calculate_rsi([100.0 + i for i in range(40)]) == 100.0


def test_rsi_is_0_for_strictly_falling_series() -> None:
    assert calculate_rsi([200.0 - i for i in range(15)]) == 0.0


@pytest.mark.parametrize("length", [0, 1, 5, 14])
def test_rsi_is_neutral_when_series_is_too_short(length: int) -> None:
    assert calculate_rsi([100.0 + i for i in range(length)]) == 50.0


def test_rsi_uses_simple_average_of_gains_and_losses() -> None:
    prices = [100.0]
    for _ in range(7):
        prices.append(prices[-1] + 2)
        prices.append(prices[-1] - 1)

    # avg gain 1.0, avg loss 0.5 -> RS 2 -> RSI 66.67
    assert calculate_rsi(prices) == 66.67


def test_rsi_only_looks_at_most_recent_transitions() -> None:
    crash = [500.0, 400.0, 300.0, 200.0, 100.0]
    recovery = [100.0 + i for i in range(1, 15)]

    assert calculate_rsi(crash + recovery) == 100.0


def test_trend_is_bullish_when_recent_mean_beats_older_by_more_than_two_percent() -> None:
    assert classify_trend([100.0] * 5 + [110.0] * 5) == "BULLISH"


def test_trend_is_bearish_when_recent_mean_trails_older_by_more_than_two_percent() -> None:
    assert classify_trend([110.0] * 5 + [100.0] * 5) == "BEARISH"


def test_trend_is_neutral_inside_the_two_percent_band() -> None:
    assert classify_trend([100.0] * 5 + [101.5] * 5) == "NEUTRAL"
    assert classify_trend([100.0] * 5 + [98.5] * 5) == "NEUTRAL"


def test_trend_is_neutral_with_fewer_than_ten_points() -> None:
    assert classify_trend([10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0, 90.0]) == "NEUTRAL"


def test_trend_ignores_points_older_than_ten() -> None:
    prices = [1.0] * 20 + [100.0] * 5 + [100.5] * 5

    assert classify_trend(prices) == "NEUTRAL"


def test_support_and_resistance_use_last_twenty_points() -> None:
    prices = [1.0, 1000.0, 2.0, 999.0, 3.0] + [50.0 + i for i in range(20)]

    assert support_resistance(prices) == (50.0, 69.0)


def test_support_and_resistance_bound_every_price_in_window() -> None:
    prices = [101.3, 99.7, 104.2, 98.1, 100.0, 103.3, 97.9, 102.4]

    support, resistance = support_resistance(prices)

    assert all(support <= price <= resistance for price in prices)
    assert (support, resistance) == (97.9, 104.2)


def test_support_and_resistance_are_rounded_to_cents() -> None:
    assert support_resistance([10.457, 12.343]) == (10.46, 12.34)


def test_indicators_for_single_point_series_degrade_gracefully() -> None:
    indicators = calculate_technical_indicators(_series([42.0]))

    assert indicators.rsi == 50.0
    assert indicators.trend == "NEUTRAL"
    assert indicators.support == 42.0
    assert indicators.resistance == 42.0


def test_indicators_are_identical_when_replayed() -> None:
    series = _series([100.0, 102.0, 99.0, 104.0, 107.0, 103.0, 108.0, 111.0, 109.0, 115.0] * 3)

    first = calculate_technical_indicators(series)
    second = calculate_technical_indicators(series)

    assert first == second


def test_indicators_reject_empty_series() -> None:
    with pytest.raises(ValueError):
        calculate_technical_indicators([])
