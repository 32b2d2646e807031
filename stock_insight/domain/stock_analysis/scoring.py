from __future__ import annotations

from stock_insight.domain.stock_analysis.schemas import Quote, Recommendation, TechnicalIndicators

OVERSOLD_RSI = 30
OVERBOUGHT_RSI = 70
MOMENTUM_THRESHOLD_PCT = 2.0
HIGH_VOLUME_THRESHOLD = 1_000_000

BUY_SCORE = 2
SELL_SCORE = -2
HOLD_CONFIDENCE = 60.0
BASE_CONFIDENCE = 60.0
CONFIDENCE_PER_POINT = 5.0
MAX_CONFIDENCE = 85.0

MIXED_SIGNALS_REASONING = "Mixed signals suggest holding position."


def score_recommendation(quote: Quote, indicators: TechnicalIndicators) -> Recommendation:
    score = 0.0
    reasons: list[str] = []

    if indicators.rsi < OVERSOLD_RSI:
        score += 2
        reasons.append("RSI indicates oversold conditions")
    elif indicators.rsi > OVERBOUGHT_RSI:
        score -= 2
        reasons.append("RSI indicates overbought conditions")

    if indicators.trend == "BULLISH":
        score += 1
        reasons.append("Bullish price trend detected")
    elif indicators.trend == "BEARISH":
        score -= 1
        reasons.append("Bearish price trend detected")

    change_pct = parse_change_percent(quote.change_percent)
    if change_pct > MOMENTUM_THRESHOLD_PCT:
        score += 1
        reasons.append("Strong positive momentum")
    elif change_pct < -MOMENTUM_THRESHOLD_PCT:
        score -= 1
        reasons.append("Negative momentum observed")

    if quote.volume > HIGH_VOLUME_THRESHOLD:
        score += 0.5
        reasons.append("High trading volume indicates interest")

    if score >= BUY_SCORE:
        action = "BUY"
        confidence = min(MAX_CONFIDENCE, BASE_CONFIDENCE + CONFIDENCE_PER_POINT * abs(score))
    elif score <= SELL_SCORE:
        action = "SELL"
        confidence = min(MAX_CONFIDENCE, BASE_CONFIDENCE + CONFIDENCE_PER_POINT * abs(score))
    else:
        action = "HOLD"
        confidence = HOLD_CONFIDENCE

    reasoning = ". ".join(reasons) + "." if reasons else MIXED_SIGNALS_REASONING
    return Recommendation(action=action, confidence=confidence, reasoning=reasoning, score=score)


def parse_change_percent(raw: str) -> float:
    text = raw.strip().replace("%", "")
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0
