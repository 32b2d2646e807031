from __future__ import annotations

from dataclasses import dataclass

FAILURE_NO_DATA = "NO_DATA"
FAILURE_RATE_LIMITED = "RATE_LIMITED"
FAILURE_PROVIDER_ERROR = "PROVIDER_ERROR"
FAILURE_MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
FAILURE_KINDS = frozenset(
    {
        FAILURE_NO_DATA,
        FAILURE_RATE_LIMITED,
        FAILURE_PROVIDER_ERROR,
        FAILURE_MALFORMED_RESPONSE,
    }
)

MARKET_STATUSES = frozenset({"OPEN", "CLOSED", "PRE_MARKET", "AFTER_HOURS"})
TRENDS = frozenset({"BULLISH", "BEARISH", "NEUTRAL"})
RECOMMENDATIONS = frozenset({"BUY", "SELL", "HOLD"})

SIMULATED_PROVIDER = "Simulated"


@dataclass(slots=True, frozen=True)
class Quote:
    symbol: str
    name: str
    price: float
    change: float
    change_percent: str
    volume: int
    high: float
    low: float
    open: float
    previous_close: float
    last_updated: str
    provider: str
    market_status: str | None = None

    @property
    def is_simulated(self) -> bool:
        return self.provider == SIMULATED_PROVIDER


@dataclass(slots=True, frozen=True)
class ProviderFailure:
    provider: str
    kind: str
    detail: str = ""


@dataclass(slots=True, frozen=True)
class HistoricalPoint:
    date: str
    price: float


@dataclass(slots=True, frozen=True)
class TechnicalIndicators:
    rsi: float
    trend: str
    support: float
    resistance: float


@dataclass(slots=True, frozen=True)
class Recommendation:
    action: str
    confidence: float
    reasoning: str
    score: float


@dataclass(slots=True, frozen=True)
class StockAnalysis:
    quote: Quote
    recommendation: str
    confidence: float
    reasoning: str
    technical_indicators: TechnicalIndicators
    historical_data: list[HistoricalPoint]
    generated_at: str
