from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AnalyzeRequestIn(BaseModel):
    symbol: Any = None


class QuoteOut(_CamelModel):
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
    market_status: str | None = None


class TechnicalIndicatorsOut(_CamelModel):
    rsi: float
    trend: str
    support: float
    resistance: float


class HistoricalPointOut(_CamelModel):
    date: str
    price: float


class StockAnalysisOut(_CamelModel):
    quote: QuoteOut
    recommendation: str
    confidence: float = Field(ge=0, le=100)
    reasoning: str
    technical_indicators: TechnicalIndicatorsOut
    historical_data: list[HistoricalPointOut]


class StockAnalysisEnvelopeOut(BaseModel):
    success: bool = True
    data: StockAnalysisOut
    timestamp: datetime


class QuoteEnvelopeOut(BaseModel):
    success: bool = True
    data: QuoteOut
    timestamp: datetime


class HistoryEnvelopeOut(BaseModel):
    success: bool = True
    data: list[HistoricalPointOut]
    timestamp: datetime
