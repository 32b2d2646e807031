from __future__ import annotations

from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from stock_insight.api.deps import get_analysis_service
from stock_insight.api.errors import install_api_error_handlers
from stock_insight.api.v1.router import api_router
from stock_insight.application.stock_analysis.errors import (
    InvalidHistoryWindowError,
    InvalidSymbolError,
    StockAnalysisInternalError,
)
from stock_insight.domain.stock_analysis.schemas import (
    HistoricalPoint,
    Quote,
    StockAnalysis,
    TechnicalIndicators,
)


def _quote(symbol: str) -> Quote:
    return Quote(
        symbol=symbol,
        name="Apple Inc.",
        price=203.12,
        change=-0.85,
        change_percent="-0.42%",
        volume=48923112,
        high=205.3,
        low=201.98,
        open=204.01,
        previous_close=203.97,
        last_updated="2026-02-10 09:31:22 ET (Twelve Data)",
        provider="Twelve Data",
        market_status="OPEN",
    )


def _history(days: int) -> list[HistoricalPoint]:
    return [HistoricalPoint(date=f"2026-01-{index + 1:02d}", price=200.0 + index) for index in range(days)]


class FakeStockAnalysisService:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail_internal = False
        self.history_days: list[int | None] = []

    def _check(self, symbol: str) -> str:
        normalized = symbol.strip().upper()
        if not normalized.isalpha() or len(normalized) > 5:
            raise InvalidSymbolError(symbol)
        if self.fail_internal:
            raise StockAnalysisInternalError()
        return normalized

    async def analyze(self, symbol: str) -> StockAnalysis:
        self.calls.append(("analyze", symbol))
        normalized = self._check(symbol)
        return StockAnalysis(
            quote=_quote(normalized),
            recommendation="HOLD",
            confidence=60.0,
            reasoning="Mixed signals suggest holding position.",
            technical_indicators=TechnicalIndicators(rsi=48.2, trend="NEUTRAL", support=199.5, resistance=207.4),
            historical_data=_history(3),
            generated_at="2026-02-10T14:31:22+00:00",
        )

    async def get_quote(self, symbol: str) -> Quote:
        self.calls.append(("quote", symbol))
        return _quote(self._check(symbol))

    async def get_history(self, symbol: str, days: int | None = None) -> list[HistoricalPoint]:
        self.calls.append(("history", symbol))
        self.history_days.append(days)
        self._check(symbol)
        if days is not None and days > 31:
            raise InvalidHistoryWindowError()
        return _history(days or 30)


@pytest.fixture
def analysis_service() -> FakeStockAnalysisService:
    return FakeStockAnalysisService()


@pytest.fixture
def api_client(analysis_service: FakeStockAnalysisService) -> Generator[TestClient, None, None]:
    app = FastAPI()
    install_api_error_handlers(app)
    app.include_router(api_router, prefix="/api/v1")
    app.dependency_overrides[get_analysis_service] = lambda: analysis_service

    with TestClient(app) as client:
        yield client
