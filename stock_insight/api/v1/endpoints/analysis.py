from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from stock_insight.api.deps import get_analysis_service
from stock_insight.api.errors import raise_api_error
from stock_insight.api.v1.dto.analysis import (
    AnalyzeRequestIn,
    HistoryEnvelopeOut,
    QuoteEnvelopeOut,
    StockAnalysisEnvelopeOut,
)
from stock_insight.api.v1.dto.mappers import to_historical_point_out, to_quote_out, to_stock_analysis_out
from stock_insight.application.stock_analysis.errors import (
    InvalidHistoryWindowError,
    InvalidSymbolError,
    StockAnalysisApplicationError,
    StockAnalysisInternalError,
)
from stock_insight.application.stock_analysis.service import StockAnalysisService

router = APIRouter()


@router.post("/analyze", response_model=StockAnalysisEnvelopeOut)
async def analyze_stock(
    payload: AnalyzeRequestIn,
    service: StockAnalysisService = Depends(get_analysis_service),
) -> StockAnalysisEnvelopeOut:
    return await _analyze(payload.symbol, service=service)


@router.get("/analyze", response_model=StockAnalysisEnvelopeOut)
async def analyze_stock_by_query(
    symbol: str | None = Query(None),
    service: StockAnalysisService = Depends(get_analysis_service),
) -> StockAnalysisEnvelopeOut:
    return await _analyze(symbol, service=service)


@router.get("/quote", response_model=QuoteEnvelopeOut)
async def get_quote(
    symbol: str | None = Query(None),
    service: StockAnalysisService = Depends(get_analysis_service),
) -> QuoteEnvelopeOut:
    symbol = _require_symbol(symbol)
    try:
        quote = await service.get_quote(symbol)
    except StockAnalysisApplicationError as exc:
        _raise_stock_analysis_error(exc, symbol=symbol)
    return QuoteEnvelopeOut(data=to_quote_out(quote), timestamp=datetime.now(tz=timezone.utc))


@router.get("/history", response_model=HistoryEnvelopeOut)
async def get_history(
    symbol: str | None = Query(None),
    days: int | None = Query(None, ge=1, le=365),
    service: StockAnalysisService = Depends(get_analysis_service),
) -> HistoryEnvelopeOut:
    symbol = _require_symbol(symbol)
    try:
        points = await service.get_history(symbol, days=days)
    except StockAnalysisApplicationError as exc:
        _raise_stock_analysis_error(exc, symbol=symbol)
    return HistoryEnvelopeOut(
        data=[to_historical_point_out(point) for point in points],
        timestamp=datetime.now(tz=timezone.utc),
    )


async def _analyze(symbol: object, *, service: StockAnalysisService) -> StockAnalysisEnvelopeOut:
    symbol = _require_symbol(symbol)
    try:
        analysis = await service.analyze(symbol)
    except StockAnalysisApplicationError as exc:
        _raise_stock_analysis_error(exc, symbol=symbol)
    return StockAnalysisEnvelopeOut(
        data=to_stock_analysis_out(analysis),
        timestamp=datetime.now(tz=timezone.utc),
    )


def _require_symbol(symbol: object) -> str:
    if not isinstance(symbol, str) or not symbol:
        raise_api_error(
            status_code=400,
            code="STOCK_ANALYSIS_INVALID_SYMBOL",
            message="Symbol is required and must be a string",
        )
    return symbol


def _raise_stock_analysis_error(exc: StockAnalysisApplicationError, *, symbol: str) -> None:
    if isinstance(exc, InvalidSymbolError):
        raise_api_error(
            status_code=400,
            code=str(exc),
            message=f'"{symbol}" is not a valid ticker symbol. Please use symbols like AAPL, GOOGL, MSFT.',
            details={"symbol": symbol},
        )
    if isinstance(exc, InvalidHistoryWindowError):
        raise_api_error(
            status_code=400,
            code=str(exc),
            message="days must be between 1 and 365",
        )
    if isinstance(exc, StockAnalysisInternalError):
        raise_api_error(
            status_code=500,
            code=str(exc),
            message="Failed to analyze stock. Please try again later.",
        )
    raise_api_error(
        status_code=400,
        code="STOCK_ANALYSIS_REQUEST_INVALID",
        message=str(exc),
    )
