from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
import logging

from stock_insight.application.stock_analysis.errors import (
    InvalidHistoryWindowError,
    InvalidSymbolError,
    StockAnalysisInternalError,
)
from stock_insight.application.stock_analysis.history import DEFAULT_HISTORY_DAYS, HistoricalSeriesFetcher
from stock_insight.application.stock_analysis.quote_chain import QuoteFallbackChain
from stock_insight.domain.stock_analysis.indicators import calculate_technical_indicators
from stock_insight.domain.stock_analysis.quotes import is_valid_symbol, normalize_symbol
from stock_insight.domain.stock_analysis.schemas import HistoricalPoint, Quote, StockAnalysis
from stock_insight.domain.stock_analysis.scoring import score_recommendation

MAX_HISTORY_DAYS = 365

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class StockAnalysisService:
    def __init__(
        self,
        *,
        quote_chain: QuoteFallbackChain,
        history_fetcher: HistoricalSeriesFetcher,
        history_days: int = DEFAULT_HISTORY_DAYS,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._quote_chain = quote_chain
        self._history_fetcher = history_fetcher
        self._history_days = history_days
        self._now = now

    async def analyze(self, symbol: str) -> StockAnalysis:
        normalized = _validate_symbol(symbol)

        try:
            quote_task = asyncio.create_task(self._quote_chain.get_quote(normalized))
            quote, series = await asyncio.gather(
                quote_task,
                self._history_fetcher.get_series(normalized, days=self._history_days, anchor_quote=quote_task),
            )
            indicators = calculate_technical_indicators(series)
            recommendation = score_recommendation(quote, indicators)
        except Exception as exc:
            logger.exception("Stock analysis failed for %s", normalized)
            raise StockAnalysisInternalError() from exc

        return StockAnalysis(
            quote=quote,
            recommendation=recommendation.action,
            confidence=recommendation.confidence,
            reasoning=recommendation.reasoning,
            technical_indicators=indicators,
            historical_data=list(series),
            generated_at=self._now().isoformat(),
        )

    async def get_quote(self, symbol: str) -> Quote:
        normalized = _validate_symbol(symbol)
        try:
            return await self._quote_chain.get_quote(normalized)
        except Exception as exc:
            logger.exception("Quote lookup failed for %s", normalized)
            raise StockAnalysisInternalError() from exc

    async def get_history(self, symbol: str, days: int | None = None) -> list[HistoricalPoint]:
        normalized = _validate_symbol(symbol)
        days = self._history_days if days is None else days
        if days < 1 or days > MAX_HISTORY_DAYS:
            raise InvalidHistoryWindowError()
        try:
            return await self._history_fetcher.get_series(normalized, days=days)
        except Exception as exc:
            logger.exception("History lookup failed for %s", normalized)
            raise StockAnalysisInternalError() from exc


def _validate_symbol(symbol: object) -> str:
    if not isinstance(symbol, str):
        raise InvalidSymbolError(str(symbol))
    normalized = normalize_symbol(symbol)
    if not is_valid_symbol(normalized):
        raise InvalidSymbolError(symbol)
    return normalized
