from __future__ import annotations

from stock_insight.api.v1.dto.analysis import (
    HistoricalPointOut,
    QuoteOut,
    StockAnalysisOut,
    TechnicalIndicatorsOut,
)
from stock_insight.domain.stock_analysis.schemas import (
    HistoricalPoint,
    Quote,
    StockAnalysis,
    TechnicalIndicators,
)


def to_quote_out(quote: Quote) -> QuoteOut:
    return QuoteOut(
        symbol=quote.symbol,
        name=quote.name,
        price=quote.price,
        change=quote.change,
        change_percent=quote.change_percent,
        volume=quote.volume,
        high=quote.high,
        low=quote.low,
        open=quote.open,
        previous_close=quote.previous_close,
        last_updated=quote.last_updated,
        market_status=quote.market_status,
    )


def to_technical_indicators_out(indicators: TechnicalIndicators) -> TechnicalIndicatorsOut:
    return TechnicalIndicatorsOut(
        rsi=indicators.rsi,
        trend=indicators.trend,
        support=indicators.support,
        resistance=indicators.resistance,
    )


def to_historical_point_out(point: HistoricalPoint) -> HistoricalPointOut:
    return HistoricalPointOut(date=point.date, price=point.price)


def to_stock_analysis_out(analysis: StockAnalysis) -> StockAnalysisOut:
    return StockAnalysisOut(
        quote=to_quote_out(analysis.quote),
        recommendation=analysis.recommendation,
        confidence=analysis.confidence,
        reasoning=analysis.reasoning,
        technical_indicators=to_technical_indicators_out(analysis.technical_indicators),
        historical_data=[to_historical_point_out(point) for point in analysis.historical_data],
    )
