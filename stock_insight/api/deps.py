from __future__ import annotations

from stock_insight.application.container import get_stock_analysis_service
from stock_insight.application.stock_analysis.service import StockAnalysisService


def get_analysis_service() -> StockAnalysisService:
    return get_stock_analysis_service()
