from __future__ import annotations


class StockAnalysisApplicationError(ValueError):
    """Base error for stock analysis application layer."""


class InvalidSymbolError(StockAnalysisApplicationError):
    """Raised when a ticker symbol is not 1-5 letters after normalization."""

    def __init__(self, symbol: str = "") -> None:
        super().__init__("STOCK_ANALYSIS_INVALID_SYMBOL")
        self.symbol = symbol


class StockAnalysisInternalError(StockAnalysisApplicationError):
    """Raised when indicator computation or scoring fails unexpectedly."""

    def __init__(self) -> None:
        super().__init__("STOCK_ANALYSIS_INTERNAL_ERROR")


class InvalidHistoryWindowError(StockAnalysisApplicationError):
    """Raised when a requested history window is outside the supported range."""

    def __init__(self) -> None:
        super().__init__("STOCK_ANALYSIS_INVALID_DAYS")
