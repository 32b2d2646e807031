from __future__ import annotations

from functools import lru_cache

from stock_insight.application.stock_analysis.cache import ResponseCache
from stock_insight.application.stock_analysis.history import HistoricalSeriesFetcher
from stock_insight.application.stock_analysis.quote_chain import QuoteFallbackChain
from stock_insight.application.stock_analysis.service import StockAnalysisService
from stock_insight.core.config import Settings, settings
from stock_insight.domain.stock_analysis.synthetic import SyntheticMarketData
from stock_insight.infrastructure.clients.alpha_vantage import AlphaVantageClient
from stock_insight.infrastructure.clients.finnhub import FinnhubClient
from stock_insight.infrastructure.clients.polygon import PolygonClient
from stock_insight.infrastructure.clients.twelve_data import TwelveDataClient
from stock_insight.infrastructure.clients.yahoo_finance import YahooFinanceClient


def build_quote_providers(config: Settings) -> list[object]:
    timeout = config.market_data_provider_timeout_seconds
    providers: list[object] = []
    if config.twelve_data_api_key:
        providers.append(TwelveDataClient(config.twelve_data_api_key, timeout_seconds=timeout))
    if config.alpha_vantage_api_key:
        providers.append(AlphaVantageClient(config.alpha_vantage_api_key, timeout_seconds=timeout))
    if config.yahoo_finance_enabled:
        providers.append(YahooFinanceClient(timeout_seconds=timeout))
    if config.finnhub_api_key:
        providers.append(FinnhubClient(config.finnhub_api_key, timeout_seconds=timeout))
    if config.polygon_api_key:
        providers.append(PolygonClient(config.polygon_api_key, timeout_seconds=timeout))
    return providers


def build_history_providers(quote_providers: list[object]) -> list[object]:
    return [provider for provider in quote_providers if hasattr(provider, "fetch_daily_closes")]


def build_stock_analysis_service(
    config: Settings,
    *,
    cache: ResponseCache | None = None,
    synthetic: SyntheticMarketData | None = None,
) -> StockAnalysisService:
    cache = cache or ResponseCache(
        ttl_seconds=config.market_data_cache_ttl_seconds,
        max_entries=config.market_data_cache_max_entries,
    )
    synthetic = synthetic or SyntheticMarketData()
    quote_providers = build_quote_providers(config)

    quote_chain = QuoteFallbackChain(
        providers=quote_providers,
        cache=cache,
        synthetic=synthetic,
        timeout_seconds=config.market_data_provider_timeout_seconds,
    )
    history_fetcher = HistoricalSeriesFetcher(
        providers=build_history_providers(quote_providers),
        cache=cache,
        quote_chain=quote_chain,
        synthetic=synthetic,
        timeout_seconds=config.market_data_provider_timeout_seconds,
    )
    return StockAnalysisService(
        quote_chain=quote_chain,
        history_fetcher=history_fetcher,
        history_days=config.market_data_history_days,
    )


@lru_cache
def _response_cache() -> ResponseCache:
    return ResponseCache(
        ttl_seconds=settings.market_data_cache_ttl_seconds,
        max_entries=settings.market_data_cache_max_entries,
    )


@lru_cache
def _stock_analysis_service() -> StockAnalysisService:
    return build_stock_analysis_service(settings, cache=_response_cache())


def get_stock_analysis_service() -> StockAnalysisService:
    return _stock_analysis_service()


def reset_container() -> None:
    if _response_cache.cache_info().currsize > 0:
        _response_cache().clear()
    _stock_analysis_service.cache_clear()
    _response_cache.cache_clear()
