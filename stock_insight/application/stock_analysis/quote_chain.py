from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
from typing import Any

from stock_insight.application.stock_analysis.cache import QUOTE_REQUEST, ResponseCache, cache_key
from stock_insight.domain.stock_analysis.schemas import (
    FAILURE_PROVIDER_ERROR,
    ProviderFailure,
    Quote,
)
from stock_insight.domain.stock_analysis.synthetic import SyntheticMarketData

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QuoteLookup:
    quote: Quote
    failures: list[ProviderFailure] = field(default_factory=list)

    @property
    def is_simulated(self) -> bool:
        return self.quote.is_simulated


class QuoteFallbackChain:
    """Tries quote providers in priority order and degrades to simulated data.

    A provider is any object exposing ``name`` and an async
    ``fetch_quote(symbol)`` returning a ``Quote`` or a ``ProviderFailure``.
    """

    def __init__(
        self,
        *,
        providers: Sequence[Any],
        cache: ResponseCache,
        synthetic: SyntheticMarketData,
        timeout_seconds: float = 8.0,
    ) -> None:
        self._providers = list(providers)
        self._cache = cache
        self._synthetic = synthetic
        self._timeout_seconds = timeout_seconds

    @property
    def provider_names(self) -> list[str]:
        return [provider.name for provider in self._providers]

    async def get_quote(self, symbol: str) -> Quote:
        lookup = await self.get_quote_with_trace(symbol)
        return lookup.quote

    async def get_quote_with_trace(self, symbol: str) -> QuoteLookup:
        failures: list[ProviderFailure] = []
        for provider in self._providers:
            key = cache_key(provider=provider.name, symbol=symbol, kind=QUOTE_REQUEST)
            cached = self._cache.get(key)
            if isinstance(cached, Quote):
                return QuoteLookup(quote=cached, failures=failures)

            result = await self._fetch_from(provider, symbol=symbol)
            if isinstance(result, Quote):
                self._cache.put(key, result)
                logger.info("Fetched quote for %s from %s", symbol, provider.name)
                return QuoteLookup(quote=result, failures=failures)

            failures.append(result)
            logger.warning(
                "Quote provider %s failed for %s: %s %s",
                result.provider,
                symbol,
                result.kind,
                result.detail,
            )

        logger.warning("All quote providers failed for %s, using simulated quote", symbol)
        return QuoteLookup(quote=self._synthetic.quote(symbol), failures=failures)

    async def _fetch_from(self, provider: Any, *, symbol: str) -> Quote | ProviderFailure:
        try:
            result = await asyncio.wait_for(provider.fetch_quote(symbol), timeout=self._timeout_seconds)
        except asyncio.TimeoutError:
            return ProviderFailure(
                provider=provider.name,
                kind=FAILURE_PROVIDER_ERROR,
                detail=f"timed out after {self._timeout_seconds:g}s",
            )
        except Exception as exc:
            logger.exception("Quote provider %s raised unexpectedly", provider.name)
            return ProviderFailure(provider=provider.name, kind=FAILURE_PROVIDER_ERROR, detail=str(exc))

        if isinstance(result, (Quote, ProviderFailure)):
            return result
        return ProviderFailure(
            provider=provider.name,
            kind=FAILURE_PROVIDER_ERROR,
            detail=f"unexpected result type {type(result).__name__}",
        )
