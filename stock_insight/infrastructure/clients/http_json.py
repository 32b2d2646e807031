from __future__ import annotations

from typing import Any

import httpx

from stock_insight.domain.stock_analysis.schemas import (
    FAILURE_MALFORMED_RESPONSE,
    FAILURE_PROVIDER_ERROR,
    FAILURE_RATE_LIMITED,
    ProviderFailure,
)


async def get_json(
    *,
    provider: str,
    url: str,
    params: dict[str, Any] | None = None,
    timeout: float = 8.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any | ProviderFailure:
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.get(url, params=params)
    except httpx.TimeoutException as exc:
        return ProviderFailure(provider=provider, kind=FAILURE_PROVIDER_ERROR, detail=f"timeout: {exc}")
    except httpx.HTTPError as exc:
        return ProviderFailure(provider=provider, kind=FAILURE_PROVIDER_ERROR, detail=f"network error: {exc}")

    if resp.status_code == 429:
        return ProviderFailure(provider=provider, kind=FAILURE_RATE_LIMITED, detail="HTTP 429")
    if resp.status_code < 200 or resp.status_code >= 300:
        return ProviderFailure(
            provider=provider,
            kind=FAILURE_PROVIDER_ERROR,
            detail=f"HTTP {resp.status_code}",
        )

    try:
        return resp.json()
    except ValueError:
        return ProviderFailure(provider=provider, kind=FAILURE_MALFORMED_RESPONSE, detail="body is not JSON")
