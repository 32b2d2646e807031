from __future__ import annotations

from datetime import date, datetime, timezone
import math

from stock_insight.domain.stock_analysis.quotes import build_quote
from stock_insight.domain.stock_analysis.schemas import (
    FAILURE_MALFORMED_RESPONSE,
    FAILURE_NO_DATA,
    FAILURE_RATE_LIMITED,
    HistoricalPoint,
    ProviderFailure,
    Quote,
)

TWELVE_DATA = "twelve_data"
ALPHA_VANTAGE = "alpha_vantage"
YAHOO_FINANCE = "yahoo_finance"
FINNHUB = "finnhub"
POLYGON = "polygon"

DISPLAY_NAMES = {
    TWELVE_DATA: "Twelve Data",
    ALPHA_VANTAGE: "Alpha Vantage",
    YAHOO_FINANCE: "Yahoo Finance",
    FINNHUB: "Finnhub",
    POLYGON: "Polygon",
}


class _MalformedField(Exception):
    def __init__(self, field_name: str) -> None:
        super().__init__(field_name)
        self.field_name = field_name


def map_twelve_data_quote(
    payload: object,
    *,
    symbol: str,
    now: datetime,
    market_status: str | None = None,
) -> Quote | ProviderFailure:
    if not isinstance(payload, dict):
        return _malformed(TWELVE_DATA, "payload is not an object")
    if payload.get("status") == "error":
        message = str(payload.get("message") or "error status")
        if payload.get("code") == 429 or "limit" in message.lower():
            return ProviderFailure(provider=TWELVE_DATA, kind=FAILURE_RATE_LIMITED, detail=message)
        return ProviderFailure(provider=TWELVE_DATA, kind=FAILURE_NO_DATA, detail=message)
    if payload.get("close") in (None, ""):
        return ProviderFailure(provider=TWELVE_DATA, kind=FAILURE_NO_DATA, detail="close is missing")

    try:
        price = _required_float(payload, "close")
        previous_close = _required_float(payload, "previous_close")
        return build_quote(
            symbol=symbol,
            provider=DISPLAY_NAMES[TWELVE_DATA],
            provider_id=TWELVE_DATA,
            now=now,
            price=price,
            previous_close=previous_close,
            volume=_optional_float(payload, "volume") or 0,
            high=_optional_float(payload, "high"),
            low=_optional_float(payload, "low"),
            open_price=_optional_float(payload, "open"),
            market_status=market_status,
        )
    except _MalformedField as exc:
        return _malformed(TWELVE_DATA, f"{exc.field_name} is not numeric")


def map_alpha_vantage_quote(
    payload: object,
    *,
    symbol: str,
    now: datetime,
    market_status: str | None = None,
) -> Quote | ProviderFailure:
    if not isinstance(payload, dict):
        return _malformed(ALPHA_VANTAGE, "payload is not an object")
    failure = _alpha_vantage_failure(payload)
    if failure is not None:
        return failure

    global_quote = payload.get("Global Quote")
    if not isinstance(global_quote, dict) or not global_quote:
        return ProviderFailure(provider=ALPHA_VANTAGE, kind=FAILURE_NO_DATA, detail=f"no quote for {symbol}")

    try:
        change_pct_raw = str(global_quote.get("10. change percent") or "").replace("%", "").strip()
        return build_quote(
            symbol=str(global_quote.get("01. symbol") or symbol),
            provider=DISPLAY_NAMES[ALPHA_VANTAGE],
            provider_id=ALPHA_VANTAGE,
            now=now,
            price=_required_float(global_quote, "05. price"),
            previous_close=_required_float(global_quote, "08. previous close"),
            volume=_optional_float(global_quote, "06. volume") or 0,
            high=_optional_float(global_quote, "03. high"),
            low=_optional_float(global_quote, "04. low"),
            open_price=_optional_float(global_quote, "02. open"),
            change=_optional_float(global_quote, "09. change"),
            change_pct=_parse_float(change_pct_raw, "10. change percent") if change_pct_raw else None,
            market_status=market_status,
        )
    except _MalformedField as exc:
        return _malformed(ALPHA_VANTAGE, f"{exc.field_name} is missing or not numeric")


def map_alpha_vantage_daily_series(payload: object) -> list[HistoricalPoint] | ProviderFailure:
    if not isinstance(payload, dict):
        return _malformed(ALPHA_VANTAGE, "payload is not an object")
    failure = _alpha_vantage_failure(payload)
    if failure is not None:
        return failure

    series = payload.get("Time Series (Daily)")
    if not isinstance(series, dict) or not series:
        return ProviderFailure(provider=ALPHA_VANTAGE, kind=FAILURE_NO_DATA, detail="daily series is missing")

    points: list[HistoricalPoint] = []
    for raw_date, entry in series.items():
        try:
            day = date.fromisoformat(str(raw_date))
        except ValueError:
            return _malformed(ALPHA_VANTAGE, f"invalid series date {raw_date!r}")
        if not isinstance(entry, dict):
            return _malformed(ALPHA_VANTAGE, f"invalid series entry for {raw_date}")
        try:
            close = _required_float(entry, "4. close")
        except _MalformedField:
            return _malformed(ALPHA_VANTAGE, f"close is missing or not numeric for {raw_date}")
        if close < 0:
            return _malformed(ALPHA_VANTAGE, f"negative close for {raw_date}")
        points.append(HistoricalPoint(date=day.isoformat(), price=round(close, 2)))

    points.sort(key=lambda point: point.date)
    return points


def map_yahoo_chart_quote(
    payload: object,
    *,
    symbol: str,
    now: datetime,
    market_status: str | None = None,
) -> Quote | ProviderFailure:
    result = _yahoo_chart_result(payload)
    if isinstance(result, ProviderFailure):
        return result

    meta = result.get("meta")
    if not isinstance(meta, dict):
        return _malformed(YAHOO_FINANCE, "chart meta is missing")

    try:
        previous_close = _optional_float(meta, "previousClose") or _optional_float(meta, "chartPreviousClose")
        price = _optional_float(meta, "regularMarketPrice") or previous_close
        if price is None:
            return ProviderFailure(provider=YAHOO_FINANCE, kind=FAILURE_NO_DATA, detail="no market price")
        return build_quote(
            symbol=symbol,
            provider=DISPLAY_NAMES[YAHOO_FINANCE],
            provider_id=YAHOO_FINANCE,
            now=now,
            price=price,
            previous_close=previous_close if previous_close is not None else price,
            volume=_optional_float(meta, "regularMarketVolume") or 0,
            high=_optional_float(meta, "regularMarketDayHigh"),
            low=_optional_float(meta, "regularMarketDayLow"),
            open_price=_optional_float(meta, "regularMarketOpen"),
            market_status=market_status,
        )
    except _MalformedField as exc:
        return _malformed(YAHOO_FINANCE, f"{exc.field_name} is not numeric")


def map_yahoo_chart_closes(payload: object) -> list[HistoricalPoint] | ProviderFailure:
    result = _yahoo_chart_result(payload)
    if isinstance(result, ProviderFailure):
        return result

    timestamps = result.get("timestamp")
    indicators = result.get("indicators")
    quotes = indicators.get("quote") if isinstance(indicators, dict) else None
    closes = quotes[0].get("close") if isinstance(quotes, list) and quotes and isinstance(quotes[0], dict) else None
    if not isinstance(timestamps, list) or not isinstance(closes, list):
        return ProviderFailure(provider=YAHOO_FINANCE, kind=FAILURE_NO_DATA, detail="chart closes are missing")

    by_date: dict[str, float] = {}
    for raw_ts, raw_close in zip(timestamps, closes):
        if raw_close is None:
            continue
        try:
            timestamp = float(raw_ts)
            close = float(raw_close)
        except (TypeError, ValueError):
            return _malformed(YAHOO_FINANCE, "chart entry is not numeric")
        if not math.isfinite(close) or close < 0:
            return _malformed(YAHOO_FINANCE, "chart close is not a valid price")
        day = datetime.fromtimestamp(timestamp, tz=timezone.utc).date().isoformat()
        by_date[day] = round(close, 2)

    if not by_date:
        return ProviderFailure(provider=YAHOO_FINANCE, kind=FAILURE_NO_DATA, detail="chart has no closes")
    return [HistoricalPoint(date=day, price=price) for day, price in sorted(by_date.items())]


def map_finnhub_quote(
    payload: object,
    *,
    symbol: str,
    now: datetime,
    market_status: str | None = None,
) -> Quote | ProviderFailure:
    if not isinstance(payload, dict):
        return _malformed(FINNHUB, "payload is not an object")
    if payload.get("error"):
        message = str(payload["error"])
        kind = FAILURE_RATE_LIMITED if "limit" in message.lower() else FAILURE_NO_DATA
        return ProviderFailure(provider=FINNHUB, kind=kind, detail=message)

    try:
        price = _optional_float(payload, "c")
        if not price:
            return ProviderFailure(provider=FINNHUB, kind=FAILURE_NO_DATA, detail=f"no quote for {symbol}")
        return build_quote(
            symbol=symbol,
            provider=DISPLAY_NAMES[FINNHUB],
            provider_id=FINNHUB,
            now=now,
            price=price,
            previous_close=_optional_float(payload, "pc") or price,
            high=_optional_float(payload, "h"),
            low=_optional_float(payload, "l"),
            open_price=_optional_float(payload, "o"),
            change=_optional_float(payload, "d"),
            change_pct=_optional_float(payload, "dp"),
            market_status=market_status,
        )
    except _MalformedField as exc:
        return _malformed(FINNHUB, f"{exc.field_name} is not numeric")


def map_polygon_previous_close(
    payload: object,
    *,
    symbol: str,
    now: datetime,
    market_status: str | None = None,
) -> Quote | ProviderFailure:
    if not isinstance(payload, dict):
        return _malformed(POLYGON, "payload is not an object")
    status = str(payload.get("status") or "").upper()
    if status == "ERROR" and "limit" in str(payload.get("error") or "").lower():
        return ProviderFailure(provider=POLYGON, kind=FAILURE_RATE_LIMITED, detail=str(payload.get("error")))

    results = payload.get("results")
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return ProviderFailure(provider=POLYGON, kind=FAILURE_NO_DATA, detail=f"no aggregate for {symbol}")

    aggregate = results[0]
    try:
        price = _required_float(aggregate, "c")
        open_price = _required_float(aggregate, "o")
        # The previous-day aggregate carries no prior close; the session open stands in for it.
        return build_quote(
            symbol=symbol,
            provider=DISPLAY_NAMES[POLYGON],
            provider_id=POLYGON,
            now=now,
            price=price,
            previous_close=open_price,
            volume=_optional_float(aggregate, "v") or 0,
            high=_optional_float(aggregate, "h"),
            low=_optional_float(aggregate, "l"),
            open_price=open_price,
            market_status=market_status,
        )
    except _MalformedField as exc:
        return _malformed(POLYGON, f"{exc.field_name} is missing or not numeric")


def _alpha_vantage_failure(payload: dict) -> ProviderFailure | None:
    if payload.get("Error Message"):
        return ProviderFailure(provider=ALPHA_VANTAGE, kind=FAILURE_NO_DATA, detail=str(payload["Error Message"]))
    note = str(payload.get("Note") or "")
    if "call frequency" in note.lower():
        return ProviderFailure(provider=ALPHA_VANTAGE, kind=FAILURE_RATE_LIMITED, detail=note)
    information = str(payload.get("Information") or "")
    if "rate limit" in information.lower():
        return ProviderFailure(provider=ALPHA_VANTAGE, kind=FAILURE_RATE_LIMITED, detail=information)
    return None


def _yahoo_chart_result(payload: object) -> dict | ProviderFailure:
    if not isinstance(payload, dict):
        return _malformed(YAHOO_FINANCE, "payload is not an object")
    chart = payload.get("chart")
    if not isinstance(chart, dict):
        return _malformed(YAHOO_FINANCE, "chart is missing")
    if chart.get("error"):
        return ProviderFailure(provider=YAHOO_FINANCE, kind=FAILURE_NO_DATA, detail=str(chart["error"]))
    results = chart.get("result")
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return ProviderFailure(provider=YAHOO_FINANCE, kind=FAILURE_NO_DATA, detail="chart has no result")
    return results[0]


def _required_float(raw: dict, key: str) -> float:
    value = raw.get(key)
    if value is None or value == "":
        raise _MalformedField(key)
    return _parse_float(value, key)


def _optional_float(raw: dict, key: str) -> float | None:
    value = raw.get(key)
    if value is None or value == "":
        return None
    return _parse_float(value, key)


def _parse_float(value: object, key: str) -> float:
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise _MalformedField(key) from exc
    if not math.isfinite(parsed):
        raise _MalformedField(key)
    return parsed


def _malformed(provider: str, detail: str) -> ProviderFailure:
    return ProviderFailure(provider=provider, kind=FAILURE_MALFORMED_RESPONSE, detail=detail)
