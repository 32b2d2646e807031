from __future__ import annotations

from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

MARKET_TIMEZONE = ZoneInfo("America/New_York")
PRE_MARKET_OPEN_TIME = time(4, 0)
MARKET_OPEN_TIME = time(9, 30)
MARKET_CLOSE_TIME = time(16, 0)
AFTER_HOURS_CLOSE_TIME = time(20, 0)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def resolve_market_status(*, now: datetime) -> str:
    local_now = as_market_time(now)
    if local_now.weekday() >= 5:
        return "CLOSED"

    clock = local_now.time()
    if MARKET_OPEN_TIME <= clock < MARKET_CLOSE_TIME:
        return "OPEN"
    if PRE_MARKET_OPEN_TIME <= clock < MARKET_OPEN_TIME:
        return "PRE_MARKET"
    if MARKET_CLOSE_TIME <= clock < AFTER_HOURS_CLOSE_TIME:
        return "AFTER_HOURS"
    return "CLOSED"


def as_market_time(point: datetime) -> datetime:
    if point.tzinfo is None:
        point = point.replace(tzinfo=timezone.utc)
    return point.astimezone(MARKET_TIMEZONE)
