from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from brokerlink.core.config import Settings, get_settings

DEFAULT_TZ = "Asia/Kolkata"
DEFAULT_RESET_TIME = time(3, 30)


def _market_tz(settings: Settings | None = None) -> ZoneInfo:
    settings = settings or get_settings()
    tz_name = getattr(settings, "MARKET_TIMEZONE", DEFAULT_TZ) or DEFAULT_TZ
    try:
        return ZoneInfo(tz_name)
    except Exception:
        return ZoneInfo(DEFAULT_TZ)


def _reset_time(settings: Settings | None = None) -> time:
    settings = settings or get_settings()
    raw = getattr(settings, "UPSTOX_TOKEN_RESET_TIME", "") or ""
    try:
        return time.fromisoformat(raw)
    except ValueError:
        return DEFAULT_RESET_TIME


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a stored timestamp; naive values are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def next_session_reset(now: datetime | None = None, settings: Settings | None = None) -> datetime:
    """Upstox access tokens lapse at the reset time of the next calendar day.

    The day boundary is taken in the market timezone; the result is in UTC.
    ``settings`` defaults to the process-wide settings.
    """
    tz = _market_tz(settings)
    current = now or datetime.now(tz=tz)
    if current.tzinfo is None:
        current = current.replace(tzinfo=tz)
    local = current.astimezone(tz)
    tomorrow = local.date() + timedelta(days=1)
    reset = datetime.combine(tomorrow, _reset_time(settings), tzinfo=tz)
    return reset.astimezone(timezone.utc)
