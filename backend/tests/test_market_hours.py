from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from brokerlink.core.config import Settings
from brokerlink.core.market_hours import as_utc, next_session_reset

IST = ZoneInfo("Asia/Kolkata")


def test_reset_is_next_day_at_0330_ist():
    now = datetime(2026, 10, 19, 15, 0, tzinfo=IST)
    reset = next_session_reset(now)
    assert reset.tzinfo == timezone.utc
    assert reset.astimezone(IST) == datetime(2026, 10, 20, 3, 30, tzinfo=IST)
    assert reset == datetime(2026, 10, 19, 22, 0, tzinfo=timezone.utc)


def test_reset_after_midnight_still_rolls_to_next_day():
    # 00:10 IST; the token obtained now lives until 03:30 the following day
    now = datetime(2026, 10, 20, 0, 10, tzinfo=IST)
    assert next_session_reset(now).astimezone(IST) == datetime(2026, 10, 21, 3, 30, tzinfo=IST)


def test_reset_uses_market_calendar_day_for_utc_input():
    # 20:00 UTC is already 01:30 IST on the 20th
    now = datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc)
    assert next_session_reset(now).astimezone(IST) == datetime(2026, 10, 21, 3, 30, tzinfo=IST)


def test_naive_input_is_market_time():
    assert next_session_reset(datetime(2026, 10, 19, 15, 0)).astimezone(IST) == datetime(2026, 10, 20, 3, 30, tzinfo=IST)


def test_as_utc():
    assert as_utc(None) is None
    assert as_utc(datetime(2026, 1, 1, 12, 0)) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert as_utc(datetime(2026, 1, 1, 17, 30, tzinfo=IST)) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_reset_uses_given_settings():
    settings = Settings(MARKET_TIMEZONE="UTC", UPSTOX_TOKEN_RESET_TIME="05:00", LOG_FILE="")
    now = datetime(2026, 10, 19, 23, 0, tzinfo=timezone.utc)
    assert next_session_reset(now, settings=settings) == datetime(2026, 10, 20, 5, 0, tzinfo=timezone.utc)
