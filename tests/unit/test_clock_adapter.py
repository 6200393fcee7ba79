from datetime import UTC, datetime

from src.adapters.clock import SystemClock


def test_system_clock_is_utc():
    clock = SystemClock()
    now = clock.now_utc()
    assert now.tzinfo is UTC
    assert abs((datetime.now(UTC) - now).total_seconds()) < 1.0


def test_today_matches_now():
    clock = SystemClock()
    assert clock.today() == clock.now_utc().date()
