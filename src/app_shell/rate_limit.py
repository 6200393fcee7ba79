from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import Protocol

from src.rules.models import RateLimitRules

DEFAULT_LOGIN_ATTEMPTS = 5


class ClockPort(Protocol):
    def now_utc(self) -> datetime: ...


class _UTCClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)


class RateLimiter:
    """Sliding-window counter keyed by caller (e.g. ``login:<ip>``)."""

    def __init__(self, rules: RateLimitRules, clock: ClockPort | None = None):
        self.rules = rules
        self._clock = clock if clock is not None else _UTCClock()
        self._history: dict[str, list[datetime]] = {}
        self._lock = Lock()

    def _prune(self, key: str, window: int) -> None:
        cutoff = self._clock.now_utc() - timedelta(seconds=window)
        recent = [t for t in self._history.get(key, []) if t > cutoff]
        if recent:
            self._history[key] = recent
        else:
            self._history.pop(key, None)

    def allow_request(self, key: str, window: int, limit: int) -> bool:
        """Record the attempt and return True, or return False once ``limit`` is reached."""
        if limit <= 0:
            return False
        with self._lock:
            self._prune(key, window)
            attempts = self._history.setdefault(key, [])
            if len(attempts) >= limit:
                return False
            attempts.append(self._clock.now_utc())
            return True

    def check_login(self, ip: str) -> bool:
        cfg = self.rules.login
        limit = cfg.max_attempts if cfg.max_attempts is not None else DEFAULT_LOGIN_ATTEMPTS
        return self.allow_request(f"login:{ip}", cfg.window_seconds, limit)

    def reset(self) -> None:
        with self._lock:
            self._history.clear()
