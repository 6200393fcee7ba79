from datetime import timedelta

import pytest

from src.app_shell.rate_limit import DEFAULT_LOGIN_ATTEMPTS, RateLimiter
from src.rules.models import RateLimitRules, RateLimitWindow
from tests.fakes import FixedClock


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def limiter(clock):
    rules = RateLimitRules(login=RateLimitWindow(window_seconds=60, max_attempts=3))
    return RateLimiter(rules, clock=clock)


def test_allow_request_until_limit(limiter):
    assert limiter.allow_request("k", 60, 2) is True
    assert limiter.allow_request("k", 60, 2) is True
    assert limiter.allow_request("k", 60, 2) is False


def test_keys_are_independent(limiter):
    assert limiter.allow_request("a", 60, 1) is True
    assert limiter.allow_request("a", 60, 1) is False
    assert limiter.allow_request("b", 60, 1) is True


def test_window_slides(limiter, clock):
    assert limiter.allow_request("k", 60, 1) is True
    clock.advance(timedelta(seconds=30))
    assert limiter.allow_request("k", 60, 1) is False
    clock.advance(timedelta(seconds=31))
    assert limiter.allow_request("k", 60, 1) is True


def test_zero_limit_blocks(limiter):
    assert limiter.allow_request("k", 60, 0) is False


def test_check_login_uses_rules(limiter):
    for _ in range(3):
        assert limiter.check_login("10.0.0.1") is True
    assert limiter.check_login("10.0.0.1") is False
    assert limiter.check_login("10.0.0.2") is True


def test_check_login_default_attempts(clock):
    limiter = RateLimiter(
        RateLimitRules(login=RateLimitWindow(window_seconds=60)), clock=clock
    )
    results = [limiter.check_login("ip") for _ in range(DEFAULT_LOGIN_ATTEMPTS + 1)]
    assert results.count(True) == DEFAULT_LOGIN_ATTEMPTS
    assert results[-1] is False


def test_reset_clears_history(limiter):
    limiter.allow_request("k", 60, 1)
    limiter.reset()
    assert limiter.allow_request("k", 60, 1) is True
