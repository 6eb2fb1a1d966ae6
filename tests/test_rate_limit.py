import pytest
from starlette.requests import Request

from delivery_api.core.errors import RateLimitExceeded
from delivery_api.core.rate_limit import (
    LOGIN_SCOPE,
    PASSWORD_SCOPE,
    RateLimiter,
    client_address,
)
from tests.factories import make_settings


@pytest.fixture
def limiter():
    return RateLimiter.from_settings(make_settings())


def test_sixth_hit_in_window_is_rejected(limiter):
    remaining = [limiter.hit(LOGIN_SCOPE, "10.0.0.1") for _ in range(5)]
    assert remaining == [4, 3, 2, 1, 0]

    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.hit(LOGIN_SCOPE, "10.0.0.1")

    exc = excinfo.value
    assert exc.status_code == 429
    assert exc.message == "Too many login attempts. Please try again later."
    assert exc.headers["X-RateLimit-Limit"] == "5"
    assert exc.headers["X-RateLimit-Remaining"] == "0"
    assert 0 < int(exc.headers["Retry-After"]) <= 60


def test_clients_and_scopes_are_counted_separately(limiter):
    for _ in range(5):
        limiter.hit(LOGIN_SCOPE, "10.0.0.1")

    assert limiter.hit(LOGIN_SCOPE, "10.0.0.2") == 4
    assert limiter.hit(PASSWORD_SCOPE, "10.0.0.1") == 4


def test_password_window_is_fifteen_minutes(limiter):
    for _ in range(5):
        limiter.hit(PASSWORD_SCOPE, "10.0.0.1")

    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.hit(PASSWORD_SCOPE, "10.0.0.1")

    assert 60 < int(excinfo.value.headers["Retry-After"]) <= 15 * 60
    assert excinfo.value.message == "Too many password requests. Please try again later."


def test_separate_limiters_do_not_share_counters():
    settings = make_settings()
    first = RateLimiter.from_settings(settings)
    second = RateLimiter.from_settings(settings)
    for _ in range(5):
        first.hit(LOGIN_SCOPE, "10.0.0.1")

    assert second.hit(LOGIN_SCOPE, "10.0.0.1") == 4


def _request(headers=None, client=("192.168.1.9", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/login",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_client_address_ignores_forwarded_header_by_default():
    request = _request({"X-Forwarded-For": "1.2.3.4, 10.0.0.1"})

    assert client_address(request) == "192.168.1.9"
    assert client_address(request, trust_forwarded_for=True) == "1.2.3.4"


def test_client_address_without_peer():
    assert client_address(_request(client=None)) == "0.0.0.0"
