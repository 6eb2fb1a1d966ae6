"""
Fixed-window rate limiting per client address.

Counters live in a `limits` MemoryStorage owned by one RateLimiter instance,
created per application (app.state.rate_limiter). They reset on process
restart and are not shared between server instances.
"""
import logging
import time
from dataclasses import dataclass
from typing import Dict

from fastapi import Request
from limits import RateLimitItemPerMinute
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from delivery_api.core.config import Settings
from delivery_api.core.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

LOGIN_SCOPE = "login"
PASSWORD_SCOPE = "password"


@dataclass(frozen=True)
class RateRule:
    limit: int
    window_minutes: int
    message: str


class RateLimiter:
    def __init__(self, rules: Dict[str, RateRule]):
        self.rules = rules
        self._items = {
            scope: RateLimitItemPerMinute(rule.limit, rule.window_minutes)
            for scope, rule in rules.items()
        }
        self._limiter = FixedWindowRateLimiter(MemoryStorage())

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimiter":
        return cls({
            LOGIN_SCOPE: RateRule(
                settings.LOGIN_RATE_LIMIT,
                settings.LOGIN_RATE_WINDOW_MINUTES,
                "Too many login attempts. Please try again later.",
            ),
            PASSWORD_SCOPE: RateRule(
                settings.PASSWORD_RATE_LIMIT,
                settings.PASSWORD_RATE_WINDOW_MINUTES,
                "Too many password requests. Please try again later.",
            ),
        })

    def hit(self, scope: str, client_key: str) -> int:
        """
        Count one request for client_key in scope.
        Returns the remaining allowance; raises RateLimitExceeded when spent.
        """
        rule = self.rules[scope]
        item = self._items[scope]

        if not self._limiter.hit(item, scope, client_key):
            reset_time, _ = self._limiter.get_window_stats(item, scope, client_key)
            retry_after = int(reset_time - time.time()) + 1
            logger.warning(
                f"Rate limit exceeded: client={client_key} scope={scope} "
                f"limit={rule.limit}/{rule.window_minutes}min"
            )
            raise RateLimitExceeded(rule.message, limit=rule.limit, retry_after=retry_after)

        _, remaining = self._limiter.get_window_stats(item, scope, client_key)
        return remaining


def client_address(request: Request, trust_forwarded_for: bool = False) -> str:
    """Extract the client IP, optionally honouring a proxy header."""
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "0.0.0.0"


def rate_limit(scope: str):
    """Dependency factory: count the request against `scope` before the handler runs."""

    async def dependency(request: Request) -> None:
        settings = request.app.state.settings
        limiter: RateLimiter = request.app.state.rate_limiter
        limiter.hit(scope, client_address(request, settings.TRUST_FORWARDED_FOR))

    return dependency
