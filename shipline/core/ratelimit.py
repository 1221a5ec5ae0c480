# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Rate limiting keyed by client address.

Three budgets are defined:

* ``general_limiter`` – every request, 100 per 15 minutes by default.
* ``auth_limiter``    – login attempts, 5 per 15 minutes.  Every attempt
  takes its hit up front, before the body is parsed, and a successful login
  gives it back with :meth:`RateLimiter.refund`.  Only failures stay on the
  books, and two concurrent attempts can never both slip through on the
  same last unit.
* ``api_limiter``     – the vessel API, 60 per minute.

The general and API budgets use a moving window.  The auth budget uses a
fixed window, whose plain counter is what makes the refund possible.

Counters live in a ``limits`` storage chosen by ``RATE_LIMIT_STORAGE_URI``.
The default ``memory://`` is per-process; pointing it at redis:// shares
the counters between workers without touching any call site.
"""

import math
import time
from typing import Callable

from fastapi import Request, Response
from fastapi.routing import APIRoute
from limits import RateLimitItemPerMinute
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter, MovingWindowRateLimiter
from limits.strategies import RateLimiter as _Strategy
from starlette.concurrency import run_in_threadpool

from shipline.core.config import settings
from shipline.core.errors import ApiRateLimitExceeded, TooManyAuthAttempts
from shipline.core.security import get_client_ip

_storage = storage_from_string(settings.rate_limit_storage_uri)
_moving = MovingWindowRateLimiter(_storage)
_fixed = FixedWindowRateLimiter(_storage)


class RateLimiter:
    """One named budget of *amount* hits per *window_minutes*."""

    def __init__(self, name: str, amount: int, window_minutes: int, strategy: _Strategy = _moving):
        self.name = name
        self.item = RateLimitItemPerMinute(amount, window_minutes)
        self.strategy = strategy

    @property
    def enabled(self) -> bool:
        return settings.rate_limit_enabled

    def hit(self, key: str) -> bool:
        """Consume one unit; False when the budget is already spent."""
        if not self.enabled:
            return True
        return self.strategy.hit(self.item, self.name, key)

    def refund(self, key: str) -> None:
        """Give back one unit taken by :meth:`hit` (fixed-window budgets only)."""
        if not self.enabled:
            return
        counter = self.item.key_for(self.name, key)
        # the window may have rolled over since the hit
        if _storage.get(counter) > 0:
            _storage.incr(counter, self.item.get_expiry(), amount=-1)

    def headers(self, key: str) -> dict[str, str]:
        """IETF draft ``RateLimit-*`` headers for *key*."""
        if not self.enabled:
            return {}
        reset_at, remaining = self.strategy.get_window_stats(self.item, self.name, key)
        return {
            "RateLimit-Limit": str(self.item.amount),
            "RateLimit-Remaining": str(max(remaining, 0)),
            "RateLimit-Reset": str(max(math.ceil(reset_at - time.time()), 0)),
        }


general_limiter = RateLimiter(
    "general", settings.rate_limit_max, settings.rate_limit_window_minutes
)
auth_limiter = RateLimiter(
    "auth", settings.auth_rate_limit_max, settings.rate_limit_window_minutes, _fixed
)
api_limiter = RateLimiter("api", settings.api_rate_limit_per_minute, 1)


def reset_rate_limits() -> None:
    """Forget every counter (tests, or an operator after a false positive)."""
    _storage.reset()


def auth_rate_limit(request: Request) -> None:
    """Spend one unit of the caller's auth budget, or refuse with 429."""
    key = get_client_ip(request)
    if not auth_limiter.hit(key):
        raise TooManyAuthAttempts(headers=auth_limiter.headers(key))


class AuthLimitedRoute(APIRoute):
    """
    Route that charges the auth budget before the body is read, so a
    malformed login body is refused with 429 once the budget is spent.
    """

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def limited_handler(request: Request) -> Response:
            await run_in_threadpool(auth_rate_limit, request)
            return await handler(request)

        return limited_handler


def api_rate_limit(request: Request) -> None:
    """Dependency guarding the vessel router."""
    key = get_client_ip(request)
    if not api_limiter.hit(key):
        raise ApiRateLimitExceeded(headers=api_limiter.headers(key))
