"""Fixed-window rate limiting over Redis counters.

Limiter state lives in an injected ``CounterStore`` (Redis ``INCR`` + ``EXPIRE``
in production), never in process memory, so limits hold across workers.
Two consumers:

* ``RateLimitMiddleware``: general per-identity API quota (JWT subject or IP);
* ``limit_waitlist_signups``: stricter per-IP limit on the public waitlist.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from agroledger.auth.dependencies import client_ip
from agroledger.config import get_settings
from agroledger.middleware.logging import request_identity


class CounterStore(Protocol):
	async def incr(self, key: str) -> int: ...

	async def expire(self, key: str, seconds: int) -> bool: ...


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
	allowed: bool
	count: int
	limit: int
	retry_after: int


class FixedWindowRateLimiter:
	"""Counts hits per ``(namespace, identity, window)``; the first hit arms the TTL."""

	def __init__(self, store: CounterStore, namespace: str, limit: int, window_seconds: int):
		self.store = store
		self.namespace = namespace
		self.limit = limit
		self.window_seconds = window_seconds

	def _window(self, now: float) -> int:
		return int(now // self.window_seconds)

	async def hit(self, identity: str, now: float | None = None) -> RateLimitDecision:
		now = time.time() if now is None else now
		window = self._window(now)
		key = f"ratelimit:{self.namespace}:{identity}:{window}"
		count = await self.store.incr(key)
		if count == 1:
			await self.store.expire(key, self.window_seconds + 5)
		retry_after = max(1, int((window + 1) * self.window_seconds - now))
		return RateLimitDecision(
			allowed=count <= self.limit,
			count=count,
			limit=self.limit,
			retry_after=retry_after,
		)


def _rate_limited_body(message: str, decision: RateLimitDecision) -> dict[str, object]:
	return {
		"error": "rate_limited",
		"message": message,
		"quota": decision.limit,
		"retry_after": decision.retry_after,
	}


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Per-identity API quota backed by Redis atomic counters."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		if self._is_bypass_path(request.url.path):
			return await call_next(request)

		redis_client = getattr(request.app.state, "redis", None)
		if redis_client is None:
			return await call_next(request)

		settings = get_settings()
		identity = request_identity(request)
		quota = (
			settings.rate_limit_user_per_minute
			if identity.startswith("user:")
			else settings.rate_limit_anonymous_per_minute
		)
		limiter = FixedWindowRateLimiter(redis_client, "api", quota, 60)
		decision = await limiter.hit(identity)
		if not decision.allowed:
			return JSONResponse(
				status_code=status.HTTP_429_TOO_MANY_REQUESTS,
				content={"detail": _rate_limited_body("API quota exceeded", decision)},
				headers={"retry-after": str(decision.retry_after)},
			)

		return await call_next(request)

	@staticmethod
	def _is_bypass_path(path: str) -> bool:
		return (
			path.startswith("/docs")
			or path.startswith("/redoc")
			or path.startswith("/openapi")
			or path.startswith("/health")
		)


async def limit_waitlist_signups(request: Request) -> None:
	"""Dependency: N sign-up attempts per client IP per window."""
	redis_client = getattr(request.app.state, "redis", None)
	if redis_client is None:
		return

	settings = get_settings()
	limiter = FixedWindowRateLimiter(
		redis_client,
		"waitlist",
		settings.waitlist_max_attempts,
		settings.waitlist_window_seconds,
	)
	decision = await limiter.hit(client_ip(request))
	if not decision.allowed:
		raise HTTPException(
			status_code=status.HTTP_429_TOO_MANY_REQUESTS,
			detail=_rate_limited_body("Too many sign-up attempts, try again later", decision),
			headers={"retry-after": str(decision.retry_after)},
		)
