"""structlog setup and the per-request access log.

Every request carries a ``request_id`` and a caller ``identity``
(``user:<id>`` or ``ip:<addr>``) in the log context.  Routes that resolve a
user through ``get_current_user`` additionally bind ``owner_id``, so ledger,
activity and purchase events can be traced back to the account they touched.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from agroledger.auth.dependencies import extract_identity_hint
from agroledger.config import LogFormat, Settings, get_settings

# Polled by liveness and readiness checks every few seconds.
QUIET_PATH_PREFIXES = ("/health",)

_configured = False


def _renderer(settings: Settings) -> Any:
	if settings.log_format == LogFormat.json:
		return structlog.processors.JSONRenderer()
	return structlog.dev.ConsoleRenderer()


def configure_structured_logging(settings: Settings | None = None) -> None:
	"""Configure stdlib + structlog once per process."""
	global _configured
	if _configured:
		return

	settings = settings or get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
	logging.basicConfig(level=log_level, format="%(message)s")

	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			structlog.processors.format_exc_info,
			_renderer(settings),
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def request_identity(request: Request) -> str:
	"""Caller identity, resolved once per request and shared with the rate limiter."""
	identity = getattr(request.state, "identity", None)
	if identity is None:
		identity = extract_identity_hint(request)
		request.state.identity = identity
	return identity


def access_log_level(path: str, status_code: int) -> str:
	if status_code >= 500:
		return "error"
	if status_code >= 400:
		return "warning"
	if path.startswith(QUIET_PATH_PREFIXES):
		return "debug"
	return "info"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request id and caller identity, then emit one access event per request."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
		request.state.request_id = request_id
		identity = request_identity(request)

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id, identity=identity)

		logger = structlog.get_logger("agroledger.request")
		start = time.perf_counter()
		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=request.url.path,
				identity=identity,
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
				error=str(exc),
			)
			raise

		response.headers["x-request-id"] = request_id
		level = access_log_level(request.url.path, response.status_code)
		getattr(logger, level)(
			"http_request",
			method=request.method,
			path=request.url.path,
			identity=identity,
			status_code=response.status_code,
			duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
		)
		return response
