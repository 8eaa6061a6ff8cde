"""FastAPI application entrypoint: lifespan, routers, middleware."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

from agroledger.config import get_settings
from agroledger.database import Database
from agroledger.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from agroledger.middleware.rate_limit import RateLimitMiddleware
from agroledger.routes import activities, auth, dashboard, inventory, products, suppliers, templates, waitlist

SERVICE_NAME = "agroledger"
SERVICE_VERSION = "0.1.0"

logger = structlog.get_logger("agroledger")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Build the database handle and verify connectivity
      3. Connect to Redis (rate-limit counters)

    Shutdown:
      1. Close Redis connection pool
      2. Dispose SQLAlchemy engine
    """
    settings = get_settings()
    configure_structured_logging(settings)
    logger.info("agroledger_starting", log_level=settings.log_level)

    database = Database.from_settings(settings)
    redis: Redis | None = None
    try:
        await database.ping()
        app.state.database = database

        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        await redis.ping()
        app.state.redis = redis
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        if redis is not None:
            await redis.aclose()
        await database.dispose()
        raise

    yield

    logger.info("agroledger_shutting_down")
    app.state.redis = None
    await redis.aclose()
    await database.dispose()


app = FastAPI(
    title="AgroLedger API",
    description=(
        "Agricultural record-keeping API: activities with derived costs, "
        "an append-only inventory ledger, suppliers, purchases, templates "
        "and a public waitlist."
    ),
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware (last added runs first) ──────────────────────────────────────
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Health checks ───────────────────────────────────────────────────────────
async def _run_readiness_checks(app: FastAPI) -> dict[str, dict[str, Any]]:
    checks: dict[str, dict[str, Any]] = {}

    database: Database | None = getattr(app.state, "database", None)
    if database is None:
        checks["database"] = {"ok": False, "message": "database not initialised"}
    else:
        try:
            await database.ping()
            checks["database"] = {"ok": True, "message": "ok"}
        except Exception as exc:  # noqa: BLE001
            checks["database"] = {"ok": False, "message": str(exc)}

    redis: Redis | None = getattr(app.state, "redis", None)
    if redis is None:
        checks["redis"] = {"ok": False, "message": "redis not initialised"}
    else:
        try:
            await redis.ping()
            checks["redis"] = {"ok": True, "message": "ok"}
        except Exception as exc:  # noqa: BLE001
            checks["redis"] = {"ok": False, "message": str(exc)}

    return checks


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Liveness: the API process is up."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Readiness: database and Redis reachable."""
    checks = await _run_readiness_checks(app)
    ready = all(check["ok"] for check in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ok" if ready else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(auth.router, prefix="/api/v1")
app.include_router(activities.router, prefix="/api/v1")
app.include_router(inventory.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")
app.include_router(suppliers.router, prefix="/api/v1")
app.include_router(suppliers.purchases_router, prefix="/api/v1")
app.include_router(templates.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")
app.include_router(waitlist.router, prefix="/api/v1")
