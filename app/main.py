# app/main.py
from __future__ import annotations

"""
# ALPHA Podcast Platform API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the ALPHA podcast backend
(accounts, OTP-gated flows, interactions, account deletion).

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Explicit **middleware order**: request id → CORS → gzip.
- Centralized exception handling: every error is `{message, kind, code?, request_id}`.
- Graceful local/dev behavior (best-effort infra connections, never crash on import).
- Unfinished account-deletion jobs are resumed at startup.

## Probes
- `/healthz` — liveness (process up).
- `/readyz` — readiness (quick DB/Redis checks).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from app.core import logger as _logsetup  # noqa: F401

from app.api.routers import router as api_router
from app.core.config import settings
from app.core.exception_handlers import install_exception_handlers
from app.core.redis_client import redis_wrapper
from app.db.session import async_engine, async_session_maker, db_healthcheck
from app.middleware.request_id import RequestIDMiddleware

logger = logging.getLogger("alpha")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifecycle manager.

    Startup:
        - Log a startup banner.
        - Create missing tables (when `DB_CREATE_ALL`).
        - Best-effort connect to Redis (non-fatal on failure).
        - Best-effort resume of pending account-deletion jobs.

    Shutdown:
        - Best-effort close Redis and dispose the DB engine.
    """
    logger.info("✅ %s starting up (env=%s)", settings.PROJECT_NAME, settings.ENV)

    if settings.DB_CREATE_ALL:
        from app.db.base import Base

        async with async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    try:
        await redis_wrapper.connect()
        logger.info("🔌 Redis connected")
    except Exception:
        logger.exception("Redis connect failed (continuing in degraded mode)")

    if settings.RESUME_DELETION_JOBS:
        from app.services.account_deletion_service import resume_pending_jobs

        try:
            await resume_pending_jobs(async_session_maker)
        except Exception:
            logger.exception("Resuming account deletion jobs failed")

    try:
        yield
    finally:
        try:
            await redis_wrapper.close()
            logger.info("🛑 Redis connection closed")
        except Exception:
            logger.exception("Error closing Redis client")

        try:
            await async_engine.dispose()
            logger.info("🛑 Database engine disposed")
        except Exception:
            logger.exception("Error disposing DB engine")

        logger.info("🛑 %s shutting down", settings.PROJECT_NAME)


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: fully wired application with middleware, exception handlers,
        routers, and health/readiness endpoints.
    """
    enable_docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)  # outermost: correlation id for everything

    # ── Exception handlers ──────────────────────────────────────────────────
    install_exception_handlers(app)

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        """Liveness probe: `{"ok": true}` while the process is responsive."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    async def readyz() -> dict[str, object]:
        """Readiness probe (quick DB + Redis checks, best-effort)."""
        db_ok = await db_healthcheck()
        redis_ok = await redis_wrapper.is_connected()
        return {"ready": bool(db_ok and redis_ok), "checks": {"db": db_ok, "redis": redis_ok}}

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse(
            {"name": settings.PROJECT_NAME, "docs": app.docs_url or "", "version": settings.VERSION}
        )

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn app.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info"),
    )
