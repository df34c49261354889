"""Health check routes — liveness, readiness, and general health."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
def health_check(request: Request) -> dict[str, Any]:
    """Application health check endpoint."""
    settings = getattr(request.app.state, "settings", None)
    db_pool = getattr(request.app.state, "db_pool", None)
    return {
        "status": "ok",
        "environment": settings.app_env if settings else "unknown",
        "database": "connected" if db_pool is not None else "disconnected",
    }


@router.get("/health/live")
def liveness_probe() -> dict[str, Any]:
    """Liveness probe — the process is up and answering."""
    return {"status": "alive"}


@router.get("/health/ready")
def readiness_probe(request: Request) -> Any:
    """Readiness probe — the database answers and the services are wired.

    A missing database only makes the app unready in production.
    """
    checks: dict[str, Any] = {}
    ready = True
    settings = getattr(request.app.state, "settings", None)

    db_pool = getattr(request.app.state, "db_pool", None)
    if db_pool is not None:
        try:
            start = time.perf_counter()
            conn = db_pool.acquire()
            try:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1 FROM DUAL")
                    cur.fetchone()
                checks["database"] = {
                    "status": "ok",
                    "response_time_ms": round((time.perf_counter() - start) * 1000, 1),
                }
            finally:
                conn.close()
        except Exception as exc:
            checks["database"] = {"status": "error", "detail": str(exc)}
            ready = False
    else:
        checks["database"] = {"status": "not_configured"}
        if settings and settings.is_production:
            ready = False

    services = getattr(request.app.state, "services", None)
    checks["services"] = {"status": "ok" if services is not None else "not_configured"}

    body = {"status": "ready" if ready else "not_ready", "checks": checks}
    if not ready:
        return JSONResponse(content=body, status_code=503)
    return body
