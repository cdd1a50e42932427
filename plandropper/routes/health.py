"""
Liveness and readiness endpoints.

Readiness reports on the database pool and Redis client owned by the
application lifespan (app.state.db_pool, app.state.redis).
"""

import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from plandropper.config import settings

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "plandropper-hotness"}


@router.get("/readyz")
async def readyz(request: Request):
    checks = {}
    overall_ok = True

    # 1) Redis
    redis = getattr(request.app.state, "redis", None)
    t0 = time.time()
    try:
        redis_ok = bool(redis and await redis.ping())
        checks["redis"] = {"ok": redis_ok, "latency_ms": round((time.time() - t0) * 1000, 1)}
    except Exception as e:
        redis_ok = False
        checks["redis"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
    overall_ok = overall_ok and redis_ok

    # 2) Database pool
    db_pool = getattr(request.app.state, "db_pool", None)
    t0 = time.time()
    try:
        if db_pool is None:
            db_health = {"healthy": False, "error": "Pool not configured"}
        else:
            db_health = await db_pool.health_check()
        is_healthy = bool(db_health.get("healthy", False))

        checks["database"] = {"ok": is_healthy, "latency_ms": round((time.time() - t0) * 1000, 1)}
        if "pool_stats" in db_health:
            checks["database"].update(db_health["pool_stats"])
        if "warnings" in db_health:
            checks["database"]["warnings"] = db_health["warnings"]
        if not is_healthy:
            checks["database"]["error"] = db_health.get("error", "Database unhealthy")
    except Exception as e:
        is_healthy = False
        checks["database"] = {
            "ok": False,
            "error": f"{type(e).__name__}: {e}",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
    overall_ok = overall_ok and is_healthy

    # 3) Configuration
    config_issues = []
    if not settings.SUPABASE_DB_URL:
        config_issues.append("SUPABASE_DB_URL not set")
    if not settings.REDIS_URL:
        config_issues.append("REDIS_URL not set")
    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "environment": settings.environment,
    }
    overall_ok = overall_ok and not config_issues

    body = {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
    return JSONResponse(status_code=200 if overall_ok else 503, content=body)
