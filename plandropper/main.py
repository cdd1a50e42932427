"""
Application entrypoint: FastAPI app with database pool and Redis lifecycle.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from plandropper.config import settings
from plandropper.db.pool import DatabasePoolManager
from plandropper.features.hotness.api.router import router as hotness_router
from plandropper.infrastructure.observability.logging import get_logger, log_request, setup_logging
from plandropper.middleware.request_context import RequestContextMiddleware
from plandropper.routes import health
from plandropper.services.redis_client import RedisClient

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database pool and Redis client, and close them on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    db_pool = DatabasePoolManager.from_settings()
    redis = RedisClient.from_settings()
    startup_tasks = []

    try:
        logger.info("Initializing database pool")
        await db_pool.initialize()
        startup_tasks.append("database_pool")

        logger.info("Initializing Redis connection")
        await redis.initialize()
        startup_tasks.append("redis")

        logger.info("All services initialized successfully", services=startup_tasks)

    except Exception as e:
        logger.error("Failed to initialize services", error=str(e), completed_tasks=startup_tasks)

        if "redis" in startup_tasks:
            await redis.close()
        if "database_pool" in startup_tasks:
            await db_pool.close()
        raise

    app.state.db_pool = db_pool
    app.state.redis = redis

    yield

    logger.info("Application shutting down")
    shutdown_errors = []

    try:
        await redis.close()
    except Exception as e:
        logger.error("Error closing Redis", error=str(e))
        shutdown_errors.append(f"Redis: {e}")

    try:
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))
        shutdown_errors.append(f"Database: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="PlanDropper Hotness",
    description="Plan interaction recording, hotness scoring and anti-abuse",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(hotness_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.time() - start_time) * 1000, 2),
    )
    return response


# Added last so it runs first and request.state.ip_address is set for every handler.
app.add_middleware(RequestContextMiddleware)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
