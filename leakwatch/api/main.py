"""
LeakWatch API - FastAPI Application Entry Point

Water infrastructure issue reporting: residents report leaks and water
quality problems, technicians work them to resolution.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

import redis.asyncio as aioredis
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from leakwatch.api.errors import register_exception_handlers
from leakwatch.api.routes import auth, reports, users
from leakwatch.config import bind_context, clear_context, configure_logging, get_logger, get_settings
from leakwatch.db import close_db, init_db
from leakwatch.db import health_check as db_health_check
from leakwatch.services.notifications import close_dispatcher

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    configure_logging(
        json_format=settings.is_production,
        log_level="DEBUG" if settings.debug else "INFO",
    )
    logger.info(
        "Starting LeakWatch API",
        environment=settings.environment,
        version=settings.app_version,
    )

    await init_db(echo=settings.debug)
    logger.info("Database connection established")

    # Redis is optional: without it login rate limiting and token revocation are off
    redis_client = None
    if settings.redis_url is not None:
        redis_client = aioredis.from_url(
            settings.redis_url.get_secret_value(),
            encoding="utf-8",
            decode_responses=True,
        )
        logger.info("Redis connection established")
    else:
        logger.warning("REDIS_URL not set; rate limiting and token revocation disabled")

    # Store in app state for access in dependencies
    app.state.redis = redis_client

    yield

    # Shutdown
    await close_dispatcher()
    logger.info("Notification dispatcher closed")

    if redis_client is not None:
        await redis_client.aclose()
        logger.info("Redis connection closed")

    await close_db()
    logger.info("Shutting down LeakWatch API")


app = FastAPI(
    title=settings.app_name,
    description="Water infrastructure issue reporting and resolution tracking",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def bind_request_context(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Bind a request ID, method and path to every log line of a request."""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    clear_context()
    bind_context(request_id=request_id, method=request.method, path=request.url.path)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# Include routers
app.include_router(auth.router, prefix="/users/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(reports.router, prefix="/reports", tags=["Reports"])


@app.get("/health")
async def health_check() -> dict[str, str | bool | None]:
    """Health check endpoint for Docker and load balancers."""
    db_ok = await db_health_check()

    redis_ok: bool | None = None
    redis_client = getattr(app.state, "redis", None)
    if redis_client is not None:
        try:
            await redis_client.ping()
            redis_ok = True
        except RedisError as e:
            logger.warning("Redis health check failed", error=str(e))
            redis_ok = False

    all_ok = db_ok and redis_ok is not False
    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.app_version,
        "database": db_ok,
        "redis": redis_ok,
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "leakwatch.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.workers,
    )


if __name__ == "__main__":
    run()
