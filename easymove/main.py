from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from easymove.api import admin, auth, bookings, drivers, quotes
from easymove.api.deps import get_calculator
from easymove.core.config import settings
from easymove.core.errors import QuoteValidationError
from easymove.core.redis import init_redis, close_redis, get_redis
from easymove.core.metrics import request_count, request_duration, db_connected, redis_connected, \
    quote_validation_errors, get_metrics_text
from easymove.db.session import engine
import time
import logging

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        except Exception:
            status = 500
            raise
        finally:
            # label by route template so /bookings/{reference} is one series
            route = request.scope.get("route")
            endpoint = getattr(route, "path", request.url.path)
            request_count.labels(method=request.method, endpoint=endpoint, status=status).inc()
            request_duration.labels(method=request.method, endpoint=endpoint).observe(time.time() - start_time)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")

    calculator = get_calculator()
    logger.info(f"Pricing config {calculator.config.version} loaded")

    logger.info("Initializing Redis connection...")
    try:
        await init_redis()
        redis_connected.set(1)
        logger.info("Redis connected")
    except Exception as e:
        logger.error(f"Redis connection failed, quotes will not be cached: {e}")
        redis_connected.set(0)

    db_connected.set(1)

    yield

    logger.info("Application shutting down...")
    await close_redis()
    redis_connected.set(0)
    await engine.dispose()
    db_connected.set(0)
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan
)

app.add_middleware(MetricsMiddleware)

app.include_router(auth.router)
app.include_router(quotes.router)
app.include_router(bookings.router)
app.include_router(drivers.router)
app.include_router(admin.router)


@app.exception_handler(QuoteValidationError)
async def quote_validation_error_handler(request: Request, exc: QuoteValidationError):
    quote_validation_errors.inc()
    logger.info(f"Rejected quote request: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid quote request", "errors": exc.errors},
    )


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@app.get("/health", tags=["monitoring"])
async def health_check():
    redis_healthy = get_redis() is not None

    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "pricing_version": get_calculator().config.version,
        "dependencies": {
            "redis": "connected" if redis_healthy else "disconnected",
            "database": "connected"
        }
    }


@app.get("/readiness", tags=["monitoring"])
async def readiness_check():
    if get_redis() is None:
        return JSONResponse(status_code=503, content={"ready": False, "reason": "Redis not available"})

    return {
        "ready": True,
        "service": settings.API_TITLE
    }


@app.get("/", tags=["root"])
async def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics"
    }
