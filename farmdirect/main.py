"""Main application entry point."""
import logging
from contextlib import asynccontextmanager

import uvicorn
import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor

from farmdirect.config import (
    API_VERSION,
    CORS_ORIGINS,
    OTEL_ENABLED,
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_PER_MINUTE_IP,
    RATE_LIMIT_PER_MINUTE_USER,
    REDIS_URL,
)
from farmdirect.database import engine, init_db
from farmdirect.exceptions import MarketplaceError
from farmdirect.logging_config import setup_logging
from farmdirect.monitoring import init_profiling
from farmdirect.redis_rate_limiter import RedisRateLimiter
from farmdirect.routers import auth as auth_router
from farmdirect.routers import market_prices, orders, products
from farmdirect.schemas import format_validation_errors

# Setup structured logging
setup_logging()
logger = logging.getLogger(__name__)

# Sync client; the rate limiter middleware runs it inline
redis_client = redis.from_url(REDIS_URL, decode_responses=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info("Starting application...")

    # Create tables and seed the market price board
    init_db()

    if OTEL_ENABLED:
        RedisInstrumentor().instrument(redis_client=redis_client)
    app.state.redis_client = redis_client
    logger.info("Redis client initialized")

    init_profiling()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    redis_client.close()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="FarmDirect Marketplace",
    version=API_VERSION,
    lifespan=lifespan
)

if RATE_LIMIT_ENABLED:
    app.add_middleware(
        RedisRateLimiter,
        redis_client=redis_client,
        requests_per_minute_ip=RATE_LIMIT_PER_MINUTE_IP,
        requests_per_minute_user=RATE_LIMIT_PER_MINUTE_USER
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if OTEL_ENABLED:
    FastAPIInstrumentor.instrument_app(app)
    SQLAlchemyInstrumentor().instrument(engine=engine)


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers
    )


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("Request validation failed", extra={
        "path": request.url.path,
        "errors": len(exc.errors())
    })
    return error_response(400, format_validation_errors(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", extra={
        "path": request.url.path,
        "method": request.method
    })
    return error_response(500, "Internal server error")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"success": True, "status": "healthy", "version": API_VERSION}


app.include_router(auth_router.router)
app.include_router(products.router)
app.include_router(orders.router)
app.include_router(market_prices.router)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
