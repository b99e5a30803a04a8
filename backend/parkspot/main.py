"""
Parking Spot Booking API - Main Application Entry Point

Discover, book and pay for parking spots:
- Geohash-indexed nearby search with exact haversine post-filtering
- Single-occupancy spot reservation with optimistic locking
- Quarter-hour billing on session end
- Redis caching of range scans with invalidation on every availability change
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from parkspot.core.config import get_settings
from parkspot.core.exceptions import ParkingError
from parkspot.core.logging import setup_logging, get_logger
from parkspot.core.metrics import metrics_endpoint
from parkspot.api.router import api_router
from parkspot.api.middleware import RequestLoggingMiddleware
from parkspot.services.cache_service import SpotListingCache

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    cache = SpotListingCache(settings)
    if await cache.connect():
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")
    app.state.listing_cache = cache

    yield

    await cache.close()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Parking spot discovery and booking API with concurrency-safe reservations",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Lifespan replaces this on startup; keeps the app usable without it
app.state.listing_cache = SpotListingCache(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError) -> JSONResponse:
    logger.info("parking_error", code=exc.code, detail=exc.detail, path=request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await app.state.listing_cache.stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"])
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
