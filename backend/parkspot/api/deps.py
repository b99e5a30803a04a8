"""
Request-scoped service construction.

Long-lived collaborators (the listing cache) are built once in the app
lifespan and hung on app.state; per-request services are built here around
the request's database session.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from parkspot.db.session import get_db
from parkspot.services.booking_engine import BookingEngine
from parkspot.services.cache_service import SpotListingCache
from parkspot.services.spot_service import SpotService


def get_listing_cache(request: Request) -> SpotListingCache:
    return request.app.state.listing_cache


def get_spot_service(
    db: AsyncSession = Depends(get_db),
    cache: SpotListingCache = Depends(get_listing_cache),
) -> SpotService:
    return SpotService(db, cache=cache)


def get_booking_engine(db: AsyncSession = Depends(get_db)) -> BookingEngine:
    return BookingEngine(db)
