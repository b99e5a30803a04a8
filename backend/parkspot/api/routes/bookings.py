"""
Booking endpoints with concurrency-safe spot reservation.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from parkspot.api.deps import get_booking_engine, get_listing_cache
from parkspot.db.session import get_db
from parkspot.schemas.booking import BookingCreate, BookingResponse
from parkspot.services.booking_engine import BookingEngine
from parkspot.services.cache_service import SpotListingCache

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    engine: BookingEngine = Depends(get_booking_engine),
    cache: SpotListingCache = Depends(get_listing_cache),
    db: AsyncSession = Depends(get_db),
):
    """
    Book a parking spot.

    The spot is reserved with a compare-and-swap on its version; if another
    driver books it first this returns 409.
    """
    booking = await engine.create(booking_data.user_id, booking_data.spot_id)
    await db.commit()
    # Spot availability changed
    await cache.invalidate()
    return booking


@router.post("/{booking_id}/finish", response_model=BookingResponse)
async def finish_booking(
    booking_id: str,
    engine: BookingEngine = Depends(get_booking_engine),
    cache: SpotListingCache = Depends(get_listing_cache),
    db: AsyncSession = Depends(get_db),
):
    """End the parking session, bill it and release the spot."""
    booking = await engine.finish(booking_id)
    await db.commit()
    await cache.invalidate()
    return booking


@router.delete("/{booking_id}", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    engine: BookingEngine = Depends(get_booking_engine),
    cache: SpotListingCache = Depends(get_listing_cache),
    db: AsyncSession = Depends(get_db),
):
    """Cancel an active booking without charge and release the spot."""
    booking = await engine.cancel(booking_id)
    await db.commit()
    await cache.invalidate()
    return booking


@router.get("/", response_model=list[BookingResponse])
async def list_user_bookings(
    user_id: str = Query(..., min_length=1, max_length=128),
    engine: BookingEngine = Depends(get_booking_engine),
):
    """Booking history of a user, newest first."""
    return await engine.list_user_bookings(user_id)
