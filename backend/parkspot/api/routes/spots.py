"""
Spot discovery endpoints with cached geohash range scans.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from parkspot.api.deps import get_spot_service
from parkspot.core.exceptions import SpotNotFound
from parkspot.db.session import get_db
from parkspot.schemas.spot import NearbySpot, NearbySpotsResponse, SpotCreate, SpotRead
from parkspot.services.spot_service import SpotService

router = APIRouter(prefix="/spots", tags=["Spots"])

MAX_RADIUS_M = 50_000


@router.get("/nearby", response_model=NearbySpotsResponse)
async def list_nearby_spots(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius_m: Optional[float] = Query(None, gt=0, le=MAX_RADIUS_M),
    service: SpotService = Depends(get_spot_service),
):
    """
    Spots within `radius_m` of the location, nearest first.
    Each result carries distance, estimated driving distance and travel time
    relative to the given location.
    """
    radius = service.settings.SEARCH_RADIUS_M if radius_m is None else radius_m
    spots = await service.list_nearby(lat, lon, radius)
    return NearbySpotsResponse(spots=spots, total=len(spots), radius_m=radius)


@router.get("/nearest", response_model=NearbySpot)
async def nearest_available_spot(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius_m: Optional[float] = Query(None, gt=0, le=MAX_RADIUS_M),
    service: SpotService = Depends(get_spot_service),
):
    """Closest bookable spot, or 404 when none is in range."""
    spot = await service.nearest_available(lat, lon, radius_m)
    if spot is None:
        raise SpotNotFound("No available parking spot nearby")
    return spot


@router.get("/{spot_id}", response_model=SpotRead)
async def get_spot(spot_id: str, service: SpotService = Depends(get_spot_service)):
    """Get a single spot. Not cached (needs the real-time availability flag)."""
    return await service.get_by_id(spot_id)


@router.post("/", response_model=SpotRead, status_code=status.HTTP_201_CREATED)
async def create_spot(
    spot_data: SpotCreate,
    service: SpotService = Depends(get_spot_service),
    db: AsyncSession = Depends(get_db),
):
    """Register a parking spot. Its geohash is derived from the coordinates."""
    spot = await service.add_spot(spot_data)
    await db.commit()
    return spot
