"""
Spot discovery: nearby search, lookup and registration.

Nearby search pipeline:
  caller location -> geohash query bounds -> one range scan per bound
  (through the listing cache) -> de-duplicate -> haversine post-filter
  -> annotate distance / driving distance / travel time -> sort by distance
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from parkspot.core.config import Settings, get_settings
from parkspot.core.exceptions import SpotNotFound
from parkspot.core.logging import get_logger
from parkspot.core.metrics import nearby_searches
from parkspot.geo import distance, geohash
from parkspot.models.spot import ParkingSpot
from parkspot.repositories.spot_repository import SpotRepository
from parkspot.schemas.spot import NearbySpot, SpotCreate, SpotRead
from parkspot.services.booking_engine import find_nearest_available
from parkspot.services.cache_service import SpotListingCache

logger = get_logger(__name__)


class SpotService:
    def __init__(
        self,
        session: AsyncSession,
        cache: Optional[SpotListingCache] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.repository = SpotRepository(session)
        self.cache = cache

    async def list_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_m: Optional[float] = None,
    ) -> list[NearbySpot]:
        """Spots within `radius_m` of the location, nearest first."""
        if radius_m is None:
            radius_m = self.settings.SEARCH_RADIUS_M
        center = (latitude, longitude)
        radius_km = radius_m / 1000
        nearby_searches.inc()

        candidates: dict[str, SpotRead] = {}
        for start, end in geohash.query_bounds(center, radius_m):
            for record in await self._range_candidates(start, end):
                candidates.setdefault(record.id, record)

        results = []
        for record in candidates.values():
            if record.latitude is None or record.longitude is None:
                continue
            straight_km = geohash.true_distance((record.latitude, record.longitude), center)
            if straight_km > radius_km:
                continue
            driving_km = distance.driving_distance(straight_km, self.settings.DRIVING_FACTOR)
            results.append(
                NearbySpot(
                    **record.model_dump(exclude={"coordinates"}),
                    distance=straight_km,
                    driving_distance=driving_km,
                    estimated_time=distance.estimated_travel_time_minutes(
                        driving_km, self.settings.AVERAGE_SPEED_KMH
                    ),
                )
            )

        results.sort(key=lambda spot: spot.distance)
        logger.info(
            "nearby_search",
            latitude=latitude,
            longitude=longitude,
            radius_m=radius_m,
            candidates=len(candidates),
            matches=len(results),
        )
        return results

    async def _range_candidates(self, start: str, end: str) -> list[SpotRead]:
        if self.cache is not None:
            cached = await self.cache.get_range(start, end)
            if cached is not None:
                return [SpotRead.model_validate(item) for item in cached]

        records = [
            SpotRead.model_validate(spot)
            for spot in await self.repository.find_by_geohash_range(start, end)
        ]
        if self.cache is not None:
            await self.cache.set_range(
                start, end, [record.model_dump(mode="json", exclude={"coordinates"}) for record in records]
            )
        return records

    async def nearest_available(
        self,
        latitude: float,
        longitude: float,
        radius_m: Optional[float] = None,
    ) -> Optional[NearbySpot]:
        """
        Closest spot that is bookable right now.

        Search results may come from a cached range that predates a booking,
        so each candidate's flag is re-read from the database before it is
        offered.
        """
        candidates = await self.list_nearby(latitude, longitude, radius_m)
        while True:
            candidate = find_nearest_available(candidates)
            if candidate is None:
                return None
            spot = await self.repository.get_by_id(candidate.id)
            if spot is not None and spot.available:
                return candidate
            logger.info("nearest_candidate_stale", spot_id=candidate.id)
            candidates = [c for c in candidates if c.id != candidate.id]

    async def get_by_id(self, spot_id: str) -> ParkingSpot:
        spot = await self.repository.get_by_id(spot_id)
        if spot is None:
            raise SpotNotFound(f"Parking spot {spot_id} not found")
        return spot

    async def add_spot(self, data: SpotCreate) -> ParkingSpot:
        """Register a new spot; the geohash is derived from its coordinates."""
        spot = ParkingSpot(
            name=data.name,
            description=data.description,
            latitude=data.coordinates.latitude,
            longitude=data.coordinates.longitude,
            price=Decimal(str(data.price)),
            price_unit=data.price_unit,
            type=data.type,
            amenities=list(data.amenities),
            images=list(data.images),
            rating=data.rating,
            rating_count=data.rating_count,
        )
        await self.repository.insert(spot)
        if self.cache is not None:
            await self.cache.invalidate()
        return spot
