"""
Data access for parking spots.

Every method is a single-row (or single range scan) operation inside the
caller's session; committing is left to the caller. Availability is only
ever changed through set_available(), which supports compare-and-swap
on the `version` column.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parkspot.core.exceptions import RepositoryError
from parkspot.core.logging import get_logger
from parkspot.models.spot import ParkingSpot

logger = get_logger(__name__)


class SpotRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_geohash_range(self, start: str, end: str) -> list[ParkingSpot]:
        """Spots whose geohash lies in [start, end]."""
        try:
            result = await self.session.execute(
                select(ParkingSpot)
                .where(ParkingSpot.geohash >= start, ParkingSpot.geohash <= end)
                .order_by(ParkingSpot.geohash)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("spot_range_query_failed", start=start, end=end, error=str(e))
            raise RepositoryError("Failed to query parking spots") from e

    async def get_by_id(self, spot_id: str) -> Optional[ParkingSpot]:
        """Fresh read of one spot; never served from the identity map."""
        try:
            return await self.session.get(ParkingSpot, spot_id, populate_existing=True)
        except SQLAlchemyError as e:
            logger.error("spot_read_failed", spot_id=spot_id, error=str(e))
            raise RepositoryError("Failed to load parking spot") from e

    async def set_available(
        self,
        spot_id: str,
        available: bool,
        expected_version: Optional[int] = None,
    ) -> bool:
        """
        Flip the availability flag and bump the version.

        With `expected_version` this is a compare-and-swap: the row only
        changes if its version still matches and the flag currently holds the
        opposite value. Returns True if a row was updated.
        """
        stmt = update(ParkingSpot).where(ParkingSpot.id == spot_id)
        if expected_version is not None:
            stmt = stmt.where(
                ParkingSpot.version == expected_version,
                ParkingSpot.available == (not available),
            )
        stmt = stmt.values(
            available=available,
            version=ParkingSpot.version + 1,
        ).execution_options(synchronize_session=False)

        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("spot_availability_update_failed", spot_id=spot_id, error=str(e))
            raise RepositoryError("Failed to update spot availability") from e
        return result.rowcount > 0

    async def insert(self, spot: ParkingSpot) -> str:
        try:
            self.session.add(spot)
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("spot_insert_failed", name=spot.name, error=str(e))
            raise RepositoryError("Failed to store parking spot") from e
        logger.info("spot_inserted", spot_id=spot.id, geohash=spot.geohash)
        return spot.id
