"""
Data access for bookings.
"""

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parkspot.core.exceptions import RepositoryError
from parkspot.core.logging import get_logger
from parkspot.models.booking import ACTIVE, Booking

logger = get_logger(__name__)


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, booking: Booking) -> Booking:
        try:
            self.session.add(booking)
            await self.session.flush()
            await self.session.refresh(booking)
        except SQLAlchemyError as e:
            logger.error("booking_write_failed", spot_id=booking.spot_id, error=str(e))
            raise RepositoryError("Failed to store booking") from e
        return booking

    async def get(self, booking_id: str) -> Optional[Booking]:
        try:
            return await self.session.get(Booking, booking_id, populate_existing=True)
        except SQLAlchemyError as e:
            logger.error("booking_read_failed", booking_id=booking_id, error=str(e))
            raise RepositoryError("Failed to load booking") from e

    async def close_if_active(self, booking: Booking, **values) -> bool:
        """
        Move an active booking to a terminal state in one conditional UPDATE.

        Returns False, leaving the row untouched, if the booking stopped being
        active since it was read. On success `booking` is reloaded.
        """
        stmt = (
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == ACTIVE)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                return False
            await self.session.refresh(booking)
        except SQLAlchemyError as e:
            logger.error("booking_update_failed", booking_id=booking.id, error=str(e))
            raise RepositoryError("Failed to update booking") from e
        return True

    async def list_for_user(self, user_id: str) -> list[Booking]:
        """All bookings of a user, newest first."""
        try:
            result = await self.session.execute(
                select(Booking)
                .where(Booking.user_id == user_id)
                .order_by(Booking.start_time.desc())
            )
            return list(result.scalars().unique().all())
        except SQLAlchemyError as e:
            logger.error("booking_list_failed", user_id=user_id, error=str(e))
            raise RepositoryError("Failed to list bookings") from e
