"""
Booking engine: the spot reservation state machine.

CONCURRENCY STRATEGY: Compare-and-swap on the spot row
======================================================

Problem:
  Two drivers tap "book" on the same spot at the same moment.
  Both read available=true, both write available=false, both get a booking.
  Result: two active bookings for one spot.

Solution:
  The availability check and the flip are one conditional UPDATE:

    UPDATE parking_spots SET available = false, version = version + 1
    WHERE id = :spot_id AND version = :seen_version AND available = true

  If no row changed, someone else got there first. We re-read the spot and
  retry; a re-read that shows the spot taken fails with SpotUnavailable.
  The partial unique index on active bookings is the final safety net.

Lifecycle:
  active -> completed  (finish: bill the session, release the spot)
  active -> cancelled  (cancel: no charge, release the spot)
  Both terminal states are absorbing. The closing write is itself
  conditional (WHERE status = 'active'), so of a racing finish and cancel
  only one closes the booking and releases the spot; the other gets
  InvalidState.

Partial failure:
  The spot is reserved before the booking row is written. If that write
  fails the unit of work is rolled back, which puts the flag back, before
  the error propagates. A spot is never left reserved without a booking.
"""

import time
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from parkspot.core.config import get_settings
from parkspot.core.exceptions import (
    BookingNotFound,
    InvalidState,
    RepositoryError,
    SpotUnavailable,
)
from parkspot.core.logging import get_logger
from parkspot.core.metrics import (
    booking_latency,
    record_booking_attempt,
    record_booking_transition,
    reservation_retries,
)
from parkspot.db.base import utcnow
from parkspot.models.booking import ACTIVE, CANCELLED, COMPLETED, PENDING_PAYMENT, Booking
from parkspot.models.spot import ParkingSpot
from parkspot.repositories.booking_repository import BookingRepository
from parkspot.repositories.spot_repository import SpotRepository
from parkspot.services import billing

logger = get_logger(__name__)


def find_nearest_available(spots: Iterable) -> Optional[object]:
    """
    Closest available spot, or None.

    Spots without a distance sort last; equal distances keep input order.
    Works on anything exposing `available` and `distance` attributes.
    """
    candidates = [spot for spot in spots if spot.available]
    if not candidates:
        return None
    candidates.sort(key=lambda spot: (spot.distance is None, spot.distance or 0.0))
    return candidates[0]


class BookingEngine:
    def __init__(
        self,
        session: AsyncSession,
        spots: Optional[SpotRepository] = None,
        bookings: Optional[BookingRepository] = None,
        clock: Callable[[], datetime] = utcnow,
        max_retries: Optional[int] = None,
        completed_payment_method: Optional[str] = None,
    ):
        settings = get_settings()
        self.session = session
        self.spots = spots or SpotRepository(session)
        self.bookings = bookings or BookingRepository(session)
        self.clock = clock
        self.max_retries = (
            settings.BOOKING_MAX_RETRIES if max_retries is None else max_retries
        )
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        self.completed_payment_method = (
            completed_payment_method or settings.COMPLETED_PAYMENT_METHOD
        )

    async def create(self, user_id: str, spot_id: str) -> Booking:
        """Reserve the spot and open an active booking on it."""
        started = time.perf_counter()
        try:
            spot = await self._reserve_spot(spot_id)
        except SpotUnavailable:
            record_booking_attempt("unavailable")
            raise
        except RepositoryError:
            record_booking_attempt("error")
            raise

        booking = Booking(
            user_id=user_id,
            spot_id=spot_id,
            spot=spot,
            status=ACTIVE,
            start_time=self.clock(),
            end_time=None,
            total_cost=0,
            payment_method=PENDING_PAYMENT,
        )
        try:
            booking = await self.bookings.add(booking)
        except RepositoryError:
            record_booking_attempt("error")
            await self._rollback_reservation(spot_id)
            raise
        await self.session.refresh(booking.spot)

        record_booking_attempt("created")
        booking_latency.observe(time.perf_counter() - started)
        logger.info(
            "booking_created",
            booking_id=booking.id,
            user_id=user_id,
            spot_id=spot_id,
        )
        return booking

    async def _reserve_spot(self, spot_id: str) -> ParkingSpot:
        for attempt in range(1, self.max_retries + 1):
            spot = await self.spots.get_by_id(spot_id)
            if spot is None:
                logger.warning("booking_failed_spot_missing", spot_id=spot_id)
                raise SpotUnavailable(f"Parking spot {spot_id} does not exist")
            if not spot.available:
                logger.warning("booking_failed_spot_taken", spot_id=spot_id)
                raise SpotUnavailable(f"Parking spot {spot_id} is already booked")

            if await self.spots.set_available(spot_id, False, expected_version=spot.version):
                return spot

            reservation_retries.inc()
            logger.info(
                "booking_retry",
                spot_id=spot_id,
                attempt=attempt,
                reason="version_conflict",
            )

        raise SpotUnavailable("Parking spot is in high demand. Please try again.")

    async def _rollback_reservation(self, spot_id: str) -> None:
        # Spot flip and booking insert share the unit of work
        await self.session.rollback()
        logger.error("booking_write_failed_reservation_rolled_back", spot_id=spot_id)

    async def finish(self, booking_id: str) -> Booking:
        """Bill the session, complete the booking and release the spot."""
        booking = await self._get_booking(booking_id)
        if not booking.is_active:
            raise InvalidState(f"Booking {booking_id} is {booking.status}, not active")

        now = self.clock()
        result = billing.compute(booking.start_time, now, booking.spot.price)

        await self._close(
            booking,
            status=COMPLETED,
            end_time=now,
            total_cost=result.total_cost,
            billing_hours=result.billing_hours,
            payment_method=self.completed_payment_method,
        )
        await self._release_spot(booking)

        record_booking_transition(COMPLETED)
        logger.info(
            "booking_finished",
            booking_id=booking.id,
            spot_id=booking.spot_id,
            billing_hours=str(result.billing_hours),
            total_cost=str(result.total_cost),
        )
        return booking

    async def cancel(self, booking_id: str) -> Booking:
        """Cancel an active booking without charge and release the spot."""
        booking = await self._get_booking(booking_id)
        if not booking.is_active:
            raise InvalidState(f"Booking {booking_id} is already {booking.status}")

        await self._close(booking, status=CANCELLED, end_time=self.clock(), total_cost=0)
        await self._release_spot(booking)

        record_booking_transition(CANCELLED)
        logger.info("booking_cancelled", booking_id=booking.id, spot_id=booking.spot_id)
        return booking

    async def list_user_bookings(self, user_id: str) -> list[Booking]:
        return await self.bookings.list_for_user(user_id)

    @staticmethod
    def find_nearest_available(spots: Sequence) -> Optional[object]:
        return find_nearest_available(spots)

    async def _get_booking(self, booking_id: str) -> Booking:
        booking = await self.bookings.get(booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found")
        return booking

    async def _close(self, booking: Booking, **values) -> None:
        # A concurrent finish/cancel may have closed it after our read
        if not await self.bookings.close_if_active(booking, **values):
            logger.warning(
                "booking_close_conflict",
                booking_id=booking.id,
                target_status=values["status"],
            )
            raise InvalidState(f"Booking {booking.id} is no longer active")

    async def _release_spot(self, booking: Booking) -> None:
        await self.spots.set_available(booking.spot_id, True)
        # The UPDATE bypasses the identity map
        await self.session.refresh(booking.spot)
        logger.info("spot_released", spot_id=booking.spot_id, booking_id=booking.id)
