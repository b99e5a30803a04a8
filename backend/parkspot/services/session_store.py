"""
Client-side mirror of spots and bookings.

A ParkingSessionStore holds what one client is looking at: the spots around
it, its booking history and the current selection. It never talks to the
database; it is fed the results of SpotService and BookingEngine and keeps
the local availability flags in step with booking transitions so the
display does not wait for the next search.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from parkspot.core.config import get_settings
from parkspot.core.logging import get_logger
from parkspot.schemas.booking import BookingResponse
from parkspot.schemas.spot import NearbySpot
from parkspot.services.booking_engine import find_nearest_available

logger = get_logger(__name__)


@dataclass
class ParkingFilters:
    only_available: bool = False
    max_price: Optional[float] = None
    max_distance: Optional[float] = None  # km
    types: Optional[list[str]] = None
    amenities: list[str] = field(default_factory=list)

    def matches(self, spot: NearbySpot) -> bool:
        if self.only_available and not spot.available:
            return False
        if self.max_distance is not None and spot.distance is not None and spot.distance > self.max_distance:
            return False
        if self.max_price is not None and spot.price > self.max_price:
            return False
        if self.types is not None and spot.type not in self.types:
            return False
        if self.amenities:
            offered = {amenity.lower() for amenity in spot.amenities}
            if not all(amenity.lower() in offered for amenity in self.amenities):
                return False
        return True


class ParkingSessionStore:
    def __init__(self, nearby_max_km: Optional[float] = None):
        self.nearby_max_km = (
            get_settings().NEARBY_MAX_KM if nearby_max_km is None else nearby_max_km
        )
        self.spots: list[NearbySpot] = []
        self.nearby_spots: list[NearbySpot] = []
        self.bookings: list[BookingResponse] = []
        self.selected_spot: Optional[NearbySpot] = None
        self.error: Optional[str] = None

    def load_spots(self, spots: Iterable[NearbySpot]) -> None:
        self.spots = list(spots)
        self.nearby_spots = [
            spot for spot in self.spots
            if spot.distance is not None and spot.distance < self.nearby_max_km
        ]
        self.error = None

    def load_bookings(self, bookings: Iterable[BookingResponse]) -> None:
        self.bookings = sorted(bookings, key=lambda booking: booking.start_time, reverse=True)

    def select_spot(self, spot: Optional[NearbySpot]) -> None:
        self.selected_spot = spot

    def find_nearest_available(self) -> Optional[NearbySpot]:
        return find_nearest_available(self.nearby_spots)

    def filter_spots(self, filters: ParkingFilters) -> list[NearbySpot]:
        return [spot for spot in self.nearby_spots if filters.matches(spot)]

    def apply_booking_created(self, booking: BookingResponse) -> None:
        self._set_spot_available(booking.spot_id, False)
        self.bookings.insert(0, booking)

    def apply_booking_finished(self, booking: BookingResponse) -> None:
        self._replace_booking(booking)
        self._set_spot_available(booking.spot_id, True)

    def apply_booking_cancelled(self, booking: BookingResponse) -> None:
        self._replace_booking(booking)
        self._set_spot_available(booking.spot_id, True)

    def record_error(self, message: str) -> None:
        logger.warning("session_store_error", error=message)
        self.error = message

    def _replace_booking(self, booking: BookingResponse) -> None:
        for index, existing in enumerate(self.bookings):
            if existing.id == booking.id:
                self.bookings[index] = booking
                return
        self.bookings.insert(0, booking)

    def _set_spot_available(self, spot_id: str, available: bool) -> None:
        self.spots = [self._with_availability(spot, spot_id, available) for spot in self.spots]
        self.nearby_spots = [
            self._with_availability(spot, spot_id, available) for spot in self.nearby_spots
        ]
        if self.selected_spot is not None:
            self.selected_spot = self._with_availability(self.selected_spot, spot_id, available)

    @staticmethod
    def _with_availability(spot: NearbySpot, spot_id: str, available: bool) -> NearbySpot:
        if spot.id != spot_id:
            return spot
        return spot.model_copy(update={"available": available})
