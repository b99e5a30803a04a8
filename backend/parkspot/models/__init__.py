from parkspot.models.spot import ParkingSpot
from parkspot.models.booking import Booking

__all__ = ["ParkingSpot", "Booking"]
