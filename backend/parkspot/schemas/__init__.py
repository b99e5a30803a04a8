from parkspot.schemas.spot import Coordinates, SpotCreate, SpotRead, NearbySpot, NearbySpotsResponse
from parkspot.schemas.booking import BookingCreate, BookingResponse

__all__ = [
    "Coordinates", "SpotCreate", "SpotRead", "NearbySpot", "NearbySpotsResponse",
    "BookingCreate", "BookingResponse",
]
