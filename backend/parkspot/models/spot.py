"""
Parking spot model with availability tracking.

Key design decisions:
- `geohash` is derived from the coordinates and indexed so proximity search
  becomes a handful of string range scans
- `available` is the single-occupancy flag; it is only flipped by the
  booking engine
- `version` column enables optimistic locking for concurrent booking
"""

import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, Float, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import relationship, validates

from parkspot.db.base import Base, TimestampMixin
from parkspot.geo import geohash

SPOT_TYPES = (
    "standard",
    "handicapped",
    "electric",
    "compact",
    "underground",
    "open-air",
    "covered",
    "shaded",
    "multi-level",
)


class ParkingSpot(Base, TimestampMixin):
    __tablename__ = "parking_spots"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    geohash = Column(String(12), nullable=True, index=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    price_unit = Column(String(20), nullable=False, default="hour")
    available = Column(Boolean, nullable=False, default=True)
    type = Column(String(20), nullable=False, default="standard")
    amenities = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    rating = Column(Float, nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    bookings = relationship("Booking", back_populates="spot")

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_spot_price_non_negative"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="check_spot_rating_range"),
        CheckConstraint("rating_count >= 0", name="check_spot_rating_count_non_negative"),
        CheckConstraint(
            "type IN (" + ", ".join(f"'{spot_type}'" for spot_type in SPOT_TYPES) + ")",
            name="check_spot_type",
        ),
    )

    @validates("latitude", "longitude")
    def _refresh_geohash(self, key, value):
        lat = value if key == "latitude" else self.latitude
        lon = value if key == "longitude" else self.longitude
        if lat is None or lon is None:
            self.geohash = None
        else:
            self.geohash = geohash.encode(lat, lon)
        return value

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self) -> str:
        return f"<ParkingSpot(id={self.id}, name={self.name}, available={self.available})>"
