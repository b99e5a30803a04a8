"""
Pydantic schemas for parking spot request/response validation.
"""

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from parkspot.models.spot import SPOT_TYPES

SpotType = Literal[SPOT_TYPES]


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class SpotCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=2000)
    coordinates: Coordinates
    price: float = Field(0, ge=0)
    price_unit: str = Field("hour", min_length=1, max_length=20)
    type: SpotType = "standard"
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    rating: float = Field(0, ge=0, le=5)
    rating_count: int = Field(0, ge=0)


class SpotRead(BaseModel):
    id: str
    name: str
    description: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geohash: Optional[str] = None
    price: float = 0
    price_unit: str = "hour"
    available: bool
    type: str = "standard"
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    rating: float = 0
    rating_count: int = 0

    model_config = {"from_attributes": True}

    @field_validator("price", mode="before")
    @classmethod
    def _decimal_price(cls, value):
        if isinstance(value, Decimal):
            return float(value)
        return value

    @computed_field
    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class NearbySpot(SpotRead):
    """A spot annotated relative to the caller's location. Never persisted."""

    distance: Optional[float] = None  # km, straight line
    driving_distance: Optional[float] = None  # km
    estimated_time: Optional[int] = None  # minutes


class NearbySpotsResponse(BaseModel):
    spots: list[NearbySpot]
    total: int
    radius_m: float
