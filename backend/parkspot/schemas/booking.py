"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from parkspot.schemas.spot import SpotRead


class BookingCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    spot_id: str = Field(..., min_length=1, max_length=36)


class BookingResponse(BaseModel):
    id: str
    user_id: str
    spot_id: str
    status: Literal["active", "completed", "cancelled"]
    start_time: datetime
    end_time: Optional[datetime] = None
    total_cost: float = 0
    billing_hours: Optional[float] = None
    payment_method: str
    spot: SpotRead

    model_config = {"from_attributes": True}

    @field_validator("total_cost", "billing_hours", mode="before")
    @classmethod
    def _decimal_amount(cls, value):
        if isinstance(value, Decimal):
            return float(value)
        return value
