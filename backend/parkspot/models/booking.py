"""
Booking model representing a user's parking session on one spot.

Key design decisions:
- Partial unique index on spot_id for active bookings: at most one active
  booking per spot even if the optimistic lock were bypassed
- Status field keeps finished and cancelled sessions as history
- end_time / total_cost are written exactly once, on the terminal transition
"""

import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Numeric, String, text
from sqlalchemy.orm import relationship

from parkspot.db.base import Base, TimestampMixin, UTCDateTime

ACTIVE = "active"
COMPLETED = "completed"
CANCELLED = "cancelled"

PENDING_PAYMENT = "pending"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(128), nullable=False, index=True)
    spot_id = Column(String(36), ForeignKey("parking_spots.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ACTIVE)
    start_time = Column(UTCDateTime(), nullable=False)
    end_time = Column(UTCDateTime(), nullable=True)
    total_cost = Column(Numeric(10, 2), nullable=False, default=0)
    billing_hours = Column(Numeric(8, 2), nullable=True)
    payment_method = Column(String(32), nullable=False, default=PENDING_PAYMENT)

    spot = relationship("ParkingSpot", back_populates="bookings", lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')", name="check_booking_status"
        ),
        CheckConstraint("total_cost >= 0", name="check_booking_total_cost_non_negative"),
        Index(
            "uq_bookings_active_spot",
            "spot_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_bookings_user_start", "user_id", "start_time"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, spot={self.spot_id}, status={self.status})>"
