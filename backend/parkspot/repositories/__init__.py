"""
Repository layer - single-record access to spots and bookings.
Keeps booking rules free of query details.
"""

from .spot_repository import SpotRepository
from .booking_repository import BookingRepository

__all__ = ['SpotRepository', 'BookingRepository']
