"""
Domain errors raised by the booking engine and repositories.

Each error carries the HTTP status it maps to; the API layer renders them
through a single exception handler registered in main.py.
"""

from fastapi import status


class ParkingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "parking_error"
    default_detail = "Parking request failed."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class SpotUnavailable(ParkingError):
    status_code = status.HTTP_409_CONFLICT
    code = "spot_unavailable"
    default_detail = "Parking spot is not available."


class SpotNotFound(ParkingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "spot_not_found"
    default_detail = "Parking spot not found."


class BookingNotFound(ParkingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "booking_not_found"
    default_detail = "Booking not found."


class InvalidState(ParkingError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_state"
    default_detail = "Booking is not active."


class RepositoryError(ParkingError):
    """Wraps any failure of the underlying store. Only reads are safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "repository_error"
    default_detail = "Storage backend failure."
