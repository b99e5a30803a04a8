"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from parkspot.api.routes import spots, bookings

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(spots.router)
api_router.include_router(bookings.router)
