"""
API routes for the calculation engine.
"""

from fastapi import APIRouter

from app.api import calculations, calendar

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
router.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
