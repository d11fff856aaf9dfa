"""
API router setup
Organized into: public availability reads, client bookings (JWT) and
salon-owner schedule administration (JWT + provider role)
"""
from fastapi import APIRouter

from salon_booking.api.v1 import appointments, schedule

api_v1_router = APIRouter()

# ============================================================================
# APPOINTMENTS
# /available and /available-days are public, the rest need a JWT
# ============================================================================
api_v1_router.include_router(appointments.router)

# ============================================================================
# SCHEDULE ADMINISTRATION (JWT authentication + provider role required)
# ============================================================================
api_v1_router.include_router(schedule.router)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """
    API information and authentication requirements per route group.
    """
    return {
        "version": "1.0",
        "authentication": {
            "availability": "No authentication required",
            "appointments": "JWT Bearer token required",
            "schedule": "JWT Bearer token + provider role required"
        }
    }
