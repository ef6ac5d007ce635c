"""
API v1 router setup
Organized into: availability (public), appointments (client/vendor) and schedule rules (vendor)
"""
from fastapi import APIRouter

from schedulux.api.v1 import availability, appointments, schedule_rules

api_v1_router = APIRouter()

# ============================================================================
# AVAILABILITY ROUTES
# ============================================================================
api_v1_router.include_router(
    availability.router,
    # No prefix needed - availability.router already has "/storefronts" prefix
    tags=["Availability"]
)

# ============================================================================
# APPOINTMENT ROUTES
# ============================================================================
api_v1_router.include_router(
    appointments.router,
    tags=["Appointments"]
)

# ============================================================================
# SCHEDULE RULE ROUTES
# ============================================================================
api_v1_router.include_router(
    schedule_rules.router,
    tags=["Schedule Rules"]
)


@api_v1_router.get("/", tags=["Info"])
def api_info():
    """API information and available endpoints"""
    return {
        "version": "1.0",
        "endpoints": {
            "availability": "/api/v1/storefronts/{storefront_id}/services/{service_id}/availability",
            "slot_check": "/api/v1/storefronts/{storefront_id}/services/{service_id}/availability/check",
            "appointments": "/api/v1/appointments",
            "schedule_rules": "/api/v1/storefronts/{storefront_id}/schedule-rules"
        }
    }
