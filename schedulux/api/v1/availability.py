# ============================================================================
# schedulux/api/v1/availability.py
# Public availability endpoints - thin HTTP layer
# ============================================================================
from datetime import date, datetime

from fastapi import APIRouter, Depends, Path, Query

from schedulux.api.dependencies import get_store
from schedulux.schemas.availability import AvailabilityResponse, SlotCheckResult
from schedulux.services.availability.availability_service import AvailabilityService
from schedulux.storage.base import SchedulingStore

router = APIRouter(prefix="/storefronts", tags=["availability"])


@router.get("/{storefront_id}/services/{service_id}/availability", response_model=AvailabilityResponse)
def get_available_slots(
        storefront_id: int = Path(..., description="The storefront ID"),
        service_id: int = Path(..., description="The service ID"),
        start_date: date = Query(..., description="First local date (YYYY-MM-DD)"),
        end_date: date = Query(..., description="Last local date (YYYY-MM-DD), at most 31 days after start"),
        store: SchedulingStore = Depends(get_store)
):
    """
    Bookable slots for a service between two dates in the storefront's timezone.
    No authentication required.
    """
    return AvailabilityService.get_available_slots(
        store,
        storefront_id=storefront_id,
        service_id=service_id,
        start_date=start_date,
        end_date=end_date
    )


@router.get("/{storefront_id}/services/{service_id}/availability/check", response_model=SlotCheckResult)
def check_slot(
        storefront_id: int = Path(..., description="The storefront ID"),
        service_id: int = Path(..., description="The service ID"),
        start: datetime = Query(..., description="Slot start (ISO-8601, naive = UTC)"),
        end: datetime = Query(..., description="Slot end (ISO-8601, naive = UTC)"),
        store: SchedulingStore = Depends(get_store)
):
    """Check whether one exact interval can still be booked"""
    return AvailabilityService.is_slot_available(
        store,
        storefront_id=storefront_id,
        service_id=service_id,
        start=start,
        end=end
    )
