# ============================================================================
# schedulux/api/v1/appointments.py
# Booking and appointment lifecycle endpoints - thin HTTP layer
# ============================================================================
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from schedulux.api.dependencies import get_store
from schedulux.schemas.appointment import (
    ActorRole,
    AppointmentCreateRequest,
    StatusTransitionRequest,
)
from schedulux.services.appointment.appointment_service import AppointmentService
from schedulux.services.booking.booking_service import BookingService
from schedulux.storage.base import SchedulingStore

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_appointment(
        request: AppointmentCreateRequest,
        store: SchedulingStore = Depends(get_store)
):
    """
    Book a slot. The appointment is created as pending and waits for the vendor.
    Returns 409 when the slot filled up in the meantime.
    """
    appointment = BookingService.create_appointment(
        store,
        client_id=request.client_id,
        storefront_id=request.storefront_id,
        service_id=request.service_id,
        start_datetime=request.start_datetime,
        client_notes=request.client_notes,
        service_location_type=request.service_location_type,
        client_address=request.client_address,
        drop_id=request.drop_id
    )
    return appointment.to_dict()


@router.get("")
def list_client_appointments(
        client_id: int = Query(..., description="The client whose appointments to list"),
        status: Optional[str] = Query(None, description="Filter by status"),
        upcoming: bool = Query(False, description="Only appointments starting in the future"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
        store: SchedulingStore = Depends(get_store)
):
    """List a client's appointments"""
    appointments = AppointmentService.list_client_appointments(
        store,
        client_id=client_id,
        status=status,
        upcoming=upcoming,
        skip=skip,
        limit=limit
    )
    return [appointment.to_dict() for appointment in appointments]


@router.get("/storefront/{storefront_id}")
def list_storefront_appointments(
        storefront_id: int = Path(..., description="The storefront ID"),
        vendor_id: int = Query(..., description="The vendor owning the storefront"),
        status: Optional[str] = Query(None, description="Filter by status"),
        skip: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=100),
        store: SchedulingStore = Depends(get_store)
):
    """List a storefront's appointments for its vendor"""
    appointments = AppointmentService.list_storefront_appointments(
        store,
        storefront_id=storefront_id,
        vendor_id=vendor_id,
        status=status,
        skip=skip,
        limit=limit
    )
    return [appointment.to_dict() for appointment in appointments]


@router.get("/{appointment_id}")
def get_appointment(
        appointment_id: int = Path(..., description="The appointment ID"),
        actor_id: int = Query(..., description="Requesting client or vendor"),
        actor_role: ActorRole = Query(..., description="client or vendor"),
        store: SchedulingStore = Depends(get_store)
):
    """Get one appointment; only its client and the storefront's vendor may see it"""
    appointment = AppointmentService.get_appointment(
        store,
        appointment_id=appointment_id,
        actor_id=actor_id,
        actor_role=actor_role
    )
    return appointment.to_dict()


@router.patch("/{appointment_id}/status")
def transition_appointment(
        request: StatusTransitionRequest,
        appointment_id: int = Path(..., description="The appointment ID"),
        store: SchedulingStore = Depends(get_store)
):
    """
    Move an appointment through its lifecycle.
    Clients may only cancel; confirm, decline, complete and no_show are vendor actions.
    """
    appointment = AppointmentService.transition(
        store,
        appointment_id=appointment_id,
        actor_id=request.actor_id,
        actor_role=request.actor_role,
        new_status=request.new_status,
        notes=request.notes,
        confirmed_start_datetime=request.confirmed_start_datetime,
        confirmed_end_datetime=request.confirmed_end_datetime
    )
    return appointment.to_dict()
