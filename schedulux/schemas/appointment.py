"""
Pydantic schemas for booking requests and appointment status changes
"""
import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schedulux.models.appointment import AppointmentStatus, ServiceLocationType


class ActorRole(str, enum.Enum):
    CLIENT = "client"
    VENDOR = "vendor"


class AppointmentCreateRequest(BaseModel):
    """Booking intent submitted by a client"""
    client_id: int
    storefront_id: int
    service_id: int
    start_datetime: str = Field(..., description="ISO-8601 start, naive values are read as UTC")
    client_notes: Optional[str] = Field(None, max_length=1000)
    service_location_type: ServiceLocationType = ServiceLocationType.AT_VENDOR
    client_address: Optional[str] = None
    drop_id: Optional[int] = None


class StatusTransitionRequest(BaseModel):
    actor_id: int
    actor_role: ActorRole
    new_status: AppointmentStatus
    notes: Optional[str] = Field(None, max_length=1000)
    confirmed_start_datetime: Optional[datetime] = None
    confirmed_end_datetime: Optional[datetime] = None


class AppointmentStatusPatch(BaseModel):
    """
    Explicit partial update for an appointment's status columns.
    Only fields that were set are written.
    """
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    status: AppointmentStatus
    vendor_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    confirmed_start_datetime: Optional[datetime] = None
    confirmed_end_datetime: Optional[datetime] = None
