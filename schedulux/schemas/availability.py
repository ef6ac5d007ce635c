"""
Pydantic schemas for availability computation and slot queries
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TimeBlock(BaseModel):
    """
    A resolved, contiguous interval of one calendar day (UTC instants).
    Derived per query from schedule rules and never persisted.
    """
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    is_available: bool
    max_concurrent: int = Field(..., ge=1)
    priority: int
    rule_id: Optional[int] = None


class AvailableSlot(BaseModel):
    """A fixed-duration bookable window with remaining capacity"""
    start_datetime: str  # ISO-8601 UTC
    end_datetime: str  # start + duration + buffer, the interval a booking occupies
    local_date: str  # YYYY-MM-DD in storefront timezone
    local_start_time: str  # HH:MM
    local_end_time: str  # HH:MM, start + duration (buffer excluded)
    available_capacity: int = Field(..., ge=1)


class ServiceSummary(BaseModel):
    name: str
    duration_minutes: int
    buffer_time_minutes: int
    price: Optional[float] = None


class AvailabilityResponse(BaseModel):
    storefront_id: int
    service_id: int
    timezone: str
    service: ServiceSummary
    slots: List[AvailableSlot] = Field(default_factory=list)


class SlotCheckResult(BaseModel):
    """Point-in-time availability verdict for one exact interval"""
    available: bool
    reason: Optional[str] = None
    reason_code: Optional[str] = None
    current_bookings: Optional[int] = None
    max_concurrent: Optional[int] = None
