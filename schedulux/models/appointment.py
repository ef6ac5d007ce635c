# schedulux/models/appointment.py
import enum

from sqlalchemy import (
    Column, String, Integer, Text, DateTime, Numeric, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.sql import func

from schedulux.models.base import Base
from schedulux.utils.datetime_utils import to_iso_string


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"        # Booking request awaiting vendor approval
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Statuses that occupy capacity
ACTIVE_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)


class ServiceLocationType(str, enum.Enum):
    AT_VENDOR = "at_vendor"
    AT_CLIENT = "at_client"


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'declined', 'cancelled', 'completed', 'no_show')",
            name="ck_appointments_status",
        ),
        CheckConstraint(
            "requested_start_datetime < requested_end_datetime",
            name="ck_appointments_requested_range",
        ),
        CheckConstraint(
            "service_location_type = 'at_vendor' "
            "OR (service_location_type = 'at_client' AND client_address IS NOT NULL)",
            name="ck_appointments_client_address_required",
        ),
        Index("idx_appointments_overlap", "storefront_id", "requested_start_datetime", "requested_end_datetime"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # References
    client_id = Column(Integer, nullable=False, index=True)
    storefront_id = Column(Integer, ForeignKey("storefronts.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    drop_id = Column(Integer, nullable=True)

    # Timing (UTC)
    requested_start_datetime = Column(DateTime(timezone=True), nullable=False)
    requested_end_datetime = Column(DateTime(timezone=True), nullable=False)
    confirmed_start_datetime = Column(DateTime(timezone=True), nullable=True)
    confirmed_end_datetime = Column(DateTime(timezone=True), nullable=True)

    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)

    # Notes
    client_notes = Column(Text, nullable=True)    # Client's message to the vendor
    vendor_notes = Column(Text, nullable=True)    # Vendor's reply to the client
    internal_notes = Column(Text, nullable=True)  # Private vendor notes

    # Pricing
    price_quoted = Column(Numeric(10, 2), nullable=True)
    price_final = Column(Numeric(10, 2), nullable=True)

    # Location
    service_location_type = Column(String(20), nullable=False, default=ServiceLocationType.AT_VENDOR.value)
    client_address = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, storefront_id={self.storefront_id}, "
            f"start={self.requested_start_datetime}, status={self.status})>"
        )

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": self.id,
            "client_id": self.client_id,
            "storefront_id": self.storefront_id,
            "service_id": self.service_id,
            "drop_id": self.drop_id,
            "requested_start_datetime": to_iso_string(self.requested_start_datetime),
            "requested_end_datetime": to_iso_string(self.requested_end_datetime),
            "confirmed_start_datetime": (
                to_iso_string(self.confirmed_start_datetime) if self.confirmed_start_datetime else None
            ),
            "confirmed_end_datetime": (
                to_iso_string(self.confirmed_end_datetime) if self.confirmed_end_datetime else None
            ),
            "status": self.status,
            "client_notes": self.client_notes,
            "vendor_notes": self.vendor_notes,
            "internal_notes": self.internal_notes,
            "price_quoted": float(self.price_quoted) if self.price_quoted is not None else None,
            "price_final": float(self.price_final) if self.price_final is not None else None,
            "service_location_type": self.service_location_type,
            "client_address": self.client_address,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
