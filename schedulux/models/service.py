# schedulux/models/service.py
"""
Service Model - bookable service definitions
Each service belongs to one storefront; duration + buffer define the slot stride.
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Boolean, DateTime, Text, CheckConstraint
from sqlalchemy.sql import func

from schedulux.models.base import Base


class Service(Base):
    """
    Source of truth for price and duration of a storefront's service.
    Consumed read-only by availability and booking.
    """
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        CheckConstraint("buffer_time_minutes >= 0", name="ck_services_buffer_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    storefront_id = Column(
        Integer,
        ForeignKey("storefronts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    duration_minutes = Column(Integer, nullable=False)
    buffer_time_minutes = Column(Integer, nullable=False, default=0)

    # Pricing (nullable - some services are quoted on request)
    price = Column(Numeric(10, 2), nullable=True)

    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, storefront_id={self.storefront_id})>"

    @property
    def slot_minutes(self) -> int:
        """Total minutes a booking occupies: duration plus trailing buffer"""
        return self.duration_minutes + (self.buffer_time_minutes or 0)

