# schedulux/models/storefront.py
"""
Storefront Model - read-only to the scheduling core
Storefront CRUD lives outside this service; the core only needs the
timezone (all local-time interpretation) and the location type.
"""
import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func

from schedulux.models.base import Base


class LocationType(str, enum.Enum):
    """Where a storefront delivers its services"""
    FIXED = "fixed"      # Clients always come to the vendor
    MOBILE = "mobile"    # Vendor travels to the client
    HYBRID = "hybrid"


class Storefront(Base):
    __tablename__ = "storefronts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)

    # IANA zone used for every local wall-clock conversion
    timezone = Column(String(50), nullable=False, default="UTC")
    location_type = Column(String(20), nullable=False, default=LocationType.FIXED.value)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Storefront(id={self.id}, name={self.name}, timezone={self.timezone})>"
