# schedulux/models/schedule_rule.py
"""
Vendor-defined scheduling rules.
A rule either opens (is_available=True) or closes (is_available=False) a
window of local wall-clock time on the dates it matches; priority decides
which rule wins where windows overlap.
"""
import enum

from sqlalchemy import (
    Column, Integer, String, Boolean, Time, Date, Text, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.sql import func

from schedulux.models.base import Base


class RuleType(str, enum.Enum):
    WEEKLY = "weekly"    # Every week on day_of_week
    DAILY = "daily"      # One specific calendar date
    MONTHLY = "monthly"  # Every day of a month, optionally of one year


class ScheduleRule(Base):
    __tablename__ = "schedule_rules"
    __table_args__ = (
        CheckConstraint("rule_type IN ('weekly', 'daily', 'monthly')", name="ck_schedule_rules_type"),
        CheckConstraint("priority > 0", name="ck_schedule_rules_priority"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_schedule_rules_day_of_week"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_schedule_rules_month"),
        CheckConstraint("start_time < end_time", name="ck_schedule_rules_time_range"),
        CheckConstraint("max_concurrent_appointments > 0", name="ck_schedule_rules_capacity"),
        Index("idx_schedule_rules_lookup", "storefront_id", "service_id", "rule_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    storefront_id = Column(Integer, ForeignKey("storefronts.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)  # NULL = all services

    rule_type = Column(String(20), nullable=False)
    priority = Column(Integer, nullable=False, default=1)

    # Only the fields relevant to rule_type are filled
    day_of_week = Column(Integer, nullable=True)  # 0=Sunday, 6=Saturday
    specific_date = Column(Date, nullable=True)
    month = Column(Integer, nullable=True)
    year = Column(Integer, nullable=True)  # NULL = every year

    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    is_available = Column(Boolean, nullable=False, default=True)
    max_concurrent_appointments = Column(Integer, nullable=False, default=1)

    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return (
            f"<ScheduleRule(id={self.id}, type={self.rule_type}, priority={self.priority}, "
            f"{self.start_time}-{self.end_time}, available={self.is_available})>"
        )

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": self.id,
            "storefront_id": self.storefront_id,
            "service_id": self.service_id,
            "rule_type": self.rule_type,
            "priority": self.priority,
            "day_of_week": self.day_of_week,
            "specific_date": self.specific_date.isoformat() if self.specific_date else None,
            "month": self.month,
            "year": self.year,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "end_time": self.end_time.strftime("%H:%M") if self.end_time else None,
            "is_available": self.is_available,
            "max_concurrent_appointments": self.max_concurrent_appointments,
            "notes": self.notes,
            "is_active": self.is_active,
        }
