"""
Pydantic schemas for schedule rule writes.
Field-level ranges are enforced here; rule-type requirements depend on the
merged rule and are checked by the schedule rule service.
"""
from datetime import date, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schedulux.models.schedule_rule import RuleType


class ScheduleRuleCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    service_id: Optional[int] = None  # None = applies to all services
    rule_type: RuleType
    priority: int = Field(default=1, gt=0)
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0=Sunday, 6=Saturday")
    specific_date: Optional[date] = None
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1970)
    start_time: time
    end_time: time
    is_available: bool = True
    max_concurrent_appointments: int = Field(default=1, gt=0)
    notes: Optional[str] = None


class ScheduleRulePatch(BaseModel):
    """Typed partial update: unknown keys are rejected instead of becoming columns"""
    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    service_id: Optional[int] = None
    rule_type: Optional[RuleType] = None
    priority: Optional[int] = Field(None, gt=0)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    specific_date: Optional[date] = None
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1970)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_available: Optional[bool] = None
    max_concurrent_appointments: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = None
    is_active: Optional[bool] = None
