# schedulux/models/__init__.py
from .base import Base
from .storefront import Storefront, LocationType
from .service import Service
from .schedule_rule import ScheduleRule, RuleType
from .appointment import Appointment, AppointmentStatus, ServiceLocationType, ACTIVE_STATUSES

__all__ = [
    "Base",
    "Storefront",
    "LocationType",
    "Service",
    "ScheduleRule",
    "RuleType",
    "Appointment",
    "AppointmentStatus",
    "ServiceLocationType",
    "ACTIVE_STATUSES",
]
