# schedulux/schemas/__init__.py
from .availability import (
    TimeBlock,
    AvailableSlot,
    ServiceSummary,
    AvailabilityResponse,
    SlotCheckResult
)

from .appointment import (
    ActorRole,
    AppointmentCreateRequest,
    StatusTransitionRequest,
    AppointmentStatusPatch
)

from .schedule_rule import (
    ScheduleRuleCreate,
    ScheduleRulePatch
)
