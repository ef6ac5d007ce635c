# schedulux/core/errors.py
"""
Error taxonomy for the scheduling core.

Every error carries a human-readable reason; the HTTP layer maps the kind to
a status code through `status_code` and never inspects the message.
"""
from typing import Any, Dict, Optional


class SchedulingError(Exception):
    """Base class for all business errors raised by the core"""

    status_code: int = 400
    error_code: str = "scheduling_error"
    retryable: bool = False

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(reason)
        self.reason = reason
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "error": self.error_code,
            "detail": self.reason,
            "retryable": self.retryable,
        }
        if self.details:
            payload["context"] = self.details
        return payload


class NotFoundError(SchedulingError):
    """Referenced storefront/service/appointment/rule is absent or soft-deleted"""

    status_code = 404
    error_code = "not_found"


class InvalidRequestError(SchedulingError):
    """Malformed input, out-of-range values or a violated business rule"""

    status_code = 400
    error_code = "invalid_request"


class ForbiddenError(SchedulingError):
    """Actor lacks permission for the requested action"""

    status_code = 403
    error_code = "forbidden"


class ConflictError(SchedulingError):
    """Slot capacity exhausted at commit time (always decided inside the lock)"""

    status_code = 409
    error_code = "conflict"


class LockTimeoutError(ConflictError):
    """The booking lock could not be acquired in time; the whole attempt may be retried"""

    error_code = "lock_timeout"
    retryable = True


class InvalidTransitionError(SchedulingError):
    """Appointment status state-machine violation"""

    status_code = 422
    error_code = "invalid_transition"

    def __init__(self, from_status: str, to_status: str):
        super().__init__(
            f"Cannot transition from '{from_status}' to '{to_status}'",
            details={"from_status": from_status, "to_status": to_status},
        )
        self.from_status = from_status
        self.to_status = to_status
