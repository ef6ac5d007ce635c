# schedulux/storage/base.py
"""
Storage port consumed by the scheduling services.

Services never talk to a Session directly: everything they read or write goes
through this protocol, so the same code runs against PostgreSQL in production
and the in-memory store in tests. Writes become visible to other stores only
when the surrounding `transaction()` commits.
"""
from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import List, Optional, Protocol

from schedulux.models import Appointment, ScheduleRule, Service, Storefront
from schedulux.schemas.appointment import AppointmentStatusPatch
from schedulux.schemas.schedule_rule import ScheduleRulePatch


class SchedulingStore(Protocol):

    # -- transactions / locking ------------------------------------------

    def transaction(self) -> AbstractContextManager:
        """Commit on normal exit, roll back and re-raise on error"""
        ...

    def acquire_xact_lock(self, key: int, timeout_ms: Optional[int] = None) -> None:
        """
        Block until the advisory lock for `key` is held by the current transaction.
        Released automatically when the transaction ends.

        Raises:
            LockTimeoutError: if timeout_ms elapses first
        """
        ...

    # -- catalogue (read-only) -------------------------------------------

    def get_storefront(self, storefront_id: int) -> Optional[Storefront]:
        ...

    def get_service(self, service_id: int) -> Optional[Service]:
        ...

    # -- schedule rules --------------------------------------------------

    def find_rules_for_range(
            self,
            storefront_id: int,
            service_id: Optional[int],
            start_date: date,
            end_date: date
    ) -> List[ScheduleRule]:
        """Active, non-deleted rules for the storefront (and service or all-services) that may match the dates"""
        ...

    def find_rules_by_storefront(self, storefront_id: int, include_inactive: bool = False) -> List[ScheduleRule]:
        ...

    def get_rule(self, rule_id: int) -> Optional[ScheduleRule]:
        ...

    def insert_rule(self, rule: ScheduleRule) -> ScheduleRule:
        ...

    def update_rule(self, rule_id: int, patch: ScheduleRulePatch) -> Optional[ScheduleRule]:
        ...

    def soft_delete_rule(self, rule_id: int) -> bool:
        ...

    # -- appointments ----------------------------------------------------

    def find_active_appointments_in_range(
            self,
            storefront_id: int,
            start: datetime,
            end: datetime,
            service_id: Optional[int] = None
    ) -> List[Appointment]:
        """Pending/confirmed, non-deleted appointments whose requested interval overlaps [start, end)"""
        ...

    def count_overlapping_appointments(
            self,
            storefront_id: int,
            start: datetime,
            end: datetime,
            service_id: Optional[int] = None
    ) -> int:
        ...

    def get_appointment(self, appointment_id: int, for_update: bool = False) -> Optional[Appointment]:
        ...

    def find_appointments(
            self,
            client_id: Optional[int] = None,
            storefront_id: Optional[int] = None,
            status: Optional[str] = None,
            start: Optional[datetime] = None,
            end: Optional[datetime] = None,
            skip: int = 0,
            limit: int = 50
    ) -> List[Appointment]:
        ...

    def insert_appointment(self, appointment: Appointment) -> Appointment:
        ...

    def update_appointment_status(
            self,
            appointment_id: int,
            patch: AppointmentStatusPatch
    ) -> Optional[Appointment]:
        ...
