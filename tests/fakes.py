"""
In-memory implementation of the scheduling store for tests.

`InMemoryDatabase` holds the committed tables and one lock per advisory key.
Each `InMemoryStore` plays the part of one database session: its writes stay
private until its transaction commits, and advisory locks it takes are
released when that transaction ends, like pg_advisory_xact_lock.
"""
import itertools
import threading
from contextlib import contextmanager
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from schedulux.core.errors import LockTimeoutError
from schedulux.models import Appointment, ScheduleRule, Service, Storefront
from schedulux.models.appointment import ACTIVE_STATUSES
from schedulux.models.schedule_rule import RuleType
from schedulux.utils.datetime_utils import ensure_utc, utc_now

VENDOR_ID = 100
CLIENT_ID = 500

# 2030-01-07 is a Monday; day_of_week uses 0=Sunday
MONDAY = 1
FIXED_NOW = datetime(2029, 12, 1, 12, 0, tzinfo=timezone.utc)


def clone(row):
    """Detached copy of an ORM row with the same column values"""
    return type(row)(**{column.key: getattr(row, column.key) for column in row.__table__.columns})


class InMemoryDatabase:
    """Committed state shared by every store created on it"""

    def __init__(self):
        self.mutex = threading.Lock()
        self._advisory: Dict[int, threading.Lock] = {}
        self._ids = itertools.count(1)

        self.storefronts: Dict[int, Storefront] = {}
        self.services: Dict[int, Service] = {}
        self.rules: Dict[int, ScheduleRule] = {}
        self.appointments: Dict[int, Appointment] = {}

    def next_id(self) -> int:
        with self.mutex:
            return next(self._ids)

    def advisory_lock(self, key: int) -> threading.Lock:
        with self.mutex:
            return self._advisory.setdefault(key, threading.Lock())

    # -- seeding helpers (write committed rows directly) ----------------

    def add_storefront(self, vendor_id: int = 100, timezone: str = "UTC",
                       location_type: str = "fixed", **kwargs) -> Storefront:
        storefront = Storefront(
            id=kwargs.pop("id", None) or self.next_id(),
            vendor_id=vendor_id,
            name=kwargs.pop("name", "Test Studio"),
            timezone=timezone,
            location_type=location_type,
            is_active=kwargs.pop("is_active", True),
            **kwargs
        )
        self.storefronts[storefront.id] = storefront
        return storefront

    def add_service(self, storefront_id: int, duration_minutes: int = 30,
                    buffer_time_minutes: int = 0, **kwargs) -> Service:
        service = Service(
            id=kwargs.pop("id", None) or self.next_id(),
            storefront_id=storefront_id,
            name=kwargs.pop("name", "Haircut"),
            duration_minutes=duration_minutes,
            buffer_time_minutes=buffer_time_minutes,
            price=kwargs.pop("price", Decimal("50.00")),
            is_active=kwargs.pop("is_active", True),
            **kwargs
        )
        self.services[service.id] = service
        return service

    def add_rule(self, storefront_id: int, start_time: time, end_time: time,
                 rule_type: str = RuleType.WEEKLY.value, **kwargs) -> ScheduleRule:
        rule = ScheduleRule(
            id=kwargs.pop("id", None) or self.next_id(),
            storefront_id=storefront_id,
            rule_type=rule_type,
            start_time=start_time,
            end_time=end_time,
            priority=kwargs.pop("priority", 1),
            is_available=kwargs.pop("is_available", True),
            max_concurrent_appointments=kwargs.pop("max_concurrent_appointments", 1),
            is_active=kwargs.pop("is_active", True),
            **kwargs
        )
        self.rules[rule.id] = rule
        return rule

    def add_appointment(self, storefront_id: int, service_id: int, start: datetime,
                        end: datetime, client_id: int = 500, **kwargs) -> Appointment:
        appointment = Appointment(
            id=kwargs.pop("id", None) or self.next_id(),
            client_id=client_id,
            storefront_id=storefront_id,
            service_id=service_id,
            requested_start_datetime=start,
            requested_end_datetime=end,
            status=kwargs.pop("status", "pending"),
            service_location_type=kwargs.pop("service_location_type", "at_vendor"),
            **kwargs
        )
        self.appointments[appointment.id] = appointment
        return appointment


class InMemoryStore:
    """One "session" on an InMemoryDatabase"""

    def __init__(self, db: InMemoryDatabase):
        self.db = db
        self._pending: Dict[Tuple[str, int], object] = {}
        self._held_locks: List[threading.Lock] = []
        self.commits = 0
        self.rollbacks = 0

    # -- transactions / locking ------------------------------------------

    @contextmanager
    def transaction(self):
        try:
            yield self
            self._commit()
        except Exception:
            self._rollback()
            raise

    def _commit(self):
        with self.db.mutex:
            for (table, row_id), row in self._pending.items():
                getattr(self.db, table)[row_id] = row
        self._pending.clear()
        self._release_locks()
        self.commits += 1

    def _rollback(self):
        self._pending.clear()
        self._release_locks()
        self.rollbacks += 1

    def _release_locks(self):
        while self._held_locks:
            self._held_locks.pop().release()

    @property
    def held_lock_count(self) -> int:
        return len(self._held_locks)

    def acquire_xact_lock(self, key: int, timeout_ms: Optional[int] = None) -> None:
        lock = self.db.advisory_lock(key)
        if lock in self._held_locks:
            return  # advisory locks are re-entrant within a session

        acquired = lock.acquire(timeout=timeout_ms / 1000) if timeout_ms else lock.acquire()
        if not acquired:
            raise LockTimeoutError(
                "Timed out waiting for the booking lock, please retry",
                details={"lock_key": key, "timeout_ms": timeout_ms},
            )
        self._held_locks.append(lock)

    # -- row access -------------------------------------------------------

    def _rows(self, table: str) -> list:
        with self.db.mutex:
            rows = dict(getattr(self.db, table))
        for (pending_table, row_id), row in self._pending.items():
            if pending_table == table:
                rows[row_id] = row
        return sorted(rows.values(), key=lambda row: row.id)

    def _get(self, table: str, row_id: int):
        return next((row for row in self._rows(table) if row.id == row_id and row.deleted_at is None), None)

    # -- catalogue --------------------------------------------------------

    def get_storefront(self, storefront_id: int) -> Optional[Storefront]:
        return self._get("storefronts", storefront_id)

    def get_service(self, service_id: int) -> Optional[Service]:
        return self._get("services", service_id)

    # -- schedule rules ---------------------------------------------------

    def find_rules_for_range(self, storefront_id: int, service_id: Optional[int],
                             start_date: date, end_date: date) -> List[ScheduleRule]:
        def matches(rule):
            if rule.storefront_id != storefront_id or not rule.is_active or rule.deleted_at is not None:
                return False
            if rule.service_id is not None and rule.service_id != service_id:
                return False
            if rule.rule_type == RuleType.DAILY.value:
                return start_date <= rule.specific_date <= end_date
            if rule.rule_type == RuleType.MONTHLY.value:
                return rule.year is None or start_date.year <= rule.year <= end_date.year
            return True

        rules = [rule for rule in self._rows("rules") if matches(rule)]
        return sorted(rules, key=lambda rule: (-rule.priority, rule.id))

    def find_rules_by_storefront(self, storefront_id: int, include_inactive: bool = False) -> List[ScheduleRule]:
        rules = [
            rule for rule in self._rows("rules")
            if rule.storefront_id == storefront_id
            and rule.deleted_at is None
            and (include_inactive or rule.is_active)
        ]
        return sorted(rules, key=lambda rule: (-rule.priority, rule.id))

    def get_rule(self, rule_id: int) -> Optional[ScheduleRule]:
        return self._get("rules", rule_id)

    def insert_rule(self, rule: ScheduleRule) -> ScheduleRule:
        rule.id = self.db.next_id()
        rule.created_at = rule.updated_at = utc_now()
        self._pending[("rules", rule.id)] = rule
        return rule

    def update_rule(self, rule_id: int, patch) -> Optional[ScheduleRule]:
        rule = self.get_rule(rule_id)
        if not rule:
            return None
        updated = clone(rule)
        for field, value in patch.model_dump(exclude_unset=True).items():
            setattr(updated, field, value)
        updated.updated_at = utc_now()
        self._pending[("rules", rule_id)] = updated
        return updated

    def soft_delete_rule(self, rule_id: int) -> bool:
        rule = self.get_rule(rule_id)
        if not rule:
            return False
        deleted = clone(rule)
        deleted.deleted_at = utc_now()
        deleted.is_active = False
        self._pending[("rules", rule_id)] = deleted
        return True

    # -- appointments -----------------------------------------------------

    def _active_overlapping(self, storefront_id, start, end, service_id=None):
        return [
            appointment for appointment in self._rows("appointments")
            if appointment.storefront_id == storefront_id
            and appointment.status in ACTIVE_STATUSES
            and appointment.deleted_at is None
            and ensure_utc(appointment.requested_start_datetime) < end
            and ensure_utc(appointment.requested_end_datetime) > start
            and (service_id is None or appointment.service_id == service_id)
        ]

    def find_active_appointments_in_range(self, storefront_id: int, start: datetime, end: datetime,
                                          service_id: Optional[int] = None) -> List[Appointment]:
        return sorted(
            self._active_overlapping(storefront_id, start, end, service_id),
            key=lambda appointment: appointment.requested_start_datetime
        )

    def count_overlapping_appointments(self, storefront_id: int, start: datetime, end: datetime,
                                       service_id: Optional[int] = None) -> int:
        return len(self._active_overlapping(storefront_id, start, end, service_id))

    def get_appointment(self, appointment_id: int, for_update: bool = False) -> Optional[Appointment]:
        return self._get("appointments", appointment_id)

    def find_appointments(self, client_id=None, storefront_id=None, status=None,
                          start=None, end=None, skip=0, limit=50) -> List[Appointment]:
        rows = [
            appointment for appointment in self._rows("appointments")
            if appointment.deleted_at is None
            and (client_id is None or appointment.client_id == client_id)
            and (storefront_id is None or appointment.storefront_id == storefront_id)
            and (not status or appointment.status == status)
            and (start is None or ensure_utc(appointment.requested_start_datetime) >= start)
            and (end is None or ensure_utc(appointment.requested_start_datetime) < end)
        ]
        rows.sort(key=lambda appointment: appointment.requested_start_datetime)
        return rows[skip:skip + limit]

    def insert_appointment(self, appointment: Appointment) -> Appointment:
        appointment.id = self.db.next_id()
        appointment.created_at = appointment.updated_at = utc_now()
        self._pending[("appointments", appointment.id)] = appointment
        return appointment

    def update_appointment_status(self, appointment_id: int, patch) -> Optional[Appointment]:
        appointment = self.get_appointment(appointment_id)
        if not appointment:
            return None
        updated = clone(appointment)
        for field, value in patch.model_dump(exclude_unset=True).items():
            setattr(updated, field, value)
        updated.updated_at = utc_now()
        self._pending[("appointments", appointment_id)] = updated
        return updated
