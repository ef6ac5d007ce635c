# schedulux/storage/sqlalchemy_store.py
"""PostgreSQL implementation of the scheduling store on a sync SQLAlchemy Session"""
import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import and_, or_, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from schedulux.core.errors import LockTimeoutError
from schedulux.models import Appointment, ScheduleRule, Service, Storefront
from schedulux.models.appointment import ACTIVE_STATUSES
from schedulux.models.schedule_rule import RuleType
from schedulux.schemas.appointment import AppointmentStatusPatch
from schedulux.schemas.schedule_rule import ScheduleRulePatch
from schedulux.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

# SQLSTATE raised when lock_timeout expires
LOCK_NOT_AVAILABLE = "55P03"


def _is_lock_timeout(exc: OperationalError) -> bool:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) == LOCK_NOT_AVAILABLE


class SqlAlchemyStore:
    """One store per Session; the Session's transaction is the unit of work"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Transactions / locking
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        # The session autobegins on first use, so this only decides how it ends
        try:
            yield self
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def acquire_xact_lock(self, key: int, timeout_ms: Optional[int] = None) -> None:
        try:
            if timeout_ms:
                # SET does not accept bind parameters
                self.db.execute(text(f"SET LOCAL lock_timeout = {int(timeout_ms)}"))
            self.db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": key})
        except OperationalError as e:
            if _is_lock_timeout(e):
                raise LockTimeoutError(
                    "Timed out waiting for the booking lock, please retry",
                    details={"lock_key": key, "timeout_ms": timeout_ms},
                ) from e
            raise

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------

    def get_storefront(self, storefront_id: int) -> Optional[Storefront]:
        return self.db.query(Storefront).filter(
            Storefront.id == storefront_id,
            Storefront.deleted_at.is_(None)
        ).first()

    def get_service(self, service_id: int) -> Optional[Service]:
        return self.db.query(Service).filter(
            Service.id == service_id,
            Service.deleted_at.is_(None)
        ).first()

    # ------------------------------------------------------------------
    # Schedule rules
    # ------------------------------------------------------------------

    def find_rules_for_range(
            self,
            storefront_id: int,
            service_id: Optional[int],
            start_date: date,
            end_date: date
    ) -> List[ScheduleRule]:
        service_filter = ScheduleRule.service_id.is_(None)
        if service_id is not None:
            service_filter = or_(service_filter, ScheduleRule.service_id == service_id)

        return self.db.query(ScheduleRule).filter(
            ScheduleRule.storefront_id == storefront_id,
            ScheduleRule.is_active.is_(True),
            ScheduleRule.deleted_at.is_(None),
            service_filter,
            or_(
                ScheduleRule.rule_type == RuleType.WEEKLY.value,
                and_(
                    ScheduleRule.rule_type == RuleType.DAILY.value,
                    ScheduleRule.specific_date.between(start_date, end_date)
                ),
                and_(
                    ScheduleRule.rule_type == RuleType.MONTHLY.value,
                    or_(
                        ScheduleRule.year.is_(None),
                        ScheduleRule.year.between(start_date.year, end_date.year)
                    )
                ),
            )
        ).order_by(ScheduleRule.priority.desc(), ScheduleRule.id).all()

    def find_rules_by_storefront(self, storefront_id: int, include_inactive: bool = False) -> List[ScheduleRule]:
        query = self.db.query(ScheduleRule).filter(
            ScheduleRule.storefront_id == storefront_id,
            ScheduleRule.deleted_at.is_(None)
        )
        if not include_inactive:
            query = query.filter(ScheduleRule.is_active.is_(True))
        return query.order_by(ScheduleRule.priority.desc(), ScheduleRule.id).all()

    def get_rule(self, rule_id: int) -> Optional[ScheduleRule]:
        return self.db.query(ScheduleRule).filter(
            ScheduleRule.id == rule_id,
            ScheduleRule.deleted_at.is_(None)
        ).first()

    def insert_rule(self, rule: ScheduleRule) -> ScheduleRule:
        self.db.add(rule)
        self.db.flush()
        return rule

    def update_rule(self, rule_id: int, patch: ScheduleRulePatch) -> Optional[ScheduleRule]:
        rule = self.get_rule(rule_id)
        if not rule:
            return None

        for field, value in patch.model_dump(exclude_unset=True).items():
            setattr(rule, field, value)

        self.db.flush()
        return rule

    def soft_delete_rule(self, rule_id: int) -> bool:
        rule = self.get_rule(rule_id)
        if not rule:
            return False

        rule.deleted_at = utc_now()
        rule.is_active = False
        self.db.flush()
        return True

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    def _active_overlap_query(
            self,
            storefront_id: int,
            start: datetime,
            end: datetime,
            service_id: Optional[int] = None
    ):
        query = self.db.query(Appointment).filter(
            Appointment.storefront_id == storefront_id,
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.deleted_at.is_(None),
            # Half-open overlap: touching intervals do not collide
            Appointment.requested_start_datetime < end,
            Appointment.requested_end_datetime > start
        )
        if service_id is not None:
            query = query.filter(Appointment.service_id == service_id)
        return query

    def find_active_appointments_in_range(
            self,
            storefront_id: int,
            start: datetime,
            end: datetime,
            service_id: Optional[int] = None
    ) -> List[Appointment]:
        return self._active_overlap_query(storefront_id, start, end, service_id).order_by(
            Appointment.requested_start_datetime
        ).all()

    def count_overlapping_appointments(
            self,
            storefront_id: int,
            start: datetime,
            end: datetime,
            service_id: Optional[int] = None
    ) -> int:
        return self._active_overlap_query(storefront_id, start, end, service_id).count()

    def get_appointment(self, appointment_id: int, for_update: bool = False) -> Optional[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.deleted_at.is_(None)
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

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
        query = self.db.query(Appointment).filter(Appointment.deleted_at.is_(None))

        if client_id is not None:
            query = query.filter(Appointment.client_id == client_id)
        if storefront_id is not None:
            query = query.filter(Appointment.storefront_id == storefront_id)
        if status:
            query = query.filter(Appointment.status == status)
        if start:
            query = query.filter(Appointment.requested_start_datetime >= start)
        if end:
            query = query.filter(Appointment.requested_start_datetime < end)

        return query.order_by(Appointment.requested_start_datetime).offset(skip).limit(limit).all()

    def insert_appointment(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        self.db.flush()
        return appointment

    def update_appointment_status(
            self,
            appointment_id: int,
            patch: AppointmentStatusPatch
    ) -> Optional[Appointment]:
        appointment = self.get_appointment(appointment_id)
        if not appointment:
            return None

        for field, value in patch.model_dump(exclude_unset=True).items():
            setattr(appointment, field, value)

        self.db.flush()
        logger.debug(f"Appointment {appointment_id} status -> {appointment.status}")
        return appointment
