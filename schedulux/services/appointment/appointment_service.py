# ============================================================================
# schedulux/services/appointment/appointment_service.py
# ============================================================================
"""Service for appointment status changes and party-scoped reads"""
import logging
from datetime import datetime
from typing import List, Optional

from schedulux.core.errors import ForbiddenError, InvalidRequestError, NotFoundError
from schedulux.models import Appointment
from schedulux.models.appointment import AppointmentStatus
from schedulux.schemas.appointment import ActorRole, AppointmentStatusPatch
from schedulux.services.appointment.lifecycle import validate_transition
from schedulux.storage.base import SchedulingStore
from schedulux.utils.datetime_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class AppointmentService:
    """Handles appointment lifecycle operations"""

    @staticmethod
    def _authorize_party(
            store: SchedulingStore,
            appointment: Appointment,
            actor_id: int,
            actor_role: ActorRole
    ) -> None:
        if actor_role == ActorRole.CLIENT:
            if appointment.client_id != actor_id:
                raise ForbiddenError("Not authorized to access this appointment")
            return

        storefront = store.get_storefront(appointment.storefront_id)
        if not storefront or storefront.vendor_id != actor_id:
            raise ForbiddenError("Not authorized to access this appointment")

    @staticmethod
    def transition(
            store: SchedulingStore,
            appointment_id: int,
            actor_id: int,
            actor_role: str,
            new_status: str,
            notes: Optional[str] = None,
            confirmed_start_datetime: Optional[datetime] = None,
            confirmed_end_datetime: Optional[datetime] = None
    ) -> Appointment:
        """
        Move an appointment to `new_status` on behalf of a client or vendor.

        Raises:
            NotFoundError: appointment missing
            InvalidRequestError: unknown status/role or bad confirmed times
            ForbiddenError: actor is not a party or lacks permission
            InvalidTransitionError: move not allowed from the current status
        """
        try:
            target = AppointmentStatus(new_status)
        except ValueError as e:
            raise InvalidRequestError(f"Unknown status: {new_status}") from e

        try:
            role = ActorRole(actor_role)
        except ValueError as e:
            raise InvalidRequestError(f"Unknown actor role: {actor_role}") from e

        has_confirmed_times = confirmed_start_datetime is not None or confirmed_end_datetime is not None
        if has_confirmed_times:
            if target != AppointmentStatus.CONFIRMED:
                raise InvalidRequestError("Confirmed times can only be set when confirming")
            if confirmed_start_datetime is None or confirmed_end_datetime is None:
                raise InvalidRequestError("Both confirmed start and end times are required")
            confirmed_start_datetime = ensure_utc(confirmed_start_datetime)
            confirmed_end_datetime = ensure_utc(confirmed_end_datetime)
            if confirmed_start_datetime >= confirmed_end_datetime:
                raise InvalidRequestError("Confirmed start must be before confirmed end")

        with store.transaction():
            appointment = store.get_appointment(appointment_id, for_update=True)
            if not appointment:
                raise NotFoundError("Appointment not found", details={"appointment_id": appointment_id})

            AppointmentService._authorize_party(store, appointment, actor_id, role)

            previous = appointment.status
            validate_transition(previous, target, role)

            changes = {"status": target}
            if notes:
                if target in (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED):
                    changes["internal_notes"] = notes
                else:
                    changes["vendor_notes"] = notes
            if has_confirmed_times:
                changes["confirmed_start_datetime"] = confirmed_start_datetime
                changes["confirmed_end_datetime"] = confirmed_end_datetime

            appointment = store.update_appointment_status(appointment_id, AppointmentStatusPatch(**changes))

        logger.info(
            f"Appointment {appointment_id}: {previous} -> {target.value} by {role.value} {actor_id}"
        )
        return appointment

    @staticmethod
    def approve(
            store: SchedulingStore,
            appointment_id: int,
            vendor_id: int,
            vendor_notes: Optional[str] = None,
            confirmed_start_datetime: Optional[datetime] = None,
            confirmed_end_datetime: Optional[datetime] = None
    ) -> Appointment:
        return AppointmentService.transition(
            store, appointment_id, vendor_id, ActorRole.VENDOR, AppointmentStatus.CONFIRMED,
            notes=vendor_notes,
            confirmed_start_datetime=confirmed_start_datetime,
            confirmed_end_datetime=confirmed_end_datetime,
        )

    @staticmethod
    def decline(
            store: SchedulingStore,
            appointment_id: int,
            vendor_id: int,
            reason: Optional[str] = None
    ) -> Appointment:
        return AppointmentService.transition(
            store, appointment_id, vendor_id, ActorRole.VENDOR, AppointmentStatus.DECLINED, notes=reason
        )

    @staticmethod
    def cancel(
            store: SchedulingStore,
            appointment_id: int,
            actor_id: int,
            actor_role: str,
            reason: Optional[str] = None
    ) -> Appointment:
        return AppointmentService.transition(
            store, appointment_id, actor_id, actor_role, AppointmentStatus.CANCELLED, notes=reason
        )

    @staticmethod
    def complete(
            store: SchedulingStore,
            appointment_id: int,
            vendor_id: int,
            internal_notes: Optional[str] = None
    ) -> Appointment:
        return AppointmentService.transition(
            store, appointment_id, vendor_id, ActorRole.VENDOR, AppointmentStatus.COMPLETED,
            notes=internal_notes
        )

    @staticmethod
    def mark_no_show(store: SchedulingStore, appointment_id: int, vendor_id: int) -> Appointment:
        return AppointmentService.transition(
            store, appointment_id, vendor_id, ActorRole.VENDOR, AppointmentStatus.NO_SHOW
        )

    @staticmethod
    def get_appointment(
            store: SchedulingStore,
            appointment_id: int,
            actor_id: int,
            actor_role: str
    ) -> Appointment:
        """Fetch one appointment for its client or the storefront's vendor"""
        try:
            role = ActorRole(actor_role)
        except ValueError as e:
            raise InvalidRequestError(f"Unknown actor role: {actor_role}") from e

        appointment = store.get_appointment(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found", details={"appointment_id": appointment_id})

        AppointmentService._authorize_party(store, appointment, actor_id, role)
        return appointment

    @staticmethod
    def list_client_appointments(
            store: SchedulingStore,
            client_id: int,
            status: Optional[str] = None,
            upcoming: bool = False,
            skip: int = 0,
            limit: int = 50,
            now: Optional[datetime] = None
    ) -> List[Appointment]:
        if status is not None:
            try:
                status = AppointmentStatus(status).value
            except ValueError as e:
                raise InvalidRequestError(f"Unknown status: {status}") from e

        start = (ensure_utc(now) if now else utc_now()) if upcoming else None
        return store.find_appointments(
            client_id=client_id, status=status, start=start, skip=skip, limit=limit
        )

    @staticmethod
    def list_storefront_appointments(
            store: SchedulingStore,
            storefront_id: int,
            vendor_id: int,
            status: Optional[str] = None,
            start: Optional[datetime] = None,
            end: Optional[datetime] = None,
            skip: int = 0,
            limit: int = 50
    ) -> List[Appointment]:
        storefront = store.get_storefront(storefront_id)
        if not storefront:
            raise NotFoundError("Storefront not found", details={"storefront_id": storefront_id})
        if storefront.vendor_id != vendor_id:
            raise ForbiddenError("Not authorized to view this storefront's appointments")

        if status is not None:
            try:
                status = AppointmentStatus(status).value
            except ValueError as e:
                raise InvalidRequestError(f"Unknown status: {status}") from e

        return store.find_appointments(
            storefront_id=storefront_id,
            status=status,
            start=ensure_utc(start) if start else None,
            end=ensure_utc(end) if end else None,
            skip=skip,
            limit=limit
        )
