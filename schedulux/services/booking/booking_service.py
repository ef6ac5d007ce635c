# ============================================================================
# schedulux/services/booking/booking_service.py
# ============================================================================
"""Concurrency-safe appointment creation"""
import logging
from datetime import datetime, timedelta
from typing import Optional, Union

from schedulux.config.settings import get_settings
from schedulux.core.errors import (
    ConflictError,
    InvalidRequestError,
    LockTimeoutError,
    NotFoundError,
)
from schedulux.models import Appointment
from schedulux.models.appointment import AppointmentStatus, ServiceLocationType
from schedulux.models.storefront import LocationType
from schedulux.services.availability.availability_service import AvailabilityService
from schedulux.services.booking.locking import booking_lock, generate_lock_key
from schedulux.storage.base import SchedulingStore
from schedulux.utils.datetime_utils import ensure_utc, parse_iso_datetime, to_iso_string, utc_now

logger = logging.getLogger(__name__)


class BookingService:
    """Handles booking requests: validate, lock, re-check, insert"""

    @staticmethod
    def create_appointment(
            store: SchedulingStore,
            client_id: int,
            storefront_id: int,
            service_id: int,
            start_datetime: Union[str, datetime],
            client_notes: Optional[str] = None,
            service_location_type: Union[str, ServiceLocationType] = ServiceLocationType.AT_VENDOR,
            client_address: Optional[str] = None,
            drop_id: Optional[int] = None,
            now: Optional[datetime] = None,
            lock_timeout_ms: Optional[int] = None
    ) -> Appointment:
        """
        Create a pending appointment if the slot still has capacity.

        Input is validated before any lock is taken. Availability is then
        re-checked while holding the slot's advisory lock, so concurrent
        requests for the same slot are decided one at a time against
        committed data.

        Raises:
            InvalidRequestError: bad start time, inactive or foreign service, missing address
            NotFoundError: storefront or service missing
            ConflictError: slot no longer available (decided inside the lock)
            LockTimeoutError: the lock wait timed out; safe to retry
        """
        settings = get_settings()
        now = ensure_utc(now) if now else utc_now()

        # ---- pre-lock validation ----
        if isinstance(start_datetime, datetime):
            start = ensure_utc(start_datetime)
        else:
            try:
                start = parse_iso_datetime(start_datetime)
            except (TypeError, ValueError) as e:
                raise InvalidRequestError(
                    "Invalid start_datetime, expected ISO-8601",
                    details={"start_datetime": start_datetime}
                ) from e

        if start <= now:
            raise InvalidRequestError(
                "Cannot book appointments in the past",
                details={"start_datetime": to_iso_string(start)}
            )

        storefront = store.get_storefront(storefront_id)
        if not storefront:
            raise NotFoundError("Storefront not found", details={"storefront_id": storefront_id})
        if storefront.is_active is False:
            raise InvalidRequestError(
                "Storefront is not accepting bookings",
                details={"storefront_id": storefront_id}
            )

        service = store.get_service(service_id)
        if not service:
            raise NotFoundError("Service not found", details={"service_id": service_id})
        if service.storefront_id != storefront.id:
            raise InvalidRequestError(
                "Service does not belong to this storefront",
                details={"storefront_id": storefront_id, "service_id": service_id}
            )
        if not service.is_active:
            raise InvalidRequestError("Service is not active", details={"service_id": service_id})

        try:
            location = ServiceLocationType(service_location_type)
        except ValueError as e:
            raise InvalidRequestError(
                f"Invalid service_location_type: {service_location_type}",
                details={"allowed": [t.value for t in ServiceLocationType]}
            ) from e

        if storefront.location_type == LocationType.FIXED.value:
            # Fixed storefronts only serve on site
            location = ServiceLocationType.AT_VENDOR

        address = client_address.strip() if client_address else None
        if location == ServiceLocationType.AT_CLIENT and not address:
            raise InvalidRequestError("client_address is required for at_client appointments")
        if location == ServiceLocationType.AT_VENDOR:
            address = None

        end = start + timedelta(minutes=service.slot_minutes)

        lock_key = generate_lock_key(
            storefront.id, service.id, start, settings.BOOKING_LOCK_BUCKET_MINUTES
        )
        timeout_ms = settings.BOOKING_LOCK_TIMEOUT_MS if lock_timeout_ms is None else lock_timeout_ms

        # ---- critical section ----
        try:
            with booking_lock(store, lock_key, timeout_ms=timeout_ms):
                check = AvailabilityService.is_slot_available(
                    store, storefront.id, service.id, start, end, now=now
                )
                if not check.available:
                    logger.info(
                        f"Booking rejected for storefront {storefront.id} service {service.id} "
                        f"at {to_iso_string(start)}: {check.reason}"
                    )
                    raise ConflictError(
                        check.reason or "Slot is no longer available",
                        details={
                            "reason_code": check.reason_code,
                            "current_bookings": check.current_bookings,
                            "max_concurrent": check.max_concurrent,
                        }
                    )

                appointment = store.insert_appointment(Appointment(
                    client_id=client_id,
                    storefront_id=storefront.id,
                    service_id=service.id,
                    drop_id=drop_id,
                    requested_start_datetime=start,
                    requested_end_datetime=end,
                    status=AppointmentStatus.PENDING.value,
                    client_notes=client_notes,
                    price_quoted=service.price,
                    service_location_type=location.value,
                    client_address=address,
                ))
        except LockTimeoutError:
            logger.warning(
                f"Booking lock timed out for storefront {storefront.id} service {service.id} "
                f"at {to_iso_string(start)}"
            )
            raise

        logger.info(
            f"Created appointment {appointment.id} for client {client_id} "
            f"(storefront {storefront.id}, {to_iso_string(start)})"
        )
        return appointment
