# ===== schedulux/services/availability/availability_service.py =====
from datetime import date, datetime
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

import logging

from schedulux.config.settings import get_settings
from schedulux.core.errors import InvalidRequestError, NotFoundError
from schedulux.models import Service, Storefront
from schedulux.schemas.availability import (
    AvailabilityResponse,
    AvailableSlot,
    ServiceSummary,
    SlotCheckResult,
    TimeBlock,
)
from schedulux.services.availability.slot_generator import generate_slots
from schedulux.services.availability.time_blocks import resolve_time_blocks
from schedulux.storage.base import SchedulingStore
from schedulux.utils.datetime_utils import (
    ensure_utc,
    get_zone,
    iter_dates,
    local_day_bounds,
    parse_local_date,
    utc_now,
)

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Rule-based availability: resolved time blocks, bookable slots and point-in-time checks"""

    @staticmethod
    def _coerce_date(value: Union[str, date], field: str) -> date:
        if isinstance(value, date):
            return value
        try:
            return parse_local_date(value)
        except ValueError as e:
            raise InvalidRequestError(str(e), details={"field": field}) from e

    @staticmethod
    def _storefront_zone(storefront: Storefront) -> ZoneInfo:
        try:
            return get_zone(storefront.timezone, get_settings().DEFAULT_TIMEZONE)
        except ValueError as e:
            logger.error(f"Storefront {storefront.id} has an unknown timezone: {storefront.timezone}")
            raise InvalidRequestError(
                f"Storefront timezone is not a valid IANA zone: {storefront.timezone}",
                details={"storefront_id": storefront.id}
            ) from e

    @staticmethod
    def _load_storefront_and_service(
            store: SchedulingStore,
            storefront_id: int,
            service_id: int
    ) -> tuple[Storefront, Service]:
        storefront = store.get_storefront(storefront_id)
        if not storefront:
            raise NotFoundError("Storefront not found", details={"storefront_id": storefront_id})

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

        return storefront, service

    @staticmethod
    def get_time_blocks(
            store: SchedulingStore,
            storefront_id: int,
            service_id: Optional[int],
            day: Union[str, date]
    ) -> List[TimeBlock]:
        """Resolved blocks for one local date of a storefront"""
        day = AvailabilityService._coerce_date(day, "date")

        storefront = store.get_storefront(storefront_id)
        if not storefront:
            raise NotFoundError("Storefront not found", details={"storefront_id": storefront_id})

        zone = AvailabilityService._storefront_zone(storefront)
        rules = store.find_rules_for_range(storefront_id, service_id, day, day)
        return resolve_time_blocks(day, zone, rules)

    @staticmethod
    def get_available_slots(
            store: SchedulingStore,
            storefront_id: int,
            service_id: int,
            start_date: Union[str, date],
            end_date: Union[str, date],
            now: Optional[datetime] = None
    ) -> AvailabilityResponse:
        """
        Bookable slots for every local date in [start_date, end_date].

        Rules and active appointments are loaded once for the whole range,
        then each day is resolved into blocks and walked for slots.

        Raises:
            NotFoundError: storefront or service missing
            InvalidRequestError: inactive or foreign service, bad dates or range
        """
        settings = get_settings()

        storefront, service = AvailabilityService._load_storefront_and_service(
            store, storefront_id, service_id
        )

        start_day = AvailabilityService._coerce_date(start_date, "start_date")
        end_day = AvailabilityService._coerce_date(end_date, "end_date")

        if start_day > end_day:
            raise InvalidRequestError(
                "start_date must be on or before end_date",
                details={"start_date": start_day.isoformat(), "end_date": end_day.isoformat()}
            )

        if (end_day - start_day).days > settings.MAX_AVAILABILITY_RANGE_DAYS:
            raise InvalidRequestError(
                f"Date range cannot exceed {settings.MAX_AVAILABILITY_RANGE_DAYS} days",
                details={"start_date": start_day.isoformat(), "end_date": end_day.isoformat()}
            )

        now = ensure_utc(now) if now else utc_now()
        zone = AvailabilityService._storefront_zone(storefront)

        rules = store.find_rules_for_range(storefront.id, service.id, start_day, end_day)
        range_start, _ = local_day_bounds(start_day, zone)
        _, range_end = local_day_bounds(end_day, zone)
        # Capacity is shared by every service of the storefront
        appointments = store.find_active_appointments_in_range(storefront.id, range_start, range_end)

        slots: List[AvailableSlot] = []
        for day in iter_dates(start_day, end_day):
            blocks = resolve_time_blocks(day, zone, rules)
            if not blocks:
                continue

            day_start, day_end = local_day_bounds(day, zone)
            day_appointments = [
                appointment for appointment in appointments
                if ensure_utc(appointment.requested_start_datetime) < day_end
                and ensure_utc(appointment.requested_end_datetime) > day_start
            ]

            slots.extend(generate_slots(
                blocks,
                service.duration_minutes,
                service.buffer_time_minutes or 0,
                day_appointments,
                now,
                zone,
            ))

        logger.info(
            f"Computed {len(slots)} slots for storefront {storefront.id} service {service.id} "
            f"({start_day} to {end_day})"
        )

        return AvailabilityResponse(
            storefront_id=storefront.id,
            service_id=service.id,
            timezone=storefront.timezone,
            service=ServiceSummary(
                name=service.name,
                duration_minutes=service.duration_minutes,
                buffer_time_minutes=service.buffer_time_minutes or 0,
                price=float(service.price) if service.price is not None else None,
            ),
            slots=slots,
        )

    @staticmethod
    def is_slot_available(
            store: SchedulingStore,
            storefront_id: int,
            service_id: int,
            start: datetime,
            end: datetime,
            now: Optional[datetime] = None
    ) -> SlotCheckResult:
        """
        Check whether the exact interval [start, end) can take one more booking.
        Never raises for business reasons; the verdict carries the reason.
        """
        start = ensure_utc(start)
        end = ensure_utc(end)
        now = ensure_utc(now) if now else utc_now()

        storefront = store.get_storefront(storefront_id)
        if not storefront or storefront.is_active is False:
            return SlotCheckResult(
                available=False,
                reason="Storefront not found",
                reason_code="storefront_not_found"
            )

        service = store.get_service(service_id)
        if not service or not service.is_active or service.storefront_id != storefront.id:
            return SlotCheckResult(
                available=False,
                reason="Service not found or inactive",
                reason_code="service_unavailable"
            )

        if start <= now:
            return SlotCheckResult(
                available=False,
                reason="Cannot book slots in the past",
                reason_code="in_past"
            )

        zone = AvailabilityService._storefront_zone(storefront)
        local_day = start.astimezone(zone).date()
        rules = store.find_rules_for_range(storefront.id, service.id, local_day, local_day)
        blocks = resolve_time_blocks(local_day, zone, rules)

        block = next(
            (b for b in blocks if b.is_available and b.start <= start and end <= b.end),
            None
        )
        if start >= end or block is None:
            return SlotCheckResult(
                available=False,
                reason="Slot is outside working hours",
                reason_code="outside_working_hours"
            )

        current = store.count_overlapping_appointments(storefront.id, start, end)
        if current >= block.max_concurrent:
            return SlotCheckResult(
                available=False,
                reason="Maximum concurrent bookings reached",
                reason_code="capacity_reached",
                current_bookings=current,
                max_concurrent=block.max_concurrent
            )

        return SlotCheckResult(
            available=True,
            current_bookings=current,
            max_concurrent=block.max_concurrent
        )

