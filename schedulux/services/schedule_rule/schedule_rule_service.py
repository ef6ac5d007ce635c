# ============================================================================
# schedulux/services/schedule_rule/schedule_rule_service.py
# ============================================================================
"""Vendor-side management of schedule rules"""
import logging
from datetime import date, time
from typing import Any, Dict, List, Optional

from schedulux.core.errors import ForbiddenError, InvalidRequestError, NotFoundError
from schedulux.models import ScheduleRule, Storefront
from schedulux.models.schedule_rule import RuleType
from schedulux.schemas.schedule_rule import ScheduleRuleCreate, ScheduleRulePatch
from schedulux.storage.base import SchedulingStore

logger = logging.getLogger(__name__)

# Fields that only mean something for one rule type
TYPE_FIELDS = {
    RuleType.WEEKLY.value: ("day_of_week",),
    RuleType.DAILY.value: ("specific_date",),
    RuleType.MONTHLY.value: ("month", "year"),
}


def validate_rule_fields(
        rule_type: str,
        start_time: Optional[time],
        end_time: Optional[time],
        day_of_week: Optional[int] = None,
        specific_date: Optional[date] = None,
        month: Optional[int] = None
) -> None:
    """
    Check the cross-field requirements of a complete rule.

    Raises:
        InvalidRequestError: describing the first violated requirement
    """
    if rule_type not in TYPE_FIELDS:
        raise InvalidRequestError(f"Invalid rule_type: {rule_type}")

    if start_time is None or end_time is None or start_time >= end_time:
        raise InvalidRequestError("start_time must be before end_time")

    if rule_type == RuleType.WEEKLY.value and (day_of_week is None or not 0 <= day_of_week <= 6):
        raise InvalidRequestError("Weekly rules require day_of_week between 0 (Sunday) and 6 (Saturday)")

    if rule_type == RuleType.DAILY.value and specific_date is None:
        raise InvalidRequestError("Daily rules require specific_date")

    if rule_type == RuleType.MONTHLY.value and (month is None or not 1 <= month <= 12):
        raise InvalidRequestError("Monthly rules require month between 1 and 12")


def _irrelevant_fields(rule_type: str) -> Dict[str, Any]:
    """Null out the type-specific fields another rule type would have used"""
    keep = TYPE_FIELDS[rule_type]
    return {
        field: None
        for fields in TYPE_FIELDS.values()
        for field in fields
        if field not in keep
    }


class ScheduleRuleService:
    """Create, update, delete and list a storefront's schedule rules"""

    @staticmethod
    def _owned_storefront(store: SchedulingStore, storefront_id: int, vendor_id: int) -> Storefront:
        storefront = store.get_storefront(storefront_id)
        if not storefront:
            raise NotFoundError("Storefront not found", details={"storefront_id": storefront_id})
        if storefront.vendor_id != vendor_id:
            raise ForbiddenError("Not authorized to manage this storefront's schedule")
        return storefront

    @staticmethod
    def _owned_rule(store: SchedulingStore, storefront_id: int, rule_id: int, vendor_id: int) -> ScheduleRule:
        ScheduleRuleService._owned_storefront(store, storefront_id, vendor_id)
        rule = store.get_rule(rule_id)
        if not rule or rule.storefront_id != storefront_id:
            raise NotFoundError("Schedule rule not found", details={"rule_id": rule_id})
        return rule

    @staticmethod
    def _check_service(store: SchedulingStore, storefront_id: int, service_id: Optional[int]) -> None:
        if service_id is None:
            return
        service = store.get_service(service_id)
        if not service or service.storefront_id != storefront_id:
            raise InvalidRequestError(
                "Service does not belong to this storefront",
                details={"service_id": service_id}
            )

    @staticmethod
    def create_rule(
            store: SchedulingStore,
            storefront_id: int,
            vendor_id: int,
            data: ScheduleRuleCreate
    ) -> ScheduleRule:
        ScheduleRuleService._owned_storefront(store, storefront_id, vendor_id)
        ScheduleRuleService._check_service(store, storefront_id, data.service_id)

        validate_rule_fields(
            data.rule_type,
            data.start_time,
            data.end_time,
            day_of_week=data.day_of_week,
            specific_date=data.specific_date,
            month=data.month,
        )

        values = data.model_dump()
        values.update(_irrelevant_fields(data.rule_type))

        with store.transaction():
            rule = store.insert_rule(ScheduleRule(
                storefront_id=storefront_id,
                is_active=True,
                **values
            ))

        logger.info(f"Created {rule.rule_type} schedule rule {rule.id} for storefront {storefront_id}")
        return rule

    @staticmethod
    def update_rule(
            store: SchedulingStore,
            storefront_id: int,
            rule_id: int,
            vendor_id: int,
            patch: ScheduleRulePatch
    ) -> ScheduleRule:
        """Apply a partial update; the merged rule must still be valid"""
        rule = ScheduleRuleService._owned_rule(store, storefront_id, rule_id, vendor_id)

        changes = patch.model_dump(exclude_unset=True)
        if not changes:
            return rule

        for required in ("rule_type", "start_time", "end_time", "priority",
                         "max_concurrent_appointments", "is_available", "is_active"):
            if required in changes and changes[required] is None:
                raise InvalidRequestError(f"{required} cannot be null")

        if "service_id" in changes:
            ScheduleRuleService._check_service(store, storefront_id, changes["service_id"])

        merged = {
            "rule_type": rule.rule_type,
            "start_time": rule.start_time,
            "end_time": rule.end_time,
            "day_of_week": rule.day_of_week,
            "specific_date": rule.specific_date,
            "month": rule.month,
        }
        merged.update({k: v for k, v in changes.items() if k in merged})
        validate_rule_fields(**merged)

        if "rule_type" in changes:
            for field, value in _irrelevant_fields(merged["rule_type"]).items():
                changes.setdefault(field, value)

        with store.transaction():
            updated = store.update_rule(rule_id, ScheduleRulePatch(**changes))

        logger.info(f"Updated schedule rule {rule_id}: {sorted(changes)}")
        return updated

    @staticmethod
    def delete_rule(store: SchedulingStore, storefront_id: int, rule_id: int, vendor_id: int) -> None:
        """Soft delete; the rule stops applying immediately"""
        ScheduleRuleService._owned_rule(store, storefront_id, rule_id, vendor_id)

        with store.transaction():
            store.soft_delete_rule(rule_id)

        logger.info(f"Deleted schedule rule {rule_id} of storefront {storefront_id}")

    @staticmethod
    def list_rules(
            store: SchedulingStore,
            storefront_id: int,
            include_inactive: bool = False
    ) -> List[ScheduleRule]:
        if not store.get_storefront(storefront_id):
            raise NotFoundError("Storefront not found", details={"storefront_id": storefront_id})
        return store.find_rules_by_storefront(storefront_id, include_inactive=include_inactive)
