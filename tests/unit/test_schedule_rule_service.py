"""
Unit tests for vendor schedule rule management.
"""

from datetime import date, time

import pytest
from pydantic import ValidationError

from schedulux.core.errors import ForbiddenError, InvalidRequestError, NotFoundError
from schedulux.schemas.schedule_rule import ScheduleRuleCreate, ScheduleRulePatch
from schedulux.services.schedule_rule.schedule_rule_service import (
    ScheduleRuleService,
    validate_rule_fields,
)
from tests.fakes import MONDAY, VENDOR_ID


def weekly_rule(**overrides):
    data = {
        "rule_type": "weekly",
        "day_of_week": MONDAY,
        "start_time": time(9, 0),
        "end_time": time(17, 0),
    }
    data.update(overrides)
    return ScheduleRuleCreate(**data)


class TestValidateRuleFields:
    """Tests for cross-field rule requirements."""

    def test_start_must_precede_end(self):
        with pytest.raises(InvalidRequestError, match="before"):
            validate_rule_fields("weekly", time(17, 0), time(9, 0), day_of_week=1)

    def test_weekly_needs_day_of_week(self):
        with pytest.raises(InvalidRequestError, match="day_of_week"):
            validate_rule_fields("weekly", time(9, 0), time(17, 0))

    def test_daily_needs_date(self):
        with pytest.raises(InvalidRequestError, match="specific_date"):
            validate_rule_fields("daily", time(9, 0), time(17, 0))

    def test_monthly_needs_month(self):
        with pytest.raises(InvalidRequestError, match="month"):
            validate_rule_fields("monthly", time(9, 0), time(17, 0), month=None)

    def test_valid_daily(self):
        validate_rule_fields("daily", time(9, 0), time(17, 0), specific_date=date(2030, 1, 7))


class TestSchemas:
    """Tests for field-level schema constraints."""

    def test_priority_must_be_positive(self):
        with pytest.raises(ValidationError):
            weekly_rule(priority=0)

    def test_patch_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            ScheduleRulePatch(storefront_id=7)


class TestCreateRule:
    """Tests for rule creation."""

    def test_create_weekly(self, db, store, storefront):
        rule = ScheduleRuleService.create_rule(store, storefront.id, VENDOR_ID, weekly_rule(notes="Regular hours"))

        assert rule.id in db.rules
        assert rule.rule_type == "weekly"
        assert rule.is_active is True
        assert rule.notes == "Regular hours"

    def test_irrelevant_fields_are_cleared(self, store, storefront):
        rule = ScheduleRuleService.create_rule(
            store, storefront.id, VENDOR_ID, weekly_rule(month=5, specific_date=date(2030, 1, 1))
        )

        assert rule.month is None
        assert rule.specific_date is None

    def test_only_owner_can_create(self, store, storefront):
        with pytest.raises(ForbiddenError):
            ScheduleRuleService.create_rule(store, storefront.id, VENDOR_ID + 1, weekly_rule())

    def test_foreign_service_rejected(self, db, store, storefront):
        elsewhere = db.add_storefront(vendor_id=999)
        foreign = db.add_service(elsewhere.id)

        with pytest.raises(InvalidRequestError):
            ScheduleRuleService.create_rule(store, storefront.id, VENDOR_ID, weekly_rule(service_id=foreign.id))

    def test_missing_storefront(self, store):
        with pytest.raises(NotFoundError):
            ScheduleRuleService.create_rule(store, 999, VENDOR_ID, weekly_rule())


class TestUpdateRule:
    """Tests for typed partial updates."""

    def test_patch_changes_only_given_fields(self, db, store, storefront, monday_hours):
        updated = ScheduleRuleService.update_rule(
            store, storefront.id, monday_hours.id, VENDOR_ID, ScheduleRulePatch(end_time=time(18, 0))
        )

        assert updated.end_time == time(18, 0)
        assert updated.start_time == time(9, 0)
        assert db.rules[monday_hours.id].end_time == time(18, 0)

    def test_merged_rule_must_stay_valid(self, store, storefront, monday_hours):
        with pytest.raises(InvalidRequestError):
            ScheduleRuleService.update_rule(
                store, storefront.id, monday_hours.id, VENDOR_ID, ScheduleRulePatch(start_time=time(18, 0))
            )

    def test_switching_type_requires_new_fields(self, store, storefront, monday_hours):
        with pytest.raises(InvalidRequestError, match="specific_date"):
            ScheduleRuleService.update_rule(
                store, storefront.id, monday_hours.id, VENDOR_ID, ScheduleRulePatch(rule_type="daily")
            )

    def test_switching_type_clears_old_fields(self, store, storefront, monday_hours):
        updated = ScheduleRuleService.update_rule(
            store, storefront.id, monday_hours.id, VENDOR_ID,
            ScheduleRulePatch(rule_type="daily", specific_date=date(2030, 1, 8))
        )

        assert updated.rule_type == "daily"
        assert updated.day_of_week is None

    def test_null_for_required_field_rejected(self, store, storefront, monday_hours):
        with pytest.raises(InvalidRequestError):
            ScheduleRuleService.update_rule(
                store, storefront.id, monday_hours.id, VENDOR_ID, ScheduleRulePatch(priority=None)
            )

    def test_rule_of_other_storefront_not_found(self, db, store, storefront):
        other = db.add_storefront(vendor_id=VENDOR_ID)
        rule = db.add_rule(other.id, time(9, 0), time(17, 0), day_of_week=MONDAY)

        with pytest.raises(NotFoundError):
            ScheduleRuleService.update_rule(
                store, storefront.id, rule.id, VENDOR_ID, ScheduleRulePatch(priority=2)
            )


class TestDeleteAndList:
    """Tests for soft delete and listing."""

    def test_soft_delete_hides_rule(self, db, store, storefront, monday_hours):
        ScheduleRuleService.delete_rule(store, storefront.id, monday_hours.id, VENDOR_ID)

        assert db.rules[monday_hours.id].deleted_at is not None
        assert ScheduleRuleService.list_rules(store, storefront.id) == []

    def test_list_orders_by_priority(self, db, store, storefront, monday_hours):
        closure = db.add_rule(storefront.id, time(12, 0), time(13, 0), day_of_week=MONDAY,
                              priority=5, is_available=False)

        rules = ScheduleRuleService.list_rules(store, storefront.id)

        assert [rule.id for rule in rules] == [closure.id, monday_hours.id]

    def test_inactive_rules_listed_on_request(self, db, store, storefront, monday_hours):
        db.add_rule(storefront.id, time(9, 0), time(10, 0), day_of_week=2, is_active=False)

        assert len(ScheduleRuleService.list_rules(store, storefront.id)) == 1
        assert len(ScheduleRuleService.list_rules(store, storefront.id, include_inactive=True)) == 2
