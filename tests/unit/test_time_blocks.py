"""
Unit tests for time block resolution.
Tests rule matching, priority merging and timezone conversion.
"""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from schedulux.models import ScheduleRule
from schedulux.schemas.availability import TimeBlock
from schedulux.services.availability.time_blocks import (
    consolidate_blocks,
    merge_time_blocks,
    resolve_time_blocks,
    rule_applies_on,
    sunday_based_weekday,
)

UTC = ZoneInfo("UTC")
MONDAY = date(2030, 1, 7)


def make_rule(rule_id=1, rule_type="weekly", start=time(9, 0), end=time(17, 0), **kwargs):
    return ScheduleRule(
        id=rule_id,
        storefront_id=1,
        rule_type=rule_type,
        start_time=start,
        end_time=end,
        priority=kwargs.pop("priority", 1),
        is_available=kwargs.pop("is_available", True),
        max_concurrent_appointments=kwargs.pop("max_concurrent_appointments", 1),
        is_active=True,
        **kwargs
    )


def utc(hour, minute=0, day=7, month=1):
    return datetime(2030, month, day, hour, minute, tzinfo=timezone.utc)


class TestRuleMatching:
    """Tests for which rules apply on a date."""

    def test_sunday_is_zero(self):
        assert sunday_based_weekday(date(2030, 1, 6)) == 0
        assert sunday_based_weekday(MONDAY) == 1
        assert sunday_based_weekday(date(2030, 1, 12)) == 6

    def test_weekly_rule_matches_its_weekday(self):
        rule = make_rule(day_of_week=1)
        assert rule_applies_on(rule, MONDAY) is True
        assert rule_applies_on(rule, date(2030, 1, 8)) is False

    def test_daily_rule_matches_only_its_date(self):
        rule = make_rule(rule_type="daily", specific_date=MONDAY)
        assert rule_applies_on(rule, MONDAY) is True
        assert rule_applies_on(rule, date(2030, 1, 14)) is False

    def test_monthly_rule_with_and_without_year(self):
        every_january = make_rule(rule_type="monthly", month=1)
        january_2031 = make_rule(rule_type="monthly", month=1, year=2031)

        assert rule_applies_on(every_january, MONDAY) is True
        assert rule_applies_on(every_january, date(2030, 2, 4)) is False
        assert rule_applies_on(january_2031, MONDAY) is False


class TestResolveTimeBlocks:
    """Tests for the sweep-line merge."""

    def test_no_rules_gives_no_blocks(self):
        assert resolve_time_blocks(MONDAY, UTC, []) == []

    def test_single_weekly_rule(self):
        blocks = resolve_time_blocks(MONDAY, UTC, [make_rule(day_of_week=1)])

        assert len(blocks) == 1
        assert blocks[0].start == utc(9)
        assert blocks[0].end == utc(17)
        assert blocks[0].is_available is True

    def test_daily_closure_overrides_weekly_hours(self):
        weekly = make_rule(rule_id=1, day_of_week=1, priority=1)
        closed = make_rule(
            rule_id=2, rule_type="daily", specific_date=MONDAY,
            start=time(0, 0), end=time(23, 59), priority=10, is_available=False
        )

        blocks = resolve_time_blocks(MONDAY, UTC, [weekly, closed])

        assert all(not block.is_available for block in blocks)
        assert len(blocks) == 1
        assert blocks[0].rule_id == 2

    def test_higher_priority_lunch_break_splits_the_day(self):
        weekly = make_rule(rule_id=1, day_of_week=1, priority=1)
        lunch = make_rule(
            rule_id=2, day_of_week=1, start=time(12, 0), end=time(13, 0),
            priority=5, is_available=False
        )

        blocks = resolve_time_blocks(MONDAY, UTC, [lunch, weekly])

        assert [(b.start, b.end, b.is_available) for b in blocks] == [
            (utc(9), utc(12), True),
            (utc(12), utc(13), False),
            (utc(13), utc(17), True),
        ]

    def test_lower_priority_rule_is_suppressed_inside_closure(self):
        closure = make_rule(rule_id=1, day_of_week=1, priority=10, is_available=False)
        nested = make_rule(rule_id=2, day_of_week=1, start=time(10, 0), end=time(11, 0), priority=1)

        blocks = resolve_time_blocks(MONDAY, UTC, [nested, closure])

        assert len(blocks) == 1
        assert blocks[0].is_available is False
        assert (blocks[0].start, blocks[0].end) == (utc(9), utc(17))

    def test_touching_rules_with_same_attributes_are_consolidated(self):
        morning = make_rule(rule_id=1, day_of_week=1, start=time(9, 0), end=time(12, 0))
        afternoon = make_rule(rule_id=2, day_of_week=1, start=time(12, 0), end=time(17, 0))

        blocks = resolve_time_blocks(MONDAY, UTC, [morning, afternoon])

        assert len(blocks) == 1
        assert (blocks[0].start, blocks[0].end) == (utc(9), utc(17))

    def test_different_capacity_keeps_blocks_apart(self):
        morning = make_rule(rule_id=1, day_of_week=1, end=time(12, 0), max_concurrent_appointments=1)
        afternoon = make_rule(
            rule_id=2, day_of_week=1, start=time(12, 0), max_concurrent_appointments=3
        )

        blocks = resolve_time_blocks(MONDAY, UTC, [morning, afternoon])

        assert [b.max_concurrent for b in blocks] == [1, 3]

    def test_equal_priority_overlap_resolves_to_closure(self):
        open_rule = make_rule(rule_id=1, day_of_week=1, priority=3)
        closed_rule = make_rule(rule_id=2, day_of_week=1, priority=3, is_available=False)

        forward = resolve_time_blocks(MONDAY, UTC, [open_rule, closed_rule])
        backward = resolve_time_blocks(MONDAY, UTC, [closed_rule, open_rule])

        assert forward == backward
        assert forward[0].is_available is False

    def test_blocks_are_ordered_and_disjoint(self):
        rules = [
            make_rule(rule_id=1, day_of_week=1, start=time(8, 0), end=time(18, 0), priority=1),
            make_rule(rule_id=2, day_of_week=1, start=time(10, 0), end=time(14, 0), priority=4,
                      max_concurrent_appointments=2),
            make_rule(rule_id=3, day_of_week=1, start=time(11, 0), end=time(12, 0), priority=9,
                      is_available=False),
        ]

        blocks = resolve_time_blocks(MONDAY, UTC, rules)

        for previous, current in zip(blocks, blocks[1:]):
            assert previous.end <= current.start


class TestTimezoneConversion:
    """Tests for local wall-clock to UTC conversion."""

    def test_los_angeles_winter(self):
        zone = ZoneInfo("America/Los_Angeles")
        blocks = resolve_time_blocks(MONDAY, zone, [make_rule(day_of_week=1)])

        assert blocks[0].start == utc(17)
        assert blocks[0].end == utc(1, day=8)

    def test_los_angeles_summer(self):
        zone = ZoneInfo("America/Los_Angeles")
        summer_monday = date(2030, 7, 1)
        blocks = resolve_time_blocks(summer_monday, zone, [make_rule(day_of_week=1)])

        assert blocks[0].start == utc(16, month=7, day=1)
        assert blocks[0].end == utc(0, month=7, day=2)


class TestConsolidateBlocks:
    """Tests for merging adjacent blocks."""

    def test_gap_prevents_merge(self):
        blocks = [
            TimeBlock(start=utc(9), end=utc(10), is_available=True, max_concurrent=1, priority=1),
            TimeBlock(start=utc(11), end=utc(12), is_available=True, max_concurrent=1, priority=1),
        ]
        assert len(consolidate_blocks(blocks)) == 2

    def test_merge_time_blocks_on_empty_input(self):
        assert merge_time_blocks([]) == []
