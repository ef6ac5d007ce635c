# schedulux/services/availability/time_blocks.py
"""
Resolve a day's schedule rules into non-overlapping time blocks.

Rules are converted to UTC intervals for the given calendar day in the
storefront's zone, then swept once in time order. At every instant the
highest-priority active rule decides whether the storefront is open and how
many appointments it takes; adjacent segments that end up identical are
merged back together.
"""
from bisect import insort
from datetime import date
from typing import Iterable, List, Sequence, Tuple
from zoneinfo import ZoneInfo

from schedulux.models.schedule_rule import RuleType, ScheduleRule
from schedulux.schemas.availability import TimeBlock
from schedulux.utils.datetime_utils import local_to_utc

# Ends sort before starts at the same instant so touching rules never overlap
_END = 0
_START = 1


def sunday_based_weekday(day: date) -> int:
    """0=Sunday ... 6=Saturday"""
    return (day.weekday() + 1) % 7


def rule_applies_on(rule: ScheduleRule, day: date) -> bool:
    rule_type = getattr(rule.rule_type, "value", rule.rule_type)

    if rule_type == RuleType.WEEKLY.value:
        return rule.day_of_week == sunday_based_weekday(day)
    if rule_type == RuleType.DAILY.value:
        return rule.specific_date == day
    if rule_type == RuleType.MONTHLY.value:
        return rule.month == day.month and (rule.year is None or rule.year == day.year)
    return False


def rules_for_date(rules: Iterable[ScheduleRule], day: date) -> List[ScheduleRule]:
    return [rule for rule in rules if rule_applies_on(rule, day)]


def rule_to_block(rule: ScheduleRule, day: date, zone: ZoneInfo) -> TimeBlock:
    return TimeBlock(
        start=local_to_utc(day, rule.start_time, zone),
        end=local_to_utc(day, rule.end_time, zone),
        is_available=bool(rule.is_available),
        max_concurrent=rule.max_concurrent_appointments or 1,
        priority=rule.priority,
        rule_id=rule.id,
    )


def _precedence(block: TimeBlock) -> Tuple:
    # Highest priority first; equal priorities resolve to the more restrictive block
    return (-block.priority, block.is_available, block.max_concurrent, block.rule_id or 0)


def merge_time_blocks(blocks: Sequence[TimeBlock]) -> List[TimeBlock]:
    """
    Sweep-line merge of possibly overlapping blocks.

    Returns non-overlapping blocks in ascending start order, each carrying the
    attributes of the block that wins that interval.
    """
    events = sorted(
        [(block.start, _START, index) for index, block in enumerate(blocks)]
        + [(block.end, _END, index) for index, block in enumerate(blocks)],
        key=lambda event: (event[0], event[1]),
    )

    active: List[Tuple[Tuple, int]] = []
    segments: List[TimeBlock] = []
    cursor = None

    for instant, kind, index in events:
        if active and cursor is not None and instant > cursor:
            winner = blocks[active[0][1]]
            segments.append(winner.model_copy(update={"start": cursor, "end": instant}))
        cursor = instant

        entry = (_precedence(blocks[index]), index)
        if kind == _START:
            insort(active, entry)
        else:
            active.remove(entry)

    return consolidate_blocks(segments)


def consolidate_blocks(blocks: Sequence[TimeBlock]) -> List[TimeBlock]:
    """Merge touching blocks that agree on availability and capacity"""
    merged: List[TimeBlock] = []

    for block in blocks:
        previous = merged[-1] if merged else None
        if (
            previous is not None
            and previous.end == block.start
            and previous.is_available == block.is_available
            and previous.max_concurrent == block.max_concurrent
        ):
            merged[-1] = previous.model_copy(update={
                "end": block.end,
                "priority": max(previous.priority, block.priority),
            })
        else:
            merged.append(block)

    return merged


def resolve_time_blocks(day: date, zone: ZoneInfo, rules: Iterable[ScheduleRule]) -> List[TimeBlock]:
    """Time blocks for one local calendar day; rules that do not match the day are ignored"""
    blocks = [rule_to_block(rule, day, zone) for rule in rules_for_date(rules, day)]
    # A window collapsed by a DST transition has nothing to offer
    blocks = [block for block in blocks if block.end > block.start]
    if not blocks:
        return []
    return merge_time_blocks(blocks)
