"""Occurrence dates for a recurrence rule.

Every function here is pure: the same rule and bounds always give the same
dates, and nothing reads the clock. Generation and the UI preview both go
through these functions, so what the preview shows is what ``generate`` makes.

Occurrence k is computed from the first (anchored) occurrence as
``k * interval`` periods rather than by repeatedly stepping the previous
clamped date, so a 31st anchor that lands on Feb 29 goes back to Mar 31.
"""
from datetime import date, timedelta
from typing import assert_never

from models.recurrence_rule import Frequency, RecurrenceRule
from utils.date_helpers import add_months, clamp_day_to_month, day_of_week, months_between


def _step_units(frequency: Frequency) -> tuple[int, int]:
    """(days, months) covered by one period of the frequency."""
    if frequency is Frequency.DAILY:
        return 1, 0
    elif frequency is Frequency.WEEKLY:
        return 7, 0
    elif frequency is Frequency.BIWEEKLY:
        return 14, 0
    elif frequency is Frequency.MONTHLY:
        return 0, 1
    elif frequency is Frequency.QUARTERLY:
        return 0, 3
    elif frequency is Frequency.YEARLY:
        return 0, 12
    else:
        assert_never(frequency)


def _anchor_day_of_month(rule: RecurrenceRule) -> int:
    return rule.anchor_day_of_month or rule.start_date.day


def _on_anchor_day(rule: RecurrenceRule, month_start: date) -> date:
    day = clamp_day_to_month(month_start.year, month_start.month, _anchor_day_of_month(rule))
    return month_start.replace(day=day)


def first_occurrence(rule: RecurrenceRule) -> date:
    """The first date on or after start_date that matches the rule's anchor."""
    start = rule.start_date
    frequency = rule.frequency
    if frequency is Frequency.DAILY:
        return start
    elif frequency is Frequency.WEEKLY or frequency is Frequency.BIWEEKLY:
        target = rule.anchor_day_of_week
        if target is None:
            return start
        return start + timedelta(days=(target - day_of_week(start)) % 7)
    elif (
        frequency is Frequency.MONTHLY
        or frequency is Frequency.QUARTERLY
        or frequency is Frequency.YEARLY
    ):
        candidate = _on_anchor_day(rule, start.replace(day=1))
        if candidate < start:
            # Anchor already passed: move one period, so a yearly rule keeps its month.
            _, months = _step_units(frequency)
            candidate = _on_anchor_day(rule, add_months(start.replace(day=1), months))
        return candidate
    else:
        assert_never(frequency)


def _occurrence_at(rule: RecurrenceRule, first: date, k: int) -> date:
    days, months = _step_units(rule.frequency)
    if days:
        return first + timedelta(days=days * rule.interval * k)
    return _on_anchor_day(rule, add_months(first.replace(day=1), months * rule.interval * k))


def _first_index_after(rule: RecurrenceRule, first: date, after: date | None) -> int:
    """Smallest k whose occurrence falls strictly after `after`."""
    if after is None or after < first:
        return 0
    days, months = _step_units(rule.frequency)
    if days:
        return (after - first).days // (days * rule.interval) + 1
    # Lands on or just before after's month; at most a couple of steps remain.
    k = months_between(first, after) // (months * rule.interval)
    while _occurrence_at(rule, first, k) <= after:
        k += 1
    return k


def _limit(rule: RecurrenceRule, through: date) -> date:
    if rule.end_date is not None and rule.end_date < through:
        return rule.end_date
    return through


def occurrences_between(
    rule: RecurrenceRule,
    after_exclusive: date | None,
    through_inclusive: date,
) -> list[date]:
    """All occurrence dates in (after_exclusive, through_inclusive], ascending.

    after_exclusive=None means nothing has been generated yet, so the first
    anchored occurrence on or after start_date is included. Dates after
    rule.end_date are never returned; a date exactly on end_date is.
    """
    if rule.start_date > through_inclusive:
        return []
    limit = _limit(rule, through_inclusive)
    first = first_occurrence(rule)
    k = _first_index_after(rule, first, after_exclusive)
    result: list[date] = []
    current = _occurrence_at(rule, first, k)
    while current <= limit:
        result.append(current)
        k += 1
        current = _occurrence_at(rule, first, k)
    return result


def next_occurrence(rule: RecurrenceRule, after: date | None = None) -> date | None:
    """The occurrence a generation pass would produce next, or None once past end_date."""
    first = first_occurrence(rule)
    candidate = _occurrence_at(rule, first, _first_index_after(rule, first, after))
    if rule.end_date is not None and candidate > rule.end_date:
        return None
    return candidate


def upcoming(rule: RecurrenceRule, after: date | None, count: int) -> list[date]:
    """Up to `count` occurrences strictly after `after`, respecting end_date."""
    first = first_occurrence(rule)
    k = _first_index_after(rule, first, after)
    result: list[date] = []
    while len(result) < count:
        candidate = _occurrence_at(rule, first, k)
        if rule.end_date is not None and candidate > rule.end_date:
            break
        result.append(candidate)
        k += 1
    return result
