from datetime import date, timedelta

import pytest

from models.recurrence_rule import Frequency, RecurrenceRule
from services.occurrence_calculator import (
    first_occurrence, next_occurrence, occurrences_between, upcoming,
)


def test_monthly_anchor_31_clamps_to_month_end_in_leap_year():
    rule = RecurrenceRule(Frequency.MONTHLY, date(2024, 1, 31), anchor_day_of_month=31)
    assert occurrences_between(rule, None, date(2024, 4, 30)) == [
        date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30),
    ]


def test_monthly_clamp_in_common_year():
    rule = RecurrenceRule(Frequency.MONTHLY, date(2023, 1, 30), anchor_day_of_month=30)
    assert occurrences_between(rule, None, date(2023, 3, 31)) == [
        date(2023, 1, 30), date(2023, 2, 28), date(2023, 3, 30),
    ]


def test_biweekly_monday_anchor_via_weekly_interval_two():
    rule = RecurrenceRule(
        Frequency.WEEKLY, date(2024, 1, 1), interval=2, anchor_day_of_week=1,
    )
    assert occurrences_between(rule, None, date(2024, 1, 29)) == [
        date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 29),
    ]


def test_weekly_start_moves_forward_to_anchor_weekday():
    # 2024-01-03 is a Wednesday; anchor Friday (5)
    rule = RecurrenceRule(Frequency.WEEKLY, date(2024, 1, 3), anchor_day_of_week=5)
    assert first_occurrence(rule) == date(2024, 1, 5)
    assert occurrences_between(rule, None, date(2024, 1, 19)) == [
        date(2024, 1, 5), date(2024, 1, 12), date(2024, 1, 19),
    ]


def test_sunday_anchor_is_zero():
    rule = RecurrenceRule(Frequency.BIWEEKLY, date(2024, 1, 1), anchor_day_of_week=0)
    assert occurrences_between(rule, None, date(2024, 1, 31)) == [
        date(2024, 1, 7), date(2024, 1, 21),
    ]


def test_monthly_anchor_before_start_day_rolls_to_next_month():
    rule = RecurrenceRule(Frequency.MONTHLY, date(2024, 1, 20), anchor_day_of_month=5)
    assert first_occurrence(rule) == date(2024, 2, 5)


def test_yearly_anchor_before_start_day_rolls_to_next_year():
    rule = RecurrenceRule(Frequency.YEARLY, date(2024, 3, 15), anchor_day_of_month=10)
    assert first_occurrence(rule) == date(2025, 3, 10)
    assert occurrences_between(rule, None, date(2027, 12, 31)) == [
        date(2025, 3, 10), date(2026, 3, 10), date(2027, 3, 10),
    ]


def test_quarterly_anchor_before_start_day_rolls_one_quarter():
    rule = RecurrenceRule(Frequency.QUARTERLY, date(2024, 3, 15), anchor_day_of_month=10)
    assert first_occurrence(rule) == date(2024, 6, 10)
    assert occurrences_between(rule, None, date(2024, 12, 31)) == [
        date(2024, 6, 10), date(2024, 9, 10), date(2024, 12, 10),
    ]


def test_anchor_defaults_to_start_date():
    rule = RecurrenceRule(Frequency.QUARTERLY, date(2024, 1, 15))
    assert occurrences_between(rule, None, date(2024, 12, 31)) == [
        date(2024, 1, 15), date(2024, 4, 15), date(2024, 7, 15), date(2024, 10, 15),
    ]


def test_yearly_leap_day_clamps_then_recovers():
    rule = RecurrenceRule(Frequency.YEARLY, date(2024, 2, 29))
    assert occurrences_between(rule, None, date(2028, 3, 1)) == [
        date(2024, 2, 29), date(2025, 2, 28), date(2026, 2, 28),
        date(2027, 2, 28), date(2028, 2, 29),
    ]


def test_daily_with_interval():
    rule = RecurrenceRule(Frequency.DAILY, date(2024, 2, 27), interval=2)
    assert occurrences_between(rule, None, date(2024, 3, 4)) == [
        date(2024, 2, 27), date(2024, 2, 29), date(2024, 3, 2), date(2024, 3, 4),
    ]


def test_after_exclusive_resumes_from_next_step():
    rule = RecurrenceRule(Frequency.MONTHLY, date(2024, 1, 31), anchor_day_of_month=31)
    assert occurrences_between(rule, date(2024, 2, 29), date(2024, 5, 31)) == [
        date(2024, 3, 31), date(2024, 4, 30), date(2024, 5, 31),
    ]


def test_after_exclusive_off_schedule_date():
    rule = RecurrenceRule(Frequency.WEEKLY, date(2024, 1, 1), anchor_day_of_week=1)
    assert occurrences_between(rule, date(2024, 1, 10), date(2024, 1, 22)) == [
        date(2024, 1, 15), date(2024, 1, 22),
    ]


def test_end_date_on_step_is_included():
    rule = RecurrenceRule(
        Frequency.MONTHLY, date(2024, 1, 10), end_date=date(2024, 3, 10),
    )
    assert occurrences_between(rule, None, date(2024, 12, 31)) == [
        date(2024, 1, 10), date(2024, 2, 10), date(2024, 3, 10),
    ]


def test_end_date_between_steps_stops_before_it():
    rule = RecurrenceRule(
        Frequency.WEEKLY, date(2024, 1, 1), anchor_day_of_week=1, end_date=date(2024, 1, 20),
    )
    result = occurrences_between(rule, None, date(2024, 2, 28))
    assert result == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]
    assert all(d <= rule.end_date for d in result)


def test_empty_when_start_after_horizon():
    rule = RecurrenceRule(Frequency.DAILY, date(2024, 6, 1))
    assert occurrences_between(rule, None, date(2024, 5, 31)) == []


def test_empty_when_end_date_precedes_next_step():
    rule = RecurrenceRule(Frequency.MONTHLY, date(2024, 1, 1), end_date=date(2024, 2, 15))
    assert occurrences_between(rule, date(2024, 2, 1), date(2024, 12, 31)) == []


def test_empty_when_after_is_past_horizon():
    rule = RecurrenceRule(Frequency.DAILY, date(2024, 1, 1))
    assert occurrences_between(rule, date(2024, 3, 1), date(2024, 2, 1)) == []


@pytest.mark.parametrize("frequency", list(Frequency))
@pytest.mark.parametrize("interval", [1, 3])
def test_strictly_ascending_without_duplicates(frequency, interval):
    rule = RecurrenceRule(
        frequency, date(2023, 1, 31), interval=interval,
        anchor_day_of_week=3 if frequency.uses_day_of_week else None,
        anchor_day_of_month=31 if frequency.uses_day_of_month else None,
    )
    result = occurrences_between(rule, None, date(2026, 12, 31))
    assert result
    assert all(a < b for a, b in zip(result, result[1:]))


@pytest.mark.parametrize("frequency", list(Frequency))
def test_split_windows_match_single_window(frequency):
    rule = RecurrenceRule(frequency, date(2023, 3, 31), anchor_day_of_month=None)
    whole = occurrences_between(rule, None, date(2025, 12, 31))
    pieces, after = [], None
    for horizon in (date(2023, 6, 15), date(2024, 2, 29), date(2025, 12, 31)):
        batch = occurrences_between(rule, after, horizon)
        pieces += batch
        if batch:
            after = batch[-1]
    assert pieces == whole


def test_calls_are_deterministic():
    rule = RecurrenceRule(Frequency.BIWEEKLY, date(2024, 1, 1), anchor_day_of_week=1)
    first = occurrences_between(rule, None, date(2024, 12, 31))
    assert occurrences_between(rule, None, date(2024, 12, 31)) == first


def test_next_occurrence_matches_generation():
    rule = RecurrenceRule(Frequency.MONTHLY, date(2024, 1, 31), anchor_day_of_month=31)
    after = date(2024, 1, 31)
    assert next_occurrence(rule, after) == occurrences_between(rule, after, date(2024, 3, 1))[0]


def test_next_occurrence_none_past_end_date():
    rule = RecurrenceRule(Frequency.DAILY, date(2024, 1, 1), end_date=date(2024, 1, 3))
    assert next_occurrence(rule, date(2024, 1, 2)) == date(2024, 1, 3)
    assert next_occurrence(rule, date(2024, 1, 3)) is None


def test_upcoming_respects_count_and_end_date():
    rule = RecurrenceRule(Frequency.WEEKLY, date(2024, 1, 1), end_date=date(2024, 1, 15))
    assert upcoming(rule, None, 5) == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]
    assert upcoming(rule, None, 2) == [date(2024, 1, 1), date(2024, 1, 8)]


def test_long_daily_range_counts_every_day():
    rule = RecurrenceRule(Frequency.DAILY, date(2024, 1, 1))
    result = occurrences_between(rule, None, date(2024, 12, 31))
    assert len(result) == 366
    assert result[-1] - result[0] == timedelta(days=365)
