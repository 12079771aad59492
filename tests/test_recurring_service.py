from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from models.errors import DefinitionNotFound, InvalidRule
from models.recurrence_rule import Frequency
from services.generation_scheduler import DefinitionLocks
from services.recurring_service import RecurringService, build_rule


@pytest.fixture
def service(recurring_dao, tx_dao, category_dao):
    return RecurringService(recurring_dao, tx_dao, category_dao, locks=DefinitionLocks())


def _create_rent(service, category, **overrides):
    values = dict(
        description="Rent", type_="expense", amount="1,250.00",
        category_id=category.id, frequency="monthly", start_date="2024-01-31",
        day_of_month=31,
    )
    values.update(overrides)
    return service.create(**values)


def test_build_rule_parses_form_values():
    rule = build_rule("Weekly", "2024-01-01", interval=2, day_of_week=1)
    assert rule.frequency is Frequency.WEEKLY
    assert rule.start_date == date(2024, 1, 1)
    assert rule.interval == 2


@pytest.mark.parametrize("kwargs", [
    dict(frequency="hourly", start_date="2024-01-01"),
    dict(frequency="monthly", start_date=""),
    dict(frequency="monthly", start_date="not a date"),
    dict(frequency="monthly", start_date="2024-02-01", end_date="2024-01-01"),
    dict(frequency="daily", start_date="2024-01-01", interval=0),
])
def test_build_rule_rejects_bad_input(kwargs):
    with pytest.raises(InvalidRule):
        build_rule(**kwargs)


def test_create_stores_decimal_amount(service, expense_category):
    definition = _create_rent(service, expense_category)
    assert definition.amount == Decimal("1250.00")
    assert definition.rule.anchor_day_of_month == 31


@pytest.mark.parametrize("overrides, message", [
    (dict(description="  "), "Description"),
    (dict(description="x" * 101), "Description"),
    (dict(amount="0"), "positive"),
    (dict(amount="abc"), "Invalid amount"),
    (dict(type_="transfer"), "Type"),
    (dict(category_id=None), "category"),
    (dict(category_id=9999), "Category not found"),
    (dict(notes="n" * 501), "Notes"),
])
def test_create_validation(service, expense_category, overrides, message):
    with pytest.raises(ValueError, match=message):
        _create_rent(service, expense_category, **overrides)


def test_income_without_category_is_allowed(service):
    definition = service.create(
        description="Salary", type_="income", amount="3000", category_id=None,
        frequency="biweekly", start_date=date(2024, 1, 5), day_of_week=5,
    )
    assert definition.category_id is None


def test_category_must_accept_type(service, category_dao):
    salary = next(c for c in category_dao.get_all() if c.name == "Salary")
    with pytest.raises(ValueError, match="cannot be used"):
        service.create(
            description="Phone", type_="expense", amount="40", category_id=salary.id,
            frequency="monthly", start_date="2024-01-01",
        )


def test_generate_end_to_end_is_idempotent(service, expense_category, tx_dao):
    definition = _create_rent(service, expense_category)

    first = service.generate(date(2024, 4, 30))
    second = service.generate(date(2024, 4, 30))

    assert first.dates_for(definition.id) == [
        date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30),
    ]
    assert second.generated_count == 0
    assert tx_dao.count_by_definition(definition.id) == 4
    assert service.get_by_id(definition.id).watermark == date(2024, 4, 30)
    assert service.generated_transactions(definition.id)[0].notes == "[Recurring Transaction]"


def test_generate_defaults_horizon_to_today(service, expense_category):
    definition = _create_rent(service, expense_category)
    with patch("services.recurring_service.today", return_value=date(2024, 2, 29)):
        report = service.generate()
    assert report.horizon == date(2024, 2, 29)
    assert report.dates_for(definition.id) == [date(2024, 1, 31), date(2024, 2, 29)]


def test_generate_single_definition(service, expense_category):
    rent = _create_rent(service, expense_category)
    other = _create_rent(service, expense_category, description="Internet", day_of_month=5,
                         start_date="2024-01-05")
    report = service.generate(date(2024, 1, 31), definition_id=other.id)
    assert report.dates_for(other.id) == [date(2024, 1, 5)]
    assert report.dates_for(rent.id) == []
    with pytest.raises(DefinitionNotFound):
        service.generate(date(2024, 1, 31), definition_id=12345)


def test_pause_resume_through_service(service, expense_category):
    definition = _create_rent(service, expense_category)
    service.generate(date(2024, 1, 31))

    assert service.toggle_active(definition.id) is False
    paused = service.generate(date(2024, 3, 31))
    assert paused.generated_count == 0
    assert service.get_by_id(definition.id).watermark == date(2024, 1, 31)

    service.set_active(definition.id, True)
    resumed = service.generate(date(2024, 3, 31))
    assert resumed.dates_for(definition.id) == [date(2024, 2, 29), date(2024, 3, 31)]


def test_preview_agrees_with_generation(service, expense_category):
    definition = _create_rent(service, expense_category)
    service.generate(date(2024, 1, 31))
    definition = service.get_by_id(definition.id)

    assert service.next_due_date(definition) == date(2024, 2, 29)
    assert service.upcoming_dates(definition) == [
        date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30),
    ]
    report = service.generate(date(2024, 2, 29))
    assert report.dates_for(definition.id) == [service.next_due_date(definition)]


def test_project_for_period_skips_inactive(service, expense_category):
    rent = _create_rent(service, expense_category)
    internet = _create_rent(service, expense_category, description="Internet",
                            start_date="2024-01-05", day_of_month=5)
    service.set_active(internet.id, False)

    projected = service.project_for_period(date(2024, 3, 1), date(2024, 4, 30))

    assert [p["date"] for p in projected] == [date(2024, 3, 31), date(2024, 4, 30)]
    assert all(p["definition_id"] == rent.id for p in projected)


def test_delete_unknown_definition(service):
    with pytest.raises(DefinitionNotFound):
        service.delete(77)
