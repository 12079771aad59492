import logging
from datetime import date, timedelta
from decimal import Decimal

from database.category_dao import CategoryDAO
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from models.errors import DefinitionNotFound, InvalidRule
from models.generation_report import GenerationReport
from models.recurrence_rule import Frequency, RecurrenceRule
from models.recurring_definition import RecurringDefinition
from models.transaction import GeneratedTransaction
from services.activation_manager import ActivationManager
from services.generation_scheduler import DefinitionLocks, GenerationScheduler
from services.occurrence_calculator import next_occurrence, occurrences_between, upcoming
from utils.constants import (
    MAX_DESCRIPTION_LENGTH, MAX_NOTES_LENGTH, TRANSACTION_TYPES, UPCOMING_PREVIEW_COUNT,
)
from utils.currency import parse_amount
from utils.date_helpers import parse_date, today

logger = logging.getLogger(__name__)


def _as_date(value, field_name: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value))
    if parsed is None:
        raise InvalidRule(f"Invalid {field_name}: {value!r}.")
    return parsed


def build_rule(
    frequency,
    start_date,
    interval: int = 1,
    day_of_week: int | None = None,
    day_of_month: int | None = None,
    end_date=None,
) -> RecurrenceRule:
    """Build and validate a rule from form-style values. Raises InvalidRule."""
    start = _as_date(start_date, "start date")
    if start is None:
        raise InvalidRule("Start date is required.")
    return RecurrenceRule(
        frequency=Frequency.parse(frequency),
        start_date=start,
        interval=interval,
        anchor_day_of_week=day_of_week,
        anchor_day_of_month=day_of_month,
        end_date=_as_date(end_date, "end date"),
    ).validate()


class RecurringService:
    """Application entry point for recurring definitions: CRUD, preview, generation."""

    def __init__(
        self,
        recurring_dao: RecurringDAO,
        tx_dao: TransactionDAO,
        category_dao: CategoryDAO | None = None,
        deactivate_exhausted: bool = False,
        locks: DefinitionLocks | None = None,
    ):
        self._dao = recurring_dao
        self._tx_dao = tx_dao
        self._cat_dao = category_dao
        self._activation = ActivationManager(recurring_dao)
        self._scheduler = GenerationScheduler(
            recurring_dao, tx_dao, locks=locks, deactivate_exhausted=deactivate_exhausted,
        )

    def get_all(self) -> list[RecurringDefinition]:
        return self._dao.list()

    def get_active(self) -> list[RecurringDefinition]:
        return self._dao.list(active_only=True)

    def get_by_id(self, definition_id: int) -> RecurringDefinition | None:
        return self._dao.get(definition_id)

    def create(
        self,
        description: str,
        type_: str,
        amount,
        category_id: int | None,
        frequency,
        start_date,
        interval: int = 1,
        day_of_week: int | None = None,
        day_of_month: int | None = None,
        end_date=None,
        account_id: int | None = None,
        notes: str = "",
    ) -> RecurringDefinition:
        rule = build_rule(frequency, start_date, interval, day_of_week, day_of_month, end_date)
        description, amount, notes = self._validate(description, type_, amount, category_id, notes)
        definition = self._dao.create(
            description=description, type_=type_, amount=amount,
            category_id=category_id, rule=rule, account_id=account_id, notes=notes,
        )
        logger.info("Created recurring definition %s (%s)", definition.id, rule.frequency.value)
        return definition

    def update(
        self,
        definition_id: int,
        description: str,
        type_: str,
        amount,
        category_id: int | None,
        frequency,
        start_date,
        interval: int = 1,
        day_of_week: int | None = None,
        day_of_month: int | None = None,
        end_date=None,
        account_id: int | None = None,
        notes: str = "",
    ) -> RecurringDefinition:
        rule = build_rule(frequency, start_date, interval, day_of_week, day_of_month, end_date)
        description, amount, notes = self._validate(description, type_, amount, category_id, notes)
        return self._dao.update(
            definition_id, description=description, type_=type_, amount=amount,
            category_id=category_id, rule=rule, account_id=account_id, notes=notes,
        )

    def delete(self, definition_id: int):
        if self._dao.get(definition_id) is None:
            raise DefinitionNotFound(definition_id)
        self._dao.delete(definition_id)

    def set_active(self, definition_id: int, active: bool):
        self._activation.set_active(definition_id, active)

    def toggle_active(self, definition_id: int) -> bool:
        return self._activation.toggle(definition_id)

    def next_due_date(self, definition: RecurringDefinition) -> date | None:
        """The date the next generation pass will produce for this definition."""
        return next_occurrence(definition.rule, definition.watermark)

    def upcoming_dates(
        self, definition: RecurringDefinition, count: int = UPCOMING_PREVIEW_COUNT
    ) -> list[date]:
        return upcoming(definition.rule, definition.watermark, count)

    def project_for_period(self, start_date: date, end_date: date) -> list[dict]:
        """
        Return [{definition_id, date, amount, type}] for every active definition's
        occurrences within [start_date, end_date], sorted by date.
        """
        result = []
        for definition in self.get_active():
            dates = occurrences_between(
                definition.rule, start_date - timedelta(days=1), end_date,
            )
            for d in dates:
                result.append({
                    "definition_id": definition.id,
                    "date": d,
                    "amount": definition.amount,
                    "type": definition.type,
                })
        result.sort(key=lambda p: (p["date"], p["definition_id"]))
        return result

    def generate(
        self, horizon_date: date | None = None, definition_id: int | None = None
    ) -> GenerationReport:
        """
        Generate due transactions through horizon_date (default: today), for all
        definitions or only definition_id. Raises DefinitionNotFound for an unknown id.
        """
        horizon = horizon_date or today()
        return self._scheduler.generate_from_store(horizon, definition_id)

    def generated_transactions(self, definition_id: int) -> list[GeneratedTransaction]:
        return self._tx_dao.get_by_definition(definition_id)

    def _validate(self, description, type_, amount, category_id, notes):
        description = (description or "").strip()
        notes = (notes or "").strip()
        if not description:
            raise ValueError("Description cannot be empty.")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f"Description cannot be more than {MAX_DESCRIPTION_LENGTH} characters.")
        if len(notes) > MAX_NOTES_LENGTH:
            raise ValueError(f"Notes cannot be more than {MAX_NOTES_LENGTH} characters.")
        if type_ not in TRANSACTION_TYPES:
            raise ValueError("Type must be income or expense.")
        amount = amount if isinstance(amount, Decimal) else parse_amount(amount)
        if amount <= 0:
            raise ValueError("Amount must be positive.")
        if type_ == "expense" and category_id is None:
            raise ValueError("Expenses need a category.")
        if category_id is not None and self._cat_dao is not None:
            category = self._cat_dao.get_by_id(category_id)
            if category is None:
                raise ValueError("Category not found.")
            if not category.accepts(type_):
                raise ValueError(f"Category {category.name} cannot be used for {type_}.")
        return description, amount, notes
