import copy
from datetime import date
from decimal import Decimal

import pytest

from database.category_dao import CategoryDAO
from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from models.errors import AppendFailure, WatermarkRegression
from models.recurrence_rule import Frequency, RecurrenceRule
from models.recurring_definition import RecurringDefinition
from services.generation_scheduler import DefinitionLocks, GenerationScheduler


class InMemoryStore:
    """Hands out copies, like a database would."""

    def __init__(self, definitions=()):
        self._items = {d.id: copy.deepcopy(d) for d in definitions}
        self.watermark_updates = []

    def list(self, active_only=False):
        return [copy.deepcopy(d) for d in self._items.values() if d.active or not active_only]

    def get(self, definition_id):
        d = self._items.get(definition_id)
        return copy.deepcopy(d) if d else None

    def update_watermark(self, definition_id, watermark):
        d = self._items[definition_id]
        if d.watermark is not None and watermark < d.watermark:
            raise WatermarkRegression(definition_id, d.watermark, watermark)
        d.watermark = watermark
        self.watermark_updates.append((definition_id, watermark))

    def set_active(self, definition_id, active):
        self._items[definition_id].active = active

    def remove(self, definition_id):
        del self._items[definition_id]


class InMemorySink:
    def __init__(self, fail_on=()):
        self.appended = []
        self._keys = set()
        self._fail_on = set(fail_on)   # (definition_id, date) pairs that raise

    def append(self, transaction):
        if transaction.key in self._fail_on:
            raise AppendFailure(f"ledger unavailable for {transaction.key}")
        if transaction.key in self._keys:
            return None
        self._keys.add(transaction.key)
        self.appended.append(transaction)
        return transaction

    def dates_for(self, definition_id):
        return [t.occurrence_date for t in self.appended if t.recurring_definition_id == definition_id]


def make_definition(definition_id=1, frequency=Frequency.MONTHLY, start=date(2024, 1, 1),
                    active=True, watermark=None, type_="expense", **rule_kwargs):
    return RecurringDefinition(
        id=definition_id,
        description=f"Definition {definition_id}",
        amount=Decimal("25.00"),
        type=type_,
        category_id=3 if type_ == "expense" else None,
        rule=RecurrenceRule(frequency=frequency, start_date=start, **rule_kwargs),
        active=active,
        watermark=watermark,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def sink():
    return InMemorySink()


@pytest.fixture
def scheduler(store, sink):
    return GenerationScheduler(store, sink, locks=DefinitionLocks())


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "budget.db"))
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def recurring_dao(db):
    return RecurringDAO(db)


@pytest.fixture
def tx_dao(db):
    return TransactionDAO(db)


@pytest.fixture
def category_dao(db):
    return CategoryDAO(db)


@pytest.fixture
def expense_category(category_dao):
    return next(c for c in category_dao.get_all() if c.name == "Utilities")
