import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from database.db_manager import DatabaseManager
from models.errors import DefinitionNotFound, WatermarkRegression
from models.recurrence_rule import Frequency, RecurrenceRule
from models.recurring_definition import RecurringDefinition
from utils.date_helpers import format_date, parse_date

logger = logging.getLogger(__name__)


class RecurringDAO:
    """sqlite-backed RecurringDefinitionStore."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringDefinition:
        rule = RecurrenceRule(
            frequency=Frequency(row["frequency"]),
            start_date=parse_date(row["start_date"]),
            interval=row["interval"],
            anchor_day_of_week=row["day_of_week"],
            anchor_day_of_month=row["day_of_month"],
            end_date=parse_date(row["end_date"]),
        )
        return RecurringDefinition(
            id=row["id"],
            description=row["description"],
            amount=Decimal(row["amount"]),
            type=row["type"],
            category_id=row["category_id"],
            rule=rule,
            active=bool(row["is_active"]),
            watermark=parse_date(row["watermark"]),
            account_id=row["account_id"],
            notes=row["notes"],
            category_name=row["category_name"] if "category_name" in row.keys() else "",
            created_at=row["created_at"],
        )

    def _select(self) -> str:
        return """
            SELECT r.*,
                   COALESCE(c.name, '') AS category_name
            FROM recurring_definitions r
            LEFT JOIN categories c ON r.category_id = c.id
        """

    @staticmethod
    def _rule_params(rule: RecurrenceRule) -> tuple:
        return (
            rule.frequency.value, rule.interval,
            rule.anchor_day_of_week if rule.frequency.uses_day_of_week else None,
            rule.anchor_day_of_month if rule.frequency.uses_day_of_month else None,
            format_date(rule.start_date), format_date(rule.end_date),
        )

    def list(self, active_only: bool = False) -> list[RecurringDefinition]:
        conn = self._db.get_connection()
        sql = self._select()
        if active_only:
            sql += " WHERE r.is_active = 1"
        with self._db.lock:
            rows = conn.execute(sql + " ORDER BY r.description, r.id").fetchall()
        return [self._row_to_model(r) for r in rows]

    def get(self, definition_id: int) -> Optional[RecurringDefinition]:
        conn = self._db.get_connection()
        with self._db.lock:
            row = conn.execute(
                self._select() + " WHERE r.id = ?", (definition_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        description: str,
        type_: str,
        amount: Decimal,
        category_id: int | None,
        rule: RecurrenceRule,
        account_id: int | None = None,
        notes: str = "",
    ) -> RecurringDefinition:
        conn = self._db.get_connection()
        with self._db.lock:
            cursor = conn.execute(
                """INSERT INTO recurring_definitions
                   (description, type, amount, category_id, account_id, notes,
                    frequency, interval, day_of_week, day_of_month,
                    start_date, end_date)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (description, type_, str(amount), category_id, account_id, notes)
                + self._rule_params(rule),
            )
            conn.commit()
            new_id = cursor.lastrowid
        return self.get(new_id)

    def update(
        self,
        definition_id: int,
        description: str,
        type_: str,
        amount: Decimal,
        category_id: int | None,
        rule: RecurrenceRule,
        account_id: int | None = None,
        notes: str = "",
    ) -> RecurringDefinition:
        """Update the editable fields. Never touches is_active or the watermark."""
        conn = self._db.get_connection()
        with self._db.lock:
            cursor = conn.execute(
                """UPDATE recurring_definitions SET
                   description=?, type=?, amount=?, category_id=?, account_id=?,
                   notes=?, frequency=?, interval=?, day_of_week=?, day_of_month=?,
                   start_date=?, end_date=?
                   WHERE id=?""",
                (description, type_, str(amount), category_id, account_id, notes)
                + self._rule_params(rule)
                + (definition_id,),
            )
            conn.commit()
        if cursor.rowcount == 0:
            raise DefinitionNotFound(definition_id)
        return self.get(definition_id)

    def update_watermark(self, definition_id: int, watermark: date):
        conn = self._db.get_connection()
        value = format_date(watermark)
        # ISO dates compare correctly as text.
        with self._db.lock:
            cursor = conn.execute(
                """UPDATE recurring_definitions SET watermark = ?
                   WHERE id = ? AND (watermark IS NULL OR watermark <= ?)""",
                (value, definition_id, value),
            )
            conn.commit()
        if cursor.rowcount == 0:
            current = self.get(definition_id)
            if current is None:
                raise DefinitionNotFound(definition_id)
            raise WatermarkRegression(definition_id, current.watermark, watermark)

    def set_active(self, definition_id: int, active: bool):
        conn = self._db.get_connection()
        with self._db.lock:
            cursor = conn.execute(
                "UPDATE recurring_definitions SET is_active = ? WHERE id = ?",
                (1 if active else 0, definition_id),
            )
            conn.commit()
        if cursor.rowcount == 0:
            raise DefinitionNotFound(definition_id)

    def delete(self, definition_id: int):
        """Remove the definition. Transactions it generated stay in the ledger."""
        conn = self._db.get_connection()
        with self._db.lock:
            conn.execute("DELETE FROM recurring_definitions WHERE id = ?", (definition_id,))
            conn.commit()
        logger.info("Deleted recurring definition %s", definition_id)
