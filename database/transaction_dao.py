import logging
import sqlite3
from decimal import Decimal
from typing import Optional

from database.db_manager import DatabaseManager
from models.errors import AppendFailure
from models.transaction import GeneratedTransaction
from utils.date_helpers import format_date, parse_date

logger = logging.getLogger(__name__)


class TransactionDAO:
    """The ledger. Acts as the TransactionSink for recurring generation."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> GeneratedTransaction:
        return GeneratedTransaction(
            id=row["id"],
            recurring_definition_id=row["recurring_definition_id"],
            occurrence_date=parse_date(row["occurrence_date"] or row["date"]),
            type=row["type"],
            amount=Decimal(row["amount"]),
            description=row["description"],
            category_id=row["category_id"],
            account_id=row["account_id"],
            notes=row["notes"],
            created_at=row["created_at"],
        )

    def append(self, transaction: GeneratedTransaction) -> Optional[GeneratedTransaction]:
        """Insert a generated transaction.

        Returns None without writing when the (definition, occurrence date)
        pair is already in the ledger. Any other database error becomes
        AppendFailure.
        """
        conn = self._db.get_connection()
        occurrence = format_date(transaction.occurrence_date)
        with self._db.lock:
            try:
                cursor = conn.execute(
                    """INSERT INTO transactions
                       (account_id, type, amount, category_id, description, notes,
                        date, recurring_definition_id, occurrence_date)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                       ON CONFLICT(recurring_definition_id, occurrence_date)
                       WHERE recurring_definition_id IS NOT NULL
                       DO NOTHING""",
                    (
                        transaction.account_id, transaction.type, str(transaction.amount),
                        transaction.category_id, transaction.description, transaction.notes,
                        occurrence, transaction.recurring_definition_id, occurrence,
                    ),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise AppendFailure(
                    f"Could not record {transaction.description!r} on {occurrence}: {e}"
                ) from e
            if cursor.rowcount == 0:
                return None
            new_id = cursor.lastrowid
        return self.get_by_id(new_id)

    def get_by_id(self, tx_id: int) -> Optional[GeneratedTransaction]:
        conn = self._db.get_connection()
        with self._db.lock:
            row = conn.execute(
                "SELECT * FROM transactions WHERE id = ?", (tx_id,)
            ).fetchone()
        return self._row_to_model(row) if row else None

    def get_all(self) -> list[GeneratedTransaction]:
        conn = self._db.get_connection()
        with self._db.lock:
            rows = conn.execute(
                "SELECT * FROM transactions ORDER BY date ASC, id ASC"
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_definition(self, definition_id: int) -> list[GeneratedTransaction]:
        conn = self._db.get_connection()
        with self._db.lock:
            rows = conn.execute(
                """SELECT * FROM transactions
                   WHERE recurring_definition_id = ?
                   ORDER BY occurrence_date ASC""",
                (definition_id,),
            ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def count_by_definition(self, definition_id: int) -> int:
        conn = self._db.get_connection()
        with self._db.lock:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM transactions WHERE recurring_definition_id = ?",
                (definition_id,),
            ).fetchone()
        return row["n"]
