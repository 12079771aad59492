from typing import Optional
from database.db_manager import DatabaseManager
from models.category import Category


class CategoryDAO:
    """Read-only category lookup for the recurring form and validation."""

    def __init__(self, db: DatabaseManager):
        self._db = db
        self._all_cache: list[Category] | None = None

    def _row_to_model(self, row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            color_hex=row["color_hex"],
        )

    def get_all(self) -> list[Category]:
        if self._all_cache is None:
            conn = self._db.get_connection()
            with self._db.lock:
                rows = conn.execute(
                    "SELECT * FROM categories ORDER BY name"
                ).fetchall()
            self._all_cache = [self._row_to_model(r) for r in rows]
        return self._all_cache

    def get_by_id(self, category_id: int) -> Optional[Category]:
        return next((c for c in self.get_all() if c.id == category_id), None)

    def get_for_transaction_type(self, tx_type: str) -> list[Category]:
        """Categories usable by an income or expense definition."""
        return [c for c in self.get_all() if c.accepts(tx_type)]
