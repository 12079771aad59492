from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass
class GeneratedTransaction:
    recurring_definition_id: int
    occurrence_date: date
    type: str               # 'income' | 'expense'
    amount: Decimal
    description: str
    category_id: Optional[int] = None
    account_id: Optional[int] = None
    notes: str = ""
    id: Optional[int] = None
    created_at: str = ""

    @property
    def key(self) -> tuple[int, date]:
        return (self.recurring_definition_id, self.occurrence_date)
