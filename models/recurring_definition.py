from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from models.recurrence_rule import RecurrenceRule


@dataclass
class RecurringDefinition:
    id: int
    description: str
    amount: Decimal
    type: str                  # 'income' | 'expense'
    category_id: Optional[int]
    rule: RecurrenceRule
    active: bool = True
    watermark: Optional[date] = None   # last occurrence already generated
    account_id: Optional[int] = None
    notes: str = ""
    category_name: str = ""
    created_at: str = ""

    @property
    def frequency(self):
        return self.rule.frequency
