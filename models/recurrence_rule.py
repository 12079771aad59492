from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from models.errors import InvalidRule


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value) -> "Frequency":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidRule(f"Unknown frequency: {value!r}.") from None

    @property
    def label(self) -> str:
        return self.value.title()

    @property
    def uses_day_of_week(self) -> bool:
        return self in (Frequency.WEEKLY, Frequency.BIWEEKLY)

    @property
    def uses_day_of_month(self) -> bool:
        return self in (Frequency.MONTHLY, Frequency.QUARTERLY, Frequency.YEARLY)


@dataclass(frozen=True)
class RecurrenceRule:
    frequency: Frequency
    start_date: date
    interval: int = 1
    anchor_day_of_week: Optional[int] = None   # 0=Sun..6=Sat
    anchor_day_of_month: Optional[int] = None  # 1-31, clamped to month length
    end_date: Optional[date] = None

    def validate(self) -> "RecurrenceRule":
        """Raise InvalidRule if the rule cannot produce a sane schedule.

        Returns the rule itself so callers can validate inline.
        """
        if not isinstance(self.frequency, Frequency):
            raise InvalidRule(f"Unknown frequency: {self.frequency!r}.")
        if not isinstance(self.start_date, date):
            raise InvalidRule("Start date is required.")
        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise InvalidRule("Interval must be a whole number.")
        if self.interval < 1:
            raise InvalidRule("Interval must be at least 1.")
        if self.frequency.uses_day_of_week and self.anchor_day_of_week is not None:
            if not 0 <= self.anchor_day_of_week <= 6:
                raise InvalidRule("Day of week must be between 0 (Sunday) and 6 (Saturday).")
        if self.frequency.uses_day_of_month and self.anchor_day_of_month is not None:
            if not 1 <= self.anchor_day_of_month <= 31:
                raise InvalidRule("Day of month must be between 1 and 31.")
        if self.end_date is not None and self.end_date < self.start_date:
            raise InvalidRule("End date cannot be before the start date.")
        return self
