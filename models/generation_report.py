from dataclasses import dataclass, field
from datetime import date
from typing import Optional

STATUS_GENERATED = "generated"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass
class GenerationDetail:
    definition_id: int
    status: str                  # 'generated' | 'skipped' | 'failed'
    occurrence_date: Optional[date] = None
    reason: Optional[str] = None
    description: str = ""

    def to_dict(self) -> dict:
        out = {"definitionId": self.definition_id, "status": self.status}
        if self.occurrence_date is not None:
            out["date"] = self.occurrence_date.isoformat()
        if self.reason:
            out["reason"] = self.reason
        return out


@dataclass
class GenerationReport:
    """Outcome of one generation pass.

    One ``generated`` detail per appended occurrence, one ``skipped`` detail per
    definition that produced nothing (or per occurrence the ledger already had),
    one ``failed`` detail per definition whose batch stopped on an append error.
    """
    horizon: date
    details: list[GenerationDetail] = field(default_factory=list)

    @property
    def generated_count(self) -> int:
        return sum(1 for d in self.details if d.status == STATUS_GENERATED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for d in self.details if d.status == STATUS_SKIPPED)

    @property
    def failed_count(self) -> int:
        return sum(1 for d in self.details if d.status == STATUS_FAILED)

    def add_generated(self, definition, occurrence: date):
        self.details.append(GenerationDetail(
            definition.id, STATUS_GENERATED, occurrence_date=occurrence,
            description=definition.description,
        ))

    def add_skipped(self, definition_id: int, reason: str,
                    occurrence: date | None = None, description: str = ""):
        self.details.append(GenerationDetail(
            definition_id, STATUS_SKIPPED, occurrence_date=occurrence,
            reason=reason, description=description,
        ))

    def add_failed(self, definition, occurrence: date | None, reason: str):
        self.details.append(GenerationDetail(
            definition.id, STATUS_FAILED, occurrence_date=occurrence,
            reason=reason, description=definition.description,
        ))

    def dates_for(self, definition_id: int) -> list[date]:
        """Occurrence dates generated for one definition, ascending."""
        return [
            d.occurrence_date for d in self.details
            if d.definition_id == definition_id and d.status == STATUS_GENERATED
        ]

    def to_dict(self) -> dict:
        return {
            "generatedCount": self.generated_count,
            "skippedCount": self.skipped_count,
            "failedCount": self.failed_count,
            "details": [d.to_dict() for d in self.details],
        }
