"""Collaborators the generation engine depends on.

The sqlite DAOs implement these; tests use in-memory fakes.
"""
from datetime import date
from typing import Optional, Protocol

from models.recurring_definition import RecurringDefinition
from models.transaction import GeneratedTransaction


class RecurringDefinitionStore(Protocol):
    def list(self, active_only: bool = False) -> list[RecurringDefinition]: ...

    def get(self, definition_id: int) -> Optional[RecurringDefinition]: ...

    def update_watermark(self, definition_id: int, watermark: date) -> None:
        """Persist a new watermark. Must raise WatermarkRegression if it would move back."""
        ...

    def set_active(self, definition_id: int, active: bool) -> None: ...


class TransactionSink(Protocol):
    def append(self, transaction: GeneratedTransaction) -> Optional[GeneratedTransaction]:
        """Store one generated transaction.

        Returns the stored transaction, or None when the ledger already holds
        this (definition, occurrence date) pair. Raises AppendFailure otherwise.
        """
        ...
