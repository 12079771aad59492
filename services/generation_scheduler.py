import logging
import threading
import weakref
from contextlib import contextmanager
from datetime import date
from typing import Iterable

from models.errors import AppendFailure, DefinitionNotFound
from models.generation_report import GenerationReport
from models.recurring_definition import RecurringDefinition
from models.transaction import GeneratedTransaction
from services.contracts import RecurringDefinitionStore, TransactionSink
from services.occurrence_calculator import next_occurrence, occurrences_between
from utils.constants import (
    REASON_ALREADY_GENERATED, REASON_DELETED, REASON_EXHAUSTED,
    REASON_INACTIVE, REASON_NOT_STARTED, REASON_NOTHING_DUE,
    RECURRING_NOTE_MARKER,
)

logger = logging.getLogger(__name__)


class DefinitionLocks:
    """One lock per definition id; ids never contend with each other.

    Locks are held weakly: an id's lock lives only while some caller is
    waiting on or holding it, so deleted definitions leave nothing behind.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[int, threading.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, definition_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(definition_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[definition_id] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, definition_id: int):
        lock = self._lock_for(definition_id)
        with lock:
            yield


# Shared by every scheduler in the process unless one is injected.
DEFINITION_LOCKS = DefinitionLocks()


def build_transaction(definition: RecurringDefinition, occurrence: date) -> GeneratedTransaction:
    notes = f"{definition.notes} {RECURRING_NOTE_MARKER}".strip()
    return GeneratedTransaction(
        recurring_definition_id=definition.id,
        occurrence_date=occurrence,
        type=definition.type,
        amount=definition.amount,
        description=definition.description,
        category_id=definition.category_id,
        account_id=definition.account_id,
        notes=notes,
    )


class GenerationScheduler:
    def __init__(
        self,
        store: RecurringDefinitionStore,
        sink: TransactionSink,
        locks: DefinitionLocks | None = None,
        deactivate_exhausted: bool = False,
    ):
        self._store = store
        self._sink = sink
        self._locks = locks or DEFINITION_LOCKS
        self._deactivate_exhausted = deactivate_exhausted

    def generate(
        self, definitions: Iterable[RecurringDefinition], horizon_date: date
    ) -> GenerationReport:
        """
        Append every due occurrence up to horizon_date (inclusive) for each
        definition and advance its watermark one occurrence at a time.
        Running it again with the same horizon appends nothing. An error while
        processing one definition is reported as failed and the pass moves on.
        """
        report = GenerationReport(horizon=horizon_date)
        for definition in definitions:
            with self._locks.hold(definition.id):
                try:
                    self._generate_one(definition, horizon_date, report)
                except Exception as e:
                    logger.exception("Recurring definition %s failed to generate", definition.id)
                    report.add_failed(definition, None, str(e))
        logger.info(
            "Recurring generation through %s: %d generated, %d skipped, %d failed",
            horizon_date, report.generated_count, report.skipped_count, report.failed_count,
        )
        return report

    def generate_from_store(
        self, horizon_date: date, definition_id: int | None = None
    ) -> GenerationReport:
        if definition_id is None:
            return self.generate(self._store.list(), horizon_date)
        definition = self._store.get(definition_id)
        if definition is None:
            raise DefinitionNotFound(definition_id)
        return self.generate([definition], horizon_date)

    def _generate_one(
        self, requested: RecurringDefinition, horizon: date, report: GenerationReport
    ):
        # Re-read under the lock: another pass may have moved the watermark.
        definition = self._store.get(requested.id)
        if definition is None:
            report.add_skipped(requested.id, REASON_DELETED, description=requested.description)
            return
        if not definition.active:
            report.add_skipped(definition.id, REASON_INACTIVE, description=definition.description)
            return

        due = occurrences_between(definition.rule, definition.watermark, horizon)
        if not due:
            self._report_nothing_due(definition, horizon, report)
            return

        for occurrence in due:
            transaction = build_transaction(definition, occurrence)
            try:
                stored = self._sink.append(transaction)
            except AppendFailure as e:
                logger.error(
                    "Append failed for recurring definition %s on %s: %s",
                    definition.id, occurrence, e,
                )
                report.add_failed(definition, occurrence, str(e))
                break

            self._store.update_watermark(definition.id, occurrence)
            definition.watermark = occurrence
            if stored is None:
                logger.warning(
                    "Ledger already holds definition %s on %s; watermark advanced",
                    definition.id, occurrence,
                )
                report.add_skipped(
                    definition.id, REASON_ALREADY_GENERATED,
                    occurrence=occurrence, description=definition.description,
                )
            else:
                logger.debug("Generated definition %s on %s", definition.id, occurrence)
                report.add_generated(definition, occurrence)

        requested.watermark = definition.watermark

    def _report_nothing_due(
        self, definition: RecurringDefinition, horizon: date, report: GenerationReport
    ):
        rule = definition.rule
        if rule.start_date > horizon:
            reason = REASON_NOT_STARTED
        elif next_occurrence(rule, definition.watermark) is None:
            reason = REASON_EXHAUSTED
        else:
            reason = REASON_NOTHING_DUE
        report.add_skipped(definition.id, reason, description=definition.description)

        if reason == REASON_EXHAUSTED and self._deactivate_exhausted:
            self._store.set_active(definition.id, False)
            logger.info("Recurring definition %s is past its end date; deactivated", definition.id)
