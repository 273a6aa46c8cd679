"""In-memory collaborators for the reconciliation engine."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

import structlog

from ambre_reco.domain.models import ExternalGuarantee, ExternalInvoice, LedgerRecord, ReconciliationState
from ambre_reco.domain.repositories import (
    ChangeSetConsumer,
    GuaranteeLookup,
    InvoiceLookup,
    ReconciliationStateStore,
    SnapshotLoader,
)
from ambre_reco.domain.results import ChangeSet
from ambre_reco.domain.services import index_snapshot

logger = structlog.get_logger()


class InMemorySnapshotLoader(SnapshotLoader):
    def __init__(self, records: Iterable[LedgerRecord]) -> None:
        self._records = tuple(records)

    def load_snapshot(self) -> Sequence[LedgerRecord]:
        return self._records


class InMemoryLedgerStore(SnapshotLoader, ChangeSetConsumer):
    """Active ledger lines plus the archive of lines dropped by later imports.

    Deleted keys are archived, not removed. A key that comes back in a later
    import is revived with its original creation date.
    """

    def __init__(self, records: Iterable[LedgerRecord] = (), user: str = "system") -> None:
        self._active: dict[str, LedgerRecord] = index_snapshot(records)
        self._archived: dict[str, LedgerRecord] = {}
        self._user = user

    def load_snapshot(self) -> Sequence[LedgerRecord]:
        return [self._active[key] for key in sorted(self._active)]

    def archived(self) -> Mapping[str, LedgerRecord]:
        return dict(self._archived)

    def apply(self, change_set: ChangeSet) -> None:
        now = datetime.now(timezone.utc)
        for record in change_set.new:
            previous = self._archived.pop(record.key, None)
            if previous is not None:
                self._active[record.key] = self._stamp(record, now, previous.version + 1, previous.creation_date)
            else:
                self._active[record.key] = self._stamp(record, now, 1, now)
        for record in change_set.updated:
            previous = self._active[record.key]
            self._active[record.key] = self._stamp(record, now, previous.version + 1, previous.creation_date)
        for record in change_set.deleted:
            previous = self._active.pop(record.key)
            self._archived[record.key] = self._stamp(previous, now, previous.version + 1, previous.creation_date)
        logger.info("ledger_store_updated", active=len(self._active), archived=len(self._archived))

    def _stamp(self, record: LedgerRecord, now: datetime, version: int, created: datetime | None) -> LedgerRecord:
        return replace(record, modified_by=self._user, last_modified=now, version=version, creation_date=created)


class InMemoryReconciliationStore(ReconciliationStateStore):
    def __init__(self, states: Iterable[ReconciliationState] = ()) -> None:
        self._states: dict[str, ReconciliationState] = {state.key: state for state in states}

    def get_states(self, keys: Iterable[str]) -> Mapping[str, ReconciliationState]:
        return {key: self._states[key] for key in keys if key in self._states}

    def upsert(self, state: ReconciliationState) -> None:
        self._states[state.key] = state


class InMemoryReferenceData(GuaranteeLookup, InvoiceLookup):
    """DWINGS guarantees and invoices held in memory, looked up case-insensitively."""

    def __init__(
        self,
        guarantees: Iterable[ExternalGuarantee] = (),
        invoices: Iterable[ExternalInvoice] = (),
    ) -> None:
        self._guarantees: dict[str, ExternalGuarantee] = {}
        for guarantee in guarantees:
            self._guarantees.setdefault(guarantee.guarantee_id.upper(), guarantee)
        self._invoices: dict[str, ExternalInvoice] = {}
        for invoice in invoices:
            self._invoices.setdefault(invoice.invoice_id.upper(), invoice)

    def get_guarantee(self, guarantee_id: str) -> ExternalGuarantee | None:
        return self._guarantees.get(guarantee_id.strip().upper())

    def get_invoice(self, invoice_id: str) -> ExternalInvoice | None:
        return self._invoices.get(invoice_id.strip().upper())
