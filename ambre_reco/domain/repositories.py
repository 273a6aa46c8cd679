"""Repository interfaces anchoring the domain layer."""
from __future__ import annotations

from typing import Iterable, Mapping, Protocol, Sequence

from .models import ExternalGuarantee, ExternalInvoice, LedgerRecord, ReconciliationState
from .results import ChangeSet


class SnapshotLoader(Protocol):
    """Provides the full set of ledger records for one scope (country, business date)."""

    def load_snapshot(self) -> Sequence[LedgerRecord]:
        ...


class ReconciliationStateStore(Protocol):
    def get_states(self, keys: Iterable[str]) -> Mapping[str, ReconciliationState]:
        ...

    def upsert(self, state: ReconciliationState) -> None:
        ...


class GuaranteeLookup(Protocol):
    def get_guarantee(self, guarantee_id: str) -> ExternalGuarantee | None:
        ...


class InvoiceLookup(Protocol):
    def get_invoice(self, invoice_id: str) -> ExternalInvoice | None:
        ...


class ChangeSetConsumer(Protocol):
    """Persists or audits the classification produced by a diff."""

    def apply(self, change_set: ChangeSet) -> None:
        ...
