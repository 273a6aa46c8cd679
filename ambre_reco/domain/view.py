"""Merge ledger records with reconciliation state and DWINGS reference data."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Mapping, Sequence

import structlog

from .errors import InvalidInputError
from .models import ExternalGuarantee, ExternalInvoice, LedgerRecord, ReconciliationState, ViewRecord
from .services import validate_key

logger = structlog.get_logger()


def unresolved_links(
    states: Mapping[str, ReconciliationState],
    guarantees: Mapping[str, ExternalGuarantee],
    invoices: Mapping[str, ExternalInvoice],
    keys: Sequence[str] | None = None,
) -> dict[str, int]:
    """Count guarantee/invoice ids referenced by a state but absent from reference data."""
    missing = {"guarantee": 0, "invoice": 0}
    selected = states.values() if keys is None else (states[k] for k in keys if k in states)
    for state in selected:
        if state.guarantee_id and state.guarantee_id not in guarantees:
            missing["guarantee"] += 1
        if state.invoice_id and state.invoice_id not in invoices:
            missing["invoice"] += 1
    return missing


class ViewBuilder:
    """Produces one :class:`ViewRecord` per ledger record, in input order.

    Reference data is joined only through the ids stored on the
    reconciliation state; a ledger line without state never picks up
    guarantee or invoice data. Ids missing from the lookups leave the
    corresponding side empty.
    """

    def __init__(self, workers: int = 1, parallel_threshold: int = 20000) -> None:
        self._workers = max(1, workers)
        self._parallel_threshold = parallel_threshold

    def build(
        self,
        ledger: Sequence[LedgerRecord],
        states: Mapping[str, ReconciliationState],
        guarantees: Mapping[str, ExternalGuarantee],
        invoices: Mapping[str, ExternalInvoice],
    ) -> list[ViewRecord]:
        self._check_keys(ledger)

        if self._workers > 1 and len(ledger) >= self._parallel_threshold:
            size = -(-len(ledger) // self._workers)
            chunks = [ledger[start : start + size] for start in range(0, len(ledger), size)]
            with ThreadPoolExecutor(max_workers=self._workers) as pool:
                parts = pool.map(lambda chunk: [self._merge(r, states, guarantees, invoices) for r in chunk], chunks)
                views = [view for part in parts for view in part]
        else:
            views = [self._merge(record, states, guarantees, invoices) for record in ledger]

        missing = unresolved_links(states, guarantees, invoices, keys=[record.key for record in ledger])
        if missing["guarantee"] or missing["invoice"]:
            logger.warning(
                "unresolved_reference_links",
                guarantees=missing["guarantee"],
                invoices=missing["invoice"],
            )
        logger.info("view_build_completed", records=len(views))
        return views

    @staticmethod
    def _check_keys(ledger: Sequence[LedgerRecord]) -> None:
        seen: set[str] = set()
        for record in ledger:
            key = validate_key(record.key)
            if key in seen:
                raise InvalidInputError(f"Duplicate ledger key in view input: {key}", key=key)
            seen.add(key)

    @staticmethod
    def _merge(
        record: LedgerRecord,
        states: Mapping[str, ReconciliationState],
        guarantees: Mapping[str, ExternalGuarantee],
        invoices: Mapping[str, ExternalInvoice],
    ) -> ViewRecord:
        state = states.get(record.key)
        if state is None:
            return ViewRecord(ledger=record)

        guarantee = guarantees.get(state.guarantee_id) if state.guarantee_id else None
        invoice = invoices.get(state.invoice_id) if state.invoice_id else None
        return ViewRecord(
            ledger=record,
            # Detached copy so later edits to the store do not leak into this refresh.
            state=replace(state),
            guarantee=guarantee,
            invoice=invoice,
            is_risky_effective=state.risky_item is True,
        )
