"""Application services orchestrating one Ambre reconciliation cycle."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AbstractSet, Iterable, Sequence

import structlog

from ambre_reco.application.dto import ReconciliationResponse
from ambre_reco.domain.flags import ChangeFlagAnnotator
from ambre_reco.domain.models import ExternalGuarantee, ExternalInvoice, ReconciliationState
from ambre_reco.domain.repositories import (
    ChangeSetConsumer,
    GuaranteeLookup,
    InvoiceLookup,
    ReconciliationStateStore,
    SnapshotLoader,
)
from ambre_reco.domain.results import ImportSummary
from ambre_reco.domain.services import SnapshotDiffer, index_snapshot
from ambre_reco.domain.view import ViewBuilder, unresolved_links

logger = structlog.get_logger()


@dataclass(slots=True)
class ReconciliationContext:
    previous_loader: SnapshotLoader
    current_loader: SnapshotLoader
    state_store: ReconciliationStateStore
    guarantee_lookup: GuaranteeLookup
    invoice_lookup: InvoiceLookup
    consumers: Sequence[ChangeSetConsumer] = field(default_factory=tuple)
    differ: SnapshotDiffer = field(default_factory=SnapshotDiffer)
    view_builder: ViewBuilder = field(default_factory=ViewBuilder)
    annotator: ChangeFlagAnnotator = field(default_factory=ChangeFlagAnnotator)


def _resolve_guarantees(states: Iterable[ReconciliationState], lookup: GuaranteeLookup) -> dict[str, ExternalGuarantee]:
    found: dict[str, ExternalGuarantee] = {}
    for guarantee_id in {s.guarantee_id for s in states if s.guarantee_id}:
        guarantee = lookup.get_guarantee(guarantee_id)
        if guarantee is not None:
            found[guarantee_id] = guarantee
    return found


def _resolve_invoices(states: Iterable[ReconciliationState], lookup: InvoiceLookup) -> dict[str, ExternalInvoice]:
    found: dict[str, ExternalInvoice] = {}
    for invoice_id in {s.invoice_id for s in states if s.invoice_id}:
        invoice = lookup.get_invoice(invoice_id)
        if invoice is not None:
            found[invoice_id] = invoice
    return found


class ReconcileImportUseCase:
    """Diff the new import, hand the change set to consumers, then rebuild the view."""

    def __init__(self, context: ReconciliationContext) -> None:
        self._context = context

    def execute(self, prior_view_keys: AbstractSet[str] | None = None) -> ReconciliationResponse:
        ctx = self._context
        started_at = datetime.now(timezone.utc)

        previous_records = ctx.previous_loader.load_snapshot()
        current_records = ctx.current_loader.load_snapshot()
        previous = index_snapshot(previous_records)
        current = index_snapshot(current_records)

        change_set = ctx.differ.diff(previous, current)
        for consumer in ctx.consumers:
            consumer.apply(change_set)

        states = ctx.state_store.get_states(current.keys())
        guarantees = _resolve_guarantees(states.values(), ctx.guarantee_lookup)
        invoices = _resolve_invoices(states.values(), ctx.invoice_lookup)

        views = ctx.view_builder.build(list(current_records), states, guarantees, invoices)
        views = ctx.annotator.annotate(views, change_set, prior_view_keys)

        missing = unresolved_links(states, guarantees, invoices)
        summary = ImportSummary(
            total_previous=len(previous),
            total_current=len(current),
            new_records=len(change_set.new),
            updated_records=len(change_set.updated),
            deleted_records=len(change_set.deleted),
            view_records=len(views),
            potential_duplicates=sum(1 for view in views if view.flags.is_potential_duplicate),
            unresolved_links=missing["guarantee"] + missing["invoice"],
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )
        logger.info("reconciliation_cycle_completed", total_changes=change_set.total_changes)
        return ReconciliationResponse(change_set=change_set, views=tuple(views), summary=summary)
