"""Snapshot diff and view merge engine for Ambre reconciliation."""
from ambre_reco.application.use_cases import ReconcileImportUseCase, ReconciliationContext
from ambre_reco.domain.errors import InvalidInputError, ReconciliationError
from ambre_reco.domain.flags import ChangeFlagAnnotator
from ambre_reco.domain.models import (
    ChangeFlags,
    ExternalGuarantee,
    ExternalInvoice,
    LedgerRecord,
    ReconciliationState,
    ViewRecord,
)
from ambre_reco.domain.results import ChangeSet
from ambre_reco.domain.services import SnapshotDiffer
from ambre_reco.domain.view import ViewBuilder

__all__ = [
    "ReconcileImportUseCase",
    "ReconciliationContext",
    "InvalidInputError",
    "ReconciliationError",
    "ChangeFlagAnnotator",
    "ChangeFlags",
    "ExternalGuarantee",
    "ExternalInvoice",
    "LedgerRecord",
    "ReconciliationState",
    "ViewRecord",
    "ChangeSet",
    "SnapshotDiffer",
    "ViewBuilder",
]
