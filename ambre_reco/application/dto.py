"""Application-level DTOs for a reconciliation cycle."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ambre_reco.domain.models import ViewRecord
from ambre_reco.domain.results import ChangeSet, ImportSummary


@dataclass(slots=True, frozen=True)
class ReconciliationResponse:
    change_set: ChangeSet
    views: Sequence[ViewRecord]
    summary: ImportSummary

    def view_keys(self) -> frozenset[str]:
        return frozenset(view.key for view in self.views)
