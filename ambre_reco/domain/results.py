"""Domain-level results for snapshot reconciliation."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

from .models import LedgerRecord


@dataclass(frozen=True)
class ChangeSet:
    """New, updated and deleted ledger records, each sorted by key.

    A key appears in at most one of the three sequences. Unchanged keys are
    absent.
    """

    new: Sequence[LedgerRecord] = field(default_factory=tuple)
    updated: Sequence[LedgerRecord] = field(default_factory=tuple)
    deleted: Sequence[LedgerRecord] = field(default_factory=tuple)

    @property
    def total_changes(self) -> int:
        return len(self.new) + len(self.updated) + len(self.deleted)

    def is_empty(self) -> bool:
        return self.total_changes == 0

    def new_keys(self) -> frozenset[str]:
        return frozenset(record.key for record in self.new)

    def updated_keys(self) -> frozenset[str]:
        return frozenset(record.key for record in self.updated)

    def deleted_keys(self) -> frozenset[str]:
        return frozenset(record.key for record in self.deleted)

    def keys(self) -> frozenset[str]:
        return self.new_keys() | self.updated_keys() | self.deleted_keys()

    def summary_counts(self) -> dict[str, int]:
        return {"new": len(self.new), "updated": len(self.updated), "deleted": len(self.deleted)}

    def iter_all(self) -> Iterable[tuple[str, LedgerRecord]]:
        for record in self.new:
            yield "new", record
        for record in self.updated:
            yield "updated", record
        for record in self.deleted:
            yield "deleted", record


@dataclass(frozen=True)
class ImportSummary:
    total_previous: int
    total_current: int
    new_records: int
    updated_records: int
    deleted_records: int
    view_records: int
    potential_duplicates: int
    unresolved_links: int
    started_at: datetime
    finished_at: datetime

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def has_changes(self) -> bool:
        return any([self.new_records, self.updated_records, self.deleted_records])
