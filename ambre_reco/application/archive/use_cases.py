"""Archive application use cases."""
from __future__ import annotations

from dataclasses import dataclass, field

from ambre_reco.domain.archive.entities import ArchiveFile, ArchiveReceipt, ChangeSetArchiveRequest
from ambre_reco.domain.results import ChangeSet
from ambre_reco.infrastructure.archive.file_repository import FileSystemArchiveRepository
from ambre_reco.presentation.change_report import ledger_to_row, render_csv


@dataclass(slots=True)
class ArchiveChangeSetUseCase:
    """Change-set consumer writing one CSV per change kind plus a manifest."""

    repository: FileSystemArchiveRepository
    run_id: str
    last_receipt: ArchiveReceipt | None = field(default=None)

    def execute(self, request: ChangeSetArchiveRequest) -> ArchiveReceipt:
        return self.repository.save_run(request)

    def apply(self, change_set: ChangeSet) -> None:
        files = [
            ArchiveFile(name=f"{kind}.csv", content=render_csv([ledger_to_row(record) for record in records]))
            for kind, records in (
                ("new", change_set.new),
                ("updated", change_set.updated),
                ("deleted", change_set.deleted),
            )
        ]
        request = ChangeSetArchiveRequest(run_id=self.run_id, files=files, counts=change_set.summary_counts())
        self.last_receipt = self.execute(request)
