"""File-backed snapshot loader."""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Sequence

from ambre_reco.domain.models import LedgerRecord
from ambre_reco.domain.repositories import SnapshotLoader
from ambre_reco.infrastructure.parsing.snapshot_file import snapshot_to_records


class FileSnapshotLoader(SnapshotLoader):
    def __init__(self, source: BytesIO | Path | bytes | str, sheet_name: str | int = 0) -> None:
        self._source = source
        self._sheet_name = sheet_name

    def load_snapshot(self) -> Sequence[LedgerRecord]:
        return snapshot_to_records(self._source, sheet_name=self._sheet_name)
