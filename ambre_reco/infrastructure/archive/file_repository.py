"""Filesystem repository for archiving import change sets."""
from __future__ import annotations

import json
import re
from pathlib import Path

import structlog

from ambre_reco.domain.archive.entities import (
    ArchiveFile,
    ArchiveReceipt,
    ChangeSetArchiveRequest,
    iter_all_files,
)

logger = structlog.get_logger()


def _normalize_run_id(run_id: str) -> str:
    if not run_id:
        return "run"
    digits = re.findall(r"\d", run_id)
    if len(digits) >= 14:
        normalized = f"{''.join(digits[:8])}_{''.join(digits[8:14])}"
        rest = "".join(digits[14:])
        if rest:
            normalized += rest
        return normalized
    sanitized = re.sub(r"[^0-9A-Za-z_-]+", "", run_id.strip())
    return sanitized or "run"


class FileSystemArchiveRepository:
    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def save_run(self, request: ChangeSetArchiveRequest) -> ArchiveReceipt:
        normalized_run_id = _normalize_run_id(request.run_id)
        run_dir = self._root / normalized_run_id
        run_dir.mkdir(parents=True, exist_ok=True)

        for file in iter_all_files(request):
            self._write_file(run_dir, file)

        manifest = {
            "run_id": normalized_run_id,
            "counts": dict(request.counts),
            "files": [self._manifest_entry(file) for file in request.files],
        }
        (run_dir / "manifest.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        logger.info("change_set_archived", run_id=normalized_run_id, location=str(run_dir))

        return ArchiveReceipt(run_id=normalized_run_id, location=run_dir)

    @staticmethod
    def _write_file(run_dir: Path, archive_file: ArchiveFile) -> None:
        (run_dir / archive_file.name).write_bytes(archive_file.content)

    @staticmethod
    def _manifest_entry(archive_file: ArchiveFile) -> dict[str, object]:
        return {"name": archive_file.name, "bytes": len(archive_file.content)}
