"""Archive domain entities for storing import change sets."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Sequence


@dataclass(frozen=True)
class ArchiveFile:
    name: str
    content: bytes


@dataclass(frozen=True)
class ChangeSetArchiveRequest:
    run_id: str
    files: Sequence[ArchiveFile]
    counts: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ArchiveReceipt:
    run_id: str
    location: Path


def iter_all_files(request: ChangeSetArchiveRequest) -> Iterable[ArchiveFile]:
    yield from request.files
