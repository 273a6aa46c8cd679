"""Domain services classifying ledger snapshots into a change set."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Mapping, Sequence

import structlog

from .errors import InvalidInputError
from .models import LedgerRecord, comparable_fields
from .results import ChangeSet

logger = structlog.get_logger()

COMPARABLE_FIELDS = comparable_fields()


def validate_key(key: object) -> str:
    if key is None or not isinstance(key, str) or not key.strip():
        raise InvalidInputError(f"Invalid ledger key: {key!r}", key=key)
    return key


def index_snapshot(records: Iterable[LedgerRecord]) -> dict[str, LedgerRecord]:
    """Key a sequence of records, rejecting null and duplicate keys."""
    snapshot: dict[str, LedgerRecord] = {}
    for record in records:
        key = validate_key(record.key)
        if key in snapshot:
            raise InvalidInputError(f"Duplicate ledger key in snapshot: {key}", key=key)
        snapshot[key] = record
    return snapshot


def changed_fields(old: LedgerRecord, new: LedgerRecord) -> tuple[str, ...]:
    return tuple(name for name in COMPARABLE_FIELDS if getattr(old, name) != getattr(new, name))


def _chunks(items: Sequence[str], count: int) -> list[Sequence[str]]:
    size = max(1, -(-len(items) // count))
    return [items[start : start + size] for start in range(0, len(items), size)]


class SnapshotDiffer:
    """Compares a previous ledger snapshot with a freshly imported one.

    Comparison is exact: decimals and dates must be equal by value, audit
    fields (``modified_by``, ``last_modified``...) are ignored.
    """

    def __init__(self, workers: int = 1, parallel_threshold: int = 20000) -> None:
        self._workers = max(1, workers)
        self._parallel_threshold = parallel_threshold

    def diff(self, old: Mapping[str, LedgerRecord], new: Mapping[str, LedgerRecord]) -> ChangeSet:
        self._check_snapshot(old, "old")
        self._check_snapshot(new, "new")

        keys = sorted(set(old) | set(new))
        if self._workers > 1 and len(keys) >= self._parallel_threshold:
            with ThreadPoolExecutor(max_workers=self._workers) as pool:
                parts = list(pool.map(lambda chunk: self._classify(chunk, old, new), _chunks(keys, self._workers)))
        else:
            parts = [self._classify(keys, old, new)]

        change_set = ChangeSet(
            new=tuple(record for part in parts for record in part[0]),
            updated=tuple(record for part in parts for record in part[1]),
            deleted=tuple(record for part in parts for record in part[2]),
        )
        logger.info(
            "snapshot_diff_completed",
            previous=len(old),
            current=len(new),
            **change_set.summary_counts(),
        )
        return change_set

    @staticmethod
    def _check_snapshot(snapshot: Mapping[str, LedgerRecord], label: str) -> None:
        for key, record in snapshot.items():
            validate_key(key)
            if record is None:
                raise InvalidInputError(f"{label} snapshot has no record for key {key!r}", key=key)
            if record.key != key:
                raise InvalidInputError(
                    f"{label} snapshot stores record {record.key!r} under key {key!r}",
                    key=key,
                )

    @staticmethod
    def _classify(
        keys: Sequence[str],
        old: Mapping[str, LedgerRecord],
        new: Mapping[str, LedgerRecord],
    ) -> tuple[list[LedgerRecord], list[LedgerRecord], list[LedgerRecord]]:
        added: list[LedgerRecord] = []
        updated: list[LedgerRecord] = []
        deleted: list[LedgerRecord] = []
        for key in keys:
            previous = old.get(key)
            current = new.get(key)
            if previous is None:
                added.append(current)
            elif current is None:
                deleted.append(previous)
            else:
                fields_changed = changed_fields(previous, current)
                if fields_changed:
                    logger.debug("ledger_record_changed", key=key, fields=fields_changed)
                    updated.append(current)
        return added, updated, deleted
