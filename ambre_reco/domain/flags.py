"""Transient change flags computed over a freshly built view set."""
from __future__ import annotations

from collections import Counter
from collections.abc import Hashable
from typing import AbstractSet, Callable, Sequence

import structlog

from .models import ChangeFlags, ViewRecord
from .results import ChangeSet

logger = structlog.get_logger()

DuplicateKey = Callable[[ViewRecord], Hashable | None]


def default_duplicate_key(view: ViewRecord) -> Hashable | None:
    """Amount, currency, counterparty and value date of the ledger line.

    The Ambre desktop view groups duplicates by event number instead; pass
    :func:`event_num_duplicate_key` to get that behaviour.
    """
    ledger = view.ledger
    return (ledger.amount, ledger.currency, ledger.counterparty or "", ledger.value_date)


def event_num_duplicate_key(view: ViewRecord) -> Hashable | None:
    """Event number of the ledger line. Lines without one are never duplicates."""
    return view.ledger.event_num or None


class ChangeFlagAnnotator:
    """Recomputes new/updated/duplicate indicators from scratch on every refresh."""

    def __init__(self, duplicate_key: DuplicateKey = default_duplicate_key) -> None:
        self._duplicate_key = duplicate_key

    def annotate(
        self,
        views: Sequence[ViewRecord],
        change_set: ChangeSet,
        prior_view_keys: AbstractSet[str] | None = None,
    ) -> list[ViewRecord]:
        new_keys = change_set.new_keys()
        updated_keys = change_set.updated_keys()

        duplicate_keys = [self._duplicate_key(view) for view in views]
        counts = Counter(key for key in duplicate_keys if key is not None)

        annotated: list[ViewRecord] = []
        for view, dup_key in zip(views, duplicate_keys):
            flags = ChangeFlags(
                is_newly_added=view.key in new_keys,
                is_updated=view.key in updated_keys,
                is_potential_duplicate=dup_key is not None and counts[dup_key] > 1,
                is_unseen=prior_view_keys is not None and view.key not in prior_view_keys,
            )
            annotated.append(view.with_flags(flags))

        logger.info(
            "change_flags_annotated",
            records=len(annotated),
            newly_added=sum(1 for v in annotated if v.flags.is_newly_added),
            updated=sum(1 for v in annotated if v.flags.is_updated),
            potential_duplicates=sum(1 for v in annotated if v.flags.is_potential_duplicate),
        )
        return annotated
