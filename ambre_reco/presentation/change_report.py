"""Tabular renderings of change sets and view records."""
from __future__ import annotations

import csv
import io
from dataclasses import asdict, fields
from typing import Sequence

import pandas as pd

from ambre_reco.domain.models import LedgerRecord, ReconciliationState, ViewRecord
from ambre_reco.domain.results import ChangeSet

GUARANTEE_COLUMNS = ("status", "guarantee_type", "nature", "currency", "outstanding_amount", "name1", "expiry_date")
INVOICE_COLUMNS = ("status", "billing_amount", "billing_currency", "bgpmt", "business_case_reference", "mt_status")


def _cell(value: object) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def ledger_to_row(record: LedgerRecord) -> dict[str, str]:
    return {name: _cell(value) for name, value in asdict(record).items()}


def change_set_to_rows(change_set: ChangeSet) -> list[dict[str, str]]:
    return [{"change": change, **ledger_to_row(record)} for change, record in change_set.iter_all()]


def view_to_row(view: ViewRecord) -> dict[str, object]:
    row: dict[str, object] = dict(asdict(view.ledger))
    reconciliation = view.reconciliation
    for f in fields(ReconciliationState):
        if f.name != "key":
            row[f"reco_{f.name}"] = getattr(reconciliation, f.name)
    for name in ("guarantee_id",) + GUARANTEE_COLUMNS:
        row[f"g_{name}"] = getattr(view.guarantee, name) if view.guarantee else None
    for name in ("invoice_id",) + INVOICE_COLUMNS:
        row[f"i_{name}"] = getattr(view.invoice, name) if view.invoice else None
    row["is_risky_effective"] = view.is_risky_effective
    row.update(asdict(view.flags))
    return row


def views_to_dataframe(views: Sequence[ViewRecord]) -> pd.DataFrame:
    return pd.DataFrame([view_to_row(view) for view in views])


def render_csv(rows: Sequence[dict[str, object]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(rows[0].keys()) if rows else [])
    if rows:
        writer.writeheader()
        writer.writerows({key: _cell(value) for key, value in row.items()} for row in rows)
    return buffer.getvalue().encode("utf-8")


def render_change_set_csv(change_set: ChangeSet) -> bytes:
    return render_csv(change_set_to_rows(change_set))
