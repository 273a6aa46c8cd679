"""Reconciliation state and DWINGS reference files (CSV or Excel)."""
from __future__ import annotations

from dataclasses import fields
from io import BytesIO
from pathlib import Path
from typing import Callable, Sequence, TypeVar

import pandas as pd
import structlog

from ambre_reco.domain.errors import InvalidInputError
from ambre_reco.domain.models import ExternalGuarantee, ExternalInvoice, ReconciliationState
from ambre_reco.infrastructure.parsing.snapshot_file import read_snapshot_frame
from ambre_reco.infrastructure.parsing.utils import (
    clean_text,
    parse_date,
    parse_optional_bool,
    parse_optional_decimal,
    parse_optional_int,
)

logger = structlog.get_logger()

T = TypeVar("T")

# Column names as exported from T_Reconciliation and the DWINGS extracts.
RECONCILIATION_COLUMN_ALIASES = {
    "ID": "key",
    "DWINGS_GuaranteeID": "guarantee_id",
    "DWINGS_InvoiceID": "invoice_id",
    "DWINGS_CommissionID": "commission_id",
    "Action": "action",
    "Comments": "comments",
    "ToRemind": "to_remind",
    "ToRemindDate": "to_remind_date",
    "ACK": "ack",
    "KPI": "kpi",
    "IncidentType": "incident_type",
    "Assignee": "assignee",
    "RiskyItem": "risky_item",
    "ReasonNonRisky": "reason_non_risky",
}
GUARANTEE_COLUMN_ALIASES = {"GUARANTEE_ID": "guarantee_id"}
INVOICE_COLUMN_ALIASES = {"INVOICE_ID": "invoice_id", "BGPMT": "bgpmt"}

_PARSERS: dict[str, Callable[[object], object]] = {
    "str | None": clean_text,
    "date | None": parse_date,
    "Decimal | None": parse_optional_decimal,
    "int | None": parse_optional_int,
    "bool | None": parse_optional_bool,
    "bool": lambda value: bool(parse_optional_bool(value)),
}


def _frame_to_entities(
    df: pd.DataFrame,
    entity: type[T],
    id_column: str,
    aliases: dict[str, str],
) -> list[T]:
    work = df.copy()
    work.columns = [str(col).strip() for col in work.columns]
    work = work.rename(columns=aliases)
    if id_column not in work.columns:
        raise InvalidInputError(f"{entity.__name__} file is missing the {id_column!r} column")
    known = [f for f in fields(entity) if f.name in work.columns and f.name != id_column]
    entities: list[T] = []
    for position, (_, row) in enumerate(work.iterrows()):
        identifier = clean_text(row[id_column])
        if identifier is None:
            raise InvalidInputError(f"{entity.__name__} row {position} has no {id_column}")
        values = {f.name: _PARSERS[f.type](row[f.name]) for f in known}
        entities.append(entity(**{id_column: identifier}, **values))
    logger.debug("reference_frame_parsed", entity=entity.__name__, rows=len(entities))
    return entities


def states_to_records(source: BytesIO | Path | bytes | str) -> Sequence[ReconciliationState]:
    return _frame_to_entities(read_snapshot_frame(source), ReconciliationState, "key", RECONCILIATION_COLUMN_ALIASES)


def guarantees_to_records(source: BytesIO | Path | bytes | str) -> Sequence[ExternalGuarantee]:
    return _frame_to_entities(read_snapshot_frame(source), ExternalGuarantee, "guarantee_id", GUARANTEE_COLUMN_ALIASES)


def invoices_to_records(source: BytesIO | Path | bytes | str) -> Sequence[ExternalInvoice]:
    return _frame_to_entities(read_snapshot_frame(source), ExternalInvoice, "invoice_id", INVOICE_COLUMN_ALIASES)
