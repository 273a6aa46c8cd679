"""Canonical ledger snapshot files (CSV or Excel) to :class:`LedgerRecord`."""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Sequence

import pandas as pd
import structlog

from ambre_reco.domain.errors import InvalidInputError
from ambre_reco.domain.models import LedgerRecord
from ambre_reco.infrastructure.parsing.utils import (
    clean_text,
    ensure_bytes,
    parse_date,
    parse_decimal,
    parse_optional_int,
)

logger = structlog.get_logger()

# Column names as exported from T_Data_Ambre.
AMBRE_COLUMN_ALIASES = {
    "ID": "key",
    "Account_ID": "account_id",
    "CCY": "currency",
    "SignedAmount": "amount",
    "LocalSignedAmount": "local_amount",
    "Operation_Date": "operation_date",
    "Value_Date": "value_date",
    "Country": "country",
    "Event_Num": "event_num",
    "Folder": "folder",
    "RawLabel": "raw_label",
    "Category": "category",
    "Reconciliation_Num": "reconciliation_num",
    "ReconciliationOrigin_Num": "reconciliation_origin_num",
    "Receivable_InvoiceFromAmbre": "receivable_invoice_ref",
    "Receivable_DWRefFromAmbre": "receivable_dw_ref",
    "Pivot_MbawIDFromLabel": "pivot_mbaw_id",
    "Pivot_TransactionCodesFromLabel": "pivot_transaction_codes",
    "Pivot_TRNFromLabel": "pivot_trn",
    "ModifiedBy": "modified_by",
}

REQUIRED_COLUMNS = ("account_id", "currency", "amount")

TEXT_COLUMNS = (
    "country",
    "event_num",
    "folder",
    "raw_label",
    "counterparty",
    "reconciliation_num",
    "reconciliation_origin_num",
    "receivable_invoice_ref",
    "receivable_dw_ref",
    "pivot_mbaw_id",
    "pivot_transaction_codes",
    "pivot_trn",
    "modified_by",
)


def read_snapshot_frame(source: BytesIO | Path | bytes | str, sheet_name: str | int = 0) -> pd.DataFrame:
    name = str(source).lower() if isinstance(source, (Path, str)) else ""
    data = ensure_bytes(source)
    # xlsx/xlsm workbooks are zip containers
    if name.endswith((".xlsx", ".xlsm")) or data[:2] == b"PK":
        return pd.read_excel(BytesIO(data), sheet_name=sheet_name, engine="openpyxl", dtype=str, keep_default_na=False)
    return pd.read_csv(BytesIO(data), dtype=str, keep_default_na=False)


def normalize_snapshot_frame(df: pd.DataFrame) -> pd.DataFrame:
    work = df.copy()
    work.columns = [str(col).strip() for col in work.columns]
    work = work.rename(columns=AMBRE_COLUMN_ALIASES)
    missing = [col for col in REQUIRED_COLUMNS if col not in work.columns]
    if missing:
        raise InvalidInputError(f"Snapshot is missing required columns: {missing}")
    for col in ("account_id", "currency"):
        work[col] = work[col].astype(str).str.strip()
    work["currency"] = work["currency"].str.upper()
    return work


def frame_to_records(df: pd.DataFrame) -> Sequence[LedgerRecord]:
    normalized = normalize_snapshot_frame(df)
    records: list[LedgerRecord] = []
    for _, row in normalized.iterrows():
        amount = parse_decimal(row.get("amount"))
        operation_date = parse_date(row.get("operation_date"))
        text = {col: clean_text(row.get(col)) for col in TEXT_COLUMNS}
        key = clean_text(row.get("key")) or LedgerRecord.compose_key(
            text["event_num"],
            text["raw_label"],
            text["reconciliation_origin_num"],
            operation_date,
            amount,
        )
        records.append(
            LedgerRecord(
                key=key,
                account_id=row["account_id"],
                currency=row["currency"],
                amount=amount,
                local_amount=parse_decimal(row.get("local_amount")),
                operation_date=operation_date,
                value_date=parse_date(row.get("value_date")),
                category=parse_optional_int(row.get("category")),
                **text,
            )
        )
    logger.debug("snapshot_frame_parsed", rows=len(records))
    return records


def snapshot_to_records(source: BytesIO | Path | bytes | str, sheet_name: str | int = 0) -> Sequence[LedgerRecord]:
    return frame_to_records(read_snapshot_frame(source, sheet_name=sheet_name))
