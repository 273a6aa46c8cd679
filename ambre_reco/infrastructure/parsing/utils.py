"""Shared parsing utilities for snapshot and reference-data ingestion."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from io import BytesIO
from pathlib import Path

import pandas as pd

from ambre_reco.domain.errors import InvalidInputError


def ensure_bytes(source: BytesIO | Path | bytes | str) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()
    if isinstance(source, (Path, str)):
        return Path(source).read_bytes()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def clean_text(value: object) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    if not s or s.upper() == "NAN":
        return None
    return s


def parse_decimal(value: object) -> Decimal:
    """Parse an amount cell. Blank or unparseable text gives zero.

    NaN and infinities are rejected: they never compare equal to themselves,
    which would make an unchanged record look updated.
    """
    s = str(value).strip() if value is not None else ""
    if not s:
        return Decimal("0")
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    for ch in [",", "$", "€", "£", " "]:
        s = s.replace(ch, "")
    try:
        result = Decimal(s)
    except InvalidOperation:
        return Decimal("0")
    if not result.is_finite():
        raise InvalidInputError(f"Non-finite amount: {value!r}")
    if negative:
        result = -result
    return result


def parse_optional_decimal(value: object) -> Decimal | None:
    if clean_text(value) is None:
        return None
    return parse_decimal(value)


def parse_date(value: object) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = clean_text(value)
    if s is None:
        return None
    parsed = pd.to_datetime(s, errors="coerce", dayfirst=False)
    if pd.isna(parsed):
        return None
    return parsed.date()


def parse_optional_int(value: object) -> int | None:
    s = clean_text(value)
    if s is None:
        return None
    try:
        return int(Decimal(s))
    except (InvalidOperation, ValueError, OverflowError):
        return None


def parse_optional_bool(value: object) -> bool | None:
    s = clean_text(value)
    if s is None:
        return None
    lowered = s.lower()
    if lowered in {"1", "true", "yes", "y", "-1"}:
        return True
    if lowered in {"0", "false", "no", "n"}:
        return False
    raise InvalidInputError(f"Not a boolean: {value!r}")
