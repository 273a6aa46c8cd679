"""Domain models for the Ambre reconciliation engine.

Ledger lines, operator reconciliation state and DWINGS reference data are
three independently owned entities. They are only joined, by key, when a
:class:`ViewRecord` is built.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from decimal import Decimal


def _audit(default: object = None) -> object:
    return field(default=default, compare=False, metadata={"audit": True})


@dataclass(frozen=True)
class LedgerRecord:
    """One imported Ambre transaction line (table T_Data_Ambre)."""

    key: str
    account_id: str
    currency: str
    amount: Decimal
    local_amount: Decimal = Decimal("0")
    operation_date: date | None = None
    value_date: date | None = None
    country: str | None = None
    event_num: str | None = None
    folder: str | None = None
    raw_label: str | None = None
    counterparty: str | None = None
    category: int | None = None
    reconciliation_num: str | None = None
    reconciliation_origin_num: str | None = None
    receivable_invoice_ref: str | None = None
    receivable_dw_ref: str | None = None
    pivot_mbaw_id: str | None = None
    pivot_transaction_codes: str | None = None
    pivot_trn: str | None = None
    modified_by: str | None = _audit()
    last_modified: datetime | None = _audit()
    creation_date: datetime | None = _audit()
    version: int = _audit(1)

    @staticmethod
    def compose_key(
        event_num: str | None,
        raw_label: str | None,
        reconciliation_origin_num: str | None,
        operation_date: date | None,
        amount: Decimal,
    ) -> str:
        """Business key used by Ambre imports that do not carry an ID."""
        day = operation_date.strftime("%Y%m%d") if operation_date else ""
        return f"{event_num or ''}_{raw_label or ''}_{reconciliation_origin_num or ''}_{day}_{amount}"

    def is_pivot(self, pivot_account: str) -> bool:
        return bool(pivot_account) and self.account_id == pivot_account

    def is_receivable(self, receivable_account: str) -> bool:
        return bool(receivable_account) and self.account_id == receivable_account


def comparable_fields() -> tuple[str, ...]:
    """Names of the ledger fields that take part in change detection."""
    return tuple(f.name for f in fields(LedgerRecord) if not f.metadata.get("audit"))


@dataclass
class ReconciliationState:
    """Operator-maintained metadata for one ledger key (table T_Reconciliation)."""

    key: str
    guarantee_id: str | None = None
    invoice_id: str | None = None
    commission_id: str | None = None
    action: int | None = None
    comments: str | None = None
    internal_invoice_reference: str | None = None
    first_claim_date: date | None = None
    last_claim_date: date | None = None
    to_remind: bool = False
    to_remind_date: date | None = None
    ack: bool = False
    swift_code: str | None = None
    payment_reference: str | None = None
    kpi: int | None = None
    incident_type: int | None = None
    assignee: str | None = None
    # None means "not assessed"; only is_risky_effective folds it to False.
    risky_item: bool | None = None
    reason_non_risky: int | None = None
    trigger_date: date | None = None
    mbaw_data: str | None = None
    spirit_data: str | None = None
    modified_by: str | None = None

    @classmethod
    def for_ledger(cls, key: str) -> "ReconciliationState":
        return cls(key=key)

    @property
    def has_dwings_data(self) -> bool:
        return any((self.guarantee_id, self.invoice_id, self.commission_id))

    def requires_reminder(self, today: date) -> bool:
        return self.to_remind and self.to_remind_date is not None and self.to_remind_date <= today


@dataclass(frozen=True)
class ExternalGuarantee:
    """DWINGS guarantee reference row (read-only)."""

    guarantee_id: str
    status: str | None = None
    guarantee_type: str | None = None
    nature: str | None = None
    event_status: str | None = None
    event_effective_date: date | None = None
    issue_date: date | None = None
    official_ref: str | None = None
    undertaking_event: str | None = None
    process: str | None = None
    expiry_date_type: str | None = None
    expiry_date: date | None = None
    party_id: str | None = None
    party_ref: str | None = None
    secondary_obligor: str | None = None
    secondary_obligor_nature: str | None = None
    role: str | None = None
    country: str | None = None
    central_party_code: str | None = None
    name1: str | None = None
    name2: str | None = None
    group: str | None = None
    premium: str | None = None
    branch_code: str | None = None
    branch_name: str | None = None
    booking: str | None = None
    syndicate: str | None = None
    currency: str | None = None
    outstanding_amount: Decimal | None = None
    outstanding_amount_in_booking_currency: Decimal | None = None
    cancellation_date: date | None = None
    controller: str | None = None
    automatic_book_off: str | None = None
    nature_of_deal: str | None = None


@dataclass(frozen=True)
class ExternalInvoice:
    """DWINGS invoice reference row (read-only)."""

    invoice_id: str
    status: str | None = None
    billing_amount: Decimal | None = None
    requested_amount: Decimal | None = None
    final_amount: Decimal | None = None
    executed_amount: Decimal | None = None
    billing_currency: str | None = None
    bgpmt: str | None = None
    payment_method: str | None = None
    payment_type: str | None = None
    payment_request_status: str | None = None
    commission_period_status: str | None = None
    sender_reference: str | None = None
    receiver_reference: str | None = None
    sender_name: str | None = None
    receiver_name: str | None = None
    business_case_reference: str | None = None
    business_case_id: str | None = None
    sender_account_number: str | None = None
    sender_account_bic: str | None = None
    receiver_account_number: str | None = None
    receiver_account_bic: str | None = None
    requested_execution_date: date | None = None
    start_date: date | None = None
    end_date: date | None = None
    debtor_party_name: str | None = None
    creditor_party_name: str | None = None
    posting_periodicity: str | None = None
    event_id: str | None = None
    mt_status: str | None = None
    reminder_number: str | None = None
    error_message: str | None = None
    comments: str | None = None


@dataclass(frozen=True)
class ChangeFlags:
    """Per-refresh indicators. Never persisted."""

    is_newly_added: bool = False
    is_updated: bool = False
    is_potential_duplicate: bool = False
    is_unseen: bool = False
    # Owned by the presentation layer; the engine only carries the slot.
    is_highlighted: bool = False

    @property
    def any_change(self) -> bool:
        return self.is_newly_added or self.is_updated or self.is_potential_duplicate


@dataclass(frozen=True)
class ViewRecord:
    """Denormalized projection of one ledger key for display."""

    ledger: LedgerRecord
    state: ReconciliationState | None = None
    guarantee: ExternalGuarantee | None = None
    invoice: ExternalInvoice | None = None
    is_risky_effective: bool = False
    flags: ChangeFlags = field(default_factory=ChangeFlags)

    @property
    def key(self) -> str:
        return self.ledger.key

    @property
    def reconciliation(self) -> ReconciliationState:
        if self.state is not None:
            return self.state
        return ReconciliationState.for_ledger(self.ledger.key)

    def with_flags(self, flags: ChangeFlags) -> "ViewRecord":
        return replace(self, flags=flags)

    def highlighted(self, value: bool = True) -> "ViewRecord":
        return replace(self, flags=replace(self.flags, is_highlighted=value))
