from datetime import date
from decimal import Decimal

import pytest

from ambre_reco.domain.errors import InvalidInputError
from ambre_reco.domain.models import ExternalGuarantee, ExternalInvoice, LedgerRecord, ReconciliationState
from ambre_reco.domain.view import ViewBuilder, unresolved_links


def make_record(key: str, amount: str = "10", **overrides) -> LedgerRecord:
    values = dict(key=key, account_id="ACC-1", currency="EUR", amount=Decimal(amount), value_date=date(2024, 3, 1))
    values.update(overrides)
    return LedgerRecord(**values)


GUARANTEE = ExternalGuarantee(guarantee_id="G1", status="ISSUED", currency="EUR", outstanding_amount=Decimal("5000"))
INVOICE = ExternalInvoice(invoice_id="BGI2024030000001", status="SENT", billing_amount=Decimal("120.50"))


def test_record_without_state_gets_defaults():
    views = ViewBuilder().build([make_record("K1")], {}, {}, {})

    view = views[0]
    assert view.key == "K1"
    assert view.state is None
    assert view.guarantee is None and view.invoice is None
    assert view.is_risky_effective is False
    defaults = view.reconciliation
    assert defaults.key == "K1"
    assert defaults.action is None and defaults.comments is None
    assert defaults.to_remind is False and defaults.ack is False
    assert defaults.risky_item is None


def test_output_preserves_input_order():
    ledger = [make_record(key) for key in ("Z", "A", "M", "B")]

    views = ViewBuilder().build(ledger, {}, {}, {})

    assert [v.key for v in views] == ["Z", "A", "M", "B"]


def test_reference_data_joined_through_state_links():
    states = {"K1": ReconciliationState(key="K1", guarantee_id="G1", invoice_id=INVOICE.invoice_id, comments="chased")}

    view = ViewBuilder().build([make_record("K1")], states, {"G1": GUARANTEE}, {INVOICE.invoice_id: INVOICE})[0]

    assert view.state.comments == "chased"
    assert view.guarantee == GUARANTEE
    assert view.invoice == INVOICE


def test_missing_links_do_not_fail_the_merge():
    states = {
        "K1": ReconciliationState(key="K1", guarantee_id="G404", invoice_id="BGI404"),
        "K2": ReconciliationState(key="K2", guarantee_id="G1"),
    }

    views = ViewBuilder().build([make_record("K1"), make_record("K2")], states, {"G1": GUARANTEE}, {})

    assert len(views) == 2
    assert views[0].guarantee is None and views[0].invoice is None
    assert views[0].state.guarantee_id == "G404"
    assert views[1].guarantee == GUARANTEE


def test_unlinked_record_never_inherits_reference_data():
    ledger = [make_record("K1", receivable_dw_ref="G1")]

    view = ViewBuilder().build(ledger, {}, {"G1": GUARANTEE}, {})[0]

    assert view.guarantee is None


@pytest.mark.parametrize("risky, expected", [(None, False), (False, False), (True, True)])
def test_risky_effective_follows_tri_state(risky, expected):
    states = {"K1": ReconciliationState(key="K1", risky_item=risky)}

    view = ViewBuilder().build([make_record("K1")], states, {}, {})[0]

    assert view.is_risky_effective is expected
    assert view.state.risky_item is risky


def test_risky_effective_recomputed_on_each_build():
    state = ReconciliationState(key="K1", risky_item=True)
    builder = ViewBuilder()
    first = builder.build([make_record("K1")], {"K1": state}, {}, {})[0]

    state.risky_item = None
    second = builder.build([make_record("K1")], {"K1": state}, {}, {})[0]

    assert first.is_risky_effective is True
    assert first.state.risky_item is True
    assert second.is_risky_effective is False


def test_duplicate_ledger_keys_are_rejected():
    with pytest.raises(InvalidInputError):
        ViewBuilder().build([make_record("K1"), make_record("K1", "20")], {}, {}, {})


def test_blank_ledger_key_is_rejected():
    with pytest.raises(InvalidInputError):
        ViewBuilder().build([make_record(" ")], {}, {}, {})


def test_unresolved_links_counts_missing_ids():
    states = {
        "K1": ReconciliationState(key="K1", guarantee_id="G1", invoice_id="BGI404"),
        "K2": ReconciliationState(key="K2", guarantee_id="G404"),
        "K3": ReconciliationState(key="K3"),
    }

    assert unresolved_links(states, {"G1": GUARANTEE}, {}) == {"guarantee": 1, "invoice": 1}
    assert unresolved_links(states, {"G1": GUARANTEE}, {}, keys=["K3"]) == {"guarantee": 0, "invoice": 0}


def test_partitioned_build_keeps_order():
    ledger = [make_record(f"K{i:03d}", str(i)) for i in range(250, 0, -1)]
    states = {"K100": ReconciliationState(key="K100", guarantee_id="G1", risky_item=True)}

    serial = ViewBuilder().build(ledger, states, {"G1": GUARANTEE}, {})
    parallel = ViewBuilder(workers=3, parallel_threshold=10).build(ledger, states, {"G1": GUARANTEE}, {})

    assert [v.key for v in parallel] == [r.key for r in ledger]
    assert parallel == serial
