from dataclasses import replace
from datetime import date
from decimal import Decimal

from ambre_reco.domain.flags import ChangeFlagAnnotator, event_num_duplicate_key
from ambre_reco.domain.models import LedgerRecord, ViewRecord
from ambre_reco.domain.results import ChangeSet


def make_view(key: str, amount: str = "10", counterparty: str = "ACME", value_date: date = date(2024, 3, 1)) -> ViewRecord:
    return ViewRecord(
        ledger=LedgerRecord(
            key=key,
            account_id="ACC-1",
            currency="EUR",
            amount=Decimal(amount),
            counterparty=counterparty,
            value_date=value_date,
        )
    )


def test_duplicates_share_amount_currency_counterparty_and_date():
    views = [make_view("K1", "100"), make_view("K2", "100.0"), make_view("K3", "75")]

    annotated = ChangeFlagAnnotator().annotate(views, ChangeSet())

    assert [v.flags.is_potential_duplicate for v in annotated] == [True, True, False]


def test_new_and_updated_flags_follow_change_set():
    views = [make_view("K1"), make_view("K2", "20"), make_view("K3", "30")]
    change_set = ChangeSet(new=(views[0].ledger,), updated=(views[2].ledger,))

    annotated = ChangeFlagAnnotator().annotate(views, change_set)

    assert [(v.flags.is_newly_added, v.flags.is_updated) for v in annotated] == [
        (True, False),
        (False, False),
        (False, True),
    ]


def test_flags_recomputed_from_scratch():
    stale = make_view("K1", "20").highlighted()
    annotator = ChangeFlagAnnotator()
    first = annotator.annotate([stale], ChangeSet(new=(stale.ledger,)))

    second = annotator.annotate(first, ChangeSet())

    assert first[0].flags.is_newly_added is True
    assert first[0].flags.is_highlighted is False
    assert second[0].flags.is_newly_added is False


def test_core_fields_untouched_by_annotation():
    views = [make_view("K1"), make_view("K2")]

    annotated = ChangeFlagAnnotator().annotate(views, ChangeSet())

    assert [v.ledger for v in annotated] == [v.ledger for v in views]
    assert all(not v.flags.is_potential_duplicate for v in views)


def test_unseen_flag_uses_prior_view_keys():
    views = [make_view("K1", "1"), make_view("K2", "2")]

    annotated = ChangeFlagAnnotator().annotate(views, ChangeSet(), prior_view_keys={"K1"})
    without_prior = ChangeFlagAnnotator().annotate(views, ChangeSet())

    assert [v.flags.is_unseen for v in annotated] == [False, True]
    assert not any(v.flags.is_unseen for v in without_prior)


def test_caller_supplied_duplicate_key():
    views = [make_view("K1", "1", counterparty="X"), make_view("K2", "2", counterparty="X"), make_view("K3", "3", counterparty="")]

    def by_counterparty(view):
        return view.ledger.counterparty or None

    annotated = ChangeFlagAnnotator(duplicate_key=by_counterparty).annotate(views, ChangeSet())

    assert [v.flags.is_potential_duplicate for v in annotated] == [True, True, False]


def test_highlight_slot_is_left_to_caller():
    view = ChangeFlagAnnotator().annotate([make_view("K1")], ChangeSet(new=(make_view("K1").ledger,)))[0]

    assert view.flags.is_highlighted is False
    assert view.highlighted().flags.is_highlighted is True


def test_event_number_grouping_ignores_lines_without_event():
    views = [make_view("K1", "1"), make_view("K2", "2"), make_view("K3", "3"), make_view("K4", "4")]
    views = [
        ViewRecord(ledger=replace(view.ledger, event_num=event))
        for view, event in zip(views, ["EV1", "EV1", None, None])
    ]

    annotated = ChangeFlagAnnotator(duplicate_key=event_num_duplicate_key).annotate(views, ChangeSet())

    assert [v.flags.is_potential_duplicate for v in annotated] == [True, True, False, False]
