from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from ambre_reco.domain.errors import InvalidInputError
from ambre_reco.domain.models import LedgerRecord
from ambre_reco.domain.services import SnapshotDiffer, changed_fields, index_snapshot


def make_record(key: str, amount: str, **overrides) -> LedgerRecord:
    values = dict(
        key=key,
        account_id="ACC-1",
        currency="EUR",
        amount=Decimal(amount),
        value_date=date(2024, 3, 1),
        counterparty="ACME",
    )
    values.update(overrides)
    return LedgerRecord(**values)


def snapshot(*records: LedgerRecord) -> dict[str, LedgerRecord]:
    return {record.key: record for record in records}


def test_new_updated_and_unchanged_scenario():
    old = snapshot(make_record("A", "100"), make_record("B", "200"))
    new = snapshot(make_record("A", "100"), make_record("B", "250"), make_record("C", "300"))

    change_set = SnapshotDiffer().diff(old, new)

    assert [r.key for r in change_set.new] == ["C"]
    assert [r.key for r in change_set.updated] == ["B"]
    assert change_set.updated[0].amount == Decimal("250")
    assert change_set.deleted == ()
    assert change_set.total_changes == 2


def test_same_snapshot_yields_no_changes():
    records = snapshot(make_record("A", "100"), make_record("B", "200"))

    change_set = SnapshotDiffer().diff(records, records)

    assert change_set.is_empty()


def test_empty_previous_snapshot_marks_everything_new():
    new = snapshot(make_record("B", "1"), make_record("A", "2"))

    change_set = SnapshotDiffer().diff({}, new)

    assert [r.key for r in change_set.new] == ["A", "B"]
    assert not change_set.updated
    assert not change_set.deleted


def test_empty_current_snapshot_marks_everything_deleted():
    old = snapshot(make_record("A", "1"), make_record("B", "2"))

    change_set = SnapshotDiffer().diff(old, {})

    assert [r.key for r in change_set.deleted] == ["A", "B"]
    assert not change_set.new


def test_classification_is_disjoint_and_covers_all_keys():
    old = snapshot(make_record("A", "1"), make_record("B", "2"), make_record("D", "4"))
    new = snapshot(make_record("A", "1"), make_record("B", "3"), make_record("C", "5"))

    change_set = SnapshotDiffer().diff(old, new)

    new_keys, updated_keys, deleted_keys = (
        change_set.new_keys(),
        change_set.updated_keys(),
        change_set.deleted_keys(),
    )
    assert not (new_keys & updated_keys or new_keys & deleted_keys or updated_keys & deleted_keys)
    unchanged = {"A"}
    assert new_keys | updated_keys | deleted_keys | unchanged == set(old) | set(new)
    assert deleted_keys == {"D"}


def test_decimal_comparison_is_exact_by_value():
    old = snapshot(make_record("A", "100"), make_record("B", "100"))
    new = snapshot(make_record("A", "100.00"), make_record("B", "100.01"))

    change_set = SnapshotDiffer().diff(old, new)

    assert [r.key for r in change_set.updated] == ["B"]


def test_date_and_null_fields_are_compared():
    old = snapshot(
        make_record("A", "1", value_date=date(2024, 3, 1)),
        make_record("B", "1", counterparty=None),
    )
    new = snapshot(
        make_record("A", "1", value_date=date(2024, 3, 2)),
        make_record("B", "1", counterparty="ACME"),
    )

    change_set = SnapshotDiffer().diff(old, new)

    assert [r.key for r in change_set.updated] == ["A", "B"]


def test_audit_fields_are_ignored():
    old = snapshot(make_record("A", "1", modified_by="alice", last_modified=datetime(2024, 1, 1), version=1))
    new = snapshot(make_record("A", "1", modified_by="bob", last_modified=datetime(2024, 6, 1), version=7))

    assert SnapshotDiffer().diff(old, new).is_empty()


def test_changed_fields_lists_differences():
    old = make_record("A", "1")
    new = replace(old, amount=Decimal("2"), raw_label="BGI2024010000001")

    assert changed_fields(old, new) == ("amount", "raw_label")


def test_inputs_are_not_mutated():
    old = snapshot(make_record("A", "1"))
    new = snapshot(make_record("B", "2"))
    old_copy, new_copy = dict(old), dict(new)

    SnapshotDiffer().diff(old, new)

    assert old == old_copy
    assert new == new_copy


@pytest.mark.parametrize("bad_key", [None, "", "   "])
def test_null_or_blank_key_is_rejected(bad_key):
    record = replace(make_record("A", "1"), key=bad_key)

    with pytest.raises(InvalidInputError):
        SnapshotDiffer().diff({bad_key: record}, {})


def test_mapping_key_must_match_record_key():
    with pytest.raises(InvalidInputError):
        SnapshotDiffer().diff({}, {"A": make_record("B", "1")})


def test_index_snapshot_rejects_duplicates():
    with pytest.raises(InvalidInputError) as excinfo:
        index_snapshot([make_record("A", "1"), make_record("A", "2")])

    assert excinfo.value.key == "A"


def test_partitioned_diff_matches_single_threaded():
    old = snapshot(*(make_record(f"K{i:04d}", str(i)) for i in range(0, 300)))
    new = snapshot(*(make_record(f"K{i:04d}", str(i if i % 7 else i + 1)) for i in range(50, 400)))

    serial = SnapshotDiffer().diff(old, new)
    parallel = SnapshotDiffer(workers=4, parallel_threshold=10).diff(old, new)

    assert parallel == serial
    assert [r.key for r in parallel.new] == sorted(r.key for r in parallel.new)
