"""
Batching building blocks: test_batching_core.py

usage.py:
  - track_usage unions column names per table, idempotent
  - columns_for returns an empty frozenset for unseen tables
  - snapshot is read-only and copied on read
  - earlier snapshots keep their contents after later tracking

keys.py:
  - partition_columns keeps encounter order on both sides
  - build_group_key is deterministic
  - column order, key/non-key split and table all change the key
  - concatenation collisions are impossible
  - empty bindings raise ValueError

groups.py:
  - ensure creates once, returns the existing group afterwards
  - append returns the new size; unknown key raises KeyError
  - size_of / remove / __contains__ / __len__ / __bool__
  - key_at_size and any_key pick the oldest qualifying group
  - clear drops everything

diagnostics.py:
  - for_item copies the record position
  - log_diagnostic logs at the level for each kind
"""

from __future__ import annotations

import logging

import pytest

from sinkbatch.batching.diagnostics import DiagnosticEvent, DiagnosticKind, log_diagnostic
from sinkbatch.batching.groups import GroupStore
from sinkbatch.batching.keys import build_group_key, partition_columns
from sinkbatch.batching.usage import ColumnUsageTracker
from sinkbatch.models.models import BatchGroup
from tests.fixtures.oracle_mocks import item, row


# ============================================================================
# ColumnUsageTracker
# ============================================================================

class TestColumnUsageTracker:
    def test_track_usage_records_columns(self):
        tracker = ColumnUsageTracker()
        tracker.track_usage("T", row(("ID", 1), ("NAME", "a")))
        assert tracker.columns_for("T") == frozenset({"ID", "NAME"})

    def test_track_usage_unions_across_rows(self):
        tracker = ColumnUsageTracker()
        tracker.track_usage("T", row(("ID", 1)))
        tracker.track_usage("T", row(("EMAIL", "x@y")))
        assert tracker.columns_for("T") == frozenset({"ID", "EMAIL"})

    def test_track_usage_is_idempotent(self):
        tracker = ColumnUsageTracker()
        tracker.track_usage("T", row(("ID", 1)))
        tracker.track_usage("T", row(("ID", 2)))
        assert tracker.columns_for("T") == frozenset({"ID"})

    def test_tables_are_independent(self):
        tracker = ColumnUsageTracker()
        tracker.track_usage("A", row(("X", 1)))
        tracker.track_usage("B", row(("Y", 1)))
        assert tracker.columns_for("A") == frozenset({"X"})
        assert tracker.columns_for("B") == frozenset({"Y"})
        assert len(tracker) == 2

    def test_columns_for_unknown_table_is_empty(self):
        assert ColumnUsageTracker().columns_for("NOPE") == frozenset()

    def test_snapshot_is_read_only(self):
        tracker = ColumnUsageTracker()
        tracker.track_usage("T", row(("ID", 1)))
        snap = tracker.snapshot()
        with pytest.raises(TypeError):
            snap["T"] = frozenset()  # type: ignore[index]

    def test_snapshot_values_are_frozensets(self):
        tracker = ColumnUsageTracker()
        tracker.track_usage("T", row(("ID", 1)))
        assert isinstance(tracker.snapshot()["T"], frozenset)

    def test_earlier_snapshot_unchanged_by_later_tracking(self):
        tracker = ColumnUsageTracker()
        tracker.track_usage("T", row(("ID", 1)))
        before = tracker.snapshot()
        tracker.track_usage("T", row(("NAME", "a")))
        tracker.track_usage("U", row(("X", 1)))
        assert before == {"T": frozenset({"ID"})}
        assert tracker.snapshot()["T"] == frozenset({"ID", "NAME"})


# ============================================================================
# Group keys
# ============================================================================

class TestPartitionColumns:
    def test_splits_keys_from_non_keys(self):
        bindings = row(("ID", 1), ("NAME", "a"), ("EMAIL", "b"), keys=["ID"])
        assert partition_columns(bindings) == (["NAME", "EMAIL"], ["ID"])

    def test_preserves_order_on_both_sides(self):
        bindings = row(("K2", 1), ("B", 1), ("K1", 1), ("A", 1), keys=["K1", "K2"])
        assert partition_columns(bindings) == (["B", "A"], ["K2", "K1"])

    def test_no_keys(self):
        assert partition_columns(row(("A", 1))) == (["A"], [])


class TestBuildGroupKey:
    def test_format(self):
        bindings = row(("ID", 1), ("NAME", "a"), ("EMAIL", "b"), keys=["ID"])
        assert build_group_key("CONTACTS", bindings) == "CONTACTS|NAME,EMAIL|ID"

    def test_deterministic_regardless_of_values(self):
        a = build_group_key("T", row(("ID", 1), ("NAME", "a"), keys=["ID"]))
        b = build_group_key("T", row(("ID", 99), ("NAME", None), keys=["ID"]))
        assert a == b

    def test_column_order_changes_key(self):
        a = build_group_key("T", row(("A", 1), ("B", 2)))
        b = build_group_key("T", row(("B", 2), ("A", 1)))
        assert a != b

    def test_key_split_changes_key(self):
        a = build_group_key("T", row(("A", 1), ("B", 2), keys=["A"]))
        b = build_group_key("T", row(("A", 1), ("B", 2), keys=["B"]))
        c = build_group_key("T", row(("A", 1), ("B", 2)))
        assert len({a, b, c}) == 3

    def test_table_changes_key(self):
        bindings = row(("A", 1))
        assert build_group_key("T1", bindings) != build_group_key("T2", bindings)

    def test_no_concatenation_collision(self):
        a = build_group_key("T", row(("AB", 1), ("C", 1)))
        b = build_group_key("T", row(("A", 1), ("BC", 1)))
        assert a != b

    def test_empty_bindings_raise(self):
        with pytest.raises(ValueError, match="bindings are empty"):
            build_group_key("T", [])


# ============================================================================
# GroupStore
# ============================================================================

def _group(template: str = "SQL") -> BatchGroup:
    return BatchGroup(table_name="T", template=template)


class TestGroupStore:
    def test_ensure_creates_once(self):
        store = GroupStore()
        calls = []

        def factory():
            calls.append(1)
            return _group()

        first = store.ensure("k", factory)
        second = store.ensure("k", factory)
        assert first is second
        assert len(calls) == 1

    def test_append_returns_new_size(self):
        store = GroupStore()
        store.ensure("k", _group)
        assert store.append("k", row(("A", 1))) == 1
        assert store.append("k", row(("A", 2))) == 2
        assert store.size_of("k") == 2

    def test_append_unknown_key_raises(self):
        with pytest.raises(KeyError):
            GroupStore().append("missing", row(("A", 1)))

    def test_size_of_unknown_key_is_zero(self):
        assert GroupStore().size_of("missing") == 0

    def test_remove_detaches(self):
        store = GroupStore()
        store.ensure("k", _group)
        store.append("k", row(("A", 1)))
        group = store.remove("k")
        assert len(group) == 1
        assert "k" not in store
        assert not store

    def test_remove_unknown_key_raises(self):
        with pytest.raises(KeyError):
            GroupStore().remove("missing")

    def test_key_at_size_none_when_no_match(self):
        store = GroupStore()
        store.ensure("k", _group)
        store.append("k", row(("A", 1)))
        assert store.key_at_size(2) is None

    def test_key_at_size_picks_oldest(self):
        store = GroupStore()
        for key in ("first", "second"):
            store.ensure(key, _group)
            store.append(key, row(("A", 1)))
        assert store.key_at_size(1) == "first"

    def test_any_key_oldest_first(self):
        store = GroupStore()
        store.ensure("a", _group)
        store.ensure("b", _group)
        assert store.any_key() == "a"
        store.remove("a")
        assert store.any_key() == "b"

    def test_any_key_empty_store(self):
        assert GroupStore().any_key() is None

    def test_len_and_bool(self):
        store = GroupStore()
        assert len(store) == 0 and not store
        store.ensure("a", _group)
        assert len(store) == 1 and store

    def test_clear(self):
        store = GroupStore()
        store.ensure("a", _group)
        store.clear()
        assert not store


# ============================================================================
# Diagnostics
# ============================================================================

class TestDiagnostics:
    def test_for_item_copies_position(self):
        event = DiagnosticEvent.for_item(
            DiagnosticKind.UNMAPPED_ORIGIN, item("orders", {}, offset=7, partition=3), "msg"
        )
        assert (event.origin, event.partition, event.offset) == ("orders", 3, 7)
        assert event.kind is DiagnosticKind.UNMAPPED_ORIGIN

    @pytest.mark.parametrize(
        "kind, level",
        [
            (DiagnosticKind.UNMAPPED_ORIGIN, logging.WARNING),
            (DiagnosticKind.EMPTY_EXTRACTION, logging.DEBUG),
            (DiagnosticKind.MALFORMED_PAYLOAD, logging.ERROR),
        ],
    )
    def test_log_level_per_kind(self, caplog, kind, level):
        caplog.set_level(logging.DEBUG, logger="sinkbatch.batching.diagnostics")
        log_diagnostic(DiagnosticEvent(kind, "orders", 0, 1, "something happened"))
        assert caplog.records[-1].levelno == level
        assert "something happened" in caplog.records[-1].getMessage()
        assert "origin=orders" in caplog.records[-1].getMessage()

    def test_event_is_immutable(self):
        event = DiagnosticEvent(DiagnosticKind.EMPTY_EXTRACTION, "o", None, None, "m")
        with pytest.raises(AttributeError):
            event.origin = "x"  # type: ignore[misc]
