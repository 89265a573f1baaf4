"""
Unit tests for the in-memory stores and the upsert planner.
"""

from datetime import datetime, timezone

import pytest

from golden_layer.core.exceptions import InvariantViolation
from golden_layer.core.models import ConformedRecord
from golden_layer.warehouse.upsert import plan_upsert

MODIFIED = datetime(2025, 1, 15, 6, 0, tzinfo=timezone.utc)


def _record(key, native_id, row_hash="a", entity_type="asset", **attributes):
    return ConformedRecord(
        entity_type=entity_type,
        enterprise_key=key,
        attributes=attributes,
        source_native_id=native_id,
        source_system_id=3,
        raw_record_id=f"raw-{key}",
        source_modified_at=MODIFIED,
        row_hash=row_hash * 64,
    )


@pytest.mark.unit
class TestPlanUpsert:
    """Tests for change classification and binding checks"""

    def test_classifies_batch(self):
        existing = {
            "A-1": ("SAM-A-1", "a" * 64),
            "A-2": ("SAM-A-2", "a" * 64),
        }
        batch = [
            _record("A-1", "SAM-A-1", "a"),
            _record("A-2", "SAM-A-2", "b"),
            _record("A-3", "SAM-A-3", "a"),
        ]

        plan = plan_upsert("asset", batch, existing)

        assert [r.enterprise_key for r in plan.inserts] == ["A-3"]
        assert [r.enterprise_key for r in plan.updates] == ["A-2"]
        assert [r.enterprise_key for r in plan.unchanged] == ["A-1"]

    def test_wrong_entity_type(self):
        with pytest.raises(InvariantViolation, match="is a entity"):
            plan_upsert("asset", [_record("E-1", "SEM-E-1", entity_type="entity")], {})

    def test_double_binding_in_batch(self):
        with pytest.raises(InvariantViolation, match="bound to both"):
            plan_upsert("asset", [_record("A-1", "SAM-A-1"), _record("A-1", "SSM-A-1")], {})

    def test_same_binding_twice_keeps_last(self):
        plan = plan_upsert("asset", [_record("A-1", "SAM-A-1", "a"), _record("A-1", "SAM-A-1", "b")], {})
        assert [r.row_hash for r in plan.inserts] == ["b" * 64]

    def test_rebind_rejected(self):
        with pytest.raises(InvariantViolation, match="refusing to re-bind"):
            plan_upsert("asset", [_record("A-1", "SAM-A-9")], {"A-1": ("SAM-A-1", "a" * 64)})


@pytest.mark.unit
class TestInMemoryConformedStore:
    """Tests for InMemoryConformedStore"""

    def test_merge_counts(self, conformed_store):
        first = conformed_store.apply_batch("asset", [_record("A-2", "SAM-A-2"), _record("A-1", "SAM-A-1")])
        second = conformed_store.apply_batch("asset", [_record("A-1", "SAM-A-1"), _record("A-2", "SAM-A-2", "c")])

        assert (first.inserted, first.updated, first.unchanged) == (2, 0, 0)
        assert (second.inserted, second.updated, second.unchanged) == (0, 1, 1)
        assert [r.enterprise_key for r in conformed_store.list_records("asset")] == ["A-1", "A-2"]
        assert conformed_store.get("asset", "A-2").row_hash == "c" * 64

    def test_failed_batch_leaves_table_untouched(self, conformed_store):
        conformed_store.apply_batch("asset", [_record("A-1", "SAM-A-1")])

        with pytest.raises(InvariantViolation):
            conformed_store.apply_batch("asset", [_record("A-2", "SAM-A-2"), _record("A-1", "SAM-A-9")])

        assert conformed_store.count("asset") == 1
        assert not conformed_store.exists("asset", "A-2")

    def test_rebuild_replaces_entity(self, conformed_store):
        conformed_store.apply_batch("asset", [_record("A-1", "SAM-A-1"), _record("A-2", "SAM-A-2")])
        conformed_store.apply_batch("entity", [_record("E-1", "SEM-E-1", entity_type="entity")])

        result = conformed_store.apply_batch("asset", [_record("A-3", "SAM-A-3")], mode="REBUILD")

        assert (result.deleted, result.inserted) == (2, 1)
        assert [r.enterprise_key for r in conformed_store.list_records("asset")] == ["A-3"]
        assert conformed_store.count("entity") == 1

    def test_rebuild_allows_new_binding(self, conformed_store):
        conformed_store.apply_batch("asset", [_record("A-1", "SAM-A-1")])

        conformed_store.apply_batch("asset", [_record("A-1", "SAM-A-9")], mode="REBUILD")

        assert conformed_store.get("asset", "A-1").source_native_id == "SAM-A-9"

    def test_unknown_entity(self, conformed_store):
        assert conformed_store.get("asset", "A-1") is None
        assert conformed_store.list_records("asset") == []
        assert conformed_store.count("asset") == 0


@pytest.mark.unit
class TestInMemoryRawRecordSource:
    """Tests for InMemoryRawRecordSource"""

    def test_fetch_filters(self, raw_source, make_raw):
        raw_source.land([
            make_raw("src_enterprise_raw", {"a": "1"}, record_type="investment_team"),
            make_raw("src_enterprise_raw", {"a": "2"}, record_type="portfolio", batch_id="BATCH-002"),
            make_raw("src_asset_mgmt_raw", {"a": "3"}),
        ])

        assert len(raw_source.fetch("src_enterprise_raw")) == 2
        assert [r.payload["a"] for r in raw_source.fetch("src_enterprise_raw", "portfolio")] == ["2"]
        assert raw_source.fetch("src_enterprise_raw", batch_id="BATCH-001")[0].payload["a"] == "1"
        assert raw_source.fetch("src_unknown_raw") == []

    def test_duplicate_record_id(self, raw_source, make_raw):
        raw_source.land([make_raw("s", {}, record_id="r1")])
        with pytest.raises(ValueError, match="already landed"):
            raw_source.land([make_raw("s", {}, record_id="r1")])
