"""Tests for fraud ring persistence."""

import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from lunar_graph.common.config import Config, RingStoreType
from lunar_graph.common.exceptions import RingStoreError
from lunar_graph.detection.rings.schema import FraudRing, FraudRingType, RingStatus
from lunar_graph.detection.rings.store import (
    FileFraudRingStore,
    InMemoryFraudRingStore,
    create_ring_store,
)
from lunar_graph.detection.severity import Severity


T0 = datetime(2026, 1, 25, 14, 30, tzinfo=timezone.utc)


def _ring(ring_id, entities, minutes=0, ring_type=FraudRingType.MULTI_ACCOUNT):
    return FraudRing(
        id=ring_id,
        name="Multi Account Ring",
        type=ring_type,
        severity=Severity.HIGH,
        confidence=70,
        entities=entities,
        created_at=T0 + timedelta(minutes=minutes),
        updated_at=T0 + timedelta(minutes=minutes),
    )


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryFraudRingStore()
    return FileFraudRingStore(str(tmp_path / "rings"))


class TestFraudRingSchema:
    def test_entities_sorted_and_unique(self):
        ring = _ring("r1", ["client_c", "client_a", "client_c"])
        assert ring.entities == ["client_a", "client_c"]

    def test_to_dict_camel_case(self):
        data = _ring("r1", ["client_a"]).to_dict()
        assert data["createdAt"].startswith("2026-01-25T14:30:00")
        assert data["type"] == "multi_account"
        assert data["status"] == "active"

    def test_rejects_empty_entities(self):
        with pytest.raises(ValueError):
            _ring("r1", [])

    def test_dedup_key(self):
        ring = _ring("r1", ["d", "c", "b", "a"])
        assert ring.dedup_key() == ["a", "b", "c"]


class TestFraudRingStore:
    """Behavior shared by every backend."""

    def test_save_and_list(self, store):
        assert store.save_if_new(_ring("r1", ["client_a", "client_b"])) is True
        assert [r.id for r in store.list_active()] == ["r1"]
        assert store.get("r1").entities == ["client_a", "client_b"]
        assert store.get("missing") is None

    def test_duplicate_leading_entities_skipped(self, store):
        store.save_if_new(_ring("r1", ["client_a", "client_b", "client_c", "client_d"]))
        duplicate = _ring("r2", ["client_a", "client_b", "client_c", "client_z"])
        assert store.save_if_new(duplicate) is False
        assert [r.id for r in store.list_active()] == ["r1"]

    def test_partial_overlap_is_new(self, store):
        store.save_if_new(_ring("r1", ["client_a", "client_b"]))
        assert store.save_if_new(_ring("r2", ["client_a", "client_c"])) is True

    def test_resolved_ring_does_not_block(self, store):
        store.save_if_new(_ring("r1", ["client_a", "client_b"]))
        store.update_status("r1", RingStatus.RESOLVED)
        assert store.save_if_new(_ring("r2", ["client_a", "client_b"])) is True

    def test_list_active_newest_first_with_limit(self, store):
        store.save_if_new(_ring("old", ["client_a", "client_b"], minutes=0))
        store.save_if_new(_ring("new", ["client_c", "client_d"], minutes=5))
        store.save_if_new(_ring("mid", ["client_e", "client_f"], minutes=2))

        assert [r.id for r in store.list_active()] == ["new", "mid", "old"]
        assert [r.id for r in store.list_active(limit=1)] == ["new"]

    def test_list_active_excludes_inactive(self, store):
        store.save_if_new(_ring("r1", ["client_a", "client_b"]))
        store.save_if_new(_ring("r2", ["client_c", "client_d"]))
        store.update_status("r2", RingStatus.FALSE_POSITIVE)
        assert [r.id for r in store.list_active()] == ["r1"]

    def test_update_status(self, store):
        store.save_if_new(_ring("r1", ["client_a", "client_b"]))
        updated = store.update_status("r1", "investigating")
        assert updated.status == RingStatus.INVESTIGATING
        assert updated.updated_at > T0
        assert store.get("r1").status == RingStatus.INVESTIGATING

    def test_update_status_unknown_ring(self, store):
        with pytest.raises(RingStoreError):
            store.update_status("missing", RingStatus.RESOLVED)

    def test_find_active_overlapping(self, store):
        store.save_if_new(_ring("r1", ["client_a", "client_b", "client_c"]))
        assert store.find_active_overlapping(["client_a", "client_c"]).id == "r1"
        assert store.find_active_overlapping(["client_a", "client_z"]) is None

    def test_clear(self, store):
        store.save_if_new(_ring("r1", ["client_a", "client_b"]))
        store.clear()
        assert store.list_active() == []

    def test_concurrent_duplicates_insert_once(self, store):
        results = []

        def save(index):
            results.append(store.save_if_new(_ring(f"r{index}", ["client_a", "client_b", "client_c"])))

        threads = [threading.Thread(target=save, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert len(store.list_active()) == 1


class TestFileFraudRingStore:
    """File backend specifics."""

    def test_survives_reopen(self, tmp_path):
        FileFraudRingStore(str(tmp_path)).save_if_new(_ring("r1", ["client_a", "client_b"]))
        reopened = FileFraudRingStore(str(tmp_path))
        assert [r.id for r in reopened.list_active()] == ["r1"]

    def test_file_is_camel_case_json(self, tmp_path):
        store = FileFraudRingStore(str(tmp_path))
        store.save_if_new(_ring("r1", ["client_a", "client_b"]))
        payload = json.loads(store.path.read_text())
        assert payload[0]["id"] == "r1"
        assert "createdAt" in payload[0]

    def test_no_temp_files_left(self, tmp_path):
        store = FileFraudRingStore(str(tmp_path))
        store.save_if_new(_ring("r1", ["client_a", "client_b"]))
        assert list(tmp_path.glob("*.tmp")) == []

    def test_malformed_ring_skipped(self, tmp_path, caplog):
        store = FileFraudRingStore(str(tmp_path))
        store.save_if_new(_ring("r1", ["client_a", "client_b"]))
        payload = json.loads(store.path.read_text())
        payload.append({"id": "broken"})
        store.path.write_text(json.dumps(payload))

        with caplog.at_level("WARNING"):
            rings = store.list_active()
        assert [r.id for r in rings] == ["r1"]
        assert "malformed" in caplog.text

    def test_corrupt_file_raises(self, tmp_path):
        store = FileFraudRingStore(str(tmp_path))
        store.path.write_text("{not json")
        with pytest.raises(RingStoreError):
            store.list_active()


class TestCreateRingStore:
    def test_memory_default(self):
        config = Config(ring_store_type=RingStoreType.MEMORY)
        assert isinstance(create_ring_store(config), InMemoryFraudRingStore)

    def test_file_backend(self, tmp_path):
        config = Config(ring_store_type=RingStoreType.FILE, ring_store_dir=tmp_path)
        store = create_ring_store(config)
        assert isinstance(store, FileFraudRingStore)
        assert store.store_dir == tmp_path
