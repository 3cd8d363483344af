"""Tests for the key-value store backends and typed readers."""

import json

import pytest
from filelock import FileLock

from ContentRouter.errors import StoreError
from ContentRouter.store import (
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    atomic_write,
    get_bool,
    get_int,
    get_str,
)


def test_backends_satisfy_protocol(tmp_path):
    assert isinstance(InMemoryStore(), KeyValueStore)
    assert isinstance(JsonFileStore(tmp_path / "state.json"), KeyValueStore)


class TestTypedReaders:
    def test_absent_keys(self):
        store = InMemoryStore()
        assert get_str(store, "k") is None
        assert get_bool(store, "k") is False
        assert get_int(store, "k") == 0

    def test_only_true_reads_as_set(self):
        store = InMemoryStore({"a": True, "b": "true", "c": 1})
        assert get_bool(store, "a")
        assert not get_bool(store, "b")
        assert not get_bool(store, "c")

    def test_bool_is_not_an_int(self):
        store = InMemoryStore({"count": True})
        assert get_int(store, "count") == 0

    def test_wrong_type_reads_as_absent(self):
        store = InMemoryStore({"url": 5})
        assert get_str(store, "url") is None


class TestJsonFileStore:
    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "missing.json")
        assert store.snapshot() == {}

    def test_set_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        JsonFileStore(path).set("primary_mode_shown", True)
        reopened = JsonFileStore(path)
        assert reopened.get("primary_mode_shown") is True
        assert json.loads(path.read_text()) == {"primary_mode_shown": True}

    def test_overwrite(self, tmp_path):
        store = JsonFileStore(tmp_path / "state.json")
        store.set("enhanced_access_count", 1)
        store.set("enhanced_access_count", 2)
        assert JsonFileStore(store.path).get("enhanced_access_count") == 2

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json")
        with pytest.raises(StoreError):
            JsonFileStore(path)

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2]")
        with pytest.raises(StoreError, match="JSON object"):
            JsonFileStore(path)

    def test_unsupported_values_skipped(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"ok": "x", "bad": [1], "none": None}))
        assert JsonFileStore(path).snapshot() == {"ok": "x"}

    def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileStore(tmp_path / "state.json")
        store.set("a", "b")
        assert sorted(p.name for p in tmp_path.iterdir() if p.suffix != ".lock") == ["state.json"]

    def test_writes_merge_with_other_instances(self, tmp_path):
        path = tmp_path / "state.json"
        launcher = JsonFileStore(path)
        other = JsonFileStore(path)
        other.set("dropbox_failed_once", True)
        launcher.set("enhanced_access_count", 1)

        reopened = JsonFileStore(path)
        assert reopened.get("dropbox_failed_once") is True
        assert reopened.get("enhanced_access_count") == 1
        assert launcher.get("dropbox_failed_once") is True

    def test_lock_timeout_raises_store_error(self, tmp_path):
        path = tmp_path / "state.json"
        store = JsonFileStore(path, lock_timeout_s=0.05)
        with FileLock(str(store.lock_path)):
            with pytest.raises(StoreError, match="Timed out"):
                store.set("a", "b")
        assert not path.exists()


def test_atomic_write_keeps_original_on_failure(tmp_path):
    target = tmp_path / "state.json"
    target.write_text("original")
    with pytest.raises(RuntimeError):
        with atomic_write(target) as handle:
            handle.write("partial")
            raise RuntimeError("boom")
    assert target.read_text() == "original"
    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]
