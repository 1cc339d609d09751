"""Unit tests for the local persistence adapter and its key-value stores."""

from typing import Any

import pytest

from devsketch.domain.exceptions import LocalStorageFailure
from devsketch.infrastructure.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    LocalDesignStorage,
)
from devsketch.infrastructure.storage.local_design_storage import (
    DRAWING_BACKUP_KEY,
    LAST_CODE_KEY,
    snapshot_key,
)


# ── Fakes ──


class BrokenKeyValueStore(KeyValueStore):
    """Every operation fails like a full or unavailable device store."""

    def get(self, key: str) -> Any | None:
        raise LocalStorageFailure(key, "storage unavailable")

    def set(self, key: str, value: Any) -> None:
        raise LocalStorageFailure(key, "storage quota exceeded")

    def delete(self, key: str) -> None:
        raise LocalStorageFailure(key, "storage unavailable")


class ExplodingKeyValueStore(BrokenKeyValueStore):
    def set(self, key: str, value: Any) -> None:
        raise RuntimeError("driver bug")


ELEMENTS = [{"id": "r1", "type": "rectangle", "width": 60, "height": 30}]


# ── Tests ──


def test_snapshot_is_stored_per_design_and_as_backup():
    store = InMemoryKeyValueStore()
    storage = LocalDesignStorage(store)

    assert storage.save_snapshot("d1", ELEMENTS) is True

    assert storage.load_snapshot("d1") == ELEMENTS
    assert storage.load_latest_snapshot() == ELEMENTS
    assert set(store.keys()) == {snapshot_key("d1"), DRAWING_BACKUP_KEY}


def test_code_without_design_only_updates_global_key():
    store = InMemoryKeyValueStore()
    storage = LocalDesignStorage(store)

    storage.save_code(None, "export default X;")

    assert storage.load_latest_code() == "export default X;"
    assert store.keys() == [LAST_CODE_KEY]


def test_code_is_namespaced_by_design():
    storage = LocalDesignStorage(InMemoryKeyValueStore())

    storage.save_code("d1", "one")
    storage.save_code("d2", "two")

    assert storage.load_code("d1") == "one"
    assert storage.load_code("d2") == "two"
    assert storage.load_latest_code() == "two"


def test_design_token_and_session_round_trip():
    storage = LocalDesignStorage(InMemoryKeyValueStore())

    storage.save_design_token("d1")
    storage.save_session_id("s1")

    assert storage.load_design_token() == "d1"
    assert storage.load_session_id() == "s1"


def test_session_falls_back_to_legacy_keys_in_order():
    store = InMemoryKeyValueStore()
    store.set("excalidraw_session", "old-session")
    store.set("older_session", "oldest-session")
    storage = LocalDesignStorage(store, legacy_session_keys=["missing", "excalidraw_session", "older_session"])

    assert storage.load_session_id() == "old-session"


@pytest.mark.parametrize("store", [BrokenKeyValueStore(), ExplodingKeyValueStore()])
def test_failures_never_escape_the_adapter(store):
    storage = LocalDesignStorage(store)

    assert storage.save_snapshot("d1", ELEMENTS) is False
    assert storage.save_code("d1", "code") is False
    assert storage.save_design_token("d1") is False
    assert storage.load_snapshot("d1") is None
    assert storage.load_latest_code() is None
    assert storage.load_session_id() is None


def test_quota_exceeded_is_a_noop():
    storage = LocalDesignStorage(InMemoryKeyValueStore(quota_bytes=64))
    storage.save_snapshot("d1", ELEMENTS[:0])

    huge = [{"id": str(i), "type": "text", "text": "x" * 50} for i in range(10)]
    assert storage.save_snapshot("d1", huge) is False

    assert storage.load_snapshot("d1") == []


def test_malformed_snapshot_is_ignored():
    store = InMemoryKeyValueStore()
    store.set(snapshot_key("d1"), "not a list")
    storage = LocalDesignStorage(store)

    assert storage.load_snapshot("d1") is None


def test_file_store_round_trip(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path / "local"))
    storage = LocalDesignStorage(store)

    storage.save_snapshot("local-abc", ELEMENTS)
    storage.save_code("local-abc", "export default X;")

    reopened = LocalDesignStorage(JsonFileKeyValueStore(str(tmp_path / "local")))
    assert reopened.load_snapshot("local-abc") == ELEMENTS
    assert reopened.load_code("local-abc") == "export default X;"
    assert not list((tmp_path / "local").glob("*.tmp"))


def test_file_store_reports_corrupt_values(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path))
    (tmp_path / "design_token.json").write_text("{not json", "utf-8")

    with pytest.raises(LocalStorageFailure):
        store.get("design_token")

    assert LocalDesignStorage(store).load_design_token() is None
