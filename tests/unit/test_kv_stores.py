"""
Unit tests for KeyValuePort adapters.

Both adapters run the same contract tests.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from streamqa.adapters.memory_kv import InMemoryKeyValueStore
from streamqa.adapters.sqlite_kv import SQLiteKeyValueStore
from streamqa.core.ports.storage import NotAnIntegerError, StorageError


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryKeyValueStore()
    return SQLiteKeyValueStore(str(tmp_path / "nested" / "kv.db"))


class TestKeyValueContract:
    def test_get_missing(self, store) -> None:
        assert store.get("nope") is None

    def test_set_and_overwrite(self, store) -> None:
        store.set("k", "v1")
        store.set("k", "v2")
        assert store.get("k") == "v2"

    def test_incr_from_missing(self, store) -> None:
        assert store.incr("counter") == 1
        assert store.incr("counter", 5) == 6
        assert store.get("counter") == "6"

    def test_incr_non_integer(self, store) -> None:
        store.set("k", "hello")
        with pytest.raises(NotAnIntegerError) as exc_info:
            store.incr("k")
        assert isinstance(exc_info.value, StorageError)
        assert store.get("k") == "hello"

    def test_scan_prefix(self, store) -> None:
        store.set("guest_payments:a:s1", "1")
        store.set("guest_payments:b:s1", "2")
        store.set("session:s1", "3")
        store.set("Guest_payments:c:s1", "4")

        assert sorted(store.scan("guest_payments:")) == [
            "guest_payments:a:s1",
            "guest_payments:b:s1",
        ]

    def test_scan_treats_wildcards_literally(self, store) -> None:
        store.set("a_b", "1")
        store.set("axb", "2")
        store.set("a%c", "3")
        assert store.scan("a_") == ["a_b"]
        assert store.scan("a%") == ["a%c"]

    def test_concurrent_incr(self, store) -> None:
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: store.incr("hits"), range(100)))
        assert store.get("hits") == "100"


class TestSQLitePersistence:
    def test_survives_new_instance(self, tmp_path) -> None:
        db_path = str(tmp_path / "kv.db")
        SQLiteKeyValueStore(db_path).set("k", "v")
        assert SQLiteKeyValueStore(db_path).get("k") == "v"
