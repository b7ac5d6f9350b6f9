"""
Unit tests for KeyValueStore.
"""

from pathlib import Path

import orjson
import pytest

from mev_dashboard.persistence.store import KeyValueStore


class TestKeyValueStore:
    """Tests for KeyValueStore."""

    def test_in_memory_store(self) -> None:
        """Test get, set and delete without a backing file."""
        store = KeyValueStore()

        store.set("a", {"x": 1})

        assert store.get("a") == {"x": 1}
        assert "a" in store
        assert store.keys() == ["a"]
        assert store.path is None
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.get("a", "missing") == "missing"

    def test_write_through(self, tmp_path: Path) -> None:
        """Test that set persists immediately and survives reopening."""
        path = tmp_path / "nested" / "store.json"
        store = KeyValueStore(path)

        store.set("settings", {"gas_limit": 40})

        assert orjson.loads(path.read_bytes()) == {"settings": {"gas_limit": 40}}
        assert KeyValueStore(path).get("settings") == {"gas_limit": 40}

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """Test that the atomic write leaves only the target file."""
        path = tmp_path / "store.json"
        store = KeyValueStore(path)

        store.set("a", 1)
        store.set("b", 2)

        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]

    def test_corrupt_file_loads_empty(self, tmp_path: Path) -> None:
        """Test that an unreadable file is treated as empty."""
        path = tmp_path / "store.json"
        path.write_text("{not json")

        store = KeyValueStore(path)

        assert store.keys() == []

    def test_non_object_file_loads_empty(self, tmp_path: Path) -> None:
        """Test that a top-level array is ignored."""
        path = tmp_path / "store.json"
        path.write_bytes(orjson.dumps([1, 2, 3]))

        assert KeyValueStore(path).keys() == []

    def test_unserializable_value_rejected(self, tmp_path: Path) -> None:
        """Test that a bad value raises and leaves the store unchanged."""
        store = KeyValueStore(tmp_path / "store.json")

        with pytest.raises(TypeError):
            store.set("bad", object())

        assert "bad" not in store
        assert not (tmp_path / "store.json").exists()

    def test_delete_persists(self, tmp_path: Path) -> None:
        """Test that deleting a key is written through."""
        path = tmp_path / "store.json"
        store = KeyValueStore(path)
        store.set("a", 1)

        store.delete("a")

        assert KeyValueStore(path).keys() == []
