from __future__ import annotations

from pathlib import Path

import pytest

from useradmin.storage import LocalStorage, resolve_storage_path


def test_items_survive_reopening(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "storage.sqlite3"
    LocalStorage(path).set_item("token", "abc")

    reopened = LocalStorage(path)
    assert reopened.get_item("token") == "abc"
    assert reopened.keys() == ["token"]


def test_set_item_overwrites_and_remove_reports_presence(storage: LocalStorage) -> None:
    storage.set_item("email", "first@example.com")
    storage.set_item("email", "second@example.com")
    assert storage.get_item("email") == "second@example.com"

    assert storage.remove_item("email") is True
    assert storage.remove_item("email") is False
    assert storage.get_item("email") is None


def test_empty_key_is_rejected(storage: LocalStorage) -> None:
    with pytest.raises(ValueError):
        storage.set_item("", "value")


def test_clear_removes_everything(storage: LocalStorage) -> None:
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    storage.clear()
    assert storage.keys() == []


def test_resolve_storage_path_prefers_explicit_value(tmp_path: Path) -> None:
    explicit = tmp_path / "custom.sqlite3"
    assert resolve_storage_path(str(explicit)) == explicit.resolve()
    assert resolve_storage_path(None).name == "useradmin.sqlite3"
