import json
import os
import stat
import sys

import pytest

from walletstore.local_storage import FileBackend, LocalStorage, MemoryBackend


def test_get_missing() -> None:
    assert LocalStorage().get_item("missing") is None


@pytest.mark.parametrize("value", (True, False, 0, 1, "text", [ 1, "a" ], { "a": [ 1 ] },
    None))
def test_set_get(value) -> None:
    storage = LocalStorage()
    storage.set_item("key", value)
    assert storage.get_item("key") == value


def test_values_are_json_encoded() -> None:
    backend = MemoryBackend()
    storage = LocalStorage(backend)
    storage.set_item("key", { "a": True })
    assert backend.get_item("key") == json.dumps({ "a": True })


def test_set_unserialisable() -> None:
    with pytest.raises(TypeError):
        LocalStorage().set_item("key", object())


def test_repair_raw_string() -> None:
    backend = MemoryBackend({ "localstorage:server": "https://node.example/v1a/" })
    storage = LocalStorage(backend)
    assert storage.get_item("localstorage:server") == "https://node.example/v1a/"
    assert backend.get_item("localstorage:server") == '"https://node.example/v1a/"'
    # Repaired values read back the same.
    assert storage.get_item("localstorage:server") == "https://node.example/v1a/"


def test_remove_items() -> None:
    storage = LocalStorage()
    for key in ("a", "b", "c"):
        storage.set_item(key, key)
    storage.remove_item("a")
    storage.remove_item("not present")
    assert sorted(storage.keys()) == [ "b", "c" ]
    storage.remove_items([ "b", "c" ])
    assert storage.keys() == []


def test_clear() -> None:
    storage = LocalStorage()
    storage.set_item("a", 1)
    storage.clear()
    assert storage.keys() == []


def test_file_backend_persists(tmp_path) -> None:
    path = os.path.join(tmp_path, "localstorage.json")
    storage = LocalStorage.from_path(path)
    storage.set_item("wallet:id", "abc")
    storage.set_item("localstorage:lock", False)

    reopened = LocalStorage.from_path(path)
    assert reopened.get_item("wallet:id") == "abc"
    assert reopened.get_item("localstorage:lock") is False

    reopened.remove_item("wallet:id")
    assert LocalStorage.from_path(path).get_item("wallet:id") is None


def test_file_backend_clear(tmp_path) -> None:
    path = os.path.join(tmp_path, "localstorage.json")
    storage = LocalStorage.from_path(path)
    storage.set_item("a", 1)
    storage.clear()
    assert LocalStorage.from_path(path).keys() == []


def test_file_backend_repair_is_persisted(tmp_path) -> None:
    path = os.path.join(tmp_path, "localstorage.json")
    with open(path, "w") as f:
        json.dump({ "localstorage:network": "testnet" }, f)

    assert LocalStorage.from_path(path).get_item("localstorage:network") == "testnet"
    with open(path, "r") as f:
        assert json.load(f) == { "localstorage:network": '"testnet"' }


def test_file_backend_no_temporary_files(tmp_path) -> None:
    path = os.path.join(tmp_path, "localstorage.json")
    LocalStorage.from_path(path).set_item("a", 1)
    assert os.listdir(tmp_path) == [ "localstorage.json" ]
    assert FileBackend(path).get_path() == path


@pytest.mark.skipif(sys.platform == "win32", reason="posix permissions")
def test_file_backend_owner_only(tmp_path) -> None:
    path = os.path.join(tmp_path, "localstorage.json")
    LocalStorage.from_path(path).set_item("a", 1)
    mode = stat.S_IMODE(os.stat(path).st_mode)
    assert mode == stat.S_IREAD | stat.S_IWRITE


def test_file_backend_invalid_document(tmp_path) -> None:
    path = os.path.join(tmp_path, "localstorage.json")
    with open(path, "w") as f:
        json.dump([ 1, 2 ], f)
    with pytest.raises(IOError):
        LocalStorage.from_path(path)


@pytest.mark.skipif(sys.platform == "win32", reason="posix permissions")
def test_file_backend_temporary_file_owner_only(tmp_path, monkeypatch) -> None:
    path = os.path.join(tmp_path, "localstorage.json")
    temporary_modes = []
    original_replace = os.replace

    def _replace(source_path: str, destination_path: str) -> None:
        temporary_modes.append(stat.S_IMODE(os.stat(source_path).st_mode))
        original_replace(source_path, destination_path)

    monkeypatch.setattr(os, "replace", _replace)
    storage = LocalStorage.from_path(path)
    storage.set_item("wallet:accessData", { "mainKey": "ciphertext" })
    storage.set_item("a", 1)
    assert temporary_modes == [ stat.S_IREAD | stat.S_IWRITE ] * 2
