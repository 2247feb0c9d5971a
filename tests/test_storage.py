from __future__ import annotations

import json

import pytest

from sharing.exceptions import StorageUnavailable
from sharing.storage import JSONStorage


def _temp_files(directory):
    return [path for path in directory.iterdir() if path.suffix == ".tmp"]


def test_load_missing_resource(tmp_path):
    storage = JSONStorage(tmp_path / "data")
    assert storage.load("expenses.json") == []
    with pytest.raises(StorageUnavailable):
        storage.load("expenses.json", missing_ok=False)


def test_save_and_load(tmp_path):
    storage = JSONStorage(tmp_path)
    storage.save("expenses.json", [{"id": 1, "payer": "Zoë"}])

    assert storage.load("expenses.json") == [{"id": 1, "payer": "Zoë"}]
    assert _temp_files(tmp_path) == []


def test_non_list_payload_rejected(tmp_path):
    (tmp_path / "expenses.json").write_text(json.dumps({"id": 1}), encoding="utf-8")
    with pytest.raises(StorageUnavailable):
        JSONStorage(tmp_path).load("expenses.json")


def test_failed_write_keeps_previous_file(tmp_path):
    storage = JSONStorage(tmp_path)
    storage.save("expenses.json", [{"id": 1}])

    with pytest.raises(StorageUnavailable):
        storage.save("expenses.json", [{"id": 2, "amount": object()}])

    assert storage.load("expenses.json") == [{"id": 1}]
    assert _temp_files(tmp_path) == []


def test_seed_storage_does_not_create_directory(tmp_path):
    JSONStorage(tmp_path / "seeds", create=False)
    assert not (tmp_path / "seeds").exists()


def test_interleaved_writers_never_expose_partial_file(tmp_path, monkeypatch):
    storage = JSONStorage(tmp_path)
    storage.save("expenses.json", [{"id": "initial"}])
    real_dump = json.dump
    calls = []

    def slow_dump(obj, handle, **kwargs):
        calls.append(obj)
        if len(calls) == 1:
            # Writer B stalls half way while writer A completes its save.
            handle.write('[{"id": "b-partial"')
            handle.flush()
            storage.save("expenses.json", [{"id": "a"}])
            assert storage.load("expenses.json") == [{"id": "a"}]
            handle.seek(0)
            handle.truncate()
        real_dump(obj, handle, **kwargs)

    monkeypatch.setattr(json, "dump", slow_dump)
    storage.save("expenses.json", [{"id": "b"}])

    assert storage.load("expenses.json") == [{"id": "b"}]
    assert _temp_files(tmp_path) == []
