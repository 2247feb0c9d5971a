"""File-backed Record Store: named JSON collections with seed-based reset."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

from .exceptions import RecordNotFoundError, SeedUnavailable, StorageUnavailable
from .models import RecordId
from .storage import JSONStorage


def _same_id(left: object, right: object) -> bool:
    # Route parameters arrive as text while seed ids may be integers.
    return str(left) == str(right)


class FileRecordStore:
    """Owns read/write access to JSON collections stored under one directory.

    Every mutation is a full read -> modify -> overwrite of the collection.
    No lock is held across that sequence, so two concurrent writers race and
    the last complete write wins.
    """

    def __init__(self, storage: JSONStorage, seeds: JSONStorage) -> None:
        self._storage = storage
        self._seeds = seeds

    def list_all(self, collection: str) -> List[Dict[str, Any]]:
        return self._storage.load(self._resource(collection))

    def get(self, collection: str, record_id: RecordId) -> Dict[str, Any]:
        for record in self.list_all(collection):
            if _same_id(record.get("id"), record_id):
                return record
        raise RecordNotFoundError(f"{collection} record {record_id} not found")

    def create(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        records = self.list_all(collection)
        stored = dict(record)
        if stored.get("id") is None:
            stored = {"id": str(uuid4()), **{k: v for k, v in record.items() if k != "id"}}
        records.append(stored)
        self._storage.save(self._resource(collection), records)
        return stored

    def delete_by_id(self, collection: str, record_id: RecordId) -> bool:
        records = self.list_all(collection)
        index = self._index_of(records, record_id)
        if index is None:
            return False
        # Only the first match goes, even when the file holds duplicate ids.
        del records[index]
        self._storage.save(self._resource(collection), records)
        return True

    def reset(self, collection: str) -> List[Dict[str, Any]]:
        resource = self._resource(collection)
        try:
            seed = self._seeds.load(resource, missing_ok=False)
        except StorageUnavailable as exc:
            raise SeedUnavailable(f"Seed data for {collection} is unavailable") from exc
        self._storage.save(resource, seed)
        return seed

    @staticmethod
    def _resource(collection: str) -> str:
        return f"{collection}.json"

    @staticmethod
    def _index_of(records: List[Dict[str, Any]], record_id: RecordId) -> Optional[int]:
        for index, record in enumerate(records):
            if _same_id(record.get("id"), record_id):
                return index
        return None
