"""
In-memory collection table.

Holds the live records for every collection. Not thread-safe on its own;
the store engine only touches it while holding the store lock.
"""

import copy
from typing import Iterator, Optional

from src.models.record import ID_FIELD, Collection, Record, Snapshot
from src.services.storage.interface import NotFoundError


class CollectionTable:
    """Mapping from collection name to an ordered list of records."""

    def __init__(self, collections: Optional[dict[str, list[Record]]] = None):
        self._collections: dict[str, list[Record]] = {
            name.value: [] for name in Collection
        }
        for name, records in (collections or {}).items():
            self._collections[name] = list(records)

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "CollectionTable":
        return cls(snapshot.collections())

    def to_collections(self) -> dict[str, list[Record]]:
        """Deep copy of every collection, detached from the live table."""
        return copy.deepcopy(self._collections)

    def records(self, collection: str) -> list[Record]:
        """The live list for a collection. Callers must not leak it."""
        try:
            return self._collections[collection]
        except KeyError:
            raise NotFoundError(collection) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._collections)

    def counts(self) -> dict[str, int]:
        return {name: len(records) for name, records in self._collections.items()}

    def index_of(self, collection: str, record_id: str) -> Optional[int]:
        for idx, record in enumerate(self.records(collection)):
            if record.get(ID_FIELD) == record_id:
                return idx
        return None

    def find(self, collection: str, record_id: str) -> Optional[Record]:
        idx = self.index_of(collection, record_id)
        if idx is None:
            return None
        return self._collections[collection][idx]

    def contains_id(self, collection: str, record_id: str) -> bool:
        return self.index_of(collection, record_id) is not None

    def append(self, collection: str, record: Record) -> None:
        self.records(collection).append(record)

    def replace(self, collection: str, record: Record) -> None:
        idx = self.index_of(collection, record[ID_FIELD])
        if idx is None:
            raise NotFoundError(collection, record[ID_FIELD])
        self._collections[collection][idx] = record

    def remove(self, collection: str, record_id: str) -> Optional[Record]:
        idx = self.index_of(collection, record_id)
        if idx is None:
            return None
        return self._collections[collection].pop(idx)
