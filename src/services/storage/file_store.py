"""
Embedded File-Backed Collection Store

DESIGN DECISION: When no external database is available, users,
transactions and categories live in a single JSON snapshot file:
1. The whole store is loaded into memory on open
2. Every mutation rewrites the whole file (write temp file, then rename)
3. The file is re-read whenever it may have changed underneath us
   (hand edits by an operator, the background refresh)

CONSISTENCY:
Every public operation runs inside ONE store-wide lock covering
ensure-fresh -> mutate -> persist. Two writers can never both reload
the same stale table and overwrite each other's change. Reads take
the same lock, so operations are linearizable.

FAILURES:
- Reload I/O or parse failure -> StoreUnavailableError, the last good
  in-memory table stays active and the store stays stale
- Write failure -> PersistFailedError, the mutation is kept in memory.
  Reads keep serving it, the next write or refresh retries the save,
  and nothing is reloaded until it is on disk
- Any failure while opening -> StoreUnavailableError (corrupt files
  excepted, which raise SnapshotDecodeError)

TRADEOFFS:
- Whole-file rewrites are fine for a personal finance dataset, not more
- One lock for everything: low throughput, trivially correct
"""

import contextlib
import copy
import os
import tempfile
import threading
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.audit import AuditLogger
from src.models.record import (
    CREATED_AT_FIELD,
    DEFAULT_CATEGORIES,
    ID_FIELD,
    RECORD_FIELDS_ADAPTER,
    UPDATED_AT_FIELD,
    Collection,
    Record,
    contains_non_finite,
    default_records,
    utc_timestamp,
)
from src.services.auth.passwords import hash_password
from src.services.storage import codec
from src.services.storage.interface import (
    CollectionStoreInterface,
    InvalidRecordError,
    NotFoundError,
    PersistFailedError,
    RecordList,
    RecordPredicate,
    SnapshotDecodeError,
    StoreUnavailableError,
)
from src.services.storage.rules import (
    PasswordHasher,
    RecordRules,
    build_rules,
)
from src.services.storage.table import CollectionTable


PathLike = Union[str, os.PathLike]
FileSignature = Optional[tuple[int, int]]

# Fields the store owns; callers cannot set them
MANAGED_FIELDS = (ID_FIELD, CREATED_AT_FIELD, UPDATED_AT_FIELD)


def _file_signature(path: Path) -> FileSignature:
    """(mtime_ns, size) of the snapshot, or None if it is missing."""
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return None
    return (st.st_mtime_ns, st.st_size)


def _read_file(path: Path) -> bytes:
    return path.read_bytes()


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    retry=retry_if_exception_type(OSError) & retry_if_not_exception_type(FileNotFoundError),
    reraise=True,
)
def _read_file_at_startup(path: Path) -> bytes:
    """Startup read; transient I/O errors are retried before giving up."""
    return _read_file(path)


def _atomic_write(path: Path, data: bytes) -> None:
    """Write data to a temp file in the same directory, then rename over path."""
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=path.parent,
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


def restore_defaults(table: CollectionTable) -> list[str]:
    """
    Re-insert any default category missing from the table.

    Missing rows go to the front, in seed order.

    Returns:
        Identifiers of the rows that were re-inserted
    """
    categories = table.records(Collection.CATEGORIES.value)
    missing = [
        dict(row) for row in DEFAULT_CATEGORIES
        if not table.contains_id(Collection.CATEGORIES.value, row[ID_FIELD])
    ]
    categories[:0] = missing
    return [row[ID_FIELD] for row in missing]


class FileCollectionStore(CollectionStoreInterface):
    """
    Collection store persisted to a single JSON snapshot file.

    Use FileCollectionStore.open(path) rather than the constructor.
    """

    def __init__(
        self,
        path: Path,
        password_hasher: Optional[PasswordHasher] = None,
        audit_logger: Optional[AuditLogger] = None,
        watch_external_changes: bool = True,
    ):
        self._path = path
        self._lock = threading.Lock()
        self._table = CollectionTable(default_records())
        self._rules = build_rules(password_hasher or hash_password)
        self._base_rules = RecordRules()
        self._audit = audit_logger or AuditLogger()
        self._watch = watch_external_changes

        # Staleness and durability state, guarded by _lock
        self._stale = False
        self._dirty = False
        self._signature: FileSignature = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @classmethod
    def open(
        cls,
        path: PathLike,
        password_hasher: Optional[PasswordHasher] = None,
        audit_logger: Optional[AuditLogger] = None,
        watch_external_changes: bool = True,
    ) -> "FileCollectionStore":
        """
        Open the store at path, creating a seeded snapshot if absent.

        Raises:
            SnapshotDecodeError: If the existing snapshot is corrupt
            StoreUnavailableError: If the snapshot cannot be read or created
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(
                f"Cannot create snapshot directory {path.parent}: {e}"
            ) from e

        store = cls(
            path,
            password_hasher=password_hasher,
            audit_logger=audit_logger,
            watch_external_changes=watch_external_changes,
        )
        with store._lock:
            store._initial_load_locked()
        return store

    @property
    def path(self) -> Path:
        return self._path

    def _initial_load_locked(self) -> None:
        signature = _file_signature(self._path)
        try:
            data = _read_file_at_startup(self._path)
        except FileNotFoundError:
            self._table = CollectionTable(default_records())
            try:
                self._persist_locked()
            except PersistFailedError as e:
                raise StoreUnavailableError(
                    f"Cannot create snapshot at {self._path}: {e}"
                ) from e
            self._audit.log_snapshot_created(str(self._path))
            return
        except OSError as e:
            raise StoreUnavailableError(
                f"Cannot read snapshot at {self._path}: {e}"
            ) from e

        snapshot = codec.decode(data, path=str(self._path))
        try:
            self._install_locked(CollectionTable.from_snapshot(snapshot), signature)
        except PersistFailedError as e:
            raise StoreUnavailableError(
                f"Cannot restore defaults in {self._path}: {e}"
            ) from e
        self._audit.log_snapshot_loaded(str(self._path), self._table.counts())

    def _install_locked(self, table: CollectionTable, signature: FileSignature) -> None:
        """Swap in a freshly loaded table, restoring defaults if needed."""
        restored = restore_defaults(table)
        self._table = table
        self._signature = signature
        self._stale = False
        if restored:
            self._audit.log_defaults_restored(restored)
            self._persist_locked()

    # =========================================================================
    # FRESHNESS
    # =========================================================================

    def mark_stale(self) -> None:
        """Signal that the snapshot may have been changed externally."""
        with self._lock:
            self._stale = True

    def ensure_fresh(self, force: bool = False) -> bool:
        """
        Reload the snapshot if the in-memory table may be stale.

        Args:
            force: Reload even if nothing indicates a change

        Returns:
            True if the snapshot was reloaded

        Raises:
            StoreUnavailableError: If the reload failed
            PersistFailedError: If retained mutations could not be flushed
        """
        with self._lock:
            return self._ensure_fresh_locked(force)

    def _is_stale_locked(self) -> bool:
        if self._stale:
            return True
        return self._watch and _file_signature(self._path) != self._signature

    def _ensure_fresh_locked(self, force: bool = False, retry_flush: bool = True) -> bool:
        if self._dirty:
            # Unsaved mutations win over whatever is on disk; reads serve
            # them from memory, writes and explicit refreshes retry the save
            if retry_flush:
                self._persist_locked()
            return False
        if force or self._is_stale_locked():
            self._reload_locked()
            return True
        return False

    def _reload_locked(self) -> None:
        signature = _file_signature(self._path)
        try:
            data = _read_file(self._path)
        except FileNotFoundError:
            # Snapshot was removed; recreate it from memory
            self._persist_locked()
            self._stale = False
            return
        except OSError as e:
            self._stale = True
            self._audit.log_reload_failed(str(self._path), str(e))
            raise StoreUnavailableError(
                f"Cannot reload snapshot at {self._path}: {e}"
            ) from e

        try:
            snapshot = codec.decode(data, path=str(self._path))
        except SnapshotDecodeError as e:
            self._stale = True
            self._audit.log_reload_failed(str(self._path), str(e))
            raise StoreUnavailableError(str(e)) from e

        self._install_locked(CollectionTable.from_snapshot(snapshot), signature)
        self._audit.log_snapshot_reloaded(str(self._path), self._table.counts())

    # =========================================================================
    # DURABILITY
    # =========================================================================

    def flush(self) -> bool:
        """
        Retry persisting mutations retained after a PersistFailedError.

        Returns:
            True if there was anything to write
        """
        with self._lock:
            if not self._dirty:
                return False
            self._persist_locked()
            return True

    def reset(self) -> None:
        """Discard every record except the defaults, and persist."""
        with self._lock:
            self._table = CollectionTable(default_records())
            self._stale = False
            self._persist_locked()

    def _persist_locked(self) -> None:
        snapshot = codec.snapshot_from_collections(self._table.to_collections())
        data = codec.encode(snapshot)
        try:
            _atomic_write(self._path, data)
        except OSError as e:
            self._dirty = True
            self._audit.log_persist_failed(str(self._path), str(e))
            raise PersistFailedError(
                f"Failed to write snapshot {self._path}: {e}"
            ) from e
        self._dirty = False
        self._signature = _file_signature(self._path)

    # =========================================================================
    # READS
    # =========================================================================

    def list(
        self,
        collection: Union[str, Collection],
        predicate: Optional[RecordPredicate] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        include_secrets: bool = False,
    ) -> RecordList:
        """
        List copies of the records in a collection.

        The predicate runs on copies, outside the store lock.
        """
        name = self._collection_name(collection)
        rules = self._rules_for(name)
        with self._lock:
            self._ensure_fresh_locked(retry_flush=False)
            records = [
                rules.present(copy.deepcopy(record), include_secrets)
                for record in self._table.records(name)
            ]

        if predicate is not None:
            records = [r for r in records if predicate(r)]
        if offset:
            records = records[offset:]
        if limit is not None:
            records = records[:limit]
        return records

    def list_for_user(
        self,
        collection: Union[str, Collection],
        user_id: str,
    ) -> RecordList:
        """Records visible to a user: their own, plus defaults for categories."""
        name = self._collection_name(collection)
        return self.list(name, predicate=self._rules_for(name).owned_by(user_id))

    def get(
        self,
        collection: Union[str, Collection],
        record_id: str,
        include_secrets: bool = False,
    ) -> Record:
        name = self._collection_name(collection)
        with self._lock:
            self._ensure_fresh_locked(retry_flush=False)
            record = self._table.find(name, record_id)
            if record is None:
                raise NotFoundError(name, record_id)
            return self._rules_for(name).present(copy.deepcopy(record), include_secrets)

    def find_by_field(
        self,
        collection: Union[str, Collection],
        field: str,
        value: Any,
        include_secrets: bool = False,
    ) -> Optional[Record]:
        name = self._collection_name(collection)
        with self._lock:
            self._ensure_fresh_locked(retry_flush=False)
            for record in self._table.records(name):
                if field in record and record[field] == value:
                    return self._rules_for(name).present(
                        copy.deepcopy(record), include_secrets
                    )
        return None

    # =========================================================================
    # WRITES
    # =========================================================================

    def insert(self, collection: Union[str, Collection], fields: Mapping) -> Record:
        name = self._collection_name(collection)
        rules = self._rules_for(name)
        fields = self._validated_fields(fields)
        for field in MANAGED_FIELDS:
            fields.pop(field, None)
        rules.prepare(fields)

        with self._lock:
            self._ensure_fresh_locked()
            rules.before_insert(self._table, fields)

            now = utc_timestamp()
            record = {
                **fields,
                ID_FIELD: self._new_id(name),
                CREATED_AT_FIELD: now,
                UPDATED_AT_FIELD: now,
            }
            rules.normalize(record, changed=set(record))
            self._table.append(name, record)
            self._persist_locked()
            result = rules.present(copy.deepcopy(record))

        self._audit.log_record_inserted(name, record[ID_FIELD])
        return result

    def update(
        self,
        collection: Union[str, Collection],
        record_id: str,
        fields: Mapping,
    ) -> Record:
        name = self._collection_name(collection)
        rules = self._rules_for(name)
        fields = self._validated_fields(fields)
        for field in MANAGED_FIELDS:
            fields.pop(field, None)
        rules.prepare(fields)

        with self._lock:
            self._ensure_fresh_locked()
            existing = self._table.find(name, record_id)
            if existing is None:
                raise NotFoundError(name, record_id)
            rules.before_update(self._table, existing, fields)

            record = copy.deepcopy(existing)
            record.update(fields)
            record[ID_FIELD] = record_id
            record[UPDATED_AT_FIELD] = utc_timestamp()
            rules.normalize(record, changed=set(fields))
            self._table.replace(name, record)
            self._persist_locked()
            result = rules.present(copy.deepcopy(record))

        self._audit.log_record_updated(name, record_id, list(fields))
        return result

    def delete(self, collection: Union[str, Collection], record_id: str) -> bool:
        name = self._collection_name(collection)
        with self._lock:
            self._ensure_fresh_locked()
            record = self._table.find(name, record_id)
            if record is None:
                return False
            self._rules_for(name).before_delete(self._table, record)
            self._table.remove(name, record_id)
            self._persist_locked()

        self._audit.log_record_deleted(name, record_id)
        return True

    def change_password(self, user_id: str, new_password: str) -> Record:
        """Re-hash and store a user's password."""
        return self.update(Collection.USERS, user_id, {"password": new_password})

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _collection_name(collection: Union[str, Collection]) -> str:
        try:
            return Collection(collection).value
        except ValueError:
            raise NotFoundError(str(collection)) from None

    def _rules_for(self, name: str) -> RecordRules:
        return self._rules.get(name, self._base_rules)

    @staticmethod
    def _validated_fields(fields: Mapping) -> dict[str, Any]:
        """Detached copy of caller fields, restricted to JSON values."""
        if not isinstance(fields, Mapping):
            raise InvalidRecordError(f"Record fields must be a mapping, got {type(fields).__name__}")
        try:
            validated = RECORD_FIELDS_ADAPTER.validate_python(dict(fields))
        except ValidationError as e:
            raise InvalidRecordError(f"Unsupported field value: {e.errors()[0]['msg']}") from e
        for field, value in validated.items():
            if contains_non_finite(value):
                raise InvalidRecordError(
                    f"Field {field!r} holds a non-finite number", field=field
                )
        return copy.deepcopy(validated)

    def _new_id(self, name: str) -> str:
        while True:
            record_id = str(uuid.uuid4())
            if not self._table.contains_id(name, record_id):
                return record_id


def open_store(path: PathLike, **kwargs) -> FileCollectionStore:
    """Shortcut for FileCollectionStore.open()."""
    return FileCollectionStore.open(path, **kwargs)
