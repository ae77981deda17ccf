"""
Snapshot Codec

Serializes the whole store to a single JSON document:

    {"transactions": [...], "users": [...], "categories": [...]}

Output is indented so operators can read and hand-edit the file.
"""

from typing import Optional

from pydantic import ValidationError

from src.models.record import Record, Snapshot
from src.services.storage.interface import SnapshotDecodeError


def encode(snapshot: Snapshot) -> bytes:
    """Serialize a snapshot to UTF-8 JSON bytes."""
    return snapshot.model_dump_json(indent=2).encode("utf-8")


def decode(data: bytes, path: Optional[str] = None) -> Snapshot:
    """
    Parse snapshot bytes.

    Missing collections default to empty lists.

    Raises:
        SnapshotDecodeError: If the bytes are not a valid snapshot
    """
    try:
        return Snapshot.model_validate_json(data)
    except ValidationError as e:
        where = f" at {path}" if path else ""
        raise SnapshotDecodeError(
            f"Corrupt snapshot{where}: {e.error_count()} error(s), first: "
            f"{e.errors()[0]['msg']}",
            path=path,
        ) from e


def snapshot_from_collections(collections: dict[str, list[Record]]) -> Snapshot:
    """Build a validated Snapshot from plain collection lists."""
    return Snapshot.model_validate(collections)
