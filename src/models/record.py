"""
Record and Snapshot Models for the Finance Tracker Store

Records are schemaless: a mapping of field name to a JSON value, with a
mandatory ``_id``. The Snapshot is the whole store as written to disk.

DESIGN DECISION: We use Pydantic's JsonValue for record fields.
This restricts records to what the snapshot file can represent
(strings, numbers, booleans, null, nested lists/mappings) and rejects
anything else at the boundary instead of at save time. NaN and the
infinities are refused too: JSON has no spelling for them.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    TypeAdapter,
    field_validator,
)


ID_FIELD = "_id"
CREATED_AT_FIELD = "createdAt"
UPDATED_AT_FIELD = "updatedAt"

Record = dict[str, JsonValue]

# Validates caller-supplied fields before they touch the live table
RECORD_FIELDS_ADAPTER: TypeAdapter[dict[str, JsonValue]] = TypeAdapter(
    dict[str, JsonValue]
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Collection(str, Enum):
    """The predefined record collections."""
    USERS = "users"
    TRANSACTIONS = "transactions"
    CATEGORIES = "categories"


class TransactionType(str, Enum):
    """
    Transaction direction.

    The stored amount's sign always follows the type.
    """
    INCOME = "income"
    EXPENSE = "expense"


class UserRole(str, Enum):
    """Roles assigned to users."""
    USER = "user"
    ADMIN = "admin"


# =============================================================================
# DEFAULT RECORDS
# =============================================================================

DEFAULT_CATEGORIES: tuple[dict[str, Any], ...] = (
    {"_id": "1", "name": "Food", "type": "expense", "color": "#FF6B6B", "icon": "utensils", "isDefault": True},
    {"_id": "2", "name": "Transportation", "type": "expense", "color": "#4ECDC4", "icon": "bus", "isDefault": True},
    {"_id": "3", "name": "Shopping", "type": "expense", "color": "#FFD166", "icon": "shopping-bag", "isDefault": True},
    {"_id": "4", "name": "Salary", "type": "income", "color": "#06D6A0", "icon": "money-bill-wave", "isDefault": True},
    {"_id": "5", "name": "Freelance", "type": "income", "color": "#118AB2", "icon": "laptop-code", "isDefault": True},
)


def default_records() -> dict[str, list[Record]]:
    """Fresh copies of the seed rows, keyed by collection name."""
    return {
        Collection.USERS.value: [],
        Collection.TRANSACTIONS.value: [],
        Collection.CATEGORIES.value: [dict(row) for row in DEFAULT_CATEGORIES],
    }


def contains_non_finite(value: Any) -> bool:
    """True if NaN or an infinity appears anywhere inside value."""
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(contains_non_finite(v) for v in value.values())
    if isinstance(value, list):
        return any(contains_non_finite(v) for v in value)
    return False


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# =============================================================================
# SNAPSHOT
# =============================================================================

class Snapshot(BaseModel):
    """
    The complete durable state of the store.

    Missing collections default to empty. Every record must carry a
    string ``_id`` that is unique within its collection.
    """
    model_config = ConfigDict(extra="ignore")

    transactions: list[Record] = Field(default_factory=list)
    users: list[Record] = Field(default_factory=list)
    categories: list[Record] = Field(default_factory=list)

    @field_validator('transactions', 'users', 'categories')
    @classmethod
    def validate_identifiers(cls, v: list[Record]) -> list[Record]:
        """Every record needs a unique string identifier."""
        seen = set()
        for record in v:
            record_id = record.get(ID_FIELD)
            if not isinstance(record_id, str) or not record_id:
                raise ValueError(f"Record without a valid {ID_FIELD}: {record!r}")
            if record_id in seen:
                raise ValueError(f"Duplicate {ID_FIELD} in collection: {record_id}")
            seen.add(record_id)
        return v

    def collections(self) -> dict[str, list[Record]]:
        """Plain mapping from collection name to records."""
        return {
            Collection.TRANSACTIONS.value: self.transactions,
            Collection.USERS.value: self.users,
            Collection.CATEGORIES.value: self.categories,
        }
