"""
Collection-Specific Record Rules

Business rules layered on top of generic CRUD:

TRANSACTIONS:
- ``amount`` sign follows ``type`` (expense negative, income positive)

USERS:
- ``password`` is hashed before storage and stripped on read
- ``email`` is unique

CATEGORIES:
- default categories can be neither updated nor deleted
- a category referenced by a transaction cannot be deleted

prepare() runs before the store lock is taken and must not look at the
table; slow work (password hashing) belongs there. Every other hook runs
inside the store's critical section, against the live table. Hooks may
raise but must not persist anything themselves.
"""

import math
from typing import Any, Callable, Optional

from src.models.record import (
    ID_FIELD,
    Collection,
    Record,
    TransactionType,
    UserRole,
)
from src.services.auth.passwords import MAX_PASSWORD_BYTES
from src.services.storage.interface import (
    DuplicateError,
    ImmutableRecordError,
    InvalidRecordError,
    RecordInUseError,
)
from src.services.storage.table import CollectionTable


PasswordHasher = Callable[[str], str]

SECRET_FIELDS = ("password",)


class RecordRules:
    """No-op rules; the base for every collection."""

    collection: Optional[str] = None

    def prepare(self, fields: dict[str, Any]) -> None:
        """Table-independent work on caller fields, in place, outside the lock."""

    def before_insert(self, table: CollectionTable, fields: dict[str, Any]) -> None:
        """Validate or adjust fields for a new record, in place."""

    def before_update(
        self,
        table: CollectionTable,
        existing: Record,
        fields: dict[str, Any],
    ) -> None:
        """Validate or adjust update fields, in place."""

    def normalize(self, record: Record, changed: set[str]) -> None:
        """Adjust the merged record, in place."""

    def before_delete(self, table: CollectionTable, record: Record) -> None:
        """Raise if the record must not be removed."""

    def present(self, record: Record, include_secrets: bool = False) -> Record:
        """Shape a detached copy of a record for callers."""
        return record

    def owned_by(self, user_id: str) -> Callable[[Record], bool]:
        return lambda record: record.get("user") == user_id


class TransactionRules(RecordRules):
    """Amount sign normalization."""

    collection = Collection.TRANSACTIONS.value

    def normalize(self, record: Record, changed: set[str]) -> None:
        if not changed & {"amount", "type"}:
            return
        if record.get("amount") is None:
            return

        amount = parse_amount(record["amount"])
        tx_type = record.get("type")
        if tx_type == TransactionType.EXPENSE.value:
            amount = -abs(amount)
        elif tx_type == TransactionType.INCOME.value:
            amount = abs(amount)
        record["amount"] = amount


class UserRules(RecordRules):
    """Password hashing, password stripping and email uniqueness."""

    collection = Collection.USERS.value

    def __init__(self, hasher: PasswordHasher):
        self._hasher = hasher

    def prepare(self, fields: dict[str, Any]) -> None:
        self._hash_password(fields)

    def before_insert(self, table: CollectionTable, fields: dict[str, Any]) -> None:
        email = fields.get("email")
        if email is not None and self._email_taken(table, email):
            raise DuplicateError("email", email)

        fields.setdefault("role", UserRole.USER.value)
        fields.setdefault("isActive", True)

    def before_update(
        self,
        table: CollectionTable,
        existing: Record,
        fields: dict[str, Any],
    ) -> None:
        email = fields.get("email")
        if (
            email is not None
            and email != existing.get("email")
            and self._email_taken(table, email, exclude_id=existing[ID_FIELD])
        ):
            raise DuplicateError("email", email)

    def present(self, record: Record, include_secrets: bool = False) -> Record:
        if not include_secrets:
            for field in SECRET_FIELDS:
                record.pop(field, None)
        return record

    def owned_by(self, user_id: str) -> Callable[[Record], bool]:
        return lambda record: record.get(ID_FIELD) == user_id

    def _hash_password(self, fields: dict[str, Any]) -> None:
        password = fields.get("password")
        if password is None:
            return
        if not isinstance(password, str) or not password:
            raise InvalidRecordError("Password must be a non-empty string", field="password")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise InvalidRecordError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes", field="password"
            )
        fields["password"] = self._hasher(password)

    @staticmethod
    def _email_taken(
        table: CollectionTable,
        email: Any,
        exclude_id: Optional[str] = None,
    ) -> bool:
        return any(
            user.get("email") == email and user.get(ID_FIELD) != exclude_id
            for user in table.records(Collection.USERS.value)
        )


class CategoryRules(RecordRules):
    """Default-record protection and reference checks."""

    collection = Collection.CATEGORIES.value

    def before_insert(self, table: CollectionTable, fields: dict[str, Any]) -> None:
        # Only the seed rows may be defaults
        fields["isDefault"] = False

    def before_update(
        self,
        table: CollectionTable,
        existing: Record,
        fields: dict[str, Any],
    ) -> None:
        if existing.get("isDefault"):
            raise ImmutableRecordError(self.collection, existing[ID_FIELD])
        fields.pop("isDefault", None)

    def before_delete(self, table: CollectionTable, record: Record) -> None:
        record_id = record[ID_FIELD]
        if record.get("isDefault"):
            raise ImmutableRecordError(self.collection, record_id)
        if any(
            tx.get("category") == record_id
            for tx in table.records(Collection.TRANSACTIONS.value)
        ):
            raise RecordInUseError(
                self.collection, record_id, Collection.TRANSACTIONS.value
            )

    def owned_by(self, user_id: str) -> Callable[[Record], bool]:
        return lambda record: bool(record.get("isDefault")) or record.get("user") == user_id


def parse_amount(value: Any) -> float:
    """Coerce a monetary amount to a number."""
    if isinstance(value, bool):
        raise InvalidRecordError(f"Amount must be numeric: {value!r}", field="amount")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            pass
    if isinstance(value, float) and math.isfinite(value):
        return value
    raise InvalidRecordError(f"Amount must be numeric: {value!r}", field="amount")


def build_rules(hasher: PasswordHasher) -> dict[str, RecordRules]:
    """Rules for every predefined collection."""
    rules = [TransactionRules(), UserRules(hasher), CategoryRules()]
    return {r.collection: r for r in rules}
