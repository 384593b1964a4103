"""Schemaless document collections on top of the ``documents`` table.

Every document is addressed by ``(collection, id)``; the body lives in a JSON
column. Timestamps are stored as ISO-8601 strings and turned back into aware
UTC datetimes exactly once, in :func:`coerce_timestamp`, when a record is read.
"""
import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from admin_console.errors import NotFound
from admin_console.models import Document

# Body fields that always hold timestamps
TIMESTAMP_FIELDS = ("publishedAt", "scheduledAt", "lastContact", "createdAt", "updatedAt")
SERVER_FIELDS = ("id", "createdAt", "updatedAt")

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def coerce_timestamp(value: Any) -> datetime | None:
    """Canonical read-side conversion: datetime, ISO string or epoch -> aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        # Anything past year 33658 in seconds is really milliseconds
        seconds = value / 1000 if value > 1e12 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Not a timestamp: {value!r}")

def to_json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        value = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_json_value(v) for v in value]
    return value

def _json_equals(field: str, value: Any):
    col = Document.data[field]
    if isinstance(value, bool):
        return col.as_boolean() == value
    if isinstance(value, int):
        return col.as_integer() == value
    if isinstance(value, float):
        return col.as_float() == value
    return col.as_string() == str(value)

class Collection:
    def __init__(self, db: Session, name: str):
        self.db = db
        self.name = name

    def _row(self, doc_id: str) -> Document | None:
        return self.db.get(Document, (self.name, doc_id))

    def _to_record(self, row: Document) -> dict[str, Any]:
        record = dict(row.data or {})
        for field in TIMESTAMP_FIELDS:
            if field in record:
                record[field] = coerce_timestamp(record[field])
        record["id"] = row.id
        record["createdAt"] = coerce_timestamp(row.created_at)
        record["updatedAt"] = coerce_timestamp(row.updated_at)
        return record

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def add(self, data: dict[str, Any], doc_id: str | None = None) -> str:
        body = {k: v for k, v in to_json_value(data).items() if k not in SERVER_FIELDS}
        now = utcnow()
        row = Document(collection=self.name, id=doc_id or uuid.uuid4().hex, data=body, created_at=now, updated_at=now)
        self.db.add(row)
        self._commit()
        return row.id

    def set(self, doc_id: str, data: dict[str, Any], merge: bool = True) -> None:
        """Create or overwrite a document under a caller-chosen id."""
        row = self._row(doc_id)
        if row is None:
            self.add(data, doc_id=doc_id)
            return
        body = {k: v for k, v in to_json_value(data).items() if k not in SERVER_FIELDS}
        row.data = {**row.data, **body} if merge else body
        row.updated_at = utcnow()
        self._commit()

    def get(self, doc_id: str) -> dict[str, Any] | None:
        row = self._row(doc_id)
        return self._to_record(row) if row else None

    def update(self, doc_id: str, data: dict[str, Any]) -> None:
        row = self._row(doc_id)
        if row is None:
            raise NotFound(f"{self.name}/{doc_id} not found")
        body = {k: v for k, v in to_json_value(data).items() if k not in SERVER_FIELDS}
        row.data = {**row.data, **body}
        row.updated_at = utcnow()
        self._commit()

    def delete(self, doc_id: str) -> None:
        row = self._row(doc_id)
        if row is None:
            raise NotFound(f"{self.name}/{doc_id} not found")
        self.db.delete(row)
        self._commit()

    def query(
        self,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        stmt = select(Document).where(Document.collection == self.name)
        for field, value in (where or {}).items():
            stmt = stmt.where(_json_equals(field, value))

        if order_by == "createdAt":
            key = Document.created_at
        elif order_by == "updatedAt":
            key = Document.updated_at
        elif order_by:
            key = Document.data[order_by].as_string()
        else:
            key = None

        if key is not None:
            stmt = stmt.order_by(key.desc().nulls_last() if descending else key.asc().nulls_last())
        stmt = stmt.order_by(Document.created_at.asc(), Document.id.asc())

        if limit:
            stmt = stmt.limit(limit)
        return [self._to_record(row) for row in self.db.execute(stmt).scalars().all()]

    def count(self, where: dict[str, Any] | None = None) -> int:
        stmt = select(func.count()).select_from(Document).where(Document.collection == self.name)
        for field, value in (where or {}).items():
            stmt = stmt.where(_json_equals(field, value))
        return self.db.execute(stmt).scalar() or 0

class DocumentStore:
    def __init__(self, db: Session):
        self.db = db

    def collection(self, name: str) -> Collection:
        return Collection(self.db, name)
