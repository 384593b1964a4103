from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from admin_console.logging_setup import log_event
from admin_console.services.documents import DocumentStore

class CollectionService:
    """Page-level data access for one document collection.

    Subclasses pick the collection, the listing order and the fields used by
    ``search``; ``prepare_create``/``prepare_update`` are the hooks for
    defaults and write-time validation.
    """

    collection_name: str = ""
    order_field: str | None = "createdAt"
    order_descending: bool = True
    slug_field: str | None = "slug"
    search_fields: tuple[str, ...] = ()

    def __init__(self, db: Session, collection_name: str | None = None):
        self.db = db
        self.collection_name = collection_name or self.collection_name
        self.docs = DocumentStore(db).collection(self.collection_name)

    def list(self, filter: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return self.docs.query(
            where=filter,
            order_by=self.order_field,
            descending=self.order_descending,
        )

    def get_by_id(self, doc_id: str) -> dict[str, Any] | None:
        return self.docs.get(doc_id)

    def get_by_slug(self, slug: str) -> dict[str, Any] | None:
        if not self.slug_field:
            return None
        # Slugs are not unique for every collection: earliest-created match wins
        matches = self.docs.query(where={self.slug_field: slug}, limit=1)
        return matches[0] if matches else None

    def prepare_create(self, fields: dict[str, Any]) -> dict[str, Any]:
        return dict(fields)

    def prepare_update(self, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        return dict(fields)

    def create(self, fields: dict[str, Any]) -> str:
        doc_id = self.docs.add(self.prepare_create(fields))
        log_event("document_created", collection=self.collection_name, doc_id=doc_id)
        return doc_id

    def update(self, doc_id: str, fields: dict[str, Any]) -> None:
        self.docs.update(doc_id, self.prepare_update(doc_id, fields))
        log_event("document_updated", collection=self.collection_name, doc_id=doc_id)

    def delete(self, doc_id: str) -> None:
        self.docs.delete(doc_id)
        log_event("document_deleted", collection=self.collection_name, doc_id=doc_id)

    def search(self, term: str, filter: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Case-insensitive substring match over ``search_fields`` (lists are matched per item)."""
        items = self.list(filter)
        if not term:
            return items
        needle = term.lower()

        def matches(item: dict[str, Any]) -> bool:
            for field in self.search_fields:
                value = item.get(field)
                if isinstance(value, str) and needle in value.lower():
                    return True
                if isinstance(value, list) and any(needle in str(v).lower() for v in value):
                    return True
            return False

        return [item for item in items if matches(item)]
