from datetime import datetime, timezone

import pytest

from admin_console.errors import NotFound
from admin_console.services.documents import DocumentStore, coerce_timestamp, to_json_value

def test_coerce_timestamp_accepts_every_stored_form():
    expected = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert coerce_timestamp(expected) == expected
    assert coerce_timestamp("2025-03-01T12:00:00Z") == expected
    assert coerce_timestamp("2025-03-01T12:00:00+00:00") == expected
    assert coerce_timestamp(expected.timestamp()) == expected
    assert coerce_timestamp(expected.timestamp() * 1000) == expected
    assert coerce_timestamp(None) is None
    assert coerce_timestamp("") is None

def test_coerce_timestamp_treats_naive_values_as_utc():
    assert coerce_timestamp(datetime(2025, 3, 1)).tzinfo == timezone.utc

def test_coerce_timestamp_rejects_garbage():
    with pytest.raises(ValueError):
        coerce_timestamp(True)
    with pytest.raises(ValueError):
        coerce_timestamp("not a date")

def test_to_json_value_serializes_nested_datetimes():
    when = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    out = to_json_value({"a": [when], "b": {"c": when}})
    assert out == {"a": ["2025-03-01T12:00:00.000000+00:00"], "b": {"c": "2025-03-01T12:00:00.000000+00:00"}}

def test_add_get_update_delete(db):
    col = DocumentStore(db).collection("notes")
    doc_id = col.add({"title": "Hello", "tags": ["a"]})

    doc = col.get(doc_id)
    assert doc["title"] == "Hello"
    assert doc["id"] == doc_id
    assert doc["createdAt"] == doc["updatedAt"]

    col.update(doc_id, {"title": "Hi", "extra": 1})
    doc = col.get(doc_id)
    assert doc["title"] == "Hi"
    assert doc["tags"] == ["a"]
    assert doc["extra"] == 1
    assert doc["updatedAt"] >= doc["createdAt"]

    col.delete(doc_id)
    assert col.get(doc_id) is None

def test_server_fields_cannot_be_overwritten(db):
    col = DocumentStore(db).collection("notes")
    doc_id = col.add({"title": "x", "id": "forged", "createdAt": "2000-01-01T00:00:00Z"})
    doc = col.get(doc_id)
    assert doc["id"] == doc_id
    assert doc["createdAt"].year != 2000

def test_missing_document_raises_not_found(db):
    col = DocumentStore(db).collection("notes")
    with pytest.raises(NotFound):
        col.update("nope", {"a": 1})
    with pytest.raises(NotFound):
        col.delete("nope")

def test_delete_twice_is_not_idempotent(db):
    col = DocumentStore(db).collection("notes")
    doc_id = col.add({"title": "x"})
    col.delete(doc_id)
    with pytest.raises(NotFound):
        col.delete(doc_id)

def test_set_upserts_under_chosen_id(db):
    col = DocumentStore(db).collection("roles")
    col.set("admin", {"name": "Admin", "permissions": ["a"]})
    col.set("admin", {"permissions": ["a", "b"]})
    doc = col.get("admin")
    assert doc["name"] == "Admin"
    assert doc["permissions"] == ["a", "b"]

def test_query_filters_and_orders(db):
    col = DocumentStore(db).collection("items")
    first = col.add({"kind": "a", "rank": "2", "flag": True})
    second = col.add({"kind": "b", "rank": "1", "flag": False})
    third = col.add({"kind": "a", "rank": "3", "flag": False})

    assert [d["id"] for d in col.query(where={"kind": "a"})] == [first, third]
    assert [d["id"] for d in col.query(where={"flag": True})] == [first]
    assert [d["id"] for d in col.query(order_by="rank")] == [second, first, third]
    assert [d["id"] for d in col.query(order_by="createdAt", descending=True)] == [third, second, first]
    assert len(col.query(limit=2)) == 2
    assert col.count(where={"kind": "a"}) == 2

def test_collections_are_isolated(db):
    store = DocumentStore(db)
    store.collection("a").add({"x": 1})
    assert store.collection("b").query() == []
    assert store.collection("b").count() == 0

def test_timestamp_fields_come_back_as_datetimes(db):
    col = DocumentStore(db).collection("posts")
    when = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)
    doc_id = col.add({"publishedAt": when})
    assert col.get(doc_id)["publishedAt"] == when
