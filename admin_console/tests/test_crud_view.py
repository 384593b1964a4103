import threading
from unittest.mock import MagicMock

import pytest

from admin_console.errors import NotFound, RemoteOperationFailure
from admin_console.services.companies import CompanyService
from admin_console.services.crud_view import (
    ANY, CREATE, DETAIL, EDIT, FORM, LIST, NOT_FOUND, READY, CrudViewModel,
)

def _service(items=None):
    service = MagicMock()
    service.list.return_value = list(items or [])
    return service

ITEMS = [
    {"id": "1", "title": "Cam Şişe", "status": "draft", "tags": ["cam"]},
    {"id": "2", "title": "Plastik Kapak", "status": "published", "tags": ["pet"]},
    {"id": "3", "title": "Kozmetik Ambalaj", "status": "published", "tags": []},
]

def _view(service=None, **kwargs):
    kwargs.setdefault("search_fields", ("title", "tags"))
    kwargs.setdefault("selectors", {"status": "status"})
    kwargs.setdefault("logger", MagicMock())
    return CrudViewModel(service or _service(ITEMS), **kwargs).mount()

def test_mount_loads_items_and_lookups():
    view = _view(lookups={"categories": lambda: [{"slug": "ambalaj"}]})
    assert view.phase == READY
    assert view.mode == LIST
    assert len(view.items) == 3
    assert view.lookups["categories"] == [{"slug": "ambalaj"}]

def test_mount_applies_partial_results_when_a_loader_fails():
    logger = MagicMock()

    def broken():
        raise RemoteOperationFailure("down")

    view = _view(lookups={"categories": broken, "authors": lambda: ["ayse"]}, logger=logger)
    assert view.phase == READY
    assert len(view.items) == 3
    assert "categories" not in view.lookups
    assert view.lookups["authors"] == ["ayse"]
    assert logger.call_args.args[0] == "view_load_failed"
    assert logger.call_args.kwargs["what"] == "categories"
    assert view.notifications == []

def test_loaders_run_on_one_thread_by_default():
    threads = set()

    def record(value):
        def loader():
            threads.add(threading.get_ident())
            return value
        return loader

    service = _service()
    service.list.side_effect = record([])
    _view(service, lookups={"categories": record([]), "authors": record([])})
    assert len(threads) == 1

def test_search_and_selectors_combine():
    view = _view()
    view.set_search("şişe")
    assert [i["id"] for i in view.visible_items] == ["1"]

    view.set_search("SISE")
    assert [i["id"] for i in view.visible_items] == ["1"]

    view.set_search("")
    view.set_selector("status", "published")
    assert [i["id"] for i in view.visible_items] == ["2", "3"]

    view.set_search("pet")
    assert [i["id"] for i in view.visible_items] == ["2"]

    view.set_selector("status", None)
    assert view.selector_values["status"] == ANY
    with pytest.raises(KeyError):
        view.set_selector("color", "red")

def test_open_detail_and_not_found():
    service = _service(ITEMS)
    service.get_by_id.side_effect = lambda doc_id: next((i for i in ITEMS if i["id"] == doc_id), None)
    view = _view(service)

    view.open_detail("2")
    assert view.mode == DETAIL
    assert view.selected["title"] == "Plastik Kapak"

    view.open_detail("404")
    assert view.mode == NOT_FOUND
    assert view.selected is None

def test_open_edit_coerces_missing_values():
    service = _service(ITEMS)
    service.get_by_id.return_value = {
        "id": "1", "title": "Cam Şişe", "tags": None, "excerpt": None, "featured": None,
        "createdAt": "x", "updatedAt": "y",
    }
    view = _view(service, form_defaults={"title": "", "tags": [], "excerpt": "", "featured": False})

    view.open_edit("1")

    assert view.mode == FORM
    assert view.form_kind == EDIT
    assert view.form == {"title": "Cam Şişe", "tags": [], "excerpt": "", "featured": False}

def test_slug_follows_title_until_edited():
    view = _view(form_defaults={"title": "", "slug": ""}, slug_source="title")
    view.open_create()
    assert view.form_kind == CREATE

    view.set_field("title", "Ambalaj Üretimi")
    assert view.form["slug"] == "ambalaj-uretimi"

    view.set_field("slug", "ozel")
    view.set_field("title", "Başka Başlık")
    assert view.form["slug"] == "ozel"

def test_submit_create_reloads_and_returns_to_list():
    service = _service(ITEMS)
    view = _view(service, form_defaults={"title": ""})
    view.open_create()
    view.set_field("title", "Yeni")

    assert view.submit() is True
    service.create.assert_called_once_with({"title": "Yeni"})
    assert service.list.call_count == 2
    assert view.mode == LIST
    assert view.notifications[-1].kind == "success"

def test_failed_submit_keeps_form_and_reports():
    service = _service(ITEMS)
    service.update.side_effect = NotFound("Blog post 1 not found")
    service.get_by_id.return_value = {"id": "1", "title": "Cam Şişe"}
    view = _view(service)
    view.open_edit("1")
    view.set_field("title", "Değişti")

    assert view.submit() is False
    assert view.mode == FORM
    assert view.form["title"] == "Değişti"
    note = view.notifications[-1]
    assert note.kind == "error"
    assert note.action == "update"
    assert note.message == "Update failed: Blog post 1 not found"

def test_confirm_delete_success_removes_locally():
    service = _service(ITEMS)
    view = _view(service)
    view.request_delete("2")
    assert view.dialog_open

    assert view.confirm_delete() is True
    service.delete.assert_called_once_with("2")
    assert [i["id"] for i in view.items] == ["1", "3"]
    assert not view.dialog_open

def test_confirm_delete_failure_keeps_item():
    service = _service(ITEMS)
    service.delete.side_effect = RemoteOperationFailure("refused")
    view = _view(service)
    view.request_delete("2")

    assert view.confirm_delete() is False
    assert [i["id"] for i in view.items] == ["1", "2", "3"]
    assert not view.dialog_open
    assert view.notifications[-1].message == "Delete failed: refused"

def test_cancel_delete_makes_no_call():
    service = _service(ITEMS)
    view = _view(service)
    view.request_delete("2")
    view.cancel_delete()
    assert view.confirm_delete() is False
    service.delete.assert_not_called()

def test_second_mutation_is_blocked_while_busy():
    started, release = threading.Event(), threading.Event()
    service = _service(ITEMS)

    def slow_delete(doc_id):
        started.set()
        release.wait(timeout=5)

    service.delete.side_effect = slow_delete
    view = _view(service)
    view.request_delete("1")
    worker = threading.Thread(target=view.confirm_delete)
    worker.start()
    started.wait(timeout=5)

    assert view.busy
    view.request_delete("2")
    assert view.confirm_delete() is False
    assert view.dialog_open and view.pending_delete_id == "2"
    assert view.notifications[-1].kind == "error"
    assert view.notifications[-1].message == "Delete skipped: another action is still running"

    release.set()
    worker.join(timeout=5)
    assert not view.busy
    service.delete.assert_called_once_with("1")

def test_delete_against_real_collection(db):
    companies = CompanyService(db)
    keep = companies.create({"name": "Acme"})
    gone = companies.create({"name": "Beta"})
    view = CrudViewModel(companies, search_fields=("name",)).mount()

    view.request_delete(gone)
    assert view.confirm_delete()
    assert [c["id"] for c in view.items] == [keep]
    assert [c["id"] for c in companies.list()] == [keep]
