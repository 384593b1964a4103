"""List / detail / form state for one collection page.

The view-model owns everything a page keeps between renders: the loaded
records, lookup tables, search text, selector values, the open form and the
delete-confirmation dialog. Loads never fail the page: errors are logged and
the previous data stays. Mutations make exactly one service call, report
failures through ``notifications`` and leave state untouched when they fail.
"""
import copy
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from admin_console.logging_setup import log_event
from admin_console.services.documents import SERVER_FIELDS
from admin_console.services.slugs import fold, slugify

LOADING, READY = "loading", "ready"
LIST, DETAIL, FORM, NOT_FOUND = "list", "detail", "form", "not_found"
CREATE, EDIT = "create", "edit"

# Selector value that means "no filter"
ANY = "all"

@dataclass(frozen=True)
class Notification:
    kind: str  # "success" | "error"
    action: str
    message: str

ACTION_LABELS = {
    "create": "Create",
    "update": "Update",
    "delete": "Delete",
}

class CrudViewModel:
    def __init__(
        self,
        service,
        lookups: dict[str, Callable[[], Any]] | None = None,
        search_fields: tuple[str, ...] = ("title",),
        selectors: dict[str, str] | None = None,
        form_defaults: dict[str, Any] | None = None,
        slug_source: str | None = None,
        slug_field: str = "slug",
        logger: Callable[..., None] = log_event,
        parallel: bool = False,
    ):
        self.service = service
        self.lookup_loaders = dict(lookups or {})
        self.search_fields = search_fields
        self.selectors = dict(selectors or {})
        self.form_defaults = dict(form_defaults or {})
        self.slug_source = slug_source
        self.slug_field = slug_field
        self.log = logger
        self.parallel = parallel

        self.phase = LOADING
        self.mode = LIST
        self.form_kind: str | None = None
        self.dialog_open = False
        self.pending_delete_id: str | None = None

        self.items: list[dict[str, Any]] = []
        self.lookups: dict[str, Any] = {}
        self.selected: dict[str, Any] | None = None
        self.editing_id: str | None = None
        self.form: dict[str, Any] = {}
        self.search = ""
        self.selector_values: dict[str, Any] = {name: ANY for name in self.selectors}
        self.notifications: list[Notification] = []

        self._slug_touched = False
        self._mutation_lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._mutation_lock.locked()

    def _load_failed(self, what: str, exc: Exception):
        self.log("view_load_failed", level="error", what=what, error=str(exc))

    def mount(self) -> "CrudViewModel":
        """Fetch the list and every lookup; apply whatever succeeded.

        Loaders run one after another unless ``parallel`` is set, which is only
        safe when each loader uses its own database session.
        """
        self.phase = LOADING
        loaders = {"items": self.service.list, **self.lookup_loaders}
        workers = len(loaders) if self.parallel else 1
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {name: pool.submit(loader) for name, loader in loaders.items()}
        for name, future in futures.items():
            try:
                result = future.result()
            except Exception as e:
                self._load_failed(name, e)
                continue
            if name == "items":
                self.items = result
            else:
                self.lookups[name] = result
        self.phase = READY
        return self

    def reload(self):
        try:
            self.items = self.service.list()
        except Exception as e:
            self._load_failed("items", e)

    def _notify(self, kind: str, action: str, message: str):
        self.notifications.append(Notification(kind, action, message))

    def dismiss_notifications(self):
        self.notifications.clear()

    def _fetch(self, doc_id: str) -> dict[str, Any] | None:
        try:
            return self.service.get_by_id(doc_id)
        except Exception as e:
            self._load_failed(f"record:{doc_id}", e)
            raise

    def open_create(self):
        self.form = copy.deepcopy(self.form_defaults)
        self.form_kind = CREATE
        self.editing_id = None
        self._slug_touched = False
        self.mode = FORM

    def _coerce(self, field: str, value: Any) -> Any:
        if value is not None:
            return value
        default = self.form_defaults.get(field)
        if isinstance(default, (list, tuple)):
            return []
        if isinstance(default, dict):
            return {}
        if isinstance(default, bool):
            return False
        return ""

    def open_edit(self, doc_id: str):
        try:
            record = self._fetch(doc_id)
        except Exception:
            return
        if record is None:
            self.mode = NOT_FOUND
            return
        fields = {**self.form_defaults, **{k: v for k, v in record.items() if k not in SERVER_FIELDS}}
        self.form = {k: self._coerce(k, copy.deepcopy(v)) for k, v in fields.items()}
        self.form_kind = EDIT
        self.editing_id = doc_id
        self._slug_touched = True
        self.mode = FORM

    def open_detail(self, doc_id: str):
        try:
            record = self._fetch(doc_id)
        except Exception:
            return
        if record is None:
            self.selected = None
            self.mode = NOT_FOUND
            return
        self.selected = record
        self.mode = DETAIL

    def back_to_list(self):
        self.mode = LIST
        self.form = {}
        self.form_kind = None
        self.editing_id = None
        self.selected = None

    def set_field(self, name: str, value: Any):
        self.form[name] = value
        if name == self.slug_field:
            self._slug_touched = bool(value)
        elif (
            name == self.slug_source
            and self.form_kind == CREATE
            and not self._slug_touched
        ):
            self.form[self.slug_field] = slugify(value or "")

    def _blocked(self, action: str):
        self._notify("error", action, f"{ACTION_LABELS.get(action, action)} skipped: another action is still running")

    def _mutate(self, action: str, call: Callable[[], Any]) -> tuple[bool, Any]:
        if not self._mutation_lock.acquire(blocking=False):
            self._blocked(action)
            return False, None
        try:
            result = call()
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            self.log("view_action_failed", level="error", action=action, error=message)
            self._notify("error", action, f"{ACTION_LABELS.get(action, action)} failed: {message}")
            return False, None
        finally:
            self._mutation_lock.release()
        return True, result

    def submit(self) -> bool:
        if self.mode != FORM:
            return False
        fields = copy.deepcopy(self.form)
        if self.form_kind == CREATE:
            action, call = "create", lambda: self.service.create(fields)
        else:
            doc_id = self.editing_id
            action, call = "update", lambda: self.service.update(doc_id, fields)
        ok, _ = self._mutate(action, call)
        if not ok:
            return False
        self._notify("success", action, "Saved")
        self.reload()
        self.back_to_list()
        return True

    def request_delete(self, doc_id: str):
        self.pending_delete_id = doc_id
        self.dialog_open = True

    def cancel_delete(self):
        self.pending_delete_id = None
        self.dialog_open = False

    def confirm_delete(self) -> bool:
        doc_id = self.pending_delete_id
        if doc_id is None:
            return False
        if self.busy:
            # Dialog stays open so the delete can be confirmed again
            self._blocked("delete")
            return False
        ok, _ = self._mutate("delete", lambda: self.service.delete(doc_id))
        self.cancel_delete()
        if not ok:
            return False
        # Dropped locally instead of reloading the whole list
        self.items = [item for item in self.items if item.get("id") != doc_id]
        if self.selected and self.selected.get("id") == doc_id:
            self.back_to_list()
        self._notify("success", "delete", "Deleted")
        return True

    def set_search(self, text: str):
        self.search = text or ""

    def set_selector(self, name: str, value: Any):
        if name not in self.selectors:
            raise KeyError(name)
        self.selector_values[name] = ANY if value in (None, "") else value

    def _matches(self, item: dict[str, Any]) -> bool:
        for name, field in self.selectors.items():
            wanted = self.selector_values.get(name, ANY)
            if wanted != ANY and item.get(field) != wanted:
                return False
        if not self.search:
            return True
        needle = fold(self.search)
        for field in self.search_fields:
            value = item.get(field)
            if isinstance(value, (list, tuple)):
                value = " ".join(str(v) for v in value)
            if value and needle in fold(str(value)):
                return True
        return False

    @property
    def visible_items(self) -> list[dict[str, Any]]:
        return [item for item in self.items if self._matches(item)]
