from collections import Counter
from typing import Any

from admin_console.errors import NotFound, ValidationFailure
from admin_console.logging_setup import log_event
from admin_console.services.collection import CollectionService
from admin_console.services.documents import utcnow

COMPANIES_COLLECTION = "companies"

COMPANY_STATUSES = ("lead", "negotiation", "active-client", "completed", "paused")
COMPANY_PRIORITIES = ("low", "medium", "high")

CONTACT_FIELDS = (
    "phone", "email", "website", "address",
    "contactPerson", "contactPosition", "contactPhone", "contactEmail",
    "employees", "foundedYear", "description",
)

PROJECT_DETAILS_DEFAULTS = {
    "productType": "",
    "packagingType": "",
    "monthlyVolume": "",
    "unitPrice": "",
    "expectedMonthlyValue": "",
    "projectDescription": "",
    "specifications": "",
    "deliverySchedule": "",
}
CONTRACT_DETAILS_DEFAULTS = {
    "contractStart": "",
    "contractEnd": "",
    "contractValue": "",
    "paymentTerms": "",
    "deliveryTerms": "",
}
SOCIAL_MEDIA_DEFAULTS = {
    "linkedin": "",
    "instagram": "",
    "facebook": "",
    "twitter": "",
}

class CompanyService(CollectionService):
    collection_name = COMPANIES_COLLECTION
    slug_field = None
    search_fields = ("name", "email", "phone", "contactPerson", "address", "description")

    @staticmethod
    def _check_enums(data: dict[str, Any]):
        if "status" in data and data["status"] not in COMPANY_STATUSES:
            raise ValidationFailure(f"Invalid company status '{data['status']}'")
        if "priority" in data and data["priority"] not in COMPANY_PRIORITIES:
            raise ValidationFailure(f"Invalid company priority '{data['priority']}'")

    def prepare_create(self, fields: dict[str, Any]) -> dict[str, Any]:
        data = dict(fields)
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationFailure("name is required")
        data["name"] = name
        data["status"] = data.get("status") or "lead"
        data["priority"] = data.get("priority") or "medium"
        data["businessLine"] = data.get("businessLine") or "ambalaj"
        self._check_enums(data)
        for field in CONTACT_FIELDS:
            data[field] = data.get(field) or ""
        # Nested blocks are filled key by key so a partial block keeps the missing keys
        data["projectDetails"] = {**PROJECT_DETAILS_DEFAULTS, **(data.get("projectDetails") or {})}
        data["contractDetails"] = {**CONTRACT_DETAILS_DEFAULTS, **(data.get("contractDetails") or {})}
        data["socialMedia"] = {**SOCIAL_MEDIA_DEFAULTS, **(data.get("socialMedia") or {})}
        data["tags"] = list(data.get("tags") or [])
        data["services"] = list(data.get("services") or [])
        data["totalProjects"] = 0
        data["totalRevenue"] = 0
        data["lastContact"] = None
        data["notes"] = []
        data["reminders"] = []
        data["documents"] = []
        return data

    def prepare_update(self, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        data = dict(fields)
        if "name" in data and not (data["name"] or "").strip():
            raise ValidationFailure("name is required")
        self._check_enums(data)
        return data

    def by_status(self, status: str) -> list[dict[str, Any]]:
        return self.list({"status": status})

    def by_business_line(self, business_line: str) -> list[dict[str, Any]]:
        return self.list({"businessLine": business_line})

    def _require(self, doc_id: str) -> dict[str, Any]:
        company = self.get_by_id(doc_id)
        if company is None:
            raise NotFound(f"Company {doc_id} not found")
        return company

    def update_notes(self, doc_id: str, notes: list) -> None:
        self._require(doc_id)
        self.docs.update(doc_id, {"notes": list(notes)})
        log_event("company_notes_updated", doc_id=doc_id, count=len(notes))

    def update_reminders(self, doc_id: str, reminders: list) -> None:
        self._require(doc_id)
        self.docs.update(doc_id, {"reminders": list(reminders)})
        log_event("company_reminders_updated", doc_id=doc_id, count=len(reminders))

    def touch_last_contact(self, doc_id: str) -> None:
        self._require(doc_id)
        self.docs.update(doc_id, {"lastContact": utcnow()})
        log_event("company_contacted", doc_id=doc_id)

    def stats(self) -> dict[str, Any]:
        companies = self.list()
        by_status = Counter(c.get("status") for c in companies)
        by_priority = Counter(c.get("priority") for c in companies)
        return {
            "total": len(companies),
            "byStatus": {status: by_status.get(status, 0) for status in COMPANY_STATUSES},
            "byPriority": {priority: by_priority.get(priority, 0) for priority in COMPANY_PRIORITIES},
        }
