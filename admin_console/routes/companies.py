from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from admin_console.db import get_db
from admin_console.errors import NotFound
from admin_console.schemas import CompanyCreate, CompanyUpdate, NotesIn, RemindersIn
from admin_console.security.rbac import require_permission
from admin_console.services.companies import CompanyService

router = APIRouter(prefix="/companies", tags=["companies"])

@router.get("")
def list_companies(
    status: str | None = None,
    business_line: str | None = None,
    q: str | None = None,
    db: Session = Depends(get_db),
    _=Depends(require_permission("companies.view")),
):
    filter = {}
    if status:
        filter["status"] = status
    if business_line:
        filter["businessLine"] = business_line
    companies = CompanyService(db)
    if q:
        return companies.search(q, filter)
    return companies.list(filter)

@router.get("/stats")
def company_stats(db: Session = Depends(get_db), _=Depends(require_permission("companies.view"))):
    return CompanyService(db).stats()

@router.get("/{company_id}")
def get_company(company_id: str, db: Session = Depends(get_db), _=Depends(require_permission("companies.view"))):
    company = CompanyService(db).get_by_id(company_id)
    if not company:
        raise NotFound(f"Company {company_id} not found")
    return company

@router.post("", status_code=201)
def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("companies.create")),
):
    company_id = CompanyService(db).create(payload.dict(exclude_unset=True))
    return {"success": True, "id": company_id}

@router.patch("/{company_id}")
def update_company(
    company_id: str,
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_permission("companies.edit")),
):
    CompanyService(db).update(company_id, payload.dict(exclude_unset=True))
    return {"success": True}

@router.put("/{company_id}/notes")
def update_notes(
    company_id: str,
    payload: NotesIn,
    db: Session = Depends(get_db),
    _=Depends(require_permission("companies.edit")),
):
    CompanyService(db).update_notes(company_id, payload.notes)
    return {"success": True}

@router.put("/{company_id}/reminders")
def update_reminders(
    company_id: str,
    payload: RemindersIn,
    db: Session = Depends(get_db),
    _=Depends(require_permission("companies.edit")),
):
    CompanyService(db).update_reminders(company_id, payload.reminders)
    return {"success": True}

@router.post("/{company_id}/contact")
def touch_last_contact(
    company_id: str,
    db: Session = Depends(get_db),
    _=Depends(require_permission("companies.edit")),
):
    CompanyService(db).touch_last_contact(company_id)
    return {"success": True}

@router.delete("/{company_id}")
def delete_company(
    company_id: str,
    db: Session = Depends(get_db),
    _=Depends(require_permission("companies.delete")),
):
    CompanyService(db).delete(company_id)
    return {"success": True}
