from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from admin_console.db import get_db
from admin_console.schemas import RolePermissionsIn
from admin_console.security.rbac import require_permission
from admin_console.services.permissions import DETAILED_PERMISSIONS, RoleService

router = APIRouter(prefix="/roles", tags=["roles"])

@router.get("")
def list_roles(
    db: Session = Depends(get_db),
    _=Depends(require_permission("users.manage_permissions")),
):
    return {"roles": RoleService(db).list_roles(), "catalogue": DETAILED_PERMISSIONS}

@router.put("/{role_id}/permissions")
def update_role_permissions(
    role_id: str,
    payload: RolePermissionsIn,
    db: Session = Depends(get_db),
    _=Depends(require_permission("users.manage_permissions")),
):
    """System roles keep their minimum keys whatever the payload says."""
    permissions = RoleService(db).update_role_permissions(role_id, payload.permissions)
    return {"success": True, "permissions": permissions}
