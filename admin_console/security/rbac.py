from fastapi import Depends
from sqlalchemy.orm import Session

from admin_console.db import get_db
from admin_console.errors import PermissionDenied
from admin_console.models import User
from admin_console.security.auth import require_user
from admin_console.services.permissions import SessionContext, build_session_context, has_permission

def get_session_context(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> SessionContext:
    """Permission snapshot for the signed-in user, built once per request."""
    return build_session_context(db, user)

def require_permission(key: str):
    """
    Dependency factory: the route runs only when ``key`` resolves for the caller.
    Denials surface as PermissionDenied (403).
    """
    def dependency(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
        if not has_permission(ctx, key):
            raise PermissionDenied(f"Missing permission '{key}'")
        return ctx

    return dependency
