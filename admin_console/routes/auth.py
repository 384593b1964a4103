from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from typing import Any

from admin_console.config import settings
from admin_console.db import get_db
from admin_console.logging_setup import log_event
from admin_console.security.auth import authenticate, create_access_token, require_user
from admin_console.security.rbac import get_session_context
from admin_console.services.navigation import build_navigation
from admin_console.services.permissions import SessionContext, effective_permissions

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/login")
def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
) -> dict[str, Any]:
    user = authenticate(db, form_data.username, form_data.password)
    if not user:
        log_event("login_failed", level="warning", email=form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(data={"sub": str(user.id)})

    # HttpOnly cookie for the browser console
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        samesite="lax",
        secure=True,
        max_age=settings.access_token_days * 24 * 60 * 60,
    )
    log_event("login_success", user_id=user.id)
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/logout")
def logout(response: Response) -> dict[str, Any]:
    response.delete_cookie("access_token")
    return {"success": True}

@router.get("/me")
def me(
    user=Depends(require_user),
    ctx: SessionContext = Depends(get_session_context),
) -> dict[str, Any]:
    return {
        "user": {"id": user.id, "email": user.email, "name": user.name, "role": user.role},
        "permissions": effective_permissions(ctx),
        "navigation": build_navigation(ctx),
    }
