import os
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .config import settings
from .db import engine, SessionLocal
from .errors import ConsoleError
from .logging_setup import setup_logging, request_id_middleware, log_event
from .models import Base, User
from .routes import auth, roles, blog, companies, social, outlook, images
from .security.auth import get_password_hash
from .services.permissions import RoleService, SUPER_ROLE
from .services.scheduler import start_scheduler

setup_logging()
logger = logging.getLogger(__name__)

# Startup validation checks
REQUIRED_VARS = ["OPENAI_API_KEY", "PEXELS_API_KEY", "MAIL_API_TOKEN", "JWT_SECRET"]
missing_vars = [
    var for var in REQUIRED_VARS
    if not os.environ.get(var) and not getattr(settings, var.lower() if var != "JWT_SECRET" else "secret_key", None)
]
if "JWT_SECRET" not in missing_vars and settings.secret_key == "change-me-in-production-for-jwt":
    missing_vars.append("JWT_SECRET (Using default insecure key)")

if missing_vars:
    logger.warning(f"STARTUP WARNING: Missing or unsafe variables: {', '.join(missing_vars)}")

app = FastAPI(title="MKN Group Admin Console")
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")
app.middleware("http")(request_id_middleware)

@app.exception_handler(ConsoleError)
async def console_error_handler(request: Request, exc: ConsoleError):
    if exc.status_code >= 500:
        log_event("request_failed", level="error", path=request.url.path, error=exc.message, type=type(exc).__name__)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "type": type(exc).__name__},
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": f"Internal Server Error: {str(exc)}", "type": type(exc).__name__},
    )

@app.get("/health")
def health_check():
    return {"status": "ok", "scheduler": "running" if settings.scheduler_enabled else "disabled"}

app.include_router(auth.router)
app.include_router(roles.router)
app.include_router(blog.router)
app.include_router(companies.router)
app.include_router(social.router)
app.include_router(outlook.router)
app.include_router(images.router)

def bootstrap():
    """Seed the system roles and the superadmin account."""
    db = SessionLocal()
    try:
        RoleService(db).ensure_defaults()

        if settings.superadmin_email and settings.superadmin_password:
            email = settings.superadmin_email.strip().lower()
            if not db.query(User).filter(User.email == email).first():
                db.add(User(
                    email=email,
                    password_hash=get_password_hash(settings.superadmin_password),
                    role=SUPER_ROLE,
                    permissions={},
                    is_active=True,
                    name="Süper Admin",
                ))
                db.commit()
                log_event("superadmin_created", email=email)
    except Exception as e:
        log_event("bootstrap_failed", level="error", error=str(e))
        db.rollback()
        raise
    finally:
        db.close()

@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    bootstrap()
    if settings.scheduler_enabled:
        app.state.scheduler = start_scheduler(SessionLocal)

@app.on_event("shutdown")
def on_shutdown():
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler:
        scheduler.shutdown(wait=False)
