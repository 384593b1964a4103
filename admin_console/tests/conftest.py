import os

# Must be set before admin_console.db builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from admin_console.db import engine, SessionLocal, get_db
from admin_console.models import Base, User
from admin_console.security.auth import create_access_token, get_password_hash
from admin_console.services.permissions import RoleService

@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="user", permissions=None, password="secret123", email=None, is_active=True):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@mkngroup.com.tr",
            password_hash=get_password_hash(password),
            name=f"User {counter['n']}",
            role=role,
            permissions=permissions or {},
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make

@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}

    return _headers

@pytest.fixture
def client(db):
    from admin_console.main import app

    RoleService(db).ensure_defaults()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
