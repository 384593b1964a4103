# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, JSON, Boolean, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

def _utcnow():
    return datetime.now(timezone.utc)

def _new_document_id():
    return uuid.uuid4().hex

class Document(Base):
    """One schemaless document inside a named collection."""
    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    id = Column(String, primary_key=True, default=_new_document_id)
    data = Column(JSON, nullable=False, default=dict)

    # Python-side defaults keep microsecond precision for stable ordering
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (Index("ix_documents_collection_created", "collection", "created_at"),)

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="user") # super_admin, admin, moderator, user
    permissions = Column(JSON, nullable=False, default=dict) # {"blog.write": true, "canManageUsers": false}
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
