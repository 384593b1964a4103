from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Literal

class UserOut(BaseModel):
    id: int
    email: str
    name: str | None = None
    role: str
    is_active: bool
    class Config:
        from_attributes = True

class BlogPostCreate(BaseModel):
    title: str
    categorySlug: str
    slug: str | None = None
    excerpt: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    status: Literal["draft", "scheduled", "published"] = "draft"
    featured: bool = False
    author: str | None = None
    coverImage: str | None = None
    scheduledAt: datetime | None = None
    publishedAt: datetime | None = None
    aiMetadata: dict[str, Any] | None = None

class BlogPostUpdate(BaseModel):
    title: str | None = None
    categorySlug: str | None = None
    slug: str | None = None
    excerpt: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    status: Literal["draft", "scheduled", "published"] | None = None
    featured: bool | None = None
    author: str | None = None
    coverImage: str | None = None
    scheduledAt: datetime | None = None
    publishedAt: datetime | None = None

class CategoryCreate(BaseModel):
    name: str
    slug: str | None = None
    description: str = ""

class CategoryUpdate(BaseModel):
    name: str | None = None
    slug: str | None = None
    description: str | None = None

class CompanyCreate(BaseModel):
    """Flat contact fields plus free-form nested blocks (projectDetails, ...)."""
    name: str
    status: Literal["lead", "negotiation", "active-client", "completed", "paused"] = "lead"
    priority: Literal["low", "medium", "high"] = "medium"
    businessLine: str | None = None
    tags: list[str] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)
    class Config:
        extra = "allow"

class CompanyUpdate(BaseModel):
    name: str | None = None
    status: Literal["lead", "negotiation", "active-client", "completed", "paused"] | None = None
    priority: Literal["low", "medium", "high"] | None = None
    class Config:
        extra = "allow"

class NotesIn(BaseModel):
    notes: list[Any]

class RemindersIn(BaseModel):
    reminders: list[Any]

class PlatformContentIn(BaseModel):
    content: str = ""
    hashtags: list[str] = Field(default_factory=list)
    mentions: list[str] = Field(default_factory=list)
    mediaUrls: list[str] = Field(default_factory=list)
    customizations: dict[str, Any] = Field(default_factory=dict)

class SocialPostCreate(BaseModel):
    title: str = ""
    contentType: str | None = None
    tone: str | None = None
    targetAudience: str | None = None
    platformContent: dict[str, PlatformContentIn] = Field(default_factory=dict)
    status: Literal["draft", "scheduled", "published", "archived"] = "draft"
    scheduledAt: datetime | None = None
    metadata: dict[str, Any] | None = None

class SocialPostUpdate(BaseModel):
    title: str | None = None
    contentType: str | None = None
    tone: str | None = None
    targetAudience: str | None = None
    platformContent: dict[str, PlatformContentIn] | None = None
    status: Literal["draft", "scheduled", "published", "archived"] | None = None
    scheduledAt: datetime | None = None
    publishedAt: datetime | None = None

class BudgetIn(BaseModel):
    platform: str
    content: str = ""
    hashtags: list[str] = Field(default_factory=list)

class ComposerState(BaseModel):
    globalSettings: dict[str, Any] = Field(default_factory=dict)
    selectedPlatforms: list[str] = Field(default_factory=list)
    platformContent: dict[str, dict[str, Any]] = Field(default_factory=dict)
    activePlatform: str | None = None
    aiGenerated: bool = False

class GenerateIn(BaseModel):
    state: ComposerState
    mode: Literal["active", "all"] = "active"

class ComposeSaveIn(BaseModel):
    state: ComposerState
    status: Literal["draft", "scheduled", "published"] = "draft"

class MailAttachmentIn(BaseModel):
    name: str
    contentType: str = "application/octet-stream"
    contentBytes: str

class MailSendIn(BaseModel):
    to: list[str]
    cc: list[str] = Field(default_factory=list)
    subject: str
    body: str
    attachments: list[MailAttachmentIn] = Field(default_factory=list)
    mailbox: str | None = None

class MailReplyIn(BaseModel):
    comment: str

class MailMoveIn(BaseModel):
    destinationId: str

class RolePermissionsIn(BaseModel):
    permissions: list[str]
