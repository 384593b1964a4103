from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from admin_console.db import get_db
from admin_console.errors import NotFound
from admin_console.schemas import (
    BudgetIn,
    ComposeSaveIn,
    GenerateIn,
    PlatformContentIn,
    SocialPostCreate,
    SocialPostUpdate,
)
from admin_console.security.rbac import require_permission
from admin_console.services import llm
from admin_console.services.composer import PLATFORMS, Composer, character_budget
from admin_console.services.permissions import SessionContext
from admin_console.services.social import SocialPostService

router = APIRouter(prefix="/social", tags=["social"])

can_view = require_permission("social_media.view")
can_create = require_permission("social_media.create")
can_edit = require_permission("social_media.edit")
can_delete = require_permission("social_media.delete")

def _author(ctx: SessionContext) -> dict:
    return {"id": ctx.user_id, "name": ctx.name, "email": ctx.email}

# --- Posts ---

@router.get("/posts")
def list_posts(
    status: str | None = None,
    platform: str | None = None,
    content_type: str | None = None,
    q: str | None = None,
    limit: int | None = None,
    db: Session = Depends(get_db),
    _=Depends(can_view),
):
    posts = SocialPostService(db)
    if q:
        return posts.search(q, {"status": status} if status else None)
    return posts.list(status=status, platform=platform, content_type=content_type, limit=limit)

@router.get("/posts/range")
def posts_in_range(
    start: datetime,
    end: datetime,
    platform: str | None = None,
    db: Session = Depends(get_db),
    _=Depends(can_view),
):
    return SocialPostService(db).by_date_range(start, end, platform)

@router.get("/stats")
def social_stats(db: Session = Depends(get_db), _=Depends(can_view)):
    return SocialPostService(db).stats()

@router.get("/posts/{post_id}")
def get_post(post_id: str, db: Session = Depends(get_db), _=Depends(can_view)):
    post = SocialPostService(db).get_by_id(post_id)
    if not post:
        raise NotFound(f"Social post {post_id} not found")
    return post

@router.post("/posts", status_code=201)
def create_post(payload: SocialPostCreate, db: Session = Depends(get_db), ctx: SessionContext = Depends(can_create)):
    fields = payload.dict(exclude_unset=True)
    author = _author(ctx)
    fields["authorId"] = author["id"]
    fields["authorName"] = author["name"] or author["email"]
    post_id = SocialPostService(db).create(fields)
    return {"success": True, "id": post_id}

@router.patch("/posts/{post_id}")
def update_post(post_id: str, payload: SocialPostUpdate, db: Session = Depends(get_db), _=Depends(can_edit)):
    posts = SocialPostService(db)
    if not posts.get_by_id(post_id):
        raise NotFound(f"Social post {post_id} not found")
    posts.update(post_id, payload.dict(exclude_unset=True))
    return {"success": True}

@router.post("/posts/{post_id}/duplicate", status_code=201)
def duplicate_post(post_id: str, db: Session = Depends(get_db), _=Depends(can_create)):
    return {"success": True, "id": SocialPostService(db).duplicate(post_id)}

@router.put("/posts/{post_id}/platforms/{platform}")
def update_platform(
    post_id: str,
    platform: str,
    payload: PlatformContentIn,
    db: Session = Depends(get_db),
    _=Depends(can_edit),
):
    """Replaces one platform variant, adding the platform when it is new."""
    posts = SocialPostService(db)
    post = posts.get_by_id(post_id)
    if not post:
        raise NotFound(f"Social post {post_id} not found")
    if platform in (post.get("platformContent") or {}):
        posts.update_platform(post_id, platform, payload.dict())
    else:
        posts.add_platform(post_id, platform, payload.dict())
    return {"success": True}

@router.delete("/posts/{post_id}/platforms/{platform}")
def remove_platform(post_id: str, platform: str, db: Session = Depends(get_db), _=Depends(can_edit)):
    SocialPostService(db).remove_platform(post_id, platform)
    return {"success": True}

@router.delete("/posts/{post_id}")
def delete_post(post_id: str, db: Session = Depends(get_db), _=Depends(can_delete)):
    SocialPostService(db).delete(post_id)
    return {"success": True}

# --- Composer ---

@router.get("/compose/platforms")
def list_platforms(_=Depends(can_view)):
    return {
        key: {"name": p["name"], "charLimit": p["char_limit"], "hashtagLimit": p["hashtag_limit"]}
        for key, p in PLATFORMS.items()
    }

@router.post("/compose/budget")
def compose_budget(payload: BudgetIn, _=Depends(can_view)):
    return character_budget(payload.platform, payload.content, payload.hashtags).to_dict()

@router.post("/compose/generate")
def compose_generate(payload: GenerateIn, _=Depends(can_create)):
    """Runs generation against the posted state and returns the new state."""
    composer = Composer.from_dict(payload.state.dict())
    if payload.mode == "all":
        composer.generate_all(llm)
    else:
        composer.generate_active(llm)
    return composer.to_dict()

@router.post("/compose/save", status_code=201)
def compose_save(payload: ComposeSaveIn, db: Session = Depends(get_db), ctx: SessionContext = Depends(can_create)):
    composer = Composer.from_dict(payload.state.dict())
    post_id = SocialPostService(db).create(composer.to_post_payload(payload.status, _author(ctx)))
    return {"success": True, "id": post_id}
