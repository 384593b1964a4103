from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from admin_console.db import get_db
from admin_console.errors import NotFound
from admin_console.schemas import BlogPostCreate, BlogPostUpdate, CategoryCreate, CategoryUpdate
from admin_console.security.rbac import require_permission
from admin_console.services.blog import BlogService

router = APIRouter(prefix="/blog", tags=["blog"])

can_read = require_permission("blog.read")
can_write = require_permission("blog.write")
can_delete = require_permission("blog.delete")

@router.get("/posts")
def list_posts(
    category: str | None = None,
    q: str | None = None,
    db: Session = Depends(get_db),
    _=Depends(can_read),
):
    """Newest first; ``category=all`` (or none) lists every post."""
    blog = BlogService(db)
    if q:
        return blog.search_posts(q, category)
    return blog.list_posts(category)

@router.get("/posts/featured")
def featured_posts(db: Session = Depends(get_db), _=Depends(can_read)):
    return BlogService(db).featured_posts()

@router.get("/posts/by-slug/{slug}")
def get_post_by_slug(slug: str, db: Session = Depends(get_db), _=Depends(can_read)):
    post = BlogService(db).get_post_by_slug(slug)
    if not post:
        raise NotFound(f"No post with slug '{slug}'")
    return post

@router.get("/posts/{post_id}")
def get_post(post_id: str, db: Session = Depends(get_db), _=Depends(can_read)):
    post = BlogService(db).get_post(post_id)
    if not post:
        raise NotFound(f"Blog post {post_id} not found")
    return post

@router.get("/posts/{post_id}/related")
def related_posts(post_id: str, limit: int = 3, db: Session = Depends(get_db), _=Depends(can_read)):
    blog = BlogService(db)
    post = blog.get_post(post_id)
    if not post:
        raise NotFound(f"Blog post {post_id} not found")
    return blog.related_posts(post_id, post.get("categorySlug"), limit)

@router.post("/posts", status_code=201)
def create_post(payload: BlogPostCreate, db: Session = Depends(get_db), _=Depends(can_write)):
    post_id = BlogService(db).create_post(payload.dict(exclude_unset=True))
    return {"success": True, "id": post_id}

@router.patch("/posts/{post_id}")
def update_post(post_id: str, payload: BlogPostUpdate, db: Session = Depends(get_db), _=Depends(can_write)):
    BlogService(db).update_post(post_id, payload.dict(exclude_unset=True))
    return {"success": True}

@router.post("/posts/{post_id}/clean")
def clean_post(post_id: str, db: Session = Depends(get_db), _=Depends(can_write)):
    return {"success": True, "content": BlogService(db).clean_post_content(post_id)}

@router.delete("/posts/{post_id}")
def delete_post(post_id: str, db: Session = Depends(get_db), _=Depends(can_delete)):
    BlogService(db).delete_post(post_id)
    return {"success": True}

@router.get("/stats")
def blog_stats(db: Session = Depends(get_db), _=Depends(can_read)):
    return BlogService(db).stats()

@router.get("/categories")
def list_categories(include_all: bool = True, db: Session = Depends(get_db), _=Depends(can_read)):
    return BlogService(db).list_categories(include_all)

@router.get("/categories/{category_id}")
def get_category(category_id: str, db: Session = Depends(get_db), _=Depends(can_read)):
    category = BlogService(db).get_category(category_id)
    if not category:
        raise NotFound(f"Category {category_id} not found")
    return category

@router.post("/categories", status_code=201)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db), _=Depends(can_write)):
    category_id = BlogService(db).create_category(payload.dict(exclude_unset=True))
    return {"success": True, "id": category_id}

@router.patch("/categories/{category_id}")
def update_category(category_id: str, payload: CategoryUpdate, db: Session = Depends(get_db), _=Depends(can_write)):
    BlogService(db).update_category(category_id, payload.dict(exclude_unset=True))
    return {"success": True}

@router.delete("/categories/{category_id}")
def delete_category(category_id: str, db: Session = Depends(get_db), _=Depends(can_delete)):
    BlogService(db).delete_category(category_id)
    return {"success": True}
