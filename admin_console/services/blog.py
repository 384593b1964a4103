import re
from collections import Counter
from datetime import datetime
from typing import Any

import pytz
from sqlalchemy.orm import Session

from admin_console.config import settings
from admin_console.errors import NotFound, ValidationFailure, ReservedCategory, DuplicateSlug, CategoryInUse
from admin_console.logging_setup import log_event
from admin_console.services.collection import CollectionService
from admin_console.services.documents import DocumentStore, coerce_timestamp, utcnow
from admin_console.services.slugs import slugify

BLOG_POSTS_COLLECTION = "blogPosts"
BLOG_CATEGORIES_COLLECTION = "blogCategories"

# Synthetic "every post" category. Listed first, never stored, never a write target.
ALL_CATEGORY_SLUG = "all"
ALL_CATEGORY = {
    "id": ALL_CATEGORY_SLUG,
    "name": "Tümü",
    "slug": ALL_CATEGORY_SLUG,
    "description": "Tüm blog yazıları",
}

POST_STATUSES = ("draft", "scheduled", "published")

def _unique(values) -> list[str]:
    seen = []
    for value in values or []:
        value = str(value).strip()
        if value and value not in seen:
            seen.append(value)
    return seen

def clean_generated_content(content: str) -> str:
    """Strips JSON fragments an LLM sometimes wraps around article bodies."""
    cleaned = re.sub(r'^\s*\{\s*"title"[\s\S]*?\}\s*', "", content or "")
    cleaned = re.sub(r'^\s*"[^"]*"\s*:\s*"[^"]*".*$', "", cleaned, flags=re.MULTILINE)
    cleaned = re.sub(r'\{\s*"[^}]*$', "", cleaned)
    cleaned = re.sub(r'^[^}]*"\s*\}', "", cleaned)
    cleaned = (
        cleaned.replace('\\"', '"')
        .replace("\\n", "\n")
        .replace("\\t", "\t")
        .replace("\\\\", "\\")
    )
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()

class BlogPostService(CollectionService):
    collection_name = BLOG_POSTS_COLLECTION
    order_field = "publishedAt"
    search_fields = ("title", "excerpt", "content", "tags")

    def __init__(self, db: Session):
        super().__init__(db)
        self.category_docs = DocumentStore(db).collection(BLOG_CATEGORIES_COLLECTION)

    def _check_category(self, slug: str | None):
        if not slug:
            raise ValidationFailure("categorySlug is required")
        if slug == ALL_CATEGORY_SLUG:
            raise ReservedCategory(f"'{ALL_CATEGORY_SLUG}' is not a real category")
        if not self.category_docs.count(where={"slug": slug}):
            raise ValidationFailure(f"Unknown category '{slug}'")

    def _check_status(self, data: dict[str, Any]):
        status = data.get("status") or "draft"
        if status not in POST_STATUSES:
            raise ValidationFailure(f"Invalid status '{status}'")
        if status == "scheduled":
            scheduled_at = coerce_timestamp(data.get("scheduledAt"))
            if scheduled_at is None or scheduled_at <= utcnow():
                raise ValidationFailure("Scheduled posts need a future scheduledAt")

    def _apply_ai_metadata(self, data: dict[str, Any]):
        meta = data.pop("aiMetadata", None)
        if not meta:
            return
        data["aiGenerated"] = True
        data["aiMetadata"] = {
            "provider": meta.get("provider"),
            "model": meta.get("model"),
            "finishReason": meta.get("finishReason") or "unknown",
            "isTruncated": bool(meta.get("isTruncated")),
            "usage": meta.get("usage"),
            # Stored metadata sent back by an edit keeps its original stamp
            "generatedAt": coerce_timestamp(meta.get("generatedAt")) or utcnow(),
        }
        data["contentTruncated"] = bool(meta.get("isTruncated"))
        if data["contentTruncated"]:
            log_event("blog_post_truncated", level="warning", finish_reason=data["aiMetadata"]["finishReason"])

    def prepare_create(self, fields: dict[str, Any]) -> dict[str, Any]:
        data = dict(fields)
        if not (data.get("title") or "").strip():
            raise ValidationFailure("title is required")
        self._check_category(data.get("categorySlug"))
        data["status"] = data.get("status") or "draft"
        self._check_status(data)
        data["slug"] = slugify(data.get("slug") or data["title"])
        data["tags"] = _unique(data.get("tags"))
        data.setdefault("featured", False)
        data["publishedAt"] = data.get("publishedAt") or utcnow()
        self._apply_ai_metadata(data)
        return data

    def prepare_update(self, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        existing = self.get_by_id(doc_id)
        if existing is None:
            raise NotFound(f"Blog post {doc_id} not found")
        data = dict(fields)
        if "categorySlug" in data:
            self._check_category(data["categorySlug"])
        if "status" in data or "scheduledAt" in data:
            self._check_status({**existing, **data})
        if "slug" in data:
            data["slug"] = slugify(data["slug"] or data.get("title") or existing.get("title", ""))
        if "tags" in data:
            data["tags"] = _unique(data["tags"])
        if not data.get("publishedAt"):
            data.pop("publishedAt", None)
        self._apply_ai_metadata(data)
        return data

    def list_by_category(self, category_slug: str | None = None) -> list[dict[str, Any]]:
        if not category_slug or category_slug == ALL_CATEGORY_SLUG:
            return self.list()
        return self.list({"categorySlug": category_slug})

    def featured(self) -> list[dict[str, Any]]:
        return self.list({"featured": True})

    def related(self, post_id: str, category_slug: str, limit: int = 3) -> list[dict[str, Any]]:
        """Newest posts of the same category, excluding ``post_id``."""
        candidates = self.list({"categorySlug": category_slug})
        return [p for p in candidates if p["id"] != post_id][:limit]

    def clean_content(self, post_id: str) -> str:
        post = self.get_by_id(post_id)
        if post is None:
            raise NotFound(f"Blog post {post_id} not found")
        cleaned = clean_generated_content(post.get("content") or "")
        self.docs.update(post_id, {"content": cleaned})
        log_event("blog_post_cleaned", post_id=post_id)
        return cleaned

    def stats(self, now: datetime | None = None) -> dict[str, int]:
        tz = pytz.timezone(settings.timezone)
        now_local = (now or utcnow()).astimezone(tz)
        posts = self.list()

        def in_current_month(post):
            published = post.get("publishedAt")
            if not published:
                return False
            local = published.astimezone(tz)
            return local.year == now_local.year and local.month == now_local.month

        return {
            "totalPosts": len(posts),
            "totalCategories": self.category_docs.count(),
            "featuredPosts": sum(1 for p in posts if p.get("featured")),
            "publishedThisMonth": sum(1 for p in posts if in_current_month(p)),
        }

class CategoryService(CollectionService):
    collection_name = BLOG_CATEGORIES_COLLECTION
    order_field = "name"
    order_descending = False
    search_fields = ("name", "description")

    def __init__(self, db: Session):
        super().__init__(db)
        self.post_docs = DocumentStore(db).collection(BLOG_POSTS_COLLECTION)

    def post_count(self, slug: str) -> int:
        return self.post_docs.count(where={"categorySlug": slug})

    def _check_slug(self, slug: str, own_id: str | None = None):
        if not slug:
            raise ValidationFailure("Category slug cannot be empty")
        if slug == ALL_CATEGORY_SLUG:
            raise ReservedCategory(f"'{ALL_CATEGORY_SLUG}' is reserved")
        clash = self.get_by_slug(slug)
        if clash and clash["id"] != own_id:
            raise DuplicateSlug(f"Category slug '{slug}' already exists")

    def prepare_create(self, fields: dict[str, Any]) -> dict[str, Any]:
        data = dict(fields)
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationFailure("name is required")
        data["name"] = name
        data["slug"] = slugify(data.get("slug") or name)
        data["description"] = data.get("description") or ""
        data.pop("count", None)
        self._check_slug(data["slug"])
        return data

    def prepare_update(self, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        if doc_id == ALL_CATEGORY_SLUG:
            raise ReservedCategory(f"'{ALL_CATEGORY_SLUG}' cannot be edited")
        existing = self.get_by_id(doc_id)
        if existing is None:
            raise NotFound(f"Category {doc_id} not found")
        data = dict(fields)
        data.pop("count", None)
        if "slug" in data:
            data["slug"] = slugify(data["slug"] or data.get("name") or existing["name"])
            if data["slug"] != existing["slug"]:
                self._check_slug(data["slug"], own_id=doc_id)
                # Renaming the slug would orphan every post that points at it
                if self.post_count(existing["slug"]):
                    raise CategoryInUse(f"Category '{existing['slug']}' still has posts")
        return data

    def delete(self, doc_id: str) -> None:
        if doc_id == ALL_CATEGORY_SLUG:
            raise ReservedCategory(f"'{ALL_CATEGORY_SLUG}' cannot be deleted")
        category = self.get_by_id(doc_id)
        if category is None:
            raise NotFound(f"Category {doc_id} not found")
        in_use = self.post_count(category["slug"])
        if in_use:
            raise CategoryInUse(f"Category '{category['slug']}' still has {in_use} post(s)")
        super().delete(doc_id)

    def with_count(self, category: dict[str, Any]) -> dict[str, Any]:
        return {**category, "count": self.post_count(category["slug"])}

    def list_with_counts(self, include_all: bool = True) -> list[dict[str, Any]]:
        # One scan of the posts collection; fine for a blog-sized dataset
        posts = self.post_docs.query()
        counts = Counter(p.get("categorySlug") for p in posts)
        categories = [{**c, "count": counts.get(c.get("slug"), 0)} for c in self.list()]
        if include_all:
            categories.insert(0, {**ALL_CATEGORY, "count": len(posts)})
        return categories

class BlogService:
    """Posts and categories together, the way the blog pages consume them."""

    def __init__(self, db: Session):
        self.posts = BlogPostService(db)
        self.categories = CategoryService(db)

    def list_posts(self, category_slug: str | None = None) -> list[dict[str, Any]]:
        return self.posts.list_by_category(category_slug)

    def get_post(self, post_id: str) -> dict[str, Any] | None:
        return self.posts.get_by_id(post_id)

    def get_post_by_slug(self, slug: str) -> dict[str, Any] | None:
        return self.posts.get_by_slug(slug)

    def create_post(self, fields: dict[str, Any]) -> str:
        return self.posts.create(fields)

    def update_post(self, post_id: str, fields: dict[str, Any]) -> None:
        self.posts.update(post_id, fields)

    def delete_post(self, post_id: str) -> None:
        self.posts.delete(post_id)

    def featured_posts(self) -> list[dict[str, Any]]:
        return self.posts.featured()

    def related_posts(self, post_id: str, category_slug: str, limit: int = 3) -> list[dict[str, Any]]:
        return self.posts.related(post_id, category_slug, limit)

    def search_posts(self, term: str, category_slug: str | None = None) -> list[dict[str, Any]]:
        if category_slug and category_slug != ALL_CATEGORY_SLUG:
            return self.posts.search(term, {"categorySlug": category_slug})
        return self.posts.search(term)

    def clean_post_content(self, post_id: str) -> str:
        return self.posts.clean_content(post_id)

    def stats(self) -> dict[str, int]:
        return self.posts.stats()

    def list_categories(self, include_all: bool = True) -> list[dict[str, Any]]:
        return self.categories.list_with_counts(include_all)

    def get_category(self, category_id: str) -> dict[str, Any] | None:
        category = self.categories.get_by_id(category_id)
        return self.categories.with_count(category) if category else None

    def get_category_by_slug(self, slug: str) -> dict[str, Any] | None:
        category = self.categories.get_by_slug(slug)
        return self.categories.with_count(category) if category else None

    def create_category(self, fields: dict[str, Any]) -> str:
        return self.categories.create(fields)

    def update_category(self, category_id: str, fields: dict[str, Any]) -> None:
        self.categories.update(category_id, fields)

    def delete_category(self, category_id: str) -> None:
        self.categories.delete(category_id)
