from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any

from admin_console.errors import NotFound, ValidationFailure
from admin_console.logging_setup import log_event
from admin_console.services.collection import CollectionService
from admin_console.services.documents import coerce_timestamp, utcnow

SOCIAL_POSTS_COLLECTION = "socialPosts"
SCHEMA_VERSION = "2.0"

POST_STATUSES = ("draft", "scheduled", "published", "archived")
CONTENT_TYPES = ("promotional", "educational", "entertainment", "news", "community")

def empty_analytics() -> dict[str, int]:
    return {"views": 0, "likes": 0, "shares": 0, "comments": 0, "clicks": 0, "engagement": 0}

def empty_global_analytics() -> dict[str, int]:
    return {
        "totalViews": 0,
        "totalLikes": 0,
        "totalShares": 0,
        "totalComments": 0,
        "totalClicks": 0,
        "totalEngagement": 0,
    }

def normalize_platform_entry(entry: dict[str, Any] | None, keep_analytics: bool = True) -> dict[str, Any]:
    entry = entry or {}
    return {
        "content": entry.get("content") or "",
        "hashtags": list(entry.get("hashtags") or []),
        "mentions": list(entry.get("mentions") or []),
        "mediaUrls": list(entry.get("mediaUrls") or []),
        "customizations": dict(entry.get("customizations") or {}),
        "analytics": (keep_analytics and entry.get("analytics")) or empty_analytics(),
    }

class SocialPostService(CollectionService):
    """Social posts carrying one content variant per platform.

    ``platforms`` is never written by callers; it is always the key list of
    ``platformContent``.
    """

    collection_name = SOCIAL_POSTS_COLLECTION
    slug_field = None
    search_fields = ("title",)

    @staticmethod
    def _platform_content_from(fields: dict[str, Any], keep_analytics: bool) -> dict[str, dict] | None:
        if fields.get("platformContent") is not None:
            return {
                platform: normalize_platform_entry(entry, keep_analytics)
                for platform, entry in fields["platformContent"].items()
            }
        if fields.get("platforms") is not None:
            # Flat payload: one shared body copied to every listed platform
            shared = {
                "content": fields.get("content"),
                "hashtags": fields.get("hashtags"),
                "mentions": fields.get("mentions"),
                "mediaUrls": fields.get("mediaUrls"),
            }
            return {platform: normalize_platform_entry(shared, False) for platform in fields["platforms"]}
        return None

    @staticmethod
    def _check_status(data: dict[str, Any]):
        status = data.get("status") or "draft"
        if status not in POST_STATUSES:
            raise ValidationFailure(f"Invalid status '{status}'")
        if status == "scheduled":
            scheduled_at = coerce_timestamp(data.get("scheduledAt"))
            if scheduled_at is None or scheduled_at <= utcnow():
                raise ValidationFailure("Scheduled posts need a future scheduledAt")

    def prepare_create(self, fields: dict[str, Any]) -> dict[str, Any]:
        platform_content = self._platform_content_from(fields, keep_analytics=False) or {}
        status = fields.get("status") or "draft"
        self._check_status(fields)
        scheduled_at = coerce_timestamp(fields.get("scheduledAt"))
        metadata = fields.get("metadata") or {}
        return {
            "title": fields.get("title") or "",
            "campaignId": fields.get("campaignId"),
            "contentType": fields.get("contentType") or "general",
            "tone": fields.get("tone") or "professional",
            "targetAudience": fields.get("targetAudience") or "general",
            "platformContent": platform_content,
            "platforms": list(platform_content),
            "status": status,
            "authorId": fields.get("authorId"),
            "authorName": fields.get("authorName") or "",
            "scheduledAt": scheduled_at,
            "publishedAt": coerce_timestamp(fields.get("publishedAt")),
            "globalAnalytics": empty_global_analytics(),
            "metadata": {
                "aiGenerated": bool(metadata.get("aiGenerated")),
                "template": metadata.get("template"),
                "version": SCHEMA_VERSION,
            },
        }

    def prepare_update(self, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        data = {
            key: fields[key]
            for key in ("title", "status", "contentType", "tone", "targetAudience", "globalAnalytics", "metadata")
            if key in fields
        }
        for key in ("scheduledAt", "publishedAt"):
            if key in fields:
                data[key] = coerce_timestamp(fields[key])
        if "status" in data or "scheduledAt" in data:
            self._check_status({**self._require(doc_id), **data})
        platform_content = self._platform_content_from(fields, keep_analytics=True)
        if platform_content is not None:
            data["platformContent"] = platform_content
            data["platforms"] = list(platform_content)
        return data

    def list(
        self,
        filter: dict[str, Any] | None = None,
        *,
        status: str | None = None,
        platform: str | None = None,
        content_type: str | None = None,
        author_id: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        where = dict(filter or {})
        if status:
            where["status"] = status
        if content_type:
            where["contentType"] = content_type
        if author_id:
            where["authorId"] = author_id
        posts = super().list(where)
        # Array membership is not an equality filter, so it runs here
        if platform:
            posts = [p for p in posts if platform in (p.get("platforms") or [])]
        return posts[:limit] if limit else posts

    def _require(self, post_id: str) -> dict[str, Any]:
        post = self.get_by_id(post_id)
        if post is None:
            raise NotFound(f"Social post {post_id} not found")
        return post

    def by_date_range(self, start: Any, end: Any, platform: str | None = None) -> list[dict[str, Any]]:
        start, end = coerce_timestamp(start), coerce_timestamp(end)
        return [
            p for p in self.list(platform=platform)
            if start <= p["createdAt"] <= end
        ]

    def search(self, term: str, filter: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        posts = self.list(filter)
        if not term:
            return posts
        needle = term.lower()

        def matches(post):
            if needle in (post.get("title") or "").lower():
                return True
            for entry in (post.get("platformContent") or {}).values():
                if needle in (entry.get("content") or "").lower():
                    return True
                if needle in " ".join(entry.get("hashtags") or []).lower():
                    return True
            return False

        return [p for p in posts if matches(p)]

    def duplicate(self, post_id: str) -> str:
        original = self._require(post_id)
        copy = {
            key: value for key, value in original.items()
            if key not in ("id", "createdAt", "updatedAt", "publishedAt", "scheduledAt")
        }
        copy["status"] = "draft"
        copy["title"] = f"{original.get('title') or ''} (Kopya)"
        new_id = self.create(copy)
        log_event("social_post_duplicated", source_id=post_id, doc_id=new_id)
        return new_id

    def _write_platforms(self, post_id: str, platform_content: dict[str, dict]):
        self.docs.update(post_id, {"platformContent": platform_content, "platforms": list(platform_content)})

    def update_platform(self, post_id: str, platform: str, entry: dict[str, Any]) -> None:
        post = self._require(post_id)
        platform_content = dict(post.get("platformContent") or {})
        platform_content[platform] = normalize_platform_entry(entry)
        self._write_platforms(post_id, platform_content)
        log_event("social_platform_updated", doc_id=post_id, platform=platform)

    def add_platform(self, post_id: str, platform: str, entry: dict[str, Any] | None = None) -> None:
        post = self._require(post_id)
        platform_content = dict(post.get("platformContent") or {})
        platform_content[platform] = normalize_platform_entry(entry, keep_analytics=False)
        self._write_platforms(post_id, platform_content)
        log_event("social_platform_added", doc_id=post_id, platform=platform)

    def remove_platform(self, post_id: str, platform: str) -> None:
        post = self._require(post_id)
        platform_content = dict(post.get("platformContent") or {})
        platform_content.pop(platform, None)
        self._write_platforms(post_id, platform_content)
        log_event("social_platform_removed", doc_id=post_id, platform=platform)

    def stats(self) -> dict[str, Any]:
        posts = self.list()
        by_platform = Counter(platform for p in posts for platform in (p.get("platforms") or []))
        return {
            "totalPosts": len(posts),
            "postsByStatus": dict(Counter(p.get("status") or "unknown" for p in posts)),
            "postsByPlatform": dict(by_platform),
            "postsByContentType": dict(Counter(p.get("contentType") or "other" for p in posts)),
            "recentActivity": [
                {
                    "id": p["id"],
                    "title": p.get("title"),
                    "status": p.get("status"),
                    "platforms": p.get("platforms"),
                    "createdAt": p["createdAt"],
                }
                for p in posts[:5]
            ],
        }

    def publish_due(self, now: datetime | None = None) -> int:
        """Flips every scheduled post whose ``scheduledAt`` has passed to published."""
        now = now or utcnow()
        published = 0
        for post in self.list(status="scheduled"):
            scheduled_at = post.get("scheduledAt")
            if scheduled_at is None or scheduled_at > now:
                continue
            self.docs.update(post["id"], {"status": "published", "publishedAt": now})
            log_event("social_post_published", doc_id=post["id"], scheduled_at=scheduled_at.isoformat())
            published += 1
        return published
