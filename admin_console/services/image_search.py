import re
import threading
from typing import Any

import requests

from admin_console.config import settings
from admin_console.errors import NetworkFailure, RemoteOperationFailure
from admin_console.logging_setup import log_event

MAX_PER_PAGE = 80

# Stock-photo search works far better with English keywords
TURKISH_TO_ENGLISH = {
    "kozmetik": "cosmetics",
    "ambalaj": "packaging",
    "üretim": "manufacturing",
    "fason": "contract manufacturing",
    "ürün": "product",
    "kalite": "quality",
    "fabrika": "factory",
    "endüstri": "industry",
    "teknoloji": "technology",
    "inovasyon": "innovation",
    "sürdürülebilir": "sustainable",
    "çevre": "environment",
    "doğal": "natural",
    "organik": "organic",
    "güzellik": "beauty",
    "bakım": "skincare",
    "makyaj": "makeup",
    "parfüm": "perfume",
    "krem": "cream",
    "şampuan": "shampoo",
    "sabun": "soap",
    "temizlik": "cleaning",
    "hijyen": "hygiene",
    "sağlık": "health",
    "profesyonel": "professional",
    "uzman": "expert",
    "hizmet": "service",
    "çözüm": "solution",
    "araştırma": "research",
    "geliştirme": "development",
    "laboratuvar": "laboratory",
    "analiz": "analysis",
    "sertifika": "certificate",
}

THEME_TERMS = (
    (("kozmetik", "güzellik"), ("cosmetics", "beauty products", "skincare")),
    (("ambalaj", "paket"), ("packaging", "containers", "bottles")),
    (("üretim", "fabrika"), ("manufacturing", "factory", "production")),
    (("doğal", "organik"), ("natural", "organic", "eco-friendly")),
    (("teknoloji", "modern"), ("technology", "modern", "innovation")),
)

_ASCII_TERM = re.compile(r"^[a-zA-Z\s-]+$")

def _describe(photo: dict[str, Any]) -> dict[str, Any]:
    src = photo.get("src") or {}
    return {
        "id": photo.get("id"),
        "url": src.get("large2x"),
        "mediumUrl": src.get("large"),
        "smallUrl": src.get("medium"),
        "thumbnailUrl": src.get("small"),
        "alt": photo.get("alt") or f"Image by {photo.get('photographer')}",
        "photographer": photo.get("photographer"),
        "photographerUrl": photo.get("photographer_url"),
        "width": photo.get("width"),
        "height": photo.get("height"),
        "avgColor": photo.get("avg_color"),
        "pexelsUrl": photo.get("url"),
    }

def search_images(query: str, per_page: int = 20, orientation: str = "landscape") -> list[dict[str, Any]]:
    if not settings.pexels_api_key:
        raise RuntimeError("PEXELS_API_KEY is missing. Please set it in your environment or .env file.")
    params = {
        "query": query,
        "per_page": max(1, min(int(per_page), MAX_PER_PAGE)),
        "orientation": orientation,
    }
    try:
        r = requests.get(
            f"{settings.pexels_base_url}/search",
            params=params,
            headers={"Authorization": settings.pexels_api_key},
            timeout=settings.request_timeout_seconds,
        )
    except (requests.Timeout, requests.ConnectionError) as e:
        log_event("image_search_failed", level="error", query=query, error=str(e))
        raise NetworkFailure(f"Image search did not answer: {e}") from e

    if r.status_code >= 400:
        log_event("image_search_failed", level="error", query=query, status=r.status_code)
        raise RemoteOperationFailure(f"Image search returned HTTP {r.status_code}")
    photos = r.json().get("photos") or []
    log_event("image_search_done", query=query, results=len(photos))
    return [_describe(photo) for photo in photos]

class ImageSearcher:
    """Last-request-wins wrapper around :func:`search_images`.

    Each call takes a new generation number. When a call returns or fails
    after a newer one has started, its outcome is dropped and it returns None.
    """

    def __init__(self, search=search_images):
        self._search = search
        self._lock = threading.Lock()
        self._generation = 0

    def search(self, query: str, per_page: int = 20, **options) -> list[dict[str, Any]] | None:
        with self._lock:
            self._generation += 1
            generation = self._generation
        try:
            results = self._search(query, per_page=per_page, **options)
        except Exception:
            if self._superseded(generation, query):
                return None
            raise
        if self._superseded(generation, query):
            return None
        return results

    def _superseded(self, generation: int, query: str) -> bool:
        with self._lock:
            if generation == self._generation:
                return False
        log_event("image_search_superseded", query=query)
        return True

def suggest_terms(title: str, tags: list[str] | None = None, limit: int = 8) -> list[str]:
    """Search terms for a post: title words, tags, their English forms and theme words.

    English terms come first; at most ``limit`` are returned.
    """
    terms = []
    title_lower = (title or "").lower()
    for word in re.sub(r"[^\w\s]", " ", title_lower).split():
        if len(word) > 3:
            terms.append(word)
            if word in TURKISH_TO_ENGLISH:
                terms.append(TURKISH_TO_ENGLISH[word])
    for tag in tags or []:
        clean = tag.lower().strip()
        terms.append(clean)
        if clean in TURKISH_TO_ENGLISH:
            terms.append(TURKISH_TO_ENGLISH[clean])
    for triggers, theme in THEME_TERMS:
        if any(t in title_lower for t in triggers):
            terms.extend(theme)

    unique = [t for t in dict.fromkeys(terms) if len(t) > 2]
    english = [t for t in unique if _ASCII_TERM.match(t)]
    other = [t for t in unique if not _ASCII_TERM.match(t)]
    return (english + other)[:limit]
