import threading

from fastapi import APIRouter, Depends, Query

from admin_console.security.rbac import require_permission
from admin_console.services.image_search import ImageSearcher, suggest_terms

router = APIRouter(prefix="/images", tags=["images"])

can_write = require_permission("blog.write")

# A newer search only supersedes older ones from the same user
_searchers: dict = {}
_searchers_lock = threading.Lock()

def get_searcher(user_id) -> ImageSearcher:
    with _searchers_lock:
        if user_id not in _searchers:
            _searchers[user_id] = ImageSearcher()
        return _searchers[user_id]

@router.get("/search")
def search(
    q: str,
    per_page: int = 20,
    orientation: str = "landscape",
    ctx=Depends(can_write),
):
    results = get_searcher(ctx.user_id).search(q, per_page=per_page, orientation=orientation)
    if results is None:
        return {"success": True, "superseded": True, "photos": []}
    return {"success": True, "superseded": False, "photos": results}

@router.get("/suggest")
def suggest(
    title: str,
    tags: list[str] = Query(default=[]),
    limit: int = 8,
    _=Depends(can_write),
):
    return {"terms": suggest_terms(title, tags, limit)}
