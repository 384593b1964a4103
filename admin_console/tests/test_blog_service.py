from datetime import datetime, timedelta, timezone

import pytest

from admin_console.errors import CategoryInUse, DuplicateSlug, NotFound, ReservedCategory, ValidationFailure
from admin_console.services.blog import ALL_CATEGORY_SLUG, BlogService, clean_generated_content

@pytest.fixture
def blog(db):
    return BlogService(db)

@pytest.fixture
def packaging(blog):
    category_id = blog.create_category({"name": "Ambalaj Üretimi", "description": "Ambalaj yazıları"})
    return blog.get_category(category_id)

def test_category_slug_is_derived_from_name(packaging):
    assert packaging["slug"] == "ambalaj-uretimi"
    assert packaging["count"] == 0

def test_end_to_end_category_and_posts(blog, packaging):
    first = blog.create_post({"title": "Sürdürülebilir Ambalaj", "categorySlug": "ambalaj-uretimi"})
    blog.create_post({"title": "Cam Şişe Seçimi", "categorySlug": "ambalaj-uretimi", "featured": True})

    categories = blog.list_categories()
    assert categories[0]["slug"] == ALL_CATEGORY_SLUG
    assert categories[0]["count"] == 2
    assert categories[1]["slug"] == "ambalaj-uretimi"
    assert categories[1]["count"] == 2

    post = blog.get_post(first)
    assert post["slug"] == "surdurulebilir-ambalaj"
    assert post["status"] == "draft"
    assert post["publishedAt"] is not None
    assert blog.get_post_by_slug("surdurulebilir-ambalaj")["id"] == first

    assert len(blog.list_posts("ambalaj-uretimi")) == 2
    assert len(blog.list_posts(ALL_CATEGORY_SLUG)) == 2
    assert [p["title"] for p in blog.featured_posts()] == ["Cam Şişe Seçimi"]

    with pytest.raises(CategoryInUse):
        blog.delete_category(packaging["id"])

    for p in blog.list_posts():
        blog.delete_post(p["id"])
    blog.delete_category(packaging["id"])
    assert blog.list_categories(include_all=False) == []

def test_category_counts_match_post_listing(blog, packaging):
    other = blog.create_category({"name": "Kozmetik"})
    blog.create_post({"title": "A", "categorySlug": "ambalaj-uretimi"})
    blog.create_post({"title": "B", "categorySlug": "kozmetik"})
    blog.create_post({"title": "C", "categorySlug": "kozmetik"})

    for category in blog.list_categories(include_all=False):
        assert category["count"] == len(blog.list_posts(category["slug"]))
    assert blog.get_category(other)["count"] == 2

def test_all_sentinel_is_never_a_write_target(blog, packaging):
    with pytest.raises(ReservedCategory):
        blog.create_post({"title": "X", "categorySlug": ALL_CATEGORY_SLUG})
    with pytest.raises(ReservedCategory):
        blog.create_category({"name": "All", "slug": "all"})
    with pytest.raises(ReservedCategory):
        blog.delete_category(ALL_CATEGORY_SLUG)
    with pytest.raises(ReservedCategory):
        blog.update_category(ALL_CATEGORY_SLUG, {"name": "Everything"})

def test_post_needs_existing_category(blog):
    with pytest.raises(ValidationFailure):
        blog.create_post({"title": "Orphan", "categorySlug": "missing"})
    with pytest.raises(ValidationFailure):
        blog.create_post({"title": "Orphan", "categorySlug": ""})

def test_post_needs_a_title(blog, packaging):
    with pytest.raises(ValidationFailure):
        blog.create_post({"title": "   ", "categorySlug": "ambalaj-uretimi"})

def test_duplicate_category_slug_is_rejected(blog, packaging):
    with pytest.raises(DuplicateSlug):
        blog.create_category({"name": "Ambalaj üretimi"})

def test_duplicate_post_slugs_resolve_to_earliest(blog, packaging):
    first = blog.create_post({"title": "Aynı Başlık", "categorySlug": "ambalaj-uretimi"})
    blog.create_post({"title": "Aynı Başlık", "categorySlug": "ambalaj-uretimi"})
    assert blog.get_post_by_slug("ayni-baslik")["id"] == first

def test_scheduled_post_needs_future_time(blog, packaging):
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    with pytest.raises(ValidationFailure):
        blog.create_post({"title": "X", "categorySlug": "ambalaj-uretimi", "status": "scheduled", "scheduledAt": past})
    with pytest.raises(ValidationFailure):
        blog.create_post({"title": "X", "categorySlug": "ambalaj-uretimi", "status": "scheduled"})

    future = datetime.now(timezone.utc) + timedelta(days=1)
    post_id = blog.create_post(
        {"title": "X", "categorySlug": "ambalaj-uretimi", "status": "scheduled", "scheduledAt": future}
    )
    assert blog.get_post(post_id)["scheduledAt"] == future

def test_update_missing_post_raises(blog):
    with pytest.raises(NotFound):
        blog.update_post("missing", {"title": "x"})
    with pytest.raises(NotFound):
        blog.delete_post("missing")

def test_slug_change_blocked_while_category_has_posts(blog, packaging):
    blog.create_post({"title": "A", "categorySlug": "ambalaj-uretimi"})
    with pytest.raises(CategoryInUse):
        blog.update_category(packaging["id"], {"slug": "ambalaj"})
    blog.update_category(packaging["id"], {"description": "Yeni açıklama"})
    assert blog.get_category(packaging["id"])["description"] == "Yeni açıklama"

def test_related_posts_exclude_current(blog, packaging):
    ids = [blog.create_post({"title": f"Yazı {i}", "categorySlug": "ambalaj-uretimi"}) for i in range(5)]
    related = blog.related_posts(ids[0], "ambalaj-uretimi")
    assert len(related) == 3
    assert ids[0] not in [p["id"] for p in related]

def test_search_matches_title_and_tags(blog, packaging):
    blog.create_post({"title": "Cam Şişe", "categorySlug": "ambalaj-uretimi", "tags": ["cam"]})
    blog.create_post({"title": "Plastik", "categorySlug": "ambalaj-uretimi", "tags": ["pet"]})
    assert [p["title"] for p in blog.search_posts("pet")] == ["Plastik"]
    assert [p["title"] for p in blog.search_posts("cam", "ambalaj-uretimi")] == ["Cam Şişe"]

def test_ai_metadata_marks_truncation(blog, packaging):
    post_id = blog.create_post({
        "title": "AI",
        "categorySlug": "ambalaj-uretimi",
        "aiMetadata": {"provider": "openai", "model": "gpt-4o-mini", "finishReason": "length", "isTruncated": True},
    })
    post = blog.get_post(post_id)
    assert post["aiGenerated"] is True
    assert post["contentTruncated"] is True
    assert post["aiMetadata"]["finishReason"] == "length"

def test_editing_keeps_original_generation_time(blog, packaging):
    post_id = blog.create_post({"title": "AI", "categorySlug": "ambalaj-uretimi", "aiMetadata": {"provider": "openai"}})
    stored = blog.get_post(post_id)["aiMetadata"]

    blog.update_post(post_id, {"title": "AI (rev)", "aiMetadata": stored})
    assert blog.get_post(post_id)["aiMetadata"]["generatedAt"] == stored["generatedAt"]

def test_stats_counts_this_month_in_local_time(blog, packaging):
    now = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
    blog.create_post({"title": "June", "categorySlug": "ambalaj-uretimi", "publishedAt": now, "featured": True})
    # 22:30 UTC on May 31 is already June 1 in Istanbul
    blog.create_post({
        "title": "Edge",
        "categorySlug": "ambalaj-uretimi",
        "publishedAt": datetime(2025, 5, 31, 22, 30, tzinfo=timezone.utc),
    })
    blog.create_post({
        "title": "May",
        "categorySlug": "ambalaj-uretimi",
        "publishedAt": datetime(2025, 5, 10, tzinfo=timezone.utc),
    })

    stats = blog.posts.stats(now=now)
    assert stats == {"totalPosts": 3, "totalCategories": 1, "featuredPosts": 1, "publishedThisMonth": 2}

def test_clean_generated_content():
    raw = '{"title": "Başlık"}\nGerçek içerik\\nikinci satır\n\n\n\nson'
    assert clean_generated_content(raw) == "Gerçek içerik\nikinci satır\n\nson"

def test_clean_post_content_persists(blog, packaging):
    post_id = blog.create_post({
        "title": "X",
        "categorySlug": "ambalaj-uretimi",
        "content": '{"title": "X"}\nMetin',
    })
    assert blog.clean_post_content(post_id) == "Metin"
    assert blog.get_post(post_id)["content"] == "Metin"
