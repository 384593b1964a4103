from typing import Any

from admin_console.services.permissions import SessionContext, has_permission

# (section id, section name, [(item name, href, permission key or None)])
NAVIGATION = (
    ("dashboard", "Dashboard", [("Dashboard", "/admin/dashboard", None)]),
    ("blog", "Blog Yönetimi", [
        ("Tüm Blog Yazıları", "/admin/blog", "blog.read"),
        ("Yeni Blog Oluştur", "/admin/blog/new", "blog.write"),
        ("Kategoriler", "/admin/blog/categories", "blog.read"),
    ]),
    ("social-media", "Sosyal Medya", [
        ("Dashboard", "/admin/social-media", "social_media.view"),
        ("İçerik Stüdyosu", "/admin/social-media/content-studio", "social_media.create"),
        ("İçerik Kütüphanesi", "/admin/social-media/content-list", "social_media.view"),
    ]),
    ("customers", "Müşteri Yönetimi", [
        ("Firmalar", "/admin/companies", "companies.view"),
        ("E-posta", "/admin/outlook", "outlook.view"),
    ]),
    ("users", "Kullanıcılar & Yetkiler", [
        ("Kullanıcılar", "/admin/users", "users.view"),
        ("Yetkiler", "/admin/permissions", "users.manage_permissions"),
    ]),
    ("system", "Sistem", [
        ("Loglar", "/admin/logs", "system.logs"),
        ("Ayarlar", "/admin/settings", "system.settings"),
    ]),
)

def build_navigation(ctx: SessionContext) -> list[dict[str, Any]]:
    """Sections the user can reach; a section with no visible items is dropped."""
    menu = []
    for section_id, name, items in NAVIGATION:
        visible = [
            {"name": item_name, "href": href}
            for item_name, href, key in items
            if key is None or has_permission(ctx, key)
        ]
        if visible:
            menu.append({"id": section_id, "name": name, "items": visible})
    return menu
