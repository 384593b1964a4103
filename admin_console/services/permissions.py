# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

"""Permission catalogue, session context and the permission gate.

A grant is looked up through ``RESOLUTION_ORDER``: the user's own keys, then
legacy coarse-grained flags, then the role's key list, then the super role.
The first tier that grants wins; a tier that does not grant never denies.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

from sqlalchemy.orm import Session

from admin_console.errors import NotFound
from admin_console.logging_setup import log_event
from admin_console.models import User
from admin_console.services.documents import DocumentStore

ROLES_COLLECTION = "roles"
SUPER_ROLE = "super_admin"

def _perm(name: str, category: str) -> dict[str, str]:
    return {"name": name, "category": category}

DETAILED_PERMISSIONS: dict[str, dict[str, str]] = {
    "users.view": _perm("Kullanıcıları Görüntüle", "users"),
    "users.create": _perm("Kullanıcı Oluştur", "users"),
    "users.edit": _perm("Kullanıcı Düzenle", "users"),
    "users.delete": _perm("Kullanıcı Sil", "users"),
    "users.manage_roles": _perm("Rol Yönetimi", "users"),
    "users.manage_permissions": _perm("Yetki Yönetimi", "users"),
    "contacts.view": _perm("Mesajları Görüntüle", "contacts"),
    "contacts.update": _perm("Mesaj Durumu Güncelle", "contacts"),
    "contacts.delete": _perm("Mesaj Sil", "contacts"),
    "contacts.respond": _perm("Mesaj Yanıtla", "contacts"),
    "quotes.view": _perm("Teklifleri Görüntüle", "quotes"),
    "quotes.create": _perm("Teklif Oluştur", "quotes"),
    "quotes.edit": _perm("Teklif Düzenle", "quotes"),
    "quotes.delete": _perm("Teklif Sil", "quotes"),
    "companies.view": _perm("Şirketleri Görüntüle", "companies"),
    "companies.create": _perm("Şirket Oluştur", "companies"),
    "companies.edit": _perm("Şirket Düzenle", "companies"),
    "companies.delete": _perm("Şirket Sil", "companies"),
    "content.view": _perm("İçerikleri Görüntüle", "content"),
    "content.create": _perm("İçerik Oluştur", "content"),
    "content.edit": _perm("İçerik Düzenle", "content"),
    "content.delete": _perm("İçerik Sil", "content"),
    "content.publish": _perm("İçerik Yayınla", "content"),
    "blog.read": _perm("Blog Yazılarını Görüntüle", "content"),
    "blog.write": _perm("Blog Yazısı Yaz", "content"),
    "blog.delete": _perm("Blog Yazısı Sil", "content"),
    "social_media.view": _perm("Sosyal Medyayı Görüntüle", "content"),
    "social_media.create": _perm("Sosyal Medya İçeriği Oluştur", "content"),
    "social_media.edit": _perm("Sosyal Medya İçeriği Düzenle", "content"),
    "social_media.delete": _perm("Sosyal Medya İçeriği Sil", "content"),
    "outlook.view": _perm("E-postaları Görüntüle", "contacts"),
    "outlook.send": _perm("E-posta Gönder", "contacts"),
    "outlook.delete": _perm("E-posta Sil", "contacts"),
    "analytics.view": _perm("Analitik Görüntüle", "analytics"),
    "analytics.export": _perm("Rapor Dışa Aktar", "analytics"),
    "system.settings": _perm("Sistem Ayarları", "system"),
    "system.backup": _perm("Sistem Yedeği", "system"),
    "system.logs": _perm("Sistem Logları", "system"),
}

DEFAULT_ROLE_PERMISSIONS: dict[str, list[str]] = {
    SUPER_ROLE: list(DETAILED_PERMISSIONS),
    "admin": [
        "users.view", "users.create", "users.edit", "users.manage_roles",
        "contacts.view", "contacts.update", "contacts.delete", "contacts.respond",
        "quotes.view", "quotes.create", "quotes.edit", "quotes.delete",
        "companies.view", "companies.create", "companies.edit", "companies.delete",
        "content.view", "content.create", "content.edit", "content.delete", "content.publish",
        "blog.read", "blog.write", "blog.delete",
        "social_media.view", "social_media.create", "social_media.edit", "social_media.delete",
        "outlook.view", "outlook.send", "outlook.delete",
        "analytics.view", "analytics.export",
    ],
    "moderator": [
        "users.view",
        "contacts.view", "contacts.update", "contacts.respond",
        "quotes.view", "quotes.edit",
        "companies.view",
        "content.view", "content.edit",
        "blog.read", "blog.write",
        "social_media.view", "social_media.create", "social_media.edit",
        "outlook.view",
    ],
    "user": ["contacts.view", "quotes.view", "content.view", "blog.read"],
}

ROLE_NAMES = {
    SUPER_ROLE: "Süper Admin",
    "admin": "Admin",
    "moderator": "Moderatör",
    "user": "Kullanıcı",
}

# Keys a system role keeps no matter what an editor removes
MINIMUM_ROLE_PERMISSIONS: dict[str, list[str]] = {
    SUPER_ROLE: [],
    "admin": ["users.view", "contacts.view"],
    "moderator": ["contacts.view"],
    "user": ["contacts.view"],
}

LEGACY_ALIASES: dict[str, tuple[str, ...]] = {
    "canManageUsers": (
        "users.view", "users.create", "users.edit", "users.delete", "users.manage_roles",
    ),
    "canManageContacts": (
        "contacts.view", "contacts.update", "contacts.delete", "contacts.respond",
        "outlook.view", "outlook.send", "outlook.delete",
    ),
    "canManageQuotes": ("quotes.view", "quotes.create", "quotes.edit", "quotes.delete"),
    "canManageCompanies": ("companies.view", "companies.create", "companies.edit", "companies.delete"),
    "canManageContent": (
        "content.view", "content.create", "content.edit", "content.delete", "content.publish",
        "blog.read", "blog.write", "blog.delete",
        "social_media.view", "social_media.create", "social_media.edit", "social_media.delete",
    ),
    "canViewAnalytics": ("analytics.view", "analytics.export"),
    "canManageSettings": ("system.settings", "system.backup", "system.logs"),
    "canManageAdmins": ("users.manage_roles", "users.manage_permissions"),
}

@dataclass(frozen=True)
class SessionContext:
    """Read-only view of who is signed in, built once at login."""

    user_id: Any
    email: str
    role: str
    permissions: Mapping[str, bool] = field(default_factory=dict)
    role_permissions: frozenset = frozenset()
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "permissions", MappingProxyType(dict(self.permissions or {})))
        object.__setattr__(self, "role_permissions", frozenset(self.role_permissions or ()))

def _explicit(ctx: SessionContext, key: str) -> bool:
    return ctx.permissions.get(key) is True

def _legacy_alias(ctx: SessionContext, key: str) -> bool:
    return any(
        ctx.permissions.get(flag) is True and key in keys
        for flag, keys in LEGACY_ALIASES.items()
    )

def _role(ctx: SessionContext, key: str) -> bool:
    return key in ctx.role_permissions

def _super_role(ctx: SessionContext, key: str) -> bool:
    return ctx.role == SUPER_ROLE

RESOLUTION_ORDER: tuple[tuple[str, Callable[[SessionContext, str], bool]], ...] = (
    ("explicit", _explicit),
    ("legacy_alias", _legacy_alias),
    ("role", _role),
    ("super_role", _super_role),
)

def resolve(ctx: SessionContext | None, key: str) -> str | None:
    """Name of the first tier granting ``key``, or None."""
    if ctx is None:
        return None
    for tier, resolver in RESOLUTION_ORDER:
        if resolver(ctx, key):
            return tier
    return None

def has_permission(ctx: SessionContext | None, key: str) -> bool:
    return resolve(ctx, key) is not None

def effective_permissions(ctx: SessionContext) -> list[str]:
    keys = set(DETAILED_PERMISSIONS) | {k for k in ctx.permissions if "." in k} | set(ctx.role_permissions)
    return sorted(k for k in keys if has_permission(ctx, k))

UNAUTHORIZED = {
    "type": "unauthorized",
    "title": "Rol Yetkisi Yetersiz",
    "message": "Bu bölüme erişim için gerekli rol seviyeniz bulunmamaktadır.",
}

class PermissionGate:
    """Wraps content behind one permission key.

    ``render`` returns the wrapped content when granted. Otherwise it returns
    the fallback if one is given, the ``UNAUTHORIZED`` placeholder when
    ``show_message`` is set, or None.
    """

    def __init__(self, ctx: SessionContext | None, key: str, fallback: Any = None, show_message: bool = True):
        self.ctx = ctx
        self.key = key
        self.fallback = fallback
        self.show_message = show_message

    @property
    def allowed(self) -> bool:
        return has_permission(self.ctx, self.key)

    def render(self, children: Any) -> Any:
        if self.allowed:
            return children
        if self.fallback is not None:
            return self.fallback
        if self.show_message:
            return UNAUTHORIZED
        return None

class RoleService:
    def __init__(self, db: Session):
        self.roles = DocumentStore(db).collection(ROLES_COLLECTION)

    def ensure_defaults(self) -> int:
        created = 0
        for role_id, permissions in DEFAULT_ROLE_PERMISSIONS.items():
            if self.roles.get(role_id) is None:
                self.roles.set(role_id, {
                    "name": ROLE_NAMES[role_id],
                    "isSystemRole": True,
                    "permissions": list(permissions),
                })
                created += 1
        if created:
            log_event("roles_seeded", count=created)
        return created

    def list_roles(self) -> list[dict[str, Any]]:
        return self.roles.query(order_by="name")

    def permissions_for(self, role_id: str) -> list[str]:
        role = self.roles.get(role_id)
        if role is None:
            return list(DEFAULT_ROLE_PERMISSIONS.get(role_id, []))
        return list(role.get("permissions") or [])

    def update_role_permissions(self, role_id: str, permissions: list[str]) -> list[str]:
        role = self.roles.get(role_id)
        if role is None:
            raise NotFound(f"Role {role_id} not found")
        final = list(dict.fromkeys(permissions))
        if role.get("isSystemRole"):
            final = list(dict.fromkeys([*MINIMUM_ROLE_PERMISSIONS.get(role_id, []), *final]))
        self.roles.update(role_id, {"permissions": final})
        log_event("role_permissions_updated", role=role_id, count=len(final))
        return final

def build_session_context(db: Session, user: User) -> SessionContext:
    return SessionContext(
        user_id=user.id,
        email=user.email,
        name=user.name or "",
        role=user.role or "user",
        permissions=user.permissions or {},
        role_permissions=RoleService(db).permissions_for(user.role or "user"),
    )
