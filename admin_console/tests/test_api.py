from unittest.mock import patch

from admin_console.errors import NetworkFailure

def test_health(client):
    assert client.get("/health").json()["status"] == "ok"

def test_login_and_me(client, make_user):
    make_user(role="moderator", email="mod@mkngroup.com.tr", password="pw-123456")

    r = client.post("/auth/login", data={"username": "MOD@mkngroup.com.tr", "password": "pw-123456"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["user"]["role"] == "moderator"
    assert "blog.write" in me["permissions"]
    assert "blog.delete" not in me["permissions"]
    assert "system" not in [section["id"] for section in me["navigation"]]

def test_login_rejects_bad_password(client, make_user):
    make_user(email="a@mkngroup.com.tr", password="right")
    r = client.post("/auth/login", data={"username": "a@mkngroup.com.tr", "password": "wrong"})
    assert r.status_code == 401

def test_inactive_user_cannot_log_in(client, make_user):
    make_user(email="old@mkngroup.com.tr", password="pw", is_active=False)
    r = client.post("/auth/login", data={"username": "old@mkngroup.com.tr", "password": "pw"})
    assert r.status_code == 401

def test_anonymous_request_is_401(client):
    assert client.get("/blog/posts").status_code == 401

def test_missing_permission_is_403(client, make_user, auth_headers):
    user = make_user(role="user")
    r = client.post("/blog/categories", json={"name": "Kozmetik"}, headers=auth_headers(user))
    assert r.status_code == 403
    assert r.json() == {"success": False, "error": "Missing permission 'blog.write'", "type": "PermissionDenied"}

def test_blog_flow_and_error_mapping(client, make_user, auth_headers):
    headers = auth_headers(make_user(role="admin"))

    r = client.post("/blog/categories", json={"name": "Ambalaj Üretimi"}, headers=headers)
    assert r.status_code == 201
    category_id = r.json()["id"]

    dup = client.post("/blog/categories", json={"name": "Ambalaj üretimi"}, headers=headers)
    assert dup.status_code == 409
    assert dup.json()["type"] == "DuplicateSlug"

    r = client.post("/blog/posts", json={"title": "İlk Yazı", "categorySlug": "ambalaj-uretimi"}, headers=headers)
    assert r.status_code == 201
    post_id = r.json()["id"]

    categories = client.get("/blog/categories", headers=headers).json()
    assert [(c["slug"], c["count"]) for c in categories] == [("all", 1), ("ambalaj-uretimi", 1)]

    in_use = client.delete(f"/blog/categories/{category_id}", headers=headers)
    assert in_use.status_code == 409
    assert in_use.json()["type"] == "CategoryInUse"

    reserved = client.post("/blog/posts", json={"title": "X", "categorySlug": "all"}, headers=headers)
    assert reserved.status_code == 422
    assert reserved.json()["type"] == "ReservedCategory"

    assert client.get("/blog/posts/by-slug/ilk-yazi", headers=headers).json()["id"] == post_id
    assert client.delete(f"/blog/posts/{post_id}", headers=headers).status_code == 200
    assert client.delete(f"/blog/posts/{post_id}", headers=headers).status_code == 404
    assert client.delete(f"/blog/categories/{category_id}", headers=headers).status_code == 200

def test_explicit_grant_opens_route_for_plain_user(client, make_user, auth_headers):
    user = make_user(role="user", permissions={"canManageCompanies": True})
    headers = auth_headers(user)
    r = client.post("/companies", json={"name": "Acme", "tags": ["vip"]}, headers=headers)
    assert r.status_code == 201
    company = client.get(f"/companies/{r.json()['id']}", headers=headers).json()
    assert company["status"] == "lead"
    assert client.get("/companies/stats", headers=headers).json()["total"] == 1

def test_compose_budget_and_save(client, make_user, auth_headers):
    user = make_user(role="moderator")
    headers = auth_headers(user)

    budget = client.post("/social/compose/budget", json={"platform": "twitter", "content": "x" * 281}, headers=headers)
    assert budget.json()["isOverLimit"] is True

    state = {
        "globalSettings": {"title": "Lansman", "topic": "Yeni seri"},
        "selectedPlatforms": ["instagram"],
        "platformContent": {"instagram": {"content": "Merhaba", "hashtags": ["#yeni"]}},
        "activePlatform": "instagram",
    }
    r = client.post("/social/compose/save", json={"state": state}, headers=headers)
    assert r.status_code == 201
    post = client.get(f"/social/posts/{r.json()['id']}", headers=headers).json()
    assert post["platforms"] == ["instagram"]
    assert post["authorId"] == user.id
    assert post["status"] == "draft"

def test_compose_generate_uses_llm(client, make_user, auth_headers):
    headers = auth_headers(make_user(role="moderator"))
    state = {
        "globalSettings": {"topic": "Yeni seri"},
        "selectedPlatforms": ["instagram", "twitter"],
        "platformContent": {},
    }
    results = {
        "instagram": {"content": "IG", "hashtags": ["#ig"]},
        "twitter": {"content": "TW", "hashtags": []},
    }
    with patch("admin_console.services.llm.generate_multi_platform_content", return_value=results) as generate:
        r = client.post("/social/compose/generate", json={"state": state, "mode": "all"}, headers=headers)
    assert r.status_code == 200
    generate.assert_called_once()
    body = r.json()
    assert body["platformContent"]["instagram"]["content"] == "IG"
    assert body["aiGenerated"] is True

def test_mail_network_failure_maps_to_504(client, make_user, auth_headers):
    headers = auth_headers(make_user(role="admin"))
    with patch("admin_console.services.mailbox.MailboxClient.list_messages", side_effect=NetworkFailure("timeout")):
        r = client.get("/outlook/messages", headers=headers)
    assert r.status_code == 504
    assert r.json()["type"] == "NetworkFailure"

def test_role_permission_update_requires_admin_rights(client, make_user, auth_headers):
    admin = auth_headers(make_user(role="admin"))
    assert client.get("/roles", headers=admin).status_code == 403

    root = auth_headers(make_user(role="super_admin"))
    r = client.put("/roles/moderator/permissions", json={"permissions": ["blog.read"]}, headers=root)
    assert r.status_code == 200
    assert r.json()["permissions"] == ["contacts.view", "blog.read"]

def test_send_mail_with_attachment(client, make_user, auth_headers):
    headers = auth_headers(make_user(role="admin"))
    payload = {
        "to": ["musteri@example.com"],
        "subject": "Teklif",
        "body": "<p>Ekte</p>",
        "attachments": [{"name": "a.txt", "contentType": "text/plain", "contentBytes": "aGVsbG8="}],
    }
    with patch("admin_console.services.mailbox.MailboxClient._call", return_value={"success": True}) as call:
        r = client.post("/outlook/send", json=payload, headers=headers)
    assert r.status_code == 200
    sent = call.call_args.kwargs["body"]
    assert sent["attachments"] == [{"name": "a.txt", "contentType": "text/plain", "contentBytes": "aGVsbG8="}]

    missing = dict(payload, attachments=[{"name": "a.txt", "content": "aGVsbG8="}])
    assert client.post("/outlook/send", json=missing, headers=headers).status_code == 422
