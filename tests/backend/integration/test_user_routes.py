import pytest


pytestmark = pytest.mark.asyncio


async def test_admin_user_management_flow(client, login_as):
    _, headers = await login_as("Manager")

    create_resp = await client.post(
        "/api/v1/admin/users",
        headers=headers,
        json={"username": "member1", "email": "member1@example.com", "password": "Member#123"},
    )
    assert create_resp.status_code == 200
    created = create_resp.json()["user"]
    assert created["roles"] == ["User"]

    list_resp = await client.get("/api/v1/admin/users", headers=headers, params={"offset": 0, "limit": 20})
    assert list_resp.status_code == 200
    body = list_resp.json()
    assert body["total"] == 2
    assert any(item["username"] == "member1" for item in body["items"])

    search_resp = await client.get("/api/v1/admin/users", headers=headers, params={"q": "MEMBER"})
    assert [item["username"] for item in search_resp.json()["items"]] == ["member1"]

    detail_resp = await client.get(f"/api/v1/admin/users/{created['id']}", headers=headers)
    assert detail_resp.status_code == 200
    assert detail_resp.json()["user"]["username"] == "member1"

    dup_resp = await client.post(
        "/api/v1/admin/users",
        headers=headers,
        json={"username": "member1", "password": "Member#123"},
    )
    assert dup_resp.status_code == 409
    assert dup_resp.json()["detail"]["code"] == "USERNAME_EXISTS"


async def test_unknown_user_detail_is_404(client, login_as):
    _, headers = await login_as("Administrator")

    resp = await client.get("/api/v1/admin/users/00000000-0000-0000-0000-000000000000", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "USER_NOT_FOUND"


class TestDelete:
    async def test_delete_then_gone(self, client, login_as, make_user):
        _, headers = await login_as("Administrator")
        target, _ = await make_user("Manager")

        resp = await client.delete(f"/api/v1/admin/users/{target.id}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["ok"] is True

        again = await client.delete(f"/api/v1/admin/users/{target.id}", headers=headers)
        assert again.status_code == 404

    async def test_cannot_delete_self(self, client, login_as, make_user):
        sa, headers = await login_as("SuperAdmin")
        await make_user("SuperAdmin")

        resp = await client.delete(f"/api/v1/admin/users/{sa.id}", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "SELF_DELETION"
        assert resp.json()["detail"]["message"] == "cannot delete your own account"

    async def test_cannot_delete_only_super_admin(self, client, login_as, make_user):
        _, headers = await login_as("Administrator")
        sa, _ = await make_user("SuperAdmin")

        resp = await client.delete(f"/api/v1/admin/users/{sa.id}", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "LAST_SUPERADMIN"

    async def test_super_admin_deletes_peer_super_admin(self, client, login_as, make_user):
        _, headers = await login_as("SuperAdmin")
        peer, _ = await make_user("SuperAdmin")

        resp = await client.delete(f"/api/v1/admin/users/{peer.id}", headers=headers)
        assert resp.status_code == 200

    async def test_manager_cannot_delete(self, client, login_as, make_user):
        _, headers = await login_as("Manager")
        target, _ = await make_user("User")

        resp = await client.delete(f"/api/v1/admin/users/{target.id}", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["detail"]["code"] == "FORBIDDEN"


class TestResetPassword:
    async def test_administrator_resets_user_password(self, client, login_as, make_user):
        _, headers = await login_as("Administrator")
        target, _ = await make_user("User")

        resp = await client.post(
            f"/api/v1/admin/users/{target.id}/reset-password",
            headers=headers,
            json={"newPassword": "Member#999"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["ok"] is True

        login_resp = await client.post(
            "/api/v1/auth/login",
            json={"username": target.username, "password": "Member#999"},
        )
        assert login_resp.status_code == 200

    @pytest.mark.parametrize("target_role", ["SuperAdmin", "Administrator"])
    async def test_administrator_cannot_reset_higher_or_peer(self, client, login_as, make_user, target_role):
        _, headers = await login_as("Administrator")
        target, password = await make_user(target_role)

        resp = await client.post(
            f"/api/v1/admin/users/{target.id}/reset-password",
            headers=headers,
            json={"newPassword": "Hijack#999"},
        )
        assert resp.status_code == 403
        assert resp.json()["detail"]["code"] == "INSUFFICIENT_PRIVILEGE"

        login_resp = await client.post(
            "/api/v1/auth/login",
            json={"username": target.username, "password": password},
        )
        assert login_resp.status_code == 200

    async def test_super_admin_resets_administrator(self, client, login_as, make_user):
        _, headers = await login_as("SuperAdmin")
        target, _ = await make_user("Administrator")

        resp = await client.post(
            f"/api/v1/admin/users/{target.id}/reset-password",
            headers=headers,
            json={"newPassword": "Reset#1234"},
        )
        assert resp.status_code == 200


async def test_non_admin_locked_out(client, login_as):
    _, headers = await login_as("User")

    resp = await client.get("/api/v1/admin/users", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "FORBIDDEN_ADMIN_ONLY"


async def test_admin_create_rejects_overlong_email(client, login_as):
    _, headers = await login_as("Administrator")

    resp = await client.post(
        "/api/v1/admin/users",
        headers=headers,
        json={"username": "member2", "email": "m" * 300 + "@example.com", "password": "Member#123"},
    )
    assert resp.status_code == 422
