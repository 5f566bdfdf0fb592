from conftest import PASSWORD


async def test_list_users_requires_auth(client):
    resp = await client.get("/users")
    assert resp.status_code == 401


async def test_list_users_with_role_filter(client, client_user, freelancer_a, freelancer_b):
    resp = await client.get("/users", params={"role": "freelancer"}, headers=client_user["headers"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 2
    assert {u["email"] for u in body["data"]} == {"alice@example.com", "bob@example.com"}

    resp = await client.get("/users", params={"limit": 1}, headers=client_user["headers"])
    assert resp.json()["count"] == 1


async def test_pagination_bounds_are_validated(client, client_user):
    resp = await client.get("/users", params={"limit": 0}, headers=client_user["headers"])
    assert resp.status_code == 400
    resp = await client.get("/users", params={"limit": 1000}, headers=client_user["headers"])
    assert resp.status_code == 400


async def test_get_user_includes_profile(client, client_user, freelancer_a):
    resp = await client.get(f"/users/{freelancer_a['user']['id']}", headers=client_user["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["freelancer_profile"]["headline"] == "React developer"

    resp = await client.get("/users/does-not-exist", headers=client_user["headers"])
    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found"


async def test_update_own_user_and_profile(client, freelancer_a):
    user_id = freelancer_a["user"]["id"]
    resp = await client.patch(
        f"/users/{user_id}",
        json={"country": "Taiwan", "profile": {"hourly_rate": 55, "bio": "Frontend specialist"}},
        headers=freelancer_a["headers"],
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["country"] == "Taiwan"
    assert data["first_name"] == "Test"
    assert data["freelancer_profile"]["hourly_rate"] == 55
    assert data["freelancer_profile"]["headline"] == "React developer"


async def test_cannot_update_or_delete_someone_else(client, freelancer_a, freelancer_b):
    target = freelancer_b["user"]["id"]
    resp = await client.patch(f"/users/{target}", json={"country": "X"}, headers=freelancer_a["headers"])
    assert resp.status_code == 403
    resp = await client.delete(f"/users/{target}", headers=freelancer_a["headers"])
    assert resp.status_code == 403


async def test_only_admin_changes_account_status(client, freelancer_a, admin_user):
    user_id = freelancer_a["user"]["id"]
    resp = await client.patch(f"/users/{user_id}", json={"is_active": False}, headers=freelancer_a["headers"])
    assert resp.status_code == 403

    resp = await client.patch(f"/users/{user_id}", json={"is_active": False}, headers=admin_user["headers"])
    assert resp.status_code == 200
    assert resp.json()["data"]["is_active"] is False

    # 停權後無法登入
    resp = await client.post("/auth/login", json={"email": "alice@example.com", "password": PASSWORD})
    assert resp.status_code == 401


async def test_admin_creates_user(client, admin_user, client_user):
    payload = {"email": "second-admin@example.com", "password": PASSWORD, "role": "admin"}
    resp = await client.post("/users", json=payload, headers=client_user["headers"])
    assert resp.status_code == 403

    resp = await client.post("/users", json=payload, headers=admin_user["headers"])
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["role"] == "admin"
    assert data["freelancer_profile"] is None and data["client_profile"] is None

    resp = await client.post("/users", json=payload, headers=admin_user["headers"])
    assert resp.status_code == 409


async def test_delete_own_account(client, freelancer_b):
    user_id = freelancer_b["user"]["id"]
    resp = await client.delete(f"/users/{user_id}", headers=freelancer_b["headers"])
    assert resp.status_code == 200
    assert resp.json()["message"] == "User deleted successfully"

    # Token 對應的使用者已不存在
    resp = await client.get("/auth/me", headers=freelancer_b["headers"])
    assert resp.status_code == 401
