"""
Tests for registration, login, profile, devices and admin user management.
"""

from datetime import timedelta

from app.utils.auth import create_access_token
from tests.helpers import PASSWORD, auth_headers


def test_register_returns_token_and_user(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Alice", "email": "Alice@Example.com", "password": PASSWORD},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["token"]
    user = body["data"]["user"]
    assert user["email"] == "alice@example.com"
    assert user["role"] == "user"
    assert user["tasks"] == []
    assert "hashedPassword" not in user
    assert len(user["devices"]) == 1


def test_register_duplicate_email_is_rejected(client, alice):
    response = client.post(
        "/api/auth/register",
        json={"name": "Other", "email": "alice@example.com", "password": PASSWORD},
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "User already exists"}


def test_register_validation_errors_use_envelope(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "Shorty", "email": "not-an-email", "password": "123"},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "email" in body["message"]
    assert "password" in body["message"]


def test_login_success_and_failure(client, alice):
    ok = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD}
    )
    assert ok.status_code == 200
    assert ok.json()["data"]["user"]["id"] == alice["id"]

    wrong_password = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "nope123"}
    )
    assert wrong_password.status_code == 401
    assert wrong_password.json()["message"] == "Invalid credentials"

    unknown = client.post(
        "/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
    )
    assert unknown.status_code == 401
    assert unknown.json()["message"] == "Invalid credentials"


def test_login_from_new_device_adds_device(client, alice):
    client.post(
        "/api/auth/login",
        json={"email": "alice@example.com", "password": PASSWORD},
        headers={"User-Agent": "phone-app/1.0"},
    )

    response = client.get("/api/auth/devices", headers=alice["headers"])

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["data"][0]["deviceName"] == "phone-app/1.0"
    assert body["data"][0]["isActive"] is True
    assert [d["isActive"] for d in body["data"]].count(True) == 1


def test_profile_requires_authentication(client):
    missing = client.get("/api/auth/profile")
    assert missing.status_code == 401
    assert missing.json()["message"] == "Not authorized to access this route"

    garbage = client.get("/api/auth/profile", headers=auth_headers("not-a-jwt"))
    assert garbage.status_code == 401


def test_expired_token_is_rejected(client, alice):
    expired = create_access_token(
        {"sub": alice["id"]}, expires_delta=timedelta(minutes=-1)
    )

    response = client.get("/api/tasks", headers=auth_headers(expired))

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized to access this route"
    assert client.get("/api/tasks", headers=alice["headers"]).status_code == 200


def test_update_profile(client, alice, bob):
    response = client.put(
        "/api/auth/profile",
        json={"name": "Alice Liddell", "password": "newsecret"},
        headers=alice["headers"],
    )
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Alice Liddell"

    login = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "newsecret"}
    )
    assert login.status_code == 200

    taken = client.put(
        "/api/auth/profile", json={"email": "bob@example.com"}, headers=alice["headers"]
    )
    assert taken.status_code == 400
    assert taken.json()["message"] == "Email already in use"


def test_profile_role_cannot_be_self_assigned(client, alice):
    response = client.put(
        "/api/auth/profile", json={"role": "admin"}, headers=alice["headers"]
    )

    assert response.status_code == 400
    profile = client.get("/api/auth/profile", headers=alice["headers"]).json()["data"]
    assert profile["role"] == "user"


def test_admin_routes_reject_regular_users(client, alice):
    response = client.get("/api/auth/users", headers=alice["headers"])

    assert response.status_code == 403
    assert response.json()["message"] == (
        "User role user is not authorized to access this route (requires: admin)"
    )


def test_admin_lists_users_with_count(client, admin, alice, bob):
    response = client.get("/api/auth/users", headers=admin["headers"])

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    emails = {u["email"] for u in body["data"]}
    assert emails == {"admin@example.com", "alice@example.com", "bob@example.com"}


def test_admin_cannot_delete_self(client, admin):
    response = client.delete(f"/api/auth/users/{admin['id']}", headers=admin["headers"])

    assert response.status_code == 400
    assert response.json()["message"] == "You cannot delete your own account"


def test_admin_delete_unknown_and_malformed_user(client, admin):
    unknown = client.delete(
        "/api/auth/users/00000000-0000-4000-8000-000000000000", headers=admin["headers"]
    )
    assert unknown.status_code == 404

    malformed = client.delete("/api/auth/users/abc", headers=admin["headers"])
    assert malformed.status_code == 400
    assert malformed.json()["message"] == "Invalid ID format"


def test_deleting_user_removes_their_tasks_and_token(client, admin, alice, bob, create_task):
    alice_task = create_task(alice["id"])
    bob_task = create_task(bob["id"])
    client.post(
        f"/api/tasks/{bob_task['id']}/comments",
        json={"text": "Ping from admin"},
        headers=admin["headers"],
    )

    response = client.delete(f"/api/auth/users/{alice['id']}", headers=admin["headers"])
    assert response.status_code == 200

    assert client.get(f"/api/tasks/{alice_task['id']}", headers=admin["headers"]).status_code == 404
    assert client.get(f"/api/tasks/{bob_task['id']}", headers=admin["headers"]).status_code == 200
    assert client.get("/api/auth/profile", headers=alice["headers"]).status_code == 401


def test_admin_changes_role(client, admin, alice):
    response = client.put(
        f"/api/auth/users/{alice['id']}/role",
        json={"role": "admin"},
        headers=admin["headers"],
    )

    assert response.status_code == 200
    assert response.json()["data"]["role"] == "admin"
    assert client.get("/api/auth/users", headers=alice["headers"]).status_code == 200
