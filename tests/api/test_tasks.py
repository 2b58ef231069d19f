"""
Tests for task CRUD, visibility and the authorization policy as seen over HTTP.
"""

import pytest

from tests.helpers import task_payload

MISSING_ID = "00000000-0000-4000-8000-000000000000"


def test_health_check(client):
    response = client.get("/api/")

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_admin_creates_task_with_defaults(client, admin, alice):
    response = client.post(
        "/api/tasks", json=task_payload(alice["id"]), headers=admin["headers"]
    )

    assert response.status_code == 201
    task = response.json()["data"]
    assert task["status"] == "todo"
    assert task["assignedTo"] == alice["id"]
    assert task["assignedToName"] == "Alice"
    assert task["createdBy"] == admin["id"]
    assert task["createdByName"] == "Ada Admin"
    assert task["photos"] == []
    assert task["comments"] == []
    assert task["deadline"] == "2030-01-15"


def test_regular_user_cannot_create_task(client, alice):
    response = client.post(
        "/api/tasks", json=task_payload(alice["id"]), headers=alice["headers"]
    )

    assert response.status_code == 403


@pytest.mark.parametrize(
    "overrides",
    [
        {"priority": "urgent"},
        {"group": "Mobile"},
        {"status": "done"},
        {"deadline": "someday"},
        {"title": ""},
    ],
)
def test_create_task_rejects_invalid_values(client, admin, alice, overrides):
    response = client.post(
        "/api/tasks",
        json=task_payload(alice["id"], **overrides),
        headers=admin["headers"],
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_create_task_for_unknown_assignee(client, admin):
    response = client.post(
        "/api/tasks", json=task_payload(MISSING_ID), headers=admin["headers"]
    )

    assert response.status_code == 400


def test_task_visibility(client, admin, alice, bob, create_task):
    alice_task = create_task(alice["id"])
    bob_task = create_task(bob["id"], title="Design schema", group="Database")

    alice_list = client.get("/api/tasks", headers=alice["headers"]).json()
    assert alice_list["count"] == 1
    assert [t["id"] for t in alice_list["data"]] == [alice_task["id"]]

    admin_list = client.get("/api/tasks", headers=admin["headers"]).json()
    assert {t["id"] for t in admin_list["data"]} == {alice_task["id"], bob_task["id"]}

    assert client.get(f"/api/tasks/{alice_task['id']}", headers=alice["headers"]).status_code == 200
    assert client.get(f"/api/tasks/{bob_task['id']}", headers=alice["headers"]).status_code == 403


def test_task_list_filters(client, admin, alice, create_task):
    create_task(alice["id"], priority="low", group="Backend")
    create_task(alice["id"], priority="high", group="Frontend")

    response = client.get(
        "/api/tasks", params={"priority": "low"}, headers=admin["headers"]
    )
    body = response.json()
    assert body["count"] == 1
    assert body["data"][0]["group"] == "Backend"


def test_get_missing_and_malformed_task(client, alice):
    missing = client.get(f"/api/tasks/{MISSING_ID}", headers=alice["headers"])
    assert missing.status_code == 404
    assert missing.json()["message"] == "Task not found"

    malformed = client.get("/api/tasks/not-an-id", headers=alice["headers"])
    assert malformed.status_code == 400
    assert malformed.json()["message"] == "Invalid ID format"


def test_unauthenticated_request_gets_401_before_lookup(client):
    response = client.get(f"/api/tasks/{MISSING_ID}")

    assert response.status_code == 401


def test_update_round_trip(client, admin, alice, create_task):
    task = create_task(alice["id"])

    response = client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "Build signup page", "priority": "medium"},
        headers=admin["headers"],
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["title"] == "Build signup page"
    assert updated["priority"] == "medium"
    assert updated["shortDescription"] == task["shortDescription"]
    assert updated["lastUpdatedBy"] == admin["id"]

    fetched = client.get(f"/api/tasks/{task['id']}", headers=alice["headers"]).json()
    assert fetched["data"]["title"] == "Build signup page"


@pytest.mark.parametrize(
    "field", ["id", "_id", "createdBy", "createdAt", "updatedAt", "photos", "comments"]
)
def test_update_rejects_immutable_fields(client, admin, alice, create_task, field):
    task = create_task(alice["id"])

    response = client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "x", field: "tampered"},
        headers=admin["headers"],
    )

    assert response.status_code == 400
    assert f"Field '{field}' cannot be modified" in response.json()["message"]


def test_update_rejects_null_for_required_field(client, admin, alice, create_task):
    task = create_task(alice["id"])

    response = client.put(
        f"/api/tasks/{task['id']}", json={"title": None}, headers=admin["headers"]
    )

    assert response.status_code == 400


def test_assignee_may_only_change_status(client, alice, create_task):
    task = create_task(alice["id"])

    status_change = client.put(
        f"/api/tasks/{task['id']}", json={"status": "inProgress"}, headers=alice["headers"]
    )
    assert status_change.status_code == 200
    assert status_change.json()["data"]["status"] == "inProgress"
    assert status_change.json()["data"]["lastUpdatedByName"] == "Alice"

    title_change = client.put(
        f"/api/tasks/{task['id']}", json={"title": "Mine now"}, headers=alice["headers"]
    )
    assert title_change.status_code == 403


def test_unrelated_user_cannot_update(client, bob, alice, create_task):
    task = create_task(alice["id"])

    response = client.put(
        f"/api/tasks/{task['id']}", json={"status": "completed"}, headers=bob["headers"]
    )

    assert response.status_code == 403


def test_reassign_task(client, admin, alice, bob, create_task):
    task = create_task(alice["id"])

    response = client.put(
        f"/api/tasks/{task['id']}", json={"assignedTo": bob["id"]}, headers=admin["headers"]
    )

    assert response.status_code == 200
    assert response.json()["data"]["assignedToName"] == "Bob"
    assert client.get(f"/api/tasks/{task['id']}", headers=alice["headers"]).status_code == 403
    assert client.get(f"/api/tasks/{task['id']}", headers=bob["headers"]).status_code == 200


def test_delete_task_then_404(client, admin, alice, create_task):
    task = create_task(alice["id"])

    forbidden = client.delete(f"/api/tasks/{task['id']}", headers=alice["headers"])
    assert forbidden.status_code == 403

    first = client.delete(f"/api/tasks/{task['id']}", headers=admin["headers"])
    assert first.status_code == 200
    assert first.json()["message"] == "Task deleted successfully"

    second = client.delete(f"/api/tasks/{task['id']}", headers=admin["headers"])
    assert second.status_code == 404


def test_assigned_task_appears_once_in_user_task_list(client, admin, alice, create_task):
    task = create_task(alice["id"])
    client.put(
        f"/api/tasks/{task['id']}", json={"status": "inProgress"}, headers=alice["headers"]
    )

    profile = client.get("/api/auth/profile", headers=alice["headers"]).json()["data"]
    assert profile["tasks"] == [task["id"]]

    client.delete(f"/api/tasks/{task['id']}", headers=admin["headers"])
    profile = client.get("/api/auth/profile", headers=alice["headers"]).json()["data"]
    assert profile["tasks"] == []
