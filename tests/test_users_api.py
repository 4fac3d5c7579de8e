# tests/test_users_api.py

from __future__ import annotations

from fastapi.testclient import TestClient

from taskboard.api.deps import get_user_store
from taskboard.main import app

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def test_create_user(client: TestClient) -> None:
    resp = client.post("/api/users", json={"name": "Ada", "email": "ada@example.com"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User created!"
    assert body["data"]["name"] == "Ada"
    assert body["data"]["pendingTasks"] == []
    assert body["data"]["_id"]
    assert body["data"]["dateCreated"]


def test_create_user_without_email_persists_nothing(client: TestClient) -> None:
    resp = client.post("/api/users", json={"name": "Ada"})
    assert resp.status_code == 400
    assert resp.json() == {
        "message": "Validation Error: 'name' and 'email' are required fields.",
        "data": [],
    }
    assert client.get("/api/users", params={"count": "true"}).json()["data"] == 0


def test_create_user_with_empty_name(client: TestClient) -> None:
    resp = client.post("/api/users", json={"name": "", "email": "ada@example.com"})
    assert resp.status_code == 400


def test_wrong_field_type_is_validation_error(client: TestClient) -> None:
    resp = client.post("/api/users", json={"name": "Ada", "email": "a@x.io", "pendingTasks": "t1"})
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("Validation Error: ")
    assert resp.json()["data"] == []


def test_duplicate_email(client: TestClient, create_user) -> None:
    create_user(email="ada@example.com")
    resp = client.post("/api/users", json={"name": "Other", "email": "ada@example.com"})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Email already exists.", "data": []}


def test_list_users_has_no_default_limit(client: TestClient, create_user) -> None:
    for i in range(105):
        create_user(name=f"user{i}", email=f"user{i}@example.com")

    resp = client.get("/api/users")
    assert resp.status_code == 200
    assert resp.json()["message"] == "OK"
    assert len(resp.json()["data"]) == 105


def test_list_users_query(client: TestClient, create_user) -> None:
    create_user(name="Ada", email="ada@example.com")
    create_user(name="Bob", email="bob@example.com")
    create_user(name="Cy", email="cy@example.com")

    resp = client.get(
        "/api/users",
        params={"where": '{"name": {"$ne": "Bob"}}', "sort": '{"name": -1}', "select": '{"name": 1, "_id": 0}'},
    )
    assert resp.json()["data"] == [{"name": "Cy"}, {"name": "Ada"}]

    resp = client.get("/api/users", params={"sort": '{"name": 1}', "skip": "1", "limit": "1"})
    assert [doc["name"] for doc in resp.json()["data"]] == ["Bob"]

    resp = client.get("/api/users", params={"where": '{"name": "Ada"}', "count": "true"})
    assert resp.json() == {"message": "OK", "data": 1}


def test_list_users_non_numeric_limit_falls_back(client: TestClient, create_user) -> None:
    create_user(name="Ada", email="ada@example.com")
    create_user(name="Bob", email="bob@example.com")

    resp = client.get("/api/users", params={"limit": "lots", "skip": "none"})
    assert len(resp.json()["data"]) == 2


def test_list_users_huge_skip_and_limit(client: TestClient, create_user) -> None:
    create_user(name="Ada", email="ada@example.com")
    create_user(name="Bob", email="bob@example.com")

    resp = client.get("/api/users", params={"limit": "99999999999999999999"})
    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 2

    resp = client.get("/api/users", params={"skip": "99999999999999999999"})
    assert resp.status_code == 200
    assert resp.json()["data"] == []


def test_bad_json_does_not_touch_the_store(client: TestClient) -> None:
    class ExplodingStore:
        def __getattr__(self, name):
            raise AssertionError(f"store.{name} should not be used")

    app.dependency_overrides[get_user_store] = lambda: ExplodingStore()
    resp = client.get("/api/users", params={"where": "{bad json"})
    assert resp.status_code == 400
    assert resp.json() == {
        "message": "Bad Request: Invalid JSON in 'where', 'sort', or 'select' query parameter.",
        "data": [],
    }


def test_unsupported_operator_is_bad_request(client: TestClient) -> None:
    resp = client.get("/api/users", params={"where": '{"name": {"$where": "sleep(1)"}}'})
    assert resp.status_code == 400


def test_malformed_id_in_where_is_not_found(client: TestClient) -> None:
    resp = client.get("/api/users", params={"where": '{"_id": "abc"}'})
    assert resp.status_code == 404
    assert resp.json() == {"message": "User not found.", "data": []}


def test_get_user(client: TestClient, create_user) -> None:
    user = create_user()
    resp = client.get(f"/api/users/{user['_id']}")
    assert resp.status_code == 200
    assert resp.json()["data"] == user

    resp = client.get(f"/api/users/{user['_id']}", params={"select": '{"email": 1}'})
    assert resp.json()["data"] == {"_id": user["_id"], "email": "ada@example.com"}


def test_get_user_not_found(client: TestClient) -> None:
    assert client.get(f"/api/users/{MISSING_ID}").status_code == 404
    resp = client.get("/api/users/not-a-valid-id")
    assert resp.status_code == 404
    assert resp.json() == {"message": "User not found.", "data": []}


def test_get_user_bad_select(client: TestClient, create_user) -> None:
    user = create_user()
    resp = client.get(f"/api/users/{user['_id']}", params={"select": "{"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Bad Request: Invalid JSON in 'select' query parameter."


def test_update_user(client: TestClient, create_user) -> None:
    user = create_user()
    resp = client.put(f"/api/users/{user['_id']}", json={"name": "Ada Lovelace"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "User updated!"
    assert body["data"]["name"] == "Ada Lovelace"
    assert body["data"]["email"] == "ada@example.com"
    assert body["data"]["dateCreated"] == user["dateCreated"]


def test_update_user_validation(client: TestClient, create_user) -> None:
    user = create_user()
    create_user(name="Bob", email="bob@example.com")

    resp = client.put(f"/api/users/{user['_id']}", json={"email": "bob@example.com"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Email already exists."

    resp = client.put(f"/api/users/{user['_id']}", json={"name": ""})
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("Validation Error: ")


def test_update_user_not_found(client: TestClient) -> None:
    assert client.put(f"/api/users/{MISSING_ID}", json={"name": "x"}).status_code == 404
    assert client.put("/api/users/xyz", json={"name": "x"}).status_code == 404


def test_delete_user(client: TestClient, create_user) -> None:
    user = create_user()
    resp = client.delete(f"/api/users/{user['_id']}")
    assert resp.status_code == 200
    assert resp.json()["message"] == "User deleted! All associated tasks have been unassigned."
    assert resp.json()["data"]["_id"] == user["_id"]

    assert client.delete(f"/api/users/{user['_id']}").status_code == 404
    assert client.delete("/api/users/xyz").status_code == 404


def test_delete_user_unassigns_pending_tasks(client: TestClient, create_user, create_task, get_user, get_task) -> None:
    user = create_user()
    first = create_task(name="T1", assignedUser=user["_id"], assignedUserName="Ada")
    second = create_task(name="T2", assignedUser=user["_id"], assignedUserName="Ada")
    assert get_user(user["_id"])["pendingTasks"] == [first["_id"], second["_id"]]

    # completing T2 drops it from pendingTasks, so put it back by hand
    client.put(f"/api/tasks/{second['_id']}", json={"completed": True})
    client.put(f"/api/users/{user['_id']}", json={"pendingTasks": [first["_id"], second["_id"]]})

    assert client.delete(f"/api/users/{user['_id']}").status_code == 200

    for task in (first, second):
        document = get_task(task["_id"])
        assert document["assignedUser"] == ""
        assert document["assignedUserName"] == "unassigned"
    assert get_task(second["_id"])["completed"] is True
