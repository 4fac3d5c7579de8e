# tests/conftest.py

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from taskboard import models  # noqa: F401
from taskboard.db.session import get_session
from taskboard.db.store import DocumentStore, task_store, user_store
from taskboard.main import app

DEADLINE = "2030-01-01T12:00:00Z"


@pytest.fixture()
def engine():
    """
    One in-memory SQLite database per test.

    StaticPool keeps a single connection so every session (and the
    TestClient's worker thread) sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session(engine) -> Iterator[Session]:
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture()
def users(session: Session) -> DocumentStore:
    return user_store(session)


@pytest.fixture()
def tasks(session: Session) -> DocumentStore:
    return task_store(session)


@pytest.fixture()
def client(engine) -> Iterator[TestClient]:
    def _get_session():
        with Session(engine, expire_on_commit=False) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    # No `with` block: the lifespan would create tables in the configured database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def create_user(client: TestClient) -> Callable[..., Dict[str, Any]]:
    def _create(name: str = "Ada", email: str = "ada@example.com", **extra: Any) -> Dict[str, Any]:
        resp = client.post("/api/users", json={"name": name, "email": email, **extra})
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


@pytest.fixture()
def create_task(client: TestClient) -> Callable[..., Dict[str, Any]]:
    def _create(name: str = "Write report", **fields: Any) -> Dict[str, Any]:
        body = {"name": name, "deadline": DEADLINE, **fields}
        resp = client.post("/api/tasks", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


@pytest.fixture()
def get_user(client: TestClient) -> Callable[[str], Dict[str, Any]]:
    def _get(user_id: str) -> Dict[str, Any]:
        resp = client.get(f"/api/users/{user_id}")
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    return _get


@pytest.fixture()
def get_task(client: TestClient) -> Callable[[str], Dict[str, Any]]:
    def _get(task_id: str) -> Dict[str, Any]:
        resp = client.get(f"/api/tasks/{task_id}")
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    return _get
