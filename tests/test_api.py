"""
HTTP API tests.

Runs the FastAPI app in-process through httpx's ASGI transport, with the
database swapped for SQLite, Redis for an in-memory stub and the AI
extractor for a scripted fake.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import httpx
import pytest

from tasknest.core.database import get_db
from tasknest.core.dependencies import get_redis, get_task_extractor
from tasknest.core.security import create_access_token
from tasknest.main import app
from tasknest.services.ai_service import GeneratedTask, TaskExtractor


class InMemoryRedis:
    def __init__(self):
        self.data = {}

    async def set(self, key, value, ex=None):
        self.data[key] = value

    async def exists(self, key):
        return 1 if key in self.data else 0


class StaticExtractor(TaskExtractor):
    def __init__(self, tasks):
        self.tasks = tasks

    async def extract_tasks(self, text, reference_time):
        return list(self.tasks)


@pytest.fixture
def ai_state():
    return {"extractor": None}


@pytest.fixture
async def client(session_factory, ai_state):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    redis = InMemoryRedis()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_task_extractor] = lambda: ai_state["extractor"]

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def signup(client: httpx.AsyncClient, username: str, password: str = "password123") -> dict:
    resp = await client.post("/api/auth/signup", json={"username": username, "password": password})
    assert resp.status_code == 201, f"Signup failed: {resp.text}"
    body = resp.json()
    return {
        "id": body["user"]["id"],
        "headers": {"Authorization": f"Bearer {body['access_token']}"},
    }


async def create_org(client: httpx.AsyncClient, user: dict, name: str) -> dict:
    resp = await client.post("/api/organizations", json={"name": name}, headers=user["headers"])
    assert resp.status_code == 201, f"Create org failed: {resp.text}"
    return resp.json()


async def create_task(client: httpx.AsyncClient, user: dict, org_id: str, title: str, **extra) -> dict:
    resp = await client.post(
        "/api/tasks",
        json={"organization_id": org_id, "title": title, **extra},
        headers=user["headers"],
    )
    assert resp.status_code == 201, f"Create task failed: {resp.text}"
    return resp.json()


def error_code(resp: httpx.Response) -> str:
    return resp.json()["detail"]["code"]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_signup_gives_personal_organization(client):
    alice = await signup(client, "alice")

    me = await client.get("/api/auth/me", headers=alice["headers"])
    assert me.status_code == 200
    assert me.json()["username"] == "alice"

    orgs = await client.get("/api/organizations", headers=alice["headers"])
    assert [(o["organization"]["name"], o["role"]) for o in orgs.json()] == [
        ("alice's organization", "owner")
    ]


async def test_signup_and_login_errors(client):
    await signup(client, "alice")

    resp = await client.post("/api/auth/signup", json={"username": "alice", "password": "password123"})
    assert resp.status_code == 409
    assert error_code(resp) == "USERNAME_TAKEN"

    resp = await client.post("/api/auth/signup", json={"username": "bob", "password": "short"})
    assert resp.status_code == 400
    assert error_code(resp) == "PASSWORD_TOO_SHORT"

    resp = await client.post("/api/auth/login", json={"username": "alice", "password": "wrong-one"})
    assert resp.status_code == 401
    assert error_code(resp) == "INVALID_CREDENTIALS"

    resp = await client.post("/api/auth/login", json={"username": "alice", "password": "password123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["username"] == "alice"


async def test_logout_revokes_token(client):
    alice = await signup(client, "alice")

    resp = await client.post("/api/auth/logout", headers=alice["headers"])
    assert resp.status_code == 200

    resp = await client.get("/api/auth/me", headers=alice["headers"])
    assert resp.status_code == 401
    assert error_code(resp) == "TOKEN_REVOKED"


async def test_missing_token(client):
    resp = await client.get("/api/tasks")
    assert resp.status_code == 401
    assert error_code(resp) == "MISSING_TOKEN"


@pytest.mark.parametrize("subject", [str(uuid4()), "not-a-uuid"], ids=["unknown", "malformed"])
async def test_token_for_unknown_user(client, subject):
    token = create_access_token(subject)
    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert error_code(resp) == "USER_NOT_FOUND"


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------

async def test_organization_detail_hidden_from_outsiders(client):
    alice = await signup(client, "alice")
    bob = await signup(client, "bob")
    org = await create_org(client, alice, "Acme")

    resp = await client.get(f"/api/organizations/{org['id']}", headers=bob["headers"])
    assert resp.status_code == 404

    resp = await client.get(f"/api/organizations/{org['id']}", headers=alice["headers"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["invite_code"] == org["invite_code"]
    assert [m["user"]["username"] for m in body["members"]] == ["alice"]


async def test_owner_only_operations(client):
    alice = await signup(client, "alice")
    bob = await signup(client, "bob")
    org = await create_org(client, alice, "Acme")
    resp = await client.post(
        "/api/organizations/join", json={"invite_code": org["invite_code"]}, headers=bob["headers"]
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "member"

    resp = await client.put(
        f"/api/organizations/{org['id']}", json={"name": "Bob's now"}, headers=bob["headers"]
    )
    assert resp.status_code == 403

    resp = await client.put(
        f"/api/organizations/{org['id']}", json={"name": "   "}, headers=alice["headers"]
    )
    assert resp.status_code == 400
    assert error_code(resp) == "INVALID_ORGANIZATION_NAME"

    resp = await client.put(
        f"/api/organizations/{org['id']}", json={"name": "Acme Corp"}, headers=alice["headers"]
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Acme Corp"

    resp = await client.delete(
        f"/api/organizations/{org['id']}/members/{alice['id']}", headers=alice["headers"]
    )
    assert resp.status_code == 400
    assert error_code(resp) == "CANNOT_REMOVE_YOURSELF"

    resp = await client.delete(
        f"/api/organizations/{org['id']}/members/{bob['id']}", headers=alice["headers"]
    )
    assert resp.status_code == 200

    resp = await client.get(f"/api/organizations/{org['id']}", headers=bob["headers"])
    assert resp.status_code == 404


async def test_join_errors_and_code_rotation(client):
    alice = await signup(client, "alice")
    bob = await signup(client, "bob")
    org = await create_org(client, alice, "Acme")

    resp = await client.post(
        "/api/organizations/join", json={"invite_code": org["invite_code"]}, headers=alice["headers"]
    )
    assert resp.status_code == 409
    assert error_code(resp) == "ALREADY_ORGANIZATION_MEMBER"

    resp = await client.post(
        f"/api/organizations/{org['id']}/regenerate-code", headers=alice["headers"]
    )
    assert resp.status_code == 200
    new_code = resp.json()["invite_code"]
    assert new_code != org["invite_code"]

    resp = await client.post(
        "/api/organizations/join", json={"invite_code": org["invite_code"]}, headers=bob["headers"]
    )
    assert resp.status_code == 404
    assert error_code(resp) == "INVALID_INVITE_CODE"

    resp = await client.post(
        "/api/organizations/join", json={"invite_code": new_code}, headers=bob["headers"]
    )
    assert resp.status_code == 200


async def test_delete_organization_removes_tasks(client):
    alice = await signup(client, "alice")
    org = await create_org(client, alice, "Acme")
    task = await create_task(client, alice, org["id"], "Doomed")

    resp = await client.delete(f"/api/organizations/{org['id']}", headers=alice["headers"])
    assert resp.status_code == 200

    resp = await client.get(f"/api/tasks/{task['id']}", headers=alice["headers"])
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

async def test_assignment_scenario(client):
    alice = await signup(client, "alice")
    bob = await signup(client, "bob")
    org = await create_org(client, alice, "Acme")
    task = await create_task(client, alice, org["id"], "Write proposal")
    assert [a["user"]["username"] for a in task["assignments"]] == ["alice"]

    resp = await client.post(
        f"/api/tasks/{task['id']}/assign", json={"user_ids": [bob["id"]]}, headers=alice["headers"]
    )
    assert resp.status_code == 400
    assert error_code(resp) == "INVALID_TASK_ASSIGNEE"

    await client.post(
        "/api/organizations/join", json={"invite_code": org["invite_code"]}, headers=bob["headers"]
    )
    resp = await client.post(
        f"/api/tasks/{task['id']}/assign", json={"user_ids": [bob["id"]]}, headers=alice["headers"]
    )
    assert resp.status_code == 200
    usernames = [a["user"]["username"] for a in resp.json()["assignments"]]
    assert sorted(usernames) == ["alice", "bob"]

    resp = await client.post(f"/api/tasks/{task['id']}/toggle-status", headers=bob["headers"])
    assert resp.status_code == 200
    assert resp.json()["status"] == "DONE"

    resp = await client.delete(f"/api/tasks/{task['id']}", headers=bob["headers"])
    assert resp.status_code == 403
    assert error_code(resp) == "NOT_TASK_CREATOR"

    resp = await client.post(
        f"/api/tasks/{task['id']}/unassign", json={"user_ids": [bob["id"]]}, headers=alice["headers"]
    )
    assert [a["user"]["username"] for a in resp.json()["assignments"]] == ["alice"]

    resp = await client.delete(f"/api/tasks/{task['id']}", headers=alice["headers"])
    assert resp.status_code == 200


async def test_task_hidden_from_outsiders(client):
    alice = await signup(client, "alice")
    mallory = await signup(client, "mallory")
    org = await create_org(client, alice, "Acme")
    task = await create_task(client, alice, org["id"], "Secret")

    resp = await client.get(f"/api/tasks/{task['id']}", headers=mallory["headers"])
    assert resp.status_code == 404

    resp = await client.patch(
        f"/api/tasks/{task['id']}", json={"title": "pwned"}, headers=mallory["headers"]
    )
    assert resp.status_code == 404

    resp = await client.post(
        "/api/tasks", json={"organization_id": org["id"], "title": "Intrusion"},
        headers=mallory["headers"],
    )
    assert resp.status_code == 403
    assert error_code(resp) == "NOT_ORGANIZATION_MEMBER"


async def test_create_and_update_validation(client):
    alice = await signup(client, "alice")
    org = await create_org(client, alice, "Acme")

    resp = await client.post(
        "/api/tasks", json={"organization_id": org["id"], "title": ""}, headers=alice["headers"]
    )
    assert resp.status_code == 400
    assert error_code(resp) == "TITLE_REQUIRED"

    due = (datetime.now(timezone.utc) + timedelta(days=2)).isoformat()
    task = await create_task(client, alice, org["id"], "Plan", description="first", due_date=due)

    resp = await client.patch(f"/api/tasks/{task['id']}", json={"title": ""}, headers=alice["headers"])
    assert resp.status_code == 400
    assert error_code(resp) == "TITLE_EMPTY"

    resp = await client.patch(
        f"/api/tasks/{task['id']}", json={"description": "second"}, headers=alice["headers"]
    )
    body = resp.json()
    assert body["description"] == "second"
    assert body["title"] == "Plan"
    assert body["due_date"] is not None

    resp = await client.patch(
        f"/api/tasks/{task['id']}", json={"clear_due_date": True}, headers=alice["headers"]
    )
    assert resp.json()["due_date"] is None


async def test_list_tasks_pagination(client):
    alice = await signup(client, "alice")
    org = await create_org(client, alice, "Acme")
    for i in range(3):
        await create_task(client, alice, org["id"], f"Task {i}")

    resp = await client.get(
        "/api/tasks", params={"organization_id": org["id"], "page": 1, "page_size": 2},
        headers=alice["headers"],
    )
    body = resp.json()
    assert resp.status_code == 200
    assert body["total_count"] == 3
    assert body["total_pages"] == 2
    assert len(body["tasks"]) == 2

    resp = await client.get(
        "/api/tasks", params={"status": "DONE", "assigned_to_me": True}, headers=alice["headers"]
    )
    assert resp.json()["total_count"] == 0


@pytest.mark.parametrize("params", [{"page": -1}, {"page": 1, "page_size": -5}])
async def test_list_tasks_non_positive_paging_returns_everything(client, params):
    alice = await signup(client, "alice")
    org = await create_org(client, alice, "Acme")
    for i in range(3):
        await create_task(client, alice, org["id"], f"Task {i}")

    resp = await client.get(
        "/api/tasks", params={"organization_id": org["id"], **params}, headers=alice["headers"]
    )

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["tasks"]) == 3
    assert body["total_count"] == 3
    assert body["total_pages"] == 1


# ---------------------------------------------------------------------------
# AI generation
# ---------------------------------------------------------------------------

async def test_generate_requires_configuration(client):
    alice = await signup(client, "alice")
    resp = await client.post("/api/tasks/generate", json={"text": "notes"}, headers=alice["headers"])
    assert resp.status_code == 503
    assert error_code(resp) == "AI_SERVICE_NOT_CONFIGURED"


async def test_generate_returns_sanitized_suggestions(client, ai_state):
    alice = await signup(client, "alice")
    ai_state["extractor"] = StaticExtractor([
        GeneratedTask(title="Book room", description="Friday"),
        GeneratedTask(title="  "),
        GeneratedTask(title="Old", due_date=datetime.now(timezone.utc) - timedelta(days=3)),
    ])

    resp = await client.post("/api/tasks/generate", json={"text": "notes"}, headers=alice["headers"])

    assert resp.status_code == 200
    tasks = resp.json()["tasks"]
    assert [(t["title"], t["due_date"]) for t in tasks] == [("Book room", None), ("Old", None)]

    listed = await client.get("/api/tasks", headers=alice["headers"])
    assert listed.json()["total_count"] == 0
