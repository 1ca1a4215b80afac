"""
Shared fixtures: in-memory SQLite for fast tests.

Settings are read once at import time, so the environment is prepared
before anything from `app` is imported.
"""

from __future__ import annotations

import os

os.environ["PT_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["PT_BCRYPT_ROUNDS"] = "4"
os.environ["PT_ENVIRONMENT"] = "development"

from http.cookies import SimpleCookie  # noqa: E402
import uuid  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.database import get_session  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402

PASSWORD = "correct-horse-battery"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------

def session_token(response) -> str:
    """Read the session cookie value out of the Set-Cookie headers."""
    jar = SimpleCookie()
    for header in response.headers.get_list("set-cookie"):
        jar.load(header)
    return jar["sid"].value


def cookie_headers(token: str) -> dict:
    return {"Cookie": f"sid={token}"}


class Actor:
    """A signed-in user as seen by the tests."""

    def __init__(self, user_id: uuid.UUID, email: str, token: str, org_id: uuid.UUID | None = None):
        self.user_id = user_id
        self.email = email
        self.token = token
        self.org_id = org_id

    @property
    def headers(self) -> dict:
        return cookie_headers(self.token)


class Api:
    """Drives the HTTP surface; every call passes its session cookie explicitly."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def _actor_from(self, response, email: str, org_id=None) -> Actor:
        token = session_token(response)
        # Requests carry explicit Cookie headers; keep the jar empty.
        self.client.cookies.clear()
        me = await self.client.get("/me", headers=cookie_headers(token))
        assert me.status_code == 200, me.text
        user_id = uuid.UUID(me.json()["user"]["id"])
        return Actor(user_id, email, token, uuid.UUID(org_id) if org_id else None)

    async def signup(self, email: str, org_name: str = "Acme", password: str = PASSWORD) -> Actor:
        response = await self.client.post(
            "/auth/signup",
            json={
                "email": email,
                "password": password,
                "firstName": "Test",
                "lastName": "User",
                "organizationName": org_name,
            },
        )
        assert response.status_code == 201, response.text
        return await self._actor_from(response, email, response.json()["organization_id"])

    async def login(self, email: str, password: str = PASSWORD) -> Actor:
        response = await self.client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return await self._actor_from(response, email)

    async def register_invite(self, email: str, password: str = PASSWORD) -> Actor:
        response = await self.client.post(
            "/auth/register-invite",
            json={"email": email, "password": password, "firstName": "Invited", "lastName": "User"},
        )
        assert response.status_code == 201, response.text
        return await self._actor_from(response, email)

    async def invite(self, actor: Actor, org_id: uuid.UUID, email: str, role_id: int = 3):
        return await self.client.post(
            f"/organizations/{org_id}/users",
            json={"email": email, "roleId": role_id},
            headers=actor.headers,
        )

    async def add_member(self, owner: Actor, email: str, role_id: int = 3) -> Actor:
        """Invite an email into the owner's org and register through the invitation."""
        response = await self.invite(owner, owner.org_id, email, role_id)
        assert response.status_code == 201, response.text
        assert response.json()["status"] == "invited"
        actor = await self.register_invite(email)
        actor.org_id = owner.org_id
        return actor

    async def create_project(self, actor: Actor, name: str = "P1", org_id=None) -> dict:
        response = await self.client.post(
            "/projects",
            json={"name": name, "organizationId": str(org_id or actor.org_id)},
            headers=actor.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    async def create_detail(self, actor: Actor, project_id: str, name: str = "Bolt", status: str = "ready") -> dict:
        response = await self.client.post(
            "/details",
            json={"projectId": project_id, "name": name, "status": status, "location": "Dock 4"},
            headers=actor.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["detail"]


@pytest.fixture
def api(client):
    return Api(client)
