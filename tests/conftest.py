from __future__ import annotations

from typing import Dict, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from bizmanager.api import dependencies
from bizmanager.api.main import app
from bizmanager.core.database import DatabaseManager
from bizmanager.models import UserRole
from bizmanager.services.auth import AuthService
from bizmanager.services.notifications import MailMessage


class RecordingMailer:
    def __init__(self) -> None:
        self.messages: List[MailMessage] = []

    async def send(self, message: MailMessage) -> None:
        self.messages.append(message)


class StubRedis:
    """The handful of Redis commands the throttle and rate limiter issue."""

    def __init__(self) -> None:
        self.values: Dict[str, int] = {}
        self.ttls: Dict[str, int] = {}

    async def incr(self, key: str) -> int:
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    async def expire(self, key: str, seconds: int) -> bool:
        self.ttls[key] = seconds
        return True

    async def ttl(self, key: str) -> int:
        return self.ttls.get(key, -1)

    async def ping(self) -> bool:
        return True


@pytest_asyncio.fixture
async def db(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'bizmanager-test.db'}", redis_url="")
    await manager.create_all()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def session(db):
    async with db.session() as session:
        yield session


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest_asyncio.fixture
async def client(db, mailer):
    async def override_db() -> DatabaseManager:
        return db

    app.dependency_overrides[dependencies.get_db] = override_db
    app.dependency_overrides[dependencies.get_mailer] = lambda: mailer
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_headers(client) -> Dict[str, str]:
    response = await client.post(
        "/auth/register",
        json={"email": "owner@example.com", "password": "correct-horse", "name": "Owner"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest_asyncio.fixture
async def admin_headers(db) -> Dict[str, str]:
    async with db.session() as session:
        result = await AuthService(session).register(
            "admin@example.com", "admin-password", name="Admin", role=UserRole.ADMIN
        )
    return {"Authorization": f"Bearer {result.access_token.token}"}


@pytest.fixture
def stub_redis() -> StubRedis:
    return StubRedis()
