import os
import sys

# Ensure backend package (app) is on sys.path for imports during tests
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Settings 在 import 時就會讀取環境變數，必須先設定
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret")
os.environ.setdefault("APP_ENV", "test")

import httpx
import pytest
import pytest_asyncio

from app.core.database import Database
from app.main import app
from app.models.skill import Skill

PASSWORD = "Passw0rdOK"


@pytest_asyncio.fixture
async def database(tmp_path):
    """每個測試使用一個全新的 SQLite 資料庫"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def client(database):
    # ASGITransport 不會觸發 lifespan，直接把資料庫掛到 app.state
    app.state.database = database
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def skills(database):
    async with database.session_factory() as session:
        rows = [
            Skill(name="React", category="Frontend"),
            Skill(name="Python", category="Backend"),
            Skill(name="PostgreSQL", category="Database"),
        ]
        session.add_all(rows)
        await session.commit()
        return {s.name: s.id for s in rows}


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client, role: str, email: str, **extra) -> dict:
    """註冊並回傳 {user, access_token, refresh_token, headers}"""
    payload = {"email": email, "password": PASSWORD, "role": role, "first_name": "Test", "last_name": role.title()}
    payload.update(extra)
    resp = await client.post("/auth/register", json=payload)
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    data["headers"] = auth_header(data["access_token"])
    return data


@pytest_asyncio.fixture
async def client_user(client):
    return await register(client, "client", "client@example.com", profile={"company_name": "Acme Studio"})


@pytest_asyncio.fixture
async def other_client_user(client):
    return await register(client, "client", "other-client@example.com")


@pytest_asyncio.fixture
async def freelancer_a(client):
    return await register(client, "freelancer", "alice@example.com", profile={"headline": "React developer"})


@pytest_asyncio.fixture
async def freelancer_b(client):
    return await register(client, "freelancer", "bob@example.com")


@pytest_asyncio.fixture
async def admin_user(client, database):
    """管理員無法透過公開註冊建立，直接寫入資料庫後登入"""
    from app.core.security import get_password_hash
    from app.models.user import User, UserRoleEnum

    async with database.session_factory() as session:
        session.add(User(email="admin@example.com", password_hash=get_password_hash(PASSWORD), role=UserRoleEnum.admin))
        await session.commit()

    resp = await client.post("/auth/login", json={"email": "admin@example.com", "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    data["headers"] = auth_header(data["access_token"])
    return data


async def create_project(client, owner: dict, **overrides) -> dict:
    payload = {
        "title": "React Dashboard Revamp",
        "description": "Rebuild the analytics dashboard",
        "project_type": "fixed",
        "budget_min": 3000,
        "budget_max": 6000,
    }
    payload.update(overrides)
    resp = await client.post("/projects", json=payload, headers=owner["headers"])
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def submit_proposal(client, freelancer: dict, project_id: str, **fields) -> dict:
    payload = {"project_id": project_id, "cover_letter": "I can do this"}
    payload.update(fields)
    resp = await client.post("/proposals", json=payload, headers=freelancer["headers"])
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
