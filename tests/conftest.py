import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./worklog-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from worklog.database import Base, get_db
from worklog.main import app
from worklog.services import work_breakdown


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_tree_cache():
    work_breakdown.tree_cache.clear()
    yield
    work_breakdown.tree_cache.clear()


async def register_and_login(client, email="alice@example.com", password="password123"):
    resp = await client.post("/api/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
async def auth_headers(client):
    return await register_and_login(client)


async def create_project(client, headers, name="Alpha", code="A1", **extra):
    resp = await client.post("/api/projects", json={"name": name, "code": code, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["project"]
