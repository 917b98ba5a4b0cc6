"""
Test infrastructure for the Content API.

Strategy
--------
- SQLite in-memory via aiosqlite, shared through StaticPool because an
  in-memory database only lives as long as its single connection.
- The app's get_db dependency is overridden so every request uses the
  test session factory.
- Tables are created before and dropped after each test; foreign keys
  are enforced so ON DELETE rules behave as they do on PostgreSQL.
- Redis is disabled by setting cache._redis = None; the CacheManager
  treats that as a permanent miss, so the database path is exercised.
  Tests that assert on cache contents use the `fake_redis` fixture, an
  in-memory stand-in for the handful of commands CacheManager issues.
"""
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.cache import cache
from app.database import Base, get_db
from app.main import app
from app.middleware import install_query_counter

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)


@event.listens_for(engine_test.sync_engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE / RESTRICT unless this is on.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live session for service-level tests and direct seeding."""
    cache._redis = None
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx.AsyncClient wired to the app through ASGITransport, Redis off."""
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------

async def create_user(client: AsyncClient, username: str = "author", **extra) -> dict:
    payload = {"username": username, "email": f"{username}@example.com", **extra}
    resp = await client.post("/api/v1/users", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_category(client: AsyncClient, title: str = "General", **extra) -> dict:
    payload = {"title": title, "description": f"{title} articles", **extra}
    resp = await client.post("/api/v1/categories", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_article(
    client: AsyncClient,
    author_id: str,
    category_id: str,
    title: str = "Article",
    **extra,
) -> dict:
    payload = {
        "title": title,
        "description": f"About {title}",
        "md_url": f"https://cdn.example.com/{title.lower().replace(' ', '-')}.md",
        "tags": [],
        "author_id": author_id,
        "category_id": category_id,
        **extra,
    }
    resp = await client.post("/api/v1/articles", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Cache double
# ---------------------------------------------------------------------------

class InMemoryRedis:
    """Dict-backed stand-in for the redis.asyncio commands CacheManager uses."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.store[key] = value

    async def delete(self, *keys: str) -> int:
        return sum(self.store.pop(k, None) is not None for k in keys)

    async def aclose(self) -> None:
        self.store.clear()


@pytest_asyncio.fixture
async def fake_redis(db_session) -> InMemoryRedis:
    """Cache enabled against an InMemoryRedis for the duration of one test."""
    client = InMemoryRedis()
    cache._redis = client
    yield client
    cache._redis = None
