import sys
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env
backend_dir = Path(__file__).parent.parent / "backend"
env_file = backend_dir / ".env"
if env_file.exists():
    load_dotenv(env_file)

# Tests never touch the on-disk database
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

# Add backend directory to Python path for imports
sys.path.insert(0, str(backend_dir))

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import bizsuite.models  # noqa: E402,F401
from bizsuite.core.database import Base, get_db  # noqa: E402
from bizsuite.main import app  # noqa: E402


@pytest_asyncio.fixture
async def session_maker():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
    finally:
        del app.dependency_overrides[get_db]


async def register_and_login(client, username: str, password: str = "s3cret-pass") -> dict:
    response = await client.post(
        "/auth/register",
        json={"username": username, "password": password, "email": f"{username}@example.com"},
    )
    assert response.status_code == 201, response.text
    response = await client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def user_headers(client):
    """Bearer headers for a registered user without a company"""
    return await register_and_login(client, "alice")


@pytest_asyncio.fixture
async def company_headers(client, user_headers):
    """Bearer headers scoped to a company owned by the user"""
    response = await client.post(
        "/api/companies",
        json={"name": "Acme Builders", "country": "ZA", "vat_rate": 0.15},
        headers=user_headers,
    )
    assert response.status_code == 201, response.text
    return {**user_headers, "X-Company-ID": str(response.json()["id"])}


@pytest.fixture
def line_item():
    def make(description="Labour", quantity=2, unit_price=100.0, **extra):
        return {
            "description": description,
            "quantity": quantity,
            "unit_price": unit_price,
            **extra,
        }

    return make


@pytest.fixture
def login(client):
    """Register and log in another user, returning bearer headers"""

    async def _login(username: str) -> dict:
        return await register_and_login(client, username)

    return _login
