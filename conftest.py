import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from easymove.main import app
from easymove.db.session import get_db
from easymove.models.base import Base
from easymove.models.user import User
from easymove.core.redis import set_redis
from easymove.core.security import create_access_token, hash_password
from easymove.core.config import settings
from easymove.core.enums import UserRole
from easymove.services.distance import EstimatedDistanceService, get_distance_service


class FakeRedis:
    """In-memory stand-in for the handful of redis.asyncio calls the service makes"""

    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value if isinstance(value, bytes) else str(value).encode()
        return True

    async def incr(self, key):
        value = int(self.store.get(key, b"0")) + 1
        self.store[key] = str(value).encode()
        return value

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def close(self):
        self.store.clear()


@pytest.fixture
def fake_redis():
    client = FakeRedis()
    set_redis(client)
    yield client
    set_redis(None)


@pytest.fixture
def no_redis():
    set_redis(None)
    yield


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def test_client(session_factory, fake_redis):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_distance_service] = EstimatedDistanceService
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def _create_user(session_factory, username: str, role: UserRole) -> User:
    async with session_factory() as session:
        user = User(username=username, password_hash=hash_password("s3cret-pass"), role=role)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


@pytest.fixture
async def admin_user(session_factory):
    return await _create_user(session_factory, "admin", UserRole.ADMIN)


@pytest.fixture
async def operator_user(session_factory):
    return await _create_user(session_factory, "operator", UserRole.OPERATOR)


@pytest.fixture
def admin_headers(admin_user):
    token = create_access_token(str(admin_user.id), UserRole.ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def operator_headers(operator_user):
    token = create_access_token(str(operator_user.id), UserRole.OPERATOR)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def quote_request():
    return {
        "pickup_address": "12 High Street, Leeds LS1 4AB",
        "delivery_address": "4 Park Road, Leeds LS6 2AA",
        "distance": 10,
        "van_size": "medium",
        "move_date": "2025-06-11T10:00:00",
        "estimated_hours": 2,
        "helpers": 0,
        "floor_access": "ground",
        "urgency": "standard",
    }


@pytest.fixture
def checkout_request():
    def _build(quote_reference: str) -> dict:
        return {
            "quote_reference": quote_reference,
            "customer_name": "Sam Taylor",
            "customer_email": "sam.taylor@example.com",
            "customer_phone": "07700 900123",
        }
    return _build


@pytest.fixture
def app_settings():
    return settings


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "auth: marks tests related to authentication"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "bookings: marks tests related to checkout and bookings"
    )
    config.addinivalue_line(
        "markers", "webhooks: marks tests related to webhooks"
    )
    config.addinivalue_line(
        "markers", "rate_limit: marks tests related to rate limiting"
    )
    config.addinivalue_line(
        "markers", "idempotency: marks tests related to idempotency"
    )
