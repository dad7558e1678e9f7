"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from parcel_backend.app.main import app
from parcel_backend.app.core.jwt import issue_identity_token
from parcel_backend.app.db.session import get_db, Base
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import PaymentStatus
from parcel_backend.app.models.rider import Rider
from parcel_backend.app.models.rider_enums import RiderStatus
from parcel_backend.app.models.user import User

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def auth_headers():
    """Bearer header factory carrying a signed identity token for an email."""
    def _auth_headers(email: str) -> dict:
        token = issue_identity_token(email)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


# Engine per test so each test gets a fresh database on its own event loop
@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """Async client for testing, bound to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides = {}


# Data factories commit through their own session, like a separate client would

@pytest.fixture
def make_user(session_factory):
    async def _make_user(email: str, role: UserRole = UserRole.USER, name: str = None) -> User:
        async with session_factory() as session:
            user = User(email=email, name=name or email.split("@")[0], role=role)
            session.add(user)
            await session.commit()
            return user
    return _make_user


@pytest.fixture
def make_parcel(session_factory):
    async def _make_parcel(
        created_by: str,
        title: str = "Documents",
        cost: float = 500.0,
        payment_status: PaymentStatus = PaymentStatus.UNPAID,
    ) -> Parcel:
        async with session_factory() as session:
            parcel = Parcel(
                created_by=created_by,
                title=title,
                parcel_type="document",
                weight=1.5,
                cost=cost,
                sender_name="Sender",
                receiver_name="Receiver",
                delivery_address="12 Harbour Road",
                payment_status=payment_status,
            )
            session.add(parcel)
            await session.commit()
            return parcel
    return _make_parcel


@pytest.fixture
def make_rider(session_factory):
    async def _make_rider(email: str, status: RiderStatus = RiderStatus.PENDING, name: str = "Rider") -> Rider:
        async with session_factory() as session:
            rider = Rider(
                email=email,
                name=name,
                phone="0170000000",
                region="Dhaka",
                district="Dhaka",
                vehicle="bike",
                status=status,
            )
            session.add(rider)
            await session.commit()
            return rider
    return _make_rider


@pytest.fixture
async def admin(make_user):
    return await make_user("admin@example.com", role=UserRole.ADMIN)
