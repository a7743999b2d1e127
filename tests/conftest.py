"""
Pytest fixtures - test DB, client, users and listings.
Challenge: Isolated tests; each test gets a fresh in-memory SQLite database.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from marketplace.db.base import Base
from marketplace.main import app
from marketplace.db.session import get_db
from marketplace.db.models import Listing, ListingStatus, User
from marketplace.core.security import create_access_token

# One shared connection so every session in a test sees the same in-memory DB
TEST_DATABASE_URL = "sqlite+aiosqlite://"

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as s:
        yield s


@pytest_asyncio.fixture
async def client(session: AsyncSession):
    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session: AsyncSession):
    async def _make_user(username: str, role: str = "user", **fields) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            role=role,
            shop_name=fields.pop("shop_name", f"{username}'s shop"),
            **fields,
        )
        session.add(user)
        await session.flush()
        await session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_listing(session: AsyncSession):
    """Insert a listing directly, bypassing moderation. `age` orders created_at (older = larger)."""
    counter = {"n": 0}

    async def _make_listing(
        owner: User,
        *,
        title: str = "Desk lamp",
        price: str | int = "25.00",
        status: ListingStatus = ListingStatus.APPROVED,
        category: str = "Home",
        description: str | None = None,
        age: int | None = None,
        **fields,
    ) -> Listing:
        counter["n"] += 1
        listing = Listing(
            owner_id=owner.id,
            title=title,
            description=description,
            price=Decimal(str(price)),
            condition=fields.pop("condition", "Used - Good"),
            images=fields.pop("images", []),
            stock_quantity=fields.pop("stock_quantity", 1),
            category=category,
            variants=fields.pop("variants", []),
            status=status.value,
            created_at=BASE_TIME - timedelta(minutes=age if age is not None else 1000 - counter["n"]),
            **fields,
        )
        session.add(listing)
        await session.flush()
        await session.refresh(listing)
        return listing

    return _make_listing


@pytest_asyncio.fixture
async def seller(make_user) -> User:
    return await make_user("seller", avatar_url="https://img.example.com/a.png")


@pytest_asyncio.fixture
async def buyer(make_user) -> User:
    return await make_user("buyer")


@pytest_asyncio.fixture
async def other_buyer(make_user) -> User:
    return await make_user("other_buyer")


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user("admin", role="admin")


def headers_for(user: User) -> dict:
    token = create_access_token(user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Bearer headers for a given user, as the account service would issue them."""
    return headers_for
