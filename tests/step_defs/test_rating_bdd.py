"""
BDD step definitions for the rating feature (pytest-bdd).
Challenge: Drive the whole create -> moderate -> rate flow through HTTP only.
Design: Sync TestClient; the test database is created on the client's own event loop.
"""

import pytest
from fastapi.testclient import TestClient
from pytest_bdd import given, parsers, scenarios, then, when
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from marketplace.core.security import create_access_token
from marketplace.db.base import Base
from marketplace.db.models import User
from marketplace.db.session import get_db
from marketplace.main import app

scenarios("../features/rating.feature")


@pytest.fixture
def api():
    """TestClient backed by a fresh in-memory database; one committed session per request."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        client.portal.call(create_schema)
        yield {"client": client, "session_maker": session_maker, "users": {}}
        client.portal.call(engine.dispose)
    app.dependency_overrides.clear()


@pytest.fixture
def context():
    """Listing id, rating ids and the last response, shared between steps."""
    return {"ratings": {}}


def _headers(api, username: str) -> dict:
    user_id, role = api["users"][username]
    return {"Authorization": f"Bearer {create_access_token(user_id, role=role)}"}


def _rate(api, context, username: str, value: int):
    response = api["client"].post(
        f"/api/v1/listings/{context['listing_id']}/rating",
        headers=_headers(api, username),
        json={"rating": value},
    )
    if response.status_code == 201:
        context["ratings"][username] = response.json()["rating_id"]
    context["response"] = response
    return response


@given(parsers.parse('the users "{first}", "{second}", "{third}" and the admin "{admin}"'))
def seed_users(api, first, second, third, admin):
    async def insert():
        async with api["session_maker"]() as session:
            users = [User(username=name, email=f"{name}@example.com", role="user") for name in (first, second, third)]
            users.append(User(username=admin, email=f"{admin}@example.com", role="admin"))
            session.add_all(users)
            await session.commit()
            return {user.username: (user.id, user.role) for user in users}

    api["users"].update(api["client"].portal.call(insert))


@given(parsers.parse('"{username}" has listed "{title}" for {price:d}'))
def create_listing(api, context, username, title, price):
    response = api["client"].post(
        "/api/v1/listings",
        headers=_headers(api, username),
        json={"title": title, "price": price, "stock_quantity": 1},
    )
    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    context["listing_id"] = response.json()["id"]


@given(parsers.parse('"{username}" has approved the listing'))
def approve_listing(api, context, username):
    response = api["client"].patch(
        f"/api/v1/admin/listings/{context['listing_id']}",
        headers=_headers(api, username),
        json={"status": "approved"},
    )
    assert response.status_code == 200


@given(parsers.parse('"{username}" has rated the listing {value:d}'))
def existing_rating(api, context, username, value):
    assert _rate(api, context, username, value).status_code == 201


@when(parsers.parse('"{username}" rates the listing {value:d}'))
def rate_listing(api, context, username, value):
    _rate(api, context, username, value)


@when(parsers.parse('"{username}" deletes the rating by "{rater}"'))
def delete_rating(api, context, username, rater):
    context["response"] = api["client"].delete(
        f"/api/v1/ratings/{context['ratings'][rater]}",
        headers=_headers(api, username),
    )


@then(parsers.parse("the response status is {code:d}"))
def response_status(context, code):
    assert context["response"].status_code == code


@then(parsers.parse('the error message is "{message}"'))
def error_message(context, message):
    assert context["response"].json()["message"] == message


@then(parsers.re(r"the listing shows (?P<count>\d+) ratings? averaging (?P<average>[\d.]+)"))
def listing_stats(api, context, count, average):
    detail = api["client"].get(f"/api/v1/listings/{context['listing_id']}").json()
    assert detail["rating_count"] == int(count)
    assert detail["average_rating"] == pytest.approx(float(average))
