"""
Rating API tests - submission, duplicates, deletion, and the aggregate invariant.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from marketplace.core.exceptions import ValidationError
from marketplace.core.permissions import Identity
from marketplace.db.models import Listing, Rating
from marketplace.db.repositories import ListingRepository, RatingRepository
from marketplace.services.rating_service import DUPLICATE_MESSAGE, RatingService


async def _assert_stats_match_rows(session, listing_id: int):
    """rating_count/average_rating must equal COUNT/AVG over the rating rows."""
    values = (await session.execute(select(Rating.value).where(Rating.listing_id == listing_id))).scalars().all()
    listing = (
        await session.execute(
            select(Listing).where(Listing.id == listing_id).execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert listing.rating_count == len(values)
    expected = round(sum(values) / len(values), 2) if values else 0
    assert float(listing.average_rating) == pytest.approx(expected)


@pytest.mark.asyncio
async def test_rate_listing(client: AsyncClient, seller, buyer, make_listing, auth_headers):
    listing = await make_listing(seller)
    response = await client.post(
        f"/api/v1/listings/{listing.id}/rating",
        headers=auth_headers(buyer),
        json={"rating": 5, "comment": "Great"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["average_rating"] == 5
    assert data["rating_count"] == 1

    detail = (await client.get(f"/api/v1/listings/{listing.id}")).json()
    assert detail["average_rating"] == 5
    assert detail["rating_count"] == 1


@pytest.mark.asyncio
async def test_duplicate_rating_is_rejected(client: AsyncClient, seller, buyer, make_listing, auth_headers):
    listing = await make_listing(seller)
    url = f"/api/v1/listings/{listing.id}/rating"
    await client.post(url, headers=auth_headers(buyer), json={"rating": 5})

    again = await client.post(url, headers=auth_headers(buyer), json={"rating": 1})
    assert again.status_code == 400
    assert again.json()["message"] == "You have already rated this listing"

    detail = (await client.get(f"/api/v1/listings/{listing.id}")).json()
    assert detail["rating_count"] == 1
    assert detail["average_rating"] == 5


@pytest.mark.asyncio
async def test_concurrent_duplicate_hits_unique_constraint(session, seller, buyer, make_listing, monkeypatch):
    """A second submit that slips past the lookup is stopped by the unique constraint."""
    listing = await make_listing(seller)
    listing_id, rater = listing.id, Identity(id=buyer.id, role=buyer.role)
    service = RatingService(RatingRepository(session), ListingRepository(session))
    await service.submit_rating(listing_id, rater, 5)
    await session.commit()

    async def not_rated_yet(self, listing_id, rater_id):
        return None

    monkeypatch.setattr(RatingRepository, "get_for_rater", not_rated_yet)
    with pytest.raises(ValidationError) as excinfo:
        await service.submit_rating(listing_id, rater, 1)
    assert excinfo.value.status_code == 400
    assert excinfo.value.reason == "duplicate"
    assert excinfo.value.message == DUPLICATE_MESSAGE
    await session.rollback()

    await _assert_stats_match_rows(session, listing_id)
    rows = (await session.execute(select(Rating.value).where(Rating.listing_id == listing_id))).scalars().all()
    assert rows == [5]


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [0, 6, -1])
async def test_rating_out_of_range(client: AsyncClient, seller, buyer, make_listing, auth_headers, value):
    listing = await make_listing(seller)
    response = await client.post(
        f"/api/v1/listings/{listing.id}/rating", headers=auth_headers(buyer), json={"rating": value}
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "validation"


@pytest.mark.asyncio
async def test_rating_missing_listing(client: AsyncClient, buyer, auth_headers):
    response = await client.post("/api/v1/listings/999/rating", headers=auth_headers(buyer), json={"rating": 3})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rating_status(client: AsyncClient, seller, buyer, make_listing, auth_headers):
    listing = await make_listing(seller)
    url = f"/api/v1/listings/{listing.id}/rating-status"
    assert (await client.get(url, headers=auth_headers(buyer))).json() == {"has_rated": False, "previous_rating": None}

    await client.post(f"/api/v1/listings/{listing.id}/rating", headers=auth_headers(buyer), json={"rating": 4})
    assert (await client.get(url, headers=auth_headers(buyer))).json() == {"has_rated": True, "previous_rating": 4}


@pytest.mark.asyncio
async def test_rating_status_for_missing_listing(client: AsyncClient, buyer, auth_headers):
    response = await client.get("/api/v1/listings/999/rating-status", headers=auth_headers(buyer))
    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


@pytest.mark.asyncio
async def test_delete_rating_recomputes_from_remaining(
    client: AsyncClient, session, seller, buyer, other_buyer, make_user, make_listing, auth_headers
):
    listing = await make_listing(seller)
    third = await make_user("third")
    ids = []
    for user, value in [(buyer, 5), (other_buyer, 2), (third, 4)]:
        r = await client.post(f"/api/v1/listings/{listing.id}/rating", headers=auth_headers(user), json={"rating": value})
        ids.append(r.json()["rating_id"])
    await _assert_stats_match_rows(session, listing.id)

    response = await client.delete(f"/api/v1/ratings/{ids[0]}", headers=auth_headers(seller))
    assert response.status_code == 200
    assert response.json()["rating_count"] == 2
    assert response.json()["average_rating"] == 3
    await _assert_stats_match_rows(session, listing.id)

    for rating_id in ids[1:]:
        await client.delete(f"/api/v1/ratings/{rating_id}", headers=auth_headers(seller))
    detail = (await client.get(f"/api/v1/listings/{listing.id}")).json()
    assert detail["rating_count"] == 0
    assert detail["average_rating"] == 0
    await _assert_stats_match_rows(session, listing.id)


@pytest.mark.asyncio
async def test_delete_rating_authorization(
    client: AsyncClient, seller, buyer, other_buyer, admin, make_listing, auth_headers
):
    listing = await make_listing(seller)
    r = await client.post(f"/api/v1/listings/{listing.id}/rating", headers=auth_headers(buyer), json={"rating": 1})
    rating_id = r.json()["rating_id"]

    # The rater is not the listing owner
    assert (await client.delete(f"/api/v1/ratings/{rating_id}", headers=auth_headers(buyer))).status_code == 403
    assert (await client.delete(f"/api/v1/ratings/{rating_id}", headers=auth_headers(other_buyer))).status_code == 403
    assert (await client.delete(f"/api/v1/ratings/{rating_id}", headers=auth_headers(admin))).status_code == 200
    assert (await client.delete(f"/api/v1/ratings/{rating_id}", headers=auth_headers(admin))).status_code == 404


@pytest.mark.asyncio
async def test_seller_ratings(client: AsyncClient, seller, buyer, other_buyer, admin, make_listing, auth_headers):
    lamp = await make_listing(seller, title="Lamp")
    chair = await make_listing(seller, title="Chair")
    await client.post(f"/api/v1/listings/{lamp.id}/rating", headers=auth_headers(buyer), json={"rating": 5})
    await client.post(
        f"/api/v1/listings/{chair.id}/rating", headers=auth_headers(other_buyer), json={"rating": 3, "comment": "ok"}
    )
    url = f"/api/v1/listings/users/{seller.id}/ratings"

    own = (await client.get(url, headers=auth_headers(seller))).json()
    assert own["count"] == 2
    assert {(r["listing_title"], r["rater_username"], r["rating"]) for r in own["data"]} == {
        ("Lamp", "buyer", 5),
        ("Chair", "other_buyer", 3),
    }
    assert (await client.get(url, headers=auth_headers(admin))).json()["count"] == 2
    assert (await client.get(url, headers=auth_headers(buyer))).status_code == 403


@pytest.mark.asyncio
async def test_marketplace_walkthrough(client: AsyncClient, seller, buyer, other_buyer, admin, auth_headers):
    """Create → moderate → rate → duplicate → second rater."""
    bad = await client.post("/api/v1/listings", headers=auth_headers(seller), json={"title": "Kettle", "price": 0})
    assert bad.status_code == 400

    created = await client.post(
        "/api/v1/listings", headers=auth_headers(seller), json={"title": "Kettle", "price": 10, "stock_quantity": 1}
    )
    assert created.json()["status"] == "pending"
    listing_id = created.json()["id"]

    moderated = await client.patch(
        f"/api/v1/admin/listings/{listing_id}", headers=auth_headers(admin), json={"status": "approved"}
    )
    assert moderated.json() == {"id": listing_id, "title": "Kettle", "status": "approved"}
    page = (await client.get("/api/v1/listings")).json()
    assert [i["id"] for i in page["data"]] == [listing_id]

    rate_url = f"/api/v1/listings/{listing_id}/rating"
    first = (await client.post(rate_url, headers=auth_headers(buyer), json={"rating": 5})).json()
    assert (first["average_rating"], first["rating_count"]) == (5, 1)

    dup = await client.post(rate_url, headers=auth_headers(buyer), json={"rating": 3})
    assert dup.status_code == 400
    detail = (await client.get(f"/api/v1/listings/{listing_id}")).json()
    assert (detail["average_rating"], detail["rating_count"]) == (5, 1)

    second = (await client.post(rate_url, headers=auth_headers(other_buyer), json={"rating": 3})).json()
    assert (second["average_rating"], second["rating_count"]) == (4.0, 2)
