"""
Listing endpoints - public catalog reads, owner writes, ratings on a listing.
Design: Thin controller; services hold business logic and raise domain errors,
which the app-level handlers turn into responses.
"""

from typing import Any

from fastapi import APIRouter, Body, Query, status

from marketplace.core.dependencies import CurrentIdentity, OptionalIdentity
from marketplace.db.repositories.listing_repository import ListingRepository
from marketplace.db.repositories.rating_repository import RatingRepository
from marketplace.db.session import DbSession
from marketplace.schemas.listing import (
    ListingCollection,
    ListingCreate,
    ListingCreated,
    ListingDetailResponse,
    ListingPage,
    ListingResponse,
    PopularCategoryCollection,
)
from marketplace.schemas.rating import RatingCreate, RatingStatus, RatingSubmitted, SellerRatingCollection
from marketplace.services.listing_patch import ListingPatchService
from marketplace.services.listing_service import ListingService
from marketplace.services.rating_service import RatingService

router = APIRouter()


def _get_listing_service(session: DbSession) -> ListingService:
    """Factory for service with repository injection (Dependency Inversion)."""
    return ListingService(ListingRepository(session))


def _get_rating_service(session: DbSession) -> RatingService:
    return RatingService(RatingRepository(session), ListingRepository(session))


@router.get("", response_model=ListingPage)
async def list_listings(
    session: DbSession,
    page: int = Query(1),
    limit: int | None = Query(None),
    sort: str = Query("newest"),
    search: str | None = Query(None),
    category: str | None = Query(None),
):
    """Approved listings. REST: GET /listings?page=1&limit=24&sort=price-low&search=lamp&category=Home."""
    svc = _get_listing_service(session)
    query = svc.build_query(page=page, page_size=limit, sort=sort, search=search, category=category)
    return await svc.search(query)


@router.get("/categories/popular", response_model=PopularCategoryCollection)
async def popular_categories(session: DbSession):
    """Top 10 categories among approved listings."""
    return await _get_listing_service(session).popular_categories()


@router.get("/user/{user_id}", response_model=ListingCollection)
async def listings_by_user(session: DbSession, user_id: int, viewer: OptionalIdentity):
    """A seller's listings: everything for the seller or an admin, approved only otherwise."""
    return await _get_listing_service(session).listings_by_owner(user_id, viewer)


@router.get("/users/{user_id}/ratings", response_model=SellerRatingCollection)
async def seller_ratings(session: DbSession, user_id: int, identity: CurrentIdentity):
    """Ratings received on a seller's listings (seller or admin only)."""
    return await _get_rating_service(session).seller_ratings(user_id, identity)


@router.get("/{listing_id}", response_model=ListingDetailResponse)
async def get_listing(session: DbSession, listing_id: int, viewer: OptionalIdentity):
    """Single listing with seller summary."""
    return await _get_listing_service(session).get_by_id(listing_id, viewer)


@router.post("", response_model=ListingCreated, status_code=status.HTTP_201_CREATED)
async def create_listing(session: DbSession, data: ListingCreate, identity: CurrentIdentity):
    """Create listing (authenticated). Owner comes from the token; status starts as pending."""
    return await _get_listing_service(session).create(identity, data)


@router.patch("/{listing_id}", response_model=ListingResponse)
async def patch_listing(
    session: DbSession,
    listing_id: int,
    identity: CurrentIdentity,
    payload: Any = Body(...),
):
    """Partial update by the owner. Unknown fields are ignored."""
    return await ListingPatchService(ListingRepository(session)).apply_patch(listing_id, identity, payload)


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(session: DbSession, listing_id: int, identity: CurrentIdentity):
    """Delete listing and its ratings (owner or admin)."""
    await _get_listing_service(session).delete(listing_id, identity)


@router.post("/{listing_id}/rating", response_model=RatingSubmitted, status_code=status.HTTP_201_CREATED)
async def rate_listing(session: DbSession, listing_id: int, data: RatingCreate, identity: CurrentIdentity):
    """Rate a listing once per user."""
    return await _get_rating_service(session).submit_rating(listing_id, identity, data.rating, data.comment)


@router.get("/{listing_id}/rating-status", response_model=RatingStatus)
async def rating_status(session: DbSession, listing_id: int, identity: CurrentIdentity):
    """Has the current user already rated this listing?"""
    return await _get_rating_service(session).rating_status(listing_id, identity)
