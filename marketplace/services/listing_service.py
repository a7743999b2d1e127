"""
Listing service - catalog reads plus listing create/delete (SOLID: Single Responsibility).
Challenge: Keep controllers thin; visibility and ownership rules live here.
Design: Service depends on repositories only; easy to test against SQLite.
"""

import logging

from marketplace.config import get_settings
from marketplace.core.exceptions import NotFoundError
from marketplace.core.permissions import Identity, can_moderate, ensure_can_moderate
from marketplace.db.models.listing import Listing, ListingStatus
from marketplace.db.repositories.listing_repository import ListingRepository
from marketplace.schemas.listing import (
    ListingCollection,
    ListingCreate,
    ListingCreated,
    ListingDetailResponse,
    ListingPage,
    ListingQuery,
    ListingResponse,
    Pagination,
    PopularCategory,
    PopularCategoryCollection,
    SellerSummary,
)

logger = logging.getLogger(__name__)
settings = get_settings()


def listing_to_response(listing: Listing) -> ListingResponse:
    """Map model to API response; Decimal columns become plain numbers."""
    return ListingResponse.model_validate(listing)


def _listing_to_detail(listing: Listing) -> ListingDetailResponse:
    detail = ListingDetailResponse.model_validate(listing)
    detail.seller = SellerSummary.model_validate(listing.owner)
    return detail


def _visible_to(listing: Listing, viewer: Identity | None) -> bool:
    """Approved listings are public; others only to their owner or an admin."""
    return listing.status == ListingStatus.APPROVED.value or can_moderate(listing.owner_id, viewer)


class ListingService:
    """Handles listing use cases: search, detail, seller pages, create, delete."""

    def __init__(self, listing_repo: ListingRepository):
        self.listing_repo = listing_repo

    @staticmethod
    def build_query(
        page: int = 1,
        page_size: int | None = None,
        sort: str = "newest",
        search: str | None = None,
        category: str | None = None,
    ) -> ListingQuery:
        return ListingQuery(
            page=page,
            page_size=settings.default_page_size if page_size is None else page_size,
            sort=sort,
            search=search,
            category=category,
            max_page_size=settings.max_page_size,
        )

    async def search(self, query: ListingQuery) -> ListingPage:
        """Approved listings for one page plus pagination metadata."""
        listings, total = await self.listing_repo.search(
            offset=query.offset,
            limit=query.page_size,
            sort=query.sort,
            search=query.search,
            category=query.category,
        )
        return ListingPage(
            data=[listing_to_response(listing) for listing in listings],
            pagination=Pagination.build(query.page, query.page_size, total),
        )

    async def get_by_id(self, id: int, viewer: Identity | None = None) -> ListingDetailResponse:
        listing = await self.listing_repo.get_by_id_with_owner(id)
        if not listing or not _visible_to(listing, viewer):
            raise NotFoundError("Listing not found")
        return _listing_to_detail(listing)

    async def listings_by_owner(self, owner_id: int, viewer: Identity | None = None) -> ListingCollection:
        """All statuses for the owner or an admin, approved only for everyone else."""
        listings = await self.listing_repo.get_by_owner(
            owner_id, approved_only=not can_moderate(owner_id, viewer)
        )
        return ListingCollection(
            count=len(listings),
            data=[listing_to_response(listing) for listing in listings],
        )

    async def popular_categories(self, limit: int = 10) -> PopularCategoryCollection:
        rows = await self.listing_repo.popular_categories(limit)
        return PopularCategoryCollection(
            data=[PopularCategory(category=category, count=count) for category, count in rows]
        )

    async def create(self, owner: Identity, data: ListingCreate) -> ListingCreated:
        """Create a listing awaiting moderation. Owner always comes from the identity."""
        listing = Listing(
            owner_id=owner.id,
            title=data.title,
            description=data.description or None,
            price=data.price,
            condition=(data.condition or "").strip() or settings.default_condition,
            contact_handle=data.contact_handle or None,
            images=data.images,
            stock_quantity=data.stock_quantity,
            category=(data.category or "").strip() or settings.default_category,
            variants=data.variants,
            status=ListingStatus.PENDING.value,
        )
        listing = await self.listing_repo.add(listing)
        logger.info("Listing %s created by user %s (pending)", listing.id, owner.id)
        return ListingCreated.model_validate(listing)

    async def delete(self, id: int, actor: Identity) -> None:
        """Owner or admin may delete; ratings go with the listing."""
        owner_id = await self.listing_repo.get_owner_id(id, for_update=True)
        if owner_id is None:
            raise NotFoundError("Listing not found")
        ensure_can_moderate(owner_id, actor, action=f"delete listing {id}")
        await self.listing_repo.delete_with_ratings(id)
        logger.info("Listing %s deleted by user %s", id, actor.id)
