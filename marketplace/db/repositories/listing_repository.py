"""
Listing repository - catalog reads and listing writes (SOLID: Single Responsibility).
Challenge: Database query performance; one statement per concern, fixed column maps.
"""

from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import selectinload

from marketplace.db.models.listing import Listing, ListingStatus
from marketplace.db.models.rating import Rating
from marketplace.db.repositories.base_repository import BaseRepository

SORT_ORDERS = {
    "newest": (Listing.created_at.desc(), Listing.id.desc()),
    "price-low": (Listing.price.asc(), Listing.created_at.desc(), Listing.id.desc()),
    "price-high": (Listing.price.desc(), Listing.created_at.desc(), Listing.id.desc()),
}

# The only columns a patch may touch. Keys are change-set field names, never raw input.
PATCHABLE_COLUMNS = {
    "title": Listing.title,
    "description": Listing.description,
    "price": Listing.price,
    "condition": Listing.condition,
    "contact_handle": Listing.contact_handle,
    "images": Listing.images,
    "stock_quantity": Listing.stock_quantity,
    "category": Listing.category,
    "variants": Listing.variants,
}


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ListingRepository(BaseRepository[Listing]):
    """Listing-specific queries. Uses selectinload for the seller summary."""

    def __init__(self, session):
        super().__init__(session, Listing)

    async def get_by_id_with_owner(self, id: int) -> Listing | None:
        """Fetch listing with its seller in one extra query."""
        result = await self.execute(
            select(Listing)
            .where(Listing.id == id)
            .options(selectinload(Listing.owner))
            .execution_options(populate_existing=True),
            "get listing with owner",
        )
        return result.scalar_one_or_none()

    async def search(
        self,
        *,
        offset: int,
        limit: int,
        sort: str,
        search: str | None = None,
        category: str | None = None,
    ) -> tuple[list[Listing], int]:
        """Approved listings page plus the total match count for the same filters."""
        conditions = [Listing.status == ListingStatus.APPROVED.value]
        if search:
            pattern = f"%{_escape_like(search)}%"
            conditions.append(
                or_(
                    Listing.title.ilike(pattern, escape="\\"),
                    Listing.description.ilike(pattern, escape="\\"),
                )
            )
        if category:
            conditions.append(Listing.category == category)

        total_result = await self.execute(
            select(func.count()).select_from(Listing).where(*conditions), "count listings"
        )
        page_result = await self.execute(
            select(Listing)
            .where(*conditions)
            .order_by(*SORT_ORDERS[sort])
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True),
            "search listings",
        )
        return list(page_result.scalars().all()), int(total_result.scalar_one())

    async def get_by_owner(self, owner_id: int, *, approved_only: bool) -> list[Listing]:
        stmt = select(Listing).where(Listing.owner_id == owner_id)
        if approved_only:
            stmt = stmt.where(Listing.status == ListingStatus.APPROVED.value)
        result = await self.execute(
            stmt.order_by(Listing.created_at.desc(), Listing.id.desc()).execution_options(populate_existing=True),
            "listings by owner",
        )
        return list(result.scalars().all())

    async def get_by_status(self, status: ListingStatus) -> list[Listing]:
        result = await self.execute(
            select(Listing)
            .where(Listing.status == status.value)
            .order_by(Listing.created_at.desc(), Listing.id.desc())
            .execution_options(populate_existing=True),
            f"listings with status {status.value}",
        )
        return list(result.scalars().all())

    async def popular_categories(self, limit: int = 10) -> list[tuple[str, int]]:
        """Top categories among approved listings, most listings first."""
        count = func.count(Listing.id).label("count")
        result = await self.execute(
            select(Listing.category, count)
            .where(
                Listing.status == ListingStatus.APPROVED.value,
                Listing.category.is_not(None),
                Listing.category != "",
            )
            .group_by(Listing.category)
            .order_by(count.desc(), Listing.category)
            .limit(limit),
            "popular categories",
        )
        return [(row.category, int(row.count)) for row in result.all()]

    async def get_owner_id(self, id: int, *, for_update: bool = False) -> int | None:
        """Owner of a listing, optionally row-locking it for the rest of the transaction."""
        stmt = select(Listing.owner_id).where(Listing.id == id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.execute(stmt, "get listing owner")
        return result.scalar_one_or_none()

    async def get_ids(self) -> list[int]:
        result = await self.execute(select(Listing.id).order_by(Listing.id), "list listing ids")
        return list(result.scalars().all())

    async def apply_changes(self, id: int, changes: dict[str, Any]) -> None:
        """Single parameterized UPDATE over whitelisted columns."""
        values = {PATCHABLE_COLUMNS[field]: value for field, value in changes.items()}
        await self.execute(
            update(Listing)
            .where(Listing.id == id)
            .values(values)
            .execution_options(synchronize_session=False),
            "patch listing",
        )

    async def set_status(self, id: int, status: ListingStatus) -> None:
        await self.execute(
            update(Listing)
            .where(Listing.id == id)
            .values(status=status.value)
            .execution_options(synchronize_session=False),
            "moderate listing",
        )

    async def delete_with_ratings(self, id: int) -> None:
        """Remove a listing and its ratings. Explicit so it holds without DB-level cascades."""
        await self.execute(delete(Rating).where(Rating.listing_id == id), "delete listing ratings")
        await self.execute(delete(Listing).where(Listing.id == id), "delete listing")
