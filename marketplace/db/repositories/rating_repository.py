"""
Rating repository - rating rows and the listing aggregate recompute.
Challenge: Keep rating_count/average_rating equal to COUNT/AVG of live rows under concurrency.
"""

from decimal import Decimal

from sqlalchemy import delete, func, select, update

from marketplace.db.models.listing import Listing
from marketplace.db.models.rating import Rating
from marketplace.db.models.user import User
from marketplace.db.repositories.base_repository import BaseRepository


class RatingRepository(BaseRepository[Rating]):
    """Rating-specific queries."""

    def __init__(self, session):
        super().__init__(session, Rating)

    async def get_for_rater(self, listing_id: int, rater_id: int) -> Rating | None:
        result = await self.execute(
            select(Rating).where(Rating.listing_id == listing_id, Rating.rater_id == rater_id),
            "get rating for rater",
        )
        return result.scalar_one_or_none()

    async def get_with_listing_owner(self, rating_id: int) -> tuple[int, int] | None:
        """(listing_id, listing owner_id) for a rating, or None if the rating is gone."""
        result = await self.execute(
            select(Rating.listing_id, Listing.owner_id)
            .join(Listing, Rating.listing_id == Listing.id)
            .where(Rating.id == rating_id),
            "get rating owner",
        )
        row = result.first()
        return (row.listing_id, row.owner_id) if row else None

    async def delete_by_id(self, rating_id: int) -> None:
        await self.execute(delete(Rating).where(Rating.id == rating_id), "delete rating")

    async def recompute_listing_stats(self, listing_id: int) -> tuple[int, Decimal] | None:
        """Derive rating_count/average_rating from the live rating rows in one UPDATE.

        Idempotent: running it any number of times converges on the same values.
        Returns None when the listing no longer exists.
        """
        rating_count = (
            select(func.count(Rating.id)).where(Rating.listing_id == listing_id).scalar_subquery()
        )
        average = (
            select(func.round(func.avg(Rating.value), 2))
            .where(Rating.listing_id == listing_id)
            .scalar_subquery()
        )
        result = await self.execute(
            update(Listing)
            .where(Listing.id == listing_id)
            .values(rating_count=rating_count, average_rating=func.coalesce(average, 0))
            .returning(Listing.rating_count, Listing.average_rating)
            .execution_options(synchronize_session=False),
            "recompute listing rating stats",
        )
        row = result.first()
        if row is None:
            return None
        return int(row.rating_count), Decimal(str(row.average_rating))

    async def get_for_seller(self, seller_id: int) -> list[tuple[Rating, str, str]]:
        """Ratings received on a seller's listings with rater username and listing title."""
        result = await self.execute(
            select(Rating, User.username, Listing.title)
            .join(Listing, Rating.listing_id == Listing.id)
            .join(User, Rating.rater_id == User.id)
            .where(Listing.owner_id == seller_id)
            .order_by(Rating.created_at.desc(), Rating.id.desc()),
            "ratings for seller",
        )
        return [(rating, username, title) for rating, username, title in result.all()]
