"""
Rating service - rating submission/removal and the listing aggregate.
Challenge: rating_count/average_rating must match the rating rows after every write.
Design: Each write locks the listing row, changes the rating rows, then recomputes
the aggregate from live rows in the same transaction (never increments).
"""

import logging

from sqlalchemy.exc import IntegrityError

from marketplace.core.exceptions import NotFoundError, ValidationError
from marketplace.core.permissions import Identity, ensure_can_moderate
from marketplace.db.models.rating import Rating
from marketplace.db.repositories.listing_repository import ListingRepository
from marketplace.db.repositories.rating_repository import RatingRepository
from marketplace.schemas.rating import (
    RatingDeleted,
    RatingStatus,
    RatingSubmitted,
    SellerRating,
    SellerRatingCollection,
)

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
DUPLICATE_MESSAGE = "You have already rated this listing"


class RatingService:
    """Handles rating use cases: submit, delete, status, seller overview."""

    def __init__(self, rating_repo: RatingRepository, listing_repo: ListingRepository):
        self.rating_repo = rating_repo
        self.listing_repo = listing_repo

    async def submit_rating(
        self, listing_id: int, rater: Identity, value: int, comment: str | None = None
    ) -> RatingSubmitted:
        if isinstance(value, bool) or not isinstance(value, int) or not MIN_RATING <= value <= MAX_RATING:
            raise ValidationError("Rating must be between 1 and 5", reason="range")

        # Row lock serializes raters on the same listing until commit
        if await self.listing_repo.get_owner_id(listing_id, for_update=True) is None:
            raise NotFoundError("Listing not found")
        if await self.rating_repo.get_for_rater(listing_id, rater.id):
            raise ValidationError(DUPLICATE_MESSAGE, reason="duplicate")

        rating = Rating(
            listing_id=listing_id,
            rater_id=rater.id,
            value=value,
            comment=(comment or "").strip() or None,
        )
        try:
            rating = await self.rating_repo.add(rating)
        except IntegrityError as exc:
            # Lost a race with a concurrent submit from the same user
            raise ValidationError(DUPLICATE_MESSAGE, reason="duplicate") from exc

        count, average = await self.recompute(listing_id)
        logger.info("Rating %s (%s) on listing %s by user %s", rating.id, value, listing_id, rater.id)
        return RatingSubmitted(
            rating_id=rating.id,
            listing_id=listing_id,
            average_rating=float(average),
            rating_count=count,
        )

    async def delete_rating(self, rating_id: int, actor: Identity) -> RatingDeleted:
        """Listing owner or admin may remove a rating; the aggregate is rebuilt from what remains."""
        found = await self.rating_repo.get_with_listing_owner(rating_id)
        if found is None:
            raise NotFoundError("Rating not found")
        listing_id, owner_id = found
        ensure_can_moderate(owner_id, actor, action=f"delete rating {rating_id}")

        await self.listing_repo.get_owner_id(listing_id, for_update=True)
        await self.rating_repo.delete_by_id(rating_id)
        count, average = await self.recompute(listing_id)
        logger.info("Rating %s on listing %s deleted by user %s", rating_id, listing_id, actor.id)
        return RatingDeleted(listing_id=listing_id, average_rating=float(average), rating_count=count)

    async def recompute(self, listing_id: int):
        """Idempotent aggregate rebuild from the live rating rows."""
        stats = await self.rating_repo.recompute_listing_stats(listing_id)
        if stats is None:
            raise NotFoundError("Listing not found")
        return stats

    async def rating_status(self, listing_id: int, user: Identity) -> RatingStatus:
        if await self.listing_repo.get_owner_id(listing_id) is None:
            raise NotFoundError("Listing not found")
        rating = await self.rating_repo.get_for_rater(listing_id, user.id)
        if rating is None:
            return RatingStatus(has_rated=False)
        return RatingStatus(has_rated=True, previous_rating=rating.value)

    async def seller_ratings(self, seller_id: int, actor: Identity) -> SellerRatingCollection:
        """Every rating on a seller's listings; seller or admin only."""
        ensure_can_moderate(seller_id, actor, action=f"view ratings of seller {seller_id}")
        rows = await self.rating_repo.get_for_seller(seller_id)
        data = [
            SellerRating(
                id=rating.id,
                rating=rating.value,
                comment=rating.comment,
                created_at=rating.created_at,
                rater_username=username,
                listing_title=title,
                listing_id=rating.listing_id,
            )
            for rating, username, title in rows
        ]
        return SellerRatingCollection(count=len(data), data=data)
