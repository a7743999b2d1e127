"""
Rating endpoints - moderation of individual ratings.
"""

from fastapi import APIRouter

from marketplace.core.dependencies import CurrentIdentity
from marketplace.db.repositories.listing_repository import ListingRepository
from marketplace.db.repositories.rating_repository import RatingRepository
from marketplace.db.session import DbSession
from marketplace.schemas.rating import RatingDeleted
from marketplace.services.rating_service import RatingService

router = APIRouter()


@router.delete("/{rating_id}", response_model=RatingDeleted)
async def delete_rating(session: DbSession, rating_id: int, identity: CurrentIdentity):
    """Delete a rating (listing owner or admin). Listing stats are recomputed."""
    svc = RatingService(RatingRepository(session), ListingRepository(session))
    return await svc.delete_rating(rating_id, identity)
