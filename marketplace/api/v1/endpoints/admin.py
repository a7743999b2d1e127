"""
Admin endpoints - listing moderation queue.
"""

from fastapi import APIRouter

from marketplace.core.dependencies import CurrentIdentity
from marketplace.db.repositories.listing_repository import ListingRepository
from marketplace.db.session import DbSession
from marketplace.schemas.listing import ListingCollection, ModerationRequest, ModerationResult
from marketplace.services.moderation_service import ModerationService

router = APIRouter()


@router.get("/pending", response_model=ListingCollection)
async def pending_listings(session: DbSession, identity: CurrentIdentity):
    """Listings awaiting review, newest first."""
    return await ModerationService(ListingRepository(session)).pending(identity)


@router.patch("/listings/{listing_id}", response_model=ModerationResult)
async def moderate_listing(
    session: DbSession, listing_id: int, data: ModerationRequest, identity: CurrentIdentity
):
    """Approve or reject a listing."""
    return await ModerationService(ListingRepository(session)).moderate(listing_id, identity, data.status)
