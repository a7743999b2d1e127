"""
Moderation service - admin review queue and approve/reject transitions.
"""

import logging

from marketplace.core.exceptions import NotFoundError, ValidationError
from marketplace.core.permissions import Identity, ensure_admin
from marketplace.db.models.listing import ListingStatus
from marketplace.db.repositories.listing_repository import ListingRepository
from marketplace.schemas.listing import ListingCollection, ModerationResult
from marketplace.services.listing_service import listing_to_response

logger = logging.getLogger(__name__)

MODERATION_TARGETS = (ListingStatus.APPROVED, ListingStatus.REJECTED)


class ModerationService:
    def __init__(self, listing_repo: ListingRepository):
        self.listing_repo = listing_repo

    async def pending(self, actor: Identity) -> ListingCollection:
        ensure_admin(actor, action="list pending listings")
        listings = await self.listing_repo.get_by_status(ListingStatus.PENDING)
        return ListingCollection(
            count=len(listings),
            data=[listing_to_response(listing) for listing in listings],
        )

    async def moderate(self, listing_id: int, actor: Identity, new_status: str) -> ModerationResult:
        ensure_admin(actor, action=f"moderate listing {listing_id}")
        if new_status not in {target.value for target in MODERATION_TARGETS}:
            raise ValidationError("Invalid status value", reason="status")

        if await self.listing_repo.get_owner_id(listing_id, for_update=True) is None:
            raise NotFoundError("Listing not found")
        await self.listing_repo.set_status(listing_id, ListingStatus(new_status))
        listing = await self.listing_repo.get_by_id(listing_id)
        logger.info("Listing %s %s by admin %s", listing_id, new_status, actor.id)
        return ModerationResult(id=listing.id, title=listing.title, status=listing.status)
