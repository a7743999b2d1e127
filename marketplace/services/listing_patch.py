"""
Partial update engine - applies a validated, whitelisted change set to a listing.
Order: validate the whole patch, then check ownership, then issue one UPDATE.
"""

import logging
from typing import Any

from marketplace.core.exceptions import NotFoundError, ValidationError
from marketplace.core.permissions import Identity, ensure_can_patch
from marketplace.db.repositories.listing_repository import ListingRepository
from marketplace.schemas.listing import ListingChangeSet, ListingResponse
from marketplace.services.listing_service import listing_to_response

logger = logging.getLogger(__name__)


class ListingPatchService:
    """Owner-only listing edits. Admins moderate and delete; they do not edit."""

    def __init__(self, listing_repo: ListingRepository):
        self.listing_repo = listing_repo

    async def apply_patch(self, listing_id: int, actor: Identity, payload: Any) -> ListingResponse:
        change_set = payload if isinstance(payload, ListingChangeSet) else ListingChangeSet.from_payload(payload)
        changes = change_set.changes()
        if not changes:
            raise ValidationError("Nothing to update", reason="empty_patch")

        owner_id = await self.listing_repo.get_owner_id(listing_id, for_update=True)
        if owner_id is None:
            raise NotFoundError("Listing not found")
        ensure_can_patch(owner_id, actor)

        await self.listing_repo.apply_changes(listing_id, changes)
        listing = await self.listing_repo.get_by_id(listing_id)
        if listing is None:
            raise NotFoundError("Listing not found")
        logger.info("Listing %s patched by user %s: %s", listing_id, actor.id, sorted(changes))
        return listing_to_response(listing)
