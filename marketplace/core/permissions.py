"""
Authorization guard - who may change which listing or rating.
Two policies stay separate: patching is owner-only, while deletion and
rating moderation also admit admins.
"""

import logging
from dataclasses import dataclass

from marketplace.core.exceptions import PermissionDenied

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    """Acting user as supplied by the identity layer (verified bearer token)."""

    id: int
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def is_owner(owner_id: int, identity: Identity | None) -> bool:
    return identity is not None and identity.id == owner_id


def can_patch(owner_id: int, identity: Identity | None) -> bool:
    """Owner-only. Admins cannot edit someone else's listing."""
    return is_owner(owner_id, identity)


def can_moderate(owner_id: int, identity: Identity | None) -> bool:
    """Owner or admin. Used for listing delete, rating delete and seller ratings."""
    return is_owner(owner_id, identity) or (identity is not None and identity.is_admin)


def ensure_can_patch(owner_id: int, identity: Identity, action: str = "edit listing") -> None:
    if not can_patch(owner_id, identity):
        logger.warning("Denied %s: user=%s owner=%s", action, identity.id, owner_id)
        raise PermissionDenied("Only the owner can edit this listing")


def ensure_can_moderate(owner_id: int, identity: Identity, action: str) -> None:
    if not can_moderate(owner_id, identity):
        logger.warning("Denied %s: user=%s owner=%s", action, identity.id, owner_id)
        raise PermissionDenied("Not authorized")


def ensure_admin(identity: Identity, action: str) -> None:
    if not identity.is_admin:
        logger.warning("Denied %s: user=%s is not admin", action, identity.id)
        raise PermissionDenied("Admin access only")
