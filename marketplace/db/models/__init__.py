from marketplace.db.models.user import User
from marketplace.db.models.listing import Listing, ListingStatus
from marketplace.db.models.rating import Rating

__all__ = ["User", "Listing", "ListingStatus", "Rating"]
