# Repository pattern: abstract data access (SOLID - Dependency Inversion)

from marketplace.db.repositories.listing_repository import ListingRepository
from marketplace.db.repositories.rating_repository import RatingRepository
from marketplace.db.repositories.user_repository import UserRepository

__all__ = ["UserRepository", "ListingRepository", "RatingRepository"]
