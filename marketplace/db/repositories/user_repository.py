"""
User repository - read access to the account service's users (SOLID: Single Responsibility).
"""

from marketplace.db.models.user import User
from marketplace.db.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """User lookups used by the identity dependency."""

    def __init__(self, session):
        super().__init__(session, User)
