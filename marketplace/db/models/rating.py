"""
Rating model - one 1..5 score per (listing, user).
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.db.base import Base

if TYPE_CHECKING:
    from marketplace.db.models.listing import Listing
    from marketplace.db.models.user import User


class Rating(Base):
    """Rating entity. The unique constraint backs the one-rating-per-user rule under concurrency."""

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("listing_id", "rater_id", name="uq_ratings_listing_rater"),
        CheckConstraint("value BETWEEN 1 AND 5", name="ck_ratings_value_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    listing_id: Mapped[int] = mapped_column(ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True)
    rater_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    value: Mapped[int] = mapped_column(nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    listing: Mapped["Listing"] = relationship("Listing", lazy="raise")
    rater: Mapped["User"] = relationship("User", lazy="raise")

    def __repr__(self) -> str:
        return f"<Rating(id={self.id}, listing_id={self.listing_id}, value={self.value})>"
