"""
Listing model - a sellable item with moderation status and derived rating stats.
"""

import enum
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketplace.db.base import Base

if TYPE_CHECKING:
    from marketplace.db.models.user import User

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonList = JSON().with_variant(JSONB(), "postgresql")


class ListingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Listing(Base):
    """Listing entity. average_rating/rating_count are only written by the rating recompute."""

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_listings_price_positive"),
        CheckConstraint("stock_quantity >= 0", name="ck_listings_stock_non_negative"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_listings_status"),
        Index("ix_listings_status_created_at", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    condition: Mapped[str] = mapped_column(String(100), nullable=False)
    contact_handle: Mapped[str | None] = mapped_column(String(100), nullable=True)
    images: Mapped[list[str]] = mapped_column(JsonList, nullable=False, default=list)
    stock_quantity: Mapped[int] = mapped_column(nullable=False, default=1)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    variants: Mapped[list[dict[str, Any]]] = mapped_column(JsonList, nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ListingStatus.PENDING.value, server_default=ListingStatus.PENDING.value
    )
    average_rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=0, server_default="0")
    rating_count: Mapped[int] = mapped_column(nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    owner: Mapped["User"] = relationship("User", lazy="raise")

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title}, status={self.status})>"
