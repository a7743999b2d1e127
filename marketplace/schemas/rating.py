"""Rating request/response schemas."""

from datetime import datetime

from pydantic import BaseModel


class RatingCreate(BaseModel):
    rating: int  # Range is checked by the service so it reports as a rating error
    comment: str | None = None


class RatingSubmitted(BaseModel):
    message: str = "Rating submitted successfully"
    rating_id: int
    listing_id: int
    average_rating: float
    rating_count: int


class RatingDeleted(BaseModel):
    message: str = "Rating deleted successfully"
    listing_id: int
    average_rating: float
    rating_count: int


class RatingStatus(BaseModel):
    has_rated: bool
    previous_rating: int | None = None


class SellerRating(BaseModel):
    id: int
    rating: int
    comment: str | None = None
    created_at: datetime
    rater_username: str
    listing_title: str
    listing_id: int


class SellerRatingCollection(BaseModel):
    status: str = "success"
    count: int
    data: list[SellerRating]
