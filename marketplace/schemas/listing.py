"""Listing request/response schemas - REST API contract and the patch change set."""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaError

from marketplace.core.exceptions import ValidationError
from marketplace.services.variants import sanitize_variants

SORT_KEYS = ("newest", "price-low", "price-high")
ALL_CATEGORIES = "All"
CENT = Decimal("0.01")
# Column bounds: listings.price is numeric(12,2), stock_quantity is a 32-bit integer
MAX_PRICE = Decimal("9999999999.99")
MAX_STOCK = 2**31 - 1


def first_error_message(exc: SchemaError) -> str:
    """Human message from the first pydantic error, without the 'Value error, ' prefix."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid input").removeprefix("Value error, ")
    return f"{field}: {message}" if field else message


def _positive_price(value: Decimal) -> Decimal:
    if not 0 < value <= MAX_PRICE:
        raise ValidationError(f"Price must be greater than 0 and at most {MAX_PRICE}", reason="price")
    value = value.quantize(CENT)
    if value <= 0:
        raise ValidationError("Valid positive price required", reason="price")
    return value


def _clean_images(value: list[str]) -> list[str]:
    return [url.strip() for url in value if url and url.strip()]


@dataclass(frozen=True)
class ListingQuery:
    """Validated read-path filters. Construction fails before any query runs."""

    page: int = 1
    page_size: int = 24
    sort: str = "newest"
    search: str | None = None
    category: str | None = None
    max_page_size: int = 100

    def __post_init__(self):
        if self.page < 1 or self.page_size < 1 or self.page_size > self.max_page_size:
            raise ValidationError("Invalid page or limit", reason="pagination")
        if self.sort not in SORT_KEYS:
            raise ValidationError(f"Sort must be one of {', '.join(SORT_KEYS)}", reason="sort")
        search = (self.search or "").strip() or None
        category = (self.category or "").strip() or None
        if category == ALL_CATEGORIES:
            category = None
        object.__setattr__(self, "search", search)
        object.__setattr__(self, "category", category)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class ListingCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    description: str | None = None
    price: Decimal
    condition: str | None = None
    contact_handle: str | None = None
    images: list[str] = Field(default_factory=list)
    stock_quantity: int = 1
    category: str | None = None
    variants: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValidationError("Title is required", reason="title")
        return value

    @field_validator("price")
    @classmethod
    def price_positive(cls, value: Decimal) -> Decimal:
        return _positive_price(value)

    @field_validator("stock_quantity")
    @classmethod
    def stock_at_least_one(cls, value: int) -> int:
        if not 1 <= value <= MAX_STOCK:
            raise ValidationError(f"Stock quantity must be between 1 and {MAX_STOCK}", reason="stock_quantity")
        return value

    @field_validator("images")
    @classmethod
    def images_clean(cls, value: list[str]) -> list[str]:
        return _clean_images(value)

    @field_validator("variants", mode="before")
    @classmethod
    def variants_sanitized(cls, value: Any) -> list[dict[str, Any]]:
        if value is None:
            return []
        return sanitize_variants(value)


class ListingChangeSet(BaseModel):
    """Whitelisted partial update. Unknown keys are ignored; only fields sent are applied."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None
    price: Decimal | None = None
    condition: str | None = None
    contact_handle: str | None = None
    images: list[str] | None = None
    stock_quantity: int | None = None
    category: str | None = None
    variants: list[dict[str, Any]] | None = None

    @field_validator("title", "price", "condition", "images", "stock_quantity", "category", "variants", mode="before")
    @classmethod
    def not_null(cls, value: Any, info) -> Any:
        if value is None:
            raise ValidationError(f"{info.field_name} cannot be null", reason=info.field_name)
        return value

    @field_validator("title", "condition", "category")
    @classmethod
    def non_blank(cls, value: str, info) -> str:
        value = value.strip()
        if not value:
            raise ValidationError(f"{info.field_name} cannot be empty", reason=info.field_name)
        return value

    @field_validator("price")
    @classmethod
    def price_positive(cls, value: Decimal) -> Decimal:
        return _positive_price(value)

    @field_validator("stock_quantity")
    @classmethod
    def stock_non_negative(cls, value: int) -> int:
        if not 0 <= value <= MAX_STOCK:
            raise ValidationError("Valid non-negative stock quantity required", reason="stock_quantity")
        return value

    @field_validator("images")
    @classmethod
    def images_clean(cls, value: list[str]) -> list[str]:
        return _clean_images(value)

    @field_validator("variants", mode="before")
    @classmethod
    def variants_sanitized(cls, value: Any) -> list[dict[str, Any]]:
        return sanitize_variants(value)

    @classmethod
    def from_payload(cls, payload: Any) -> "ListingChangeSet":
        """Build from a raw request body, mapping schema errors to ValidationError."""
        if not isinstance(payload, Mapping):
            raise ValidationError("Request body must be an object")
        try:
            return cls.model_validate(dict(payload))
        except SchemaError as exc:
            raise ValidationError(first_error_message(exc)) from exc

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually sent."""
        return {field: getattr(self, field) for field in self.model_fields_set}


class VariantResponse(BaseModel):
    color: str | None = None
    size: str | None = None
    stock: int | float


class SellerSummary(BaseModel):
    id: int
    username: str
    shop_name: str | None = None
    avatar_url: str | None = None
    cover_image_url: str | None = None

    model_config = {"from_attributes": True}


class ListingResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    description: str | None = None
    price: float
    condition: str
    contact_handle: str | None = None
    images: list[str] = []
    stock_quantity: int
    category: str
    variants: list[VariantResponse] = []
    status: str
    average_rating: float
    rating_count: int
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ListingDetailResponse(ListingResponse):
    seller: SellerSummary | None = None  # Populated by service layer


class ListingCreated(BaseModel):
    id: int
    title: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    current_page: int
    page_size: int
    total_pages: int
    total_items: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
            total_items=total,
            has_next=page * page_size < total,
            has_prev=page > 1,
        )


class ListingPage(BaseModel):
    status: str = "success"
    data: list[ListingResponse]
    pagination: Pagination


class ListingCollection(BaseModel):
    status: str = "success"
    count: int
    data: list[ListingResponse]


class PopularCategory(BaseModel):
    category: str
    count: int


class PopularCategoryCollection(BaseModel):
    status: str = "success"
    data: list[PopularCategory]


class ModerationRequest(BaseModel):
    status: str


class ModerationResult(BaseModel):
    id: int
    title: str
    status: str
