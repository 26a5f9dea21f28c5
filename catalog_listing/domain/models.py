from __future__ import annotations
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

FAILED_STATUS = "Failed to load products."
LOADING_STATUS = "Loading products..."


class WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python; unknown backend fields are dropped
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class CategoryType(str, Enum):
    PARENT = "PARENT"
    SUB = "SUB"


class SortKey(str, Enum):
    NEWEST = "newest"
    PRICE_ASC = "priceAsc"
    PRICE_DESC = "priceDesc"
    NAME_ASC = "nameAsc"


class StrategyKind(str, Enum):
    SEARCH = "search"
    DIRECT = "direct"
    AGGREGATE = "aggregate"


class Category(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: CategoryType
    parent_category_id: Optional[str] = None


class ProductSummary(WireModel):
    id: str
    slug: Optional[str] = None
    name: str
    selling_price: float
    sku: Optional[str] = None
    categories: List[str] = Field(default_factory=list)

    # Provenance fields; only some backends send them
    short_description: Optional[str] = None
    brand_name: Optional[str] = None
    main_image: Optional[str] = None
    regular_price: Optional[float] = None
    discounted_price: Optional[float] = None
    main_category: Optional[str] = None
    sub_categories: List[str] = Field(default_factory=list)
    vendor_id: Optional[str] = None

    @field_validator("categories", "sub_categories", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v


class ProductPage(BaseModel):
    """One backend page, normalised from either the search or the catalog envelope."""
    items: List[ProductSummary] = Field(default_factory=list)
    total_pages: int = 1
    total_elements: int = 0
    took_ms: Optional[int] = None


class FilterState(BaseModel):
    """The committed filters. Immutable: every commit builds a new instance."""
    model_config = ConfigDict(frozen=True)

    query: str = ""
    selected_parent_names: tuple[str, ...] = ()
    selected_sub_names: tuple[str, ...] = ()
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    sort_key: SortKey = SortKey.NEWEST
    page: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_price_range(self) -> "FilterState":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


class PageResult(WireModel):
    items: List[ProductSummary] = Field(default_factory=list)
    total_pages: int = 1
    status_text: str = ""
    page: int = 0
    page_clamped: bool = False
    strategy: Optional[StrategyKind] = None

    @field_validator("total_pages", mode="before")
    @classmethod
    def _at_least_one(cls, v):
        return max(int(v or 1), 1)

    @classmethod
    def failure(cls, page: int = 0) -> "PageResult":
        return cls(items=[], total_pages=1, status_text=FAILED_STATUS, page=page)

    @classmethod
    def loading(cls) -> "PageResult":
        return cls(items=[], total_pages=1, status_text=LOADING_STATUS)
