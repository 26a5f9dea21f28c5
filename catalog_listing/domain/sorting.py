from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List

from .models import ProductSummary, SortKey


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: str  # "ASC" | "DESC"

    def as_param(self) -> str:
        return f"{self.field},{self.direction}"


_CATALOG_SORT = {
    SortKey.NEWEST: SortSpec("createdAt", "DESC"),
    SortKey.PRICE_ASC: SortSpec("regularPrice", "ASC"),
    SortKey.PRICE_DESC: SortSpec("regularPrice", "DESC"),
    SortKey.NAME_ASC: SortSpec("name", "ASC"),
}

# The search backend has no name ordering; "relevance" is the closest it offers.
_SEARCH_SORT = {
    SortKey.NEWEST: "newest",
    SortKey.PRICE_ASC: "price-low",
    SortKey.PRICE_DESC: "price-high",
    SortKey.NAME_ASC: "relevance",
}


def catalog_sort(key: SortKey) -> SortSpec:
    return _CATALOG_SORT.get(key, _CATALOG_SORT[SortKey.NEWEST])


def search_sort_token(key: SortKey) -> str:
    return _SEARCH_SORT.get(key, "relevance")


def sort_products(products: Iterable[ProductSummary], key: SortKey) -> List[ProductSummary]:
    """
    Client-side counterpart of catalog_sort, used after aggregation.
    NEWEST keeps input order: each fetched page already came back createdAt DESC.
    """
    out = list(products)
    if key == SortKey.PRICE_ASC:
        out.sort(key=lambda p: p.selling_price)
    elif key == SortKey.PRICE_DESC:
        out.sort(key=lambda p: p.selling_price, reverse=True)
    elif key == SortKey.NAME_ASC:
        out.sort(key=lambda p: p.name.casefold())
    return out
