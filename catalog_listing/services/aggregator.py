"""Client-side reduction for the aggregate strategy: merge, filter, paginate."""
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from ..domain.models import ProductSummary
from ..utils.text import normalize_lower


@dataclass(frozen=True)
class PageSlice:
    items: List[ProductSummary]
    total_pages: int
    page: int
    clamped: bool
    total_items: int


def merge_into(merged: Dict[str, ProductSummary], items: Iterable[ProductSummary]) -> Dict[str, ProductSummary]:
    """Keyed by id, last write wins. Merging the same page twice changes nothing."""
    for p in items:
        merged[p.id] = p
    return merged


def matches_category_selection(
    product: ProductSummary,
    parent_names: Sequence[str],
    sub_names: Sequence[str],
) -> bool:
    categories = set(normalize_lower(product.categories))
    parents = normalize_lower(parent_names)
    subs = normalize_lower(sub_names)
    parent_ok = not parents or any(n in categories for n in parents)
    sub_ok = not subs or any(n in categories for n in subs)
    return parent_ok and sub_ok


def paginate(items: Sequence[ProductSummary], page: int, page_size: int) -> PageSlice:
    total_pages = max(math.ceil(len(items) / page_size), 1)
    bounded = min(max(page, 0), total_pages - 1)
    start = bounded * page_size
    return PageSlice(
        items=list(items[start:start + page_size]),
        total_pages=total_pages,
        page=bounded,
        clamped=bounded != page,
        total_items=len(items),
    )
