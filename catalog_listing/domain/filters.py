"""
Filter commit boundary.

Raw control values live in a FilterDraft and never trigger anything. The
functions below turn a draft or a control interaction into a new FilterState;
they are the only place where filter validation happens.
"""
from __future__ import annotations
from dataclasses import dataclass

from .categories import CategoryIndex
from .errors import InvalidFilterError
from .models import Category, FilterState, SortKey
from ..utils.text import normalize_whitespace, parse_price

PRICE_RANGE_MESSAGE = "Min price must be lower than max price"
INVALID_PRICE_MESSAGE = "Invalid price"


@dataclass
class FilterDraft:
    query_input: str = ""
    min_price_input: str = ""
    max_price_input: str = ""


def _replace(state: FilterState, **changes) -> FilterState:
    # model_copy skips validation; go through the constructor instead
    return FilterState(**{**state.model_dump(), **changes})


def commit_query(state: FilterState, raw_query: str) -> FilterState:
    return _replace(state, query=normalize_whitespace(raw_query) or "", page=0)


def clear_query(state: FilterState) -> FilterState:
    return _replace(state, query="", page=0)


def commit_price_range(state: FilterState, min_input: str, max_input: str) -> FilterState:
    min_price = parse_price(min_input)
    max_price = parse_price(max_input)
    if (min_input or "").strip() and min_price is None:
        raise InvalidFilterError("min_price", INVALID_PRICE_MESSAGE)
    if (max_input or "").strip() and max_price is None:
        raise InvalidFilterError("max_price", INVALID_PRICE_MESSAGE)
    if min_price is not None and max_price is not None and min_price > max_price:
        raise InvalidFilterError("price", PRICE_RANGE_MESSAGE)
    return _replace(state, min_price=min_price, max_price=max_price, page=0)


def clear_price_range(state: FilterState) -> FilterState:
    return _replace(state, min_price=None, max_price=None, page=0)


def commit_sort(state: FilterState, key: SortKey) -> FilterState:
    return _replace(state, sort_key=SortKey(key), page=0)


def commit_page(state: FilterState, page: int) -> FilterState:
    if page < 0:
        raise InvalidFilterError("page", "Page index must be >= 0")
    return _replace(state, page=page)


def toggle_parent(state: FilterState, parent: Category, index: CategoryIndex) -> FilterState:
    """Select or deselect a parent; deselecting also drops its sub-categories."""
    parents = list(state.selected_parent_names)
    subs = list(state.selected_sub_names)
    if parent.name in parents:
        child_names = {s.name for s in index.subs_of(parent.id)}
        parents.remove(parent.name)
        subs = [s for s in subs if s not in child_names]
    else:
        parents.append(parent.name)
    return _replace(state, selected_parent_names=tuple(parents), selected_sub_names=tuple(subs), page=0)


def toggle_sub(state: FilterState, sub: Category, index: CategoryIndex) -> FilterState:
    """Select or deselect a sub-category. Its parent always ends up selected."""
    subs = list(state.selected_sub_names)
    if sub.name in subs:
        subs.remove(sub.name)
    else:
        subs.append(sub.name)
    parents = list(state.selected_parent_names)
    parent_name = index.parent_name_for_sub(sub.name)
    if parent_name and parent_name not in parents:
        parents.append(parent_name)
    return _replace(state, selected_parent_names=tuple(parents), selected_sub_names=tuple(subs), page=0)


def clear_all(state: FilterState) -> FilterState:
    return FilterState()


def _fmt_price(value: float | None, default: str) -> str:
    if value is None:
        return default
    return f"{value:g}"


def active_filter_label(state: FilterState) -> str:
    parts: list[str] = []
    if state.selected_parent_names:
        parts.append("Categories: " + ", ".join(state.selected_parent_names))
    if state.selected_sub_names:
        parts.append("Subcategories: " + ", ".join(state.selected_sub_names))
    if state.query.strip():
        parts.append(f'Search: "{state.query.strip()}"')
    if state.min_price is not None or state.max_price is not None:
        parts.append(f"Price: {_fmt_price(state.min_price, '0')} - {_fmt_price(state.max_price, 'Any')}")
    return " | ".join(parts) if parts else "All Products"
