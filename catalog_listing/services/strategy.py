"""Strategy selection: which backend query shape can answer a FilterState."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Literal, Optional, Union

from ..domain.models import FilterState, SortKey, StrategyKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchPlan:
    query: str
    page: int
    page_size: int
    sort_key: SortKey
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    main_category: Optional[str] = None
    sub_category: Optional[str] = None
    # The search backend takes one category of each kind; the rest are dropped
    ignored_parent_names: tuple[str, ...] = ()
    ignored_sub_names: tuple[str, ...] = ()
    kind: Literal[StrategyKind.SEARCH] = StrategyKind.SEARCH


@dataclass(frozen=True)
class DirectPlan:
    page: int
    page_size: int
    sort_key: SortKey
    query: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    main_category: Optional[str] = None
    sub_category: Optional[str] = None
    kind: Literal[StrategyKind.DIRECT] = StrategyKind.DIRECT


@dataclass(frozen=True)
class AggregatePlan:
    page: int
    page_size: int
    sort_key: SortKey
    parent_names: tuple[str, ...]
    sub_names: tuple[str, ...]
    fetch_page_size: int
    max_fetch_pages: int
    query: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    kind: Literal[StrategyKind.AGGREGATE] = StrategyKind.AGGREGATE


ResolutionPlan = Union[SearchPlan, DirectPlan, AggregatePlan]


def _single(names: tuple[str, ...]) -> Optional[str]:
    return names[0] if len(names) == 1 else None


def select_strategy(
    state: FilterState,
    *,
    use_search_service: bool,
    page_size: int,
    aggregate_page_size: int,
    aggregate_max_pages: int,
) -> ResolutionPlan:
    query = state.query.strip()
    parents = state.selected_parent_names
    subs = state.selected_sub_names

    if use_search_service and query:
        ignored_parents = parents if len(parents) > 1 else ()
        ignored_subs = subs if len(subs) > 1 else ()
        if ignored_parents or ignored_subs:
            logger.info(
                "strategy: search cannot express multi-category filters; ignoring parents=%s subs=%s",
                list(ignored_parents), list(ignored_subs),
            )
        return SearchPlan(
            query=query,
            page=state.page,
            page_size=page_size,
            sort_key=state.sort_key,
            min_price=state.min_price,
            max_price=state.max_price,
            main_category=_single(parents),
            sub_category=_single(subs),
            ignored_parent_names=ignored_parents,
            ignored_sub_names=ignored_subs,
        )

    # Only reached with an empty query when the search service is on
    text = query if (query and not use_search_service) else None

    if len(parents) <= 1 and len(subs) <= 1:
        return DirectPlan(
            page=state.page,
            page_size=page_size,
            sort_key=state.sort_key,
            query=text,
            min_price=state.min_price,
            max_price=state.max_price,
            main_category=_single(parents),
            sub_category=_single(subs),
        )

    return AggregatePlan(
        page=state.page,
        page_size=page_size,
        sort_key=state.sort_key,
        parent_names=parents,
        sub_names=subs,
        fetch_page_size=aggregate_page_size,
        max_fetch_pages=aggregate_max_pages,
        query=text,
        min_price=state.min_price,
        max_price=state.max_price,
    )
