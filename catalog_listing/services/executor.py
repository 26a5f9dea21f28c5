from __future__ import annotations
import logging
from typing import Any, Dict

from ..domain.models import PageResult, ProductSummary, StrategyKind
from ..domain.sorting import catalog_sort, search_sort_token, sort_products
from ..http.catalog_api import CatalogApi
from ..utils.text import price_param
from .aggregator import matches_category_selection, merge_into, paginate
from .cancellation import CancellationToken
from .strategy import AggregatePlan, DirectPlan, ResolutionPlan, SearchPlan

logger = logging.getLogger(__name__)


class FetchExecutor:
    """
    Runs one ResolutionPlan against the backends.

    Raises BackendError on any backend failure (including a failure half-way
    through an aggregate run) and CycleCancelled as soon as the token is
    found cancelled after an await.
    """
    def __init__(self, api: CatalogApi) -> None:
        self.api = api

    async def execute(self, plan: ResolutionPlan, token: CancellationToken) -> PageResult:
        if isinstance(plan, SearchPlan):
            return await self.run_search(plan, token)
        if isinstance(plan, DirectPlan):
            return await self.run_direct(plan, token)
        if isinstance(plan, AggregatePlan):
            return await self.run_aggregate(plan, token)
        raise TypeError(f"unknown plan: {plan!r}")

    # -------- search --------
    @staticmethod
    def search_params(plan: SearchPlan) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "q": plan.query,
            "page": plan.page,
            "size": plan.page_size,
            "sortBy": search_sort_token(plan.sort_key),
        }
        if plan.min_price is not None:
            params["minPrice"] = price_param(plan.min_price)
        if plan.max_price is not None:
            params["maxPrice"] = price_param(plan.max_price)
        if plan.main_category:
            params["mainCategory"] = plan.main_category
        if plan.sub_category:
            params["subCategory"] = plan.sub_category
        return params

    async def run_search(self, plan: SearchPlan, token: CancellationToken) -> PageResult:
        data = await self.api.search_products(self.search_params(plan))
        token.raise_if_cancelled()

        status = f'Showing {len(data.items)} of {data.total_elements} results for "{plan.query}"'
        if data.took_ms:
            status += f" ({data.took_ms}ms)"
        return PageResult(
            items=data.items,
            total_pages=data.total_pages,
            status_text=status,
            page=plan.page,
            strategy=StrategyKind.SEARCH,
        )

    # -------- direct --------
    @staticmethod
    def catalog_params(plan: DirectPlan | AggregatePlan, page: int, size: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "page": page,
            "size": size,
            "sort": catalog_sort(plan.sort_key).as_param(),
        }
        if plan.query:
            params["q"] = plan.query
        if plan.min_price is not None:
            params["minSellingPrice"] = price_param(plan.min_price)
        if plan.max_price is not None:
            params["maxSellingPrice"] = price_param(plan.max_price)
        return params

    async def run_direct(self, plan: DirectPlan, token: CancellationToken) -> PageResult:
        params = self.catalog_params(plan, plan.page, plan.page_size)
        if plan.main_category:
            params["mainCategory"] = plan.main_category
        if plan.sub_category:
            params["subCategory"] = plan.sub_category

        data = await self.api.query_products(params)
        token.raise_if_cancelled()

        return PageResult(
            items=data.items,
            total_pages=data.total_pages,
            status_text=f"Showing {len(data.items)} products",
            page=plan.page,
            strategy=StrategyKind.DIRECT,
        )

    # -------- aggregate --------
    async def run_aggregate(self, plan: AggregatePlan, token: CancellationToken) -> PageResult:
        merged: Dict[str, ProductSummary] = {}
        server_pages = 1
        current = 0

        # Sequential on purpose: bounded load, and a superseded cycle stops early
        while current < server_pages and current < plan.max_fetch_pages:
            token.raise_if_cancelled()
            data = await self.api.query_products(self.catalog_params(plan, current, plan.fetch_page_size))
            token.raise_if_cancelled()

            merge_into(merged, data.items)
            server_pages = max(data.total_pages, 1)
            logger.debug(
                "aggregate: page=%s/%s got=%s merged=%s cycle=%s",
                current + 1, server_pages, len(data.items), len(merged), token.cycle_id,
            )
            current += 1

        if current < server_pages:
            logger.info(
                "aggregate: stopped at page ceiling fetched=%s server_pages=%s",
                current, server_pages,
            )

        matching = [
            p for p in merged.values()
            if matches_category_selection(p, plan.parent_names, plan.sub_names)
        ]
        window = paginate(sort_products(matching, plan.sort_key), plan.page, plan.page_size)
        if window.clamped:
            logger.info("aggregate: page %s out of range, clamped to %s", plan.page, window.page)

        return PageResult(
            items=window.items,
            total_pages=window.total_pages,
            status_text=f"Showing {len(window.items)} of {window.total_items} products",
            page=window.page,
            page_clamped=window.clamped,
            strategy=StrategyKind.AGGREGATE,
        )
