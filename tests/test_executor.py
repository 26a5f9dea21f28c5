"""FetchExecutor against a fake backend, one test group per strategy."""

from __future__ import annotations

import math

import pytest

from catalog_listing.domain.errors import BackendError, CycleCancelled
from catalog_listing.domain.models import FilterState, SortKey, StrategyKind
from catalog_listing.services.cancellation import CancellationToken
from catalog_listing.services.executor import FetchExecutor
from catalog_listing.services.listing_service import ListingEngine
from catalog_listing.services.strategy import AggregatePlan

from conftest import product


def _catalog_45():
    """45 products; 12 of them are in Electronics or Books."""
    rows = []
    for i in range(45):
        if i % 4 == 0:
            cat = "Electronics" if i % 8 == 0 else "Books"
        else:
            cat = "Garden"
        rows.append(product(f"id-{i:02d}", name=f"Product {i:02d}", price=float(100 - i), categories=(cat,)))
    return rows


# -------- search --------

@pytest.mark.asyncio
async def test_search_scenario_red_shoes(backend, api_factory):
    backend.search_payload = {
        "content": [product("1", "Red Runner", 49.0, ("Footwear",))],
        "totalPages": 3,
        "totalElements": 25,
        "tookMs": 12,
    }
    state = FilterState(query="red shoes", min_price=20, max_price=100, selected_parent_names=("Footwear",))

    async with api_factory(backend) as api:
        engine = ListingEngine(api, use_search_service=True, page_size=12)
        result = await engine.resolve(state)

    assert result.strategy == StrategyKind.SEARCH
    params = backend.calls("/search/products")[0].url.params
    assert params["q"] == "red shoes"
    assert params["minPrice"] == "20"
    assert params["maxPrice"] == "100"
    assert params["mainCategory"] == "Footwear"
    assert "subCategory" not in params
    assert params["sortBy"] == "newest"
    assert params["page"] == "0"
    assert params["size"] == "12"
    assert backend.calls("/products") == []

    assert result.total_pages == 3
    assert result.status_text == 'Showing 1 of 25 results for "red shoes" (12ms)'


@pytest.mark.asyncio
async def test_search_without_took_ms(backend, api_factory):
    backend.search_payload = {"content": [], "totalPages": 0, "totalElements": 0}
    async with api_factory(backend) as api:
        result = await ListingEngine(api).resolve(FilterState(query="nothing"))
    assert result.items == []
    assert result.total_pages == 1
    assert result.status_text == 'Showing 0 of 0 results for "nothing"'


# -------- direct --------

@pytest.mark.asyncio
async def test_direct_sends_native_filters(backend, api_factory):
    backend.catalog = [product(str(i)) for i in range(30)]
    state = FilterState(
        selected_parent_names=("Electronics",),
        selected_sub_names=("Phones",),
        min_price=19.99,
        sort_key=SortKey.PRICE_DESC,
        page=1,
    )
    async with api_factory(backend) as api:
        result = await ListingEngine(api, page_size=12).resolve(state)

    params = backend.calls("/products")[0].url.params
    assert params["page"] == "1"
    assert params["size"] == "12"
    assert params["sort"] == "regularPrice,DESC"
    assert params["minSellingPrice"] == "19.99"
    assert "maxSellingPrice" not in params
    assert params["mainCategory"] == "Electronics"
    assert params["subCategory"] == "Phones"
    assert "q" not in params

    assert result.strategy == StrategyKind.DIRECT
    assert len(result.items) == 12
    assert result.total_pages == 3
    assert result.status_text == "Showing 12 products"


@pytest.mark.asyncio
async def test_direct_tolerates_nested_page_envelope(backend, api_factory):
    backend.nested_page = True
    backend.catalog = [product(str(i)) for i in range(25)]
    async with api_factory(backend) as api:
        result = await ListingEngine(api, page_size=10).resolve(FilterState())
    assert result.total_pages == 3


@pytest.mark.asyncio
async def test_direct_empty_catalog_has_one_page(backend, api_factory):
    async with api_factory(backend) as api:
        result = await ListingEngine(api).resolve(FilterState())
    assert result.items == []
    assert result.total_pages == 1


# -------- aggregate --------

@pytest.mark.asyncio
async def test_aggregate_scenario_electronics_and_books(backend, api_factory):
    backend.catalog = _catalog_45()
    matching = [r for r in backend.catalog if r["categories"][0] in ("Electronics", "Books")]
    assert len(matching) == 12

    state = FilterState(selected_parent_names=("Electronics", "Books"))
    async with api_factory(backend) as api:
        engine = ListingEngine(api, page_size=5, aggregate_page_size=10, aggregate_max_pages=10)
        result = await engine.resolve(state)

    assert result.strategy == StrategyKind.AGGREGATE
    assert result.total_pages == math.ceil(12 / 5)
    assert len(result.items) == 5
    assert all(p.categories[0] in ("Electronics", "Books") for p in result.items)
    assert result.status_text == "Showing 5 of 12 products"

    calls = backend.calls("/products")
    assert [c.url.params["page"] for c in calls] == ["0", "1", "2", "3", "4"]
    for c in calls:
        assert c.url.params["size"] == "10"
        assert "mainCategory" not in c.url.params
        assert "subCategory" not in c.url.params


@pytest.mark.asyncio
async def test_aggregate_client_sort_and_clamp(backend, api_factory):
    backend.catalog = _catalog_45()
    state = FilterState(
        selected_parent_names=("Electronics", "Books"),
        sort_key=SortKey.PRICE_ASC,
        page=7,
    )
    async with api_factory(backend) as api:
        result = await ListingEngine(api, page_size=5, aggregate_page_size=100).resolve(state)

    assert result.page == 2
    assert result.page_clamped is True
    # last page of the 12 matches, ascending by price
    prices = [p.selling_price for p in result.items]
    assert len(prices) == 2
    assert prices == sorted(prices)
    assert result.status_text == "Showing 2 of 12 products"


@pytest.mark.asyncio
async def test_aggregate_stops_at_page_ceiling(backend, api_factory):
    backend.catalog = [product(str(i), categories=("A",)) for i in range(50)]
    state = FilterState(selected_parent_names=("A", "B"))
    async with api_factory(backend) as api:
        result = await ListingEngine(api, page_size=100, aggregate_page_size=10, aggregate_max_pages=3).resolve(state)

    assert len(backend.calls("/products")) == 3
    assert len(result.items) == 30


@pytest.mark.asyncio
async def test_aggregate_partial_failure_is_a_full_failure(backend, api_factory):
    backend.catalog = [product(str(i), categories=("A",)) for i in range(50)]
    backend.fail_when = lambda request: 500 if request.url.params.get("page") == "2" else None
    async with api_factory(backend) as api:
        with pytest.raises(BackendError):
            await ListingEngine(api, aggregate_page_size=10).resolve(FilterState(selected_sub_names=("A", "B")))


@pytest.mark.asyncio
async def test_aggregate_stops_fetching_once_cancelled(backend, api_factory):
    backend.catalog = [product(str(i), categories=("A",)) for i in range(50)]
    token = CancellationToken()

    def cancel_after_first(request):
        token.cancel()
        return None

    backend.fail_when = cancel_after_first
    plan = AggregatePlan(
        page=0, page_size=12, sort_key=SortKey.NEWEST,
        parent_names=("A", "B"), sub_names=(),
        fetch_page_size=10, max_fetch_pages=10,
    )
    async with api_factory(backend) as api:
        with pytest.raises(CycleCancelled):
            await FetchExecutor(api).execute(plan, token)
    assert len(backend.calls("/products")) == 1


@pytest.mark.asyncio
async def test_resolve_or_fail_turns_backend_error_into_failure_result(backend, api_factory):
    backend.fail_when = lambda request: 502
    async with api_factory(backend) as api:
        result = await ListingEngine(api).resolve_or_fail(FilterState(page=4))
    assert result.items == []
    assert result.total_pages == 1
    assert result.status_text == "Failed to load products."
    assert result.page == 4
    assert result.strategy is None
