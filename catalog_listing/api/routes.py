from __future__ import annotations
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Any, Dict, List, Optional
from ..domain.errors import InvalidFilterError
from ..domain.filters import commit_price_range, commit_query
from ..domain.models import FilterState, SortKey
from ..domain.repositories import CategorySource, load_index
from ..services.listing_service import ListingEngine

router = APIRouter()
engine: ListingEngine | None = None
categories: CategorySource | None = None

def init_routes(listing_engine: ListingEngine, category_source: CategorySource) -> APIRouter:
    global engine, categories
    engine = listing_engine
    categories = category_source
    return router

def get_engine() -> ListingEngine:
    if engine is None:
        raise HTTPException(500, "Engine not initialized")
    return engine

def get_categories() -> CategorySource:
    if categories is None:
        raise HTTPException(500, "Category source not initialized")
    return categories

@router.get("/health")
async def health():
    return {"ok": True}

@router.get("/categories")
async def list_categories(source: CategorySource = Depends(get_categories)):
    index = await load_index(source)
    return index.tree()

@router.get("/products")
async def list_products(
    q: str = Query(default=""),
    parent: List[str] = Query(default=[], description="Selected parent category names (repeatable)"),
    sub: List[str] = Query(default=[], description="Selected sub-category names (repeatable)"),
    min_price: Optional[str] = Query(default=None, alias="minPrice"),
    max_price: Optional[str] = Query(default=None, alias="maxPrice"),
    sort: SortKey = Query(default=SortKey.NEWEST),
    page: int = Query(default=0, ge=0),
    engine: ListingEngine = Depends(get_engine),
) -> Dict[str, Any]:
    state = FilterState(
        selected_parent_names=tuple(parent),
        selected_sub_names=tuple(sub),
        sort_key=sort,
    )
    state = commit_query(state, q)
    try:
        state = commit_price_range(state, min_price or "", max_price or "")
    except InvalidFilterError as e:
        raise HTTPException(422, e.message)
    # commits reset the page; the requested one goes in last
    state = FilterState(**{**state.model_dump(), "page": page})

    result = await engine.resolve_or_fail(state)
    return result.model_dump(by_alias=True, mode="json")
