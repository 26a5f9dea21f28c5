# catalog_listing/parsers/envelope.py
from __future__ import annotations
from typing import Any, Dict, List, Optional
from catalog_listing.domain.models import Category, ProductPage, ProductSummary

def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

def _page_counts(payload: Dict[str, Any]) -> tuple[Optional[int], Optional[int]]:
    # Spring-style envelopes put counts either at the top level or under "page"
    total_pages = _as_int(payload.get("totalPages"))
    total_elements = _as_int(payload.get("totalElements"))
    nested = payload.get("page")
    if isinstance(nested, dict):
        if total_pages is None:
            total_pages = _as_int(nested.get("totalPages"))
        if total_elements is None:
            total_elements = _as_int(nested.get("totalElements"))
    return total_pages, total_elements

def _content(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    content = payload.get("content") or []
    if not isinstance(content, list):
        raise ValueError("envelope 'content' is not a list")
    return content

def _require_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload

def parse_catalog_page(payload: Any) -> ProductPage:
    """
    Catalog-service envelope: {content, totalPages?, totalElements?, page?: {...}}.
    Missing counts -> 1 page / len(content) elements.
    Raises ValueError (incl. pydantic.ValidationError) on malformed payloads.
    """
    data = _require_object(payload)
    items = [ProductSummary.model_validate(row) for row in _content(data)]
    total_pages, total_elements = _page_counts(data)
    return ProductPage(
        items=items,
        total_pages=max(total_pages or 1, 1),
        total_elements=total_elements if total_elements is not None else len(items),
    )

def parse_search_page(payload: Any) -> ProductPage:
    """Search-service envelope: {content, totalPages, totalElements, tookMs?}."""
    data = _require_object(payload)
    items = [ProductSummary.model_validate(hit) for hit in _content(data)]
    total_pages, total_elements = _page_counts(data)
    return ProductPage(
        items=items,
        total_pages=max(total_pages or 1, 1),
        total_elements=total_elements if total_elements is not None else len(items),
        took_ms=_as_int(data.get("tookMs")),
    )

def parse_categories(payload: Any) -> List[Category]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValueError("category listing is not a JSON array")
    return [Category.model_validate(row) for row in payload]
