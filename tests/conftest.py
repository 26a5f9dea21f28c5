"""Shared test setup.

- FakeBackend: an httpx.MockTransport handler that plays the category,
  search and catalog services from in-memory data
- api_factory: opens a CatalogApi wired to a FakeBackend
"""

from __future__ import annotations

import asyncio
import math
from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

import httpx
import pytest

from catalog_listing.http.catalog_api import CatalogApi
from catalog_listing.http.client import HttpClient

BACKEND_URL = "http://backend.test"


def product(pid: str, name: str = "Item", price: float = 10.0, categories: tuple[str, ...] = ()) -> dict[str, Any]:
    return {
        "id": pid,
        "slug": f"item-{pid}",
        "name": name,
        "sellingPrice": price,
        "sku": f"SKU-{pid}",
        "categories": list(categories),
    }


CATEGORIES = [
    {"id": "p1", "name": "Electronics", "type": "PARENT"},
    {"id": "s1", "name": "Phones", "type": "SUB", "parentCategoryId": "p1"},
    {"id": "p2", "name": "Books", "type": "PARENT"},
]


class FakeBackend:
    """Serves /categories, /search/products and a paginated /products."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.categories: list[dict[str, Any]] = list(CATEGORIES)
        self.search_payload: dict[str, Any] = {"content": [], "totalPages": 1, "totalElements": 0}
        self.catalog: list[dict[str, Any]] = []
        self.nested_page = False
        # request -> HTTP status to fail with, or None
        self.fail_when: Callable[[httpx.Request], Optional[int]] = lambda request: None
        # request -> event to wait on before answering, or None
        self.hold_when: Callable[[httpx.Request], Optional[asyncio.Event]] = lambda request: None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        gate = self.hold_when(request)
        if gate is not None:
            await gate.wait()
        status = self.fail_when(request)
        if status is not None:
            return httpx.Response(status, json={"error": "boom"})

        path = request.url.path
        if path == "/categories":
            return httpx.Response(200, json=self.categories)
        if path == "/search/products":
            return httpx.Response(200, json=self.search_payload)
        if path == "/products":
            return self._products(request)
        return httpx.Response(404)

    def _products(self, request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("page", "0"))
        size = int(request.url.params.get("size", "20"))
        rows = list(self.catalog)
        if request.url.params.get("sort") == "regularPrice,ASC":
            rows.sort(key=lambda r: r["sellingPrice"])
        total_pages = max(math.ceil(len(rows) / size), 1)
        body: dict[str, Any] = {"content": rows[page * size:(page + 1) * size]}
        counts = {"totalPages": total_pages, "totalElements": len(rows)}
        if self.nested_page:
            body["page"] = {"number": page, "size": size, **counts}
        else:
            body.update(counts)
        return httpx.Response(200, json=body)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


async def until(predicate: Callable[[], bool], attempts: int = 200) -> None:
    """Yield to the event loop until predicate() holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api_factory():
    @asynccontextmanager
    async def _open(fake: FakeBackend):
        http = HttpClient(base_url=BACKEND_URL, transport=httpx.MockTransport(fake))
        async with http.lifespan():
            yield CatalogApi(http)

    return _open
