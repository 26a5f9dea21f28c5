from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, TypeVar

import httpx

from ..config import settings
from ..domain.errors import BackendError
from ..domain.models import Category, ProductPage
from ..parsers.envelope import parse_catalog_page, parse_categories, parse_search_page
from .client import HttpClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogApi:
    """
    The three backend endpoints the listing consumes. Every failure mode
    (transport, status, JSON, envelope shape) comes out as BackendError.
    """
    def __init__(
        self,
        http: HttpClient,
        categories_path: str | None = None,
        search_path: str | None = None,
        products_path: str | None = None,
    ) -> None:
        self.http = http
        self.categories_path = categories_path or settings.CATEGORIES_PATH
        self.search_path = search_path or settings.SEARCH_PATH
        self.products_path = products_path or settings.PRODUCTS_PATH

    async def _get(self, operation: str, path: str, params: Dict[str, Any] | None, parse: Callable[[Any], T]) -> T:
        try:
            payload = await self.http.get_json(path, params=params)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.info("api: %s status=%s", operation, status)
            raise BackendError(operation, f"HTTP {status}", status_code=status) from e
        except httpx.HTTPError as e:
            logger.info("api: %s transport error=%r", operation, e)
            raise BackendError(operation, type(e).__name__) from e
        except ValueError as e:  # body is not JSON
            raise BackendError(operation, "invalid JSON body") from e
        try:
            return parse(payload)
        except ValueError as e:
            raise BackendError(operation, f"unexpected payload: {e}") from e

    async def list_categories(self) -> List[Category]:
        return await self._get("categories", self.categories_path, None, parse_categories)

    async def search_products(self, params: Dict[str, Any]) -> ProductPage:
        return await self._get("search", self.search_path, params, parse_search_page)

    async def query_products(self, params: Dict[str, Any]) -> ProductPage:
        return await self._get("products", self.products_path, params, parse_catalog_page)
