from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Iterable, Protocol

from .categories import CategoryIndex
from .errors import BackendError
from .models import Category

if TYPE_CHECKING:
    from ..http.catalog_api import CatalogApi

logger = logging.getLogger(__name__)

# -------- Categories --------
class CategorySource(Protocol):
    async def list_all(self) -> list[Category]: ...


class StaticCategorySource:
    """
    Categories the caller already has (e.g. a page that loaded them itself).
    Never touches the network.
    """
    def __init__(self, categories: Iterable[Category]) -> None:
        self._items: list[Category] = list(categories)

    async def list_all(self) -> list[Category]:
        return list(self._items)


class ApiCategorySource:
    """Fetches the flat category list once; later calls reuse the snapshot."""
    def __init__(self, api: "CatalogApi") -> None:
        self.api = api
        self._snapshot: list[Category] | None = None

    async def list_all(self) -> list[Category]:
        if self._snapshot is None:
            self._snapshot = await self.api.list_categories()
        return list(self._snapshot)

    def invalidate(self) -> None:
        self._snapshot = None


async def load_index(source: CategorySource) -> CategoryIndex:
    # A failed category fetch degrades to an empty tree; listing still works.
    try:
        categories = await source.list_all()
    except BackendError as e:
        logger.warning("categories: load failed err=%s", e)
        categories = []
    return CategoryIndex.build(categories)
