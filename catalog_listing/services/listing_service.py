from __future__ import annotations
import asyncio
import logging
from typing import Callable, Iterable, List, Optional, Union

from ..config import settings
from ..domain import filters
from ..domain.categories import CategoryIndex
from ..domain.errors import BackendError, CycleCancelled, InvalidFilterError
from ..domain.filters import FilterDraft
from ..domain.models import Category, FilterState, PageResult, SortKey
from ..domain.repositories import ApiCategorySource, CategorySource, load_index
from ..http.catalog_api import CatalogApi
from .cancellation import CancellationToken
from .executor import FetchExecutor
from .strategy import ResolutionPlan, select_strategy

logger = logging.getLogger(__name__)

Listener = Callable[[PageResult], None]


class ListingEngine:
    """
    Stateless: FilterState in, PageResult out. Holds only configuration and
    the backend client, so one engine can serve many sessions/requests.
    """
    def __init__(
        self,
        api: CatalogApi,
        use_search_service: Optional[bool] = None,
        page_size: Optional[int] = None,
        aggregate_page_size: Optional[int] = None,
        aggregate_max_pages: Optional[int] = None,
    ) -> None:
        self.api = api
        self.executor = FetchExecutor(api)
        self.use_search_service = settings.USE_SEARCH_SERVICE if use_search_service is None else use_search_service
        self.page_size = page_size or settings.PAGE_SIZE
        self.aggregate_page_size = aggregate_page_size or settings.AGGREGATE_PAGE_SIZE
        self.aggregate_max_pages = aggregate_max_pages or settings.AGGREGATE_MAX_PAGES

    def plan(self, state: FilterState) -> ResolutionPlan:
        return select_strategy(
            state,
            use_search_service=self.use_search_service,
            page_size=self.page_size,
            aggregate_page_size=self.aggregate_page_size,
            aggregate_max_pages=self.aggregate_max_pages,
        )

    async def resolve(self, state: FilterState, token: Optional[CancellationToken] = None) -> PageResult:
        """Raises BackendError / CycleCancelled; callers decide what to surface."""
        token = token or CancellationToken()
        plan = self.plan(state)
        logger.info("listing: cycle=%s start strategy=%s page=%s", token.cycle_id, plan.kind.value, state.page)
        result = await self.executor.execute(plan, token)
        token.raise_if_cancelled()
        logger.info(
            "listing: cycle=%s done items=%s total_pages=%s",
            token.cycle_id, len(result.items), result.total_pages,
        )
        return result

    async def resolve_or_fail(self, state: FilterState) -> PageResult:
        try:
            return await self.resolve(state)
        except BackendError as e:
            logger.warning("listing: resolution failed err=%s", e)
            return PageResult.failure(page=state.page)


class ListingSession:
    """
    One listing view: a draft + committed FilterState, the category index,
    and the latest PageResult.

    Every commit schedules a resolution cycle and supersedes the one in
    flight; only the most recently started cycle may write `result`.
    Observers registered with subscribe() receive each applied result.
    """
    def __init__(
        self,
        engine: ListingEngine,
        categories: Union[CategoryIndex, CategorySource, None] = None,
        state: Optional[FilterState] = None,
    ) -> None:
        self.engine = engine
        self.state = state or FilterState()
        self.draft = FilterDraft(query_input=self.state.query)
        self.result = PageResult.loading()
        self.loading = False
        self.validation_message: Optional[str] = None

        self._index: Optional[CategoryIndex] = None
        self._category_source: Optional[CategorySource] = None
        if isinstance(categories, CategoryIndex):
            self._index = categories
        else:
            self._category_source = categories or ApiCategorySource(engine.api)

        self._token: Optional[CancellationToken] = None
        self._tasks: set[asyncio.Task] = set()
        self._listeners: List[Listener] = []

    # -------- categories --------
    @property
    def index(self) -> CategoryIndex:
        return self._index or CategoryIndex()

    async def load_categories(self) -> CategoryIndex:
        if self._index is None:
            self._index = await load_index(self._category_source)
        return self._index

    def set_categories(self, categories: Union[CategoryIndex, Iterable[Category]]) -> CategoryIndex:
        """Swap in a new category list or index; nothing is fetched."""
        if not isinstance(categories, CategoryIndex):
            categories = CategoryIndex.build(categories)
        self._index = categories
        logger.debug("listing: categories replaced parents=%s", len(categories.parents))
        return categories

    async def reload_categories(self) -> CategoryIndex:
        """Drop the cached index and rebuild it from the category source."""
        if self._category_source is None:
            return self.index
        invalidate = getattr(self._category_source, "invalidate", None)
        if invalidate is not None:
            invalidate()
        self._index = None
        return await self.load_categories()

    # -------- observers --------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _apply(self, result: PageResult) -> None:
        if result.page_clamped and result.page != self.state.page:
            # Adopt the page the items really belong to; no new cycle for this
            self.state = filters.commit_page(self.state, result.page)
        self.result = result
        for listener in list(self._listeners):
            listener(result)

    # -------- cycles --------
    def _begin_cycle(self) -> CancellationToken:
        if self._token is not None:
            self._token.cancel()
        self._token = CancellationToken()
        self.loading = True
        return self._token

    async def _run_cycle(self, token: CancellationToken, state: FilterState) -> Optional[PageResult]:
        try:
            result = await self.engine.resolve(state, token)
        except CycleCancelled:
            logger.debug("listing: cycle=%s superseded", token.cycle_id)
            return None
        except BackendError as e:
            if token.cancelled:
                logger.debug("listing: cycle=%s failed after being superseded err=%s", token.cycle_id, e)
                return None
            logger.warning("listing: cycle=%s failed err=%s", token.cycle_id, e)
            result = PageResult.failure(page=state.page)
        finally:
            if not token.cancelled:
                self.loading = False

        self._apply(result)
        return result

    def schedule(self) -> "asyncio.Task[Optional[PageResult]]":
        """Start a cycle for the current state without waiting for it."""
        token = self._begin_cycle()
        task = asyncio.create_task(self._run_cycle(token, self.state))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def refresh(self) -> Optional[PageResult]:
        """Start a cycle and wait for it. None means it was superseded."""
        token = self._begin_cycle()
        return await self._run_cycle(token, self.state)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        # View teardown: whatever is in flight must not write back
        if self._token is not None:
            self._token.cancel()
        self.loading = False

    # -------- draft inputs (never start a cycle) --------
    def set_query_input(self, text: str) -> None:
        self.draft.query_input = text

    def set_price_inputs(self, min_input: str, max_input: str) -> None:
        self.draft.min_price_input = min_input
        self.draft.max_price_input = max_input

    # -------- commits --------
    def _commit(self, new_state: FilterState) -> "asyncio.Task[Optional[PageResult]]":
        self.validation_message = None
        self.state = new_state
        return self.schedule()

    def submit_search(self):
        return self._commit(filters.commit_query(self.state, self.draft.query_input))

    def clear_search(self):
        self.draft.query_input = ""
        return self._commit(filters.clear_query(self.state))

    def apply_price_filter(self):
        try:
            new_state = filters.commit_price_range(
                self.state, self.draft.min_price_input, self.draft.max_price_input
            )
        except InvalidFilterError as e:
            self.validation_message = e.message
            logger.info("listing: price filter rejected field=%s", e.field)
            raise
        return self._commit(new_state)

    def clear_price_filter(self):
        self.draft.min_price_input = ""
        self.draft.max_price_input = ""
        return self._commit(filters.clear_price_range(self.state))

    async def toggle_parent(self, parent: Category) -> Optional[PageResult]:
        index = await self.load_categories()
        return await self._commit(filters.toggle_parent(self.state, parent, index))

    async def toggle_sub(self, sub: Category) -> Optional[PageResult]:
        index = await self.load_categories()
        return await self._commit(filters.toggle_sub(self.state, sub, index))

    def set_sort(self, key: SortKey):
        return self._commit(filters.commit_sort(self.state, key))

    def set_page(self, page: int):
        return self._commit(filters.commit_page(self.state, page))

    def clear_all_filters(self):
        self.draft = FilterDraft()
        return self._commit(filters.clear_all(self.state))

    @property
    def active_filter_label(self) -> str:
        return filters.active_filter_label(self.state)
