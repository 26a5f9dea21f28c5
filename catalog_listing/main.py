from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from .config import settings
from .http.client import HttpClient
from .http.catalog_api import CatalogApi
from .services.listing_service import ListingEngine
from .api.routes import init_routes, router
from .domain.repositories import ApiCategorySource


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_app(http_client: HttpClient | None = None) -> FastAPI:
    http_client = http_client or HttpClient()
    api = CatalogApi(http_client)
    engine = ListingEngine(api)

    init_routes(engine, ApiCategorySource(api))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with http_client.lifespan():
            yield

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.include_router(router, prefix="")
    return app

configure_logging()
app = build_app()
