from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "Catalog Listing API"
    API_BASE: str = "http://localhost:8080"

    # Backend endpoints (relative to API_BASE)
    CATEGORIES_PATH: str = "/categories"
    SEARCH_PATH: str = "/search/products"
    PRODUCTS_PATH: str = "/products"

    # When False, text queries go to the catalog service as ?q=
    USE_SEARCH_SERVICE: bool = True

    # Paging
    PAGE_SIZE: int = 12
    AGGREGATE_PAGE_SIZE: int = 100
    AGGREGATE_MAX_PAGES: int = 10

    # HTTP
    USER_AGENT: str = "CatalogListing/1.0"
    HTTP2: bool = True
    TIMEOUT_CONNECT: float = 5.0
    TIMEOUT_READ: float = 15.0
    TIMEOUT_WRITE: float = 10.0
    TIMEOUT_POOL: float = 10.0
    MAX_KEEPALIVE: int = 20
    MAX_CONNECTIONS: int = 50
    FOLLOW_REDIRECTS: bool = True

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="LISTING_")

    @field_validator("PAGE_SIZE", "AGGREGATE_PAGE_SIZE", "AGGREGATE_MAX_PAGES")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("page sizes and page limits must be positive")
        return v

settings = Settings()
