from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Any, Mapping
import httpx
from ..config import settings

class HttpClient:
    """
    Single responsibility: own one async HTTP client with centralised configuration.
    """
    def __init__(self, base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = (base_url or settings.API_BASE).rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @asynccontextmanager
    async def lifespan(self):
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"User-Agent": settings.USER_AGENT, "Accept": "application/json"},
            http2=settings.HTTP2,
            timeout=httpx.Timeout(
                connect=settings.TIMEOUT_CONNECT,
                read=settings.TIMEOUT_READ,
                write=settings.TIMEOUT_WRITE,
                pool=settings.TIMEOUT_POOL,
            ),
            limits=httpx.Limits(
                max_keepalive_connections=settings.MAX_KEEPALIVE,
                max_connections=settings.MAX_CONNECTIONS,
            ),
            follow_redirects=settings.FOLLOW_REDIRECTS,
            transport=self._transport,
        )
        try:
            yield self
        finally:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("HttpClient not initialized. Use within lifespan().")
        return self._client

    async def get_json(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        resp = await self.client.get(path, params=params)
        resp.raise_for_status()
        return resp.json()
