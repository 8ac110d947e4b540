import asyncio
import time
from collections import defaultdict

import httpx


class RateLimitedClient:
    """Async HTTP client throttled per host.

    IPFS gateways, Hypersync and the subgraph each get their own request
    interval, so a burst against one service never delays the others.
    """

    def __init__(
        self,
        rate_per_second: float = 10.0,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._min_interval = 1.0 / rate_per_second
        self._last_request: dict[str, float] = defaultdict(float)
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)

    async def _wait_for_slot(self, url: str) -> None:
        host = httpx.URL(url).host
        async with self._locks[host]:
            elapsed = time.monotonic() - self._last_request[host]
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request[host] = time.monotonic()

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        await self._wait_for_slot(url)
        return await self._client.request(method, url, **kwargs)

    async def get(self, url: str, params: dict | None = None, headers: dict | None = None) -> httpx.Response:
        return await self.request("GET", url, params=params, headers=headers)

    async def post(
        self, url: str, json: dict | list | None = None, headers: dict | None = None
    ) -> httpx.Response:
        return await self.request("POST", url, json=json, headers=headers)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
