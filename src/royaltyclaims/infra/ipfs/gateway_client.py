"""IPFS gateway client — primary gateway first, then public fallbacks."""

import logging

import httpx

from royaltyclaims.exceptions import FetchError, LedgerFormatError
from royaltyclaims.infra.http.rate_limited_client import RateLimitedClient
from royaltyclaims.infra.http.retry import RetryPolicy

logger = logging.getLogger(__name__)


def content_path(link: str) -> str:
    """Path below `/ipfs/` (or the bare link path) — `<cid>[/sub/path]`."""
    link = link.strip()
    if "/ipfs/" in link:
        return link.split("/ipfs/", 1)[1].strip("/")
    if link.startswith(("http://", "https://")):
        return link.rstrip("/").split("/")[-1]
    return link.strip("/")


class IpfsGatewayClient:
    """Fetch pinned content by link. Relative links resolve against `gateway_url`."""

    def __init__(
        self,
        http_client: RateLimitedClient,
        gateway_url: str,
        fallback_gateways: list[str] | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._http = http_client
        self._gateway_url = gateway_url.rstrip("/")
        self._fallbacks = [g.rstrip("/") for g in (fallback_gateways or []) if g]
        self._retry = retry or RetryPolicy()

    def candidate_urls(self, link: str) -> list[str]:
        path = content_path(link)
        urls: list[str] = []
        if link.startswith(("http://", "https://")):
            urls.append(link)
        for gateway in [self._gateway_url, *self._fallbacks]:
            url = f"{gateway}/{path}"
            if url not in urls:
                urls.append(url)
        return urls

    async def fetch(self, link: str) -> tuple[bytes, str]:
        """Return (body, content_type) from the first gateway that answers."""
        last_error: FetchError | None = None
        for url in self.candidate_urls(link):
            try:
                return await self._retry.call(self._get, url)
            except FetchError as e:
                logger.warning("IPFS gateway failed for %s: %s", url, e)
                last_error = e
        raise last_error or FetchError(f"No gateway available for {link}", url=link)

    async def fetch_text(self, link: str) -> str:
        body, _ = await self.fetch(link)
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise LedgerFormatError(f"Content at {link} is not valid UTF-8: {e}") from e

    async def _get(self, url: str) -> tuple[bytes, str]:
        try:
            resp = await self._http.get(url)
        except httpx.HTTPError as e:
            raise FetchError(f"Request to {url} failed: {e}", url=url) from e
        if resp.status_code >= 400:
            raise FetchError(f"Gateway returned {resp.status_code} for {url}", url=url, status_code=resp.status_code)
        return resp.content, resp.headers.get("content-type", "application/octet-stream")
