"""IPFS gateway proxy with an in-memory response cache."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from royaltyclaims.api.deps import get_ipfs_client, get_ipfs_proxy_cache
from royaltyclaims.exceptions import FetchError
from royaltyclaims.infra.ipfs.gateway_client import IpfsGatewayClient
from royaltyclaims.settlement.cache import TTLCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ipfs", tags=["ipfs"])

CACHE_HEADERS = {
    "Cache-Control": "public, max-age=31536000, immutable",
    "Access-Control-Allow-Origin": "*",
}


@router.get("/{path:path}")
async def get_content(
    path: str,
    client: IpfsGatewayClient = Depends(get_ipfs_client),
    cache: TTLCache[tuple[bytes, str]] = Depends(get_ipfs_proxy_cache),
) -> Response:
    if not path.strip("/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Path is required")

    cached = cache.get(path)
    if cached is not None:
        body, content_type = cached
        return Response(content=body, media_type=content_type, headers={**CACHE_HEADERS, "X-Cache": "HIT"})

    try:
        body, content_type = await client.fetch(path)
    except FetchError as e:
        logger.error("IPFS proxy failed for %s: %s", path, e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to fetch from IPFS gateways")

    cache.set(path, (body, content_type))
    return Response(content=body, media_type=content_type, headers={**CACHE_HEADERS, "X-Cache": "MISS"})
