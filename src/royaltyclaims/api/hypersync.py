"""Authenticated Hypersync proxy — keeps the API key server-side."""

from fastapi import APIRouter, Depends, HTTPException, status

from royaltyclaims.api.deps import get_hypersync_client
from royaltyclaims.api.schemas.claims import HypersyncProxyRequest
from royaltyclaims.exceptions import FetchError
from royaltyclaims.infra.hypersync.client import HypersyncClient

router = APIRouter(prefix="/api/hypersync", tags=["hypersync"])


@router.post("")
async def proxy_query(
    body: HypersyncProxyRequest,
    client: HypersyncClient = Depends(get_hypersync_client),
) -> dict:
    if body.client.rstrip("/") != client.url.rstrip("/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported Hypersync client")
    try:
        return await client.query(body.model_dump(exclude={"client"}, exclude_none=True))
    except FetchError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
