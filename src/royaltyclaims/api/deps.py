from dependency_injector.wiring import Provide, inject
from fastapi import Depends, HTTPException

from royaltyclaims.config import Settings
from royaltyclaims.container import Container
from royaltyclaims.infra.hypersync.client import HypersyncClient
from royaltyclaims.infra.ipfs.gateway_client import IpfsGatewayClient
from royaltyclaims.ledger.validator import is_address
from royaltyclaims.settlement.assembler import TransactionAssembler
from royaltyclaims.settlement.cache import TTLCache
from royaltyclaims.settlement.service import ClaimsService


@inject
def get_settings(settings: Settings = Depends(Provide[Container.settings])) -> Settings:
    return settings


@inject
def get_claims_service(service: ClaimsService = Depends(Provide[Container.claims_service])) -> ClaimsService:
    return service


@inject
def get_assembler(assembler: TransactionAssembler = Depends(Provide[Container.assembler])) -> TransactionAssembler:
    return assembler


@inject
def get_hypersync_client(client: HypersyncClient = Depends(Provide[Container.hypersync_client])) -> HypersyncClient:
    return client


@inject
def get_ipfs_client(client: IpfsGatewayClient = Depends(Provide[Container.ipfs_client])) -> IpfsGatewayClient:
    return client


@inject
def get_ipfs_proxy_cache(cache: TTLCache = Depends(Provide[Container.ipfs_proxy_cache])) -> TTLCache:
    return cache


def normalize_wallet(wallet: str) -> str:
    """Path-parameter wallet address, validated and lowercased."""
    candidate = wallet.strip()
    if not is_address(candidate):
        raise HTTPException(status_code=422, detail=f"Invalid wallet address: {wallet}")
    return candidate.lower()
