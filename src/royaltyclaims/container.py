from dependency_injector import containers, providers
from eth_account import Account

from royaltyclaims.config import Settings
from royaltyclaims.domain.energy_fields import get_energy_fields
from royaltyclaims.infra.chain.orderbook import Web3OrderbookGateway
from royaltyclaims.infra.http.rate_limited_client import RateLimitedClient
from royaltyclaims.infra.http.retry import RetryPolicy
from royaltyclaims.infra.hypersync.client import HypersyncClient
from royaltyclaims.infra.ipfs.gateway_client import IpfsGatewayClient
from royaltyclaims.infra.subgraph.orderbook import OrderbookSubgraphClient
from royaltyclaims.ledger.parser import LedgerParser
from royaltyclaims.ledger.validator import LedgerValidator
from royaltyclaims.settlement.assembler import TransactionAssembler
from royaltyclaims.settlement.cache import TTLCache
from royaltyclaims.settlement.reconciler import ClaimReconciler
from royaltyclaims.settlement.service import ClaimsService
from royaltyclaims.settlement.signing import LocalAccountSigner


def build_signer(private_key: str) -> LocalAccountSigner | None:
    return LocalAccountSigner.from_key(private_key) if private_key else None


def build_sender(private_key: str):
    return Account.from_key(private_key) if private_key else None


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["royaltyclaims.api.deps"])

    settings = providers.Singleton(Settings)

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.http_rate_per_second,
        timeout=settings.provided.http_timeout_seconds,
    )

    retry_policy = providers.Singleton(RetryPolicy.from_settings, settings)

    ipfs_client = providers.Singleton(
        IpfsGatewayClient,
        http_client=http_client,
        gateway_url=settings.provided.ipfs_gateway_url,
        fallback_gateways=settings.provided.ipfs_fallback_gateways,
        retry=retry_policy,
    )

    hypersync_client = providers.Singleton(
        HypersyncClient,
        http_client=http_client,
        url=settings.provided.hypersync_url,
        api_key=settings.provided.hypersync_api_key,
        retry=retry_policy,
    )

    subgraph_client = providers.Singleton(
        OrderbookSubgraphClient,
        http_client=http_client,
        urls=settings.provided.orderbook_subgraph_urls,
        retry=retry_policy,
    )

    validator = providers.Singleton(LedgerValidator, ipfs=ipfs_client, parser=providers.Factory(LedgerParser))

    reconciler = providers.Singleton(
        ClaimReconciler,
        hypersync=hypersync_client,
        orderbook_address=settings.provided.orderbook_contract_address,
        event_topic=settings.provided.claim_context_event_topic,
    )

    signer = providers.Singleton(build_signer, settings.provided.claims_signer_private_key)

    wallet_cache = providers.Singleton(
        TTLCache,
        ttl_seconds=settings.provided.claims_cache_ttl_seconds,
        max_entries=settings.provided.claims_cache_max_entries,
    )
    ledger_cache = providers.Singleton(TTLCache, max_entries=settings.provided.ledger_cache_max_entries)
    ipfs_proxy_cache = providers.Singleton(
        TTLCache,
        ttl_seconds=settings.provided.ipfs_proxy_cache_ttl_seconds,
        max_entries=settings.provided.ledger_cache_max_entries,
    )

    energy_fields = providers.Singleton(get_energy_fields, settings.provided.metaboard_admin)

    claims_service = providers.Singleton(
        ClaimsService,
        validator=validator,
        subgraph=subgraph_client,
        reconciler=reconciler,
        energy_fields=energy_fields,
        signer=signer,
        wallet_cache=wallet_cache,
        ledger_cache=ledger_cache,
        timeout_seconds=settings.provided.wallet_load_timeout_seconds,
    )

    orderbook_gateway = providers.Singleton(
        Web3OrderbookGateway.from_rpc,
        settings.provided.rpc_url,
        providers.Singleton(build_sender, settings.provided.transaction_sender_private_key),
    )

    assembler = providers.Singleton(TransactionAssembler, gateway=orderbook_gateway)
