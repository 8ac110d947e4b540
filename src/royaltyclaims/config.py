from pydantic_settings import BaseSettings

PRODUCTION_METABOARD_ADMIN = "0x4E5Bd3Cf829010280F76754B49921d4e1448B8Cf"
DEVELOPMENT_METABOARD_ADMIN = "0xD2843D9E7738d46D90CB6Dff8D6C83db58B9c165"


class Settings(BaseSettings):
    # Chain
    chain_id: int = 8453  # Base
    rpc_url: str = "https://mainnet.base.org"
    orderbook_contract_address: str = "0xd2938E7c9fe3597F78832CE780Feb61945c377d7"
    claim_context_event_topic: str = "0x17a5c0f3785132a57703932032f6863e7920434150aa1dc940e567b440fdce1f"
    metaboard_admin: str = DEVELOPMENT_METABOARD_ADMIN

    # Indexers
    hypersync_url: str = "https://8453.hypersync.xyz/query"
    hypersync_api_key: str = ""
    orderbook_subgraph_url: str = (
        "https://api.goldsky.com/api/public/project_clv14x04y9kzi01saerx7bxpg/subgraphs/ob4-base/2024-12-13-9c39/gn"
    )
    orderbook_subgraph_fallback_url: str = ""

    # IPFS
    ipfs_gateway_url: str = "https://gateway.pinata.cloud/ipfs"
    ipfs_fallback_gateways: list[str] = ["https://ipfs.io/ipfs", "https://eu.orbitor.dev/ipfs"]
    ipfs_proxy_cache_ttl_seconds: int = 1800

    # Caching / deadlines
    claims_cache_ttl_seconds: int = 300
    claims_cache_max_entries: int = 10_000
    ledger_cache_max_entries: int = 256
    wallet_load_timeout_seconds: float = 60.0

    # HTTP + retry
    http_rate_per_second: float = 10.0
    http_timeout_seconds: float = 15.0
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.25
    retry_max_delay_seconds: float = 4.0
    retry_jitter_seconds: float = 0.25

    # Signing key used for claim contexts; empty = holdings are returned unsigned
    claims_signer_private_key: str = ""
    # Account that submits takeOrders2; empty = submission disabled
    transaction_sender_private_key: str = ""

    debug: bool = False

    @property
    def orderbook_subgraph_urls(self) -> list[str]:
        return [u for u in (self.orderbook_subgraph_url, self.orderbook_subgraph_fallback_url) if u]

    @property
    def is_production(self) -> bool:
        return self.metaboard_admin.lower() == PRODUCTION_METABOARD_ADMIN.lower()

    class Config:
        env_file = ".env"


settings = Settings()
