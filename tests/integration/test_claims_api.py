from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from factories import ORDERBOOK, OTHER_WALLET, TOKEN, WALLET, order_bytes
from royaltyclaims.api.deps import (
    get_assembler,
    get_claims_service,
    get_hypersync_client,
    get_ipfs_client,
    get_ipfs_proxy_cache,
    get_settings,
)
from royaltyclaims.api.main import app
from royaltyclaims.config import Settings
from royaltyclaims.domain.models.claims import (
    AggregatedClaimsResult,
    ClaimTotals,
    Holding,
    HoldingsGroup,
    Proof,
)
from royaltyclaims.exceptions import ClaimSubmissionError, FetchError, NoHoldingsError
from royaltyclaims.settlement.assembler import TransactionAssembler
from royaltyclaims.settlement.cache import TTLCache

HYPERSYNC_URL = "https://8453.hypersync.xyz/query"


def _result() -> AggregatedClaimsResult:
    holding = Holding(
        id=1,
        name="Wressle-1 4.5% Royalty Stream",
        token_address=TOKEN,
        amount_raw=678645000000000000000,
        order_hash="0x" + "01" * 32,
        order_bytes=order_bytes(),
        orderbook_address=ORDERBOOK,
        proof=Proof(leaf_value="0x" + "00" * 32, leaf_index=0, path=[]),
    )
    return AggregatedClaimsResult(
        wallet=WALLET,
        holdings=[HoldingsGroup(field_name=holding.name, token_address=TOKEN, holdings=[holding])],
        totals=ClaimTotals(unclaimed_raw=678645000000000000000),
    )


@pytest.fixture()
def service():
    svc = MagicMock()
    svc.load_claims_for_wallet = AsyncMock(side_effect=lambda wallet: _result())
    svc.refresh = AsyncMock(side_effect=lambda wallet: _result())
    return svc


@pytest.fixture()
def assembler():
    asm = MagicMock()
    asm.claim_all = AsyncMock(return_value="0xfeed")
    return asm


@pytest.fixture()
def hypersync():
    client = MagicMock()
    client.url = HYPERSYNC_URL
    client.query = AsyncMock(return_value={"data": [], "next_block": 101})
    return client


@pytest.fixture()
def ipfs():
    client = MagicMock()
    client.fetch = AsyncMock(return_value=(b"index,address,amount\n", "text/csv"))
    return client


@pytest.fixture()
async def client(service, assembler, hypersync, ipfs):
    cache = TTLCache(ttl_seconds=1800)
    app.dependency_overrides[get_claims_service] = lambda: service
    app.dependency_overrides[get_assembler] = lambda: assembler
    app.dependency_overrides[get_hypersync_client] = lambda: hypersync
    app.dependency_overrides[get_ipfs_client] = lambda: ipfs
    app.dependency_overrides[get_ipfs_proxy_cache] = lambda: cache
    settings = Settings(claims_signer_private_key="", transaction_sender_private_key="")
    app.dependency_overrides[get_settings] = lambda: settings
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


class TestHealth:
    async def test_health(self, client):
        res = await client.get("/api/health")
        assert res.status_code == 200
        body = res.json()
        assert body["status"] == "ok"
        assert body["signing"] is False
        assert body["submission"] is False


class TestClaimsAPI:
    async def test_get_claims(self, client, service):
        res = await client.get(f"/api/claims/{WALLET}")
        assert res.status_code == 200
        data = res.json()
        assert Decimal(data["totals"]["unclaimed"]) == Decimal("678.645")
        assert data["holdings"][0]["token_address"] == TOKEN
        assert data["holdings"][0]["holdings"][0]["signed_context"] is None
        assert data["has_partial_data_error"] is False
        service.load_claims_for_wallet.assert_awaited_once_with(WALLET)

    async def test_wallet_normalized(self, client, service):
        res = await client.get("/api/claims/0xABCDEFabcdef0000000000000000000000000000")
        assert res.status_code == 200
        service.load_claims_for_wallet.assert_awaited_once_with("0xabcdefabcdef0000000000000000000000000000")

    async def test_invalid_wallet(self, client, service):
        res = await client.get("/api/claims/not-a-wallet")
        assert res.status_code == 422
        service.load_claims_for_wallet.assert_not_awaited()

    async def test_refresh(self, client, service):
        res = await client.post(f"/api/claims/{WALLET}/refresh")
        assert res.status_code == 200
        service.refresh.assert_awaited_once_with(WALLET)

    async def test_claim(self, client, assembler, service):
        res = await client.post(f"/api/claims/{WALLET}/claim")
        assert res.status_code == 200
        assert res.json() == {"tx_hash": "0xfeed", "holdings_claimed": 1}
        groups, wallet = assembler.claim_all.call_args.args
        assert groups[0].token_address == TOKEN
        assert wallet == WALLET
        service.refresh.assert_awaited_once_with(WALLET)

    async def test_claim_nothing(self, client, assembler):
        assembler.claim_all.side_effect = NoHoldingsError()
        res = await client.post(f"/api/claims/{WALLET}/claim")
        assert res.status_code == 400

    async def test_claim_reverted(self, client, assembler):
        assembler.claim_all.side_effect = ClaimSubmissionError("reverted")
        res = await client.post(f"/api/claims/{WALLET}/claim")
        assert res.status_code == 502
        assert "reverted" in res.json()["detail"]

    async def test_claim_for_other_wallet_rejected(self, client, service):
        gateway = MagicMock()
        gateway.sender_address = OTHER_WALLET
        gateway.simulate_take_orders = AsyncMock()
        gateway.send_take_orders = AsyncMock(return_value="0xfeed")
        app.dependency_overrides[get_assembler] = lambda: TransactionAssembler(gateway)

        res = await client.post(f"/api/claims/{WALLET}/claim")

        assert res.status_code == 409
        assert OTHER_WALLET in res.json()["detail"]
        gateway.send_take_orders.assert_not_awaited()
        service.refresh.assert_not_awaited()


class TestHypersyncProxy:
    async def test_forwards_query(self, client, hypersync):
        body = {
            "client": HYPERSYNC_URL,
            "from_block": 100,
            "logs": [{"address": [ORDERBOOK], "topics": [["0x01"]]}],
            "field_selection": {"log": ["data"]},
        }
        res = await client.post("/api/hypersync", json=body)
        assert res.status_code == 200
        assert res.json()["next_block"] == 101
        forwarded = hypersync.query.call_args.args[0]
        assert "client" not in forwarded
        assert forwarded["from_block"] == 100

    async def test_rejects_unknown_client(self, client, hypersync):
        body = {"client": "https://evil.example/query", "from_block": 0, "logs": [], "field_selection": {}}
        res = await client.post("/api/hypersync", json=body)
        assert res.status_code == 400
        hypersync.query.assert_not_awaited()

    async def test_upstream_failure(self, client, hypersync):
        hypersync.query.side_effect = FetchError("down")
        body = {"client": HYPERSYNC_URL, "from_block": 0, "logs": [], "field_selection": {}}
        res = await client.post("/api/hypersync", json=body)
        assert res.status_code == 502


class TestIpfsProxy:
    async def test_miss_then_hit(self, client, ipfs):
        first = await client.get("/api/ipfs/bafkreiexample0001")
        second = await client.get("/api/ipfs/bafkreiexample0001")
        assert first.status_code == 200
        assert first.headers["x-cache"] == "MISS"
        assert second.headers["x-cache"] == "HIT"
        assert second.content == b"index,address,amount\n"
        assert second.headers["content-type"].startswith("text/csv")
        ipfs.fetch.assert_awaited_once_with("bafkreiexample0001")

    async def test_nested_path(self, client, ipfs):
        res = await client.get("/api/ipfs/bafkreiexample0001/ledger.csv")
        assert res.status_code == 200
        ipfs.fetch.assert_awaited_once_with("bafkreiexample0001/ledger.csv")

    async def test_gateway_failure(self, client, ipfs):
        ipfs.fetch.side_effect = FetchError("all gateways down")
        res = await client.get("/api/ipfs/bafkreiexample0001")
        assert res.status_code == 502
