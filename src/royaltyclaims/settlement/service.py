"""ClaimsService — per-wallet claims view across every configured payout batch."""

import asyncio
import logging
from dataclasses import dataclass, field

from royaltyclaims.domain.models.claims import (
    AggregatedClaimsResult,
    ClaimHistoryEntry,
    ClaimSource,
    ClaimTotals,
    Holding,
    HoldingsGroup,
    LedgerRow,
)
from royaltyclaims.domain.models.registry import EnergyField, iter_claim_sources
from royaltyclaims.infra.subgraph.orderbook import OrderbookSubgraphClient
from royaltyclaims.ledger.accumulator import MerkleAccumulator
from royaltyclaims.ledger.validator import LedgerValidator
from royaltyclaims.settlement.cache import TTLCache
from royaltyclaims.settlement.reconciler import ClaimReconciler
from royaltyclaims.settlement.signing import MessageSigner, build_context, sign_context

logger = logging.getLogger(__name__)


@dataclass
class SourceResult:
    source: ClaimSource
    holdings: list[Holding] = field(default_factory=list)
    history: list[ClaimHistoryEntry] = field(default_factory=list)
    claimed_raw: int = 0
    unclaimed_raw: int = 0


def merge_groups(results: list[SourceResult]) -> list[HoldingsGroup]:
    """Group holdings by token address (case-insensitive), in first-seen order."""
    groups: dict[str, HoldingsGroup] = {}
    for result in results:
        key = result.source.token_address.lower()
        group = groups.get(key)
        if group is None:
            group = HoldingsGroup(field_name=result.source.field_name, token_address=result.source.token_address)
            groups[key] = group
        group.holdings.extend(result.holdings)
        group.claimed_raw += result.claimed_raw
    return list(groups.values())


class ClaimsService:
    def __init__(
        self,
        validator: LedgerValidator,
        subgraph: OrderbookSubgraphClient,
        reconciler: ClaimReconciler,
        energy_fields: list[EnergyField],
        signer: MessageSigner | None = None,
        wallet_cache: TTLCache[AggregatedClaimsResult] | None = None,
        ledger_cache: TTLCache[list[LedgerRow]] | None = None,
        timeout_seconds: float | None = 60.0,
    ) -> None:
        self._validator = validator
        self._subgraph = subgraph
        self._reconciler = reconciler
        self._energy_fields = energy_fields
        self._signer = signer
        self._wallet_cache = wallet_cache if wallet_cache is not None else TTLCache(ttl_seconds=300)
        self._ledger_cache = ledger_cache if ledger_cache is not None else TTLCache()
        self._timeout = timeout_seconds

    @property
    def sources(self) -> list[ClaimSource]:
        return list(iter_claim_sources(self._energy_fields))

    async def load_claims_for_wallet(self, wallet: str) -> AggregatedClaimsResult:
        """Aggregate holdings, history and totals for `wallet`.

        A failing source sets `has_partial_data_error` and is left out; it
        never aborts the other sources. Only complete results are cached.
        """
        if not wallet:
            return AggregatedClaimsResult()

        key = wallet.lower()
        cached = self._wallet_cache.get(key)
        if cached is not None:
            logger.debug("Claims cache hit for %s", wallet)
            return cached

        sources = self.sources
        deadline = None
        if self._timeout is not None:
            deadline = asyncio.get_running_loop().time() + self._timeout

        outcomes = await asyncio.gather(
            *(self._run_source(source, wallet, deadline) for source in sources),
            return_exceptions=True,
        )

        results: list[SourceResult] = []
        partial = False
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error(
                    "Claim source %s (%s) failed for %s: %r", source.csv_link, source.field_name, wallet, outcome
                )
                partial = True
                continue
            if outcome is not None:
                results.append(outcome)

        history = sorted((h for r in results for h in r.history), key=lambda h: h.date)
        result = AggregatedClaimsResult(
            wallet=wallet,
            holdings=merge_groups(results),
            claim_history=history,
            totals=ClaimTotals(
                claimed_raw=sum(r.claimed_raw for r in results),
                unclaimed_raw=sum(r.unclaimed_raw for r in results),
            ),
            has_partial_data_error=partial,
        )
        if not partial:
            self._wallet_cache.set(key, result)
        logger.info(
            "Loaded claims for %s: %d sources, %d groups, partial=%s",
            wallet,
            len(results),
            len(result.holdings),
            partial,
        )
        return result

    async def refresh(self, wallet: str) -> AggregatedClaimsResult:
        self._wallet_cache.invalidate(wallet.lower())
        return await self.load_claims_for_wallet(wallet)

    def clear_cache(self) -> None:
        self._wallet_cache.clear()
        self._ledger_cache.clear()

    async def _run_source(self, source: ClaimSource, wallet: str, deadline: float | None) -> SourceResult | None:
        async with asyncio.timeout_at(deadline):
            return await self._process_source(source, wallet)

    async def _fetch_ledger(self, source: ClaimSource) -> list[LedgerRow]:
        cached = self._ledger_cache.get(source.csv_link)
        if cached is not None:
            return cached
        rows = await self._validator.validate_source(source)
        self._ledger_cache.set(source.csv_link, rows)
        return rows

    async def _process_source(self, source: ClaimSource, wallet: str) -> SourceResult | None:
        rows, trades, orders = await asyncio.gather(
            self._fetch_ledger(source),
            self._subgraph.get_trades_for_claims(source.order_hash, wallet),
            self._subgraph.get_order_by_hash(source.order_hash),
        )
        if not orders:
            logger.info("No order %s indexed, skipping %s", source.order_hash, source.csv_link)
            return None
        order = orders[0]

        reconciliation = await self._reconciler.reconcile(source, wallet, rows, trades, order)

        holdings: list[Holding] = []
        if reconciliation.unclaimed:
            tree = MerkleAccumulator.from_rows(rows)
            for row in reconciliation.unclaimed:
                proof = tree.proof_for_row(row)
                signed = None
                if self._signer is not None:
                    signed = sign_context(self._signer, build_context(row, proof))
                holdings.append(
                    Holding(
                        id=row.index,
                        name=source.field_name,
                        token_address=source.token_address,
                        amount_raw=row.amount,
                        total_earned_raw=reconciliation.total_earned,
                        order_hash=order.order_hash,
                        order_bytes=order.order_bytes,
                        orderbook_address=order.orderbook_address,
                        proof=proof,
                        signed_context=signed,
                    )
                )
            if self._signer is None:
                logger.warning("No claims signer configured; %d holdings returned unsigned", len(holdings))

        return SourceResult(
            source=source,
            holdings=holdings,
            history=reconciliation.history,
            claimed_raw=reconciliation.total_claimed,
            unclaimed_raw=reconciliation.total_unclaimed,
        )
