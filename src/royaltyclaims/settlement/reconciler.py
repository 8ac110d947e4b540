"""ClaimReconciler — partition a wallet's ledger rows into claimed and unclaimed.

A row is claimed iff a claim-context log emitted by the orderbook, inside one
of the wallet's trade transactions, carries the row's index and the wallet's
address. Nothing else (amount, timing) affects the partition.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from royaltyclaims.domain.models.claims import (
    ZERO_ADDRESS,
    ClaimedRow,
    ClaimHistoryEntry,
    ClaimSource,
    DecodedClaimEvent,
    LedgerRow,
    OrderDetails,
    ReconciliationResult,
    TradeRecord,
)
from royaltyclaims.infra.hypersync.client import HypersyncClient
from royaltyclaims.settlement.decoding import decode_log_data, timestamp_to_datetime

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def block_range(trades: list[TradeRecord]) -> tuple[int, int]:
    """Lowest and highest block of the wallet's trades, (0, 0) when there are none."""
    if not trades:
        return 0, 0
    blocks = [t.block_number for t in trades]
    return min(blocks), max(blocks)


def partition_rows(
    rows: list[LedgerRow], events: list[DecodedClaimEvent], wallet: str
) -> tuple[list[ClaimedRow], list[LedgerRow]]:
    """Split the wallet's rows by whether the wallet's events claimed their index."""
    owner = wallet.lower()
    by_index: dict[int, DecodedClaimEvent] = {}
    for event in events:
        if event.address.lower() == owner:
            by_index.setdefault(event.index, event)

    claimed: list[ClaimedRow] = []
    unclaimed: list[LedgerRow] = []
    for row in rows:
        if row.address.lower() != owner:
            continue
        event = by_index.get(row.index)
        if event is not None:
            claimed.append(ClaimedRow(row=row, event=event))
        else:
            unclaimed.append(row)
    return claimed, unclaimed


class ClaimReconciler:
    def __init__(
        self,
        hypersync: HypersyncClient,
        orderbook_address: str,
        event_topic: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._hypersync = hypersync
        self._orderbook_address = orderbook_address
        self._event_topic = event_topic
        self._clock = clock

    async def fetch_events(self, trades: list[TradeRecord]) -> list[DecodedClaimEvent]:
        """Decoded claim events inside the given trades' transactions."""
        if not trades:
            return []
        lowest, highest = block_range(trades)
        tx_hashes = {t.tx_hash.lower() for t in trades if t.tx_hash}

        logs = await self._hypersync.fetch_logs(
            self._orderbook_address, self._event_topic, lowest, highest, tx_hashes=tx_hashes
        )

        events: list[DecodedClaimEvent] = []
        for log in logs:
            event = decode_log_data(log.data)
            if event is None or event.address == ZERO_ADDRESS:
                continue
            event.timestamp = timestamp_to_datetime(log.timestamp)
            event.tx_hash = log.transaction_hash or None
            events.append(event)
        return events

    def _claim_date(
        self, event: DecodedClaimEvent | None, order: OrderDetails | None, trades: list[TradeRecord]
    ) -> datetime:
        if event is not None and event.timestamp is not None:
            return event.timestamp
        if order is not None and order.added_at is not None:
            return timestamp_to_datetime(order.added_at)  # type: ignore[return-value]
        if trades and trades[0].timestamp is not None:
            return timestamp_to_datetime(trades[0].timestamp)  # type: ignore[return-value]
        return self._clock()

    async def reconcile(
        self,
        source: ClaimSource,
        wallet: str,
        rows: list[LedgerRow],
        trades: list[TradeRecord],
        order: OrderDetails | None = None,
    ) -> ReconciliationResult:
        events = await self.fetch_events(trades)
        claimed, unclaimed = partition_rows(rows, events, wallet)

        fallback_tx = trades[0].tx_hash if trades else "N/A"
        history = [
            ClaimHistoryEntry(
                date=self._claim_date(c.event, order, trades),
                amount_raw=c.row.amount,
                asset=source.field_name or "Unknown Field",
                tx_hash=(c.event.tx_hash if c.event and c.event.tx_hash else fallback_tx),
                token_address=source.token_address,
            )
            for c in claimed
        ]

        result = ReconciliationResult(wallet=wallet, claimed=claimed, unclaimed=unclaimed, history=history)
        logger.debug(
            "Reconciled %s for %s: %d claimed, %d unclaimed, %d events",
            source.csv_link,
            wallet,
            len(claimed),
            len(unclaimed),
            len(events),
        )
        return result
