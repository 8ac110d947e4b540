"""Orderbook subgraph client — trades and orders by order hash."""

import logging
import re
from typing import Any

import httpx

from royaltyclaims.domain.models.claims import OrderDetails, TradeRecord
from royaltyclaims.exceptions import FetchError
from royaltyclaims.infra.http.rate_limited_client import RateLimitedClient
from royaltyclaims.infra.http.retry import RetryPolicy

logger = logging.getLogger(__name__)

_ORDER_HASH_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")

TRADES_QUERY = """
query GetTradesForClaims($orderHash: String!, $sender: String!) {
  trades(
    where: {
      and: [
        { order_: { orderHash: $orderHash } },
        { tradeEvent_: { sender: $sender } }
      ]
    }
  ) {
    order { orderBytes orderHash }
    orderbook { id }
    tradeEvent {
      transaction { id blockNumber timestamp }
      sender
    }
  }
}
"""

ORDER_QUERY = """
query GetOrderByHash($orderHash: String!) {
  orders(where: { orderHash: $orderHash }) {
    orderBytes
    orderHash
    orderbook { id }
    addEvents {
      transaction { id timestamp blockNumber }
    }
  }
}
"""


def clean_order_hash(order_hash: str) -> str | None:
    """Trimmed, lowercase order hash, or None if it is not 0x + 64 hex."""
    candidate = order_hash.strip()
    if not _ORDER_HASH_RE.match(candidate):
        return None
    return candidate.lower()


def _int_or_none(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _parse_trade(raw: dict) -> TradeRecord:
    event = raw.get("tradeEvent") or {}
    tx = event.get("transaction") or {}
    return TradeRecord(
        tx_hash=tx["id"],
        block_number=int(tx["blockNumber"]),
        timestamp=_int_or_none(tx.get("timestamp")),
        sender=event.get("sender") or "",
    )


def _parse_order(raw: dict) -> OrderDetails:
    add_events = raw.get("addEvents") or []
    added_at = None
    if add_events:
        added_at = _int_or_none((add_events[0].get("transaction") or {}).get("timestamp"))
    return OrderDetails(
        order_hash=raw["orderHash"],
        order_bytes=raw["orderBytes"],
        orderbook_address=(raw.get("orderbook") or {})["id"],
        added_at=added_at,
    )


class OrderbookSubgraphClient:
    """GraphQL client for the Raindex orderbook subgraph.

    URLs are tried in order; each one gets the full retry budget before the
    next is attempted. A lookup that fails on every URL raises FetchError so
    the caller can treat its claim source as failed; only a malformed order
    hash short-circuits to an empty list.
    """

    def __init__(
        self,
        http_client: RateLimitedClient,
        urls: list[str],
        retry: RetryPolicy | None = None,
    ) -> None:
        if not urls:
            raise ValueError("At least one subgraph URL is required")
        self._http = http_client
        self._urls = list(urls)
        self._retry = retry or RetryPolicy()

    async def execute(self, query: str, variables: dict[str, Any]) -> dict:
        last_error: FetchError | None = None
        for url in self._urls:
            try:
                return await self._retry.call(self._post, url, query, variables)
            except FetchError as e:
                logger.warning("Subgraph %s failed: %s", url, e)
                last_error = e
        assert last_error is not None
        raise last_error

    async def _post(self, url: str, query: str, variables: dict[str, Any]) -> dict:
        try:
            resp = await self._http.post(url, json={"query": query, "variables": variables})
        except httpx.HTTPError as e:
            raise FetchError(f"Subgraph request failed: {e}", url=url) from e
        if resp.status_code >= 400:
            raise FetchError(f"Subgraph returned {resp.status_code}", url=url, status_code=resp.status_code)
        try:
            payload = resp.json()
        except ValueError as e:
            raise FetchError(f"Subgraph returned invalid JSON: {e}", url=url) from e
        if not isinstance(payload, dict):
            raise FetchError("Subgraph returned an unexpected payload", url=url)
        if payload.get("errors"):
            raise FetchError(f"Subgraph errors: {payload['errors']}", url=url)
        return payload.get("data") or {}

    async def get_trades_for_claims(self, order_hash: str, owner: str) -> list[TradeRecord]:
        """Trades the owner made against the claim order."""
        clean = clean_order_hash(order_hash)
        if clean is None:
            logger.warning("Invalid order hash %r, skipping trade lookup", order_hash)
            return []
        data = await self.execute(TRADES_QUERY, {"orderHash": clean, "sender": owner.lower()})
        try:
            return [_parse_trade(t) for t in data.get("trades") or []]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise FetchError(f"Malformed trades for order {clean}: {e}") from e

    async def get_order_by_hash(self, order_hash: str) -> list[OrderDetails]:
        clean = clean_order_hash(order_hash)
        if clean is None:
            logger.warning("Invalid order hash %r, skipping order lookup", order_hash)
            return []
        data = await self.execute(ORDER_QUERY, {"orderHash": clean})
        try:
            return [_parse_order(o) for o in data.get("orders") or []]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise FetchError(f"Malformed order {clean}: {e}") from e
