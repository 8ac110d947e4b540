"""TransactionAssembler — batch every unclaimed holding into one takeOrders2 call."""

import logging
from typing import Any

from eth_abi.exceptions import DecodingError

from royaltyclaims.domain.models.claims import HoldingsGroup
from royaltyclaims.exceptions import (
    ClaimantMismatchError,
    ClaimSubmissionError,
    ConfigurationError,
    MissingAuthorizationError,
    NoHoldingsError,
    OrderbookMismatchError,
)
from royaltyclaims.infra.chain.orderbook import OrderbookGateway
from royaltyclaims.settlement.decoding import decode_order

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1


class TransactionAssembler:
    def __init__(self, gateway: OrderbookGateway) -> None:
        self._gateway = gateway

    def build_config(self, groups: list[HoldingsGroup]) -> tuple[str, dict[str, Any]]:
        """Return (orderbook address, TakeOrdersConfigV3) for all holdings."""
        holdings = [h for g in groups for h in g.holdings]
        if not holdings:
            raise NoHoldingsError()

        addresses = {h.orderbook_address.lower() for h in holdings if h.orderbook_address}
        if not addresses:
            raise ClaimSubmissionError("No orderbook address found")
        if len(addresses) > 1:
            raise OrderbookMismatchError(addresses)

        decoded: dict[str, tuple] = {}
        orders = []
        for h in holdings:
            if h.signed_context is None:
                raise MissingAuthorizationError(f"Holding {h.id} of {h.token_address} has no signed context")
            if h.order_bytes not in decoded:
                try:
                    decoded[h.order_bytes] = decode_order(h.order_bytes)
                except (DecodingError, ValueError) as e:
                    raise ClaimSubmissionError(f"Undecodable order {h.order_hash}: {e}") from e
            orders.append(
                {
                    "order": decoded[h.order_bytes],
                    "inputIOIndex": 0,
                    "outputIOIndex": 0,
                    "signedContext": [h.signed_context.as_abi_tuple()],
                }
            )

        config = {
            "minimumInput": 0,
            "maximumInput": MAX_UINT256,
            "maximumIORatio": MAX_UINT256,
            "orders": orders,
            "data": b"",
        }
        return holdings[0].orderbook_address, config

    def check_claimant(self, wallet: str) -> str:
        """Return the sender address, which must be `wallet` itself."""
        sender = self._gateway.sender_address
        if not sender:
            raise ConfigurationError("No transaction sender configured")
        if sender.lower() != wallet.lower():
            raise ClaimantMismatchError(wallet, sender)
        return sender

    async def claim_all(self, groups: list[HoldingsGroup], wallet: str) -> str:
        """Simulate, then submit one transaction claiming every holding of `wallet`. Returns the tx hash."""
        self.check_claimant(wallet)
        orderbook_address, config = self.build_config(groups)
        logger.info("Claiming %d holdings via %s", len(config["orders"]), orderbook_address)
        await self._gateway.simulate_take_orders(orderbook_address, config)
        return await self._gateway.send_take_orders(orderbook_address, config)
