"""Orderbook contract gateway — simulate and send `takeOrders2`."""

import logging
from typing import Any, Protocol

from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, Web3Exception

from royaltyclaims.exceptions import ClaimSubmissionError, ConfigurationError

logger = logging.getLogger(__name__)

_IO_COMPONENTS = [
    {"name": "token", "type": "address"},
    {"name": "decimals", "type": "uint8"},
    {"name": "vaultId", "type": "uint256"},
]

ORDER_V3_COMPONENTS = [
    {"name": "owner", "type": "address"},
    {
        "name": "evaluable",
        "type": "tuple",
        "components": [
            {"name": "interpreter", "type": "address"},
            {"name": "store", "type": "address"},
            {"name": "bytecode", "type": "bytes"},
        ],
    },
    {"name": "validInputs", "type": "tuple[]", "components": _IO_COMPONENTS},
    {"name": "validOutputs", "type": "tuple[]", "components": _IO_COMPONENTS},
    {"name": "nonce", "type": "bytes32"},
]

TAKE_ORDERS_ABI = [
    {
        "type": "function",
        "name": "takeOrders2",
        "stateMutability": "nonpayable",
        "inputs": [
            {
                "name": "config",
                "type": "tuple",
                "components": [
                    {"name": "minimumInput", "type": "uint256"},
                    {"name": "maximumInput", "type": "uint256"},
                    {"name": "maximumIORatio", "type": "uint256"},
                    {
                        "name": "orders",
                        "type": "tuple[]",
                        "components": [
                            {"name": "order", "type": "tuple", "components": ORDER_V3_COMPONENTS},
                            {"name": "inputIOIndex", "type": "uint256"},
                            {"name": "outputIOIndex", "type": "uint256"},
                            {
                                "name": "signedContext",
                                "type": "tuple[]",
                                "components": [
                                    {"name": "signer", "type": "address"},
                                    {"name": "context", "type": "uint256[]"},
                                    {"name": "signature", "type": "bytes"},
                                ],
                            },
                        ],
                    },
                    {"name": "data", "type": "bytes"},
                ],
            }
        ],
        "outputs": [
            {"name": "totalTakerInput", "type": "uint256"},
            {"name": "totalTakerOutput", "type": "uint256"},
        ],
    }
]


def to_abi_args(config: dict[str, Any]) -> tuple:
    """Flatten a TakeOrdersConfigV3 dict into the positional tuple web3 encodes."""
    orders = [
        (entry["order"], entry["inputIOIndex"], entry["outputIOIndex"], list(entry["signedContext"]))
        for entry in config["orders"]
    ]
    return (config["minimumInput"], config["maximumInput"], config["maximumIORatio"], orders, config["data"])


class OrderbookGateway(Protocol):
    @property
    def sender_address(self) -> str | None: ...

    async def simulate_take_orders(self, orderbook_address: str, config: dict[str, Any]) -> None: ...

    async def send_take_orders(self, orderbook_address: str, config: dict[str, Any]) -> str: ...


class Web3OrderbookGateway:
    """Submits `takeOrders2` from a configured sender account."""

    def __init__(self, w3: AsyncWeb3, sender: LocalAccount | None = None) -> None:
        self._w3 = w3
        self._sender = sender

    @classmethod
    def from_rpc(cls, rpc_url: str, sender: LocalAccount | None = None) -> "Web3OrderbookGateway":
        return cls(AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url)), sender)

    @property
    def sender_address(self) -> str | None:
        return self._sender.address if self._sender is not None else None

    def _function(self, orderbook_address: str, config: dict[str, Any]):
        contract = self._w3.eth.contract(address=AsyncWeb3.to_checksum_address(orderbook_address), abi=TAKE_ORDERS_ABI)
        return contract.functions.takeOrders2(to_abi_args(config))

    def _require_sender(self) -> LocalAccount:
        if self._sender is None:
            raise ConfigurationError("No transaction sender configured")
        return self._sender

    async def simulate_take_orders(self, orderbook_address: str, config: dict[str, Any]) -> None:
        sender = self._require_sender()
        try:
            await self._function(orderbook_address, config).call({"from": sender.address})
        except (ContractLogicError, Web3Exception, ValueError) as e:
            raise ClaimSubmissionError(f"takeOrders2 simulation reverted: {e}") from e

    async def send_take_orders(self, orderbook_address: str, config: dict[str, Any]) -> str:
        sender = self._require_sender()
        try:
            tx = await self._function(orderbook_address, config).build_transaction(
                {
                    "from": sender.address,
                    "nonce": await self._w3.eth.get_transaction_count(sender.address),
                }
            )
            signed = sender.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except (ContractLogicError, Web3Exception, ValueError) as e:
            raise ClaimSubmissionError(f"takeOrders2 submission failed: {e}") from e
        logger.info("Submitted takeOrders2 to %s: %s", orderbook_address, tx_hash.hex())
        return "0x" + tx_hash.hex().removeprefix("0x")
