"""Builders for ledgers, orders and context logs used across the test suite."""

from unittest.mock import MagicMock

from eth_abi import encode

from royaltyclaims.domain.models.claims import LedgerRow
from royaltyclaims.settlement.decoding import CONTEXT_LOG_TYPES, ORDER_V3_TYPE

WALLET = "0x1111111111111111111111111111111111111111"
OTHER_WALLET = "0x2222222222222222222222222222222222222222"
TOKEN = "0xf836a500910453a397084ade41321ee20a5aade1"
ORDERBOOK = "0xd2938e7c9fe3597f78832ce780feb61945c377d7"
EVENT_TOPIC = "0x17a5c0f3785132a57703932032f6863e7920434150aa1dc940e567b440fdce1f"
SIGNER_KEY = "0x" + "4c" * 32


def ledger_csv(rows: list[tuple[int, str, int]]) -> str:
    lines = ["index,address,amount"]
    lines += [f"{i},{a},{amt}" for i, a, amt in rows]
    return "\n".join(lines) + "\n"


def ledger_rows(rows: list[tuple[int, str, int]]) -> list[LedgerRow]:
    return [LedgerRow(index=i, address=a, amount=amt) for i, a, amt in rows]


def order_bytes(nonce: int = 0) -> str:
    order = (
        OTHER_WALLET,
        (OTHER_WALLET, OTHER_WALLET, b"\x01\x02"),
        [(TOKEN, 18, 1)],
        [(TOKEN, 18, 2)],
        nonce.to_bytes(32, "big"),
    )
    return "0x" + encode([ORDER_V3_TYPE], [order]).hex()


def context_log(owner: str, index: int, amount: int) -> str:
    """Claim-context log payload whose signed-context column is [index, amount]."""
    matrix = [[0], [0], [0], [0], [0], [0], [index, amount]]
    return "0x" + encode(CONTEXT_LOG_TYPES, [owner, matrix]).hex()


def mock_response(status_code: int = 200, json_data=None, content: bytes = b"", headers=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data
    resp.content = content
    resp.headers = headers or {}
    return resp
