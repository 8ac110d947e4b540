"""ABI decoding for claim-context logs and indexed order bytes."""

import logging
from datetime import datetime, timezone

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address

from royaltyclaims.domain.models.claims import ZERO_ADDRESS, DecodedClaimEvent

logger = logging.getLogger(__name__)

IO_TYPE = "(address,uint8,uint256)"
EVALUABLE_TYPE = "(address,address,bytes)"
ORDER_V3_TYPE = f"(address,{EVALUABLE_TYPE},{IO_TYPE}[],{IO_TYPE}[],bytes32)"

CONTEXT_LOG_TYPES = ["address", "uint256[][]"]

# Signed context column inside the emitted context matrix: [index, amount, *proof]
SIGNED_CONTEXT_COLUMN = 6


def _to_bytes(data: str | bytes) -> bytes:
    if isinstance(data, bytes):
        return data
    return bytes.fromhex(data.removeprefix("0x"))


def decode_log_data(data: str | bytes) -> DecodedClaimEvent | None:
    """Decode a context log payload into (index, address, amount).

    Empty payloads yield None. Payloads that fail to decode yield the
    zero-address event, which callers discard.
    """
    raw = _to_bytes(data) if data else b""
    if not raw:
        return None
    try:
        sender, context = decode(CONTEXT_LOG_TYPES, raw)
        column = context[SIGNED_CONTEXT_COLUMN]
        return DecodedClaimEvent(index=int(column[0]), address=to_checksum_address(sender), amount=int(column[1]))
    except (DecodingError, IndexError, ValueError, OverflowError) as e:
        logger.debug("Undecodable context log %s: %s", raw[:16].hex(), e)
        return DecodedClaimEvent(index=0, address=ZERO_ADDRESS, amount=0)


def decode_order(order_bytes: str | bytes) -> tuple:
    """Decode ABI-encoded OrderV3 bytes into the nested tuple the contract expects."""
    (order,) = decode([ORDER_V3_TYPE], _to_bytes(order_bytes))
    return order


def timestamp_to_datetime(timestamp: int | None) -> datetime | None:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
