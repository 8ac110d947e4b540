"""LedgerValidator — fetch a pinned ledger and prove it is the one anchored on-chain."""

import logging
import re

from royaltyclaims.domain.models.claims import ClaimSource, LedgerRow, is_unset_root, link_content_id
from royaltyclaims.exceptions import (
    AccumulatorMismatchError,
    ContentIntegrityError,
    DuplicateLeafIndexError,
    LedgerFormatError,
    LedgerValidationError,
)
from royaltyclaims.infra.ipfs.gateway_client import IpfsGatewayClient
from royaltyclaims.ledger.accumulator import MerkleAccumulator
from royaltyclaims.ledger.parser import LedgerParser

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_MIN_CID_LENGTH = 10


def check_content_id(cid: str, expected_content_hash: str, csv_link: str) -> str:
    if len(cid) < _MIN_CID_LENGTH:
        raise ContentIntegrityError(f"Invalid IPFS URL format: {csv_link}", content_hash=cid)
    if cid != expected_content_hash:
        raise ContentIntegrityError(
            "IPFS content hash mismatch", content_hash=cid, expected_hash=expected_content_hash
        )
    return cid


def verify_content_id(csv_link: str, expected_content_hash: str) -> str:
    """The link's last path segment must equal the expected CID exactly."""
    return check_content_id(link_content_id(csv_link), expected_content_hash, csv_link)


def is_address(value: str) -> bool:
    return bool(_ADDRESS_RE.match(value))


def check_rows(rows: list[LedgerRow]) -> None:
    if not rows:
        raise LedgerFormatError("Invalid ledger: no rows")
    for i, row in enumerate(rows):
        if not is_address(row.address):
            raise LedgerFormatError(f"Invalid address format in row {i}: {row.address}")


def validate_ledger(rows: list[LedgerRow], expected_merkle_root: str) -> str:
    """Check row structure and the Merkle root. Returns the computed root."""
    check_rows(rows)
    root = MerkleAccumulator.from_rows(rows).root
    if root.lower() != expected_merkle_root.lower():
        raise AccumulatorMismatchError(root, expected_merkle_root)
    return root


class LedgerValidator:
    """Content-integrity and Merkle-root checks for pinned payout ledgers. No caching."""

    def __init__(self, ipfs: IpfsGatewayClient, parser: LedgerParser | None = None) -> None:
        self._ipfs = ipfs
        self._parser = parser or LedgerParser()

    async def fetch_and_validate(
        self, csv_link: str, expected_merkle_root: str, expected_content_hash: str
    ) -> list[LedgerRow]:
        verify_content_id(csv_link, expected_content_hash)
        return await self._fetch_checked(csv_link, expected_merkle_root, is_unset_root(expected_merkle_root))

    async def validate_source(self, source: ClaimSource) -> list[LedgerRow]:
        check_content_id(source.content_id, source.expected_content_hash, source.csv_link)
        return await self._fetch_checked(source.csv_link, source.expected_merkle_root, source.is_root_unset)

    async def _fetch_checked(self, csv_link: str, expected_merkle_root: str, root_unset: bool) -> list[LedgerRow]:
        text = await self._ipfs.fetch_text(csv_link)
        rows = self._parser.parse(text)

        try:
            root = validate_ledger(rows, expected_merkle_root)
        except DuplicateLeafIndexError:
            raise
        except LedgerValidationError as e:
            if root_unset:
                logger.warning("Ledger %s not validated (root unset): %s", csv_link, e)
                return rows
            raise
        logger.info("Validated ledger %s: %d rows, root %s", csv_link, len(rows), root)
        return rows
