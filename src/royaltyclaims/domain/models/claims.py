"""Domain types for ledger reconciliation, proofs and aggregated claim results."""

from __future__ import annotations

from datetime import datetime
from decimal import Context, Decimal

from pydantic import BaseModel, ConfigDict, computed_field

from royaltyclaims.domain.enums import ClaimStatus, HoldingStatus

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
UNSET_MERKLE_ROOT = "0x" + "00" * 32  # batches not yet anchored on-chain

TOKEN_DECIMALS = 18

_EXACT = Context(prec=100)


def to_display(amount: int, decimals: int = TOKEN_DECIMALS) -> Decimal:
    """Scale a raw fixed-point integer to human units without losing precision."""
    value = Decimal(amount).scaleb(-decimals, _EXACT).normalize(_EXACT)
    if value.as_tuple().exponent > 0:  # type: ignore[operator]
        value = value.quantize(Decimal(1), context=_EXACT)
    return value


def link_content_id(link: str) -> str:
    """Content identifier = last path segment of the link."""
    return link.rstrip("/").split("/")[-1]


def is_unset_root(merkle_root: str) -> bool:
    return merkle_root.lower() == UNSET_MERKLE_ROOT


class ClaimSource(BaseModel):
    """One historical payout batch for one token within one energy field."""

    model_config = ConfigDict(frozen=True)

    csv_link: str
    expected_merkle_root: str
    expected_content_hash: str
    order_hash: str
    field_name: str
    token_address: str

    @property
    def content_id(self) -> str:
        return link_content_id(self.csv_link)

    @property
    def is_root_unset(self) -> bool:
        return is_unset_root(self.expected_merkle_root)


class LedgerRow(BaseModel):
    """One payout ledger entry. `amount` is the raw 18-decimal integer."""

    model_config = ConfigDict(frozen=True)

    index: int
    address: str
    amount: int
    extra: dict[str, str] = {}  # unhashed columns, kept for display


class DecodedClaimEvent(BaseModel):
    """A claim-settlement context log decoded into ledger terms."""

    index: int
    address: str
    amount: int
    timestamp: datetime | None = None
    tx_hash: str | None = None


class ClaimedRow(BaseModel):
    row: LedgerRow
    event: DecodedClaimEvent | None = None


class TradeRecord(BaseModel):
    """A take-order trade the wallet made against a claim order."""

    tx_hash: str
    block_number: int
    timestamp: int | None = None
    sender: str = ""


class OrderDetails(BaseModel):
    """An order as indexed by the orderbook subgraph."""

    order_hash: str
    order_bytes: str
    orderbook_address: str
    added_at: int | None = None  # timestamp of the first AddOrder event


class ClaimHistoryEntry(BaseModel):
    """A completed claim, for display."""

    date: datetime
    amount_raw: int
    asset: str
    tx_hash: str
    status: ClaimStatus = ClaimStatus.COMPLETED
    token_address: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def amount(self) -> Decimal:
        return to_display(self.amount_raw)


class ReconciliationResult(BaseModel):
    """Claimed/unclaimed partition of one ClaimSource's rows for one wallet."""

    wallet: str
    claimed: list[ClaimedRow] = []
    unclaimed: list[LedgerRow] = []
    history: list[ClaimHistoryEntry] = []

    @property
    def total_claimed(self) -> int:
        return sum(c.row.amount for c in self.claimed)

    @property
    def total_unclaimed(self) -> int:
        return sum(r.amount for r in self.unclaimed)

    @property
    def total_earned(self) -> int:
        return self.total_claimed + self.total_unclaimed


class Proof(BaseModel):
    """Inclusion proof for one leaf. `path` is ordered leaf-to-root."""

    leaf_value: str
    leaf_index: int
    path: list[str]


class SignedAuthorization(BaseModel):
    """SignedContextV1: signer, uint256[] context and an r||s||v signature (hex)."""

    signer: str
    context: list[int]
    signature: str

    def as_abi_tuple(self) -> tuple[str, list[int], bytes]:
        return (self.signer, list(self.context), bytes.fromhex(self.signature.removeprefix("0x")))


class Holding(BaseModel):
    """One unclaimed ledger row, ready for on-chain submission."""

    id: int
    name: str
    token_address: str
    amount_raw: int
    total_earned_raw: int = 0
    status: HoldingStatus = HoldingStatus.PRODUCING
    order_hash: str
    order_bytes: str
    orderbook_address: str
    proof: Proof
    signed_context: SignedAuthorization | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unclaimed_amount(self) -> Decimal:
        return to_display(self.amount_raw)


class HoldingsGroup(BaseModel):
    """All unclaimed holdings of one token, merged across payout batches."""

    field_name: str
    token_address: str
    holdings: list[Holding] = []
    claimed_raw: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unclaimed_raw(self) -> int:
        return sum(h.amount_raw for h in self.holdings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def earned_raw(self) -> int:
        return self.claimed_raw + self.unclaimed_raw

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_amount(self) -> Decimal:
        return to_display(self.unclaimed_raw)


class ClaimTotals(BaseModel):
    claimed_raw: int = 0
    unclaimed_raw: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def earned_raw(self) -> int:
        return self.claimed_raw + self.unclaimed_raw

    @computed_field  # type: ignore[prop-decorator]
    @property
    def earned(self) -> Decimal:
        return to_display(self.earned_raw)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def claimed(self) -> Decimal:
        return to_display(self.claimed_raw)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unclaimed(self) -> Decimal:
        return to_display(self.unclaimed_raw)


class AggregatedClaimsResult(BaseModel):
    """Per-wallet view across every configured claim source."""

    wallet: str = ""
    holdings: list[HoldingsGroup] = []
    claim_history: list[ClaimHistoryEntry] = []
    totals: ClaimTotals = ClaimTotals()
    has_partial_data_error: bool = False
