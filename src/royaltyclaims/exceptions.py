"""Exception taxonomy for the claims settlement engine."""


class ClaimsError(Exception):
    """Base class for every error raised by royaltyclaims."""


class ConfigurationError(ClaimsError):
    """Static configuration is missing or inconsistent."""


# --- External services ---


class ExternalServiceError(ClaimsError):
    """An upstream service failed. Retriable."""


class FetchError(ExternalServiceError):
    """HTTP/network failure fetching a ledger, a log page or a subgraph query."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


# --- Ledger validation ---


class LedgerValidationError(ClaimsError):
    """A claims ledger cannot be trusted."""


class ContentIntegrityError(LedgerValidationError):
    """The content identifier in the link does not match the expected one."""

    def __init__(self, message: str, content_hash: str | None = None, expected_hash: str | None = None) -> None:
        super().__init__(message)
        self.content_hash = content_hash
        self.expected_hash = expected_hash


class AccumulatorMismatchError(LedgerValidationError):
    """The ledger's computed Merkle root does not match the on-chain root."""

    def __init__(self, merkle_root: str, expected_merkle_root: str) -> None:
        super().__init__(f"Merkle root mismatch: computed {merkle_root}, expected {expected_merkle_root}")
        self.merkle_root = merkle_root
        self.expected_merkle_root = expected_merkle_root


class LedgerFormatError(LedgerValidationError):
    """The ledger text or one of its rows is structurally invalid."""


class DuplicateLeafIndexError(LedgerValidationError):
    """Two ledger rows share the same index."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Duplicate ledger index {index}")
        self.index = index


# --- Proofs ---


class LeafNotFoundError(ClaimsError):
    """A leaf is not part of the tree it was derived from. Indicates a data-integrity bug."""

    def __init__(self, leaf: str) -> None:
        super().__init__(f"Leaf node {leaf} not found in the tree")
        self.leaf = leaf


# --- Submission ---


class ClaimSubmissionError(ClaimsError):
    """The batched claim transaction could not be simulated or sent."""


class NoHoldingsError(ClaimSubmissionError):
    """Nothing to claim."""

    def __init__(self, message: str = "No holdings to claim") -> None:
        super().__init__(message)


class OrderbookMismatchError(ClaimSubmissionError):
    """Holdings in one batch point at different order-book contracts."""

    def __init__(self, addresses: set[str]) -> None:
        super().__init__(f"Holdings disagree on orderbook address: {sorted(addresses)}")
        self.addresses = addresses


class MissingAuthorizationError(ClaimSubmissionError):
    """A holding has no signed context and cannot be submitted."""


class ClaimantMismatchError(ClaimSubmissionError):
    """The wallet being claimed for is not the account that would send the transaction.

    `takeOrders2` pays out to `msg.sender` while the ledger leaf binds the
    claimant's address, so only the claimant itself may submit.
    """

    def __init__(self, wallet: str, sender: str) -> None:
        super().__init__(f"Wallet {wallet} cannot be claimed by sender {sender}")
        self.wallet = wallet
        self.sender = sender
