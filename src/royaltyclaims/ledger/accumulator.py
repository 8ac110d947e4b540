"""Merkle accumulator over ledger rows, byte-compatible with the on-chain verifier.

Leaves are `keccak256(abi.encodePacked(uint256[3]{index, uint160(address), amount}))`,
hashed once. The tree follows OpenZeppelin's SimpleMerkleTree: leaves sorted by
value, laid out as a flat complete binary tree, inner nodes hashed as sorted pairs.
"""

from collections.abc import Iterable

from eth_utils import keccak

from royaltyclaims.domain.models.claims import LedgerRow, Proof
from royaltyclaims.exceptions import DuplicateLeafIndexError, LeafNotFoundError, LedgerFormatError

_UINT256_MAX = 2**256 - 1


def _word(value: int) -> bytes:
    if value < 0 or value > _UINT256_MAX:
        raise LedgerFormatError(f"Value out of uint256 range: {value}")
    return value.to_bytes(32, "big")


def _address_as_int(address: str) -> int:
    try:
        return int(address, 16)
    except ValueError as e:
        raise LedgerFormatError(f"Invalid address: {address!r}") from e


def encode_leaf(index: int, address: str, amount: int) -> bytes:
    """Leaf hash for one ledger entry. `amount` is the raw ledger integer."""
    packed = _word(index) + _word(_address_as_int(address)) + _word(amount)
    return keccak(packed)


def leaf_for_row(row: LedgerRow) -> str:
    return "0x" + encode_leaf(row.index, row.address, row.amount).hex()


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return bytes.fromhex(value.removeprefix("0x"))


def hash_pair(a: bytes, b: bytes) -> bytes:
    return keccak(a + b) if a <= b else keccak(b + a)


def verify_proof(root: str | bytes, path: Iterable[str | bytes], leaf: str | bytes) -> bool:
    """Recompute the root from a leaf and its sibling path."""
    computed = _to_bytes(leaf)
    for sibling in path:
        computed = hash_pair(computed, _to_bytes(sibling))
    return computed == _to_bytes(root)


class MerkleAccumulator:
    """Binary Merkle tree over a fixed set of 32-byte leaves."""

    def __init__(self, leaves: list[bytes]) -> None:
        if not leaves:
            raise LedgerFormatError("Expected non-zero number of leaves")

        n = len(leaves)
        size = 2 * n - 1
        order = sorted(range(n), key=lambda i: leaves[i])

        tree: list[bytes] = [b""] * size
        tree_index: list[int] = [0] * n
        for position, value_index in enumerate(order):
            tree[size - 1 - position] = leaves[value_index]
            tree_index[value_index] = size - 1 - position
        for i in range(size - 1 - n, -1, -1):
            tree[i] = hash_pair(tree[2 * i + 1], tree[2 * i + 2])

        self._leaves = list(leaves)
        self._tree = tree
        self._tree_index = tree_index
        self._positions: dict[bytes, int] = {}
        for i, leaf in enumerate(leaves):
            self._positions.setdefault(leaf, i)

    @classmethod
    def from_rows(cls, rows: list[LedgerRow]) -> "MerkleAccumulator":
        seen: set[int] = set()
        for row in rows:
            if row.index in seen:
                raise DuplicateLeafIndexError(row.index)
            seen.add(row.index)
        return cls([encode_leaf(r.index, r.address, r.amount) for r in rows])

    def __len__(self) -> int:
        return len(self._leaves)

    @property
    def root(self) -> str:
        return "0x" + self._tree[0].hex()

    def leaf_position(self, leaf: str | bytes) -> int:
        """Position of `leaf` in the input order."""
        value = _to_bytes(leaf)
        if value not in self._positions:
            raise LeafNotFoundError("0x" + value.hex())
        return self._positions[value]

    def proof_for(self, leaf: str | bytes) -> Proof:
        position = self.leaf_position(leaf)
        index = self._tree_index[position]
        path: list[str] = []
        while index > 0:
            sibling = index + 1 if index % 2 == 1 else index - 1
            path.append("0x" + self._tree[sibling].hex())
            index = (index - 1) // 2
        return Proof(leaf_value="0x" + self._leaves[position].hex(), leaf_index=position, path=path)

    def proof_for_row(self, row: LedgerRow) -> Proof:
        return self.proof_for(encode_leaf(row.index, row.address, row.amount))
