"""Tests for the Merkle accumulator — leaf encoding, layout and proofs."""

import pytest
from eth_abi import encode
from eth_utils import keccak

from factories import OTHER_WALLET, WALLET, ledger_rows
from royaltyclaims.exceptions import DuplicateLeafIndexError, LeafNotFoundError, LedgerFormatError
from royaltyclaims.ledger.accumulator import (
    MerkleAccumulator,
    encode_leaf,
    hash_pair,
    leaf_for_row,
    verify_proof,
)


def _rows(n: int):
    return ledger_rows([(i + 1, WALLET if i % 2 else OTHER_WALLET, (i + 1) * 10**18) for i in range(n)])


class TestLeafEncoding:
    def test_matches_abi_packed_words(self):
        expected = keccak(encode(["uint256", "uint256", "uint256"], [5, int(WALLET, 16), 123]))
        assert encode_leaf(5, WALLET, 123) == expected

    def test_address_case_does_not_matter(self):
        upper = "0xF836A500910453A397084ADE41321EE20A5AADE1"
        assert encode_leaf(1, upper, 1) == encode_leaf(1, upper.lower(), 1)

    def test_amount_is_not_rescaled(self):
        assert encode_leaf(1, WALLET, 1) != encode_leaf(1, WALLET, 10**18)

    def test_single_hash(self):
        packed = (1).to_bytes(32, "big") + int(WALLET, 16).to_bytes(32, "big") + (7).to_bytes(32, "big")
        assert encode_leaf(1, WALLET, 7) == keccak(packed)
        assert encode_leaf(1, WALLET, 7) != keccak(keccak(packed))

    def test_invalid_address(self):
        with pytest.raises(LedgerFormatError):
            encode_leaf(1, "not-an-address", 1)

    def test_out_of_range(self):
        with pytest.raises(LedgerFormatError):
            encode_leaf(2**256, WALLET, 1)


class TestTreeLayout:
    def test_single_leaf_root_is_leaf(self):
        leaf = encode_leaf(1, WALLET, 1)
        tree = MerkleAccumulator([leaf])
        assert tree.root == "0x" + leaf.hex()
        assert tree.proof_for(leaf).path == []

    def test_two_leaves_sorted_pair(self):
        a, b = encode_leaf(1, WALLET, 1), encode_leaf(2, WALLET, 2)
        tree = MerkleAccumulator([a, b])
        assert tree.root == "0x" + keccak(min(a, b) + max(a, b)).hex()

    def test_three_leaves_layout(self):
        leaves = [encode_leaf(i, WALLET, i) for i in (1, 2, 3)]
        s0, s1, s2 = sorted(leaves)
        # flat tree of size 5: sorted leaves fill slots 4, 3, 2
        expected = hash_pair(hash_pair(s1, s0), s2)
        assert MerkleAccumulator(leaves).root == "0x" + expected.hex()

    def test_root_independent_of_input_order(self):
        rows = _rows(6)
        assert MerkleAccumulator.from_rows(rows).root == MerkleAccumulator.from_rows(list(reversed(rows))).root

    def test_empty_rejected(self):
        with pytest.raises(LedgerFormatError):
            MerkleAccumulator([])

    def test_duplicate_index_rejected(self):
        rows = ledger_rows([(1, WALLET, 1), (1, OTHER_WALLET, 2)])
        with pytest.raises(DuplicateLeafIndexError):
            MerkleAccumulator.from_rows(rows)


class TestProofs:
    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 7, 8, 13])
    def test_every_leaf_verifies(self, n):
        rows = _rows(n)
        tree = MerkleAccumulator.from_rows(rows)
        assert len(tree) == n
        for position, row in enumerate(rows):
            proof = tree.proof_for_row(row)
            assert proof.leaf_index == position
            assert proof.leaf_value == leaf_for_row(row)
            assert verify_proof(tree.root, proof.path, proof.leaf_value)

    def test_proof_fails_for_other_root(self):
        tree = MerkleAccumulator.from_rows(_rows(4))
        other = MerkleAccumulator.from_rows(_rows(5))
        proof = tree.proof_for_row(_rows(4)[0])
        assert not verify_proof(other.root, proof.path, proof.leaf_value)

    def test_tampered_amount_not_in_tree(self):
        rows = _rows(4)
        tree = MerkleAccumulator.from_rows(rows)
        with pytest.raises(LeafNotFoundError):
            tree.proof_for(encode_leaf(rows[0].index, rows[0].address, rows[0].amount + 1))
