"""Signed claim contexts (SignedContextV1).

The context is `[index, amount, *proof]`, each packed as a 32-byte word.
Its keccak hash is signed as an EIP-191 personal message, matching
`ECDSA.toEthSignedMessageHash(keccak256(abi.encodePacked(context)))`.
"""

from typing import Protocol

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_utils import keccak

from royaltyclaims.domain.models.claims import LedgerRow, Proof, SignedAuthorization
from royaltyclaims.exceptions import ConfigurationError


class MessageSigner(Protocol):
    @property
    def address(self) -> str: ...

    def sign_digest(self, digest: bytes) -> bytes:
        """Sign `digest` as an EIP-191 personal message. Returns r || s || v."""
        ...


class LocalAccountSigner:
    """MessageSigner backed by a configured private key."""

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    @classmethod
    def from_key(cls, private_key: str) -> "LocalAccountSigner":
        if not private_key:
            raise ConfigurationError("Signer private key is not configured")
        try:
            return cls(Account.from_key(private_key))
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid signer private key: {e}") from e

    @property
    def address(self) -> str:
        return self._account.address

    def sign_digest(self, digest: bytes) -> bytes:
        signed = self._account.sign_message(encode_defunct(primitive=digest))
        return bytes(signed.signature)


def pack_context(context: list[int]) -> bytes:
    return b"".join(value.to_bytes(32, "big") for value in context)


def context_hash(context: list[int]) -> bytes:
    return keccak(pack_context(context))


def build_context(row: LedgerRow, proof: Proof) -> list[int]:
    return [row.index, row.amount, *(int(node, 16) for node in proof.path)]


def sign_context(signer: MessageSigner, context: list[int]) -> SignedAuthorization:
    signature = signer.sign_digest(context_hash(context))
    return SignedAuthorization(signer=signer.address, context=list(context), signature="0x" + signature.hex())


def recover_signer(authorization: SignedAuthorization) -> str:
    """Address that produced `authorization.signature` over its context."""
    message = encode_defunct(primitive=context_hash(authorization.context))
    return Account.recover_message(message, signature=bytes.fromhex(authorization.signature.removeprefix("0x")))
