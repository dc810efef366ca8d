"""
Ed25519 transaction signing.
"""
import hashlib
from typing import Protocol

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from ..models import AddressKeyPair
from ..utils import to_b64
from .keys import ED25519_FLAG, address_from_public_key, public_key_from_private

# Intent prefix: scope TransactionData, version V0, app id IOTA
TRANSACTION_INTENT = bytes([0, 0, 0])


class Signer(Protocol):
    """Protocol for custom signers"""
    address: str

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Sign BCS transaction bytes and return the serialized signature"""
        ...


def transaction_digest_to_sign(tx_bytes: bytes) -> bytes:
    """blake2b-256 of the intent message wrapping the transaction bytes."""
    return hashlib.blake2b(TRANSACTION_INTENT + tx_bytes, digest_size=32).digest()


class Ed25519Signer:
    """Signs transactions with a locally held Ed25519 private key"""

    def __init__(self, private_key: bytes):
        if len(private_key) != 32:
            raise ValueError(f"Ed25519 private key must be 32 bytes, got {len(private_key)}")
        self._private_key = Ed25519PrivateKey.from_private_bytes(private_key)
        self.public_key = public_key_from_private(private_key)
        self.address = address_from_public_key(self.public_key)

    @classmethod
    def from_key_pair(cls, key_pair: AddressKeyPair) -> "Ed25519Signer":
        return cls(key_pair.private_key)

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """
        Sign transaction bytes.

        Args:
            tx_bytes: BCS encoded TransactionData

        Returns:
            Base64 of ``flag || signature || public_key``
        """
        signature = self._private_key.sign(transaction_digest_to_sign(tx_bytes))
        return to_b64(bytes([ED25519_FLAG]) + signature + self.public_key)

    def __repr__(self) -> str:
        return f"Ed25519Signer(address={self.address!r})"
