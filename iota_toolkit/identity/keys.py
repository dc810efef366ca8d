"""
Deterministic key and address derivation.

Keys follow SLIP-10 Ed25519 along the BIP-44 path
``m/44'/{coin_type}'/{account}'/{change}'/{address_index}'`` where every
level is hardened. Everything here is a pure function of its arguments.
"""
import hashlib
import logging
from typing import List

from bip_utils import Bip32Slip10Ed25519
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from ..config import DEFAULT_COIN_TYPE
from ..exceptions import AddressNotFoundError, ValidationError
from ..models import AddressKeyPair, KeyPair
from ..utils import require_int

logger = logging.getLogger(__name__)

# Signature scheme flag prepended to the public key before hashing
ED25519_FLAG = 0x00
BIP44_PURPOSE = 44


def derivation_path(coin_type: int, account_index: int, is_internal: bool, address_index: int) -> str:
    """Build the hardened BIP-44 path string."""
    change = 1 if is_internal else 0
    return f"m/{BIP44_PURPOSE}'/{coin_type}'/{account_index}'/{change}'/{address_index}'"


def public_key_from_private(private_key: bytes) -> bytes:
    """Return the raw 32-byte Ed25519 public key for a 32-byte private key."""
    return Ed25519PrivateKey.from_private_bytes(private_key).public_key().public_bytes(
        Encoding.Raw, PublicFormat.Raw
    )


def address_from_public_key(public_key: bytes) -> str:
    """
    Derive the ledger address of an Ed25519 public key.

    Args:
        public_key: Raw 32-byte public key

    Returns:
        0x-prefixed hex of ``blake2b-256(flag || public_key)``
    """
    if len(public_key) != 32:
        raise ValidationError(f"Ed25519 public key must be 32 bytes, got {len(public_key)}")
    digest = hashlib.blake2b(bytes([ED25519_FLAG]) + public_key, digest_size=32).digest()
    return "0x" + digest.hex()


def _check_seed(seed: bytes) -> bytes:
    if not isinstance(seed, (bytes, bytearray)) or len(seed) < 16:
        raise ValidationError("Seed must be at least 16 bytes")
    return bytes(seed)


def derive_key_pair(
    seed: bytes,
    coin_type: int = DEFAULT_COIN_TYPE,
    account_index: int = 0,
    address_index: int = 0,
    is_internal: bool = False
) -> KeyPair:
    """
    Derive the key pair at a path.

    Args:
        seed: Root seed bytes
        coin_type: SLIP-44 coin type
        account_index: Account index
        address_index: Address index
        is_internal: Whether to use the internal (change) chain

    Returns:
        KeyPair with raw 32-byte private and public keys

    Raises:
        ValidationError: If an index is not a non-negative integer
    """
    require_int("coin_type", coin_type)
    require_int("account_index", account_index)
    require_int("address_index", address_index)
    seed = _check_seed(seed)

    path = derivation_path(coin_type, account_index, bool(is_internal), address_index)
    node = Bip32Slip10Ed25519.FromSeed(seed).DerivePath(path)
    private_key = node.PrivateKey().Raw().ToBytes()
    return KeyPair(private_key=private_key, public_key=public_key_from_private(private_key))


def derive_address(
    seed: bytes,
    coin_type: int = DEFAULT_COIN_TYPE,
    account_index: int = 0,
    address_index: int = 0,
    is_internal: bool = False
) -> AddressKeyPair:
    """Derive the key pair at a path together with its address."""
    key_pair = derive_key_pair(seed, coin_type, account_index, address_index, is_internal)
    return AddressKeyPair(
        address=address_from_public_key(key_pair.public_key),
        private_key=key_pair.private_key,
        public_key=key_pair.public_key
    )


def derive_addresses(
    seed: bytes,
    coin_type: int,
    account_index: int,
    start_index: int,
    count: int,
    is_internal: bool = False
) -> List[str]:
    """
    Derive ``count`` consecutive addresses starting at ``start_index``.

    Returns:
        Ordered list of exactly ``count`` addresses
    """
    require_int("coin_type", coin_type)
    require_int("account_index", account_index)
    require_int("start_index", start_index)
    require_int("count", count)

    return [
        derive_address(seed, coin_type, account_index, index, is_internal).address
        for index in range(start_index, start_index + count)
    ]


def find_address(
    max_scan_range: int,
    coin_type: int,
    seed: bytes,
    address: str,
    account_index: int = 0,
    is_internal: bool = False
) -> AddressKeyPair:
    """
    Recover the key pair for a known address by scanning address indexes.

    Indexes ``0 .. max_scan_range - 1`` are derived in order and the first
    exact match is returned.

    Args:
        max_scan_range: Number of address indexes to try
        coin_type: SLIP-44 coin type
        seed: Root seed bytes
        address: Address to find
        account_index: Account to scan (default 0)
        is_internal: Scan the internal chain instead of the external one

    Returns:
        The matching address with its key pair

    Raises:
        AddressNotFoundError: If the address is not within the scan range
    """
    require_int("max_scan_range", max_scan_range)

    for index in range(max_scan_range):
        candidate = derive_address(seed, coin_type, account_index, index, is_internal)
        if candidate.address == address:
            logger.debug("Recovered address %s… at index %d", candidate.address[:10], index)
            return candidate

    raise AddressNotFoundError(
        "Address not found within scan range",
        source="KeyDerivation",
        properties={"address": address, "maxScanRange": max_scan_range}
    )
