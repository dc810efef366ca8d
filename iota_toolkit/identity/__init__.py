"""
Identity module for the IOTA toolkit.

This module handles seed resolution from a secret store, deterministic
key and address derivation, address recovery, and transaction signing.
"""
from .keys import (
    address_from_public_key, derive_address, derive_addresses,
    derive_key_pair, derivation_path, find_address
)
from .secret_store import FileSecretStore, InMemorySecretStore, SecretStore
from .seed import build_mnemonic_key, build_seed_key, get_seed, mnemonic_to_seed
from .signer import Ed25519Signer, Signer

__all__ = [
    'address_from_public_key',
    'derive_address',
    'derive_addresses',
    'derive_key_pair',
    'derivation_path',
    'find_address',
    'FileSecretStore',
    'InMemorySecretStore',
    'SecretStore',
    'build_mnemonic_key',
    'build_seed_key',
    'get_seed',
    'mnemonic_to_seed',
    'Ed25519Signer',
    'Signer',
]
