"""
Seed resolution from a secret store.
"""
import logging
from typing import Optional

from mnemonic import Mnemonic

from ..config import DEFAULT_MNEMONIC_SECRET_NAME, DEFAULT_SEED_SECRET_NAME
from ..exceptions import SecretNotFoundError
from ..utils import from_b64
from .secret_store import SecretStore

logger = logging.getLogger(__name__)


def build_mnemonic_key(identity: str, vault_mnemonic_id: Optional[str] = None) -> str:
    """Secret key under which an identity's mnemonic is stored."""
    return f"{identity}/{vault_mnemonic_id or DEFAULT_MNEMONIC_SECRET_NAME}"


def build_seed_key(identity: str, vault_seed_id: Optional[str] = None) -> str:
    """Secret key under which an identity's base64 seed is stored."""
    return f"{identity}/{vault_seed_id or DEFAULT_SEED_SECRET_NAME}"


def mnemonic_to_seed(mnemonic: str, passphrase: str = "") -> bytes:
    """BIP-39 seed for a mnemonic (PBKDF2-HMAC-SHA512, 2048 rounds)."""
    return Mnemonic.to_seed(mnemonic, passphrase)


def get_seed(
    secret_store: SecretStore,
    identity: str,
    vault_seed_id: Optional[str] = None,
    vault_mnemonic_id: Optional[str] = None
) -> bytes:
    """
    Resolve the root seed of an identity.

    The base64 seed secret is tried first since it skips mnemonic
    stretching; any failure there falls back to the mnemonic secret.

    Args:
        secret_store: Store holding the identity's secrets
        identity: Identity whose seed is requested
        vault_seed_id: Secret id of the seed
        vault_mnemonic_id: Secret id of the mnemonic

    Returns:
        Seed bytes

    Raises:
        SecretNotFoundError: If neither secret can be read
    """
    seed_key = build_seed_key(identity, vault_seed_id)
    try:
        seed = from_b64(secret_store.get_secret(seed_key))
        if seed:
            return seed
        logger.debug("Seed secret is empty, falling back to mnemonic")
    except Exception as e:
        logger.debug(f"Seed secret unavailable ({type(e).__name__}), falling back to mnemonic")

    mnemonic_key = build_mnemonic_key(identity, vault_mnemonic_id)
    try:
        mnemonic = secret_store.get_secret(mnemonic_key)
    except Exception as e:
        raise SecretNotFoundError(
            "Neither seed nor mnemonic found for identity",
            source="SeedResolver",
            properties={"identity": identity, "seedKey": seed_key, "mnemonicKey": mnemonic_key},
            cause=e
        ) from e
    return mnemonic_to_seed(mnemonic)
