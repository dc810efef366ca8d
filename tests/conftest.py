"""
Pytest fixtures for the IOTA toolkit tests.
"""
import time
from unittest.mock import MagicMock

import base58
import pytest

from iota_toolkit.config import IotaConfig
from iota_toolkit.identity.keys import derive_address
from iota_toolkit.identity.secret_store import InMemorySecretStore
from iota_toolkit.identity.seed import mnemonic_to_seed
from iota_toolkit.ledger.client import LedgerClient

TEST_IDENTITY = "alice"
TEST_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
TEST_RPC_URL = "https://rpc.example.com"
TEST_GAS_STATION_URL = "https://gas.example.com"
TEST_GAS_STATION_TOKEN = "test-token"
TEST_PACKAGE_ID = "0x" + "ab" * 32
TEST_SPONSOR = "0x" + "5a" * 32
TEST_RECIPIENT = "0x" + "0c" * 32
TEST_DIGEST = base58.b58encode(bytes([7]) * 32).decode()


def make_digest(n: int) -> str:
    """Base58 digest of 32 identical bytes."""
    return base58.b58encode(bytes([n % 256]) * 32).decode()


def object_id(n: int) -> str:
    return "0x" + format(n, "064x")


def coin(n: int, balance: int = 10**10) -> dict:
    """A coin entry as returned by get_coins."""
    return {
        "coinType": "0x2::iota::IOTA",
        "coinObjectId": object_id(n),
        "version": str(n),
        "digest": make_digest(n),
        "balance": str(balance),
    }


def owned_object(n: int) -> dict:
    """A get_object response for an address-owned object."""
    return {
        "data": {
            "objectId": object_id(n),
            "version": str(n),
            "digest": make_digest(n),
            "owner": {"AddressOwner": object_id(1)},
        }
    }


def shared_object(n: int, initial_shared_version: int = 3) -> dict:
    """A get_object response for a shared object."""
    return {
        "data": {
            "objectId": object_id(n),
            "version": str(n),
            "digest": make_digest(n),
            "owner": {"Shared": {"initial_shared_version": initial_shared_version}},
        }
    }


def tx_response(digest: str = TEST_DIGEST, status: str = "success", error: str = None, **extra) -> dict:
    """An execute/get transaction response."""
    effects = {"status": {"status": status}, "transactionDigest": digest}
    if error:
        effects["status"]["error"] = error
    response = {"digest": digest, "effects": effects, "events": [], "objectChanges": []}
    response.update(extra)
    return response


def dry_run_response(status: str = "success", error: str = None) -> dict:
    effects = {
        "status": {"status": status},
        "gasUsed": {
            "computationCost": "1000",
            "computationCostBurned": "1000",
            "storageCost": "2000",
            "storageRebate": "500",
            "nonRefundableStorageFee": "5",
        },
    }
    if error:
        effects["status"]["error"] = error
    return {"effects": effects, "events": [{"type": "e"}], "objectChanges": [], "balanceChanges": None}


# Make time.sleep instantaneous so polling doesn't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(scope="session")
def seed():
    """Seed of the test mnemonic"""
    return mnemonic_to_seed(TEST_MNEMONIC)


@pytest.fixture(scope="session")
def owner_address(seed):
    """Address at index 2 of the test seed"""
    return derive_address(seed, 4218, 0, 2).address


@pytest.fixture(scope="session")
def controller_address(seed):
    """Address at index 0 of the test seed"""
    return derive_address(seed, 4218, 0, 0).address


@pytest.fixture
def secret_store():
    return InMemorySecretStore({f"{TEST_IDENTITY}/mnemonic": TEST_MNEMONIC})


@pytest.fixture
def config():
    return IotaConfig(network="testnet", rpc_url=TEST_RPC_URL, max_address_scan_range=5)


@pytest.fixture
def ledger():
    """Ledger client mock answering the calls made while building and submitting"""
    client = MagicMock(spec=LedgerClient)
    client.get_reference_gas_price.return_value = 1000
    client.get_coins.return_value = [coin(100)]
    client.get_object.side_effect = lambda oid, **_kw: owned_object(int(oid, 16))
    client.dry_run_transaction_block.return_value = dry_run_response()
    client.execute_transaction_block.return_value = tx_response()
    client.wait_for_transaction.return_value = tx_response(
        events=[{"type": "confirmed"}], objectChanges=[{"type": "created"}]
    )
    return client
