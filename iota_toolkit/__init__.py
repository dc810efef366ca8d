"""
IOTA toolkit - key management, transaction submission and contract
administration for the IOTA ledger.
"""
from .config import GasStationConfig, IotaConfig
from .contracts import ContractObjectResolver, MigrationOrchestrator
from .exceptions import (
    AddressNotFoundError, ContractError, DryRunFailedError, GasReservationError,
    GasReservationExpiredError, GasStationError, GasStationExecutionError,
    GasStationTransactionError, InsufficientFundsError, IotaToolkitError, MigrationError,
    MigrationStateNotFoundError, NftTransactionError, PayloadError, SecretNotFoundError,
    TransactionError, ValidationError, ValueTransactionError
)
from .gas_station import GasStationClient
from .identity import (
    Ed25519Signer, FileSecretStore, InMemorySecretStore, derive_addresses,
    derive_key_pair, find_address, get_seed
)
from .ledger import JsonRpcLedgerClient, LedgerClient
from .log_connector import LoggingConnector, StdlibLoggingConnector
from .models import (
    ContractObjectIds, DryRunResult, GasReservation, NetworkTypes,
    SmartContractDeployments, TransactionOptions, TransactionResponse
)
from .pipeline import TransactionPipeline
from .transactions import Transaction
from .utils import extract_payload_error, is_abort_error
from .version import __version__

__all__ = [
    "IotaConfig",
    "GasStationConfig",
    "TransactionPipeline",
    "GasStationClient",
    "ContractObjectResolver",
    "MigrationOrchestrator",
    "Transaction",
    "LedgerClient",
    "JsonRpcLedgerClient",
    "LoggingConnector",
    "StdlibLoggingConnector",
    "Ed25519Signer",
    "FileSecretStore",
    "InMemorySecretStore",
    "derive_addresses",
    "derive_key_pair",
    "find_address",
    "get_seed",
    "extract_payload_error",
    "is_abort_error",
    "ContractObjectIds",
    "DryRunResult",
    "GasReservation",
    "NetworkTypes",
    "SmartContractDeployments",
    "TransactionOptions",
    "TransactionResponse",
    "IotaToolkitError",
    "ValidationError",
    "AddressNotFoundError",
    "SecretNotFoundError",
    "MigrationStateNotFoundError",
    "PayloadError",
    "InsufficientFundsError",
    "DryRunFailedError",
    "TransactionError",
    "ValueTransactionError",
    "NftTransactionError",
    "GasStationError",
    "GasReservationError",
    "GasReservationExpiredError",
    "GasStationExecutionError",
    "GasStationTransactionError",
    "ContractError",
    "MigrationError",
    "__version__",
]
