"""
Exceptions for the IOTA toolkit.

Every public operation raises exactly one of these, wrapping the classified
root cause in ``cause`` and keeping diagnostic context in ``properties``.
"""
from typing import Any, Dict, Optional


class IotaToolkitError(Exception):
    """Base exception for all toolkit errors."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        self.message = message
        self.source = source
        self.properties = properties or {}
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        text = self.message
        if self.cause is not None:
            text = f"{text}: {self.cause}"
        return text


class ValidationError(IotaToolkitError, ValueError):
    """Raised when input has the wrong shape or range."""
    pass


class NotFoundError(IotaToolkitError):
    """Raised when a required item cannot be located."""
    pass


class SecretNotFoundError(NotFoundError):
    """Raised when neither the seed nor the mnemonic secret exists."""
    pass


class AddressNotFoundError(NotFoundError):
    """Raised when an address is not derivable within the scan range."""
    pass


class AdminCapNotFoundError(NotFoundError):
    """Raised when the admin address owns no AdminCap for the contract."""
    pass


class MigrationStateNotFoundError(NotFoundError):
    """Raised when the MigrationState object cannot be discovered."""
    pass


class ObjectNotReadableError(NotFoundError):
    """Raised when an object's content is missing or malformed."""
    pass


class PayloadError(IotaToolkitError):
    """
    Uniform descriptor of an error reported by a remote service.

    Attributes:
        name: Short name of the error family
        message: Human readable detail
    """

    def __init__(self, message: str, name: str = "IOTA", **kwargs):
        self.name = name
        super().__init__(message, **kwargs)


class InsufficientFundsError(PayloadError):
    """Raised when the ledger reports that gas could not be covered."""

    def __init__(self, message: str = "insufficient funds", **kwargs):
        super().__init__(message, name="InsufficientFunds", **kwargs)


class DryRunFailedError(IotaToolkitError):
    """Raised when a simulated execution does not succeed."""
    pass


class TransactionError(IotaToolkitError):
    """Raised when building, signing, submitting or confirming fails."""
    pass


class ValueTransactionError(TransactionError):
    """Raised when a value transfer fails."""
    pass


class NftTransactionError(TransactionError):
    """Raised when an NFT transaction fails."""
    pass


class GasStationError(IotaToolkitError):
    """Base exception for gas station errors."""
    pass


class GasReservationError(GasStationError):
    """Raised when the gas station refuses a reservation."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        self.status_code = status_code
        super().__init__(message, **kwargs)


class GasReservationExpiredError(GasStationError):
    """Raised when execution is attempted with a reservation past its lifetime."""
    pass


class GasStationExecutionError(GasStationError):
    """Raised when the gas station refuses to co-sign or execute."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        self.status_code = status_code
        super().__init__(message, **kwargs)


class GasStationTransactionError(GasStationError, TransactionError):
    """Raised when a sponsored submission fails at any stage."""
    pass


class ContractError(IotaToolkitError):
    """Base exception for smart contract administration errors."""
    pass


class ContractObjectResolutionError(ContractError):
    """Raised when the AdminCap or MigrationState ids cannot be resolved."""
    pass


class MigrationError(ContractError):
    """Raised when a migration call or toggle fails."""
    pass


class ContractVersionError(ContractError):
    """Raised when the contract or object version cannot be determined."""
    pass
