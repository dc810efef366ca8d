"""
Exceptions for the ledger module.
"""
from typing import Any, Optional


class LedgerError(Exception):
    """Base exception for ledger node errors."""
    pass


class LedgerConnectionError(LedgerError):
    """Raised when the ledger node cannot be reached."""
    pass


class LedgerRpcError(LedgerError):
    """Raised when the ledger node answers with a JSON-RPC error object."""

    def __init__(self, message: str, code: Optional[Any] = None, data: Optional[Any] = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


class LedgerTimeoutError(LedgerError):
    """Raised when waiting for a transaction exceeds its timeout."""
    pass
