"""
Ledger module for the IOTA toolkit.

This module defines the ledger client interface and a JSON-RPC
implementation talking to an IOTA node.
"""
from .client import LedgerClient
from .exceptions import LedgerConnectionError, LedgerError, LedgerRpcError, LedgerTimeoutError
from .rpc_client import JsonRpcLedgerClient

__all__ = [
    'LedgerClient',
    'JsonRpcLedgerClient',
    'LedgerError',
    'LedgerConnectionError',
    'LedgerRpcError',
    'LedgerTimeoutError',
]
