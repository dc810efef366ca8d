"""
Ledger client abstraction.

This module defines the interface the toolkit needs from a ledger node:
object and transaction queries, simulation, execution and the
read-after-write wait. Implementations translate these calls to a wire
protocol (see :mod:`iota_toolkit.ledger.rpc_client`).
"""
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .exceptions import LedgerRpcError, LedgerTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_RESPONSE_OPTIONS = {
    "showEffects": True,
    "showEvents": True,
    "showObjectChanges": True,
}


class LedgerClient(ABC):
    """
    Abstract base class for ledger clients.

    Every method is a single blocking round trip and returns the node's
    response payload as a dictionary in the node's camelCase wire format.
    """

    @abstractmethod
    def get_object(
        self,
        object_id: str,
        show_content: bool = True,
        show_type: bool = True,
        show_owner: bool = False
    ) -> Dict[str, Any]:
        """
        Fetch an object.

        Returns:
            ``{"data": {...}}`` on success or ``{"error": {"code": ...}}``
        """
        pass

    @abstractmethod
    def get_owned_objects(
        self,
        owner: str,
        struct_type: Optional[str] = None,
        show_content: bool = True,
        show_type: bool = True,
        cursor: Optional[str] = None,
        limit: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        List objects owned by an address, optionally filtered by struct type.

        Returns:
            ``{"data": [...], "nextCursor": ..., "hasNextPage": bool}``
        """
        pass

    @abstractmethod
    def query_transaction_blocks(
        self,
        from_address: str,
        show_object_changes: bool = True,
        show_effects: bool = True,
        limit: int = 20,
        descending: bool = True,
        cursor: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        List transactions sent by an address.

        Returns:
            ``{"data": [...], "nextCursor": ..., "hasNextPage": bool}``
        """
        pass

    @abstractmethod
    def dry_run_transaction_block(self, tx_bytes: bytes) -> Dict[str, Any]:
        """Simulate a fully built transaction without committing it."""
        pass

    @abstractmethod
    def dev_inspect_transaction_block(self, sender: str, tx_kind_bytes: bytes) -> Dict[str, Any]:
        """Run a transaction kind in inspection mode and return its results."""
        pass

    @abstractmethod
    def execute_transaction_block(
        self,
        tx_bytes: bytes,
        signatures: List[str],
        options: Optional[Dict[str, bool]] = None,
        request_type: str = "WaitForLocalExecution"
    ) -> Dict[str, Any]:
        """Submit a signed transaction."""
        pass

    @abstractmethod
    def get_transaction_block(self, digest: str, options: Optional[Dict[str, bool]] = None) -> Dict[str, Any]:
        """Fetch a transaction by digest."""
        pass

    @abstractmethod
    def get_reference_gas_price(self) -> int:
        """Current reference gas price."""
        pass

    @abstractmethod
    def get_coins(self, owner: str, coin_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Coins of a type owned by an address."""
        pass

    def wait_for_transaction(
        self,
        digest: str,
        timeout: float = 60,
        options: Optional[Dict[str, bool]] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL
    ) -> Dict[str, Any]:
        """
        Poll until a transaction is queryable.

        Args:
            digest: Transaction digest
            timeout: Seconds to wait before giving up
            options: Visibility flags for the returned response
            poll_interval: Seconds between polls

        Returns:
            The transaction response

        Raises:
            LedgerTimeoutError: If the transaction is not queryable in time
        """
        deadline = time.monotonic() + timeout
        options = options or dict(DEFAULT_RESPONSE_OPTIONS)
        last_error: Optional[Exception] = None

        while True:
            try:
                return self.get_transaction_block(digest, options)
            except LedgerRpcError as e:
                # Not yet indexed
                last_error = e
                logger.debug(f"Transaction {digest} not yet available: {e}")

            if time.monotonic() >= deadline:
                raise LedgerTimeoutError(
                    f"Transaction {digest} not available after {timeout}s: {last_error}"
                )
            time.sleep(poll_interval)
