"""
JSON-RPC implementation of the ledger client.
"""
import itertools
import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..utils import to_b64
from .client import DEFAULT_RESPONSE_OPTIONS, LedgerClient
from .exceptions import LedgerConnectionError, LedgerError, LedgerRpcError

logger = logging.getLogger(__name__)


class JsonRpcLedgerClient(LedgerClient):
    """
    Ledger client speaking the node's JSON-RPC API over HTTP.

    Requests are sent through a ``requests.Session`` that retries connection
    failures and 5xx responses with exponential backoff.
    """

    def __init__(self, rpc_url: str, retry_count: int = 3, timeout: float = 30):
        """
        Initialize the client

        Args:
            rpc_url: JSON-RPC endpoint URL
            retry_count: Number of retries for HTTP requests
            timeout: Timeout for HTTP requests in seconds
        """
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._ids = itertools.count(1)

        self.session = requests.Session()
        retries = Retry(
            total=retry_count,
            backoff_factor=0.5,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["POST"],
            raise_on_status=False,
            connect=retry_count,
            read=retry_count,
            other=retry_count
        )
        self.session.mount("http://", HTTPAdapter(max_retries=retries))
        self.session.mount("https://", HTTPAdapter(max_retries=retries))

    def call(self, method: str, params: List[Any]) -> Any:
        """
        Invoke a JSON-RPC method.

        Args:
            method: Method name
            params: Positional parameters

        Returns:
            The ``result`` member of the response

        Raises:
            LedgerConnectionError: If the node cannot be reached or answers non-JSON
            LedgerRpcError: If the node answers with an error object
        """
        request_id = next(self._ids)
        logger.debug(f"RPC {method} (id={request_id})")
        try:
            response = self.session.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "id": request_id, "method": method, "params": params},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"RPC {method} request failed: {e}")
            raise LedgerConnectionError(f"RPC {method} failed: {str(e)}") from e

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON response for RPC {method}: {e}")
            raise LedgerConnectionError(f"Invalid JSON response for RPC {method}: {str(e)}") from e

        if not isinstance(payload, dict):
            raise LedgerError(f"Unexpected RPC response for {method}: {payload!r}")
        if payload.get("error"):
            error = payload["error"]
            raise LedgerRpcError(
                str(error.get("message", "Unknown RPC error")),
                code=error.get("code"),
                data=error.get("data")
            )
        return payload.get("result")

    def get_object(
        self,
        object_id: str,
        show_content: bool = True,
        show_type: bool = True,
        show_owner: bool = False
    ) -> Dict[str, Any]:
        return self.call("iota_getObject", [
            object_id,
            {"showContent": show_content, "showType": show_type, "showOwner": show_owner}
        ])

    def get_owned_objects(
        self,
        owner: str,
        struct_type: Optional[str] = None,
        show_content: bool = True,
        show_type: bool = True,
        cursor: Optional[str] = None,
        limit: Optional[int] = None
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"options": {"showContent": show_content, "showType": show_type}}
        if struct_type:
            query["filter"] = {"StructType": struct_type}
        return self.call("iotax_getOwnedObjects", [owner, query, cursor, limit])

    def query_transaction_blocks(
        self,
        from_address: str,
        show_object_changes: bool = True,
        show_effects: bool = True,
        limit: int = 20,
        descending: bool = True,
        cursor: Optional[str] = None
    ) -> Dict[str, Any]:
        query = {
            "filter": {"FromAddress": from_address},
            "options": {"showObjectChanges": show_object_changes, "showEffects": show_effects}
        }
        return self.call("iotax_queryTransactionBlocks", [query, cursor, limit, descending])

    def dry_run_transaction_block(self, tx_bytes: bytes) -> Dict[str, Any]:
        return self.call("iota_dryRunTransactionBlock", [to_b64(tx_bytes)])

    def dev_inspect_transaction_block(self, sender: str, tx_kind_bytes: bytes) -> Dict[str, Any]:
        return self.call("iota_devInspectTransactionBlock", [sender, to_b64(tx_kind_bytes), None, None])

    def execute_transaction_block(
        self,
        tx_bytes: bytes,
        signatures: List[str],
        options: Optional[Dict[str, bool]] = None,
        request_type: str = "WaitForLocalExecution"
    ) -> Dict[str, Any]:
        return self.call("iota_executeTransactionBlock", [
            to_b64(tx_bytes),
            signatures,
            options or dict(DEFAULT_RESPONSE_OPTIONS),
            request_type
        ])

    def get_transaction_block(self, digest: str, options: Optional[Dict[str, bool]] = None) -> Dict[str, Any]:
        return self.call("iota_getTransactionBlock", [digest, options or dict(DEFAULT_RESPONSE_OPTIONS)])

    def get_reference_gas_price(self) -> int:
        return int(self.call("iotax_getReferenceGasPrice", []))

    def get_coins(self, owner: str, coin_type: Optional[str] = None) -> List[Dict[str, Any]]:
        coins: List[Dict[str, Any]] = []
        cursor = None
        while True:
            page = self.call("iotax_getCoins", [owner, coin_type, cursor, None])
            coins.extend(page.get("data") or [])
            if not page.get("hasNextPage"):
                return coins
            cursor = page.get("nextCursor")

    def close(self) -> None:
        self.session.close()
