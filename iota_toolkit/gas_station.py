"""
Client for the gas station that sponsors transaction fees.

The station reserves some of its own coins for a short time, the owner signs
a transaction paying gas with those coins, and the station co-signs and
executes it.
"""
import logging
import time
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import GasStationConfig
from .exceptions import (
    GasReservationError, GasReservationExpiredError, GasStationExecutionError
)
from .models import GasReservation, TransactionResponse
from .utils import to_b64

logger = logging.getLogger(__name__)

RESERVE_GAS_PATH = "/v1/reserve_gas"
EXECUTE_TX_PATH = "/v1/execute_tx"


class GasStationClient:
    """
    Client for a gas station service.

    Reservation and execution failures raise different errors: a failed
    reservation can simply be requested again, while a failed execution
    needs a fresh reservation and a new signature.
    """

    def __init__(
        self,
        config: GasStationConfig,
        retry_count: int = 3,
        timeout: float = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the GasStationClient

        Args:
            config: Gas station URL, bearer token and reservation duration
            retry_count: Number of retries for HTTP requests
            timeout: Timeout for HTTP requests in seconds
            logger: Optional logger instance
        """
        self.config = config
        self.base_url = config.gas_station_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        self.session = requests.Session()
        retries = Retry(
            total=retry_count,
            backoff_factor=0.5,
            status_forcelist=[502, 503, 504],
            allowed_methods=["POST"],
            raise_on_status=False,
            connect=retry_count,
            read=0,
            other=retry_count
        )
        self.session.mount("http://", HTTPAdapter(max_retries=retries))
        self.session.mount("https://", HTTPAdapter(max_retries=retries))

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.gas_station_auth_token}",
        }

    def _sanitize_request(self, request_data: Dict[str, Any]) -> Dict[str, Any]:
        """Redact the signature and shorten the transaction bytes for logging"""
        result = request_data.copy()
        if "user_sig" in result:
            result["user_sig"] = "[REDACTED]"
        if "tx_bytes" in result:
            result["tx_bytes"] = f"[{len(str(result['tx_bytes']))} chars]"
        return result

    def reserve_gas(self, gas_budget: int) -> GasReservation:
        """
        Reserve sponsor coins covering a gas budget.

        Args:
            gas_budget: Gas budget the coins must cover

        Returns:
            GasReservation with the local expiry time set

        Raises:
            GasReservationError: If the station refuses or cannot be reached
        """
        duration = self.config.reserve_duration_secs
        request_data = {"gas_budget": gas_budget, "reserve_duration_secs": duration}
        self.logger.debug(f"Reserving gas: {request_data}")

        try:
            response = self.session.post(
                f"{self.base_url}{RESERVE_GAS_PATH}",
                json=request_data,
                headers=self._headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            self.logger.error(f"Gas reservation request failed: {e}")
            raise GasReservationError(
                "Gas reservation failed",
                source="GasStationClient",
                properties={"gasBudget": gas_budget},
                cause=e
            ) from e

        reserved_at = time.time()
        if not response.ok:
            self.logger.error(f"Gas reservation failed with status {response.status_code}")
            raise GasReservationError(
                "Gas reservation failed",
                status_code=response.status_code,
                source="GasStationClient",
                properties={"status": response.status_code, "statusText": response.reason}
            )

        try:
            result = response.json()["result"]
            reservation = GasReservation(
                sponsor_address=result["sponsor_address"],
                reservation_id=result["reservation_id"],
                gas_coins=result["gas_coins"],
                expires_at=reserved_at + duration
            )
        except (ValueError, KeyError, TypeError) as e:
            self.logger.error(f"Malformed gas reservation response: {e}")
            raise GasReservationError(
                "Gas reservation response is malformed",
                status_code=response.status_code,
                source="GasStationClient",
                cause=e
            ) from e

        self.logger.info(
            f"Reserved {len(reservation.gas_coins)} gas coins "
            f"(reservation {reservation.reservation_id})"
        )
        return reservation

    def execute_gas_station_transaction(
        self,
        reservation: GasReservation,
        tx_bytes: bytes,
        user_sig: str
    ) -> TransactionResponse:
        """
        Have the station co-sign and execute an owner-signed transaction.

        Args:
            reservation: Reservation whose coins pay gas
            tx_bytes: Built transaction bytes
            user_sig: Owner's serialized signature

        Returns:
            TransactionResponse in the same shape as a direct submission

        Raises:
            GasReservationExpiredError: If the reservation is past its lifetime
            GasStationExecutionError: If the station refuses or cannot be reached
        """
        if reservation.expires_at is not None and time.time() >= reservation.expires_at:
            raise GasReservationExpiredError(
                "Gas reservation has expired",
                source="GasStationClient",
                properties={
                    "reservationId": reservation.reservation_id,
                    "expiresAt": reservation.expires_at,
                }
            )

        request_data = {
            "reservation_id": reservation.reservation_id,
            "tx_bytes": to_b64(tx_bytes),
            "user_sig": user_sig,
        }
        self.logger.debug(f"Executing sponsored transaction: {self._sanitize_request(request_data)}")

        try:
            response = self.session.post(
                f"{self.base_url}{EXECUTE_TX_PATH}",
                json=request_data,
                headers=self._headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            self.logger.error(f"Gas station execution request failed: {e}")
            raise GasStationExecutionError(
                "Gas station execution failed",
                source="GasStationClient",
                properties={"reservationId": reservation.reservation_id},
                cause=e
            ) from e

        if not response.ok:
            self.logger.error(f"Gas station execution failed with status {response.status_code}")
            raise GasStationExecutionError(
                "Gas station execution failed",
                status_code=response.status_code,
                source="GasStationClient",
                properties={
                    "status": response.status_code,
                    "statusText": response.reason,
                    "reservationId": reservation.reservation_id,
                }
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise GasStationExecutionError(
                "Invalid JSON response from gas station",
                status_code=response.status_code,
                source="GasStationClient",
                cause=e
            ) from e

        return normalize_execute_response(payload)


def normalize_execute_response(payload: Dict[str, Any]) -> TransactionResponse:
    """
    Map the station's execution payload onto a TransactionResponse.

    The station nests the digest inside ``effects`` (or returns the effects
    themselves) and reports no events or object changes.

    Raises:
        GasStationExecutionError: If the payload carries an error or no digest
    """
    if not isinstance(payload, dict):
        raise GasStationExecutionError(f"Unexpected gas station response: {payload!r}")
    if payload.get("error"):
        raise GasStationExecutionError(
            str(payload["error"]),
            source="GasStationClient",
            properties={"error": payload["error"]}
        )

    effects = payload.get("effects") or payload
    digest = effects.get("transactionDigest")
    if not digest:
        raise GasStationExecutionError(
            "Gas station response has no transaction digest",
            source="GasStationClient",
            properties={"response": payload}
        )
    logger.info(f"Sponsored transaction executed: {digest}")
    return TransactionResponse(
        digest=digest,
        effects=effects,
        events=[],
        object_changes=[],
        confirmed_local_execution=True
    )
