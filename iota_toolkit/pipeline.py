"""
TransactionPipeline - build, dry run, sign, submit and confirm transactions.
"""
import logging
from typing import Any, Dict, Optional, Union

from .config import IotaConfig
from .exceptions import (
    ContractError, DryRunFailedError, GasStationTransactionError, IotaToolkitError,
    NftTransactionError, TransactionError, ValueTransactionError
)
from .gas_station import GasStationClient
from .identity.keys import derive_address, find_address
from .identity.secret_store import SecretStore
from .identity.seed import get_seed
from .identity.signer import Ed25519Signer, Signer
from .ledger.client import LedgerClient
from .log_connector import LoggingConnector, emit, make_entry
from .models import (
    CreatedObject, DryRunResult, TransactionCosts, TransactionOptions, TransactionResponse
)
from .transactions import Transaction
from .utils import extract_payload_error

logger = logging.getLogger(__name__)

SOURCE = "TransactionPipeline"
NOT_EXISTS_CODE = "notExists"


def classify(error: BaseException) -> IotaToolkitError:
    """Keep toolkit errors as they are, classify everything else."""
    if isinstance(error, IotaToolkitError):
        return error
    return extract_payload_error(error)


class DirectSubmit:
    """Owner pays gas: build, sign, execute and optionally confirm."""

    def __init__(self, ledger_client: LedgerClient, config: IotaConfig):
        self.ledger_client = ledger_client
        self.config = config

    def submit(self, transaction: Transaction, signer: Signer, options: TransactionOptions) -> TransactionResponse:
        transaction.set_sender(signer.address)
        if transaction.gas_budget is None:
            transaction.set_gas_budget(self.config.gas_budget)

        tx_bytes = transaction.build(self.ledger_client)
        signature = signer.sign_transaction(tx_bytes)
        raw = self.ledger_client.execute_transaction_block(
            tx_bytes,
            [signature],
            options=options.response_options(),
            request_type="WaitForLocalExecution"
        )
        response = TransactionResponse.from_rpc(raw)
        logger.info(f"Transaction submitted: {response.digest}")

        if options.wait_for_confirmation:
            confirmed = self.ledger_client.wait_for_transaction(
                response.digest,
                timeout=self.config.inclusion_timeout_seconds,
                options=options.response_options()
            )
            response = TransactionResponse.from_rpc(confirmed)
            logger.debug(f"Transaction confirmed: {response.digest}")
        return response


class SponsoredSubmit:
    """Gas station pays gas: reserve, build with the sponsor's coins, sign, let the station execute."""

    def __init__(self, gas_station: GasStationClient, ledger_client: LedgerClient, gas_budget: int):
        self.gas_station = gas_station
        self.ledger_client = ledger_client
        self.gas_budget = gas_budget

    def submit(self, transaction: Transaction, signer: Signer, options: TransactionOptions) -> TransactionResponse:
        reservation = self.gas_station.reserve_gas(self.gas_budget)

        transaction.set_sender(signer.address)
        transaction.set_gas_owner(reservation.sponsor_address)
        transaction.set_gas_payment(reservation.gas_coins)
        transaction.set_gas_budget(self.gas_budget)

        tx_bytes = transaction.build(self.ledger_client)
        signature = signer.sign_transaction(tx_bytes)
        return self.gas_station.execute_gas_station_transaction(reservation, tx_bytes, signature)


SubmitStrategy = Union[DirectSubmit, SponsoredSubmit]


class TransactionPipeline:
    """
    Runs transactions on behalf of identities whose keys live in a secret store.

    A transaction goes through build, an optional dry run, signing,
    submission and an optional confirmation wait, strictly in that order.
    When the configuration carries a gas station, submission is sponsored.
    """

    def __init__(
        self,
        config: IotaConfig,
        ledger_client: LedgerClient,
        secret_store: SecretStore,
        logging_connector: Optional[LoggingConnector] = None,
        gas_station: Optional[GasStationClient] = None
    ):
        """
        Initialize the pipeline

        Args:
            config: Network and signing configuration
            ledger_client: Client used for every ledger round trip
            secret_store: Store holding identity seeds and mnemonics
            logging_connector: Receives dry run cost reports
            gas_station: Gas station client; created from ``config.gas_station`` when omitted
        """
        self.config = config
        self.ledger_client = ledger_client
        self.secret_store = secret_store
        self.logging_connector = logging_connector

        if gas_station is None and config.gas_station is not None:
            gas_station = GasStationClient(
                config.gas_station,
                retry_count=config.retry_count,
                timeout=config.request_timeout
            )
        self.gas_station = gas_station

        self.submitter: SubmitStrategy
        if gas_station is not None:
            self.submitter = SponsoredSubmit(gas_station, ledger_client, config.gas_budget)
        else:
            self.submitter = DirectSubmit(ledger_client, config)

    @property
    def is_sponsored(self) -> bool:
        return isinstance(self.submitter, SponsoredSubmit)

    def get_seed(self, identity: str) -> bytes:
        return get_seed(
            self.secret_store,
            identity,
            vault_seed_id=self.config.vault_seed_id,
            vault_mnemonic_id=self.config.vault_mnemonic_id
        )

    def get_owner_signer(self, identity: str, owner: str) -> Ed25519Signer:
        """
        Recover the signer for an address controlled by an identity.

        Raises:
            SecretNotFoundError: If the identity has no seed or mnemonic
            AddressNotFoundError: If the owner is not within the scan range
        """
        seed = self.get_seed(identity)
        key_pair = find_address(
            self.config.max_address_scan_range,
            self.config.coin_type,
            seed,
            owner
        )
        return Ed25519Signer.from_key_pair(key_pair)

    def get_package_controller_address(self, identity: str, address_index: int = 0) -> str:
        """
        Address that controls an identity's contract packages.

        Args:
            identity: Identity owning the packages
            address_index: Address index on account 0, external chain

        Returns:
            The controller address
        """
        seed = self.get_seed(identity)
        return derive_address(seed, self.config.coin_type, 0, address_index).address

    def dry_run_transaction(self, transaction: Transaction, sender: str, operation: str) -> DryRunResult:
        """
        Simulate a transaction and report its costs.

        Args:
            transaction: Transaction to simulate
            sender: Address the transaction runs as
            operation: Label attached to the cost report

        Returns:
            DryRunResult with status, costs and simulated changes

        Raises:
            DryRunFailedError: If the simulation fails or does not succeed
        """
        try:
            transaction.set_sender(sender)
            if transaction.gas_budget is None:
                transaction.set_gas_budget(self.config.gas_budget)
            tx_bytes = transaction.build(self.ledger_client)
            simulated = self.ledger_client.dry_run_transaction_block(tx_bytes)
        except Exception as e:
            logger.error(f"Dry run of '{operation}' failed: {e}")
            raise DryRunFailedError(
                "Dry run failed",
                source=SOURCE,
                properties={"operation": operation},
                cause=classify(e)
            ) from e

        effects = simulated.get("effects") or {}
        status = (effects.get("status") or {}).get("status")
        if status != "success":
            error = (effects.get("status") or {}).get("error")
            logger.error(f"Dry run of '{operation}' did not succeed: {error}")
            raise DryRunFailedError(
                "Dry run failed",
                source=SOURCE,
                properties={"operation": operation, "error": error}
            )

        gas_used = effects.get("gasUsed") or {}
        result = DryRunResult(
            status=status,
            costs=TransactionCosts.model_validate({
                key: str(gas_used.get(key, "0"))
                for key in (
                    "computationCost", "computationCostBurned", "storageCost",
                    "storageRebate", "nonRefundableStorageFee"
                )
            }),
            events=simulated.get("events") or [],
            balance_changes=simulated.get("balanceChanges") or [],
            object_changes=simulated.get("objectChanges") or []
        )

        emit(self.logging_connector, make_entry(
            "info",
            SOURCE,
            "transactionCosts",
            {"operation": operation, **result.model_dump(by_alias=True)}
        ))
        return result

    def wait_for_transaction_confirmation(
        self,
        digest: str,
        options: Optional[TransactionOptions] = None
    ) -> TransactionResponse:
        """Wait until a digest is queryable, bounded by the inclusion timeout."""
        options = options or TransactionOptions()
        confirmed = self.ledger_client.wait_for_transaction(
            digest,
            timeout=self.config.inclusion_timeout_seconds,
            options=options.response_options()
        )
        return TransactionResponse.from_rpc(confirmed)

    def prepare_and_post_transaction(
        self,
        identity: str,
        owner: str,
        transaction: Transaction,
        options: Optional[TransactionOptions] = None
    ) -> TransactionResponse:
        """
        Sign a transaction with the owner's key and submit it.

        Args:
            identity: Identity whose secrets hold the owner's key
            owner: Sender address
            transaction: Transaction with its commands added
            options: Visibility flags, confirmation and dry run label

        Returns:
            The normalized transaction response

        Raises:
            DryRunFailedError: If the requested dry run fails; nothing is signed
            TransactionError: If building, signing, submission or confirmation fails
            GasStationTransactionError: The same, on the sponsored path
        """
        options = options or TransactionOptions()

        # The gas owner differs on the sponsored path, so only direct submissions dry run
        if options.dry_run_label and not self.is_sponsored:
            self.dry_run_transaction(transaction, owner, options.dry_run_label)

        try:
            signer = self.get_owner_signer(identity, owner)
            return self.submitter.submit(transaction, signer, options)
        except Exception as e:
            error_class = GasStationTransactionError if self.is_sponsored else TransactionError
            logger.error(f"Transaction failed for {owner[:10]}…: {e}")
            raise error_class(
                "Transaction failed",
                source=SOURCE,
                properties={"identity": identity, "owner": owner},
                cause=classify(e)
            ) from e

    def prepare_and_post_value_transaction(
        self,
        identity: str,
        source: str,
        amount: int,
        recipient: str,
        options: Optional[TransactionOptions] = None
    ) -> TransactionResponse:
        """
        Transfer an amount of the base coin.

        The amount is split off the gas coin and transferred to the recipient.

        Raises:
            ValueTransactionError: If the transfer fails
        """
        try:
            transaction = Transaction()
            coin = transaction.split_coins(transaction.gas, [transaction.pure_u64(amount)])
            transaction.transfer_objects([coin], transaction.pure_address(recipient))
            return self.prepare_and_post_transaction(identity, source, transaction, options)
        except Exception as e:
            raise ValueTransactionError(
                "Value transaction failed",
                source=SOURCE,
                properties={"source": source, "recipient": recipient, "amount": amount},
                cause=classify(e)
            ) from e

    def prepare_and_post_nft_transaction(
        self,
        identity: str,
        owner: str,
        transaction: Transaction,
        options: Optional[TransactionOptions] = None
    ) -> TransactionResponse:
        """
        Submit a mint style transaction and report the object it created.

        Returns:
            Response with ``created_object`` taken from the first created
            object in the effects, if any

        Raises:
            NftTransactionError: If the transaction fails
        """
        try:
            response = self.prepare_and_post_transaction(identity, owner, transaction, options)
        except Exception as e:
            raise NftTransactionError(
                "NFT transaction failed",
                source=SOURCE,
                properties={"owner": owner},
                cause=classify(e)
            ) from e

        created = ((response.effects or {}).get("created") or [{}])[0]
        object_id = (created.get("reference") or {}).get("objectId")
        if object_id:
            response = response.model_copy(update={"created_object": CreatedObject(object_id=object_id)})
        return response

    def package_exists_on_network(self, package_id: str) -> bool:
        """
        Check whether a package is published on the configured network.

        Raises:
            ContractError: If the lookup fails for any reason other than absence
        """
        try:
            response: Dict[str, Any] = self.ledger_client.get_object(package_id, show_content=False)
        except Exception as e:
            raise ContractError(
                "Package not found on network",
                source=SOURCE,
                properties={"packageId": package_id},
                cause=classify(e)
            ) from e

        error = response.get("error")
        if error:
            if error.get("code") == NOT_EXISTS_CODE:
                return False
            raise ContractError(
                "Package object error",
                source=SOURCE,
                properties={"packageId": package_id, "error": error}
            )
        return True
