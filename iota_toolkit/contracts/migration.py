"""
Version-gated administration of upgradeable contracts.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import (
    ContractVersionError, MigrationError, ObjectNotReadableError
)
from ..models import ContractObjectIds, TransactionOptions, TransactionResponse
from ..pipeline import TransactionPipeline
from ..transactions import Transaction, decode_u64
from .resolver import ContractObjectResolver, Deployments, module_name

logger = logging.getLogger(__name__)

SOURCE = "MigrationOrchestrator"
MOVE_OBJECT = "moveObject"

VersionExtractor = Callable[[Dict[str, Any]], int]


def _move_object_fields(response: Dict[str, Any], object_id: str) -> Dict[str, Any]:
    """
    Content of a Move object as returned by ``get_object``.

    Raises:
        ObjectNotReadableError: If the object has no content or is not a Move object
    """
    content = (response.get("data") or {}).get("content")
    if not content:
        raise ObjectNotReadableError(
            "Object content is not readable",
            source=SOURCE,
            properties={"objectId": object_id, "error": response.get("error")}
        )
    if content.get("dataType") != MOVE_OBJECT or not isinstance(content.get("fields"), dict):
        raise ObjectNotReadableError(
            "Object has an unexpected format",
            source=SOURCE,
            properties={"objectId": object_id, "content": content}
        )
    return content


class MigrationOrchestrator:
    """
    Drives the migration entry points of one deployed contract.

    Privileged calls are signed by the package controller address of the
    identity, which must own the contract's AdminCap. The contract enforces
    every state change; this class only requests them.

    Example:
        >>> orchestrator = MigrationOrchestrator(pipeline, "admin", "nft", package_id, deployments)
        >>> orchestrator.enable_migration()
        >>> orchestrator.migrate(nft_id)
    """

    def __init__(
        self,
        pipeline: TransactionPipeline,
        identity: str,
        namespace: str,
        package_id: str,
        deployments: Optional[Deployments] = None,
        address_index: int = 0,
        resolver: Optional[ContractObjectResolver] = None,
        gas_budget: Optional[int] = None
    ):
        """
        Initialize the orchestrator

        Args:
            pipeline: Pipeline used to sign and submit admin transactions
            identity: Identity controlling the package
            namespace: Contract namespace, e.g. ``nft``
            package_id: Deployed package id
            deployments: Per-network deployment record
            address_index: Address index of the package controller
            resolver: Object resolver (one on the pipeline's ledger client by default)
            gas_budget: Gas budget for admin transactions (configuration default when omitted)
        """
        self.pipeline = pipeline
        self.identity = identity
        self.namespace = namespace
        self.module = module_name(namespace)
        self.package_id = package_id
        self.deployments = deployments
        self.address_index = address_index
        self.resolver = resolver or ContractObjectResolver(pipeline.ledger_client)
        self.gas_budget = gas_budget

    @property
    def ledger_client(self):
        return self.pipeline.ledger_client

    def _target(self, function: str) -> str:
        return f"{self.package_id}::{self.module}::{function}"

    def controller_address(self) -> str:
        return self.pipeline.get_package_controller_address(self.identity, self.address_index)

    def contract_object_ids(self, admin_address: Optional[str] = None) -> ContractObjectIds:
        return self.resolver.resolve(
            self.namespace,
            self.pipeline.config.network,
            self.deployments,
            self.package_id,
            admin_address or self.controller_address()
        )

    def _post_admin_call(self, function: str, extra_objects: List[str], dry_run_label: str) -> TransactionResponse:
        admin_address = self.controller_address()
        ids = self.contract_object_ids(admin_address)

        transaction = Transaction()
        if self.gas_budget is not None:
            transaction.set_gas_budget(self.gas_budget)
        arguments = [transaction.object(ids.admin_cap_id), transaction.object(ids.migration_state_id)]
        arguments.extend(transaction.object(object_id) for object_id in extra_objects)
        transaction.move_call(self._target(function), arguments)

        options = TransactionOptions(
            dry_run_label=dry_run_label if self.pipeline.config.enable_cost_logging else None
        )
        response = self.pipeline.prepare_and_post_transaction(
            self.identity, admin_address, transaction, options
        )
        if not response.succeeded:
            raise MigrationError(
                f"{function} did not succeed",
                source=SOURCE,
                properties={"error": response.error, "digest": response.digest, "function": function}
            )
        logger.info(f"{function} executed in {response.digest}")
        return response

    def migrate(self, object_id: str) -> TransactionResponse:
        """
        Migrate an object to the current contract version.

        Calls ``migrate_{module}(AdminCap, MigrationState, object)``.

        Raises:
            MigrationError: If the call fails or does not succeed on chain
        """
        try:
            return self._post_admin_call(f"migrate_{self.module}", [object_id], "migrate_object")
        except MigrationError as e:
            e.properties.setdefault("objectId", object_id)
            raise
        except Exception as e:
            raise MigrationError(
                "Migration failed",
                source=SOURCE,
                properties={"objectId": object_id, "namespace": self.namespace},
                cause=e
            ) from e

    def enable_migration(self) -> TransactionResponse:
        """Request the contract to allow migrations."""
        try:
            return self._post_admin_call("enable_migration", [], "enable_migration")
        except MigrationError:
            raise
        except Exception as e:
            raise MigrationError(
                "Enable migration failed",
                source=SOURCE,
                properties={"namespace": self.namespace},
                cause=e
            ) from e

    def disable_migration(self) -> TransactionResponse:
        """Request the contract to stop allowing migrations."""
        try:
            return self._post_admin_call("disable_migration", [], "disable_migration")
        except MigrationError:
            raise
        except Exception as e:
            raise MigrationError(
                "Disable migration failed",
                source=SOURCE,
                properties={"namespace": self.namespace},
                cause=e
            ) from e

    def is_migration_active(self) -> bool:
        """
        Read the ``enabled`` flag of the MigrationState object.

        Raises:
            MigrationError: If the MigrationState cannot be resolved or read
        """
        try:
            ids = self.contract_object_ids()
            response = self.ledger_client.get_object(ids.migration_state_id, show_content=True, show_type=True)
            fields = _move_object_fields(response, ids.migration_state_id)["fields"]
            enabled = fields.get("enabled")
            if not isinstance(enabled, bool):
                raise ObjectNotReadableError(
                    "MigrationState has no enabled flag",
                    source=SOURCE,
                    properties={"migrationStateId": ids.migration_state_id, "fields": fields}
                )
            return enabled
        except Exception as e:
            raise MigrationError(
                "Could not read migration state",
                source=SOURCE,
                properties={"namespace": self.namespace},
                cause=e
            ) from e

    def get_current_contract_version(self, controller_address: Optional[str] = None) -> int:
        """
        Ask the contract for its current version.

        ``get_current_version`` is run in inspection mode, so nothing is
        committed and no gas is spent.

        Args:
            controller_address: Sender of the inspection (package controller by default)

        Returns:
            The version as an unsigned 64-bit integer

        Raises:
            ContractVersionError: If the call fails or returns no value
        """
        try:
            transaction = Transaction()
            transaction.move_call(self._target("get_current_version"))
            tx_kind = transaction.build_kind(self.ledger_client)
            sender = controller_address or self.controller_address()
            result = self.ledger_client.dev_inspect_transaction_block(sender, tx_kind)
        except Exception as e:
            raise ContractVersionError(
                "Getting the current contract version failed",
                source=SOURCE,
                properties={"namespace": self.namespace, "packageId": self.package_id},
                cause=e
            ) from e

        results = result.get("results") or []
        return_values = (results[0] or {}).get("returnValues") if results else None
        if not return_values:
            raise ContractVersionError(
                "Contract returned no version",
                source=SOURCE,
                properties={
                    "resultExists": bool(results),
                    "resultLength": len(results),
                    "hasReturnValues": bool(return_values),
                    "error": result.get("error"),
                }
            )

        # Each return value is [bcs_bytes, type_tag]
        try:
            return decode_u64(bytes(return_values[0][0]))
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise ContractVersionError(
                "Invalid version data",
                source=SOURCE,
                properties={"returnValue": return_values[0]},
                cause=e
            ) from e

    def validate_object_version(self, object_id: str, version_extractor: VersionExtractor) -> bool:
        """
        Check that an object is not newer than the contract.

        Args:
            object_id: Object to check
            version_extractor: Returns the object's stored version from its
                Move content (``{"dataType", "type", "fields"}``)

        Returns:
            True if the object's version is at most the contract's version

        Raises:
            ContractVersionError: If either version cannot be determined
        """
        try:
            current_version = self.get_current_contract_version()
            response = self.ledger_client.get_object(object_id, show_content=True, show_type=True)
            content = _move_object_fields(response, object_id)
            object_version = int(version_extractor(content))
        except Exception as e:
            raise ContractVersionError(
                "Object version validation failed",
                source=SOURCE,
                properties={"objectId": object_id},
                cause=e
            ) from e

        logger.debug(f"Object {object_id} version {object_version}, contract version {current_version}")
        return object_version <= current_version
