"""
Discovery of the objects that gate privileged contract calls.
"""
import logging
from typing import Any, Dict, Optional, Union

from ..exceptions import (
    AdminCapNotFoundError, ContractObjectResolutionError, MigrationStateNotFoundError
)
from ..ledger.client import LedgerClient
from ..models import ContractObjectIds, SmartContractDeployments
from ..utils import snake_case

logger = logging.getLogger(__name__)

SOURCE = "ContractObjectResolver"
HISTORY_WINDOW = 20
MIGRATION_STATE_CHANGE_TYPES = ("created", "mutated")

Deployments = Union[SmartContractDeployments, Dict[str, Any]]


def module_name(namespace: str) -> str:
    """Move module name of a contract namespace."""
    return snake_case(namespace)


def struct_type(package_id: str, namespace: str, name: str) -> str:
    return f"{package_id}::{module_name(namespace)}::{name}"


class ContractObjectResolver:
    """
    Resolves the AdminCap and MigrationState ids of a contract.

    The MigrationState id is read from the deployment record when present and
    otherwise found in the admin's recent transactions. The AdminCap is always
    looked up on the ledger since ownership is what authorizes admin calls.
    """

    def __init__(self, ledger_client: LedgerClient, history_window: int = HISTORY_WINDOW):
        self.ledger_client = ledger_client
        self.history_window = history_window

    def discover_admin_cap(self, package_id: str, namespace: str, admin_address: str) -> str:
        """
        Find the AdminCap owned by an address.

        Returns:
            Id of the first AdminCap in ledger order

        Raises:
            AdminCapNotFoundError: If the address owns none
        """
        admin_cap_type = struct_type(package_id, namespace, "AdminCap")
        owned = self.ledger_client.get_owned_objects(admin_address, struct_type=admin_cap_type)

        data = (owned or {}).get("data") or []
        object_id = (data[0].get("data") or {}).get("objectId") if data else None
        if object_id:
            logger.debug(f"Discovered AdminCap {object_id}")
            return object_id

        raise AdminCapNotFoundError(
            "AdminCap not found",
            source=SOURCE,
            properties={"adminCapType": admin_cap_type, "adminAddress": admin_address}
        )

    def discover_migration_state(self, package_id: str, namespace: str, admin_address: str) -> str:
        """
        Find the MigrationState in the admin's recent transactions.

        Transactions are scanned newest first and the first created or
        mutated object of the MigrationState type wins.

        Raises:
            MigrationStateNotFoundError: If no transaction in the window touched one
        """
        migration_state_type = struct_type(package_id, namespace, "MigrationState")
        transactions = self.ledger_client.query_transaction_blocks(
            admin_address,
            show_object_changes=True,
            show_effects=True,
            limit=self.history_window,
            descending=True
        )

        for tx in (transactions or {}).get("data") or []:
            for change in tx.get("objectChanges") or []:
                if (change.get("type") in MIGRATION_STATE_CHANGE_TYPES
                        and change.get("objectType") == migration_state_type):
                    logger.info(f"Discovered MigrationState {change['objectId']} in transaction history")
                    return change["objectId"]

        raise MigrationStateNotFoundError(
            "MigrationState not found",
            source=SOURCE,
            properties={"migrationStateType": migration_state_type, "adminAddress": admin_address}
        )

    def resolve(
        self,
        namespace: str,
        network: str,
        deployments: Optional[Deployments],
        package_id: str,
        admin_address: str
    ) -> ContractObjectIds:
        """
        Resolve the contract's AdminCap and MigrationState ids.

        Args:
            namespace: Contract namespace, e.g. ``nft`` or ``verifiableStorage``
            network: Network key into the deployment record
            deployments: Per-network deployment record
            package_id: Deployed package id
            admin_address: Address owning the AdminCap

        Returns:
            ContractObjectIds

        Raises:
            ContractObjectResolutionError: If the record is malformed or either id cannot be resolved
        """
        try:
            if isinstance(deployments, dict):
                deployments = SmartContractDeployments.from_dict(deployments)

            admin_cap_id = self.discover_admin_cap(package_id, namespace, admin_address)

            deployment = deployments.for_network(network) if deployments is not None else None
            migration_state_id = deployment.migration_state_id if deployment else None
            if not migration_state_id:
                logger.debug(f"No MigrationState id recorded for {network}, scanning transaction history")
                migration_state_id = self.discover_migration_state(package_id, namespace, admin_address)

            return ContractObjectIds(admin_cap_id=admin_cap_id, migration_state_id=migration_state_id)
        except Exception as e:
            logger.error(f"Could not resolve contract objects for {namespace} on {network}: {e}")
            raise ContractObjectResolutionError(
                "Contract object ids could not be resolved",
                source=SOURCE,
                properties={"namespace": namespace, "network": str(network), "packageId": package_id},
                cause=e
            ) from e
