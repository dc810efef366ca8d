"""
Data models for the IOTA toolkit.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NetworkTypes(str, Enum):
    """Networks a contract can be deployed to."""
    TESTNET = "testnet"
    DEVNET = "devnet"
    MAINNET = "mainnet"


class ObjectRef(BaseModel):
    """Reference to a specific version of an on-chain object."""
    model_config = ConfigDict(populate_by_name=True)

    object_id: str = Field(..., alias="objectId")
    version: int
    digest: str


class AddressKeyPair(BaseModel):
    """An address together with the key pair it was derived from."""
    address: str
    private_key: bytes
    public_key: bytes

    def __repr__(self) -> str:
        return f"AddressKeyPair(address={self.address!r}, private_key=[REDACTED])"


class KeyPair(BaseModel):
    """Raw Ed25519 key pair."""
    private_key: bytes
    public_key: bytes

    def __repr__(self) -> str:
        return "KeyPair(private_key=[REDACTED])"


class TransactionCosts(BaseModel):
    """Gas and storage costs reported by a dry run."""
    model_config = ConfigDict(populate_by_name=True)

    computation_cost: str = Field(..., alias="computationCost")
    computation_cost_burned: str = Field(..., alias="computationCostBurned")
    storage_cost: str = Field(..., alias="storageCost")
    storage_rebate: str = Field(..., alias="storageRebate")
    non_refundable_storage_fee: str = Field(..., alias="nonRefundableStorageFee")


class DryRunResult(BaseModel):
    """Outcome of a simulated transaction."""
    model_config = ConfigDict(populate_by_name=True)

    status: str
    costs: TransactionCosts
    events: List[Dict[str, Any]] = Field(default_factory=list)
    balance_changes: List[Dict[str, Any]] = Field(default_factory=list, alias="balanceChanges")
    object_changes: List[Dict[str, Any]] = Field(default_factory=list, alias="objectChanges")


class CreatedObject(BaseModel):
    """Object created by a mint style transaction."""
    model_config = ConfigDict(populate_by_name=True)

    object_id: str = Field(..., alias="objectId")


class TransactionResponse(BaseModel):
    """
    Normalized transaction response.

    Produced from either a direct submission or a sponsored one, so callers
    always see the same shape.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    digest: str
    effects: Optional[Dict[str, Any]] = None
    events: List[Dict[str, Any]] = Field(default_factory=list)
    object_changes: List[Dict[str, Any]] = Field(default_factory=list, alias="objectChanges")
    balance_changes: List[Dict[str, Any]] = Field(default_factory=list, alias="balanceChanges")
    confirmed_local_execution: Optional[bool] = Field(None, alias="confirmedLocalExecution")
    created_object: Optional[CreatedObject] = Field(None, alias="createdObject")

    @property
    def status(self) -> Optional[str]:
        """Execution status from the effects, if reported."""
        return ((self.effects or {}).get("status") or {}).get("status")

    @property
    def error(self) -> Optional[str]:
        """Execution error from the effects, if reported."""
        return ((self.effects or {}).get("status") or {}).get("error")

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "TransactionResponse":
        """
        Build from a raw ledger response, tolerating null list fields.

        Args:
            payload: ``IotaTransactionBlockResponse`` shaped dictionary
        """
        data = dict(payload)
        for key in ("events", "objectChanges", "balanceChanges"):
            if data.get(key) is None:
                data[key] = []
        return cls.model_validate(data)


class GasReservation(BaseModel):
    """Gas coins reserved by the sponsoring gas station."""
    model_config = ConfigDict(populate_by_name=True)

    sponsor_address: str
    reservation_id: int
    gas_coins: List[ObjectRef]
    expires_at: Optional[float] = None


class ContractObjectIds(BaseModel):
    """Ids of the objects that gate privileged contract calls."""
    admin_cap_id: str
    migration_state_id: str


class NetworkDeployment(BaseModel):
    """Deployment of a smart contract on one network."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    package_id: str = Field(..., alias="packageId")
    deployed_package_id: Optional[str] = Field(None, alias="deployedPackageId")
    migration_state_id: Optional[str] = Field(None, alias="migrationStateId")
    upgrade_capability_id: Optional[str] = Field(None, alias="upgradeCapabilityId")

    @field_validator("deployed_package_id", "migration_state_id", "upgrade_capability_id", mode="before")
    @classmethod
    def _optional_id(cls, value: Any) -> Optional[str]:
        # Anything but a non-empty string counts as absent
        return value if isinstance(value, str) and value else None


class SmartContractDeployments(BaseModel):
    """Per-network deployment record, keyed by network name."""
    model_config = ConfigDict(extra="allow")

    networks: Dict[str, NetworkDeployment] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SmartContractDeployments":
        """
        Parse the ``{ network: { packageId, ... } }`` JSON map.

        Args:
            data: Deployment record as loaded from JSON
        """
        return cls(networks={
            network: NetworkDeployment.model_validate(entry)
            for network, entry in data.items()
            if isinstance(entry, dict)
        })

    def for_network(self, network: str) -> Optional[NetworkDeployment]:
        return self.networks.get(str(network.value if isinstance(network, Enum) else network))


class TransactionOptions(BaseModel):
    """
    Options for a pipeline submission.

    Attributes:
        show_effects: Request transaction effects
        show_events: Request emitted events
        show_object_changes: Request object changes
        show_balance_changes: Request balance changes
        wait_for_confirmation: Wait until the digest is queryable before returning
        dry_run_label: Dry run first and log costs under this label (no dry run when empty)
    """
    model_config = ConfigDict(populate_by_name=True)

    show_effects: bool = Field(True, alias="showEffects")
    show_events: bool = Field(True, alias="showEvents")
    show_object_changes: bool = Field(True, alias="showObjectChanges")
    show_balance_changes: bool = Field(False, alias="showBalanceChanges")
    wait_for_confirmation: bool = Field(True, alias="waitForConfirmation")
    dry_run_label: Optional[str] = Field(None, alias="dryRunLabel")

    def response_options(self) -> Dict[str, bool]:
        """Visibility flags in the ledger's wire format."""
        return {
            "showEffects": self.show_effects,
            "showEvents": self.show_events,
            "showObjectChanges": self.show_object_changes,
            "showBalanceChanges": self.show_balance_changes,
        }
