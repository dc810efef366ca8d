"""
Configuration for the IOTA toolkit.
"""
import os
import urllib.parse
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MNEMONIC_SECRET_NAME = "mnemonic"
DEFAULT_SEED_SECRET_NAME = "seed"
DEFAULT_COIN_TYPE = 4218
DEFAULT_SCAN_RANGE = 1000
DEFAULT_INCLUSION_TIMEOUT = 60
DEFAULT_GAS_BUDGET = 50_000_000
DEFAULT_RESERVE_DURATION_SECS = 30


def _validate_secure_url(url_name: str, url: str, insecure_env: str) -> str:
    """
    Require https unless the host is local or the insecure override is set.

    Raises:
        ValueError: If the URL is plain http to a remote host
    """
    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme not in ("http", "https") or not host:
        raise ValueError(f"{url_name} must be an http(s) URL (got: {url})")
    if parsed.scheme != "https" and not is_local and os.environ.get(insecure_env) != "1":
        raise ValueError(
            f"{url_name} must use https:// for security (got: {parsed.scheme}://). "
            f"Set {insecure_env}=1 to allow HTTP for development."
        )
    return url.rstrip("/")


class GasStationConfig(BaseModel):
    """Connection settings for the gas sponsoring service."""
    model_config = ConfigDict(populate_by_name=True)

    gas_station_url: str = Field(..., alias="gasStationUrl")
    gas_station_auth_token: str = Field(..., alias="gasStationAuthToken", repr=False)
    reserve_duration_secs: int = Field(DEFAULT_RESERVE_DURATION_SECS, gt=0)

    @field_validator("gas_station_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        return _validate_secure_url("gas_station_url", value, "IOTA_TOOLKIT_INSECURE_GAS_STATION")


class IotaConfig(BaseModel):
    """
    Configuration for ledger operations.

    Attributes:
        network: Network the operations are performed on (key into deployment records)
        rpc_url: JSON-RPC endpoint of the ledger node
        vault_mnemonic_id: Secret id holding the mnemonic
        vault_seed_id: Secret id holding the base64 seed
        coin_type: SLIP-44 coin type used for key derivation
        max_address_scan_range: Addresses scanned when recovering a key pair
        inclusion_timeout_seconds: Time to wait for a submitted transaction to become queryable
        gas_station: Sponsoring configuration; when set, transactions are sponsored
        gas_budget: Gas budget for all transactions
        enable_cost_logging: Dry run administrative calls and log their costs
        retry_count: Retries for HTTP requests
        request_timeout: Timeout for each HTTP request in seconds
    """
    model_config = ConfigDict(populate_by_name=True)

    network: str
    rpc_url: str = Field(..., alias="rpcUrl")
    vault_mnemonic_id: str = Field(DEFAULT_MNEMONIC_SECRET_NAME, alias="vaultMnemonicId")
    vault_seed_id: str = Field(DEFAULT_SEED_SECRET_NAME, alias="vaultSeedId")
    coin_type: int = Field(DEFAULT_COIN_TYPE, alias="coinType", ge=0)
    max_address_scan_range: int = Field(DEFAULT_SCAN_RANGE, alias="maxAddressScanRange", gt=0)
    inclusion_timeout_seconds: float = Field(DEFAULT_INCLUSION_TIMEOUT, alias="inclusionTimeoutSeconds", gt=0)
    gas_station: Optional[GasStationConfig] = Field(None, alias="gasStation")
    gas_budget: int = Field(DEFAULT_GAS_BUDGET, alias="gasBudget", gt=0)
    enable_cost_logging: bool = Field(False, alias="enableCostLogging")
    retry_count: int = Field(3, ge=0)
    request_timeout: float = Field(30, gt=0)

    @field_validator("rpc_url")
    @classmethod
    def _check_rpc_url(cls, value: str) -> str:
        return _validate_secure_url("rpc_url", value, "IOTA_TOOLKIT_INSECURE_RPC")

    @classmethod
    def from_env(cls, prefix: str = "IOTA_") -> "IotaConfig":
        """
        Build a configuration from environment variables.

        Reads ``{prefix}NETWORK`` and ``{prefix}RPC_URL`` (required) plus the
        optional ``COIN_TYPE``, ``GAS_BUDGET``, ``MAX_ADDRESS_SCAN_RANGE``,
        ``INCLUSION_TIMEOUT``, ``ENABLE_COST_LOGGING``, ``GAS_STATION_URL`` and
        ``GAS_STATION_AUTH_TOKEN``.

        Raises:
            ValueError: If a required variable is missing
        """
        env = os.environ
        missing = [name for name in ("NETWORK", "RPC_URL") if not env.get(prefix + name)]
        if missing:
            raise ValueError(
                f"Missing environment variables: {', '.join(prefix + m for m in missing)}"
            )

        values = {"network": env[prefix + "NETWORK"], "rpc_url": env[prefix + "RPC_URL"]}
        optional = {
            "COIN_TYPE": "coin_type",
            "GAS_BUDGET": "gas_budget",
            "MAX_ADDRESS_SCAN_RANGE": "max_address_scan_range",
            "INCLUSION_TIMEOUT": "inclusion_timeout_seconds",
            "VAULT_MNEMONIC_ID": "vault_mnemonic_id",
            "VAULT_SEED_ID": "vault_seed_id",
        }
        for env_name, field_name in optional.items():
            if env.get(prefix + env_name):
                values[field_name] = env[prefix + env_name]
        if env.get(prefix + "ENABLE_COST_LOGGING"):
            values["enable_cost_logging"] = env[prefix + "ENABLE_COST_LOGGING"].lower() in ("1", "true", "yes")

        station_url = env.get(prefix + "GAS_STATION_URL")
        if station_url:
            values["gas_station"] = GasStationConfig(
                gas_station_url=station_url,
                gas_station_auth_token=env.get(prefix + "GAS_STATION_AUTH_TOKEN", "")
            )
        return cls(**values)
