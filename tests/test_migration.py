"""
Tests for contract migration administration.
"""
from unittest.mock import MagicMock

import pytest

from iota_toolkit.contracts import ContractObjectResolver, MigrationOrchestrator
from iota_toolkit.exceptions import (
    ContractObjectResolutionError, ContractVersionError, MigrationError, ObjectNotReadableError,
    TransactionError
)
from iota_toolkit.ledger.exceptions import LedgerRpcError
from iota_toolkit.pipeline import TransactionPipeline
from iota_toolkit.transactions.bcs import encode_u64
from conftest import TEST_IDENTITY, TEST_PACKAGE_ID, object_id, tx_response

ADMIN_CAP_ID = object_id(501)
MIGRATION_STATE_ID = object_id(600)
NFT_ID = object_id(42)
DEPLOYMENTS = {"testnet": {"packageId": TEST_PACKAGE_ID, "migrationStateId": MIGRATION_STATE_ID}}


def move_object(**fields):
    return {"data": {"objectId": object_id(1), "content": {
        "dataType": "moveObject", "type": f"{TEST_PACKAGE_ID}::nft::Nft", "fields": fields
    }}}


def version_result(version: int):
    return {"results": [{"returnValues": [[list(encode_u64(version)), "u64"]]}]}


@pytest.fixture
def ledger(ledger):
    ledger.get_owned_objects.return_value = {"data": [{"data": {"objectId": ADMIN_CAP_ID}}]}
    ledger.dev_inspect_transaction_block.return_value = version_result(5)
    return ledger


@pytest.fixture
def connector():
    return MagicMock()


@pytest.fixture
def pipeline(config, ledger, secret_store, connector):
    return TransactionPipeline(config, ledger, secret_store, logging_connector=connector)


@pytest.fixture
def orchestrator(pipeline):
    return MigrationOrchestrator(pipeline, TEST_IDENTITY, "nft", TEST_PACKAGE_ID, DEPLOYMENTS)


def submitted_bytes(ledger) -> bytes:
    return ledger.execute_transaction_block.call_args.args[0]


def test_migrate(orchestrator, ledger, controller_address):
    response = orchestrator.migrate(NFT_ID)

    assert response.succeeded
    tx_bytes = submitted_bytes(ledger)
    assert b"\x03nft\x0bmigrate_nft" in tx_bytes
    for oid in (ADMIN_CAP_ID, MIGRATION_STATE_ID, NFT_ID):
        assert bytes.fromhex(oid[2:]) in tx_bytes
    # Signed by the package controller
    assert bytes.fromhex(controller_address[2:]) in tx_bytes
    ledger.get_owned_objects.assert_called_once_with(
        controller_address, struct_type=f"{TEST_PACKAGE_ID}::nft::AdminCap"
    )
    ledger.query_transaction_blocks.assert_not_called()


def test_migrate_arguments_in_order(orchestrator, ledger):
    orchestrator.migrate(NFT_ID)
    fetched = [c.args[0] for c in ledger.get_object.call_args_list]
    assert fetched == [ADMIN_CAP_ID, MIGRATION_STATE_ID, NFT_ID]


def test_migrate_without_cost_logging_skips_dry_run(orchestrator, ledger):
    orchestrator.migrate(NFT_ID)
    ledger.dry_run_transaction_block.assert_not_called()


def test_migrate_with_cost_logging(config, ledger, secret_store, connector):
    config = config.model_copy(update={"enable_cost_logging": True})
    pipeline = TransactionPipeline(config, ledger, secret_store, logging_connector=connector)
    MigrationOrchestrator(pipeline, TEST_IDENTITY, "nft", TEST_PACKAGE_ID, DEPLOYMENTS).migrate(NFT_ID)

    ledger.dry_run_transaction_block.assert_called_once()
    assert connector.log.call_args.args[0]["data"]["operation"] == "migrate_object"


def test_migrate_failed_status(orchestrator, ledger):
    ledger.wait_for_transaction.return_value = tx_response(status="failure", error="MoveAbort(migrate, 2)")

    with pytest.raises(MigrationError) as exc_info:
        orchestrator.migrate(NFT_ID)

    assert exc_info.value.properties["error"] == "MoveAbort(migrate, 2)"
    assert exc_info.value.properties["objectId"] == NFT_ID


def test_migrate_submission_failure(orchestrator, ledger):
    ledger.execute_transaction_block.side_effect = LedgerRpcError("rejected")
    with pytest.raises(MigrationError) as exc_info:
        orchestrator.migrate(NFT_ID)
    assert isinstance(exc_info.value.cause, TransactionError)


def test_migrate_resolution_failure(orchestrator, ledger):
    ledger.get_owned_objects.return_value = {"data": []}
    with pytest.raises(MigrationError) as exc_info:
        orchestrator.migrate(NFT_ID)
    assert isinstance(exc_info.value.cause, ContractObjectResolutionError)
    ledger.execute_transaction_block.assert_not_called()


@pytest.mark.parametrize("method,function", [
    ("enable_migration", b"\x10enable_migration"),
    ("disable_migration", b"\x11disable_migration"),
])
def test_toggle_migration(orchestrator, ledger, method, function):
    getattr(orchestrator, method)()

    tx_bytes = submitted_bytes(ledger)
    assert function in tx_bytes
    assert bytes.fromhex(NFT_ID[2:]) not in tx_bytes
    assert [c.args[0] for c in ledger.get_object.call_args_list] == [ADMIN_CAP_ID, MIGRATION_STATE_ID]


def test_toggle_failure(orchestrator, ledger):
    ledger.wait_for_transaction.return_value = tx_response(status="failure", error="EAlreadyEnabled")
    with pytest.raises(MigrationError, match="enable_migration"):
        orchestrator.enable_migration()


def test_custom_gas_budget(pipeline, ledger):
    orchestrator = MigrationOrchestrator(pipeline, TEST_IDENTITY, "nft", TEST_PACKAGE_ID, DEPLOYMENTS, gas_budget=1234)
    orchestrator.enable_migration()
    assert submitted_bytes(ledger).endswith(encode_u64(1234) + b"\x00")


@pytest.mark.parametrize("enabled", [True, False])
def test_is_migration_active(orchestrator, ledger, enabled):
    ledger.get_object.side_effect = None
    ledger.get_object.return_value = move_object(id={"id": MIGRATION_STATE_ID}, enabled=enabled)

    assert orchestrator.is_migration_active() is enabled
    ledger.get_object.assert_called_once_with(MIGRATION_STATE_ID, show_content=True, show_type=True)


@pytest.mark.parametrize("response", [
    {"error": {"code": "notExists"}},
    {"data": {"objectId": MIGRATION_STATE_ID}},
    {"data": {"content": {"dataType": "package", "disassembled": {}}}},
    move_object(enabled="yes"),
])
def test_unreadable_migration_state_is_an_error(orchestrator, ledger, response):
    ledger.get_object.side_effect = None
    ledger.get_object.return_value = response

    with pytest.raises(MigrationError) as exc_info:
        orchestrator.is_migration_active()
    assert isinstance(exc_info.value.cause, ObjectNotReadableError)


def test_current_contract_version(orchestrator, ledger, controller_address):
    assert orchestrator.get_current_contract_version() == 5

    sender, tx_kind = ledger.dev_inspect_transaction_block.call_args.args
    assert sender == controller_address
    assert b"\x13get_current_version\x00\x00" in tx_kind
    ledger.execute_transaction_block.assert_not_called()


def test_current_contract_version_explicit_sender(orchestrator, ledger):
    sender = "0x" + "99" * 32
    orchestrator.get_current_contract_version(sender)
    assert ledger.dev_inspect_transaction_block.call_args.args[0] == sender


@pytest.mark.parametrize("result", [
    {"results": []},
    {"results": [{"returnValues": []}]},
    {"error": "function not found"},
])
def test_current_contract_version_without_value(orchestrator, ledger, result):
    ledger.dev_inspect_transaction_block.return_value = result
    with pytest.raises(ContractVersionError, match="no version"):
        orchestrator.get_current_contract_version()


@pytest.mark.parametrize("return_value", [
    [[1, 2], "u64"],
    [],
    [None, "u64"],
    {"bytes": [0] * 8},
])
def test_current_contract_version_bad_bytes(orchestrator, ledger, return_value):
    ledger.dev_inspect_transaction_block.return_value = {"results": [{"returnValues": [return_value]}]}
    with pytest.raises(ContractVersionError, match="Invalid version data"):
        orchestrator.get_current_contract_version()


def test_current_contract_version_inspection_failure(orchestrator, ledger):
    ledger.dev_inspect_transaction_block.side_effect = LedgerRpcError("down")
    with pytest.raises(ContractVersionError) as exc_info:
        orchestrator.get_current_contract_version()
    assert isinstance(exc_info.value.cause, LedgerRpcError)


@pytest.mark.parametrize("object_version,compatible", [(4, True), (5, True), (6, False)])
def test_validate_object_version(orchestrator, ledger, object_version, compatible):
    ledger.get_object.side_effect = None
    ledger.get_object.return_value = move_object(version=str(object_version))

    result = orchestrator.validate_object_version(NFT_ID, lambda content: int(content["fields"]["version"]))

    assert result is compatible


def test_validate_object_version_nested_schema(orchestrator, ledger):
    ledger.get_object.side_effect = None
    ledger.get_object.return_value = move_object(metadata={"fields": {"version": 2}})

    def extractor(content):
        return content["fields"]["metadata"]["fields"]["version"]

    assert orchestrator.validate_object_version(NFT_ID, extractor) is True


def test_validate_unreadable_object(orchestrator, ledger):
    ledger.get_object.side_effect = None
    ledger.get_object.return_value = {"error": {"code": "deleted"}}

    with pytest.raises(ContractVersionError) as exc_info:
        orchestrator.validate_object_version(NFT_ID, lambda content: 1)
    assert isinstance(exc_info.value.cause, ObjectNotReadableError)
    assert exc_info.value.properties == {"objectId": NFT_ID}


def test_history_fallback_when_not_recorded(pipeline, ledger):
    ledger.query_transaction_blocks.return_value = {"data": [{"objectChanges": [{
        "type": "created", "objectType": f"{TEST_PACKAGE_ID}::nft::MigrationState", "objectId": object_id(650)
    }]}]}
    ledger.get_object.side_effect = None
    ledger.get_object.return_value = move_object(enabled=True)

    orchestrator = MigrationOrchestrator(pipeline, TEST_IDENTITY, "nft", TEST_PACKAGE_ID, {})
    assert orchestrator.is_migration_active() is True
    ledger.get_object.assert_called_once_with(object_id(650), show_content=True, show_type=True)


def test_custom_resolver(pipeline):
    resolver = MagicMock(spec=ContractObjectResolver)
    orchestrator = MigrationOrchestrator(pipeline, TEST_IDENTITY, "nft", TEST_PACKAGE_ID, resolver=resolver)
    assert orchestrator.resolver is resolver
