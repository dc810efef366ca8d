"""
Tests for the JSON-RPC ledger client.
"""
import base64

import pytest
import requests

from iota_toolkit.ledger import (
    JsonRpcLedgerClient, LedgerConnectionError, LedgerRpcError, LedgerTimeoutError
)
from conftest import TEST_RPC_URL, tx_response

OWNER = "0x" + "11" * 32


@pytest.fixture
def client():
    return JsonRpcLedgerClient(TEST_RPC_URL, retry_count=0, timeout=5)


def rpc_result(result):
    return {"jsonrpc": "2.0", "id": 1, "result": result}


def test_call_sends_json_rpc_envelope(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=rpc_result("1000"))

    assert client.get_reference_gas_price() == 1000

    body = requests_mock.last_request.json()
    assert body["jsonrpc"] == "2.0"
    assert body["method"] == "iotax_getReferenceGasPrice"
    assert body["params"] == []
    assert isinstance(body["id"], int)


def test_request_ids_increase(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=rpc_result("1"))
    client.get_reference_gas_price()
    client.get_reference_gas_price()
    ids = [r.json()["id"] for r in requests_mock.request_history]
    assert ids[1] > ids[0]


def test_error_object_raises_rpc_error(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, json={
        "jsonrpc": "2.0", "id": 1,
        "error": {"code": -32602, "message": "Invalid params", "data": "details"}
    })
    with pytest.raises(LedgerRpcError) as exc_info:
        client.get_object("0x2")
    assert exc_info.value.code == -32602
    assert exc_info.value.message == "Invalid params"
    assert exc_info.value.data == "details"


def test_http_error_raises_connection_error(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, status_code=503)
    with pytest.raises(LedgerConnectionError):
        client.get_reference_gas_price()


def test_network_error_raises_connection_error(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, exc=requests.ConnectionError("down"))
    with pytest.raises(LedgerConnectionError, match="down"):
        client.get_reference_gas_price()


def test_invalid_json_raises_connection_error(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, text="<html>")
    with pytest.raises(LedgerConnectionError, match="Invalid JSON"):
        client.get_reference_gas_price()


def test_get_object_params(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=rpc_result({"data": {"objectId": "0x2"}}))
    assert client.get_object("0x2", show_owner=True) == {"data": {"objectId": "0x2"}}
    assert requests_mock.last_request.json()["params"] == [
        "0x2", {"showContent": True, "showType": True, "showOwner": True}
    ]


def test_get_owned_objects_filter(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=rpc_result({"data": [], "hasNextPage": False}))
    client.get_owned_objects(OWNER, struct_type="0xab::nft::AdminCap")
    body = requests_mock.last_request.json()
    assert body["method"] == "iotax_getOwnedObjects"
    assert body["params"][0] == OWNER
    assert body["params"][1]["filter"] == {"StructType": "0xab::nft::AdminCap"}


def test_query_transaction_blocks(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=rpc_result({"data": []}))
    client.query_transaction_blocks(OWNER, limit=20, descending=True)
    params = requests_mock.last_request.json()["params"]
    assert params[0]["filter"] == {"FromAddress": OWNER}
    assert params[0]["options"] == {"showObjectChanges": True, "showEffects": True}
    assert params[1:] == [None, 20, True]


def test_transaction_bytes_are_base64(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=rpc_result(tx_response()))
    client.execute_transaction_block(b"\x01\x02", ["sig"])
    params = requests_mock.last_request.json()["params"]
    assert base64.b64decode(params[0]) == b"\x01\x02"
    assert params[1] == ["sig"]
    assert params[3] == "WaitForLocalExecution"

    client.dry_run_transaction_block(b"\x03")
    assert requests_mock.last_request.json()["params"] == ["Aw=="]

    client.dev_inspect_transaction_block(OWNER, b"\x04")
    assert requests_mock.last_request.json()["params"] == [OWNER, "BA==", None, None]


def test_get_coins_follows_pages(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, [
        {"json": rpc_result({"data": [{"coinObjectId": "0x1"}], "hasNextPage": True, "nextCursor": "c1"})},
        {"json": rpc_result({"data": [{"coinObjectId": "0x2"}], "hasNextPage": False, "nextCursor": None})},
    ])
    coins = client.get_coins(OWNER, "0x2::iota::IOTA")
    assert [c["coinObjectId"] for c in coins] == ["0x1", "0x2"]
    assert requests_mock.request_history[1].json()["params"][2] == "c1"


def test_wait_for_transaction_polls_until_available(client, requests_mock):
    not_found = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Could not find"}}
    requests_mock.post(TEST_RPC_URL, [
        {"json": not_found},
        {"json": not_found},
        {"json": rpc_result(tx_response("D"))},
    ])
    response = client.wait_for_transaction("D", timeout=10)
    assert response["digest"] == "D"
    assert requests_mock.call_count == 3


def test_wait_for_transaction_times_out(client, requests_mock):
    requests_mock.post(TEST_RPC_URL, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -1, "message": "missing"}})
    with pytest.raises(LedgerTimeoutError):
        client.wait_for_transaction("D", timeout=0)
