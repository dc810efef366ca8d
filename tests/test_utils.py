"""
Tests for error classification and helpers.
"""
import pytest

from iota_toolkit.exceptions import (
    DryRunFailedError, InsufficientFundsError, PayloadError, ValidationError
)
from iota_toolkit.ledger.exceptions import LedgerRpcError
from iota_toolkit.utils import (
    extract_payload_error, from_b64, is_abort_error, normalize_address, require_int,
    snake_case, to_b64
)


class TestExtractPayloadError:
    def test_structured_insufficient_gas(self):
        error = extract_payload_error({"code": "InsufficientGas"})
        assert isinstance(error, InsufficientFundsError)
        assert error.name == "InsufficientFunds"
        assert error.message == "insufficient funds"

    def test_structured_with_message(self):
        error = extract_payload_error({"code": "Other", "message": "object locked"})
        assert type(error) is PayloadError
        assert error.message == "object locked"

    def test_structured_without_message(self):
        assert extract_payload_error({}).message == "Unknown error"

    def test_json_string(self):
        error = extract_payload_error('{"message":"x"}')
        assert error.message == "x"
        assert error.name == "IOTA"

    def test_json_string_without_message(self):
        assert extract_payload_error('{"code": 1}').message == "Unknown error"

    @pytest.mark.parametrize("error", ["42", "[1, 2]", "null"])
    def test_json_without_message(self, error):
        assert extract_payload_error(error).message == "Unknown error"

    def test_plain_string(self):
        assert extract_payload_error("boom").message == "boom"

    def test_exception_with_insufficient_gas_code(self):
        rpc_error = LedgerRpcError("gas", code="InsufficientGas")
        error = extract_payload_error(rpc_error)
        assert isinstance(error, InsufficientFundsError)
        assert error.cause is rpc_error

    def test_exception_message(self):
        error = extract_payload_error(RuntimeError("node down"))
        assert error.message == "node down"
        assert isinstance(error.cause, RuntimeError)

    def test_payload_error_passthrough(self):
        original = PayloadError("already classified")
        assert extract_payload_error(original) is original

    def test_unknown_shape(self):
        error = extract_payload_error(12345)
        assert error.name == "Error"
        assert "12345" in error.message


class TestIsAbortError:
    def test_abort_in_properties(self):
        error = DryRunFailedError("Dry run failed", properties={"error": "MoveAbort(..., 3) in command 0"})
        assert is_abort_error(error)
        assert is_abort_error(error, 3)
        assert not is_abort_error(error, 7)

    def test_abort_string(self):
        assert is_abort_error("MoveAbort(0x2::coin, 12)", 12)

    def test_not_abort(self):
        assert not is_abort_error(DryRunFailedError("x", properties={"error": "InsufficientGas"}))
        assert not is_abort_error("something else")
        assert not is_abort_error(None)

    def test_prefix_must_lead(self):
        assert not is_abort_error("Error: MoveAbort(1)")


@pytest.mark.parametrize("namespace,expected", [
    ("nft", "nft"),
    ("verifiableStorage", "verifiable_storage"),
    ("Verifiable Storage", "verifiable_storage"),
    ("verifiable-storage", "verifiable_storage"),
    ("NFTStore", "nft_store"),
])
def test_snake_case(namespace, expected):
    assert snake_case(namespace) == expected


def test_b64_round_trip():
    assert from_b64(to_b64(b"\x00\xffdata")) == b"\x00\xffdata"


def test_from_b64_rejects_garbage():
    with pytest.raises(ValueError):
        from_b64("***")


def test_normalize_address():
    assert normalize_address("0x2") == "0x" + "0" * 63 + "2"
    assert normalize_address("0xAB" + "00" * 31) == "0xab" + "00" * 31
    with pytest.raises(ValidationError):
        normalize_address("0xzz")
    with pytest.raises(ValidationError):
        normalize_address("0x" + "1" * 65)


def test_require_int():
    assert require_int("n", 3) == 3
    with pytest.raises(ValidationError):
        require_int("n", -1)
    with pytest.raises(ValidationError):
        require_int("n", False)
