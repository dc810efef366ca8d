"""
Utility functions for the IOTA toolkit.
"""
import base64
import json
import re
from typing import Any, Mapping, Optional, Union

from .exceptions import (
    InsufficientFundsError, IotaToolkitError, PayloadError, ValidationError
)

ABORT_PREFIX = "MoveAbort"
INSUFFICIENT_GAS_CODE = "InsufficientGas"


def extract_payload_error(error: Any) -> PayloadError:
    """
    Normalize an error reported by the ledger client or gas station.

    Three shapes are recognised: a structured object (mapping or exception)
    with optional ``code``/``message``, a JSON string with a ``message`` key,
    and a plain string. Anything else is wrapped generically.

    Args:
        error: The raw error

    Returns:
        PayloadError (InsufficientFundsError for ``code == "InsufficientGas"``)
    """
    if isinstance(error, PayloadError):
        return error

    if isinstance(error, str):
        try:
            parsed = json.loads(error)
        except ValueError:
            return PayloadError(error)
        message = parsed.get("message") if isinstance(parsed, Mapping) else None
        return PayloadError(str(message or "Unknown error"))

    if isinstance(error, Mapping):
        if error.get("code") == INSUFFICIENT_GAS_CODE:
            return InsufficientFundsError()
        return PayloadError(str(error.get("message") or "Unknown error"))

    if isinstance(error, BaseException):
        if getattr(error, "code", None) == INSUFFICIENT_GAS_CODE:
            return InsufficientFundsError(cause=error)
        message = getattr(error, "message", None) or str(error) or "Unknown error"
        return PayloadError(str(message), cause=error)

    return PayloadError(f"Unknown error: {error!r}", name="Error")


def is_abort_error(error: Any, code: Optional[int] = None) -> bool:
    """
    Check whether an error signals that the Move VM aborted execution.

    Args:
        error: The error to check
        code: Optional abort code that must also appear in the message

    Returns:
        True if the error is an abort (with the given code, if supplied)
    """
    detail = None
    if isinstance(error, IotaToolkitError):
        detail = error.properties.get("error")
    if not isinstance(detail, str):
        detail = error if isinstance(error, str) else getattr(error, "message", None)
    if not isinstance(detail, str) or not detail.startswith(ABORT_PREFIX):
        return False
    if code is not None:
        return str(code) in detail
    return True


def snake_case(value: str) -> str:
    """
    Convert a namespace such as ``verifiableStorage`` or ``Verifiable Storage``
    to a Move module name (``verifiable_storage``).
    """
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value.strip())
    value = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", value)
    value = re.sub(r"[\s\-\.]+", "_", value)
    return re.sub(r"_+", "_", value).lower().strip("_")


def to_b64(data: bytes) -> str:
    """Encode bytes as standard base64 text."""
    return base64.b64encode(data).decode("ascii")


def from_b64(data: str) -> bytes:
    """Decode standard base64 text, rejecting malformed input."""
    return base64.b64decode(data, validate=True)


def normalize_address(address: str) -> str:
    """
    Normalize an address or object id to 0x-prefixed 64 lowercase hex chars.

    Raises:
        ValidationError: If the value is not hex or is too long
    """
    if not isinstance(address, str):
        raise ValidationError(f"Address must be a string, got {type(address).__name__}")
    value = address.lower()
    if value.startswith("0x"):
        value = value[2:]
    if not value or len(value) > 64 or not all(c in "0123456789abcdef" for c in value):
        raise ValidationError(f"Invalid address: {address}")
    return "0x" + value.rjust(64, "0")


def require_int(name: str, value: Union[int, Any], minimum: int = 0) -> int:
    """
    Guard an integer argument.

    Raises:
        ValidationError: If the value is not an integer or below the minimum
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{name} must be an integer, got {type(value).__name__}",
            properties={name: value}
        )
    if value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}, got {value}", properties={name: value})
    return value
