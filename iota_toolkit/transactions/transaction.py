"""
Programmable transaction builder.

A :class:`Transaction` collects inputs and commands, then ``build`` resolves
object references through a :class:`~iota_toolkit.ledger.client.LedgerClient`
and BCS-encodes ``TransactionData::V1``.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from ..exceptions import ValidationError
from ..models import ObjectRef
from ..utils import normalize_address
from .bcs import BcsWriter, encode_address, encode_bool, encode_string, encode_u64

logger = logging.getLogger(__name__)

IOTA_COIN_TYPE = "0x2::iota::IOTA"

# Enum variant tags
_TX_DATA_V1 = 0
_TX_KIND_PROGRAMMABLE = 0
_CALL_ARG_PURE = 0
_CALL_ARG_OBJECT = 1
_OBJECT_ARG_IMM_OR_OWNED = 0
_OBJECT_ARG_SHARED = 1
_COMMAND_MOVE_CALL = 0
_COMMAND_TRANSFER_OBJECTS = 1
_COMMAND_SPLIT_COINS = 2
_ARGUMENT_GAS_COIN = 0
_ARGUMENT_INPUT = 1
_ARGUMENT_RESULT = 2
_ARGUMENT_NESTED_RESULT = 3
_EXPIRATION_NONE = 0


@dataclass(frozen=True)
class Argument:
    """Reference to the gas coin, an input, or a command result."""
    kind: int
    index: int = 0
    sub_index: int = 0

    def nested(self, sub_index: int) -> "Argument":
        """Select one value of a multi-value command result."""
        if self.kind != _ARGUMENT_RESULT:
            raise ValidationError("Only command results have nested values")
        return Argument(_ARGUMENT_NESTED_RESULT, self.index, sub_index)

    def encode(self, writer: BcsWriter) -> None:
        writer.u8(self.kind)
        if self.kind in (_ARGUMENT_INPUT, _ARGUMENT_RESULT):
            writer.u16(self.index)
        elif self.kind == _ARGUMENT_NESTED_RESULT:
            writer.u16(self.index).u16(self.sub_index)


GAS_COIN = Argument(_ARGUMENT_GAS_COIN)


@dataclass
class _PureInput:
    value: bytes


@dataclass
class _ObjectInput:
    object_id: str
    mutable: bool = True
    # Filled in by resolution
    ref: Optional[ObjectRef] = None
    initial_shared_version: Optional[int] = None


@dataclass
class _MoveCall:
    package: str
    module: str
    function: str
    arguments: List[Argument] = field(default_factory=list)


@dataclass
class _SplitCoins:
    coin: Argument
    amounts: List[Argument]


@dataclass
class _TransferObjects:
    objects: List[Argument]
    address: Argument


class Transaction:
    """
    A programmable transaction under construction.

    Example:
        >>> tx = Transaction()
        >>> coin = tx.split_coins(tx.gas, [tx.pure_u64(1000)])
        >>> tx.transfer_objects([coin], tx.pure_address(recipient))
    """

    def __init__(self):
        self._inputs: List[Union[_PureInput, _ObjectInput]] = []
        self._object_index: Dict[str, int] = {}
        self._commands: List[Union[_MoveCall, _SplitCoins, _TransferObjects]] = []
        self.sender: Optional[str] = None
        self.gas_owner: Optional[str] = None
        self.gas_payment: Optional[List[ObjectRef]] = None
        self.gas_budget: Optional[int] = None
        self.gas_price: Optional[int] = None

    @property
    def gas(self) -> Argument:
        return GAS_COIN

    @property
    def commands(self) -> List[Any]:
        return list(self._commands)

    # Inputs

    def _add_input(self, value: Union[_PureInput, _ObjectInput]) -> Argument:
        self._inputs.append(value)
        return Argument(_ARGUMENT_INPUT, len(self._inputs) - 1)

    def pure(self, value: bytes) -> Argument:
        """Add a pure input from already BCS encoded bytes."""
        return self._add_input(_PureInput(bytes(value)))

    def pure_u64(self, value: int) -> Argument:
        return self.pure(encode_u64(value))

    def pure_address(self, value: str) -> Argument:
        return self.pure(encode_address(value))

    def pure_string(self, value: str) -> Argument:
        return self.pure(encode_string(value))

    def pure_bool(self, value: bool) -> Argument:
        return self.pure(encode_bool(value))

    def object(self, object_id: str, mutable: bool = True) -> Argument:
        """
        Add an object input; the same object id always maps to one input.

        Args:
            object_id: Object id
            mutable: Whether a shared object is taken by mutable reference
        """
        key = normalize_address(object_id)
        if key in self._object_index:
            existing = self._inputs[self._object_index[key]]
            existing.mutable = existing.mutable or mutable
            return Argument(_ARGUMENT_INPUT, self._object_index[key])
        argument = self._add_input(_ObjectInput(key, mutable))
        self._object_index[key] = argument.index
        return argument

    # Commands

    def _add_command(self, command) -> Argument:
        self._commands.append(command)
        return Argument(_ARGUMENT_RESULT, len(self._commands) - 1)

    def move_call(self, target: str, arguments: Sequence[Argument] = ()) -> Argument:
        """
        Call a Move function.

        Args:
            target: ``{package}::{module}::{function}``
            arguments: Arguments in declaration order

        Returns:
            Argument referring to the call result
        """
        parts = target.split("::")
        if len(parts) != 3 or not all(parts):
            raise ValidationError(f"Move call target must be package::module::function, got {target}")
        package, module, function = parts
        return self._add_command(_MoveCall(normalize_address(package), module, function, list(arguments)))

    def split_coins(self, coin: Argument, amounts: Sequence[Argument]) -> Argument:
        return self._add_command(_SplitCoins(coin, list(amounts)))

    def transfer_objects(self, objects: Sequence[Argument], address: Argument) -> Argument:
        return self._add_command(_TransferObjects(list(objects), address))

    # Gas data

    def set_sender(self, sender: str) -> None:
        self.sender = normalize_address(sender)

    def set_gas_owner(self, owner: str) -> None:
        self.gas_owner = normalize_address(owner)

    def set_gas_payment(self, payment: Sequence[Union[ObjectRef, Dict[str, Any]]]) -> None:
        self.gas_payment = [
            ref if isinstance(ref, ObjectRef) else ObjectRef.model_validate(ref) for ref in payment
        ]

    def set_gas_budget(self, budget: int) -> None:
        self.gas_budget = budget

    def set_gas_price(self, price: int) -> None:
        self.gas_price = price

    # Building

    def _resolve_objects(self, client) -> None:
        for item in self._inputs:
            if not isinstance(item, _ObjectInput) or item.ref or item.initial_shared_version is not None:
                continue
            response = client.get_object(item.object_id, show_content=False, show_type=False, show_owner=True)
            data = response.get("data")
            if not data:
                raise ValidationError(
                    f"Object {item.object_id} cannot be used as input",
                    properties={"objectId": item.object_id, "error": response.get("error")}
                )
            owner = data.get("owner")
            if isinstance(owner, dict) and "Shared" in owner:
                item.initial_shared_version = int(owner["Shared"]["initial_shared_version"])
            else:
                item.ref = ObjectRef(object_id=data["objectId"], version=int(data["version"]), digest=data["digest"])

    def _select_gas_payment(self, client, owner: str, budget: int) -> List[ObjectRef]:
        used = {i.object_id for i in self._inputs if isinstance(i, _ObjectInput)}
        payment: List[ObjectRef] = []
        total = 0
        for coin in client.get_coins(owner, IOTA_COIN_TYPE):
            if normalize_address(coin["coinObjectId"]) in used:
                continue
            payment.append(ObjectRef(object_id=coin["coinObjectId"], version=int(coin["version"]), digest=coin["digest"]))
            total += int(coin["balance"])
            if total >= budget:
                return payment
        raise ValidationError(
            "Not enough gas coins to cover the gas budget",
            properties={"owner": owner, "budget": budget, "available": total}
        )

    def _encode_input(self, writer: BcsWriter, item) -> None:
        if isinstance(item, _PureInput):
            writer.u8(_CALL_ARG_PURE).byte_vector(item.value)
            return
        writer.u8(_CALL_ARG_OBJECT)
        if item.initial_shared_version is not None:
            writer.u8(_OBJECT_ARG_SHARED).address(item.object_id)
            writer.u64(item.initial_shared_version).boolean(item.mutable)
        else:
            writer.u8(_OBJECT_ARG_IMM_OR_OWNED)
            _encode_object_ref(writer, item.ref)

    def _encode_command(self, writer: BcsWriter, command) -> None:
        encode_argument = lambda w, a: a.encode(w)  # noqa: E731
        if isinstance(command, _MoveCall):
            writer.u8(_COMMAND_MOVE_CALL).address(command.package)
            writer.string(command.module).string(command.function)
            writer.length(0)  # type arguments
            writer.vector(command.arguments, encode_argument)
        elif isinstance(command, _TransferObjects):
            writer.u8(_COMMAND_TRANSFER_OBJECTS).vector(command.objects, encode_argument)
            command.address.encode(writer)
        elif isinstance(command, _SplitCoins):
            writer.u8(_COMMAND_SPLIT_COINS)
            command.coin.encode(writer)
            writer.vector(command.amounts, encode_argument)

    def _encode_kind(self, writer: BcsWriter) -> None:
        writer.u8(_TX_KIND_PROGRAMMABLE)
        writer.vector(self._inputs, self._encode_input)
        writer.vector(self._commands, self._encode_command)

    def build_kind(self, client) -> bytes:
        """
        Encode only the ``TransactionKind``, as needed for inspection calls.

        Args:
            client: Ledger client used to resolve object inputs
        """
        if not self._commands:
            raise ValidationError("Transaction has no commands")
        self._resolve_objects(client)
        writer = BcsWriter()
        self._encode_kind(writer)
        return writer.to_bytes()

    def build(self, client) -> bytes:
        """
        Resolve inputs and gas data, then encode ``TransactionData``.

        The sender and gas budget must be set. Gas owner defaults to the
        sender, gas price to the reference gas price, and gas payment to
        the sender's IOTA coins.

        Args:
            client: Ledger client used for resolution

        Returns:
            BCS encoded transaction bytes
        """
        if not self.sender:
            raise ValidationError("Transaction sender must be set before building")
        if not self.gas_budget:
            raise ValidationError("Transaction gas budget must be set before building")
        if not self._commands:
            raise ValidationError("Transaction has no commands")

        self._resolve_objects(client)
        gas_owner = self.gas_owner or self.sender
        gas_price = self.gas_price if self.gas_price is not None else client.get_reference_gas_price()
        payment = self.gas_payment
        if payment is None:
            payment = self._select_gas_payment(client, gas_owner, self.gas_budget)

        writer = BcsWriter()
        writer.u8(_TX_DATA_V1)
        self._encode_kind(writer)
        writer.address(self.sender)
        writer.vector(payment, _encode_object_ref)
        writer.address(gas_owner).u64(gas_price).u64(self.gas_budget)
        writer.u8(_EXPIRATION_NONE)
        tx_bytes = writer.to_bytes()
        logger.debug(
            f"Built transaction: {len(self._commands)} commands, {len(self._inputs)} inputs, "
            f"{len(tx_bytes)} bytes, gas owner {gas_owner[:10]}…"
        )
        return tx_bytes


def _encode_object_ref(writer: BcsWriter, ref: ObjectRef) -> None:
    writer.address(ref.object_id).u64(ref.version).digest(ref.digest)
