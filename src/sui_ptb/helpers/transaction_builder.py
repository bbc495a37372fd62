"""
Programmable Transaction Block builder.

Holds the inputs and commands of one PTB and serializes them as a BCS
``TransactionKind::ProgrammableTransaction``. Object inputs are deduplicated
by id so the same object is referenced once however many commands use it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Sequence, Union

import base58
from eth_utils import encode_hex

from sui_ptb.errors import SerializationError
from sui_ptb.helpers.addresses import address_bytes, normalize_address
from sui_ptb.helpers.bcs import Serializer
from sui_ptb.helpers.type_tags import TypeTag

logger = logging.getLogger(__name__)

PROGRAMMABLE_TRANSACTION = 0


# =============================================================================
# ARGUMENTS
# =============================================================================

@dataclass(frozen=True)
class GasCoin:
    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(0)

    def to_dict(self) -> Any:
        return "GasCoin"


@dataclass(frozen=True)
class Input:
    index: int

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(1)
        serializer.u16(self.index)

    def to_dict(self) -> Any:
        return {"Input": self.index}


@dataclass(frozen=True)
class Result:
    index: int

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(2)
        serializer.u16(self.index)

    def to_dict(self) -> Any:
        return {"Result": self.index}


@dataclass(frozen=True)
class NestedResult:
    index: int
    result_index: int

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(3)
        serializer.u16(self.index)
        serializer.u16(self.result_index)

    def to_dict(self) -> Any:
        return {"NestedResult": [self.index, self.result_index]}


class _Empty:
    """Placeholder for an optional parameter that received no value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def serialize(self, serializer: Serializer) -> None:
        raise SerializationError("Cannot serialize an empty optional argument")

    def to_dict(self) -> Any:
        return None

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = _Empty()

Argument = Union[GasCoin, Input, Result, NestedResult, _Empty]


# =============================================================================
# INPUTS
# =============================================================================

@dataclass(frozen=True)
class ImmOrOwnedObject:
    object_id: str
    version: int
    digest: str

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(0)
        serializer.fixed_bytes(address_bytes(self.object_id))
        serializer.u64(self.version)
        serializer.to_bytes(base58.b58decode(self.digest))


@dataclass(frozen=True)
class SharedObject:
    object_id: str
    initial_shared_version: int
    mutable: bool

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(1)
        serializer.fixed_bytes(address_bytes(self.object_id))
        serializer.u64(self.initial_shared_version)
        serializer.bool(self.mutable)


@dataclass(frozen=True)
class ReceivingObject:
    object_id: str
    version: int
    digest: str

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(2)
        serializer.fixed_bytes(address_bytes(self.object_id))
        serializer.u64(self.version)
        serializer.to_bytes(base58.b58decode(self.digest))


ObjectArg = Union[ImmOrOwnedObject, SharedObject, ReceivingObject]


@dataclass(frozen=True)
class PureInput:
    value: bytes

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(0)
        serializer.to_bytes(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"Pure": encode_hex(self.value)}


@dataclass(frozen=True)
class ObjectInput:
    arg: ObjectArg

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(1)
        self.arg.serialize(serializer)

    def to_dict(self) -> dict[str, Any]:
        kind = type(self.arg).__name__
        return {"Object": {kind: dict(vars(self.arg))}}


# =============================================================================
# COMMANDS
# =============================================================================

@dataclass(frozen=True)
class MoveCall:
    package: str
    module: str
    function: str
    type_arguments: tuple[TypeTag, ...] = ()
    arguments: tuple[Argument, ...] = ()

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(0)
        serializer.fixed_bytes(address_bytes(self.package))
        serializer.str(self.module)
        serializer.str(self.function)
        serializer.sequence(self.type_arguments, Serializer.struct)
        serializer.sequence(self.arguments, Serializer.struct)

    def to_dict(self) -> dict[str, Any]:
        return {
            "MoveCall": {
                "package": self.package,
                "module": self.module,
                "function": self.function,
                "type_arguments": [str(t) for t in self.type_arguments],
                "arguments": [a.to_dict() for a in self.arguments],
            }
        }


class Transaction:
    """Builder for one programmable transaction block."""

    def __init__(self):
        self.inputs: list[PureInput | ObjectInput] = []
        self.commands: list[MoveCall] = []
        self._object_inputs: dict[str, int] = {}

    def pure(self, value: bytes) -> Input:
        """Register BCS bytes as a pure input."""
        self.inputs.append(PureInput(bytes(value)))
        return Input(len(self.inputs) - 1)

    def object(self, arg: ObjectArg) -> Input:
        """
        Register an object input, reusing the existing input for the same id.

        A shared object used both read-only and mutably is passed mutably.
        """
        object_id = normalize_address(arg.object_id)
        index = self._object_inputs.get(object_id)
        if index is None:
            self.inputs.append(ObjectInput(arg))
            index = len(self.inputs) - 1
            self._object_inputs[object_id] = index
            return Input(index)

        if isinstance(arg, SharedObject) and arg.mutable:
            self.require_mutable(Input(index))
        return Input(index)

    @property
    def is_complete(self) -> bool:
        """False while a command still holds an EMPTY placeholder."""
        return all(a is not EMPTY for c in self.commands for a in c.arguments)

    def require_mutable(self, argument: Input) -> None:
        """Pass a shared object input mutably. Other inputs are left as they are."""
        current = self.inputs[argument.index]
        if isinstance(current, ObjectInput) and isinstance(current.arg, SharedObject) and not current.arg.mutable:
            self.inputs[argument.index] = ObjectInput(replace(current.arg, mutable=True))
            logger.debug(f"Upgraded shared input {current.arg.object_id} to mutable")

    def move_call(
        self,
        package: str,
        module: str,
        function: str,
        arguments: Sequence[Argument] = (),
        type_arguments: Sequence[TypeTag] = (),
    ) -> Result:
        """Append a MoveCall and return a reference to its result."""
        self.commands.append(
            MoveCall(
                package=normalize_address(package),
                module=module,
                function=function,
                type_arguments=tuple(type_arguments),
                arguments=tuple(arguments),
            )
        )
        return Result(len(self.commands) - 1)

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(PROGRAMMABLE_TRANSACTION)
        serializer.sequence(self.inputs, Serializer.struct)
        serializer.sequence(self.commands, Serializer.struct)

    def serialize_kind(self) -> bytes:
        """BCS bytes of the TransactionKind.

        Raises:
            SerializationError: If an argument cannot be encoded
        """
        ser = Serializer()
        try:
            self.serialize(ser)
        except SerializationError:
            raise
        except ValueError as e:
            raise SerializationError(f"Failed to serialize transaction: {e}") from e
        return ser.output()

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputs": [i.to_dict() for i in self.inputs],
            "commands": [c.to_dict() for c in self.commands],
        }
