"""
Move type tags and generic type argument resolution.

Type strings such as ``0x2::coin::Coin<0x2::sui::SUI>`` are parsed into
TypeTag / StructTag values that serialize into a MoveCall's type arguments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Union

from sui_ptb.errors import TypeResolutionError
from sui_ptb.helpers.addresses import address_bytes, normalize_address
from sui_ptb.helpers.bcs import Serializer, unwrap_vector
from sui_ptb.models import ParamSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StructTag:
    address: str
    module: str
    name: str
    type_params: tuple["TypeTag", ...] = ()

    def serialize(self, serializer: Serializer) -> None:
        serializer.fixed_bytes(address_bytes(self.address))
        serializer.str(self.module)
        serializer.str(self.name)
        serializer.sequence(self.type_params, Serializer.struct)

    def __str__(self) -> str:
        base = f"{self.address}::{self.module}::{self.name}"
        if self.type_params:
            base += "<" + ", ".join(str(t) for t in self.type_params) + ">"
        return base


@dataclass(frozen=True)
class TypeTag:
    BOOL = 0
    U8 = 1
    U64 = 2
    U128 = 3
    ADDRESS = 4
    SIGNER = 5
    VECTOR = 6
    STRUCT = 7
    U16 = 8
    U32 = 9
    U256 = 10

    variant: int
    value: Optional[Union[StructTag, "TypeTag"]] = None

    def serialize(self, serializer: Serializer) -> None:
        serializer.uleb128(self.variant)
        if self.variant in (TypeTag.VECTOR, TypeTag.STRUCT):
            self.value.serialize(serializer)

    @property
    def is_struct(self) -> bool:
        return self.variant == TypeTag.STRUCT

    def __str__(self) -> str:
        if self.variant == TypeTag.VECTOR:
            return f"vector<{self.value}>"
        if self.variant == TypeTag.STRUCT:
            return str(self.value)
        return _PRIMITIVE_NAMES[self.variant]


PRIMITIVE_TAGS = {
    "bool": TypeTag.BOOL,
    "u8": TypeTag.U8,
    "u16": TypeTag.U16,
    "u32": TypeTag.U32,
    "u64": TypeTag.U64,
    "u128": TypeTag.U128,
    "u256": TypeTag.U256,
    "address": TypeTag.ADDRESS,
    "signer": TypeTag.SIGNER,
}
_PRIMITIVE_NAMES = {v: k for k, v in PRIMITIVE_TAGS.items()}


def split_type_params(params: str) -> list[str]:
    """Split ``A, B<C, D>, E`` on top-level commas."""
    parts = []
    depth = 0
    current = []
    for char in params:
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
            if depth < 0:
                raise TypeResolutionError(f"Unbalanced type parameters: {params!r}")
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if depth != 0:
        raise TypeResolutionError(f"Unbalanced type parameters: {params!r}")
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def parse_struct_tag(type_str: str) -> StructTag:
    type_str = type_str.strip()
    params: tuple[TypeTag, ...] = ()
    head = type_str
    if "<" in type_str:
        if not type_str.endswith(">"):
            raise TypeResolutionError(f"Malformed struct type: {type_str!r}")
        open_at = type_str.index("<")
        head = type_str[:open_at]
        inner = type_str[open_at + 1:-1]
        params = tuple(parse_type_tag(p) for p in split_type_params(inner))

    parts = head.split("::")
    if len(parts) != 3 or not all(parts):
        raise TypeResolutionError(f"Struct type must be address::module::Name, got {type_str!r}")
    address, module, name = parts
    try:
        address = normalize_address(address)
    except ValueError as e:
        raise TypeResolutionError(f"Invalid address in type {type_str!r}: {e}") from e
    return StructTag(address=address, module=module, name=name, type_params=params)


def parse_type_tag(type_str: str) -> TypeTag:
    """Parse any Move type string into a TypeTag.

    Raises:
        TypeResolutionError: If the string is empty or malformed.
    """
    type_str = type_str.strip()
    if not type_str:
        raise TypeResolutionError("Empty type string")
    if type_str in PRIMITIVE_TAGS:
        return TypeTag(PRIMITIVE_TAGS[type_str])
    inner = unwrap_vector(type_str)
    if inner is not None:
        return TypeTag(TypeTag.VECTOR, parse_type_tag(inner))
    return TypeTag(TypeTag.STRUCT, parse_struct_tag(type_str))


def effective_generic_type(param: ParamSpec, type_hints: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Generic type string a parameter contributes, or None if it is not generic."""
    if param.generic_type is not None:
        return param.generic_type
    if param.is_generic:
        hint = (type_hints or {}).get(param.name)
        if hint is None:
            raise TypeResolutionError("Generic parameter has no type hint", param_name=param.name)
        return hint
    return None


def resolve_generic(type_str: str, param_name: Optional[str] = None) -> TypeTag:
    """Turn one generic type string into the type argument of a call.

    ``vector<T>`` contributes ``T``. Only struct types are valid generics.
    """
    raw = type_str.strip()
    if not raw:
        raise TypeResolutionError("Empty generic type", param_name=param_name)

    inner = unwrap_vector(raw)
    if inner is not None:
        if unwrap_vector(inner) is not None:
            raise TypeResolutionError(f"Nested vector generics are not supported: {raw}", param_name=param_name)
        raw = inner

    if raw in PRIMITIVE_TAGS:
        raise TypeResolutionError(f"Primitive type {raw} cannot be a generic argument", param_name=param_name)

    try:
        return TypeTag(TypeTag.STRUCT, parse_struct_tag(raw))
    except TypeResolutionError as e:
        if e.param_name is None:
            e.param_name = param_name
        raise


def resolve_generics(
    params: Iterable[ParamSpec],
    type_hints: Optional[Mapping[str, str]] = None,
) -> list[TypeTag]:
    """
    Collect the type arguments of a command from its parameters.

    Each distinct generic string yields one type tag, in order of first
    appearance, so ``[A, B, A, C, B]`` resolves to ``[A, B, C]``.

    Args:
        params: Parameter specs of one command
        type_hints: Caller-supplied types for parameters carrying the generic marker

    Returns:
        Ordered, deduplicated list of type tags

    Raises:
        TypeResolutionError: If a generic is empty, primitive, a nested vector,
            malformed, or a marker has no hint
    """
    seen: set[str] = set()
    tags: list[TypeTag] = []
    for param in params:
        generic = effective_generic_type(param, type_hints)
        if generic is None:
            continue
        if not generic.strip():
            raise TypeResolutionError("Empty generic type", param_name=param.name)
        if generic in seen:
            continue
        seen.add(generic)
        tags.append(resolve_generic(generic, param_name=param.name))
        logger.debug(f"Resolved generic for {param.name}: {generic}")
    return tags
